from __future__ import annotations

from typing import Optional
from pydantic import BaseModel, Field
from positional_langchain_parser import PositionalOutputParser

class ExtractedEntities(BaseModel):
    tenant_id: Optional[str] = Field(None, description="테넌트 ID")
    system: Optional[str] = Field(None, description="시스템 이름")
    keyword: Optional[str] = Field(None, description="키워드")

class RoutingDecision(BaseModel):
    route: str = Field(..., description="search|faq|handoff")
    confidence: float = Field(..., ge=0.0, le=1.0)
    reason: str
    entities: Optional[ExtractedEntities] = None

parser = PositionalOutputParser(model=RoutingDecision)

# route|confidence|reason|entities.tenant_id|entities.system|entities.keyword
positional_output = 'search|0.82|키워드 "NORI 사용자 사전"이 설정 가이드를 요구함||elasticsearch|nori 사용자 사전'

print(parser.decode(positional_output))
print(parser.parse(positional_output))
