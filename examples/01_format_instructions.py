from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field
from positional_langchain_parser import PositionalOutputParser


class Simple(BaseModel):
    name: str
    age: int = Field(..., ge=0, le=150)
    nickname: Optional[str] = None
    hobbies: List[str] = []


print(PositionalOutputParser(model=Simple).get_format_instructions())
print()
print(PositionalOutputParser(model=Simple, mode="multi", max_rows=20).get_format_instructions())
