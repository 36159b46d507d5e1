# -*- coding: utf-8 -*-
"""구분자 이스케이프 처리.

규칙은 한 가지다: escape 문자 바로 뒤에 오는 구분자의 첫 글자 또는
escape 문자 자신은 "그 글자 그대로"를 뜻한다. 그 밖의 escape 문자는
평범한 문자로 취급한다.

한 글자 구분자(``|``)라면 ``\\|`` → ``|``, ``\\\\`` → ``\\`` 가 된다.
여러 글자 구분자(``||``)는 첫 글자만 예약어로 본다. 이렇게 해야
``split_with_escape(join_escaped(xs)) == xs`` 가 구분자 길이와 상관없이 성립한다.
"""
from __future__ import annotations

from typing import Iterable, List


def split_with_escape(row: str, delimiter: str, escape_char: str) -> List[str]:
    """escape를 고려해 ``row``를 ``delimiter`` 기준으로 나눈다.

    마지막 세그먼트는 비어 있어도 항상 포함된다.

    >>> split_with_escape("a|b|c", "|", "\\\\")
    ['a', 'b', 'c']
    >>> split_with_escape("a\\\\|b|c", "|", "\\\\")
    ['a|b', 'c']
    >>> split_with_escape("", "|", "\\\\")
    ['']
    """
    lead = delimiter[0]
    out: List[str] = []
    buf: List[str] = []
    i = 0
    n = len(row)
    while i < n:
        ch = row[i]
        if ch == escape_char and i + 1 < n:
            nxt = row[i + 1]
            if nxt == lead or nxt == escape_char:
                buf.append(nxt)
                i += 2
                continue
        if row.startswith(delimiter, i):
            out.append("".join(buf))
            buf = []
            i += len(delimiter)
            continue
        buf.append(ch)
        i += 1
    out.append("".join(buf))
    return out


def escape(value: str, delimiter: str, escape_char: str) -> str:
    """구분자 첫 글자와 escape 문자 앞에 escape 문자를 붙인다."""
    lead = delimiter[0]
    out: List[str] = []
    for ch in value:
        if ch == lead or ch == escape_char:
            out.append(escape_char)
        out.append(ch)
    return "".join(out)


def unescape(value: str, delimiter: str, escape_char: str) -> str:
    """``escape``의 역함수. ``unescape(escape(x)) == x``."""
    lead = delimiter[0]
    out: List[str] = []
    i = 0
    n = len(value)
    while i < n:
        ch = value[i]
        if ch == escape_char and i + 1 < n:
            nxt = value[i + 1]
            if nxt == lead or nxt == escape_char:
                out.append(nxt)
                i += 2
                continue
        out.append(ch)
        i += 1
    return "".join(out)


def join_escaped(values: Iterable[str], delimiter: str, escape_char: str) -> str:
    return delimiter.join(escape(v, delimiter, escape_char) for v in values)
