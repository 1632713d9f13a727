"""Tokenizer for toy scripts."""

from __future__ import annotations

import re
from dataclasses import dataclass

TOKEN_PATTERN = re.compile(
    r"(?P<punct>[(){},;])"
    r"|(?P<op>[=+\-*/><&|^!]+)"
    r"|(?P<space>\s+)"
    r"|(?P<ident>[A-Za-z_][A-Za-z0-9_]*)"
    r"|(?P<number>[0-9.]+)"
)


@dataclass(frozen=True)
class Token:
    text: str
    kind: str
    offset: int
    line: int
    column: int

    @property
    def is_identifier(self) -> bool:
        return self.kind == "ident"


def _position(source: str, offset: int) -> tuple[int, int]:
    line = source.count("\n", 0, offset) + 1
    column = offset - (source.rfind("\n", 0, offset) + 1) + 1
    return line, column


def tokenize(source: str) -> list[Token]:
    """Split source into a flat token list.

    Operator runs are kept whole (``>=`` is one token); brackets and
    separators are always single-character tokens. Text between
    pattern matches is kept as an ``other`` token so the parser can skip it.
    """
    tokens: list[Token] = []
    pos = 0

    def emit(text: str, kind: str, offset: int) -> None:
        stripped = text.strip()
        if not stripped:
            return
        offset += len(text) - len(text.lstrip())
        line, column = _position(source, offset)
        tokens.append(Token(stripped, kind, offset, line, column))

    for match in TOKEN_PATTERN.finditer(source):
        if match.start() > pos:
            emit(source[pos : match.start()], "other", pos)
        kind = match.lastgroup or "other"
        if kind != "space":
            emit(match.group(), kind, match.start())
        pos = match.end()
    if pos < len(source):
        emit(source[pos:], "other", pos)
    return tokens
