"""Token kinds and token representation for the ein lexer."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class TokenKind(Enum):
    INVALID = "invalid"
    ERROR = "error"
    EOF = "EOF"
    PLAINTEXT = "text"
    LEFT_META = "leftM"
    RIGHT_META = "rightM"
    IDENTIFIER = "ident"

    # Keywords
    IF = "if"
    FOR = "for"  # reserved, never produced by the lexer
    END = "end"
    ELSE = "else"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    value: str

    def __str__(self) -> str:
        return f"{{{self.kind}: {self.value}}}"


KEYWORDS: dict[str, TokenKind] = {
    "if": TokenKind.IF,
    "else": TokenKind.ELSE,
    "end": TokenKind.END,
}

LEFT_META = "{{"
RIGHT_META = "}}"

T_EOF = Token(TokenKind.EOF, "EOF")
T_LEFT = Token(TokenKind.LEFT_META, LEFT_META)
T_RIGHT = Token(TokenKind.RIGHT_META, RIGHT_META)
T_END = Token(TokenKind.END, "end")
T_ELSE = Token(TokenKind.ELSE, "else")
