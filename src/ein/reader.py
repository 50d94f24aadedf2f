"""Rewindable token cursor over the lexer channel, plus lookahead predicates.

The channel only moves forward. TokenReader keeps a push-back stack so
the parser can read ahead any number of tokens and put them back.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from ein.channel import TokenChannel
from ein.errors import InternalError, LexicalError, ParseError, StreamClosedError
from ein.tokens import T_ELSE, T_END, T_LEFT, T_RIGHT, Token, TokenKind

_log = logging.getLogger(__name__)


class TokenReader:
    """A stream of tokens that can be rewound with ``unread``."""

    def __init__(self, channel: TokenChannel, logger: logging.Logger | None = None) -> None:
        self.channel = channel
        self.log = logger or _log
        self.history: list[Token] = []

    def next(self) -> Token:
        """Get and consume the next token."""
        if self.history:
            return self.history.pop()
        token = self.channel.receive()
        if token is None:
            raise StreamClosedError("parsing a closed lex stream")
        return token

    def next_n(self, n: int) -> list[Token]:
        return [self.next() for _ in range(n)]

    def peek(self) -> Token:
        """Return the next token without consuming it."""
        token = self.next()
        self.unread(token)
        return token

    def unread(self, *tokens: Token) -> None:
        """Put tokens back; the next reads return them in the given order."""
        if not tokens:
            return
        self.log.debug("unread: %s", ", ".join(str(t) for t in tokens))
        self.history.extend(reversed(tokens))

    def read_until(self, kind: TokenKind) -> list[Token]:
        """Read all tokens up to, not including, the next token of ``kind``.

        The terminal token is pushed back so the caller still sees it.
        Raises ParseError if EOF comes first, unless ``kind`` is EOF.
        """
        out: list[Token] = []
        while True:
            token = self.next()
            if token.kind == kind:
                self.unread(token)
                return out
            if token.kind == TokenKind.EOF:
                raise ParseError(f"unexpected EOF while scanning for {kind}")
            if token.kind == TokenKind.ERROR:
                raise LexicalError(token)
            out.append(token)


Predicate = Callable[[TokenReader], bool]


def lookahead(name: str, *expected: Token) -> Predicate:
    """Build a predicate testing whether ``expected`` comes next.

    The predicate stops reading at the first mismatch and always puts
    back what it read, so the reader position is unchanged. None of the
    sequences contain EOF, so a predicate never reads past the end.
    """

    def predicate(reader: TokenReader) -> bool:
        reader.log.debug("lookahead %s sees: %s", name, ", ".join(str(t) for t in expected))
        upcoming: list[Token] = []
        try:
            for want in expected:
                got = reader.next()
                upcoming.append(got)
                if got != want:
                    reader.log.debug("expected: %s got: %s at %d", want, got, len(upcoming) - 1)
                    return False
            return True
        finally:
            reader.unread(*upcoming)

    predicate.__name__ = name
    return predicate


before_end = lookahead("before_end", T_LEFT, T_END, T_RIGHT)
before_else = lookahead("before_else", T_LEFT, T_ELSE, T_RIGHT)

PARSE_PREDICATES: dict[str, Predicate] = {
    "before_end": before_end,
    "before_else": before_else,
}


def get_predicate(name: str) -> Predicate:
    try:
        return PARSE_PREDICATES[name]
    except KeyError:
        raise InternalError(f"invalid parse predicate name: {name}") from None
