"""Shared test helpers for the ein test suite."""

from __future__ import annotations

import threading

from ein.ast_nodes import ListNode
from ein.channel import TokenChannel
from ein.lexer import lex_all
from ein.parser import parse
from ein.reader import TokenReader
from ein.tokens import Token, TokenKind


def feed(*tokens: Token) -> TokenChannel:
    """Return a channel a background thread fills with ``tokens`` then closes."""
    channel = TokenChannel()

    def produce() -> None:
        for token in tokens:
            channel.send(token)
        channel.close()

    threading.Thread(target=produce, name="test-feed", daemon=True).start()
    return channel


def reader_for(*tokens: Token) -> TokenReader:
    return TokenReader(feed(*tokens))


def lex_pairs(source: str) -> list[tuple[TokenKind, str]]:
    """Lex source and return (kind, value) pairs, excluding EOF."""
    return [(t.kind, t.value) for t in lex_all(source) if t.kind != TokenKind.EOF]


def parse_children(source: str) -> list:
    """Parse source and return the root list's children."""
    root = parse(source)
    assert isinstance(root, ListNode) and root.root
    return root.children
