"""Parser for ein templates.

Recursive descent over a TokenReader. Every list node parses its own
children and uses lookahead predicates to find where its block ends;
an if node parses its branches as nested list nodes.
"""

from __future__ import annotations

import io
import logging
from typing import TextIO

from ein.ast_nodes import (
    ElseNode,
    EndNode,
    IdentifierNode,
    IfNode,
    ListNode,
    Node,
    PlaintextNode,
)
from ein.errors import EmptyTagError, InternalError, LexicalError, ParseError, TagError
from ein.lexer import raise_lexer_failure, start_lexer
from ein.reader import TokenReader, before_else, before_end, get_predicate
from ein.tokens import Token, TokenKind

_log = logging.getLogger(__name__)

# Terminators of the branches of an if block.
_TRUE_BRANCH_END = ("before_end", "before_else")
_FALSE_BRANCH_END = ("before_end",)

# {{ keyword }} is three tokens
_MARKER_LEN = 3

# Deepest allowed nesting of if blocks
MAX_NESTING = 100


def _match_sequence(tokens: list[Token], *kinds: TokenKind) -> bool:
    return len(tokens) == len(kinds) and all(t.kind == k for t, k in zip(tokens, kinds))


def parse_tag(tokens: list[Token], logger: logging.Logger | None = None) -> Node:
    """Build the node for the tokens between ``{{`` and ``}}``."""
    (logger or _log).debug("parse tag: %s", ", ".join(str(t) for t in tokens))
    if not tokens:
        raise EmptyTagError("empty tag")
    if _match_sequence(tokens, TokenKind.IDENTIFIER):
        return IdentifierNode(tokens[0].value)
    if _match_sequence(tokens, TokenKind.END):
        return EndNode()
    if _match_sequence(tokens, TokenKind.ELSE):
        return ElseNode()
    if tokens[0].kind == TokenKind.IF:
        if len(tokens) == 1:
            raise TagError("if tag requires a condition")
        return IfNode(condition=list(tokens[1:]))
    raise TagError(f"unrecognized tag: {' '.join(str(t) for t in tokens)}")


class Parser:
    """Drives node parsing from a token reader."""

    def __init__(self, reader: TokenReader, logger: logging.Logger | None = None) -> None:
        self.reader = reader
        self.log = logger or _log
        self.depth = 0

    def parse_body(self, node: Node) -> None:
        """Parse the subtree owned by ``node``. Leaves have nothing to parse."""
        match node:
            case ListNode():
                self._parse_list(node)
            case IfNode():
                self._parse_if(node)
            case PlaintextNode() | IdentifierNode() | EndNode() | ElseNode():
                pass
            case _:
                raise InternalError(f"cannot parse {node!r}")

    # ── Lists ────────────────────────────────────────────────────

    def _at_end(self, node: ListNode) -> bool:
        for name in node.terminators:
            if get_predicate(name)(self.reader):
                self.log.debug("hit list end: %s", name)
                return True
            self.log.debug("list end terminator %s didn't pass", name)
        return False

    def _parse_list(self, node: ListNode) -> None:
        r = self.reader
        while not self._at_end(node):
            token = r.next()
            match token.kind:
                case TokenKind.LEFT_META:
                    node.push(self._parse_tag_node())
                case TokenKind.PLAINTEXT:
                    node.push(PlaintextNode(token.value))
                case TokenKind.ERROR:
                    raise LexicalError(token)
                case TokenKind.EOF:
                    if node.root:
                        return
                    raise ParseError("unexpected EOF in block")
                case _:
                    raise ParseError(f"unexpected {token.kind} token in parse: {token}")

    def _parse_tag_node(self) -> Node:
        """Parse a tag whose ``{{`` was just consumed, with its body."""
        tokens = self.reader.read_until(TokenKind.RIGHT_META)
        child = parse_tag(tokens, self.log)
        match child:
            case EndNode():
                raise ParseError("unexpected {{end}} outside of a block")
            case ElseNode():
                raise ParseError("unexpected {{else}} outside of an if block")
        self.reader.next()  # '}}'
        self.parse_body(child)
        return child

    # ── If blocks ────────────────────────────────────────────────

    def _parse_if(self, node: IfNode) -> None:
        if self.depth >= MAX_NESTING:
            raise ParseError(f"template nested too deeply (more than {MAX_NESTING} blocks)")
        r = self.reader
        self.depth += 1
        try:
            node.true_branch = ListNode(root=False, terminators=_TRUE_BRANCH_END)
            self.parse_body(node.true_branch)
            if before_end(r):
                r.next_n(_MARKER_LEN)
                return
            if before_else(r):
                r.next_n(_MARKER_LEN)
                node.false_branch = ListNode(root=False, terminators=_FALSE_BRANCH_END)
                self.parse_body(node.false_branch)
                r.next_n(_MARKER_LEN)
                return
        finally:
            self.depth -= 1
        raise InternalError("if block ended without {{end}} or {{else}}")


def parse(source: str | TextIO, *, logger: logging.Logger | None = None) -> ListNode:
    """Parse a template into its root list node.

    The lexer runs on a background thread; it is drained and joined
    before this returns, whether parsing succeeded or not. If the lexer
    crashed while the parse itself went through, InternalError is raised
    instead of returning a truncated tree.
    """
    log = logger or _log
    if isinstance(source, str):
        source = io.StringIO(source)
    channel, thread = start_lexer(source, logger=log)
    root = ListNode(root=True)
    try:
        Parser(TokenReader(channel, log), log).parse_body(root)
    except RecursionError:
        raise ParseError("template nested too deeply") from None
    finally:
        channel.drain()
        thread.join()
    raise_lexer_failure(channel)
    return root
