"""AST node definitions for ein templates.

Nodes form a closed union; behavior that depends on the variant lives in
the functions below (and in ``ein.parser.Parser.parse_body``) and is
dispatched with ``match``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Union

from ein.errors import InternalError
from ein.tokens import Token


class NodeKind(Enum):
    INVALID = "invalid"
    IDENTIFIER = "identifier"
    PLAINTEXT = "plaintext"
    LIST = "list"
    IF = "if"
    END = "end"
    ELSE = "else"


# ── Leaves ───────────────────────────────────────────────────────


@dataclass(frozen=True)
class PlaintextNode:
    """Literal text copied verbatim from the template."""

    text: str
    kind: ClassVar[NodeKind] = NodeKind.PLAINTEXT


@dataclass(frozen=True)
class IdentifierNode:
    """A variable name, looked up in an Environment at execution time."""

    name: str
    kind: ClassVar[NodeKind] = NodeKind.IDENTIFIER


@dataclass(frozen=True)
class EndNode:
    kind: ClassVar[NodeKind] = NodeKind.END


@dataclass(frozen=True)
class ElseNode:
    kind: ClassVar[NodeKind] = NodeKind.ELSE


# ── Blocks ───────────────────────────────────────────────────────


@dataclass
class ListNode:
    """An ordered run of nodes: the whole template, or the body of a block.

    ``terminators`` names the lookahead predicates that end a nested
    list; the root list has none and ends only at EOF.
    """

    root: bool = False
    terminators: tuple[str, ...] = ()
    children: list[Node] = field(default_factory=list)
    kind: ClassVar[NodeKind] = NodeKind.LIST

    def __post_init__(self) -> None:
        if not self.root and not self.terminators:
            raise InternalError("a nested list needs at least one terminator")

    def push(self, child: Node) -> None:
        self.children.append(child)


@dataclass
class IfNode:
    condition: list[Token]
    true_branch: ListNode | None = None
    false_branch: ListNode | None = None
    kind: ClassVar[NodeKind] = NodeKind.IF


Node = Union[PlaintextNode, IdentifierNode, ListNode, IfNode, EndNode, ElseNode]


def children(node: Node) -> list[Node]:
    """Ordered child nodes; empty for leaves."""
    match node:
        case ListNode():
            return list(node.children)
        case IfNode():
            return [b for b in (node.true_branch, node.false_branch) if b is not None]
        case _:
            return []


def _quote(text: str) -> str:
    return json.dumps(text, ensure_ascii=False)


def display(node: Node | None) -> str:
    """Render a node for diagnostics.

    The output is meant for humans and logs; it is not template source
    and does not parse back to the same tree.
    """
    match node:
        case None:
            return "nil"
        case PlaintextNode(text=text):
            return f"[text: {_quote(text)}]"
        case IdentifierNode(name=name):
            return f"[ident: {_quote(name)}]"
        case ListNode():
            body = "".join(display(c) for c in node.children)
            terms = ", ".join(node.terminators)
            root = "true" if node.root else "false"
            return f"[list ({root}, {len(node.children)}, [{terms}]): [{body}]]"
        case IfNode():
            cond = " ".join(str(t) for t in node.condition)
            return (
                f"[if cond:[{cond}] true:{display(node.true_branch)}"
                f" false:{display(node.false_branch)}]"
            )
        case EndNode():
            return "[end]"
        case ElseNode():
            return "[else]"
    raise TypeError(f"not an ein node: {node!r}")


def nodes_match(left: Node, right: Node) -> bool:
    """Compare two trees by shape: node kinds and children, not payloads."""
    if left.kind != right.kind:
        return False
    left_children, right_children = children(left), children(right)
    if len(left_children) != len(right_children):
        return False
    return all(nodes_match(a, b) for a, b in zip(left_children, right_children))
