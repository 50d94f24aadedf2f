"""Compile entry points: template source in, root AST node out."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TextIO

from ein.ast_nodes import ListNode
from ein.parser import parse

_log = logging.getLogger(__name__)


def compile_template(source: str | TextIO, *, logger: logging.Logger | None = None) -> ListNode:
    """Compile template source. Raises TemplateError on malformed input."""
    log = logger or _log
    log.debug("compiling...")
    root = parse(source, logger=log)
    log.debug("done compiling")
    return root


def compile_file(
    path: str | Path,
    *,
    encoding: str = "utf-8",
    logger: logging.Logger | None = None,
) -> ListNode:
    """Compile a template file, streaming it to the lexer."""
    with open(path, encoding=encoding) as f:
        return compile_template(f, logger=logger)
