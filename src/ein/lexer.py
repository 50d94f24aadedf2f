"""Lexer for ein templates.

A state machine over characters: each state is a bound method that
consumes input and returns the next state, or None to halt. Tokens are
sent on a TokenChannel as soon as they are recognized, so the lexer runs
on its own thread while the parser consumes.
"""

from __future__ import annotations

import io
import logging
import threading
from collections.abc import Callable
from typing import TextIO

from ein.channel import TokenChannel
from ein.errors import InternalError
from ein.tokens import KEYWORDS, LEFT_META, T_EOF, Token, TokenKind

_log = logging.getLogger(__name__)

_EOF = ""

StateFn = Callable[[], "StateFn | None"]


class Lexer:
    """Tokenizes an ein template read from a text stream."""

    def __init__(
        self,
        source: TextIO,
        channel: TokenChannel,
        logger: logging.Logger | None = None,
    ) -> None:
        self.source = source
        self.channel = channel
        self.log = logger or _log
        self.buf: list[str] = []
        self._pushback: list[str] = []
        self._read_failed = False

    def run(self) -> None:
        """Run the state machine to completion, then send EOF and close.

        An unexpected exception stops the scan and is stored on the
        channel as ``error`` for the consumer to raise.
        """
        state: StateFn | None = self._lex_plaintext
        try:
            while state is not None:
                state = state()
        except Exception as e:
            self.log.debug("lexer failed: %r", e)
            self.channel.error = e
        finally:
            self._done()

    # ── Helpers ───────────────────────────────────────────────────

    def _read(self) -> str:
        if self._pushback:
            return self._pushback.pop()
        if self._read_failed:
            return _EOF
        try:
            return self.source.read(1)
        except (OSError, UnicodeDecodeError) as e:
            self._read_failed = True
            self._emit_error(f"lex error in next: {e}")
            return _EOF

    def _next(self) -> str:
        """Consume one character into the pending buffer."""
        ch = self._read()
        if ch != _EOF:
            self.buf.append(ch)
        return ch

    def _backup(self, ch: str) -> None:
        """Return ``ch``, the character just read by _next, to the input."""
        if ch == _EOF:
            return
        self.buf.pop()
        self._pushback.append(ch)

    def _peek(self) -> str:
        ch = self._read()
        if ch != _EOF:
            self._pushback.append(ch)
        return ch

    def _discard(self, count: int = 1) -> None:
        """Drop the last ``count`` characters of the pending buffer."""
        if count > 0:
            del self.buf[-count:]

    def _emit(self, kind: TokenKind) -> None:
        token = Token(kind, "".join(self.buf))
        self.buf.clear()
        self.log.debug("lex out: %s", token)
        self.channel.send(token)

    def _emit_error(self, message: str) -> None:
        self.log.debug("lex error: %s", message)
        self.channel.send(Token(TokenKind.ERROR, message))

    def _fatal(self, message: str) -> StateFn | None:
        """Report an error the lexer cannot recover from and halt."""
        self._emit_error(message)
        return None

    def _errorf(self, message: str) -> StateFn:
        """Report an error, skip to the next line and resume in plaintext."""
        self._emit_error(message)
        self._skip_until("\n\r")
        self._next()
        self.buf.clear()
        return self._lex_plaintext

    def _skip_until(self, stops: str) -> None:
        while True:
            ch = self._read()
            if ch == _EOF:
                return
            if ch in stops:
                self._pushback.append(ch)
                return

    def _done(self) -> None:
        self.log.debug("lex out: %s", T_EOF)
        self.channel.send(T_EOF)
        self.channel.close()

    # ── States ────────────────────────────────────────────────────

    def _lex_plaintext(self) -> StateFn | None:
        ch = self._next()
        if ch == "{":
            if self._peek() == "{":
                self._next()
                self._discard(2)
                if self.buf:
                    self._emit(TokenKind.PLAINTEXT)
                self.buf.extend(LEFT_META)
                self._emit(TokenKind.LEFT_META)
                return self._lex_tag_body
            return self._lex_plaintext
        if ch == "}":
            if self._peek() == "}":
                return self._fatal("unexpected right meta in lexPlaintext")
            return self._lex_plaintext
        if ch == _EOF:
            if self.buf:
                self._emit(TokenKind.PLAINTEXT)
            return None
        return self._lex_plaintext

    def _lex_tag_body(self) -> StateFn | None:
        ch = self._next()
        match ch:
            case "":
                return None
            case "}" if self._peek() == "}":
                self._next()
                self._emit(TokenKind.RIGHT_META)
                return self._lex_plaintext
            case "{" if self._peek() == "{":
                return self._errorf("unexpected left meta in lexTagBody")
            case _ if ch.isalpha():
                return self._lex_identifier
            case _:
                # whitespace and stray characters inside a tag are dropped
                self._discard()
                return self._lex_tag_body

    def _lex_identifier(self) -> StateFn:
        while True:
            ch = self._next()
            if ch.isalpha() or ch.isdecimal() or ch == "_":
                continue
            self._backup(ch)
            break
        self._emit(KEYWORDS.get("".join(self.buf), TokenKind.IDENTIFIER))
        return self._lex_tag_body


def lex(
    source: str | TextIO,
    channel: TokenChannel,
    *,
    logger: logging.Logger | None = None,
) -> None:
    """Lex ``source`` onto ``channel``. Always ends with exactly one EOF."""
    if isinstance(source, str):
        source = io.StringIO(source)
    Lexer(source, channel, logger).run()


def start_lexer(
    source: str | TextIO,
    *,
    logger: logging.Logger | None = None,
) -> tuple[TokenChannel, threading.Thread]:
    """Start lexing ``source`` on a background thread."""
    channel = TokenChannel()
    thread = threading.Thread(
        target=lex,
        args=(source, channel),
        kwargs={"logger": logger},
        name="ein-lexer",
        daemon=True,
    )
    thread.start()
    return channel, thread


def lex_all(
    source: str | TextIO,
    *,
    logger: logging.Logger | None = None,
) -> list[Token]:
    """Lex the whole source and return every token, EOF included.

    Raises InternalError if the lexer stopped on an unexpected exception.
    """
    channel, thread = start_lexer(source, logger=logger)
    tokens = list(channel)
    thread.join()
    raise_lexer_failure(channel)
    return tokens


def raise_lexer_failure(channel: TokenChannel) -> None:
    """Raise InternalError if the lexer feeding ``channel`` crashed."""
    if channel.error is not None:
        raise InternalError(f"lexer failed: {channel.error}") from channel.error
