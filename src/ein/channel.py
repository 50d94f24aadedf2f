"""Bounded token handoff between the lexer thread and the parser."""

from __future__ import annotations

import queue
from collections.abc import Iterator

from ein.tokens import Token

_CLOSED = object()


class TokenChannel:
    """Single-producer, single-consumer queue holding at most one token.

    ``send`` blocks while a previously sent token has not been received,
    so the lexer never runs more than one token ahead of the parser.
    """

    def __init__(self) -> None:
        self._queue: queue.Queue[object] = queue.Queue(maxsize=1)
        self._closed = False
        # set by the producer when it stopped on an unexpected exception
        self.error: Exception | None = None

    @property
    def closed(self) -> bool:
        """True once the receiving side has observed the close."""
        return self._closed

    def send(self, token: Token) -> None:
        self._queue.put(token)

    def close(self) -> None:
        self._queue.put(_CLOSED)

    def receive(self) -> Token | None:
        """Block for the next token. Returns None once the channel is closed."""
        if self._closed:
            return None
        item = self._queue.get()
        if item is _CLOSED:
            self._closed = True
            return None
        return item  # type: ignore[return-value]

    def drain(self) -> None:
        """Discard everything up to the close so a blocked sender can finish."""
        for _ in self:
            pass

    def __iter__(self) -> Iterator[Token]:
        while (token := self.receive()) is not None:
            yield token
