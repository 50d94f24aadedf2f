"""Variable environments for template execution.

Scopes chain to a parent: a name missing locally is looked up in the
enclosing scope.
"""

from __future__ import annotations

from typing import Any


class Environment:
    def __init__(
        self,
        contents: dict[str, Any] | None = None,
        parent: Environment | None = None,
    ) -> None:
        self.contents: dict[str, Any] = dict(contents or {})
        self.parent = parent

    def get(self, name: str) -> tuple[Any, bool]:
        """Look ``name`` up here, then in the parents. Returns (value, found)."""
        env: Environment | None = self
        while env is not None:
            if name in env.contents:
                return env.contents[name], True
            env = env.parent
        return None, False

    def set(self, name: str, value: Any) -> None:
        self.contents[name] = value

    def child(self, **values: Any) -> Environment:
        """Open a nested scope whose lookups fall back to this one."""
        return Environment(values, parent=self)

    def __contains__(self, name: str) -> bool:
        return self.get(name)[1]
