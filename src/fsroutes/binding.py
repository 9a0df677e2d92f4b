"""Router binding collaborators."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

__all__ = ["Binding", "RouteBinder", "RouteTable"]


@runtime_checkable
class RouteBinder(Protocol):
    """Anything that can mount a handler at a path."""

    def bind(self, path: str, handler: Any) -> None: ...


@dataclass(frozen=True)
class Binding:
    path: str
    handler: Any


class RouteTable:
    """In-memory binder that records every binding in order."""

    def __init__(self) -> None:
        self._bindings: list[Binding] = []

    def bind(self, path: str, handler: Any) -> None:
        self._bindings.append(Binding(path=path, handler=handler))

    @property
    def bindings(self) -> list[Binding]:
        return list(self._bindings)

    @property
    def paths(self) -> list[str]:
        return [binding.path for binding in self._bindings]

    def get(self, path: str) -> Any:
        """Return the handler most recently bound at ``path``, or None."""
        for binding in reversed(self._bindings):
            if binding.path == path:
                return binding.handler
        return None

    def clear(self) -> None:
        self._bindings.clear()

    def __len__(self) -> int:
        return len(self._bindings)
