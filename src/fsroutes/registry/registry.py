"""Ordered accumulator for the route schemas of a single run."""

from __future__ import annotations

import threading
from typing import Iterator

from fsroutes.registry.types import RouteSchema, RouteStatus

__all__ = ["RouteRegistry"]


class RouteRegistry:
    """Append-only, discovery-ordered list of RouteSchema records."""

    def __init__(self) -> None:
        self._schemas: list[RouteSchema] = []
        self._write_lock = threading.RLock()

    def append(self, schema: RouteSchema) -> None:
        with self._write_lock:
            self._schemas.append(schema)

    def all(self) -> list[RouteSchema]:
        """Return a snapshot of every record in discovery order."""
        with self._write_lock:
            return list(self._schemas)

    def clear(self) -> None:
        with self._write_lock:
            self._schemas.clear()

    def with_status(self, status: RouteStatus | str) -> list[RouteSchema]:
        """Return the records whose status equals ``status``."""
        status = RouteStatus(status)
        return [schema for schema in self.all() if schema.status is status]

    def __len__(self) -> int:
        with self._write_lock:
            return len(self._schemas)

    def __iter__(self) -> Iterator[RouteSchema]:
        return iter(self.all())
