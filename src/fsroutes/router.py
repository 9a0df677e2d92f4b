"""Router: the object a route file exports to declare its method layers.

Usage::

    from fsroutes import Router

    router = Router()

    @router.get("/")
    async def show_user(request):
        ...

    router.put("/avatar", require_login, update_avatar)
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field, replace
from typing import Any, Callable

__all__ = ["HTTP_METHODS", "Router", "RouteLayer"]

HTTP_METHODS: frozenset[str] = frozenset({
    "checkout",
    "copy",
    "delete",
    "get",
    "head",
    "lock",
    "merge",
    "mkactivity",
    "mkcol",
    "move",
    "m-search",
    "notify",
    "options",
    "patch",
    "post",
    "purge",
    "put",
    "report",
    "search",
    "subscribe",
    "trace",
    "unlock",
    "unsubscribe",
    "all",
})


@dataclass
class RouteLayer:
    """One method sub-route declared on a Router.

    Attributes:
        method: Lower-cased HTTP verb, or ``"unknown"``.
        path: In-file sub-path, ``"/"`` when the layer targets the base path.
        stack: Ordered handler callables invoked for this layer.
    """

    method: str
    path: str = "/"
    stack: list[Callable[..., Any]] = field(default_factory=list)


class Router:
    """Collects method layers for a single route file."""

    def __init__(self) -> None:
        self.layers: list[RouteLayer] = []
        self.route_metadata: dict[str, Any] = {}

    def add(self, method: str, path: str, *handlers: Callable[..., Any]) -> Router:
        """Append a layer for ``method`` at ``path``.

        Raises:
            ValueError: If the method is unknown or a handler is not callable.
        """
        method = method.lower()
        if method not in HTTP_METHODS:
            raise ValueError(f"Unsupported HTTP method: {method!r}")
        for handler in handlers:
            if not callable(handler):
                raise ValueError(f"Route handler for {method.upper()} {path} must be callable")
        if not path.startswith("/"):
            path = "/" + path
        self.layers.append(RouteLayer(method=method, path=path, stack=list(handlers)))
        return self

    def route(self, method: str, path: str = "/", *handlers: Callable[..., Any]) -> Any:
        """Register handlers directly, or return a decorator when none are given."""
        if handlers:
            return self.add(method, path, *handlers)

        def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
            self.add(method, path, func)
            return func

        return decorator

    def get(self, path: str = "/", *handlers: Callable[..., Any]) -> Any:
        return self.route("get", path, *handlers)

    def post(self, path: str = "/", *handlers: Callable[..., Any]) -> Any:
        return self.route("post", path, *handlers)

    def put(self, path: str = "/", *handlers: Callable[..., Any]) -> Any:
        return self.route("put", path, *handlers)

    def patch(self, path: str = "/", *handlers: Callable[..., Any]) -> Any:
        return self.route("patch", path, *handlers)

    def delete(self, path: str = "/", *handlers: Callable[..., Any]) -> Any:
        return self.route("delete", path, *handlers)

    def head(self, path: str = "/", *handlers: Callable[..., Any]) -> Any:
        return self.route("head", path, *handlers)

    def options(self, path: str = "/", *handlers: Callable[..., Any]) -> Any:
        return self.route("options", path, *handlers)

    def all(self, path: str = "/", *handlers: Callable[..., Any]) -> Any:
        return self.route("all", path, *handlers)

    def copy(self) -> Router:
        """Return a shallow copy whose layers and handler stacks can be changed independently."""
        clone = copy.copy(self)
        clone.layers = [replace(layer, stack=list(layer.stack)) for layer in self.layers]
        clone.route_metadata = dict(self.route_metadata)
        return clone

    def __len__(self) -> int:
        return len(self.layers)

    def __repr__(self) -> str:
        layers = ", ".join(f"{layer.method.upper()} {layer.path}" for layer in self.layers)
        return f"Router([{layers}])"
