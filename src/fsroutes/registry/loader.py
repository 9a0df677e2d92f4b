"""Route file loading: import a route file and extract its Router."""

from __future__ import annotations

import asyncio
import importlib
import importlib.util
import inspect
import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from types import ModuleType
from typing import Any

from fsroutes.errors import ConfigError, HandlerExportError, RouteLoadError
from fsroutes.router import RouteLayer, Router

logger = logging.getLogger(__name__)

__all__ = [
    "LOADER_KINDS",
    "EmptyHandler",
    "FileLoader",
    "Loader",
    "PackageLoader",
    "RouteHandler",
    "create_loader",
    "extract_handler",
]

LOADER_KINDS = frozenset({"file", "package"})

# Module-level functions with these names become layers at "/" when a route
# file does not export a ``router``.
_FUNCTION_METHODS: tuple[str, ...] = ("get", "post", "put", "patch", "delete")

_ROUTER_ATTRIBUTE = "router"
_OPTIONS_ATTRIBUTE = "route_options"

_INVALID_NAME_CHARS = re.compile(r"[^0-9a-zA-Z_]")


@dataclass
class RouteHandler:
    """A loaded route file: its Router plus the raw declared options."""

    router: Router
    options: Any
    source: Path

    @property
    def layers(self) -> list[RouteLayer]:
        return self.router.layers


@dataclass(frozen=True)
class EmptyHandler:
    """Signals that a route file provided no usable handler."""

    reason: str


def extract_handler(module: ModuleType, file_path: Path) -> RouteHandler | EmptyHandler:
    """Pull the Router and ``route_options`` out of a loaded module.

    Raises:
        HandlerExportError: If ``router`` is exported but is not a Router.
    """
    options = getattr(module, _OPTIONS_ATTRIBUTE, None)
    router = getattr(module, _ROUTER_ATTRIBUTE, None)

    if router is None:
        router = _router_from_functions(module)
        if router is None:
            return EmptyHandler(reason="Most likely forgot to export a `router`.")
    elif not isinstance(router, Router):
        raise HandlerExportError(file_path=str(file_path), found=type(router).__name__)

    if not router.layers:
        return EmptyHandler(reason="The exported router declares no layers.")

    return RouteHandler(router=router, options=options, source=file_path)


def _router_from_functions(module: ModuleType) -> Router | None:
    functions = [
        (name, func)
        for name in _FUNCTION_METHODS
        if (func := getattr(module, name, None)) is not None and inspect.isfunction(func)
    ]
    if not functions:
        return None
    router = Router()
    for name, func in functions:
        router.add(name, "/", func)
    return router


class Loader:
    """Base loader. Subclasses implement ``import_module``."""

    kind = ""

    def __init__(self, root: Path) -> None:
        self._root = Path(root)

    def import_module(self, file_path: Path) -> ModuleType:
        raise NotImplementedError

    def load_sync(self, file_path: Path) -> RouteHandler | EmptyHandler:
        """Import ``file_path`` and return its handler or the empty signal."""
        module = self.import_module(Path(file_path))
        return extract_handler(module, Path(file_path))

    async def load(self, file_path: Path) -> RouteHandler | EmptyHandler:
        """Load a route file without blocking the event loop."""
        return await asyncio.to_thread(self.load_sync, file_path)

    def _relative_parts(self, file_path: Path) -> list[str]:
        try:
            relative = file_path.relative_to(self._root)
        except ValueError:
            relative = Path(file_path.name)
        return list(relative.with_suffix("").parts)


class FileLoader(Loader):
    """Imports each route file in isolation, without touching ``sys.path``."""

    kind = "file"

    def import_module(self, file_path: Path) -> ModuleType:
        parts = [_INVALID_NAME_CHARS.sub("_", part) for part in self._relative_parts(file_path)]
        module_name = "fsroutes_routes." + ".".join(parts)

        spec = importlib.util.spec_from_file_location(module_name, str(file_path))
        if spec is None or spec.loader is None:
            raise RouteLoadError(
                file_path=str(file_path),
                reason=f"Cannot create import spec for {file_path}",
            )

        module = importlib.util.module_from_spec(spec)
        try:
            spec.loader.exec_module(module)
        except Exception as exc:
            raise RouteLoadError(file_path=str(file_path), reason=f"Failed to import module: {exc}") from exc
        return module


class PackageLoader(Loader):
    """Imports route files through their dotted name inside an importable package.

    Route files may then use relative imports. The root directory must be
    the directory of ``package``.
    """

    kind = "package"

    def __init__(self, root: Path, package: str) -> None:
        super().__init__(root)
        self._package = package

    def import_module(self, file_path: Path) -> ModuleType:
        module_name = ".".join([self._package, *self._relative_parts(file_path)])
        try:
            return importlib.import_module(module_name)
        except Exception as exc:
            raise RouteLoadError(file_path=str(file_path), reason=f"Failed to import module: {exc}") from exc


def create_loader(kind: str, root: Path, package: str | None = None) -> Loader:
    """Build the loader variant for ``kind``.

    Raises:
        ConfigError: If ``kind`` is unknown or ``package`` is missing.
    """
    if kind == "file":
        return FileLoader(root)
    if kind == "package":
        if not package:
            package = os.path.basename(os.path.normpath(str(root)))
            logger.debug("No package given, importing routes as '%s'", package)
        return PackageLoader(root, package)
    raise ConfigError(message=f"Invalid loader '{kind}'. Must be one of: {', '.join(sorted(LOADER_KINDS))}")
