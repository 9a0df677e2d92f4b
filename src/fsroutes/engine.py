"""RouteEngine: scan a route directory, build schemas, and bind routes."""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path
from typing import Any

from fsroutes.binding import RouteBinder
from fsroutes.config import RegistrationConfig, current_environment, resolve_global_config
from fsroutes.errors import ConfigNotFoundError
from fsroutes.output import REGISTRY_FILENAME, TREE_NODE_FILENAME, OutputWriter
from fsroutes.registry.builder import SchemaBuilder
from fsroutes.registry.loader import create_loader
from fsroutes.registry.registry import RouteRegistry
from fsroutes.registry.scanner import flatten_tree, scan
from fsroutes.registry.types import RouteSchema, RouteStatus, TreeNode

logger = logging.getLogger(__name__)

__all__ = ["RouteEngine", "register_routes"]


class RouteEngine:
    """Registers every route file under a directory.

    Usage::

        table = RouteTable()
        engine = RouteEngine(table)
        engine.set_options({"root_directory": "routes", "app_mount": "/api"})
        registry = await engine.run()
    """

    def __init__(
        self,
        binder: RouteBinder | None = None,
        loader: str = "file",
        *,
        environment: str | None = None,
        package: str | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            binder: Receives ``bind(base_path, router)`` for registered routes.
            loader: ``"file"`` or ``"package"``; see ``create_loader``.
            environment: Current environment. Defaults to ``FSROUTES_ENV``,
                then ``"development"``.
            package: Dotted package name for the ``"package"`` loader.

        Raises:
            ConfigError: If ``loader`` is not a known loader kind.
        """
        self._binder = binder
        self._loader_kind = loader
        self._package = package
        self._environment = environment or current_environment()
        self._registry = RouteRegistry()
        self._tree: TreeNode | None = None
        self._options = RegistrationConfig()
        self._loader = create_loader(loader, self._options.root_directory, package)

    @property
    def options(self) -> RegistrationConfig:
        return self._options

    @property
    def registry(self) -> list[RouteSchema]:
        return self._registry.all()

    @property
    def tree(self) -> TreeNode | None:
        """The tree scanned by the most recent run."""
        return self._tree

    @property
    def absolute_directory(self) -> Path:
        return self._options.root_directory

    @property
    def environment(self) -> str:
        return self._environment

    def set_options(self, options: Any = None, **overrides: Any) -> RegistrationConfig:
        """Resolve and apply registration options.

        Raises:
            ConfigNotFoundError: In strict mode, if the root directory is missing.
        """
        raw = dict(options) if isinstance(options, dict) else options
        if overrides:
            if isinstance(raw, RegistrationConfig):
                raw = {name: getattr(raw, name) for name in raw.__dataclass_fields__}
            raw = {**(raw or {}), **overrides}
        config = resolve_global_config(raw)

        if config.strict and not config.root_directory.is_dir():
            raise ConfigNotFoundError(config_path=str(config.root_directory))

        self._options = config
        self._loader = create_loader(self._loader_kind, config.root_directory, self._package)
        return config

    def resolve_file_path(self, file_path: str | os.PathLike[str]) -> str:
        """Resolve ``file_path`` against the root directory unless absolute."""
        file_path = os.fspath(file_path)
        if os.path.isabs(file_path):
            return file_path
        return os.path.abspath(os.path.join(str(self._options.root_directory), file_path))

    def clear(self) -> None:
        self._registry.clear()

    def _builder(self) -> SchemaBuilder:
        return SchemaBuilder(self._options, self._environment, self._binder)

    async def _load(self, node: TreeNode) -> Any:
        """Load a route file, returning a raised exception as the result."""
        try:
            return await self._loader.load(Path(node.absolute_path))
        except Exception as exc:
            return exc

    async def register_route(self, node: TreeNode) -> RouteSchema:
        """Load, build, and record the schema for a single file node."""
        schema = self._builder().build(node, await self._load(node))
        self._registry.append(schema)
        return schema

    async def run(self) -> list[RouteSchema]:
        """Scan the root directory and register every route file.

        Files are loaded concurrently in chunks of ``batch_size``. Schemas are
        then built and bound one file at a time in discovery order.

        Raises:
            RouteError: In strict mode, for the first failing route file.
        """
        self.clear()
        config = self._options
        builder = self._builder()

        tree = await scan(config.root_directory, extensions=config.extensions)
        self._tree = tree
        files = flatten_tree(tree)

        for start in range(0, len(files), config.batch_size):
            chunk = files[start:start + config.batch_size]
            results = await asyncio.gather(*(self._load(node) for node in chunk))
            for node, result in zip(chunk, results):
                self._registry.append(builder.build(node, result))

        registry = self._registry.all()
        registered = sum(1 for schema in registry if schema.status is RouteStatus.REGISTERED)
        if registered == 0 and files:
            logger.warning("No routes registered from %d discovered files", len(files))
        elif not files:
            logger.warning("No route files discovered in %s", config.root_directory)
        else:
            logger.info("Registered %d of %d route files for '%s'", registered, len(files), self._environment)

        self._save(tree, registry)
        return registry

    def run_sync(self) -> list[RouteSchema]:
        """Blocking wrapper around :meth:`run`."""
        return asyncio.run(self.run())

    def _save(self, tree: TreeNode, registry: list[RouteSchema]) -> None:
        config = self._options
        if config.output_target is None or not registry:
            return
        writer = OutputWriter(
            os.path.abspath(config.output_target),
            format=config.output_format,
            redact=config.redact_paths,
        )
        writer.save_all([(TREE_NODE_FILENAME, tree), (REGISTRY_FILENAME, registry)])


async def register_routes(binder: RouteBinder | None = None, **options: Any) -> list[RouteSchema]:
    """Register every route under ``root_directory`` in one call.

    Keyword arguments are registration options, plus the engine's
    ``loader``, ``environment`` and ``package``.
    """
    engine = RouteEngine(
        binder,
        options.pop("loader", "file"),
        environment=options.pop("environment", None),
        package=options.pop("package", None),
    )
    engine.set_options(options)
    return await engine.run()
