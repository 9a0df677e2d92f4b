"""Schema builder: turn a loaded route file into a RouteSchema."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import replace
from typing import TYPE_CHECKING, Any

from fsroutes.errors import EmptyHandlerError, HookError, RouteError, RouteRegistrationError
from fsroutes.options import resolve_route_options
from fsroutes.registry.environment import should_register
from fsroutes.registry.loader import EmptyHandler, RouteHandler
from fsroutes.registry.paths import join_extended_path, normalize_path
from fsroutes.registry.types import LayerInfo, RouteSchema, RouteStatus, TreeNode

if TYPE_CHECKING:
    from fsroutes.binding import RouteBinder
    from fsroutes.config import RegistrationConfig
    from fsroutes.router import RouteLayer

logger = logging.getLogger(__name__)

__all__ = ["SKIP_MESSAGE", "SchemaBuilder", "deep_merge"]

SKIP_MESSAGE = "Route was skipped by the `skip` route option"


def deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into a copy of ``base``."""
    merged: dict[str, Any] = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def _error_message(exc: BaseException) -> str:
    if isinstance(exc, RouteError):
        return exc.message
    return str(exc) or type(exc).__name__


class SchemaBuilder:
    """Builds, gates, and binds one RouteSchema per route file.

    Args:
        config: The resolved registration config.
        environment: The current runtime environment name.
        binder: Receives ``bind(base_path, router)`` for registered routes.
    """

    def __init__(
        self,
        config: RegistrationConfig,
        environment: str,
        binder: RouteBinder | None = None,
    ) -> None:
        self._config = config
        self._environment = environment
        self._binder = binder

    def build(self, node: TreeNode, result: RouteHandler | EmptyHandler | Exception) -> RouteSchema:
        """Produce the schema for ``node`` from the loader's result.

        Raises:
            RouteRegistrationError: In strict mode, for any failure.
        """
        source = node.absolute_path

        if isinstance(result, Exception):
            return self._fail(source, result)

        if isinstance(result, EmptyHandler):
            if self._config.strict:
                raise EmptyHandlerError(file_path=source, reason=result.reason)
            logger.warning("Route handler at %s is empty: %s", source, result.reason)
            return RouteSchema(
                source_path=source,
                status=RouteStatus.SKIPPED,
                error=result.reason,
                message="Route handler is empty",
            )

        # Hooks work on a copy so a cached module's router is never modified.
        handler = replace(result, router=result.router.copy())
        try:
            schema = self._create_schema(source, handler)
        except HookError as exc:
            return self._fail(source, exc)
        return self._register(schema, handler)

    # ----- Construction -----

    def _create_schema(self, source: str, handler: RouteHandler) -> RouteSchema:
        options = resolve_route_options(handler.options)
        base_path = normalize_path(source, options, self._config)

        layers: list[LayerInfo] = []
        for layer in handler.layers:
            extended_path = layer.path or "/"
            info = LayerInfo(
                method=(layer.method or "unknown").lower(),
                middleware_count=len(layer.stack),
                extended_path=extended_path,
                complete_path=join_extended_path(base_path, extended_path),
            )
            if self._config.layer_intercept_hook is not None:
                self._intercept(info, layer)
            layers.append(info)

        return RouteSchema(
            source_path=source,
            base_path=base_path,
            layers=layers,
            resolved_options=options,
        )

    def _intercept(self, info: LayerInfo, layer: RouteLayer) -> None:
        hook = self._config.layer_intercept_hook
        total = len(layer.stack)
        for index, handler in enumerate(layer.stack):
            try:
                replacement = hook(info.model_copy(), handler, index, total)
            except Exception as exc:
                raise HookError(hook="layer_intercept_hook", reason=f"raised: {exc}", cause=exc) from exc
            if callable(replacement):
                layer.stack[index] = replacement

    # ----- Registration -----

    def _register(self, schema: RouteSchema, handler: RouteHandler) -> RouteSchema:
        try:
            hooked = self._config.before_registration_hook(schema)
        except Exception as exc:
            error = HookError(hook="before_registration_hook", reason=f"raised: {exc}", cause=exc)
            return self._fail(schema.source_path, error, schema)

        if not isinstance(hooked, RouteSchema):
            error = HookError(hook="before_registration_hook", reason="returned an invalid value.")
            return self._fail(schema.source_path, error, schema)

        schema = hooked

        if schema.resolved_options.skip:
            schema.status = RouteStatus.SKIPPED
            schema.message = SKIP_MESSAGE
            logger.info("Skipped %s: skip option set", schema.source_path)
            return schema

        if not should_register(schema.resolved_options, schema.source_path, self._config, self._environment):
            schema.status = RouteStatus.SKIPPED
            schema.message = f"Route was skipped for {self._environment}"
            logger.info("Skipped %s for environment '%s'", schema.source_path, self._environment)
            return schema

        if schema.base_path is None:
            schema.layers = []
            error = HookError(hook="before_registration_hook", reason="removed the base path.")
            return self._fail(schema.source_path, error, schema)

        try:
            self._bind(schema, handler)
        except Exception as exc:
            return self._fail(schema.source_path, exc, schema)

        schema.status = RouteStatus.REGISTERED
        schema.message = f"Route was registered successfully for {self._environment}"
        logger.debug("Registered %s at %s", schema.source_path, schema.base_path)
        return schema

    def _bind(self, schema: RouteSchema, handler: RouteHandler) -> None:
        router = handler.router
        router.route_metadata = deep_merge(self._config.route_metadata, schema.resolved_options.metadata)
        bound: Any = router
        if self._config.custom_middleware is not None:
            bound = self._config.custom_middleware(schema.model_copy(deep=True), router)
        if self._binder is not None:
            self._binder.bind(schema.base_path, bound)

    def _fail(self, source: str, exc: Exception, schema: RouteSchema | None = None) -> RouteSchema:
        message = _error_message(exc)
        if self._config.strict:
            raise RouteRegistrationError(file_path=source, reason=message, cause=exc) from exc

        logger.error("Route %s failed: %s", source, message)
        if schema is None:
            schema = RouteSchema(source_path=source)
        schema.status = RouteStatus.ERROR
        schema.error = message
        return schema
