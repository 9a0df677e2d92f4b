"""fsroutes - File-system based route registration."""

from __future__ import annotations

# Core
from fsroutes.engine import RouteEngine, register_routes
from fsroutes.router import HTTP_METHODS, RouteLayer, Router

# Registry types
from fsroutes.registry import RouteRegistry
from fsroutes.registry.types import LayerInfo, NodeKind, RouteOptions, RouteSchema, RouteStatus, TreeNode

# Config
from fsroutes.config import RegistrationConfig, load_config, resolve_global_config
from fsroutes.options import WILDCARD_TOKEN, resolve_route_options

# Binding and output
from fsroutes.binding import RouteBinder, RouteTable
from fsroutes.output import REDACT_TOKEN, OutputWriter, redact_paths

# Errors
from fsroutes.errors import (
    ConfigError,
    ConfigNotFoundError,
    EmptyHandlerError,
    ErrorCodes,
    HandlerExportError,
    HookError,
    RouteError,
    RouteLoadError,
    RouteRegistrationError,
)

__version__ = "0.1.0"

__all__ = [
    # Core
    "RouteEngine",
    "register_routes",
    "Router",
    "RouteLayer",
    "HTTP_METHODS",
    # Registry types
    "RouteRegistry",
    "TreeNode",
    "NodeKind",
    "RouteOptions",
    "LayerInfo",
    "RouteSchema",
    "RouteStatus",
    # Config
    "RegistrationConfig",
    "load_config",
    "resolve_global_config",
    "resolve_route_options",
    "WILDCARD_TOKEN",
    # Binding and output
    "RouteBinder",
    "RouteTable",
    "OutputWriter",
    "redact_paths",
    "REDACT_TOKEN",
    # Errors
    "ErrorCodes",
    "RouteError",
    "ConfigError",
    "ConfigNotFoundError",
    "RouteLoadError",
    "HandlerExportError",
    "EmptyHandlerError",
    "HookError",
    "RouteRegistrationError",
]
