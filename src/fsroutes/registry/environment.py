"""Environment gate: decide whether a route registers in the current environment."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

from fsroutes.options import WILDCARD_TOKEN

if TYPE_CHECKING:
    from fsroutes.config import RegistrationConfig
    from fsroutes.registry.types import RouteOptions

__all__ = ["resolve_directory", "should_register"]


def resolve_directory(directory: str, config: RegistrationConfig) -> str:
    """Resolve an ``environment_routes`` directory against the root directory."""
    if os.path.isabs(directory):
        return os.path.normpath(directory)
    return os.path.normpath(os.path.join(str(config.root_directory), directory))


def _is_within(source_path: str, directory: str) -> bool:
    if source_path == directory:
        return True
    prefix = directory if directory.endswith(os.sep) else directory + os.sep
    return source_path.startswith(prefix)


def should_register(
    options: RouteOptions,
    source_path: str,
    config: RegistrationConfig,
    current_env: str,
) -> bool:
    """Apply the environment precedence rules to a single route.

    1. No per-file environments and no ``environment_routes``: register.
    2. Per-file environments present: register iff they contain the
       wildcard or ``current_env``. This always wins over the directory map.
    3. Otherwise match ``source_path`` against every directory in
       ``environment_routes``. A match for ``current_env`` registers
       immediately; matches for other environments only skip. No match at
       all registers.
    """
    if options.environments is None and not config.environment_routes:
        return True

    if options.environments is not None:
        return WILDCARD_TOKEN in options.environments or current_env in options.environments

    verdict: bool | None = None
    for env_name, directories in config.environment_routes.items():
        for directory in directories:
            if not _is_within(source_path, resolve_directory(directory, config)):
                continue
            if env_name == current_env:
                return True
            verdict = False

    return True if verdict is None else verdict
