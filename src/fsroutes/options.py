"""Per-file route option resolution."""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

from fsroutes.registry.types import RouteOptions

__all__ = ["WILDCARD_TOKEN", "resolve_route_options"]

WILDCARD_TOKEN = "*"


def resolve_route_options(raw: Any = None) -> RouteOptions:
    """Normalize the ``route_options`` a route file declares.

    Total: malformed or unknown fields are replaced by defaults, never raised.
    """
    if isinstance(raw, RouteOptions):
        raw = raw.model_dump()
    if not isinstance(raw, Mapping):
        return RouteOptions()

    is_index = raw.get("is_index")
    skip = raw.get("skip")
    metadata = raw.get("metadata")

    return RouteOptions(
        environments=_resolve_environments(raw.get("environments")),
        is_index=is_index if isinstance(is_index, bool) else None,
        skip=skip if isinstance(skip, bool) else False,
        param_constraints=_resolve_param_constraints(raw.get("param_constraints")),
        metadata=_resolve_metadata(metadata),
    )


def _resolve_environments(value: Any) -> tuple[str, ...] | None:
    # An empty or malformed value means "unset", which is not the wildcard.
    if isinstance(value, str):
        return (value,) if value else None
    if isinstance(value, (list, tuple, set, frozenset)):
        items = sorted(v for v in value if isinstance(v, str)) if isinstance(value, (set, frozenset)) else value
        envs = tuple(dict.fromkeys(v for v in items if isinstance(v, str) and v))
        return envs or None
    return None


def _resolve_param_constraints(value: Any) -> dict[str, str]:
    if not isinstance(value, Mapping):
        return {}
    constraints: dict[str, str] = {}
    for name, pattern in value.items():
        if not isinstance(name, str):
            continue
        if isinstance(pattern, str):
            constraints[name] = pattern
        elif isinstance(pattern, re.Pattern):
            constraints[name] = pattern.pattern if isinstance(pattern.pattern, str) else pattern.pattern.decode("utf-8", "replace")
    return constraints


def _resolve_metadata(value: Any) -> dict[str, Any]:
    if not isinstance(value, Mapping):
        return {}
    return {key: item for key, item in value.items() if isinstance(key, str)}
