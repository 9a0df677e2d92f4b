"""URL path derivation: extension stripping, index collapsing, slug rewriting."""

from __future__ import annotations

import ntpath
import posixpath
import re
from collections.abc import Mapping
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from fsroutes.config import RegistrationConfig
    from fsroutes.registry.types import RouteOptions

__all__ = [
    "PARAMS_TOKEN",
    "SLUG_PATTERN",
    "ensure_leading_token",
    "join_extended_path",
    "normalize_path",
    "rewrite_slugs",
    "strip_extension",
]

PARAMS_TOKEN = ":"

# Parenthesized constraint groups are matched first so that brackets inside
# an already rewritten pattern such as ":id(user_[0-9]+)" are left alone.
SLUG_PATTERN = re.compile(r"(?P<group>\((?:[^()]|\([^()]*\))*\))|\[(?P<name>[^\[\]/\\]+?)\]")

_EXTENSION_PATTERN = re.compile(r"\.[^/\\.]+$")


def strip_extension(value: str) -> str:
    """Remove a trailing file extension: ``users/[id].py`` -> ``users/[id]``."""
    return _EXTENSION_PATTERN.sub("", value)


def ensure_leading_token(value: str, token: str) -> str:
    if not value.startswith(token):
        return f"{token}{value}"
    return value


def rewrite_slugs(path: str, constraints: Mapping[str, str] | None) -> str:
    """Rewrite ``[name]`` slugs into router parameters.

    ``/users/[id]`` -> ``/users/:id``, or ``/users/:id(pattern)`` when
    ``constraints`` holds a pattern for ``id``. Paths without bracket markers
    are returned unchanged, so rewriting an already rewritten path is a no-op.
    """
    if constraints is None:
        return path

    def _replace(match: re.Match[str]) -> str:
        name = match.group("name")
        if name is None:
            return match.group(0)
        token = f"{PARAMS_TOKEN}{name}"
        pattern = constraints.get(name)
        if pattern:
            token += f"({pattern})"
        return token

    return SLUG_PATTERN.sub(_replace, path)


def _split(path: str) -> tuple[str, str]:
    """Return ``(dirname, basename)`` for either separator style."""
    if "\\" in path:
        return ntpath.dirname(path), ntpath.basename(path)
    return posixpath.dirname(path), posixpath.basename(path)


def normalize_path(absolute_file_path: str, options: RouteOptions, config: RegistrationConfig) -> str:
    """Convert an absolute route file path into its base URL path.

    Steps run in a fixed order: strip the extension, collapse index routes,
    strip the root directory, normalize separators, prefix the app mount,
    drop a trailing slash, rewrite slugs, and ensure a leading slash.
    """
    route_path = strip_extension(absolute_file_path)
    mount = config.app_mount.strip("/\\")

    dirname, basename = _split(route_path)
    if options.is_index is None:
        for index_name in config.index_file_names:
            if basename == strip_extension(index_name):
                route_path = dirname
                break
    elif options.is_index:
        # An explicit index named after the mount keeps its segment so the
        # route does not collapse into the mount itself.
        if not mount or basename != mount:
            route_path = dirname

    root = str(config.root_directory)
    if route_path.startswith(root):
        route_path = route_path[len(root):]

    route_path = route_path.replace("\\", "/")

    if mount:
        route_path = "/" + mount + ensure_leading_token(route_path, "/") if route_path else "/" + mount

    if route_path.endswith("/"):
        route_path = route_path[:-1]

    route_path = rewrite_slugs(route_path, options.param_constraints)

    return ensure_leading_token(route_path, "/")


def join_extended_path(base_path: str, extended_path: str) -> str:
    """Append an in-file sub-path to a base path without doubling slashes."""
    if extended_path in ("", "/"):
        return base_path
    if base_path == "/":
        return ensure_leading_token(extended_path, "/")
    return base_path.rstrip("/") + ensure_leading_token(extended_path, "/")
