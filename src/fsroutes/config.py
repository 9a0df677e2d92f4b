"""Global registration configuration: defaults, resolution, and YAML loading."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable

import yaml

from fsroutes.errors import ConfigError, ConfigNotFoundError

if TYPE_CHECKING:
    from fsroutes.registry.types import RouteSchema

logger = logging.getLogger(__name__)

__all__ = [
    "DEFAULT_BATCH_SIZE",
    "DEFAULT_ENVIRONMENT",
    "DEFAULT_INDEX_FILE_NAMES",
    "DEFAULT_ROOT_DIRECTORY",
    "ENVIRONMENT_VARIABLE",
    "OUTPUT_FORMATS",
    "RegistrationConfig",
    "current_environment",
    "load_config",
    "resolve_global_config",
]

DEFAULT_ROOT_DIRECTORY = "routes"
DEFAULT_INDEX_FILE_NAMES: tuple[str, ...] = ("index.py",)
DEFAULT_EXTENSIONS: tuple[str, ...] = (".py",)
DEFAULT_BATCH_SIZE = 100
DEFAULT_ENVIRONMENT = "development"
ENVIRONMENT_VARIABLE = "FSROUTES_ENV"
OUTPUT_FORMATS = frozenset({"json", "yaml"})


def _identity(schema: RouteSchema) -> RouteSchema:
    return schema


def current_environment() -> str:
    """Read the runtime environment name from ``FSROUTES_ENV``."""
    return os.environ.get(ENVIRONMENT_VARIABLE) or DEFAULT_ENVIRONMENT


@dataclass
class RegistrationConfig:
    """Configuration for a single scan run.

    Attributes:
        root_directory: Directory containing the route files. Always absolute.
        app_mount: Path prefix applied to every derived route.
        index_file_names: Basenames treated as directory-index files.
        environment_routes: Environment name to directories only registered
            in that environment. Relative entries resolve against the root.
        output_target: Directory receiving the tree/registry dumps, or None.
        output_format: ``"json"`` or ``"yaml"``.
        redact_paths: Replace file paths in dumps with a redaction token.
        strict: Raise on the first failing file instead of recording it.
        before_registration_hook: Called with each built schema before the
            skip and environment checks. Must return a RouteSchema.
        layer_intercept_hook: Called as ``hook(layer, handler, index, total)``
            for every handler of every layer; a callable return value
            replaces the handler.
        custom_middleware: Called as ``custom_middleware(schema, router)`` with a
            copy of the schema; its return value is bound instead of the
            router.
        route_metadata: Global metadata merged under each route's metadata.
        batch_size: Maximum number of route files loaded concurrently.
        extensions: File suffixes recognized as route files.
    """

    root_directory: Path = field(default_factory=lambda: Path(os.path.abspath(DEFAULT_ROOT_DIRECTORY)))
    app_mount: str = ""
    index_file_names: tuple[str, ...] = DEFAULT_INDEX_FILE_NAMES
    environment_routes: dict[str, tuple[str, ...]] = field(default_factory=dict)
    output_target: str | None = None
    output_format: str = "json"
    redact_paths: bool = False
    strict: bool = False
    before_registration_hook: Callable[[RouteSchema], Any] = _identity
    layer_intercept_hook: Callable[..., Any] | None = None
    custom_middleware: Callable[..., Any] | None = None
    route_metadata: dict[str, Any] = field(default_factory=dict)
    batch_size: int = DEFAULT_BATCH_SIZE
    extensions: tuple[str, ...] = DEFAULT_EXTENSIONS

    def __post_init__(self) -> None:
        root = Path(self.root_directory)
        if not root.is_absolute():
            root = Path(os.path.abspath(root))
        self.root_directory = root


# ----- Resolution -----


def resolve_global_config(raw: Any = None) -> RegistrationConfig:
    """Merge user-supplied configuration over the defaults.

    Never raises: fields that are absent or fail their type check fall back
    to the documented default.
    """
    if isinstance(raw, RegistrationConfig):
        raw = {f.name: getattr(raw, f.name) for f in fields(raw)}
    if not isinstance(raw, Mapping):
        return RegistrationConfig()

    defaults = RegistrationConfig()
    config = RegistrationConfig(
        root_directory=_resolve_root(raw.get("root_directory"), defaults.root_directory),
        app_mount=_resolve_app_mount(raw.get("app_mount")),
        index_file_names=_resolve_str_tuple(raw.get("index_file_names")) or defaults.index_file_names,
        environment_routes=_resolve_environment_routes(raw.get("environment_routes")),
        output_target=_resolve_output_target(raw.get("output_target")),
        output_format=_resolve_output_format(raw.get("output_format")),
        redact_paths=_bool_or(raw.get("redact_paths"), defaults.redact_paths),
        strict=_bool_or(raw.get("strict"), defaults.strict),
        before_registration_hook=(
            raw["before_registration_hook"]
            if callable(raw.get("before_registration_hook"))
            else defaults.before_registration_hook
        ),
        layer_intercept_hook=raw.get("layer_intercept_hook") if callable(raw.get("layer_intercept_hook")) else None,
        custom_middleware=raw.get("custom_middleware") if callable(raw.get("custom_middleware")) else None,
        route_metadata=_resolve_metadata(raw.get("route_metadata")),
        batch_size=_resolve_batch_size(raw.get("batch_size")),
        extensions=_resolve_extensions(raw.get("extensions")),
    )
    return config


def _bool_or(value: Any, default: bool) -> bool:
    return value if isinstance(value, bool) else default


def _fspath_or_none(value: Any) -> str | None:
    """Return ``value`` as a non-empty str path, or None."""
    if isinstance(value, os.PathLike):
        value = os.fspath(value)
    if isinstance(value, str) and value:
        return value
    return None


def _resolve_root(value: Any, default: Path) -> Path:
    path = _fspath_or_none(value)
    if path is None:
        return default
    return Path(os.path.abspath(path))


def _resolve_app_mount(value: Any) -> str:
    if isinstance(value, str):
        return value.strip()
    return ""


def _resolve_str_tuple(value: Any) -> tuple[str, ...]:
    """Promote a string to a 1-tuple and keep only the string members of a sequence."""
    if isinstance(value, str):
        return (value,) if value else ()
    if isinstance(value, (list, tuple, set, frozenset)):
        items = [item for item in value if isinstance(item, str) and item]
        if isinstance(value, (set, frozenset)):
            items.sort()
        return tuple(dict.fromkeys(items))
    return ()


def _resolve_environment_routes(value: Any) -> dict[str, tuple[str, ...]]:
    if not isinstance(value, Mapping):
        return {}
    result: dict[str, tuple[str, ...]] = {}
    for env_name, directories in value.items():
        if not isinstance(env_name, str):
            continue
        if isinstance(directories, os.PathLike):
            directories = _fspath_or_none(directories)
        elif isinstance(directories, (list, tuple)):
            directories = [_fspath_or_none(d) for d in directories]
        resolved = _resolve_str_tuple(directories)
        if resolved:
            result[env_name] = resolved
        else:
            logger.debug("Ignoring environment_routes entry '%s' without directories", env_name)
    return result


def _resolve_output_target(value: Any) -> str | None:
    return _fspath_or_none(value)


def _resolve_output_format(value: Any) -> str:
    if isinstance(value, str) and value in OUTPUT_FORMATS:
        return value
    return "json"


def _resolve_metadata(value: Any) -> dict[str, Any]:
    if not isinstance(value, Mapping):
        return {}
    return {key: item for key, item in value.items() if isinstance(key, str)}


def _resolve_batch_size(value: Any) -> int:
    if isinstance(value, int) and not isinstance(value, bool) and value > 0:
        return value
    return DEFAULT_BATCH_SIZE


def _resolve_extensions(value: Any) -> tuple[str, ...]:
    extensions = _resolve_str_tuple(value)
    if not extensions:
        return DEFAULT_EXTENSIONS
    return tuple(ext if ext.startswith(".") else f".{ext}" for ext in extensions)


# ----- YAML loading -----


def load_config(config_path: str | os.PathLike[str]) -> RegistrationConfig:
    """Load a YAML configuration file and resolve it.

    The mapping may sit at the top level or under an ``fsroutes`` key. A
    relative ``root_directory`` is resolved against the file's directory.

    Raises:
        ConfigNotFoundError: If the file does not exist.
        ConfigError: If the file is not valid YAML or not a mapping.
    """
    path = Path(config_path)
    if not path.is_file():
        raise ConfigNotFoundError(config_path=str(path))

    content = path.read_text(encoding="utf-8")
    try:
        parsed = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigError(message=f"Invalid YAML in config file: {path}") from e

    if parsed is None:
        parsed = {}
    if not isinstance(parsed, dict):
        raise ConfigError(message=f"Config file must be a YAML mapping: {path}")

    section = parsed.get("fsroutes", parsed)
    if not isinstance(section, dict):
        raise ConfigError(message=f"The 'fsroutes' section must be a mapping: {path}")

    data = dict(section)
    root = data.get("root_directory")
    if isinstance(root, str) and root and not os.path.isabs(root):
        data["root_directory"] = str(path.resolve().parent / root)
    return resolve_global_config(data)
