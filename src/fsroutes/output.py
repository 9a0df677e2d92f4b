"""Tree and registry dumps, with optional path redaction."""

from __future__ import annotations

import copy
import json
import logging
import os
from pathlib import Path
from typing import Any, Iterable

import yaml
from pydantic import BaseModel

logger = logging.getLogger(__name__)

__all__ = [
    "REDACT_TOKEN",
    "REDACTED_KEYS",
    "REGISTRY_FILENAME",
    "TREE_NODE_FILENAME",
    "OutputWriter",
    "redact_paths",
    "serialize",
    "to_jsonable",
]

REDACT_TOKEN: str = "..."
REDACTED_KEYS = frozenset({"absolute_path", "source_path"})
TREE_NODE_FILENAME = "tree-node"
REGISTRY_FILENAME = "route-registry"


def to_jsonable(data: Any) -> Any:
    """Dump pydantic models (or lists of them) to plain JSON-compatible data."""
    if isinstance(data, BaseModel):
        return data.model_dump(mode="json")
    if isinstance(data, (list, tuple)):
        return [to_jsonable(item) for item in data]
    return data


def redact_paths(data: Any) -> Any:
    """Return a deep copy of ``data`` with every file path field redacted.

    Any ``absolute_path`` or ``source_path`` key, at any depth, is replaced
    with ``REDACT_TOKEN``. The input is not modified.
    """
    redacted = copy.deepcopy(to_jsonable(data))
    _redact_in_place(redacted)
    return redacted


def _redact_in_place(data: Any) -> None:
    if isinstance(data, dict):
        for key, value in data.items():
            if key in REDACTED_KEYS:
                data[key] = REDACT_TOKEN
            else:
                _redact_in_place(value)
    elif isinstance(data, list):
        for item in data:
            _redact_in_place(item)


def serialize(data: Any, format: str = "json") -> str:
    """Serialize data to a JSON or YAML string."""
    if format == "yaml":
        return yaml.dump(data, default_flow_style=False, sort_keys=False)
    return json.dumps(data, indent=2, default=str)


class OutputWriter:
    """Writes JSON or YAML dumps into a target directory.

    Args:
        directory: Target directory, created on first use.
        format: ``"json"`` or ``"yaml"``.
        redact: Redact file paths before writing.
    """

    def __init__(self, directory: str | os.PathLike[str], format: str = "json", redact: bool = False) -> None:
        self._directory = Path(directory)
        self._format = format
        self._redact = redact

    @property
    def directory(self) -> Path:
        return self._directory

    def path_for(self, file_name: str) -> Path:
        return self._directory / f"{file_name}.{self._format}"

    def save(self, file_name: str, data: Any) -> Path | None:
        """Write ``data`` to ``<directory>/<file_name>.<format>``.

        Write failures are logged and reported by returning None.
        """
        payload = redact_paths(data) if self._redact else to_jsonable(data)
        target = self.path_for(file_name)
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            target.write_text(serialize(payload, self._format), encoding="utf-8")
        except OSError as e:
            logger.error("Failed to write %s: %s", target, e)
            return None
        logger.info("Wrote %s", target)
        return target

    def save_all(self, items: Iterable[tuple[str, Any]]) -> list[Path]:
        return [path for name, data in items if (path := self.save(name, data)) is not None]
