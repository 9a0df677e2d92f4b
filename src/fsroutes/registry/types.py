"""Registry types: TreeNode, RouteOptions, LayerInfo, RouteSchema."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, model_validator

__all__ = [
    "NodeKind",
    "RouteStatus",
    "TreeNode",
    "RouteOptions",
    "LayerInfo",
    "RouteSchema",
]


class NodeKind(str, Enum):
    FILE = "file"
    DIRECTORY = "directory"


class RouteStatus(str, Enum):
    REGISTERED = "registered"
    SKIPPED = "skipped"
    ERROR = "error"


class TreeNode(BaseModel):
    """One file or directory discovered by the scanner."""

    absolute_path: str
    name: str
    kind: NodeKind
    children: list[TreeNode] | None = None

    @model_validator(mode="after")
    def _files_have_no_children(self) -> TreeNode:
        if self.kind is NodeKind.FILE and self.children is not None:
            raise ValueError("A file node cannot have children")
        if self.kind is NodeKind.DIRECTORY and self.children is None:
            self.children = []
        return self

    @property
    def is_file(self) -> bool:
        return self.kind is NodeKind.FILE


class RouteOptions(BaseModel):
    """Normalized per-file options declared through ``route_options``.

    Attributes:
        environments: Environments the route registers in. ``None`` means
            unset, which defers to ``environment_routes``. ``"*"`` matches all.
        is_index: ``None`` defers to ``index_file_names`` matching.
        skip: Bypass registration while still producing a schema.
        param_constraints: Parameter name to pattern source.
        metadata: Free-form bag forwarded to the bound router.
    """

    environments: tuple[str, ...] | None = None
    is_index: bool | None = None
    skip: bool = False
    param_constraints: dict[str, str] = Field(default_factory=dict)
    metadata: dict[str, Any] = Field(default_factory=dict)


class LayerInfo(BaseModel):
    """One HTTP-method sub-route within a route file."""

    method: str
    middleware_count: int = Field(default=0, ge=0)
    extended_path: str = "/"
    complete_path: str


class RouteSchema(BaseModel):
    """The registration record produced for a single route file."""

    source_path: str
    base_path: str | None = None
    layers: list[LayerInfo] = Field(default_factory=list)
    resolved_options: RouteOptions = Field(default_factory=RouteOptions)
    status: RouteStatus | None = None
    error: str | None = None
    message: str | None = None


TreeNode.model_rebuild()
