"""Route schema derivation: scanning, loading, path normalization, and gating.

Usage::

    from fsroutes.registry import scan_tree, flatten_tree, normalize_path

    tree = scan_tree("./routes")
    files = flatten_tree(tree)
"""

from __future__ import annotations

from fsroutes.registry.builder import SchemaBuilder, deep_merge
from fsroutes.registry.environment import should_register
from fsroutes.registry.loader import EmptyHandler, FileLoader, PackageLoader, RouteHandler, create_loader
from fsroutes.registry.paths import join_extended_path, normalize_path, rewrite_slugs, strip_extension
from fsroutes.registry.registry import RouteRegistry
from fsroutes.registry.scanner import flatten_tree, scan, scan_tree
from fsroutes.registry.types import LayerInfo, NodeKind, RouteOptions, RouteSchema, RouteStatus, TreeNode

__all__ = [
    "EmptyHandler",
    "FileLoader",
    "LayerInfo",
    "NodeKind",
    "PackageLoader",
    "RouteHandler",
    "RouteOptions",
    "RouteRegistry",
    "RouteSchema",
    "RouteStatus",
    "SchemaBuilder",
    "TreeNode",
    "create_loader",
    "deep_merge",
    "flatten_tree",
    "join_extended_path",
    "normalize_path",
    "rewrite_slugs",
    "scan",
    "scan_tree",
    "should_register",
    "strip_extension",
]
