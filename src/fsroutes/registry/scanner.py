"""Directory scanner producing the route file tree."""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path

from fsroutes.registry.types import NodeKind, TreeNode

logger = logging.getLogger(__name__)

__all__ = ["flatten_tree", "scan", "scan_tree"]

_SKIP_DIR_NAMES = {"__pycache__", "node_modules"}
_SKIP_FILE_SUFFIXES = {".pyc", ".pyi"}


def scan_tree(
    root: str | os.PathLike[str],
    extensions: tuple[str, ...] = (".py",),
    follow_symlinks: bool = False,
) -> TreeNode:
    """Recursively scan ``root`` into a TreeNode.

    Entries are visited in name order. Directories are always included, even
    when empty; files only when their suffix is in ``extensions``. Names
    starting with ``.`` or ``_`` are skipped. A missing root yields an empty
    directory node.
    """
    root_path = os.path.abspath(os.fspath(root))
    visited_real_paths: set[str] = {os.path.realpath(root_path)}

    def _scan_dir(dir_path: str) -> TreeNode:
        node = TreeNode(absolute_path=dir_path, name=os.path.basename(dir_path), kind=NodeKind.DIRECTORY)
        try:
            entries = sorted(os.scandir(dir_path), key=lambda e: e.name)
        except FileNotFoundError:
            logger.info("Route directory %s does not exist, nothing to scan", dir_path)
            return node
        except PermissionError as e:
            logger.error("Permission denied scanning %s: %s", dir_path, e)
            return node
        except OSError as e:
            logger.error("OS error scanning %s: %s", dir_path, e)
            return node

        for entry in entries:
            name = entry.name
            if name.startswith(".") or name.startswith("_"):
                continue
            if name in _SKIP_DIR_NAMES:
                continue

            try:
                is_dir = entry.is_dir(follow_symlinks=follow_symlinks)
                is_file = entry.is_file(follow_symlinks=follow_symlinks)
                is_symlink = entry.is_symlink()
            except OSError as e:
                logger.error("OS error accessing %s: %s", entry.path, e)
                continue

            if is_dir:
                if is_symlink:
                    real = os.path.realpath(entry.path)
                    if real in visited_real_paths:
                        logger.warning("Symlink cycle detected at %s -> %s, skipping", entry.path, real)
                        continue
                    visited_real_paths.add(real)
                node.children.append(_scan_dir(entry.path))
            elif is_file:
                suffix = Path(name).suffix
                if suffix in _SKIP_FILE_SUFFIXES or suffix not in extensions:
                    continue
                node.children.append(TreeNode(absolute_path=entry.path, name=name, kind=NodeKind.FILE))

        return node

    return _scan_dir(root_path)


async def scan(
    root: str | os.PathLike[str],
    extensions: tuple[str, ...] = (".py",),
    follow_symlinks: bool = False,
) -> TreeNode:
    """Asynchronous wrapper around :func:`scan_tree`."""
    return await asyncio.to_thread(scan_tree, root, extensions, follow_symlinks)


def flatten_tree(node: TreeNode) -> list[TreeNode]:
    """Return the file nodes of ``node`` in depth-first order."""
    if node.is_file:
        return [node]
    files: list[TreeNode] = []
    for child in node.children or []:
        files.extend(flatten_tree(child))
    return files
