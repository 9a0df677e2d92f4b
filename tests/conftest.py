"""Shared fixtures: temporary route trees and binders."""

from __future__ import annotations

from pathlib import Path

import pytest
from route_templates import CONSTRAINED_TEMPLATE, MULTI_LAYER_TEMPLATE, write_route

from fsroutes import RouteTable


@pytest.fixture(autouse=True)
def _clear_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("FSROUTES_ENV", raising=False)


@pytest.fixture
def routes_root(tmp_path: Path) -> Path:
    """An empty ``routes`` directory."""
    root = tmp_path / "routes"
    root.mkdir()
    return root


@pytest.fixture
def routes_tree(routes_root: Path) -> Path:
    """A small route tree.

    Discovery order: about.py, index.py, users/[id].py, users/index.py.
    """
    write_route(routes_root, "index.py")
    write_route(routes_root, "about.py")
    write_route(routes_root, "users/index.py", MULTI_LAYER_TEMPLATE)
    write_route(routes_root, "users/[id].py", CONSTRAINED_TEMPLATE)
    return routes_root


@pytest.fixture
def table() -> RouteTable:
    return RouteTable()
