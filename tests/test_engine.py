"""Tests for RouteEngine and register_routes()."""

from __future__ import annotations

import json
import logging
import os
import re
from pathlib import Path

import pytest
import yaml
from route_templates import (
    BAD_EXPORT_TEMPLATE,
    EMPTY_TEMPLATE,
    RAISING_TEMPLATE,
    ROUTER_TEMPLATE,
    options_template,
    write_route,
)

from fsroutes import RouteEngine, RouteTable, register_routes
from fsroutes.errors import ConfigError, ConfigNotFoundError, EmptyHandlerError, RouteRegistrationError
from fsroutes.registry.types import NodeKind, RouteStatus, TreeNode

EXPECTED_PATHS = ["/about", "/", "/users/:id(user_[0-9]+)", "/users"]


def _engine(root: Path, table: RouteTable | None = None, environment: str | None = None, **options) -> RouteEngine:
    engine = RouteEngine(table, environment=environment)
    engine.set_options({"root_directory": root, **options})
    return engine


# === Construction and options ===


class TestRouteEngineSetup:
    def test_defaults(self) -> None:
        engine = RouteEngine()
        assert engine.environment == "development"
        assert engine.absolute_directory == Path(os.path.abspath("routes"))
        assert engine.registry == []
        assert engine.tree is None

    def test_environment_from_variable(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("FSROUTES_ENV", "staging")
        assert RouteEngine().environment == "staging"

    def test_explicit_environment_wins(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("FSROUTES_ENV", "staging")
        assert RouteEngine(environment="production").environment == "production"

    def test_invalid_loader(self) -> None:
        with pytest.raises(ConfigError):
            RouteEngine(loader="require")

    def test_set_options_keyword_overrides(self, routes_root: Path) -> None:
        engine = RouteEngine()
        config = engine.set_options({"root_directory": routes_root}, app_mount="/api")
        assert config.root_directory == routes_root
        assert engine.options.app_mount == "/api"

    def test_set_options_tolerates_garbage(self) -> None:
        engine = RouteEngine()
        assert engine.set_options("not a mapping").app_mount == ""

    def test_strict_missing_directory(self, tmp_path: Path) -> None:
        engine = RouteEngine()
        with pytest.raises(ConfigNotFoundError):
            engine.set_options({"root_directory": tmp_path / "missing", "strict": True})

    def test_resolve_file_path(self, routes_root: Path, tmp_path: Path) -> None:
        engine = _engine(routes_root)
        assert engine.resolve_file_path("users/index.py") == str(routes_root / "users" / "index.py")
        assert engine.resolve_file_path(tmp_path / "abs.py") == str(tmp_path / "abs.py")


# === run() ===


class TestRun:
    @pytest.mark.asyncio
    async def test_registers_in_discovery_order(self, routes_tree: Path, table: RouteTable) -> None:
        registry = await _engine(routes_tree, table).run()
        assert [schema.base_path for schema in registry] == EXPECTED_PATHS
        assert all(schema.status is RouteStatus.REGISTERED for schema in registry)
        assert table.paths == EXPECTED_PATHS

    @pytest.mark.asyncio
    async def test_layers_and_complete_paths(self, routes_tree: Path) -> None:
        registry = await _engine(routes_tree).run()
        users = registry[3]
        assert [(layer.method, layer.complete_path) for layer in users.layers] == [
            ("get", "/users"),
            ("put", "/users/avatar"),
            ("delete", "/users"),
        ]

    @pytest.mark.asyncio
    async def test_app_mount(self, routes_tree: Path) -> None:
        registry = await _engine(routes_tree, app_mount="/api").run()
        assert [schema.base_path for schema in registry] == [
            "/api/about",
            "/api",
            "/api/users/:id(user_[0-9]+)",
            "/api/users",
        ]

    @pytest.mark.asyncio
    async def test_small_batches_keep_order(self, routes_tree: Path) -> None:
        registry = await _engine(routes_tree, batch_size=1).run()
        assert [schema.base_path for schema in registry] == EXPECTED_PATHS

    @pytest.mark.asyncio
    async def test_rerun_replaces_registry(self, routes_tree: Path) -> None:
        engine = _engine(routes_tree)
        await engine.run()
        registry = await engine.run()
        assert len(registry) == 4
        assert len(engine.registry) == 4

    @pytest.mark.asyncio
    async def test_tree_recorded(self, routes_tree: Path) -> None:
        engine = _engine(routes_tree)
        await engine.run()
        assert engine.tree.absolute_path == str(routes_tree)
        assert [child.name for child in engine.tree.children] == ["about.py", "index.py", "users"]

    @pytest.mark.asyncio
    async def test_summary_logged(self, routes_tree: Path, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO, logger="fsroutes.engine"):
            await _engine(routes_tree).run()
        assert "Registered 4 of 4 route files for 'development'" in caplog.text

    @pytest.mark.asyncio
    async def test_missing_directory_non_strict(self, tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="fsroutes.engine"):
            registry = await _engine(tmp_path / "missing").run()
        assert registry == []
        assert "No route files discovered" in caplog.text


# === Failure handling ===


class TestRunFailures:
    @pytest.mark.asyncio
    async def test_empty_handler_skipped(self, routes_tree: Path) -> None:
        path = write_route(routes_tree, "empty.py", EMPTY_TEMPLATE)
        registry = await _engine(routes_tree).run()
        empty = next(schema for schema in registry if schema.source_path == str(path))
        assert empty.status is RouteStatus.SKIPPED
        assert empty.base_path is None
        assert empty.layers == []
        assert empty.error

    @pytest.mark.asyncio
    async def test_empty_handler_strict(self, routes_tree: Path) -> None:
        write_route(routes_tree, "empty.py", EMPTY_TEMPLATE)
        with pytest.raises(EmptyHandlerError):
            await _engine(routes_tree, strict=True).run()

    @pytest.mark.asyncio
    async def test_import_failure_recorded(self, routes_tree: Path, table: RouteTable) -> None:
        path = write_route(routes_tree, "broken.py", RAISING_TEMPLATE)
        registry = await _engine(routes_tree, table).run()
        broken = next(schema for schema in registry if schema.source_path == str(path))
        assert broken.status is RouteStatus.ERROR
        assert "boom at import" in broken.error
        assert len(table) == 4

    @pytest.mark.asyncio
    async def test_import_failure_strict(self, routes_tree: Path) -> None:
        path = write_route(routes_tree, "broken.py", RAISING_TEMPLATE)
        with pytest.raises(RouteRegistrationError) as exc_info:
            await _engine(routes_tree, strict=True).run()
        assert exc_info.value.file_path == str(path)

    @pytest.mark.asyncio
    async def test_bad_export_recorded(self, routes_tree: Path) -> None:
        write_route(routes_tree, "bad.py", BAD_EXPORT_TEMPLATE)
        registry = await _engine(routes_tree).run()
        assert registry[1].status is RouteStatus.ERROR
        assert "must be a Router" in registry[1].error

    @pytest.mark.asyncio
    async def test_nothing_registered_warns(self, routes_root: Path, caplog: pytest.LogCaptureFixture) -> None:
        write_route(routes_root, "empty.py", EMPTY_TEMPLATE)
        with caplog.at_level(logging.WARNING, logger="fsroutes.engine"):
            await _engine(routes_root).run()
        assert "No routes registered" in caplog.text


# === Environment gating ===


class TestRunEnvironments:
    @pytest.mark.asyncio
    async def test_per_file_environments(self, routes_root: Path, table: RouteTable) -> None:
        write_route(routes_root, "debug.py", options_template("{'environments': ['development']}"))
        write_route(routes_root, "status.py", options_template("{'environments': '*'}"))
        registry = await _engine(routes_root, table, environment="production").run()
        assert [schema.status for schema in registry] == [RouteStatus.SKIPPED, RouteStatus.REGISTERED]
        assert registry[0].message == "Route was skipped for production"
        assert table.paths == ["/status"]

    @pytest.mark.asyncio
    async def test_directory_map(self, routes_root: Path) -> None:
        write_route(routes_root, "dev/tools.py")
        write_route(routes_root, "public.py")
        options = {"environment_routes": {"development": ["dev"]}}
        production = await _engine(routes_root, environment="production", **options).run()
        development = await _engine(routes_root, environment="development", **options).run()
        assert [schema.status for schema in production] == [RouteStatus.SKIPPED, RouteStatus.REGISTERED]
        assert [schema.status for schema in development] == [RouteStatus.REGISTERED, RouteStatus.REGISTERED]

    @pytest.mark.asyncio
    async def test_skip_option(self, routes_root: Path, table: RouteTable) -> None:
        write_route(routes_root, "drafts.py", options_template("{'skip': True}"))
        registry = await _engine(routes_root, table).run()
        assert registry[0].status is RouteStatus.SKIPPED
        assert registry[0].base_path == "/drafts"
        assert len(table) == 0


# === Output ===


class TestRunOutput:
    @pytest.mark.asyncio
    async def test_no_output_by_default(self, routes_tree: Path, tmp_path: Path) -> None:
        await _engine(routes_tree).run()
        assert sorted(p.name for p in tmp_path.iterdir()) == ["routes"]

    @pytest.mark.asyncio
    async def test_writes_json_dumps(self, routes_tree: Path, tmp_path: Path) -> None:
        out = tmp_path / "out"
        await _engine(routes_tree, output_target=out).run()
        tree = json.loads((out / "tree-node.json").read_text())
        registry = json.loads((out / "route-registry.json").read_text())
        assert tree["absolute_path"] == str(routes_tree)
        assert [entry["base_path"] for entry in registry] == EXPECTED_PATHS
        assert registry[0]["status"] == "registered"

    @pytest.mark.asyncio
    async def test_writes_yaml_dumps(self, routes_tree: Path, tmp_path: Path) -> None:
        out = tmp_path / "out"
        await _engine(routes_tree, output_target=str(out), output_format="yaml").run()
        registry = yaml.safe_load((out / "route-registry.yaml").read_text())
        assert registry[2]["resolved_options"]["param_constraints"] == {"id": "user_[0-9]+"}

    @pytest.mark.asyncio
    async def test_redacted_dumps(self, routes_tree: Path, tmp_path: Path) -> None:
        out = tmp_path / "out"
        await _engine(routes_tree, output_target=out, redact_paths=True).run()
        tree_text = (out / "tree-node.json").read_text()
        registry_text = (out / "route-registry.json").read_text()
        assert str(routes_tree) not in tree_text
        assert str(routes_tree) not in registry_text
        tree = json.loads(tree_text)
        users = tree["children"][2]
        assert users["absolute_path"] == "..."
        assert users["children"][0]["absolute_path"] == "..."
        assert json.loads(registry_text)[0]["source_path"] == "..."

    @pytest.mark.asyncio
    async def test_empty_registry_not_written(self, routes_root: Path, tmp_path: Path) -> None:
        out = tmp_path / "out"
        await _engine(routes_root, output_target=out).run()
        assert not out.exists()


# === Single routes and one-shot helpers ===


class TestRegisterRoute:
    @pytest.mark.asyncio
    async def test_register_single_node(self, routes_tree: Path, table: RouteTable) -> None:
        engine = _engine(routes_tree, table)
        path = routes_tree / "about.py"
        node = TreeNode(absolute_path=str(path), name="about.py", kind=NodeKind.FILE)
        schema = await engine.register_route(node)
        assert schema.base_path == "/about"
        assert engine.registry == [schema]
        assert table.paths == ["/about"]

    @pytest.mark.asyncio
    async def test_register_routes_helper(self, routes_tree: Path, table: RouteTable) -> None:
        registry = await register_routes(table, root_directory=routes_tree, app_mount="/v1", environment="test")
        assert registry[0].base_path == "/v1/about"
        assert registry[0].message == "Route was registered successfully for test"

    def test_run_sync(self, routes_tree: Path) -> None:
        registry = _engine(routes_tree).run_sync()
        assert [schema.base_path for schema in registry] == EXPECTED_PATHS


# === Binding order and re-runs ===


def _wrap(layer, handler, index, total):
    def wrapped(request):
        return handler(request)

    wrapped.depth = getattr(handler, "depth", 0) + 1
    return wrapped


@pytest.fixture
def route_package(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> tuple[Path, str]:
    """An importable package holding a single ``users`` route."""
    name = "fsroutes_engine_pkg_" + re.sub(r"\W", "_", tmp_path.name)
    root = tmp_path / name
    root.mkdir()
    (root / "__init__.py").write_text("")
    write_route(root, "users.py")
    monkeypatch.syspath_prepend(str(tmp_path))
    return root, name


class TestRunBindingOrder:
    @pytest.mark.asyncio
    async def test_slow_first_file_still_bound_first(self, routes_root: Path, table: RouteTable) -> None:
        write_route(routes_root, "a.py", "import time\n\ntime.sleep(0.3)\n\n" + ROUTER_TEMPLATE)
        write_route(routes_root, "b.py")
        registry = await _engine(routes_root, table).run()
        assert [schema.base_path for schema in registry] == ["/a", "/b"]
        assert table.paths == ["/a", "/b"]

    @pytest.mark.asyncio
    async def test_bindings_follow_registry_order(self, routes_tree: Path, table: RouteTable) -> None:
        registry = await _engine(routes_tree, table).run()
        registered = [schema.base_path for schema in registry if schema.status is RouteStatus.REGISTERED]
        assert table.paths == registered


class TestRunRepeated:
    @pytest.mark.asyncio
    async def test_package_loader_intercepts_once_per_run(
        self, route_package: tuple[Path, str], table: RouteTable
    ) -> None:
        root, name = route_package
        engine = RouteEngine(table, loader="package", package=name)
        engine.set_options(root_directory=root, layer_intercept_hook=_wrap)

        await engine.run()
        registry = await engine.run()

        assert [schema.base_path for schema in registry] == ["/users"]
        assert table.get("/users").layers[0].stack[0].depth == 1
        assert table.paths == ["/users", "/users"]

    @pytest.mark.asyncio
    async def test_file_loader_intercepts_once_per_run(self, routes_root: Path, table: RouteTable) -> None:
        write_route(routes_root, "users.py")
        engine = _engine(routes_root, table, layer_intercept_hook=_wrap)
        await engine.run()
        await engine.run()
        assert [router.layers[0].stack[0].depth for router in (b.handler for b in table.bindings)] == [1, 1]
