"""Register the example routes and print the resulting registry.

Run with ``FSROUTES_ENV=production python examples/app.py`` to see the
environment gates change the outcome.
"""

import logging
from pathlib import Path

from fsroutes import RouteEngine, RouteTable
from fsroutes.output import serialize, to_jsonable

ROUTES_DIR = Path(__file__).resolve().parent / "routes"


def build_engine(environment=None):
    table = RouteTable()
    engine = RouteEngine(table, environment=environment)
    engine.set_options(
        root_directory=ROUTES_DIR,
        app_mount="/api",
        environment_routes={"development": ["environments"]},
        route_metadata={"app": "example"},
    )
    return engine, table


def main():
    logging.basicConfig(level=logging.INFO)
    engine, table = build_engine()
    registry = engine.run_sync()
    print(serialize(to_jsonable(registry)))
    print("Bound paths:", ", ".join(table.paths))


if __name__ == "__main__":
    main()
