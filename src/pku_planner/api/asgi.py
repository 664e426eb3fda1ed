"""ASGI entrypoint for the menu planner API."""

from pku_planner.api.app import create_app
from pku_planner.containers import build_container

app = create_app(build_container())
