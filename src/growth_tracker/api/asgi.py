"""ASGI entrypoint for the growth tracker API."""

from growth_tracker.api.app import create_app
from growth_tracker.containers import build_container

app = create_app(build_container())
