"""ASGI entrypoint for the workday tracker API."""

from workday_tracker.api.app import create_app
from workday_tracker.containers import build_container

app = create_app(build_container())
