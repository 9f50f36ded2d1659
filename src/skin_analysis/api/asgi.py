"""ASGI entrypoint for the skin analysis API."""

from skin_analysis.api.app import create_app
from skin_analysis.containers import build_container

app = create_app(build_container())
