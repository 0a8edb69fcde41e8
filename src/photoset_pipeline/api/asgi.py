"""ASGI entrypoint for the photo set pipeline API."""

from photoset_pipeline.api.app import create_app
from photoset_pipeline.containers import build_container

app = create_app(build_container())
