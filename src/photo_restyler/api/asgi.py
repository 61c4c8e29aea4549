"""ASGI entrypoint for the photo restyler API."""

from photo_restyler.api.app import create_app
from photo_restyler.containers import build_container

app = create_app(build_container())
