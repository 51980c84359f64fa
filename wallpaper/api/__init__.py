"""HTTP API for the Universal Wallpaper service.

The FastAPI application is built by `create_app`; handlers live in
`wallpaper.api.routes` and answer with `wallpaper.api.envelope` results.
"""

from wallpaper.api.server import create_app, create_registry

__all__ = ["create_app", "create_registry"]
