"""Universal Wallpaper API.

Backend service for the Universal Wallpaper storefront. The package is
split the same way the service boots:

* `wallpaper.config` - settings resolution (environment, TOML, defaults)
* `wallpaper.observability` - structured logging, metrics and health checks
* `wallpaper.database` - the MongoDB connection bootstrap
* `wallpaper.server` - route registry and the process entry point
* `wallpaper.api` - FastAPI application factory, envelopes and handlers
"""

__version__ = "1.0.0"

__all__ = ["__version__"]
