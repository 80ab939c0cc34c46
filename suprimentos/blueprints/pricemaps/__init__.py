from .routes import pricemaps_bp  # noqa: F401
