from .routes import requests_bp  # noqa: F401
