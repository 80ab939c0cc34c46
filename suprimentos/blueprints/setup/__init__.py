from .routes import setup_bp  # noqa: F401
