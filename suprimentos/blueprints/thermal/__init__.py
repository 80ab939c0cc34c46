from .routes import thermal_bp  # noqa: F401
