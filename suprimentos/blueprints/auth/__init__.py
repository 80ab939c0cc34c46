"""
Auth blueprint package.

This file just exposes the Blueprint object to be imported in create_app().
The actual routes and logic are in routes.py.
"""

from .routes import auth_bp  # noqa: F401
