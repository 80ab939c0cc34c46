"""
Authentication routes.

Provides:
- POST /auth/login   (email + password)
- POST /auth/logout
- GET  /auth/me      (current user and visibility scope)
- GET  /auth/csrf    (token for mutating requests)

The password hash never leaves the server; responses carry User.to_public() only.
"""

import logging

from flask import Blueprint, jsonify
from flask_login import current_user, login_required, login_user, logout_user
from flask_wtf.csrf import generate_csrf

from ...extensions import db
from ...models import User
from ...security import has_full_visibility
from ...utils import json_body, workspace

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth", __name__, url_prefix="/auth")


def _session_payload(user: User) -> dict:
    return {"user": user.to_public(), "hasFullVisibility": has_full_visibility(user), "isAdmin": user.is_admin}


# ============================================================
# LOGIN
# ============================================================

@auth_bp.route("/login", methods=["POST"])
def login():
    """Authenticate a user by email and password."""
    # Seeds the default users on a fresh database
    workspace()

    data = json_body()
    email = str(data.get("email") or "").strip().lower()
    password = str(data.get("password") or "")

    user = db.session.execute(db.select(User).filter_by(email=email)).scalar_one_or_none()
    if user is None or not user.check_password(password):
        logger.info("login_failed", extra={"email": email})
        return jsonify({"error": "invalid_credentials", "message": "E-mail ou senha inválidos."}), 401

    login_user(user)
    logger.info("login", extra={"user_id": user.id})
    return jsonify(_session_payload(user))


# ============================================================
# LOGOUT
# ============================================================

@auth_bp.route("/logout", methods=["POST"])
@login_required
def logout():
    logout_user()
    return jsonify({"ok": True})


@auth_bp.route("/me")
@login_required
def me():
    return jsonify(_session_payload(current_user))


@auth_bp.route("/csrf")
def csrf_token():
    return jsonify({"csrfToken": generate_csrf()})
