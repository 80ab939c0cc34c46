"""
User and sector management (admin only).

- /admin/users          GET, POST
- /admin/users/<id>     PATCH, DELETE
- /admin/sectors        GET, POST
- /admin/sectors/<id>   PATCH, DELETE

Passwords are hashed here and never returned; the cached users list carries no hash.
"""

from flask import Blueprint, jsonify
from flask_login import current_user, login_required
from werkzeug.security import generate_password_hash

from ...collections import next_millis
from ...errors import ValidationError
from ...models import ROLE_USER, ROLES
from ...security import admin_required
from ...utils import json_body, require_row, workspace

admin_bp = Blueprint("admin", __name__, url_prefix="/admin")


# ---------------------------------------------------------------------
# USERS
# ---------------------------------------------------------------------

def _user_values(data: dict, partial: bool = False) -> dict:
    values = {}
    for key in ("name", "email", "sector"):
        if key in data or (not partial and key != "sector"):
            value = str(data.get(key) or "").strip()
            if key == "email":
                value = value.lower()
            if not value and key != "sector":
                raise ValidationError(f"Campo obrigatório: {key}")
            values[key] = value

    if "role" in data or not partial:
        role = data.get("role") or ROLE_USER
        if role not in ROLES:
            raise ValidationError(f"Perfil inválido: {role}")
        values["role"] = role

    password = data.get("password")
    if password:
        values["password_hash"] = generate_password_hash(str(password))
    elif not partial:
        raise ValidationError("Informe a senha do usuário.")
    return values


@admin_bp.route("/users")
@login_required
@admin_required
def list_users():
    return jsonify({"users": workspace().users.rows})


@admin_bp.route("/users", methods=["POST"])
@login_required
@admin_required
def create_user():
    ws = workspace()
    values = _user_values(json_body())
    if any(u.get("email") == values["email"] for u in ws.users.rows):
        raise ValidationError("Já existe um usuário com este e-mail.")

    user = dict(values, id=next_millis())
    created = ws.users.add(user)
    return jsonify({"user": created}), 201


@admin_bp.route("/users/<int:user_id>", methods=["PATCH"])
@login_required
@admin_required
def update_user(user_id: int):
    ws = workspace()
    require_row(ws.users, user_id, "Usuário não encontrado.")
    return jsonify({"user": ws.users.update(user_id, _user_values(json_body(), partial=True))})


@admin_bp.route("/users/<int:user_id>", methods=["DELETE"])
@login_required
@admin_required
def delete_user(user_id: int):
    ws = workspace()
    require_row(ws.users, user_id, "Usuário não encontrado.")
    if user_id == current_user.id:
        raise ValidationError("Você não pode excluir o próprio usuário.")
    ws.users.remove(user_id)
    return jsonify({"ok": True})


# ---------------------------------------------------------------------
# SECTORS
# ---------------------------------------------------------------------

def _sector_values(data: dict) -> dict:
    name = str(data.get("name") or "").strip()
    if not name:
        raise ValidationError("Informe o nome do setor.")
    return {"name": name, "description": str(data.get("description") or "").strip()}


@admin_bp.route("/sectors")
@login_required
def list_sectors():
    return jsonify({"sectors": workspace().sectors.rows})


@admin_bp.route("/sectors", methods=["POST"])
@login_required
@admin_required
def create_sector():
    ws = workspace()
    sector = dict(_sector_values(json_body()), id=f"sector-{next_millis()}")
    ws.sectors.add(sector)
    return jsonify({"sector": sector}), 201


@admin_bp.route("/sectors/<sector_id>", methods=["PATCH"])
@login_required
@admin_required
def update_sector(sector_id: str):
    ws = workspace()
    require_row(ws.sectors, sector_id, "Setor não encontrado.")
    return jsonify({"sector": ws.sectors.update(sector_id, _sector_values(json_body()))})


@admin_bp.route("/sectors/<sector_id>", methods=["DELETE"])
@login_required
@admin_required
def delete_sector(sector_id: str):
    ws = workspace()
    require_row(ws.sectors, sector_id, "Setor não encontrado.")
    ws.sectors.remove(sector_id)
    return jsonify({"ok": True})
