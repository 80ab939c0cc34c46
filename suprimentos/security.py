"""
suprimentos/security.py

Request visibility rules and route guards.

Key rules:
- Admin role: sees every record.
- Users of a full-visibility sector (Gerente, Diretor by default): see every record.
- Everyone else: only records of their own sector.

These predicates run over rows that were already fetched. Detail routes additionally call
ensure_record_access(), which denies direct access by identifier to a record outside the
user's sector.

IMPORTANT:
- Decorators must preserve wrapped function metadata to avoid Flask endpoint collisions.
  We use functools.wraps everywhere.
"""

from __future__ import annotations

from functools import wraps
from typing import Any, Callable, Dict, Iterable, List

from flask import current_app, has_app_context
from flask_login import current_user

from .errors import AccessDenied
from .models import ROLE_ADMIN

DEFAULT_FULL_VISIBILITY_SECTORS = ("Gerente", "Diretor")


def _attr(obj: Any, name: str) -> Any:
    if obj is None:
        return None
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


def _full_visibility_sectors() -> Iterable[str]:
    if has_app_context():
        return current_app.config.get("FULL_VISIBILITY_SECTORS", DEFAULT_FULL_VISIBILITY_SECTORS)
    return DEFAULT_FULL_VISIBILITY_SECTORS


def has_full_visibility(user: Any, full_visibility_sectors: Iterable[str] | None = None) -> bool:
    """Admin role, or membership in a full-visibility sector."""
    if user is None:
        return False
    if _attr(user, "role") == ROLE_ADMIN:
        return True
    sectors = full_visibility_sectors if full_visibility_sectors is not None else _full_visibility_sectors()
    return _attr(user, "sector") in tuple(sectors)


def is_visible(record: Dict[str, Any], user: Any, full_visibility_sectors: Iterable[str] | None = None) -> bool:
    if has_full_visibility(user, full_visibility_sectors):
        return True
    if user is None:
        return False
    return record.get("sector") == _attr(user, "sector")


def filter_visible(
    records: Iterable[Dict[str, Any]],
    user: Any,
    full_visibility_sectors: Iterable[str] | None = None,
) -> List[Dict[str, Any]]:
    return [r for r in records if is_visible(r, user, full_visibility_sectors)]


def ensure_record_access(record: Dict[str, Any], user: Any, message: str | None = None) -> Dict[str, Any]:
    """Reachability guard for detail access by identifier."""
    if not is_visible(record, user):
        raise AccessDenied(message or "Você não tem permissão para visualizar esta solicitação.")
    return record


def can_view_supplier(supplier: Dict[str, Any], requests: Iterable[Dict[str, Any]], user: Any) -> bool:
    """Restricted users only see suppliers their sector has ordered from (matched by name)."""
    if has_full_visibility(user):
        return True
    name = supplier.get("name")
    sector = _attr(user, "sector")
    return any(r.get("supplier") == name and r.get("sector") == sector for r in requests)


def is_admin() -> bool:
    """Return True if current user is authenticated and admin."""
    return bool(current_user.is_authenticated and getattr(current_user, "is_admin", False))


def admin_required(view_func: Callable[..., Any]) -> Callable[..., Any]:
    """Decorator: admin-only."""
    @wraps(view_func)
    def wrapper(*args: Any, **kwargs: Any):
        if not is_admin():
            raise AccessDenied("Acesso restrito a administradores.")
        return view_func(*args, **kwargs)

    return wrapper


def full_visibility_required(view_func: Callable[..., Any]) -> Callable[..., Any]:
    """
    Decorator: admin or full-visibility sector.

    For screens that aggregate across sectors (evaluation, reports).
    """
    @wraps(view_func)
    def wrapper(*args: Any, **kwargs: Any):
        if not (current_user.is_authenticated and has_full_visibility(current_user)):
            raise AccessDenied("Acesso restrito à gerência e diretoria.")
        return view_func(*args, **kwargs)

    return wrapper
