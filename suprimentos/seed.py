"""
suprimentos/seed.py

Default sectors, users, statuses and form fields.

Rules:
- Safe to run multiple times: a table is only seeded when it is empty.
- Runs through the table store, so collections see the rows via change notifications.
- Default passwords are hashed before they are written.
- A form_fields table missing the `description` or `requester` field gets it back.
"""

from __future__ import annotations

import logging

from werkzeug.security import generate_password_hash

from .errors import StoreError

logger = logging.getLogger(__name__)


DEFAULT_SECTORS = [
    {"id": "sector-1", "name": "TI", "description": "Tecnologia da Informação"},
    {"id": "sector-2", "name": "RH", "description": "Recursos Humanos"},
    {"id": "sector-3", "name": "Financeiro", "description": "Departamento Financeiro"},
    {"id": "sector-4", "name": "Gerente", "description": "Gerência Geral - Visão Global"},
    {"id": "sector-5", "name": "Diretor", "description": "Diretoria - Visão Global"},
]

# id, name, email, password, role, sector
DEFAULT_USERS = [
    (1, "Administrador", "admin@empresa.com", "admin123", "admin", "TI"),
    (2, "John Doe", "john@example.com", "password", "user", "RH"),
    (3, "Jane Smith", "jane@example.com", "password", "user", "Financeiro"),
]

DEFAULT_STATUSES = [
    {"id": "status-1", "name": "Pendente", "color": "yellow"},
    {"id": "status-2", "name": "Em Andamento", "color": "blue"},
    {"id": "status-3", "name": "Aguardando Peças", "color": "purple"},
    {"id": "status-4", "name": "Entregue", "color": "green"},
    {"id": "status-5", "name": "Cancelado", "color": "red"},
]


def _field(field_id, label, field_type, active, required, standard, visible, order):
    return {
        "id": field_id,
        "label": label,
        "type": field_type,
        "isActive": active,
        "required": required,
        "isStandard": standard,
        "isVisibleInList": visible,
        "orderIndex": order,
    }


DEFAULT_FORM_FIELDS = [
    _field("orderNumber", "Nº do Pedido", "text", True, True, True, True, 1),
    _field("requestDate", "Data da Solicitação", "date", True, True, True, True, 2),
    _field("requester", "Solicitante", "select", True, True, True, True, 3),
    _field("sector", "Setor", "select", True, True, True, False, 4),
    _field("description", "Descrição", "text", True, False, True, True, 5),
    _field("supplier", "Fornecedor", "text", True, True, True, True, 6),
    _field("deliveryDate", "Previsão de Entrega", "date", True, False, True, False, 7),
    _field("status", "Status", "select", True, True, True, True, 8),
    _field("responsible", "Responsável (Atendimento)", "select", True, True, True, True, 9),
    _field("notes", "Observações", "textarea", False, False, False, False, 10),
]

REPAIRABLE_FIELDS = ("description", "requester")


def default_user_rows():
    return [
        {
            "id": user_id,
            "name": name,
            "email": email,
            "password_hash": generate_password_hash(password),
            "role": role,
            "sector": sector,
        }
        for user_id, name, email, password, role, sector in DEFAULT_USERS
    ]


def seed_empty_tables(workspace) -> None:
    """Insert defaults into whichever of users/sectors/statuses/form_fields is empty."""
    defaults = {
        "sectors": (workspace.sectors, DEFAULT_SECTORS),
        "users": (workspace.users, None),
        "statuses": (workspace.statuses, DEFAULT_STATUSES),
        "form_fields": (workspace.form_fields, DEFAULT_FORM_FIELDS),
    }

    for table, (collection, rows) in defaults.items():
        if collection.rows or collection.read_error is not None:
            continue

        if rows is None:
            rows = default_user_rows()

        logger.info("seeding_defaults", extra={"table": table, "rows": len(rows)})
        for row in rows:
            try:
                workspace.store.insert(table, dict(row))
            except StoreError as exc:
                logger.warning("seeding_failed", extra={"table": table, "code": exc.code})
                break


def repair_form_fields(workspace) -> None:
    fields = workspace.form_fields.rows
    if not fields:
        return

    present = {f.get("id") for f in fields}
    for field_id in REPAIRABLE_FIELDS:
        if field_id in present:
            continue
        default = next(f for f in DEFAULT_FORM_FIELDS if f["id"] == field_id)
        try:
            workspace.store.insert("form_fields", dict(default))
        except StoreError as exc:
            logger.warning("form_field_repair_failed", extra={"field": field_id, "code": exc.code})
            continue
        logger.info("form_field_repaired", extra={"field": field_id})
