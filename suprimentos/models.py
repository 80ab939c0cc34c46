"""
Suprimentos – backend table definitions.

These models describe the tables of the hosted record store. The dashboard talks to them
through suprimentos.store.TableStore, which returns plain row dicts keyed by column name,
so column names follow the wire format used by the dashboard (camelCase, e.g. "orderNumber")
while Python attributes stay snake_case.

IMPORTANT:
- Records carry no business behaviour. Visibility, aggregation, audit and quote logic live
  in their own modules and operate on row dicts.
- Supplier and Status are joined to Request by NAME, not by foreign key (existing behaviour).
"""

from __future__ import annotations

from flask_login import UserMixin
from werkzeug.security import check_password_hash, generate_password_hash

from .extensions import db


URGENCY_LEVELS = ("Alta", "Normal", "Baixa")
URGENT = "Alta"

STATUS_COLORS = ("yellow", "blue", "purple", "green", "red", "gray")

FIELD_TYPES = ("text", "textarea", "number", "date", "select")

ROLE_ADMIN = "admin"
ROLE_USER = "user"
ROLES = (ROLE_ADMIN, ROLE_USER)

THERMAL_NORMAL = "Normal"
THERMAL_ATTENTION = "Atenção"
THERMAL_CRITICAL = "Crítico"


# ---------------------------------------------------------------------
# Organisation & users
# ---------------------------------------------------------------------
class Sector(db.Model):
    """Organizational unit. Drives request visibility and dashboard segmentation."""

    __tablename__ = "sectors"

    id = db.Column(db.String(64), primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    description = db.Column(db.String(255))

    def __repr__(self):
        return f"<Sector {self.name}>"


class User(UserMixin, db.Model):
    """System login user. The password hash never leaves the server."""

    __tablename__ = "users"

    id = db.Column(db.BigInteger, primary_key=True)
    name = db.Column(db.String(150), nullable=False)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(20), nullable=False, default=ROLE_USER)
    sector = db.Column(db.String(120))

    def set_password(self, password: str):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        return check_password_hash(self.password_hash, password)

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    def to_public(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "sector": self.sector,
        }

    def __repr__(self):
        return f"<User {self.email}>"


# ---------------------------------------------------------------------
# Configuration tables
# ---------------------------------------------------------------------
class FormField(db.Model):
    """Configurable form/list column. Standard fields can be deactivated but not deleted."""

    __tablename__ = "form_fields"

    id = db.Column(db.String(64), primary_key=True)
    label = db.Column(db.String(120), nullable=False)
    type = db.Column(db.String(20), nullable=False, default="text")
    is_active = db.Column("isActive", db.Boolean, default=True)
    required = db.Column(db.Boolean, default=False)
    is_standard = db.Column("isStandard", db.Boolean, default=False)
    is_visible_in_list = db.Column("isVisibleInList", db.Boolean, default=True)
    order_index = db.Column("orderIndex", db.Integer)


class Status(db.Model):
    """Named workflow state with a badge color."""

    __tablename__ = "statuses"

    id = db.Column(db.String(64), primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    color = db.Column(db.String(20))


class AppConfig(db.Model):
    """Shared settings row (SLA thresholds used by the performance screen)."""

    __tablename__ = "app_config"

    id = db.Column(db.Integer, primary_key=True)
    sla_excellent = db.Column(db.Integer)
    sla_good = db.Column(db.Integer)


# ---------------------------------------------------------------------
# Procurement domain
# ---------------------------------------------------------------------
class Request(db.Model):
    """Procurement ticket. Items, custom fields and history are JSON documents."""

    __tablename__ = "requests"

    id = db.Column(db.BigInteger, primary_key=True)

    order_number = db.Column("orderNumber", db.String(80), nullable=False)
    request_date = db.Column("requestDate", db.String(10))
    requester = db.Column(db.String(150))
    sector = db.Column(db.String(120), index=True)
    supplier = db.Column(db.String(255), index=True)
    description = db.Column(db.Text)
    urgency = db.Column(db.String(10))

    purchase_order_date = db.Column("purchaseOrderDate", db.String(10))
    forecast_date = db.Column("forecastDate", db.String(10))
    delivery_date = db.Column("deliveryDate", db.String(10))

    status = db.Column(db.String(120), index=True)
    responsible = db.Column(db.String(150), index=True)

    items = db.Column(db.JSON, default=list)
    custom_fields = db.Column("customFields", db.JSON, default=dict)
    history = db.Column(db.JSON, default=list)

    def __repr__(self):
        return f"<Request {self.order_number}>"


class Supplier(db.Model):
    __tablename__ = "suppliers"

    id = db.Column(db.String(64), primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    contact_name = db.Column("contactName", db.String(150))
    email = db.Column(db.String(255))
    phone = db.Column(db.String(50))
    category = db.Column(db.String(120))
    rating = db.Column(db.Integer, default=0)
    notes = db.Column(db.Text)

    def __repr__(self):
        return f"<Supplier {self.name}>"


class PriceMap(db.Model):
    """Quote comparison document: requested items and one offer per supplier."""

    __tablename__ = "price_maps"

    id = db.Column(db.BigInteger, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    date = db.Column(db.String(10))
    status = db.Column(db.String(50))
    responsible = db.Column(db.String(150))
    items = db.Column(db.JSON, default=list)
    offers = db.Column(db.JSON, default=list)


class ThermalAnalysis(db.Model):
    """Equipment temperature monitoring record with an append-only measurement log."""

    __tablename__ = "thermal_analyses"

    id = db.Column(db.BigInteger, primary_key=True)
    tag = db.Column(db.String(80), nullable=False)
    equipment_name = db.Column("equipmentName", db.String(255))
    sector = db.Column(db.String(120), index=True)
    operating_temp = db.Column("operatingTemp", db.Float, nullable=False, default=60.0)
    critical_threshold = db.Column("criticalThreshold", db.Float, nullable=False, default=10.0)
    status = db.Column(db.String(20), default=THERMAL_NORMAL)
    measurements = db.Column(db.JSON, default=list)
