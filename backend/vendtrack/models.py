# backend/vendtrack/models.py
from __future__ import annotations

import uuid

from .extensions import db
from vendtrack.time_utils import to_utc_z


USER_ROLES = ("admin", "routeman", "viewer")
REPORT_TYPES = ("iceCream", "fridge")
REPORT_STATUSES = ("pending", "completed", "cancelled", "issue", "waste")
PHOTO_FIELDS = ("beforePhotos", "afterPhotos", "issuePhotos")


def _new_report_id() -> str:
    return uuid.uuid4().hex


class User(db.Model):
    """
    Account record. `role` selects the capability set (see permissions.py);
    `is_active` gates login and session validation.
    """
    __tablename__ = "users"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)

    email = db.Column(db.String(255), nullable=False, unique=True, index=True)
    name = db.Column(db.String(120), nullable=False)
    role = db.Column(db.String(16), nullable=False, default="routeman")

    # Bcrypt hashed password
    password_hash = db.Column(db.String(255), nullable=False)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )
    last_login_at = db.Column(db.DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r} role={self.role!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "role": self.role,
            "isActive": self.is_active,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
            "lastLogin": to_utc_z(self.last_login_at) if self.last_login_at else None,
        }


class SessionToken(db.Model):
    """
    Login session. Only the SHA-256 hash of the bearer token is stored.

    24-hour absolute timeout, 2-hour idle timeout, revocable on logout.
    """
    __tablename__ = "session_tokens"
    __table_args__ = (
        db.Index("ix_session_tokens_user_active", "user_id", "is_revoked"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    token_hash = db.Column(db.String(255), nullable=False, unique=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    last_used_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False, index=True)

    is_revoked = db.Column(db.Boolean, nullable=False, default=False, index=True)
    revoked_at = db.Column(db.DateTime(timezone=True), nullable=True)
    revoked_reason = db.Column(db.String(255), nullable=True)

    user_agent = db.Column(db.String(512), nullable=True)
    ip_address = db.Column(db.String(45), nullable=True)  # IPv6 max length

    user = db.relationship(
        "User",
        backref=db.backref("session_tokens", lazy=True, cascade="all, delete-orphan"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "created_at": to_utc_z(self.created_at),
            "last_used_at": to_utc_z(self.last_used_at),
            "expires_at": to_utc_z(self.expires_at),
            "is_revoked": self.is_revoked,
        }


class Report(db.Model):
    """
    One maintenance visit. Immutable after creation except for the
    issue-resolution pair, which admins toggle.

    Photos are kept inline as data-URI strings; there is no blob store.
    """
    __tablename__ = "reports"
    __table_args__ = (
        db.Index("ix_reports_user_created", "user_id", "created_at"),
    )

    id = db.Column(db.String(32), primary_key=True, default=_new_report_id)

    report_type = db.Column(db.String(16), nullable=False, default="iceCream", index=True)
    status = db.Column(db.String(16), nullable=False, default="completed", index=True)
    title = db.Column(db.String(255), nullable=True)

    location = db.Column(db.String(255), nullable=False)
    machine_serial_number = db.Column(db.String(10), nullable=False, index=True)
    notes = db.Column(db.Text, nullable=True)

    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)
    user_name = db.Column(db.String(120), nullable=True)

    # Ice cream machine payload
    equipment_checklist = db.Column(db.JSON, nullable=True)
    cleaning_checklist = db.Column(db.JSON, nullable=True)
    filling_details = db.Column(db.JSON, nullable=True)
    cup_stock = db.Column(db.String(64), nullable=True)
    waste = db.Column(db.String(64), nullable=True)
    stock_info = db.Column(db.Text, nullable=True)

    has_issue = db.Column(db.Boolean, nullable=False, default=False)
    issue_description = db.Column(db.Text, nullable=True)
    issue_date = db.Column(db.String(32), nullable=True)
    issue_resolved = db.Column(db.Boolean, nullable=False, default=False)
    issue_resolved_date = db.Column(db.DateTime(timezone=True), nullable=True)

    has_waste = db.Column(db.Boolean, nullable=False, default=False)
    waste_items = db.Column(db.JSON, nullable=True)
    waste_date = db.Column(db.String(32), nullable=True)

    # Fridge payload: sparse list of slots 1-58
    slots = db.Column(db.JSON, nullable=True)

    before_photos = db.Column(db.JSON, nullable=False, default=list)
    after_photos = db.Column(db.JSON, nullable=False, default=list)
    issue_photos = db.Column(db.JSON, nullable=False, default=list)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    user = db.relationship("User", backref=db.backref("reports", lazy=True))

    def __repr__(self) -> str:
        return f"<Report id={self.id} type={self.report_type!r} serial={self.machine_serial_number!r}>"

    def to_dict(self, include_photos: bool = True) -> dict:
        data = {
            "id": self.id,
            "reportType": self.report_type,
            "status": self.status,
            "title": self.title,
            "location": self.location,
            "machineSerialNumber": self.machine_serial_number,
            "notes": self.notes or "",
            "userId": self.user_id,
            "userName": self.user_name,
            "equipmentChecklist": self.equipment_checklist or [],
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
            "hasIssue": self.has_issue,
            "issueDescription": self.issue_description,
            "issueDate": self.issue_date,
            "issueResolved": self.issue_resolved,
            "issueResolvedDate": to_utc_z(self.issue_resolved_date) if self.issue_resolved_date else None,
        }
        if self.report_type == "fridge":
            data["slots"] = self.slots or []
        else:
            data.update({
                "cleaningChecklist": self.cleaning_checklist or [],
                "fillingDetails": self.filling_details or {},
                "cupStock": self.cup_stock,
                "waste": self.waste,
                "stockInfo": self.stock_info,
                "hasWaste": self.has_waste,
                "wasteItems": self.waste_items or [],
                "wasteDate": self.waste_date,
            })

        photos = {
            "beforePhotos": self.before_photos or [],
            "afterPhotos": self.after_photos or [],
            "issuePhotos": self.issue_photos or [],
        }
        if include_photos:
            data.update(photos)
        else:
            data["photoCounts"] = {key: len(value) for key, value in photos.items()}
        return data


class Commodity(db.Model):
    """Product catalog entry keyed by the supplier-assigned commodity code."""
    __tablename__ = "commodities"
    __table_args__ = (
        db.Index("ix_commodities_supplier_name", "supplier", "product_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    code = db.Column(db.String(64), nullable=False, unique=True, index=True)
    product_name = db.Column(db.String(255), nullable=False)

    # Prices arrive from supplier sheets as free text; kept verbatim
    unit_price = db.Column(db.String(32), nullable=True)
    cost_price = db.Column(db.String(32), nullable=True)

    supplier = db.Column(db.String(255), nullable=True)
    specs = db.Column(db.String(255), nullable=True)
    type = db.Column(db.String(120), nullable=True)
    description = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<Commodity code={self.code!r} name={self.product_name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "Commodity code": self.code,
            "Product name": self.product_name,
            "Unit price": self.unit_price,
            "Cost price": self.cost_price,
            "Supplier": self.supplier,
            "Specs": self.specs,
            "Type": self.type,
            "Description": self.description,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }


# Wire key -> column attribute for commodity payloads
COMMODITY_FIELD_MAP = {
    "Commodity code": "code",
    "Product name": "product_name",
    "Unit price": "unit_price",
    "Cost price": "cost_price",
    "Supplier": "supplier",
    "Specs": "specs",
    "Type": "type",
    "Description": "description",
}
