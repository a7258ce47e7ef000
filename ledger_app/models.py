"""
Supplier Ledger – Domain Models

- User: signs up unapproved; the super admin approves (or rejects = deletes).
- Supplier: owned by one user; carries its ledger as two JSON arrays
  (`received`, `payments`) that are always written back as a whole.
- AuditLog: who did what to which entity, with before/after snapshots.

IMPORTANT:
- Never mutate `received` / `payments` in place. Assign a new list
  (see Supplier.set_received / set_payments), otherwise SQLAlchemy will not
  notice the change.
"""

from __future__ import annotations

from datetime import datetime, timezone

from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash

from .extensions import db
from .ledger import BalanceSummary, PaymentEntry, ReceivedEntry, compute_balance


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class User(UserMixin, db.Model):
    """Login user. Can only sign in once approved (super admins excepted)."""

    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)

    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    display_name = db.Column(db.String(120), nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)

    approved = db.Column(db.Boolean, default=False, nullable=False, index=True)
    approved_at = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, default=_utcnow, index=True)

    suppliers = db.relationship(
        "Supplier",
        back_populates="owner",
        cascade="all, delete-orphan",
    )

    def set_password(self, password: str):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        return check_password_hash(self.password_hash, password)

    def __repr__(self):
        return f"<User {self.email}>"


class Supplier(db.Model):
    __tablename__ = "suppliers"

    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(255), nullable=False)

    user_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    enabled = db.Column(db.Boolean, default=True, nullable=False, index=True)

    created_at = db.Column(db.DateTime, default=_utcnow, index=True)

    # Ledger arrays: list of plain dicts (see ReceivedEntry/PaymentEntry.to_dict)
    received = db.Column(db.JSON, nullable=False, default=list)
    payments = db.Column(db.JSON, nullable=False, default=list)

    owner = db.relationship("User", back_populates="suppliers")

    @property
    def received_entries(self) -> list[ReceivedEntry]:
        return [ReceivedEntry.from_dict(row) for row in (self.received or [])]

    @property
    def payment_entries(self) -> list[PaymentEntry]:
        return [PaymentEntry.from_dict(row) for row in (self.payments or [])]

    def set_received(self, entries: list[ReceivedEntry]):
        self.received = [e.to_dict() for e in entries]

    def set_payments(self, entries: list[PaymentEntry]):
        self.payments = [e.to_dict() for e in entries]

    def summary(self) -> BalanceSummary:
        return compute_balance(self.received_entries, self.payment_entries)

    def __repr__(self):
        return f"<Supplier {self.id} - {self.name}>"


class AuditLog(db.Model):
    """Audit trail of every ledger/admin mutation."""

    __tablename__ = "audit_logs"

    id = db.Column(db.Integer, primary_key=True)

    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    email_snapshot = db.Column(db.String(255), nullable=True)

    entity_type = db.Column(db.String(50), nullable=False, index=True)
    entity_id = db.Column(db.Integer, nullable=False, index=True)

    action = db.Column(db.String(30), nullable=False, index=True)

    before_data = db.Column(db.Text, nullable=True)
    after_data = db.Column(db.Text, nullable=True)

    ip_address = db.Column(db.String(45), nullable=True)

    created_at = db.Column(db.DateTime, default=_utcnow, index=True)
