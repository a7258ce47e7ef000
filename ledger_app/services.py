"""
ledger_app/services.py

Use-case layer: every operation the blueprints perform on users, suppliers and
ledger entries.

Rules:
- Input is validated BEFORE the database is touched (ValidationError).
- Suppliers are always resolved through the access policy, so a missing and a
  forbidden supplier look the same (NotFoundOrForbidden).
- Ledger arrays are read, changed in memory and written back as a whole,
  then the supplier is re-read from the database.
- Database connectivity failures become RemoteUnavailableError; nothing is
  retried.

KNOWN RISK:
- There is no version token on suppliers. Two users editing the same
  supplier's ledger at the same time: last write wins.
"""

from __future__ import annotations

import logging
import re
from contextlib import contextmanager
from datetime import date
from typing import Iterator

from flask import current_app
from sqlalchemy.exc import InterfaceError, OperationalError

from .access import Action, can_write, is_super_admin, require_supplier, visible_suppliers
from .audit import log_action, serialize_model
from .clock import get_clock
from .errors import AccessDeniedError, NotFoundError, RemoteUnavailableError, ValidationError
from .extensions import db
from .ledger import (
    Transaction,
    append_entry,
    build_payment,
    build_received,
    find_entry,
    remove_entry,
    replace_entry,
    transaction_history,
)
from .models import Supplier, User

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


@contextmanager
def _store() -> Iterator[None]:
    """Translate connectivity failures into RemoteUnavailableError."""
    try:
        yield
    except (OperationalError, InterfaceError) as exc:
        db.session.rollback()
        logger.error("Database unavailable: %s", exc)
        raise RemoteUnavailableError() from exc


# ---------------------------------------------------------------------
# Users / identity
# ---------------------------------------------------------------------
def _normalize_email(raw) -> str:
    return str(raw or "").strip().lower()


def register_user(email, display_name, password, confirm) -> User:
    """Sign up a new user. The account waits for super-admin approval."""
    email = _normalize_email(email)
    display_name = str(display_name or "").strip()
    password = password or ""
    confirm = confirm or ""

    if not email or not display_name or not password or not confirm:
        raise ValidationError("Please fill in all fields.")
    if not EMAIL_RE.match(email):
        raise ValidationError("Invalid email address.")
    if password != confirm:
        raise ValidationError("Passwords do not match.")
    min_length = current_app.config.get("PASSWORD_MIN_LENGTH", 6)
    if len(password) < min_length:
        raise ValidationError(f"Password must be at least {min_length} characters long.")

    with _store():
        if User.query.filter_by(email=email).first():
            raise ValidationError("Email is already registered.")

        now = get_clock().now()
        user = User(
            email=email,
            display_name=display_name,
            approved=False,
            approved_at=None,
            created_at=now,
        )
        user.set_password(password)
        if is_super_admin(user):
            user.approved = True
            user.approved_at = now

        db.session.add(user)
        db.session.flush()
        log_action(user, "SIGNUP", after=serialize_model(user))
        db.session.commit()

    logger.info("New signup pending approval: %s", email)
    return user


def authenticate(email, password) -> User:
    """
    Check credentials and approval.

    Wrong e-mail and wrong password give the same message.
    """
    email = _normalize_email(email)
    if not email or not password:
        raise ValidationError("Please enter email and password.")

    with _store():
        user = User.query.filter_by(email=email).first()

    if not user or not user.check_password(password):
        raise AccessDeniedError("Invalid email or password.")

    if not user.approved and not is_super_admin(user):
        logger.info("Login refused, pending approval: %s", email)
        raise AccessDeniedError("Your account is pending approval from the super admin.")

    return user


def pending_users() -> list[User]:
    """Unapproved accounts awaiting a decision (super admins never wait)."""
    with _store():
        users = User.query.filter_by(approved=False).order_by(User.created_at.desc()).all()
    return [u for u in users if not is_super_admin(u)]


def approved_users() -> list[User]:
    with _store():
        return User.query.filter_by(approved=True).order_by(User.created_at.desc()).all()


def _load_user_for_admin(actor: User, user_id: int, action: Action) -> User:
    if not can_write(actor, None, action):
        raise AccessDeniedError("Only the super admin can do this.")
    user = db.session.get(User, user_id)
    # Only pending accounts can be approved or rejected
    if user is None or user.approved or is_super_admin(user):
        raise NotFoundError("No pending user with that id.")
    return user


def approve_user(actor: User, user_id: int) -> User:
    with _store():
        user = _load_user_for_admin(actor, user_id, Action.APPROVE)
        before = serialize_model(user)

        user.approved = True
        user.approved_at = get_clock().now()

        db.session.flush()
        log_action(user, "APPROVE", actor=actor, before=before, after=serialize_model(user))
        db.session.commit()

    logger.info("User %s approved by %s", user.email, actor.email)
    return user


def reject_user(actor: User, user_id: int) -> None:
    """Reject = hard delete of the user (and anything they own)."""
    with _store():
        user = _load_user_for_admin(actor, user_id, Action.REJECT)
        before = serialize_model(user)

        log_action(user, "REJECT", actor=actor, before=before)
        db.session.delete(user)
        db.session.commit()

    logger.info("User %s rejected by %s", before.get("email"), actor.email)


# ---------------------------------------------------------------------
# Suppliers
# ---------------------------------------------------------------------
def create_supplier(actor: User, name) -> Supplier:
    name = str(name or "").strip()
    if not name:
        raise ValidationError("Please enter supplier name.")

    with _store():
        supplier = Supplier(
            name=name,
            user_id=actor.id,
            enabled=True,
            created_at=get_clock().now(),
            received=[],
            payments=[],
        )
        db.session.add(supplier)
        db.session.flush()
        log_action(supplier, "CREATE", actor=actor, after=serialize_model(supplier))
        db.session.commit()

    logger.info("Supplier %s created by %s", supplier.id, actor.email)
    return supplier


def list_suppliers(actor: User) -> list[Supplier]:
    """Suppliers visible to the actor, newest first."""
    with _store():
        query = Supplier.query
        if not is_super_admin(actor):
            query = query.filter(Supplier.user_id == actor.id, Supplier.enabled.is_(True))
        suppliers = query.order_by(Supplier.created_at.desc(), Supplier.id.desc()).all()
    return visible_suppliers(actor, suppliers)


def get_supplier(actor: User, supplier_id: int, action: Action = Action.VIEW) -> Supplier:
    with _store():
        supplier = db.session.get(Supplier, supplier_id)
    return require_supplier(actor, supplier, action)


def set_supplier_enabled(actor: User, supplier_id: int, enabled: bool) -> Supplier:
    action = Action.ENABLE if enabled else Action.DISABLE
    with _store():
        supplier = get_supplier(actor, supplier_id, action)
        before = serialize_model(supplier)

        supplier.enabled = bool(enabled)

        db.session.flush()
        log_action(supplier, action.value.upper(), actor=actor, before=before, after=serialize_model(supplier))
        db.session.commit()
        db.session.refresh(supplier)

    logger.info("Supplier %s %s by %s", supplier.id, "enabled" if enabled else "disabled", actor.email)
    return supplier


def supplier_history(
    supplier: Supplier,
    from_date: date | None = None,
    to_date: date | None = None,
) -> list[Transaction]:
    return transaction_history(supplier.received_entries, supplier.payment_entries, from_date, to_date)


# ---------------------------------------------------------------------
# Ledger entries (whole-array read-modify-write)
# ---------------------------------------------------------------------
def _write_ledger(actor: User, supplier: Supplier, action: str, before: dict, *, received=None, payments=None) -> Supplier:
    if received is not None:
        supplier.set_received(received)
    if payments is not None:
        supplier.set_payments(payments)

    db.session.flush()
    log_action(supplier, action, actor=actor, before=before, after=serialize_model(supplier))
    db.session.commit()

    # Re-read: never keep serving the pre-write state
    db.session.refresh(supplier)
    return supplier


def _details_limit() -> int:
    return current_app.config.get("DETAILS_MAX_LENGTH", 3000)


def add_received(actor: User, supplier_id: int, *, entry_date, details, amount) -> Supplier:
    entry = build_received(
        entry_date=entry_date,
        details=details,
        amount=amount,
        today=get_clock().today(),
        max_details=_details_limit(),
    )
    with _store():
        supplier = get_supplier(actor, supplier_id, Action.ADD_ENTRY)
        before = serialize_model(supplier)
        entries = append_entry(supplier.received_entries, entry)
        return _write_ledger(actor, supplier, "ADD_RECEIVED", before, received=entries)


def edit_received(actor: User, supplier_id: int, entry_id: str, *, entry_date, details, amount) -> Supplier:
    entry = build_received(
        entry_date=entry_date,
        details=details,
        amount=amount,
        today=get_clock().today(),
        entry_id=entry_id,
        max_details=_details_limit(),
    )
    with _store():
        supplier = get_supplier(actor, supplier_id, Action.EDIT_ENTRY)
        before = serialize_model(supplier)
        entries = replace_entry(supplier.received_entries, entry)
        return _write_ledger(actor, supplier, "EDIT_RECEIVED", before, received=entries)


def delete_received(actor: User, supplier_id: int, entry_id: str) -> Supplier:
    with _store():
        supplier = get_supplier(actor, supplier_id, Action.DELETE_ENTRY)
        before = serialize_model(supplier)
        entries = remove_entry(supplier.received_entries, entry_id)
        return _write_ledger(actor, supplier, "DELETE_RECEIVED", before, received=entries)


def add_payment(actor: User, supplier_id: int, *, entry_date, amount, method) -> Supplier:
    entry = build_payment(
        entry_date=entry_date,
        amount=amount,
        method=method,
        today=get_clock().today(),
    )
    with _store():
        supplier = get_supplier(actor, supplier_id, Action.ADD_ENTRY)
        before = serialize_model(supplier)
        entries = append_entry(supplier.payment_entries, entry)
        return _write_ledger(actor, supplier, "ADD_PAYMENT", before, payments=entries)


def edit_payment(actor: User, supplier_id: int, entry_id: str, *, entry_date, amount, method) -> Supplier:
    entry = build_payment(
        entry_date=entry_date,
        amount=amount,
        method=method,
        today=get_clock().today(),
        entry_id=entry_id,
    )
    with _store():
        supplier = get_supplier(actor, supplier_id, Action.EDIT_ENTRY)
        before = serialize_model(supplier)
        entries = replace_entry(supplier.payment_entries, entry)
        return _write_ledger(actor, supplier, "EDIT_PAYMENT", before, payments=entries)


def delete_payment(actor: User, supplier_id: int, entry_id: str) -> Supplier:
    with _store():
        supplier = get_supplier(actor, supplier_id, Action.DELETE_ENTRY)
        before = serialize_model(supplier)
        entries = remove_entry(supplier.payment_entries, entry_id)
        return _write_ledger(actor, supplier, "DELETE_PAYMENT", before, payments=entries)


def get_received(actor: User, supplier_id: int, entry_id: str):
    supplier = get_supplier(actor, supplier_id, Action.EDIT_ENTRY)
    return supplier, find_entry(supplier.received_entries, entry_id)


def get_payment(actor: User, supplier_id: int, entry_id: str):
    supplier = get_supplier(actor, supplier_id, Action.EDIT_ENTRY)
    return supplier, find_entry(supplier.payment_entries, entry_id)
