"""
ledger_app/audit.py

Audit logging helper utilities.

Goals:
- Capture WHO did WHAT to WHICH entity, with BEFORE/AFTER snapshots.
- Store an e-mail snapshot so the trail survives user rejection (hard delete).
- Store IP address for traceability when called inside a request.

IMPORTANT:
- This helper ADDS AuditLog entries to the current SQLAlchemy session.
  The calling service controls transaction boundaries (commit/rollback).
"""

from __future__ import annotations

import json
from typing import Any, Dict, Optional

from flask import has_request_context, request

from .extensions import db
from .models import AuditLog


def serialize_model(instance: Any) -> Dict[str, Any]:
    """
    Snapshot a model instance based on its table columns.

    Scalars are converted to str; JSON columns (ledger arrays) are kept as-is.
    """
    data: Dict[str, Any] = {}
    for column in instance.__table__.columns:
        if column.name == "password_hash":
            continue
        value = getattr(instance, column.name)
        if value is None or isinstance(value, (list, dict, bool, int)):
            data[column.name] = value
        else:
            data[column.name] = str(value)
    return data


def log_action(
    entity: Any,
    action: str,
    *,
    actor: Any = None,
    before: Optional[Dict[str, Any]] = None,
    after: Optional[Dict[str, Any]] = None,
) -> AuditLog:
    """
    Add an AuditLog entry to the current db session.

    Parameters:
        entity: model instance with .id (flush first for new rows)
        action: CREATE / UPDATE / DELETE / APPROVE / ...
        actor: the User performing the action (None for anonymous signup)
    """
    entity_id = getattr(entity, "id", None)
    if entity_id is None:
        raise ValueError("log_action entity must have an 'id' attribute (after flush).")

    entry = AuditLog(
        user_id=getattr(actor, "id", None),
        email_snapshot=getattr(actor, "email", None),
        entity_type=entity.__class__.__name__,
        entity_id=int(entity_id),
        action=str(action),
        before_data=json.dumps(before, ensure_ascii=False, default=str) if before else None,
        after_data=json.dumps(after, ensure_ascii=False, default=str) if after else None,
        ip_address=request.remote_addr if has_request_context() else None,
    )
    db.session.add(entry)
    return entry
