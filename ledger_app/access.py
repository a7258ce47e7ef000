"""
ledger_app/access.py

Access policy for the supplier ledger.

Key rules:
- UI is never trusted; all permission checks are server-side.
- Super admin (any e-mail in SUPER_ADMIN_EMAILS): sees and writes every
  supplier, enabled or not; approves/rejects users; enables/disables suppliers.
- Any other authenticated user: sees only their own ENABLED suppliers and may
  add/edit/delete entries on them.
- Anonymous callers see nothing.
- A supplier the caller cannot see is reported exactly like a missing one
  (NotFoundOrForbidden).

This module also provides the Flask-side helpers:
- admin_required decorator (403 for everyone but super admins)
- approved_session_guard() for app.before_request (forced logout of
  sessions whose user is no longer approved)
"""

from __future__ import annotations

import logging
from enum import Enum
from functools import wraps
from typing import Any, Callable, Iterable, Optional, Tuple

from flask import current_app, flash, redirect, render_template, url_for
from flask_login import current_user, logout_user

from .errors import NotFoundOrForbidden

logger = logging.getLogger(__name__)


class Action(str, Enum):
    VIEW = "view"
    ADD_ENTRY = "add_entry"
    EDIT_ENTRY = "edit_entry"
    DELETE_ENTRY = "delete_entry"
    ENABLE = "enable"
    DISABLE = "disable"
    APPROVE = "approve"
    REJECT = "reject"


ADMIN_ACTIONS = {Action.ENABLE, Action.DISABLE, Action.APPROVE, Action.REJECT}


def _admin_emails() -> frozenset:
    return frozenset(e.lower() for e in current_app.config.get("SUPER_ADMIN_EMAILS", ()))


def _is_authenticated(user: Any) -> bool:
    return bool(user is not None and getattr(user, "is_authenticated", False))


def is_super_admin(user: Any, admin_emails: Optional[Iterable[str]] = None) -> bool:
    """Return True if the user is authenticated and on the super-admin allow-list."""
    if not _is_authenticated(user):
        return False
    emails = _admin_emails() if admin_emails is None else {e.lower() for e in admin_emails}
    return (getattr(user, "email", "") or "").lower() in emails


def can_view(user: Any, supplier: Any, admin_emails: Optional[Iterable[str]] = None) -> bool:
    if not _is_authenticated(user) or supplier is None:
        return False
    if is_super_admin(user, admin_emails):
        return True
    return supplier.user_id == user.id and bool(supplier.enabled)


def visible_suppliers(user: Any, suppliers: Iterable[Any], admin_emails: Optional[Iterable[str]] = None) -> list:
    """Filter `suppliers` to those the user may see (input order kept)."""
    return [s for s in suppliers if can_view(user, s, admin_emails)]


def can_write(user: Any, supplier: Any, action: Action, admin_emails: Optional[Iterable[str]] = None) -> bool:
    """
    Decide whether `user` may perform `action`.

    `supplier` is ignored for APPROVE/REJECT (those target users).
    """
    action = Action(action)
    if not _is_authenticated(user):
        return False

    if is_super_admin(user, admin_emails):
        return True

    if action in ADMIN_ACTIONS:
        return False

    # Owner on an enabled supplier only
    return can_view(user, supplier, admin_emails)


def require_supplier(user: Any, supplier: Any, action: Action = Action.VIEW) -> Any:
    """Return the supplier if allowed, else raise NotFoundOrForbidden."""
    if supplier is None or not can_write(user, supplier, action):
        logger.info(
            "Denied %s on supplier %s for %s",
            Action(action).value,
            getattr(supplier, "id", None),
            getattr(user, "email", "anonymous"),
        )
        raise NotFoundOrForbidden()
    return supplier


# ---------------------------------------------------------------------
# Flask helpers
# ---------------------------------------------------------------------
def _forbidden() -> Tuple[str, int]:
    """Render a consistent 403 page."""
    return render_template("errors/403.html"), 403


def admin_required(view_func: Callable[..., Any]) -> Callable[..., Any]:
    """Decorator: super-admin only."""
    @wraps(view_func)
    def wrapper(*args: Any, **kwargs: Any):
        if not is_super_admin(current_user):
            return _forbidden()
        return view_func(*args, **kwargs)

    return wrapper


def approved_session_guard():
    """
    Global guard: only approved users (or super admins) keep a session.

    A user whose approval is missing gets logged out on the next request.
    """
    if not current_user.is_authenticated:
        return None
    if is_super_admin(current_user) or current_user.approved:
        return None

    logger.warning("Forcing logout of unapproved user %s", current_user.email)
    logout_user()
    flash("Your account is pending approval from the super admin.", "warning")
    return redirect(url_for("auth.login"))
