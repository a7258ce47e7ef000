"""
ledger_app/blueprints/admin/routes.py

Super-admin Routes

Includes:
- Panel with two tabs: users (pending / approved) and suppliers
  (disabled / enabled)
- Approve user, reject user (hard delete)
- Enable / disable any supplier

NOTES:
- Protected by admin_required (403 for everyone else).
- Audit rows are written by the service layer in the same transaction.
"""

from __future__ import annotations

from flask import (
    Blueprint,
    render_template,
    request,
    redirect,
    url_for,
    flash,
)
from flask_login import login_required, current_user

from ... import services
from ...access import admin_required
from ...errors import NotFoundError

admin_bp = Blueprint("admin", __name__, url_prefix="/admin")

TABS = ("users", "suppliers")


def _back(tab: str):
    return redirect(url_for("admin.panel", tab=tab))


# -------------------------------------------------------
# PANEL
# -------------------------------------------------------
@admin_bp.route("/")
@login_required
@admin_required
def panel():
    """Super-admin dashboard."""
    tab = request.args.get("tab", "users")
    if tab not in TABS:
        tab = "users"

    suppliers = services.list_suppliers(current_user._get_current_object())

    return render_template(
        "admin/panel.html",
        tab=tab,
        pending_users=services.pending_users(),
        approved_users=services.approved_users(),
        disabled_suppliers=[s for s in suppliers if not s.enabled],
        enabled_suppliers=[s for s in suppliers if s.enabled],
    )


# -------------------------------------------------------
# USERS
# -------------------------------------------------------
@admin_bp.route("/users/<int:user_id>/approve", methods=["POST"])
@login_required
@admin_required
def approve_user(user_id: int):
    try:
        user = services.approve_user(current_user._get_current_object(), user_id)
    except NotFoundError as exc:
        flash(exc.message, "danger")
        return _back("users")

    flash(f"User {user.email} approved successfully.", "success")
    return _back("users")


@admin_bp.route("/users/<int:user_id>/reject", methods=["POST"])
@login_required
@admin_required
def reject_user(user_id: int):
    try:
        services.reject_user(current_user._get_current_object(), user_id)
    except NotFoundError as exc:
        flash(exc.message, "danger")
        return _back("users")

    flash("User rejected and removed.", "success")
    return _back("users")


# -------------------------------------------------------
# SUPPLIERS
# -------------------------------------------------------
@admin_bp.route("/suppliers/<int:supplier_id>/enable", methods=["POST"])
@login_required
@admin_required
def enable_supplier(supplier_id: int):
    services.set_supplier_enabled(current_user._get_current_object(), supplier_id, True)
    flash("Supplier enabled successfully.", "success")
    return _back("suppliers")


@admin_bp.route("/suppliers/<int:supplier_id>/disable", methods=["POST"])
@login_required
@admin_required
def disable_supplier(supplier_id: int):
    services.set_supplier_enabled(current_user._get_current_object(), supplier_id, False)
    flash("Supplier disabled successfully.", "success")
    return _back("suppliers")
