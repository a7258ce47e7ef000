"""
ledger_app/blueprints/suppliers/routes.py

Supplier ledger routes

Includes:
- Supplier list + create
- Supplier detail: received / payments tables, balances, transaction history
  with an optional inclusive date filter (?from=YYYY-MM-DD&to=YYYY-MM-DD)
- Received / payment entry add, edit, delete
- PDF report download (honours the same date filter)

IMPORTANT:
- UI is never trusted. Access control and validation live in services/access.
- A supplier the user cannot see answers 404, exactly like a missing one.
"""

from __future__ import annotations

import logging
from io import BytesIO

from flask import (
    Blueprint,
    current_app,
    flash,
    redirect,
    render_template,
    request,
    send_file,
    url_for,
)
from flask_login import current_user, login_required

from ... import services
from ...access import Action, can_write, is_super_admin
from ...clock import get_clock
from ...errors import NotFoundError, ValidationError
from ...ledger import PaymentMethod
from ...report import build_report_pdf, report_filename
from ...utils import parse_optional_date

logger = logging.getLogger(__name__)

suppliers_bp = Blueprint("suppliers", __name__, url_prefix="/suppliers")


# ---------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------
def _actor():
    return current_user._get_current_object()


def _read_date_filter():
    """Return (from_date, to_date) from the query string; a bad bound is dropped."""
    bounds = []
    for key in ("from", "to"):
        try:
            bounds.append(parse_optional_date(request.args.get(key)))
        except ValidationError as exc:
            flash(exc.message, "warning")
            bounds.append(None)
    return tuple(bounds)


def _report_url(supplier_id: int, from_date, to_date) -> str:
    params = {}
    if from_date:
        params["from"] = from_date.isoformat()
    if to_date:
        params["to"] = to_date.isoformat()
    return url_for("suppliers.report", supplier_id=supplier_id, **params)


def _back_to_detail(supplier_id: int):
    return redirect(url_for("suppliers.detail", supplier_id=supplier_id))


# ---------------------------------------------------------------------
# LIST / CREATE
# ---------------------------------------------------------------------
@suppliers_bp.route("/", methods=["GET", "POST"])
@login_required
def list_suppliers():
    """List visible suppliers; POST adds a new one."""
    if request.method == "POST":
        try:
            supplier = services.create_supplier(_actor(), request.form.get("name"))
        except ValidationError as exc:
            flash(exc.message, "danger")
            return redirect(url_for("suppliers.list_suppliers"))

        flash(f"Supplier '{supplier.name}' added.", "success")
        return redirect(url_for("suppliers.list_suppliers"))

    suppliers = services.list_suppliers(_actor())
    return render_template(
        "suppliers/list.html",
        suppliers=suppliers,
        is_admin=is_super_admin(current_user),
    )


# ---------------------------------------------------------------------
# DETAIL
# ---------------------------------------------------------------------
@suppliers_bp.route("/<int:supplier_id>")
@login_required
def detail(supplier_id: int):
    supplier = services.get_supplier(_actor(), supplier_id)
    from_date, to_date = _read_date_filter()

    return render_template(
        "suppliers/detail.html",
        supplier=supplier,
        received=supplier.received_entries,
        payments=supplier.payment_entries,
        summary=supplier.summary().rounded(),
        transactions=services.supplier_history(supplier, from_date, to_date),
        from_date=from_date,
        to_date=to_date,
        today=get_clock().today(),
        report_url=_report_url(supplier.id, from_date, to_date),
        methods=list(PaymentMethod),
        can_edit=can_write(current_user, supplier, Action.ADD_ENTRY),
        is_admin=is_super_admin(current_user),
    )


# ---------------------------------------------------------------------
# RECEIVED ENTRIES
# ---------------------------------------------------------------------
@suppliers_bp.route("/<int:supplier_id>/received", methods=["POST"])
@login_required
def add_received(supplier_id: int):
    try:
        services.add_received(
            _actor(),
            supplier_id,
            entry_date=request.form.get("date"),
            details=request.form.get("details"),
            amount=request.form.get("amount"),
        )
    except ValidationError as exc:
        flash(exc.message, "danger")
        return _back_to_detail(supplier_id)

    flash("Received entry added.", "success")
    return _back_to_detail(supplier_id)


@suppliers_bp.route("/<int:supplier_id>/received/<entry_id>/edit", methods=["GET", "POST"])
@login_required
def edit_received(supplier_id: int, entry_id: str):
    try:
        supplier, entry = services.get_received(_actor(), supplier_id, entry_id)
    except NotFoundError as exc:
        flash(exc.message, "danger")
        return _back_to_detail(supplier_id)

    if request.method == "POST":
        try:
            services.edit_received(
                _actor(),
                supplier_id,
                entry_id,
                entry_date=request.form.get("date"),
                details=request.form.get("details"),
                amount=request.form.get("amount"),
            )
        except (ValidationError, NotFoundError) as exc:
            flash(exc.message, "danger")
            return redirect(url_for("suppliers.edit_received", supplier_id=supplier_id, entry_id=entry_id))

        flash("Received entry updated successfully.", "success")
        return _back_to_detail(supplier_id)

    return render_template(
        "suppliers/received_form.html",
        supplier=supplier,
        entry=entry,
        today=get_clock().today(),
    )


@suppliers_bp.route("/<int:supplier_id>/received/<entry_id>/delete", methods=["POST"])
@login_required
def delete_received(supplier_id: int, entry_id: str):
    try:
        services.delete_received(_actor(), supplier_id, entry_id)
    except NotFoundError as exc:
        flash(exc.message, "danger")
        return _back_to_detail(supplier_id)

    flash("Received entry deleted successfully.", "success")
    return _back_to_detail(supplier_id)


# ---------------------------------------------------------------------
# PAYMENTS
# ---------------------------------------------------------------------
@suppliers_bp.route("/<int:supplier_id>/payments", methods=["POST"])
@login_required
def add_payment(supplier_id: int):
    try:
        services.add_payment(
            _actor(),
            supplier_id,
            entry_date=request.form.get("date"),
            amount=request.form.get("amount"),
            method=request.form.get("method"),
        )
    except ValidationError as exc:
        flash(exc.message, "danger")
        return _back_to_detail(supplier_id)

    flash("Payment added.", "success")
    return _back_to_detail(supplier_id)


@suppliers_bp.route("/<int:supplier_id>/payments/<entry_id>/edit", methods=["GET", "POST"])
@login_required
def edit_payment(supplier_id: int, entry_id: str):
    try:
        supplier, entry = services.get_payment(_actor(), supplier_id, entry_id)
    except NotFoundError as exc:
        flash(exc.message, "danger")
        return _back_to_detail(supplier_id)

    if request.method == "POST":
        try:
            services.edit_payment(
                _actor(),
                supplier_id,
                entry_id,
                entry_date=request.form.get("date"),
                amount=request.form.get("amount"),
                method=request.form.get("method"),
            )
        except (ValidationError, NotFoundError) as exc:
            flash(exc.message, "danger")
            return redirect(url_for("suppliers.edit_payment", supplier_id=supplier_id, entry_id=entry_id))

        flash("Payment entry updated successfully.", "success")
        return _back_to_detail(supplier_id)

    return render_template(
        "suppliers/payment_form.html",
        supplier=supplier,
        entry=entry,
        methods=list(PaymentMethod),
        today=get_clock().today(),
    )


@suppliers_bp.route("/<int:supplier_id>/payments/<entry_id>/delete", methods=["POST"])
@login_required
def delete_payment(supplier_id: int, entry_id: str):
    try:
        services.delete_payment(_actor(), supplier_id, entry_id)
    except NotFoundError as exc:
        flash(exc.message, "danger")
        return _back_to_detail(supplier_id)

    flash("Payment entry deleted successfully.", "success")
    return _back_to_detail(supplier_id)


# ---------------------------------------------------------------------
# REPORT
# ---------------------------------------------------------------------
@suppliers_bp.route("/<int:supplier_id>/report.pdf")
@login_required
def report(supplier_id: int):
    """Download the (optionally date-filtered) transaction report."""
    supplier = services.get_supplier(_actor(), supplier_id)
    from_date, to_date = _read_date_filter()
    clock = get_clock()

    pdf_bytes = build_report_pdf(
        supplier_name=supplier.name,
        transactions=services.supplier_history(supplier, from_date, to_date),
        summary=supplier.summary(),
        from_date=from_date,
        to_date=to_date,
        generated_at=clock.now(),
        currency=current_app.config.get("CURRENCY_LABEL", ""),
    )
    logger.info("Report generated for supplier %s by %s", supplier.id, current_user.email)

    return send_file(
        BytesIO(pdf_bytes),
        mimetype="application/pdf",
        as_attachment=True,
        download_name=report_filename(supplier.name, clock.today()),
    )
