from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from conftest import ADMIN_EMAIL, FIXED_NOW, PASSWORD, paid, received
from ledger_app import services
from ledger_app.errors import (
    AccessDeniedError,
    NotFoundError,
    NotFoundOrForbidden,
    RemoteUnavailableError,
    ValidationError,
)
from ledger_app.extensions import db
from ledger_app.models import AuditLog, Supplier, User


# ---------------------------------------------------------------------
# Signup / login
# ---------------------------------------------------------------------
def test_register_creates_pending_user(app):
    user = services.register_user(" New@Example.com ", "New", PASSWORD, PASSWORD)

    assert user.email == "new@example.com"
    assert user.approved is False
    assert user.approved_at is None
    assert user.created_at == FIXED_NOW
    assert user.check_password(PASSWORD)


@pytest.mark.parametrize(
    "email, name, password, confirm",
    [
        ("", "N", PASSWORD, PASSWORD),
        ("a@example.com", "", PASSWORD, PASSWORD),
        ("not-an-email", "N", PASSWORD, PASSWORD),
        ("a@example.com", "N", PASSWORD, PASSWORD + "x"),
        ("a@example.com", "N", "12345", "12345"),
    ],
)
def test_register_validation(app, email, name, password, confirm):
    with pytest.raises(ValidationError):
        services.register_user(email, name, password, confirm)
    assert User.query.count() == 0


def test_register_duplicate_email(app, make_user):
    make_user(email="dup@example.com")
    with pytest.raises(ValidationError):
        services.register_user("dup@example.com", "Dup", PASSWORD, PASSWORD)


def test_authenticate_rules(app, make_user):
    make_user(email="ok@example.com")
    make_user(email="pending@example.com", approved=False)
    make_user(email=ADMIN_EMAIL, approved=False)

    assert services.authenticate("OK@example.com", PASSWORD).email == "ok@example.com"
    # super admins skip the approval check
    assert services.authenticate(ADMIN_EMAIL, PASSWORD).email == ADMIN_EMAIL

    with pytest.raises(AccessDeniedError, match="pending approval"):
        services.authenticate("pending@example.com", PASSWORD)

    with pytest.raises(AccessDeniedError) as wrong_password:
        services.authenticate("ok@example.com", "nope")
    with pytest.raises(AccessDeniedError) as unknown:
        services.authenticate("ghost@example.com", PASSWORD)
    assert wrong_password.value.message == unknown.value.message


# ---------------------------------------------------------------------
# Approval workflow
# ---------------------------------------------------------------------
def test_approve_and_reject(app, admin, make_user):
    pending = make_user(email="p1@example.com", approved=False)
    doomed = make_user(email="p2@example.com", approved=False)

    assert {u.email for u in services.pending_users()} == {"p1@example.com", "p2@example.com"}

    services.approve_user(admin, pending.id)
    assert pending.approved is True
    assert pending.approved_at == FIXED_NOW

    doomed_id = doomed.id
    services.reject_user(admin, doomed_id)
    assert db.session.get(User, doomed_id) is None

    assert {u.email for u in services.pending_users()} == set()
    assert "p1@example.com" in {u.email for u in services.approved_users()}
    assert {a.action for a in AuditLog.query.all()} >= {"APPROVE", "REJECT"}


def test_approve_unknown_user(app, admin):
    with pytest.raises(NotFoundError):
        services.approve_user(admin, 999)


def test_non_admin_cannot_approve(app, make_user):
    alice = make_user(email="alice@example.com")
    other = make_user(email="other@example.com", approved=False)
    with pytest.raises(AccessDeniedError):
        services.approve_user(alice, other.id)
    assert other.approved is False


# ---------------------------------------------------------------------
# Suppliers
# ---------------------------------------------------------------------
def test_create_supplier_defaults(app, make_user):
    alice = make_user(email="alice@example.com")
    supplier = services.create_supplier(alice, "  Acme  ")

    assert supplier.name == "Acme"
    assert supplier.enabled is True
    assert supplier.received == [] and supplier.payments == []
    assert supplier.user_id == alice.id

    with pytest.raises(ValidationError):
        services.create_supplier(alice, "   ")


def test_list_suppliers_visibility(app, admin, make_user, make_supplier):
    alice = make_user(email="alice@example.com")
    bob = make_user(email="bob@example.com")
    a1 = make_supplier(alice, "A1")
    a2 = make_supplier(alice, "A2", enabled=False)
    b1 = make_supplier(bob, "B1")

    assert [s.id for s in services.list_suppliers(alice)] == [a1.id]
    assert [s.id for s in services.list_suppliers(bob)] == [b1.id]
    assert {s.id for s in services.list_suppliers(admin)} == {a1.id, a2.id, b1.id}


def test_get_supplier_missing_and_foreign_look_the_same(app, make_user, make_supplier):
    alice = make_user(email="alice@example.com")
    bob = make_user(email="bob@example.com")
    foreign = make_supplier(bob, "B1")

    with pytest.raises(NotFoundOrForbidden):
        services.get_supplier(alice, 999)
    with pytest.raises(NotFoundOrForbidden):
        services.get_supplier(alice, foreign.id)


def test_enable_disable_is_admin_only(app, admin, make_user, make_supplier):
    alice = make_user(email="alice@example.com")
    supplier = make_supplier(alice)

    with pytest.raises(NotFoundOrForbidden):
        services.set_supplier_enabled(alice, supplier.id, False)

    services.set_supplier_enabled(admin, supplier.id, False)
    assert supplier.enabled is False
    with pytest.raises(NotFoundOrForbidden):
        services.get_supplier(alice, supplier.id)

    services.set_supplier_enabled(admin, supplier.id, True)
    assert services.get_supplier(alice, supplier.id).enabled is True

    with pytest.raises(NotFoundOrForbidden):
        services.set_supplier_enabled(admin, 999, True)


# ---------------------------------------------------------------------
# Ledger entries
# ---------------------------------------------------------------------
def test_add_received_validation(app, make_user, make_supplier):
    alice = make_user(email="alice@example.com")
    supplier = make_supplier(alice)

    for amount in ("0", "-5"):
        with pytest.raises(ValidationError):
            services.add_received(alice, supplier.id, entry_date="2024-01-10", details="x", amount=amount)
    with pytest.raises(ValidationError):
        services.add_received(alice, supplier.id, entry_date="2024-01-16", details="x", amount="1")

    services.add_received(alice, supplier.id, entry_date="2024-01-15", details="Bricks", amount="0.01")
    assert [e.amount for e in supplier.received_entries] == [Decimal("0.01")]


def test_validation_happens_before_lookup(app, make_user):
    alice = make_user(email="alice@example.com")
    # supplier 999 does not exist, but the bad amount is reported first
    with pytest.raises(ValidationError):
        services.add_payment(alice, 999, entry_date="2024-01-10", amount="0", method="cash")


def test_edit_received_round_trip(app, make_user, make_supplier):
    alice = make_user(email="alice@example.com")
    supplier = make_supplier(
        alice,
        received=[
            received("a", date(2024, 1, 2), "100", details="Cement"),
            received("b", date(2024, 1, 3), "20", details="Sand"),
        ],
    )

    services.edit_received(alice, supplier.id, "a", entry_date="2024-01-02", details="Cement", amount="150")

    db.session.expire_all()
    entries = db.session.get(Supplier, supplier.id).received_entries
    assert [e.id for e in entries] == ["a", "b"]
    assert [e.amount for e in entries if e.amount == Decimal("150")] == [Decimal("150")]
    assert entries[0].date == date(2024, 1, 2) and entries[0].details == "Cement"
    assert entries[1] == received("b", date(2024, 1, 3), "20", details="Sand")


def test_payment_crud(app, make_user, make_supplier):
    alice = make_user(email="alice@example.com")
    supplier = make_supplier(alice, payments=[paid("p1", date(2024, 1, 1), "40")])

    services.add_payment(alice, supplier.id, entry_date="2024-01-05", amount="10", method="bank-transfer")
    assert len(supplier.payment_entries) == 2
    assert supplier.payment_entries[1].method.value == "bank"

    services.edit_payment(alice, supplier.id, "p1", entry_date="2024-01-01", amount="45", method="cash")
    assert supplier.payment_entries[0].amount == Decimal("45")

    services.delete_payment(alice, supplier.id, "p1")
    assert [p.amount for p in supplier.payment_entries] == [Decimal("10")]

    with pytest.raises(NotFoundError):
        services.delete_payment(alice, supplier.id, "p1")
    with pytest.raises(NotFoundError):
        services.edit_received(alice, supplier.id, "zzz", entry_date="2024-01-01", details="x", amount="1")


def test_disabled_supplier_is_read_only_for_owner_but_not_admin(app, admin, make_user, make_supplier):
    alice = make_user(email="alice@example.com")
    supplier = make_supplier(alice, enabled=False, received=[received("a", date(2024, 1, 2), "100")])

    with pytest.raises(NotFoundOrForbidden):
        services.delete_received(alice, supplier.id, "a")

    services.delete_received(admin, supplier.id, "a")
    assert supplier.received == []


def test_entry_changes_are_audited(app, make_user, make_supplier):
    alice = make_user(email="alice@example.com")
    supplier = make_supplier(alice)

    services.add_received(alice, supplier.id, entry_date="2024-01-10", details="Bricks", amount="5")

    log = AuditLog.query.filter_by(action="ADD_RECEIVED").one()
    assert log.entity_id == supplier.id
    assert log.user_id == alice.id
    assert log.email_snapshot == "alice@example.com"
    assert '"Bricks"' in log.after_data


def test_history_and_summary(app, make_user, make_supplier):
    alice = make_user(email="alice@example.com")
    supplier = make_supplier(
        alice,
        received=[received("r1", date(2024, 1, 5), "100")],
        payments=[paid("p1", date(2024, 1, 1), "40")],
    )

    assert [t.entry.id for t in services.supplier_history(supplier)] == ["p1", "r1"]
    assert [t.entry.id for t in services.supplier_history(supplier, date(2024, 1, 3), date(2024, 1, 10))] == ["r1"]
    assert supplier.summary().pending_to_pay == Decimal("60")


def test_store_outage_becomes_remote_unavailable(app, make_user, monkeypatch):
    alice = make_user(email="alice@example.com")

    def boom(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("connection refused"))

    monkeypatch.setattr(db.session, "get", boom)

    with pytest.raises(RemoteUnavailableError):
        services.get_supplier(alice, 1)


def test_super_admin_signup_is_approved_and_never_pending(app):
    user = services.register_user(ADMIN_EMAIL, "Boss", PASSWORD, PASSWORD)

    assert user.approved is True
    assert user.approved_at == FIXED_NOW
    assert services.pending_users() == []


def test_unapproved_admin_row_is_not_listed_as_pending(app, make_user):
    make_user(email=ADMIN_EMAIL, approved=False)
    make_user(email="p1@example.com", approved=False)

    assert [u.email for u in services.pending_users()] == ["p1@example.com"]


def test_reject_refuses_approved_users(app, admin, make_user, make_supplier):
    bob = make_user(email="bob@example.com")
    make_supplier(bob, "Bob's supplier")

    with pytest.raises(NotFoundError):
        services.reject_user(admin, bob.id)
    with pytest.raises(NotFoundError):
        services.approve_user(admin, bob.id)

    assert db.session.get(User, bob.id) is not None
    assert Supplier.query.count() == 1


def test_admin_cannot_reject_own_account(app, make_user):
    boss = make_user(email=ADMIN_EMAIL, approved=False)

    with pytest.raises(NotFoundError):
        services.reject_user(boss, boss.id)
    with pytest.raises(NotFoundError):
        services.approve_user(boss, boss.id)

    assert db.session.get(User, boss.id) is not None
