import os
import sys
from datetime import datetime
from decimal import Decimal

import pytest

# Ensure project root is on sys.path (config.py lives there)
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from ledger_app import create_app  # noqa: E402
from ledger_app.clock import FixedClock  # noqa: E402
from ledger_app.extensions import db  # noqa: E402
from ledger_app.ledger import PaymentEntry, PaymentMethod, ReceivedEntry  # noqa: E402
from ledger_app.models import Supplier, User  # noqa: E402

FIXED_NOW = datetime(2024, 1, 15, 10, 30)
ADMIN_EMAIL = "admin@example.com"
PASSWORD = "secret1"


@pytest.fixture
def app():
    app = create_app("config.TestConfig", clock=FixedClock(FIXED_NOW))
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    def create_user(email="user@example.com", approved=True, display_name="User", password=PASSWORD):
        user = User(
            email=email,
            display_name=display_name,
            approved=approved,
            approved_at=FIXED_NOW if approved else None,
        )
        user.set_password(password)
        db.session.add(user)
        db.session.commit()
        return user

    return create_user


@pytest.fixture
def admin(make_user):
    return make_user(email=ADMIN_EMAIL, display_name="Super Admin")


@pytest.fixture
def make_supplier(app):
    def create_supplier(owner, name="Acme", enabled=True, received=(), payments=()):
        supplier = Supplier(name=name, user_id=owner.id, enabled=enabled, received=[], payments=[])
        supplier.set_received(list(received))
        supplier.set_payments(list(payments))
        db.session.add(supplier)
        db.session.commit()
        return supplier

    return create_supplier


def received(entry_id, day, amount, details="Goods"):
    return ReceivedEntry(id=entry_id, date=day, details=details, amount=Decimal(str(amount)))


def paid(entry_id, day, amount, method=PaymentMethod.CASH):
    return PaymentEntry(id=entry_id, date=day, amount=Decimal(str(amount)), method=method)


def login(client, email, password=PASSWORD):
    return client.post("/auth/login", data={"email": email, "password": password})
