"""
ledger_app/ledger.py

Supplier ledger core: entries, validation, balances, transaction history.

Everything here is pure (no database, no request context):
- ReceivedEntry / PaymentEntry mirror the JSON objects stored in the
  supplier's `received` / `payments` arrays.
- compute_balance() derives the four balance figures.
- merge_transactions() + filter_transactions() build the history feed.
- append_entry() / replace_entry() / remove_entry() return NEW lists so the
  caller can write the whole array back in one go.

IMPORTANT:
- Arithmetic uses Decimal and is never rounded internally.
  Rounding to 2 places happens only for display (money()).
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, replace
from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from enum import Enum
from typing import Iterable, Sequence

from .errors import NotFoundError, ValidationError

ZERO = Decimal("0")
DEFAULT_DETAILS_MAX_LENGTH = 3000

# Upper bound for a single entry; keeps totals quantizable to cents
MAX_AMOUNT = Decimal("1000000000000000")

KIND_RECEIVED = "received"
KIND_PAID = "paid"


# ---------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------
def money(value: Decimal) -> Decimal:
    """Round to cents for display."""
    return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def format_money(value: Decimal, currency: str = "") -> str:
    text = f"{money(value):.2f}"
    return f"{currency} {text}" if currency else text


def format_date(value: date) -> str:
    """Human date, e.g. 'Jan 5, 2024'."""
    return f"{value:%b} {value.day}, {value.year}"


def new_entry_id() -> str:
    """Opaque entry identifier, unique within a supplier collection."""
    return uuid.uuid4().hex


def _stored_date(raw) -> date:
    """
    Read a stored date.

    Accepts plain ISO dates and full ISO timestamps
    ("2024-01-05T10:00:00.000Z") from older records.
    """
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    return date.fromisoformat(str(raw)[:10])


# ---------------------------------------------------------------------
# Types
# ---------------------------------------------------------------------
class PaymentMethod(str, Enum):
    CASH = "cash"
    BANK = "bank"

    @property
    def label(self) -> str:
        return "Cash" if self is PaymentMethod.CASH else "Bank Transfer"

    @classmethod
    def parse(cls, raw) -> "PaymentMethod":
        value = str(raw or "").strip().lower()
        if value in ("bank-transfer", "bank_transfer", "bank transfer"):
            value = cls.BANK.value
        try:
            return cls(value)
        except ValueError:
            raise ValidationError("Please select a valid payment method.") from None


@dataclass(frozen=True)
class ReceivedEntry:
    """Goods/services received from a supplier (creates an obligation)."""

    id: str
    date: date
    details: str
    amount: Decimal

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": self.date.isoformat(),
            "details": self.details,
            "amount": str(self.amount),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ReceivedEntry":
        return cls(
            id=str(data["id"]),
            date=_stored_date(data["date"]),
            details=data.get("details") or "",
            amount=Decimal(str(data["amount"])),
        )


@dataclass(frozen=True)
class PaymentEntry:
    """A payment made to a supplier (discharges an obligation)."""

    id: str
    date: date
    amount: Decimal
    method: PaymentMethod

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": self.date.isoformat(),
            "amount": str(self.amount),
            "method": self.method.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PaymentEntry":
        return cls(
            id=str(data["id"]),
            date=_stored_date(data["date"]),
            amount=Decimal(str(data["amount"])),
            method=PaymentMethod.parse(data.get("method")),
        )


@dataclass(frozen=True)
class Transaction:
    """One row of the merged history feed."""

    kind: str
    entry: ReceivedEntry | PaymentEntry

    @property
    def date(self) -> date:
        return self.entry.date

    @property
    def amount(self) -> Decimal:
        return self.entry.amount

    @property
    def is_received(self) -> bool:
        return self.kind == KIND_RECEIVED

    @property
    def method(self) -> PaymentMethod | None:
        return getattr(self.entry, "method", None)


@dataclass(frozen=True)
class BalanceSummary:
    total_received: Decimal
    total_paid: Decimal
    balance: Decimal
    pending_to_pay: Decimal
    pending_to_receive: Decimal

    def rounded(self) -> "BalanceSummary":
        """Same figures rounded to two decimal places."""
        return BalanceSummary(
            total_received=money(self.total_received),
            total_paid=money(self.total_paid),
            balance=money(self.balance),
            pending_to_pay=money(self.pending_to_pay),
            pending_to_receive=money(self.pending_to_receive),
        )


# ---------------------------------------------------------------------
# Balance calculator
# ---------------------------------------------------------------------
def compute_balance(
    received: Iterable[ReceivedEntry],
    payments: Iterable[PaymentEntry],
) -> BalanceSummary:
    """
    Derive the supplier balance.

    balance > 0  -> we owe the supplier (pending_to_pay)
    balance < 0  -> the supplier owes us (pending_to_receive)
    """
    total_received = sum((r.amount for r in received), ZERO)
    total_paid = sum((p.amount for p in payments), ZERO)
    balance = total_received - total_paid

    return BalanceSummary(
        total_received=total_received,
        total_paid=total_paid,
        balance=balance,
        pending_to_pay=max(ZERO, balance),
        pending_to_receive=max(ZERO, -balance),
    )


# ---------------------------------------------------------------------
# Transaction merger
# ---------------------------------------------------------------------
def merge_transactions(
    received: Sequence[ReceivedEntry],
    payments: Sequence[PaymentEntry],
) -> list[Transaction]:
    """
    Merge both collections into one feed sorted ascending by date.

    Ties keep input order: received entries come before payments on the same
    day, and each kind keeps its stored order (sorted() is stable).
    """
    feed = [Transaction(KIND_RECEIVED, r) for r in received]
    feed.extend(Transaction(KIND_PAID, p) for p in payments)
    return sorted(feed, key=lambda t: t.date)


def filter_transactions(
    transactions: Iterable[Transaction],
    from_date: date | None = None,
    to_date: date | None = None,
) -> list[Transaction]:
    """Inclusive [from_date, to_date] filter. A missing bound is open."""
    result = []
    for t in transactions:
        if from_date is not None and t.date < from_date:
            continue
        if to_date is not None and t.date > to_date:
            continue
        result.append(t)
    return result


def transaction_history(
    received: Sequence[ReceivedEntry],
    payments: Sequence[PaymentEntry],
    from_date: date | None = None,
    to_date: date | None = None,
) -> list[Transaction]:
    return filter_transactions(merge_transactions(received, payments), from_date, to_date)


# ---------------------------------------------------------------------
# Input validation
# ---------------------------------------------------------------------
def parse_amount(raw) -> Decimal:
    """Parse a positive amount (accepts comma or dot as decimal separator)."""
    if isinstance(raw, Decimal):
        value = raw
    else:
        text = str(raw if raw is not None else "").strip().replace(",", ".")
        if not text:
            raise ValidationError("Please enter a valid amount greater than 0.")
        try:
            value = Decimal(text)
        except (InvalidOperation, ValueError):
            raise ValidationError("Please enter a valid amount greater than 0.") from None

    if not value.is_finite() or value <= ZERO:
        raise ValidationError("Please enter a valid amount greater than 0.")
    if value >= MAX_AMOUNT:
        raise ValidationError(f"Amount must be less than {MAX_AMOUNT:,}.")
    return value


def parse_date(raw, *, required: bool = True) -> date | None:
    """Parse a YYYY-MM-DD form value."""
    if isinstance(raw, date):
        return raw
    text = str(raw or "").strip()
    if not text:
        if required:
            raise ValidationError("Please select a date.")
        return None
    try:
        return date.fromisoformat(text)
    except ValueError:
        raise ValidationError("Please enter a valid date (YYYY-MM-DD).") from None


def validate_entry_date(value: date, today: date) -> date:
    if value > today:
        raise ValidationError("Cannot select future dates. Please select today or a past date.")
    return value


def validate_details(raw, max_length: int = DEFAULT_DETAILS_MAX_LENGTH) -> str:
    details = str(raw or "").strip()
    if not details:
        raise ValidationError("Please enter details.")
    if len(details) > max_length:
        raise ValidationError(f"Details must be at most {max_length} characters.")
    return details


def build_received(
    *,
    entry_date,
    details,
    amount,
    today: date,
    entry_id: str | None = None,
    max_details: int = DEFAULT_DETAILS_MAX_LENGTH,
) -> ReceivedEntry:
    """Validate raw form input and build a ReceivedEntry."""
    return ReceivedEntry(
        id=entry_id or new_entry_id(),
        date=validate_entry_date(parse_date(entry_date), today),
        details=validate_details(details, max_details),
        amount=parse_amount(amount),
    )


def build_payment(
    *,
    entry_date,
    amount,
    method,
    today: date,
    entry_id: str | None = None,
) -> PaymentEntry:
    """Validate raw form input and build a PaymentEntry."""
    return PaymentEntry(
        id=entry_id or new_entry_id(),
        date=validate_entry_date(parse_date(entry_date), today),
        amount=parse_amount(amount),
        method=PaymentMethod.parse(method),
    )


# ---------------------------------------------------------------------
# Collection updates (always return a new list)
# ---------------------------------------------------------------------
def append_entry(entries: Sequence, entry) -> list:
    if any(e.id == entry.id for e in entries):
        # uuid collision or a replayed id: never store duplicates
        entry = replace(entry, id=new_entry_id())
    return [*entries, entry]


def replace_entry(entries: Sequence, entry) -> list:
    """Swap the entry with the same id; position and id are preserved."""
    if not any(e.id == entry.id for e in entries):
        raise NotFoundError("Entry not found.")
    return [entry if e.id == entry.id else e for e in entries]


def remove_entry(entries: Sequence, entry_id: str) -> list:
    remaining = [e for e in entries if e.id != entry_id]
    if len(remaining) == len(entries):
        raise NotFoundError("Entry not found.")
    return remaining


def find_entry(entries: Sequence, entry_id: str):
    for e in entries:
        if e.id == entry_id:
            return e
    raise NotFoundError("Entry not found.")


def details_preview(details: str, words: int = 3) -> tuple[str, bool]:
    """First `words` words of the details, and whether text was cut."""
    parts = details.split()
    if len(parts) <= words:
        return details, False
    return " ".join(parts[:words]) + "...", True
