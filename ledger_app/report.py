"""
ledger_app/report.py

PDF transaction report for one supplier.

The layout code only decides WHAT text goes WHERE and WHEN a new page starts;
drawing is delegated to a renderer with four primitives (set_font_size, text,
line, add_page). FPDFRenderer implements them with fpdf2.

Layout (A4, millimetres):
- title, date range (or generation timestamp), "Transaction Details"
- column headers: Date | Received | Paid | Method
- one row per transaction; when the cursor passes PAGE_CONTENT_LIMIT a new
  page is started and the column headers are repeated
- final summary: the four balance figures
"""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import Iterable, Protocol

from fpdf import FPDF

from .ledger import BalanceSummary, Transaction, format_date, format_money

PAGE_CONTENT_LIMIT = 270
PAGE_TOP = 20
ROW_HEIGHT = 10
PAGE_BOTTOM = 287
LEFT = 20
RIGHT = 190
COLUMNS = (("Date", 20), ("Received", 60), ("Paid", 100), ("Method", 140))
PLACEHOLDER = "-"


class Renderer(Protocol):
    def set_font_size(self, size: int) -> None: ...

    def text(self, x: float, y: float, value: str) -> None: ...

    def line(self, x1: float, y1: float, x2: float, y2: float) -> None: ...

    def add_page(self) -> None: ...


class FPDFRenderer:
    """Renderer backed by fpdf2."""

    def __init__(self):
        self.pdf = FPDF(format="A4")
        self.pdf.set_auto_page_break(False)
        self.pdf.add_page()
        self.pdf.set_font("Helvetica", size=10)

    def set_font_size(self, size: int) -> None:
        self.pdf.set_font_size(size)

    def text(self, x: float, y: float, value: str) -> None:
        # core fonts are latin-1 only
        self.pdf.text(x, y, value.encode("latin-1", "replace").decode("latin-1"))

    def line(self, x1: float, y1: float, x2: float, y2: float) -> None:
        self.pdf.line(x1, y1, x2, y2)

    def add_page(self) -> None:
        self.pdf.add_page()

    def output(self) -> bytes:
        return bytes(self.pdf.output())


def report_filename(supplier_name: str, today: date) -> str:
    """Deterministic download name: <supplier>_transaction_report_<YYYY-MM-DD>.pdf"""
    safe = re.sub(r"[\\/:*?\"<>|]+", "_", supplier_name).strip() or "supplier"
    return f"{safe}_transaction_report_{today.isoformat()}.pdf"


def range_caption(from_date: date | None, to_date: date | None, generated_at: datetime) -> str:
    if from_date and to_date:
        return f"Date Range: {format_date(from_date)} - {format_date(to_date)}"
    if from_date:
        return f"Date Range: from {format_date(from_date)}"
    if to_date:
        return f"Date Range: up to {format_date(to_date)}"
    hour = generated_at.hour % 12 or 12
    stamp = f"{format_date(generated_at.date())} {hour}:{generated_at:%M %p}"
    return f"All Transactions (Generated: {stamp})"


def _column_headers(renderer: Renderer, y: float) -> None:
    renderer.set_font_size(10)
    for label, x in COLUMNS:
        renderer.text(x, y, label)
    renderer.line(LEFT, y + 5, RIGHT, y + 5)


def render_report(
    renderer: Renderer,
    *,
    supplier_name: str,
    transactions: Iterable[Transaction],
    summary: BalanceSummary,
    from_date: date | None = None,
    to_date: date | None = None,
    generated_at: datetime,
    currency: str = "RS",
) -> int:
    """Lay the report out on `renderer`. Returns the number of pages used."""
    pages = 1

    renderer.set_font_size(20)
    renderer.text(LEFT, 20, f"{supplier_name} - Transaction Report")

    renderer.set_font_size(12)
    renderer.text(LEFT, 35, range_caption(from_date, to_date, generated_at))

    renderer.set_font_size(14)
    renderer.text(LEFT, 55, "Transaction Details")

    _column_headers(renderer, 65)
    y = 80

    for t in transactions:
        if y > PAGE_CONTENT_LIMIT:
            renderer.add_page()
            pages += 1
            _column_headers(renderer, PAGE_TOP)
            y = PAGE_TOP + ROW_HEIGHT

        renderer.text(COLUMNS[0][1], y, format_date(t.date))
        if t.is_received:
            renderer.text(COLUMNS[1][1], y, format_money(t.amount, currency))
            renderer.text(COLUMNS[2][1], y, PLACEHOLDER)
            renderer.text(COLUMNS[3][1], y, PLACEHOLDER)
        else:
            renderer.text(COLUMNS[1][1], y, PLACEHOLDER)
            renderer.text(COLUMNS[2][1], y, format_money(t.amount, currency))
            renderer.text(COLUMNS[3][1], y, t.method.label if t.method else PLACEHOLDER)
        y += ROW_HEIGHT

    y += ROW_HEIGHT
    if y + 4 * ROW_HEIGHT > PAGE_BOTTOM:
        renderer.add_page()
        pages += 1
        y = PAGE_TOP

    renderer.set_font_size(12)
    renderer.text(LEFT, y, "Final Summary:")
    renderer.set_font_size(10)
    for label, value in (
        ("Total Received", summary.total_received),
        ("Total Paid", summary.total_paid),
        ("Pending Amount to Pay", summary.pending_to_pay),
        ("Amount They Owe Us", summary.pending_to_receive),
    ):
        y += ROW_HEIGHT
        renderer.text(LEFT, y, f"{label}: {format_money(value, currency)}")

    return pages


def build_report_pdf(
    *,
    supplier_name: str,
    transactions: Iterable[Transaction],
    summary: BalanceSummary,
    from_date: date | None = None,
    to_date: date | None = None,
    generated_at: datetime,
    currency: str = "RS",
) -> bytes:
    """Render the report with fpdf2 and return the PDF bytes."""
    renderer = FPDFRenderer()
    render_report(
        renderer,
        supplier_name=supplier_name,
        transactions=transactions,
        summary=summary,
        from_date=from_date,
        to_date=to_date,
        generated_at=generated_at,
        currency=currency,
    )
    return renderer.output()
