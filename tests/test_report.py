from datetime import date, datetime, timedelta

from conftest import paid, received
from ledger_app.ledger import PaymentMethod, compute_balance, merge_transactions
from ledger_app.report import (
    PAGE_CONTENT_LIMIT,
    build_report_pdf,
    range_caption,
    render_report,
    report_filename,
)

GENERATED = datetime(2024, 1, 15, 14, 5)


class RecordingRenderer:
    def __init__(self):
        self.pages = [[]]

    def set_font_size(self, size):
        pass

    def text(self, x, y, value):
        self.pages[-1].append((x, y, value))

    def line(self, x1, y1, x2, y2):
        pass

    def add_page(self):
        self.pages.append([])

    def texts(self, page):
        return [value for _, _, value in self.pages[page]]


def _feed(count):
    start = date(2023, 1, 1)
    rec = [received(f"r{i}", start + timedelta(days=i), "10") for i in range(count)]
    return rec, merge_transactions(rec, [])


def test_rows_show_placeholders_and_method():
    rec = [received("r1", date(2024, 1, 5), "100")]
    pay = [paid("p1", date(2024, 1, 1), "40", PaymentMethod.BANK)]
    renderer = RecordingRenderer()

    pages = render_report(
        renderer,
        supplier_name="Acme",
        transactions=merge_transactions(rec, pay),
        summary=compute_balance(rec, pay),
        generated_at=GENERATED,
    )

    texts = renderer.texts(0)
    assert pages == 1
    assert texts[0] == "Acme - Transaction Report"
    assert texts[1] == "All Transactions (Generated: Jan 15, 2024 2:05 PM)"

    payment_row = texts.index("Jan 1, 2024")
    assert texts[payment_row + 1:payment_row + 4] == ["-", "RS 40.00", "Bank Transfer"]

    received_row = texts.index("Jan 5, 2024")
    assert texts[received_row + 1:received_row + 4] == ["RS 100.00", "-", "-"]

    assert "Total Received: RS 100.00" in texts
    assert "Total Paid: RS 40.00" in texts
    assert "Pending Amount to Pay: RS 60.00" in texts
    assert "Amount They Owe Us: RS 0.00" in texts


def test_pagination_repeats_column_headers():
    rec, feed = _feed(30)
    renderer = RecordingRenderer()

    pages = render_report(
        renderer,
        supplier_name="Acme",
        transactions=feed,
        summary=compute_balance(rec, []),
        generated_at=GENERATED,
    )

    assert pages == len(renderer.pages) == 2
    for page in range(2):
        assert {"Date", "Received", "Paid", "Method"} <= set(renderer.texts(page))
    assert all(y <= PAGE_CONTENT_LIMIT for _, y, _ in renderer.pages[0])
    # 20 rows fit on the first page, the rest move over
    assert renderer.texts(1).count("RS 10.00") == 10


def test_summary_moves_to_new_page_when_page_is_full():
    rec, feed = _feed(20)
    renderer = RecordingRenderer()

    pages = render_report(
        renderer,
        supplier_name="Acme",
        transactions=feed,
        summary=compute_balance(rec, []),
        generated_at=GENERATED,
    )

    assert pages == 2
    assert renderer.texts(1)[0] == "Final Summary:"


def test_range_caption_variants():
    assert range_caption(date(2024, 1, 3), date(2024, 1, 10), GENERATED) == "Date Range: Jan 3, 2024 - Jan 10, 2024"
    assert range_caption(date(2024, 1, 3), None, GENERATED) == "Date Range: from Jan 3, 2024"
    assert range_caption(None, date(2024, 1, 10), GENERATED) == "Date Range: up to Jan 10, 2024"


def test_report_filename_is_deterministic():
    assert report_filename("Acme", date(2024, 1, 15)) == "Acme_transaction_report_2024-01-15.pdf"
    assert report_filename("A/B", date(2024, 1, 15)) == "A_B_transaction_report_2024-01-15.pdf"


def test_build_report_pdf_returns_pdf_bytes():
    rec, feed = _feed(45)
    pdf = build_report_pdf(
        supplier_name="Acme",
        transactions=feed,
        summary=compute_balance(rec, []),
        from_date=date(2023, 1, 1),
        to_date=date(2023, 3, 1),
        generated_at=GENERATED,
    )
    assert pdf.startswith(b"%PDF")
    assert len(pdf) > 100
