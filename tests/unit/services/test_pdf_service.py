"""
Unit tests for the invoice PDF renderer.

WHAT: Formatting helpers, word wrap, and the rendered document.

WHY: The PDF is what the client receives. It must contain the resolved
bill-to and totals, be byte-stable for identical input, and report when
the items table runs into the footer.

HOW: Pages are rendered uncompressed, so drawn strings can be found in
the raw bytes.
"""

from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest
from reportlab.pdfbase.pdfmetrics import stringWidth

from app.core.exceptions import PDFRenderError
from app.services.invoice_snapshot import ResolvedParties, build_invoice_metadata, resolve_invoice_parties
from app.services.pdf_service import (
    FONT,
    ITEM_COLUMNS,
    InvoiceDocument,
    InvoiceLine,
    InvoicePDFRenderer,
    build_invoice_document,
    format_currency,
    format_date,
    format_date_short,
    format_money,
    format_quantity,
    wrap_text,
)


def make_parties(**overrides) -> ResolvedParties:
    fields = dict(
        bill_to={"name": "Acme Corp", "address": "1 Main St", "city": "Springfield",
                 "state": "IL", "postal_code": "62701", "country": "USA"},
        business={"company_name": "Studio LLC", "owner_name": "Sam Rivera",
                  "beneficiary_name": "Studio LLC", "account_number": "000123"},
        terms="Payment due within 15 days.",
        has_bill_to=True,
    )
    fields.update(overrides)
    return ResolvedParties(**fields)


def make_document(lines=None, parties=None) -> InvoiceDocument:
    if lines is None:
        lines = [
            InvoiceLine("Backend work", date(2025, 1, 3), "8", "50.00", "400.00"),
            InvoiceLine("Code review", date(2025, 1, 4), "2", "25.00", "50.00"),
        ]
    return InvoiceDocument(
        invoice_number="42",
        issue_date=date(2025, 1, 5),
        due_date=date(2025, 1, 20),
        parties=parties or make_parties(),
        lines=lines,
        subtotal="450.00",
        tax="45.00",
        total="495.00",
    )


class TestFormatting:
    """Tests for the formatting helpers."""

    def test_format_currency(self):
        assert format_currency(Decimal("1234.5")) == "$1,234.50"
        assert format_currency(None) == "$0.00"
        assert format_currency("0.005") == "$0.01"

    def test_format_money(self):
        assert format_money(Decimal("1234.5")) == "1234.50"

    def test_format_quantity(self):
        assert format_quantity(Decimal("8.00")) == "8"
        assert format_quantity(Decimal("1.50")) == "1.5"

    def test_format_dates(self):
        assert format_date(date(2025, 1, 5)) == "Jan 05, 2025"
        assert format_date_short(date(2025, 1, 5)) == "01/05/25"
        assert format_date(None) == ""


class TestWrapText:
    """Tests for wrap_text."""

    def test_short_text_single_line(self):
        assert wrap_text("Backend work", FONT, 10, 242) == ["Backend work"]

    def test_long_text_wraps_on_words(self):
        text = " ".join(["integration"] * 30)
        lines = wrap_text(text, FONT, 10, ITEM_COLUMNS.description_max_width)

        assert len(lines) > 1
        assert " ".join(lines) == text
        for line in lines:
            assert stringWidth(line, FONT, 10) <= ITEM_COLUMNS.description_max_width

    def test_overlong_word_gets_own_line(self):
        word = "x" * 200
        assert wrap_text(f"a {word} b", FONT, 10, 50) == ["a", word, "b"]

    def test_blank(self):
        assert wrap_text("", FONT, 10, 100) == []
        assert wrap_text(None, FONT, 10, 100) == []


class TestInvoicePDFRenderer:
    """Tests for InvoicePDFRenderer."""

    @pytest.fixture
    def renderer(self):
        return InvoicePDFRenderer()

    def test_render_produces_pdf_with_content(self, renderer):
        pdf_bytes = renderer.render(make_document())

        assert pdf_bytes.startswith(b"%PDF")
        assert b"Acme Corp" in pdf_bytes
        assert b"Studio LLC" in pdf_bytes
        assert b"$495.00" in pdf_bytes
        assert b"Backend work" in pdf_bytes
        assert b"Jan 20, 2025" in pdf_bytes

    def test_render_is_deterministic(self, renderer):
        assert renderer.render(make_document()) == renderer.render(make_document())

    def test_no_business_uses_placeholder_company(self, renderer):
        parties = make_parties(business=None, bill_to={}, has_bill_to=False, terms="")
        pdf_bytes, report = renderer.render_with_report(make_document(parties=parties))

        assert b"Your Company" in pdf_bytes
        assert b"Client" in pdf_bytes
        assert b"Payment Information" not in pdf_bytes
        assert report.overflow is False

    def test_overflow_is_reported_not_raised(self, renderer, caplog):
        lines = [
            InvoiceLine(f"Task {i}", date(2025, 1, 1), "1", "10.00", "10.00")
            for i in range(60)
        ]

        pdf_bytes, report = renderer.render_with_report(make_document(lines=lines))

        assert pdf_bytes.startswith(b"%PDF")
        assert report.overflow is True
        assert report.body_bottom < report.footer_top
        assert "overflows a single page" in caplog.text

    def test_short_invoice_does_not_overflow(self, renderer):
        _, report = renderer.render_with_report(make_document())

        assert report.overflow is False

    def test_failure_raises_pdf_render_error(self, renderer):
        document = make_document()
        document.parties = None

        with pytest.raises(PDFRenderError):
            renderer.render(document)

    def test_footer_height(self):
        assert InvoicePDFRenderer.footer_height(False, []) == 24
        assert InvoicePDFRenderer.footer_height(True, ["a", "b"]) == 9 * 11 + 14 + 2 * 11 + 24


class TestBuildInvoiceDocument:
    """Tests for build_invoice_document."""

    def test_items_sorted_and_formatted(self):
        items = [
            SimpleNamespace(description="Second", item_date=date(2025, 1, 2), quantity=Decimal("1.50"),
                            rate=Decimal("20"), amount=Decimal("30"), position=1),
            SimpleNamespace(description="First", item_date=date(2025, 1, 1), quantity=Decimal("8.00"),
                            rate=Decimal("50"), amount=Decimal("400"), position=0),
        ]
        invoice = SimpleNamespace(
            invoice_number=7,
            issue_date=date(2025, 1, 5),
            due_date=date(2025, 1, 20),
            items=items,
            subtotal=Decimal("430"),
            tax=Decimal("0"),
            total=Decimal("430"),
            invoice_metadata=None,
            terms=None,
            notes=None,
        )
        client = SimpleNamespace(
            name="Acme Corp", address="", city="", state="", postal_code="", country="",
            target_email=None, cc_email=None, terms="",
        )
        invoice.invoice_metadata = build_invoice_metadata(client, None)
        parties = resolve_invoice_parties(invoice, None, None)

        document = build_invoice_document(invoice, parties)

        assert document.invoice_number == "7"
        assert [line.description for line in document.lines] == ["First", "Second"]
        assert document.lines[1].quantity == "1.5"
        assert document.lines[0].amount == "400.00"
        assert document.total == "430.00"
        assert document.parties.bill_to["name"] == "Acme Corp"

    def test_snapshot_name_is_rendered_over_live_client(self):
        client = SimpleNamespace(
            name="Snapshot Co", address="", city="", state="", postal_code="", country="",
            target_email=None, cc_email=None, terms="",
        )
        invoice = SimpleNamespace(
            invoice_number=8,
            issue_date=date(2025, 1, 5),
            due_date=date(2025, 1, 20),
            items=[],
            subtotal=Decimal("0"),
            tax=Decimal("0"),
            total=Decimal("0"),
            invoice_metadata=build_invoice_metadata(client, None),
            terms=None,
            notes=None,
        )
        client.name = "Renamed Co"

        document = build_invoice_document(invoice, resolve_invoice_parties(invoice, client, None))
        pdf_bytes = InvoicePDFRenderer().render(document)

        assert b"Snapshot Co" in pdf_bytes
        assert b"Renamed Co" not in pdf_bytes
