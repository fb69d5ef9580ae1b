"""
PDF generation service for invoices.

WHAT: Draws a single-page invoice with ReportLab's canvas API.

WHY: The invoice layout is fixed and has to match what clients have
always received: header, bill-to and invoice details grid, items table,
totals box, and a footer with payment information and terms anchored to
the bottom of the page.

HOW:
- reportlab.pdfgen.canvas on a Letter page with 60pt margins
- pdfmetrics.stringWidth for centering and word wrapping
- LayoutCursor tracks the current baseline as sections move down the page
- ItemColumns holds the items table column boundaries
- The footer is laid out bottom-up from an estimated height
- Output is invariant (no timestamps or random ids) so identical input
  produces identical bytes

Design decisions:
- Single page only. When the items table runs into the footer a warning
  is logged and LayoutReport.overflow is set; the page is still produced.
- Money is drawn from pre-rounded strings; nothing is recomputed here.
"""

import io
import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, List, Optional, Tuple

from reportlab.lib.pagesizes import letter
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfgen import canvas

from app.core.exceptions import PDFRenderError
from app.services.invoice_snapshot import (
    PAYMENT_INFORMATION_TITLE,
    ResolvedParties,
    payment_information_lines,
)
from app.services.invoice_totals import round2, to_decimal

logger = logging.getLogger(__name__)


# ============================================================================
# Formatting
# ============================================================================


def format_currency(amount: Any) -> str:
    """
    Format amount as USD currency.

    Args:
        amount: Decimal, number, numeric string or None

    Returns:
        Formatted currency string (e.g., "$1,234.56")
    """
    return f"${round2(to_decimal(amount)):,.2f}"


def format_money(amount: Any) -> str:
    """Plain two-decimal string (e.g., "1234.56")."""
    return format(round2(to_decimal(amount)), "f")


def format_quantity(quantity: Any) -> str:
    """Quantity without trailing zeros: 8.00 -> "8", 1.50 -> "1.5"."""
    value = to_decimal(quantity)
    if value == value.to_integral_value():
        return format(value.quantize(Decimal(1)), "f")
    return format(value.normalize(), "f")


def format_date(d: Optional[date]) -> str:
    """Long date for the details grid, e.g. "Jan 05, 2025"."""
    if d is None:
        return ""
    return d.strftime("%b %d, %Y")


def format_date_short(d: Optional[date]) -> str:
    """Short date for item rows, e.g. "01/05/25"."""
    if d is None:
        return ""
    return d.strftime("%m/%d/%y")


# ============================================================================
# Render input
# ============================================================================


@dataclass
class InvoiceLine:
    """One item row, already formatted."""

    description: str
    item_date: Optional[date]
    quantity: str
    rate: str
    amount: str


@dataclass
class InvoiceDocument:
    """Everything the renderer draws, with money as two-decimal strings."""

    invoice_number: str
    issue_date: Optional[date]
    due_date: Optional[date]
    parties: ResolvedParties
    lines: List[InvoiceLine] = field(default_factory=list)
    subtotal: str = "0.00"
    tax: str = "0.00"
    total: str = "0.00"


def build_invoice_document(invoice: Any, parties: ResolvedParties) -> InvoiceDocument:
    """
    Assemble render input from an invoice and its resolved parties.

    Args:
        invoice: Invoice with items loaded
        parties: Output of resolve_invoice_parties

    Returns:
        InvoiceDocument
    """
    lines = [
        InvoiceLine(
            description=item.description or "",
            item_date=item.item_date,
            quantity=format_quantity(item.quantity),
            rate=format_money(item.rate),
            amount=format_money(item.amount),
        )
        for item in sorted(invoice.items, key=lambda i: i.position or 0)
    ]
    return InvoiceDocument(
        invoice_number=str(invoice.invoice_number),
        issue_date=invoice.issue_date,
        due_date=invoice.due_date,
        parties=parties,
        lines=lines,
        subtotal=format_money(invoice.subtotal),
        tax=format_money(invoice.tax),
        total=format_money(invoice.total),
    )


# ============================================================================
# Layout primitives
# ============================================================================

FONT = "Helvetica"
BOLD_FONT = "Helvetica-Bold"

PAGE_WIDTH, PAGE_HEIGHT = letter
MARGIN = 60
CONTENT_WIDTH = PAGE_WIDTH - 2 * MARGIN

BLACK = 0.0
GRAY = 0.4
LIGHT_GRAY = 0.5
HEADING_GRAY = 0.3

ROW_PITCH = 14
ADDRESS_PITCH = 12
FOOTER_PITCH = 11
ITEM_FONT_SIZE = 10
FOOTER_FONT_SIZE = 9
# Approximate cap height of 10pt text above its baseline
TEXT_ASCENT = 10


def wrap_text(text: str, font: str, size: float, max_width: float) -> List[str]:
    """
    Greedy word wrap.

    Words are added to the current line while it fits in max_width. A
    single word wider than max_width gets a line of its own.

    Args:
        text: Text to wrap
        font: ReportLab font name
        size: Font size in points
        max_width: Available width in points

    Returns:
        Wrapped lines (empty for blank text)
    """
    lines: List[str] = []
    current = ""
    for word in (text or "").split():
        candidate = f"{current} {word}" if current else word
        if current and pdfmetrics.stringWidth(candidate, font, size) > max_width:
            lines.append(current)
            current = word
        else:
            current = candidate
    if current:
        lines.append(current)
    return lines


class LayoutCursor:
    """Current baseline, moving down the page as sections are drawn."""

    def __init__(self, y: float):
        self.y = y

    def down(self, amount: float) -> float:
        self.y -= amount
        return self.y


@dataclass(frozen=True)
class ItemColumns:
    """
    Items table column boundaries (left edges, in points).

    The amount column runs to the right margin.
    """

    description: float = MARGIN
    date: float = PAGE_WIDTH - MARGIN - 240
    quantity: float = PAGE_WIDTH - MARGIN - 180
    rate: float = PAGE_WIDTH - MARGIN - 110
    amount: float = PAGE_WIDTH - MARGIN - 44
    right: float = PAGE_WIDTH - MARGIN

    def bounds(self) -> List[Tuple[float, float]]:
        """(left, width) for each column, description first."""
        edges = [self.description, self.date, self.quantity, self.rate, self.amount, self.right]
        return [(left, right - left) for left, right in zip(edges, edges[1:])]

    @property
    def description_max_width(self) -> float:
        return self.date - self.description - 10


ITEM_COLUMNS = ItemColumns()


@dataclass
class LayoutReport:
    """Where the body ended and the footer began."""

    body_bottom: float
    footer_top: float
    overflow: bool = False


# ============================================================================
# Renderer
# ============================================================================


class InvoicePDFRenderer:
    """
    Draws invoice PDFs.

    WHY: Stateless and cheap to construct; one instance is created at
    startup and shared by every request.

    Usage:
        renderer = InvoicePDFRenderer()
        pdf_bytes = renderer.render(document)
    """

    def __init__(self, columns: ItemColumns = ITEM_COLUMNS):
        self.columns = columns

    def render(self, document: InvoiceDocument) -> bytes:
        """
        Render an invoice to PDF bytes.

        Raises:
            PDFRenderError: If ReportLab fails
        """
        pdf_bytes, _ = self.render_with_report(document)
        return pdf_bytes

    def render_with_report(self, document: InvoiceDocument) -> Tuple[bytes, LayoutReport]:
        """
        Render an invoice and report how the page was filled.

        Returns:
            (pdf_bytes, LayoutReport)

        Raises:
            PDFRenderError: If ReportLab fails
        """
        buffer = io.BytesIO()
        try:
            pdf = canvas.Canvas(
                buffer,
                pagesize=letter,
                invariant=1,
                pageCompression=0,
            )
            pdf.setTitle(f"Invoice {document.invoice_number}")

            cursor = LayoutCursor(PAGE_HEIGHT - MARGIN)
            self._draw_header(pdf, cursor, document.parties)
            self._draw_bill_to(pdf, cursor, document)
            self._draw_items(pdf, cursor, document.lines)
            body_bottom = self._draw_totals(pdf, cursor, document)
            footer_top = self._draw_footer(pdf, document.parties)

            pdf.showPage()
            pdf.save()
        except Exception as e:
            logger.error(
                f"Failed to render PDF for invoice {document.invoice_number}: {e}",
                exc_info=True,
            )
            raise PDFRenderError(
                message=f"Failed to render invoice PDF: {e}",
                invoice_number=document.invoice_number,
            ) from e

        report = LayoutReport(
            body_bottom=body_bottom,
            footer_top=footer_top,
            overflow=body_bottom < footer_top,
        )
        if report.overflow:
            logger.warning(
                f"Invoice {document.invoice_number} overflows a single page: "
                f"items end at y={body_bottom:.0f}, footer starts at y={footer_top:.0f}",
                extra={"invoice_number": document.invoice_number},
            )

        return buffer.getvalue(), report

    # ------------------------------------------------------------------
    # Sections
    # ------------------------------------------------------------------

    @staticmethod
    def _text(pdf, x, y, text, font=FONT, size=10, gray=BLACK):
        pdf.setFont(font, size)
        pdf.setFillGray(gray)
        pdf.drawString(x, y, text or "")

    def _centered(self, pdf, left, width, y, text, font=FONT, size=10, gray=BLACK):
        text_width = pdfmetrics.stringWidth(text, font, size)
        self._text(pdf, left + (width - text_width) / 2, y, text, font, size, gray)

    def _draw_header(self, pdf, cursor: LayoutCursor, parties: ResolvedParties) -> None:
        company = parties.business_value("company_name", "Your Company")
        self._text(pdf, MARGIN, cursor.y, company, BOLD_FONT, 18)
        self._text(
            pdf, PAGE_WIDTH - MARGIN - 100, cursor.y, "INVOICE", BOLD_FONT, 26, LIGHT_GRAY
        )
        cursor.down(18)

        if parties.business is not None:
            business = parties.business_value
            city_line = (
                f"{business('city')}, {business('state')} {business('postal_code')}"
            )
            for line in (business("owner_name"), business("address"), city_line, business("country")):
                self._text(pdf, MARGIN, cursor.y, line, gray=GRAY)
                cursor.down(ADDRESS_PITCH)

        cursor.down(30)

    def _draw_bill_to(self, pdf, cursor: LayoutCursor, document: InvoiceDocument) -> None:
        parties = document.parties
        bill_to_y = cursor.y

        self._text(pdf, MARGIN, cursor.y, "BILL TO:", BOLD_FONT, 9, LIGHT_GRAY)
        cursor.down(ROW_PITCH)
        self._text(
            pdf, MARGIN, cursor.y, parties.bill_to_value("name", "Client"), BOLD_FONT, 11
        )
        cursor.down(ROW_PITCH)

        if parties.has_bill_to:
            value = parties.bill_to_value
            city_line = f"{value('city')}, {value('state')} {value('postal_code')}"
            for line in (value("address"), city_line, value("country")):
                self._text(pdf, MARGIN, cursor.y, line, gray=GRAY)
                cursor.down(ADDRESS_PITCH)

        # Details grid on the right, aligned with "BILL TO:"
        label_x = PAGE_WIDTH - MARGIN - 180
        value_x = PAGE_WIDTH - MARGIN - 80
        rows = (
            ("Invoice#", document.invoice_number, BOLD_FONT),
            ("Invoice Date", format_date(document.issue_date), FONT),
            ("Due Date", format_date(document.due_date), FONT),
        )
        detail_y = bill_to_y
        for label, text, font in rows:
            self._text(pdf, label_x, detail_y, label, gray=LIGHT_GRAY)
            self._text(pdf, value_x, detail_y, text, font)
            detail_y -= ROW_PITCH

        cursor.down(30)

    def _draw_items(self, pdf, cursor: LayoutCursor, lines: List[InvoiceLine]) -> None:
        columns = self.columns.bounds()

        pdf.setFillGray(0.25)
        pdf.rect(MARGIN, cursor.y - 4, CONTENT_WIDTH, 18, stroke=0, fill=1)
        headers = ("Item Description", "Date", "Qty", "Rate", "Amount")
        for (left, width), header in zip(columns, headers):
            self._centered(pdf, left, width, cursor.y + 2, header, BOLD_FONT, 10, gray=1.0)
        cursor.down(ROW_PITCH)

        (desc_left, _), date_col, qty_col, rate_col, amount_col = columns
        for line in lines:
            wrapped = wrap_text(
                line.description, FONT, ITEM_FONT_SIZE, self.columns.description_max_width
            )
            first = wrapped[0] if wrapped else ""

            self._text(pdf, desc_left, cursor.y, first)
            self._centered(pdf, *date_col, cursor.y, format_date_short(line.item_date), gray=GRAY)
            self._centered(pdf, *qty_col, cursor.y, line.quantity, gray=GRAY)
            self._centered(pdf, *rate_col, cursor.y, line.rate, gray=GRAY)
            self._centered(pdf, *amount_col, cursor.y, line.amount, BOLD_FONT)
            cursor.down(ROW_PITCH)

            for extra in wrapped[1:]:
                self._text(pdf, desc_left, cursor.y, extra)
                cursor.down(ROW_PITCH)

            pdf.setStrokeGray(0.9)
            pdf.setLineWidth(0.5)
            pdf.line(MARGIN, cursor.y + 4, PAGE_WIDTH - MARGIN, cursor.y + 4)
            cursor.down(8)

        cursor.down(15)

    def _draw_totals(self, pdf, cursor: LayoutCursor, document: InvoiceDocument) -> float:
        """Draw subtotal, tax and the TOTAL box. Returns the box's bottom edge."""
        label_x = PAGE_WIDTH - MARGIN - 180
        value_x = PAGE_WIDTH - MARGIN - 60

        self._text(pdf, label_x, cursor.y, "Subtotal", gray=LIGHT_GRAY)
        self._text(pdf, value_x, cursor.y, document.subtotal)
        cursor.down(ROW_PITCH)

        self._text(pdf, label_x, cursor.y, "Tax", gray=LIGHT_GRAY)
        self._text(pdf, value_x, cursor.y, document.tax)
        cursor.down(8)

        pdf.setStrokeGray(0.8)
        pdf.setLineWidth(1)
        pdf.line(label_x, cursor.y, PAGE_WIDTH - MARGIN, cursor.y)
        cursor.down(ROW_PITCH)

        box_bottom = cursor.y - 6
        pdf.setFillGray(0.95)
        pdf.rect(label_x, box_bottom, PAGE_WIDTH - MARGIN - label_x, 24, stroke=0, fill=1)
        self._text(pdf, label_x + 4, cursor.y + 2, "TOTAL", BOLD_FONT, 13)
        self._text(pdf, value_x, cursor.y + 2, format_currency(document.total), BOLD_FONT, 13)

        return box_bottom

    @staticmethod
    def footer_height(has_payment_info: bool, terms_lines: List[str]) -> int:
        """
        Estimated footer height.

        Nine footer lines for payment information (heading, seven fields,
        spacing), fourteen points for the terms heading, one footer line
        per wrapped terms line, plus 24 points of padding.
        """
        payment_lines = 9 if has_payment_info else 0
        terms_heading = ROW_PITCH if terms_lines else 0
        return payment_lines * FOOTER_PITCH + terms_heading + len(terms_lines) * FOOTER_PITCH + 24

    def _draw_footer(self, pdf, parties: ResolvedParties) -> float:
        """
        Draw payment information and terms, anchored to the bottom margin.

        Returns:
            Top edge of the footer (the bottom margin when nothing is drawn)
        """
        terms_lines = wrap_text(parties.terms, FONT, FOOTER_FONT_SIZE, CONTENT_WIDTH)
        payment_lines = payment_information_lines(parties.business)

        start_y = MARGIN + self.footer_height(bool(payment_lines), terms_lines)
        if not payment_lines and not terms_lines:
            return MARGIN

        cursor = LayoutCursor(start_y)

        if payment_lines:
            self._text(pdf, MARGIN, cursor.y, PAYMENT_INFORMATION_TITLE, BOLD_FONT, 10, HEADING_GRAY)
            cursor.down(ADDRESS_PITCH)
            for line in payment_lines:
                self._text(pdf, MARGIN, cursor.y, line, size=FOOTER_FONT_SIZE, gray=GRAY)
                cursor.down(FOOTER_PITCH)
            cursor.down(ADDRESS_PITCH)

        if terms_lines:
            self._text(pdf, MARGIN, cursor.y, "Terms & Conditions", BOLD_FONT, 10, HEADING_GRAY)
            cursor.down(ADDRESS_PITCH)
            for line in terms_lines:
                self._text(pdf, MARGIN, cursor.y, line, size=FOOTER_FONT_SIZE, gray=GRAY)
                cursor.down(FOOTER_PITCH)

        return start_y + TEXT_ASCENT
