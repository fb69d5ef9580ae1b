"""
Invoice Service.

WHAT: Business logic for creating, editing, deleting and settling
invoices, and for producing their PDFs on demand.

WHY: Creating an invoice is more than an insert: totals are computed
from the items, the client and business details are snapshotted, and
the invoice number follows the client's sequence. Keeping that here lets
the API layer stay a thin translation of HTTP to service calls.

HOW: Coordinates InvoiceDAO, ClientDAO and BusinessSettingsDAO with the
totals calculator and snapshotter. Storage is optional and only used
for PDF cleanup and signed URLs.
"""

import logging
import uuid
from datetime import date
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import (
    ClientNotFoundError,
    InvoiceNotFoundError,
    InvoicePDFNotGeneratedError,
    S3Error,
    ValidationError,
)
from app.dao.business_settings import BusinessSettingsDAO
from app.dao.client import ClientDAO
from app.dao.invoice import InvoiceDAO
from app.models.invoice import Invoice, InvoiceStatus
from app.schemas.invoice import InvoiceCreate, InvoiceItemInput, InvoiceUpdate
from app.services.invoice_snapshot import (
    ResolvedParties,
    build_invoice_metadata,
    resolve_invoice_parties,
)
from app.services.invoice_totals import (
    MAX_AMOUNT,
    InvoiceTotals,
    calculate_invoice_totals,
    to_decimal,
)
from app.services.pdf_service import InvoicePDFRenderer, build_invoice_document
from app.services.storage_service import StorageService

logger = logging.getLogger(__name__)

# Columns an update may not null out
_REQUIRED_FIELDS = {"invoice_number", "issue_date", "due_date", "tax_rate"}


def _item_rows(
    items: Sequence[InvoiceItemInput],
    default_date: date,
) -> Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]:
    """Quantity/rate pairs for the totals calculator, and item column values."""
    totals_items = [{"quantity": item.quantity, "rate": item.rate} for item in items]
    return totals_items, [
        {
            "description": item.description,
            "raw_description": item.raw_description,
            "quantity": to_decimal(item.quantity),
            "rate": to_decimal(item.rate),
            "item_date": item.item_date or default_date,
        }
        for item in items
    ]


def _require_storable(totals: InvoiceTotals) -> None:
    """Reject totals that don't fit the money columns."""
    if totals.total > MAX_AMOUNT:
        raise ValidationError(
            message=f"Invoice total cannot exceed {MAX_AMOUNT:,}",
            total=format(totals.total, "f"),
        )


class InvoiceService:
    """
    Service for invoice lifecycle operations.

    Dispatch (send / preview / archive) lives in InvoiceDispatchService.
    """

    def __init__(
        self,
        session: AsyncSession,
        storage: Optional[StorageService] = None,
    ):
        """
        Args:
            session: Async database session
            storage: PDF storage, needed for delete cleanup and signed URLs
        """
        self.session = session
        self.storage = storage
        self.invoice_dao = InvoiceDAO(session)
        self.client_dao = ClientDAO(session)
        self.settings_dao = BusinessSettingsDAO(session)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_invoice(self, invoice_id: uuid.UUID) -> Invoice:
        """
        Get an invoice with client and items.

        Raises:
            InvoiceNotFoundError: If it doesn't exist
        """
        invoice = await self.invoice_dao.get_with_relations(invoice_id)
        if invoice is None:
            raise InvoiceNotFoundError(invoice_id=str(invoice_id))
        return invoice

    async def list_invoices(
        self,
        status: Optional[InvoiceStatus] = None,
        client_id: Optional[uuid.UUID] = None,
    ) -> List[Tuple[Invoice, ResolvedParties]]:
        """List invoices paired with their resolved parties."""
        invoices = await self.invoice_dao.list_with_relations(status=status, client_id=client_id)
        business = await self.settings_dao.get_current()
        return [
            (invoice, resolve_invoice_parties(invoice, invoice.client, business))
            for invoice in invoices
        ]

    async def resolve_parties(self, invoice: Invoice) -> ResolvedParties:
        """Snapshot-first bill-to/business/terms for an invoice."""
        business = await self.settings_dao.get_current()
        return resolve_invoice_parties(invoice, invoice.client, business)

    async def get_next_invoice_number(self, client_id: Optional[uuid.UUID]) -> int:
        return await self.invoice_dao.get_next_invoice_number(client_id)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def _require_client(self, client_id: Optional[uuid.UUID]):
        if client_id is None:
            return None
        client = await self.client_dao.get_by_id(client_id)
        if client is None:
            raise ClientNotFoundError(client_id=str(client_id))
        return client

    async def create_invoice(self, data: InvoiceCreate) -> Invoice:
        """
        Create an invoice from form data.

        HOW:
        1. Check the client exists
        2. Compute amounts and totals from the items
        3. Snapshot client + business details into metadata
        4. Insert invoice and items with status pending

        Raises:
            ClientNotFoundError: Unknown client_id
            ValidationError: Total too large to store
        """
        client = await self._require_client(data.client_id)
        business = await self.settings_dao.get_current()

        issue_date = data.issue_date or date.today()
        totals_items, item_rows = _item_rows(data.items, issue_date)
        totals = calculate_invoice_totals(totals_items, data.tax_rate)
        _require_storable(totals)
        for row, amount in zip(item_rows, totals.amounts):
            row["amount"] = amount

        invoice_number = data.invoice_number
        if invoice_number is None:
            invoice_number = await self.invoice_dao.get_next_invoice_number(data.client_id)

        metadata = build_invoice_metadata(client, business, terms=data.terms, notes=data.notes)

        invoice = await self.invoice_dao.create_with_items(
            item_rows,
            invoice_number=invoice_number,
            client_id=data.client_id,
            status=InvoiceStatus.PENDING,
            issue_date=issue_date,
            due_date=data.due_date,
            tax_rate=to_decimal(data.tax_rate),
            subtotal=totals.subtotal,
            tax=totals.tax,
            total=totals.total,
            invoice_metadata=metadata,
            notes=metadata["notes"],
            terms=metadata["terms"] or None,
        )

        logger.info(
            f"Created invoice {invoice.invoice_number} ({invoice.id}) total {totals.as_strings()['total']}",
            extra={"invoice_id": str(invoice.id), "client_id": str(data.client_id)},
        )
        return invoice

    async def update_invoice(self, invoice_id: uuid.UUID, data: InvoiceUpdate) -> Invoice:
        """
        Update an invoice.

        When items are supplied they replace the existing ones; totals are
        recomputed whenever items or tax_rate change. The metadata
        snapshot is left as it was.

        Raises:
            InvoiceNotFoundError: Unknown invoice
            ClientNotFoundError: Unknown client_id
            ValidationError: due_date before issue_date, or total too large to store
        """
        invoice = await self.get_invoice(invoice_id)
        changes = data.model_dump(exclude_unset=True, exclude={"items"})

        if "client_id" in changes:
            invoice.client = await self._require_client(changes.pop("client_id"))

        for field, value in changes.items():
            if value is None and field in _REQUIRED_FIELDS:
                continue
            if field == "tax_rate":
                value = to_decimal(value)
            setattr(invoice, field, value)

        if invoice.due_date < invoice.issue_date:
            raise ValidationError(
                message="due_date cannot be before issue_date",
                invoice_id=str(invoice_id),
            )

        if data.items is not None:
            totals_items, item_rows = _item_rows(data.items, invoice.issue_date)
        else:
            totals_items = [{"quantity": i.quantity, "rate": i.rate} for i in invoice.items]
            item_rows = None

        if item_rows is not None or "tax_rate" in changes:
            totals = calculate_invoice_totals(totals_items, invoice.tax_rate)
            _require_storable(totals)
            invoice.subtotal = totals.subtotal
            invoice.tax = totals.tax
            invoice.total = totals.total
            if item_rows is not None:
                for row, amount in zip(item_rows, totals.amounts):
                    row["amount"] = amount
                await self.invoice_dao.replace_items(invoice, item_rows)

        await self.session.flush()
        logger.info(f"Updated invoice {invoice.invoice_number} ({invoice.id})")
        return await self.get_invoice(invoice_id)

    async def delete_invoice(self, invoice_id: uuid.UUID) -> None:
        """
        Delete an invoice and its items.

        The stored PDF is removed first, best-effort: a storage failure is
        logged and the row is deleted anyway.
        """
        invoice = await self.get_invoice(invoice_id)

        if invoice.file_path and self.storage is not None:
            try:
                await self.storage.delete(invoice.file_path)
            except S3Error as e:
                logger.warning(
                    f"Could not delete PDF {invoice.file_path} for invoice {invoice_id}: {e.message}"
                )

        await self.invoice_dao.delete(invoice.id)
        logger.info(f"Deleted invoice {invoice.invoice_number} ({invoice_id})")

    async def mark_paid(self, invoice_id: uuid.UUID, paid_date: date) -> Invoice:
        """
        Mark an invoice paid on paid_date (stored as midnight).

        Re-marking overwrites the date; the status stays paid.
        """
        invoice = await self.get_invoice(invoice_id)
        await self.invoice_dao.mark_paid(invoice, paid_date)
        logger.info(f"Invoice {invoice.invoice_number} ({invoice_id}) marked paid on {paid_date}")
        return invoice

    async def mark_transferred(self, invoice_id: uuid.UUID, transferred_date: date) -> Invoice:
        """Record the transfer date. Status is unchanged."""
        invoice = await self.get_invoice(invoice_id)
        await self.invoice_dao.mark_transferred(invoice, transferred_date)
        logger.info(
            f"Invoice {invoice.invoice_number} ({invoice_id}) marked transferred on {transferred_date}"
        )
        return invoice

    # ------------------------------------------------------------------
    # PDFs
    # ------------------------------------------------------------------

    async def render_pdf(
        self,
        invoice_id: uuid.UUID,
        renderer: InvoicePDFRenderer,
    ) -> Tuple[Invoice, bytes]:
        """
        Render an invoice's PDF on demand, without storing it.

        Raises:
            InvoiceNotFoundError: Unknown invoice
            PDFRenderError: Rendering failed
        """
        invoice = await self.get_invoice(invoice_id)
        parties = await self.resolve_parties(invoice)
        return invoice, renderer.render(build_invoice_document(invoice, parties))

    async def get_pdf_url(self, invoice_id: uuid.UUID) -> Tuple[str, int]:
        """
        Signed URL for the stored PDF.

        Returns:
            (url, expires_in_seconds)

        Raises:
            InvoicePDFNotGeneratedError: Nothing stored yet
            S3Error: Signing failed
        """
        invoice = await self.get_invoice(invoice_id)
        if not invoice.file_path or self.storage is None:
            raise InvoicePDFNotGeneratedError(invoice_id=str(invoice_id))

        expires_in = settings.S3_SIGNED_URL_EXPIRES_SECONDS
        url = await self.storage.generate_signed_url(invoice.file_path, expires_in)
        return url, expires_in
