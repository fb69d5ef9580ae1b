"""
Invoice Data Access Object (DAO).

WHAT: Database operations for the Invoice and InvoiceItem models.

WHY: The DAO pattern:
1. Separates data access from business logic
2. Keeps the eager-loading rules (client + items) in one place
3. Encapsulates the status transitions used by the dispatch pipeline

HOW: Extends BaseDAO with invoice-specific queries:
- Invoice + client + items in one logical call (selectinload)
- Per-client invoice numbering
- Item replacement
- Sent / paid / transferred transitions
- Unpaid lookup for the reminder scan
"""

import uuid
from datetime import date, datetime, time
from typing import Any, Dict, Iterable, List, Optional, Sequence

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.dao.base import BaseDAO
from app.models.invoice import Invoice, InvoiceItem, InvoiceStatus


def _midnight(day: date) -> datetime:
    """Calendar date -> timestamp at the start of that day."""
    return datetime.combine(day, time.min)


class InvoiceDAO(BaseDAO[Invoice]):
    """
    Data Access Object for Invoice model.

    WHAT: Provides CRUD and query operations for invoices.

    HOW: Every read that feeds a renderer goes through
    get_with_relations so client and items are loaded eagerly; lazy
    loading is not available on an AsyncSession.
    """

    def __init__(self, session: AsyncSession):
        """
        Initialize InvoiceDAO.

        Args:
            session: Async database session
        """
        super().__init__(Invoice, session)

    def _with_relations(self):
        return select(Invoice).options(
            selectinload(Invoice.client),
            selectinload(Invoice.items),
        )

    async def get_with_relations(self, invoice_id: uuid.UUID) -> Optional[Invoice]:
        """
        Get an invoice together with its client and items.

        Args:
            invoice_id: Invoice ID

        Returns:
            Invoice with client and items loaded, None if not found
        """
        result = await self.session.execute(
            self._with_relations().where(Invoice.id == invoice_id)
        )
        return result.scalar_one_or_none()

    async def list_with_relations(
        self,
        status: Optional[InvoiceStatus] = None,
        client_id: Optional[uuid.UUID] = None,
        skip: int = 0,
        limit: int = 500,
    ) -> List[Invoice]:
        """
        List invoices, newest issue date first.

        Args:
            status: Optional stored status filter
            client_id: Optional client filter
            skip: Pagination offset
            limit: Pagination limit

        Returns:
            Invoices with client and items loaded
        """
        query = self._with_relations()

        if status is not None:
            query = query.where(Invoice.status == status)
        if client_id is not None:
            query = query.where(Invoice.client_id == client_id)

        query = (
            query.order_by(Invoice.issue_date.desc(), Invoice.invoice_number.desc())
            .offset(skip)
            .limit(limit)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def get_next_invoice_number(self, client_id: Optional[uuid.UUID]) -> int:
        """
        Get the next invoice number for a client.

        WHY: Numbers are sequential per client, so two clients can both
        have an invoice #1.

        Returns:
            max(invoice_number) + 1, or 1 for no client / no invoices yet
        """
        if client_id is None:
            return 1

        result = await self.session.execute(
            select(func.max(Invoice.invoice_number)).where(
                Invoice.client_id == client_id
            )
        )
        current = result.scalar_one_or_none()
        return (current or 0) + 1

    @staticmethod
    def _build_items(items: Iterable[Dict[str, Any]]) -> List[InvoiceItem]:
        return [
            InvoiceItem(position=position, **item)
            for position, item in enumerate(items)
        ]

    async def create_with_items(
        self,
        items: Sequence[Dict[str, Any]],
        **fields: Any,
    ) -> Invoice:
        """
        Create an invoice and its line items in one flush.

        Args:
            items: Item column values, in display order
            **fields: Invoice column values

        Returns:
            The created invoice with client and items loaded
        """
        invoice = Invoice(**fields)
        invoice.items = self._build_items(items)
        self.session.add(invoice)
        await self.session.flush()

        result = await self.session.execute(
            self._with_relations()
            .where(Invoice.id == invoice.id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one()

    async def replace_items(
        self,
        invoice: Invoice,
        items: Sequence[Dict[str, Any]],
    ) -> Invoice:
        """
        Replace every line item of an invoice.

        HOW: Assigning a new collection lets delete-orphan remove the old
        rows. Callers must pass an invoice loaded with get_with_relations.
        """
        invoice.items = self._build_items(items)
        await self.session.flush()
        return invoice

    async def mark_sent(self, invoice: Invoice) -> Invoice:
        """Set status to sent and stamp sent_at with server time."""
        invoice.status = InvoiceStatus.SENT
        invoice.sent_at = datetime.utcnow()
        await self.session.flush()
        return invoice

    async def mark_paid(self, invoice: Invoice, paid_date: date) -> Invoice:
        """
        Mark invoice as paid on the given date.

        WHY: Idempotent: re-marking overwrites paid_at, status stays paid.
        """
        invoice.status = InvoiceStatus.PAID
        invoice.paid_at = _midnight(paid_date)
        await self.session.flush()
        return invoice

    async def mark_transferred(self, invoice: Invoice, transferred_date: date) -> Invoice:
        """Record when the money was transferred. Status is left alone."""
        invoice.transferred_at = _midnight(transferred_date)
        await self.session.flush()
        return invoice

    async def set_file_path(self, invoice: Invoice, file_path: str) -> Invoice:
        invoice.file_path = file_path
        await self.session.flush()
        return invoice

    async def backfill_notes_and_terms(
        self,
        invoice: Invoice,
        notes: Optional[str],
        terms: Optional[str],
    ) -> bool:
        """
        Fill notes and terms only where they are still empty.

        Returns:
            True if anything was written
        """
        changed = False
        if not invoice.notes and notes:
            invoice.notes = notes
            changed = True
        if not invoice.terms and terms:
            invoice.terms = terms
            changed = True

        if changed:
            await self.session.flush()
        return changed

    async def get_unpaid_for_clients(
        self,
        client_ids: Sequence[uuid.UUID],
    ) -> List[Invoice]:
        """
        Get every non-paid invoice for the given clients.

        Returns:
            Invoices ordered by due date (oldest first)
        """
        if not client_ids:
            return []

        result = await self.session.execute(
            select(Invoice)
            .where(
                Invoice.client_id.in_(list(client_ids)),
                Invoice.status != InvoiceStatus.PAID,
            )
            .order_by(Invoice.due_date, Invoice.invoice_number)
        )
        return list(result.scalars().all())
