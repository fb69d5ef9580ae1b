"""
Invoice and InvoiceItem models.

WHAT: SQLAlchemy models for invoices and their line items.

WHY: Invoices are financial documents that:
1. Track amounts owed by clients
2. Record sent / paid / transferred timestamps
3. Point at the generated PDF in object storage
4. Keep an immutable snapshot of who was billed and by whom

HOW: Uses SQLAlchemy 2.0 with:
- Client relationship (nullable, SET NULL on client delete)
- Items relationship (cascade delete, replaced wholesale on edit)
- Status enum for the payment workflow
- Numeric(10, 2) for every money column
- A JSON `metadata` column for the snapshot
"""

import uuid
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional, TYPE_CHECKING

from sqlalchemy import (
    JSON,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    Text,
    Uuid,
    Enum as SQLEnum,
)
from sqlalchemy.orm import relationship, Mapped, mapped_column

from app.models.base import Base

if TYPE_CHECKING:
    from app.models.client import Client


class InvoiceStatus(str, Enum):
    """
    Invoice payment workflow status.

    WHY: Tracks invoice through the payment process:
    - PENDING: Created, not yet emailed
    - SENT: Emailed to the client
    - PAID: Payment received
    - OVERDUE: Kept so existing rows load; never written by this code.
      Lateness is derived from the due date (see Invoice.display_status).
    """

    PENDING = "pending"
    SENT = "sent"
    PAID = "paid"
    OVERDUE = "overdue"


class Invoice(Base):
    """
    Invoice for client billing.

    Attributes:
        invoice_number: Human-readable number, sequential per client
        client_id: Billed client (null once the client is deleted)

        Amounts (pre-rounded, written by the totals calculator):
        subtotal: Sum of item amounts
        tax_rate: Tax percentage
        tax: round2(subtotal * tax_rate / 100)
        total: subtotal + tax

        Dates:
        issue_date / due_date: Calendar dates printed on the invoice
        sent_at: Last successful email send
        paid_at: Caller-supplied payment date (midnight timestamp)
        transferred_at: Caller-supplied transfer date, independent of status

        file_path: Storage key of the generated PDF
        invoice_metadata: Snapshot of billTo / business / terms / notes
    """

    __tablename__ = "invoices"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    invoice_number: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        index=True,
        comment="Human invoice number, sequential per client",
    )

    client_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("clients.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    # WHY: values_callable ensures the enum value (lowercase) is used, not the name (UPPERCASE)
    status: Mapped[InvoiceStatus] = mapped_column(
        SQLEnum(
            InvoiceStatus,
            name="invoicestatus",
            values_callable=lambda enum: [e.value for e in enum],
        ),
        nullable=False,
        default=InvoiceStatus.PENDING,
        index=True,
    )

    # Amounts
    subtotal: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=0)
    tax_rate: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False, default=0)
    tax: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=0)
    total: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=0)

    # Dates
    issue_date: Mapped[date] = mapped_column(Date, nullable=False, default=date.today)
    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    sent_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    paid_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    transferred_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    file_path: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # WHY: "metadata" is reserved on declarative classes, so the attribute
    # name differs from the column name
    invoice_metadata: Mapped[Optional[Dict[str, Any]]] = mapped_column(
        "metadata", JSON, nullable=True
    )

    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    terms: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    client: Mapped[Optional["Client"]] = relationship("Client", back_populates="invoices")
    items: Mapped[List["InvoiceItem"]] = relationship(
        "InvoiceItem",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="InvoiceItem.position",
    )

    def __repr__(self) -> str:
        return f"<Invoice(id={self.id}, number={self.invoice_number}, status={self.status})>"

    @property
    def is_paid(self) -> bool:
        return self.status == InvoiceStatus.PAID

    @property
    def is_overdue(self) -> bool:
        """
        Check if invoice is past due date.

        WHY: Overdue is a display concept. It is computed against today's
        date every time and never written back to the status column.
        """
        if not self.due_date or self.is_paid:
            return False
        return date.today() > self.due_date

    @property
    def display_status(self) -> str:
        """Status shown to users: the stored status, or "overdue" when late."""
        if self.is_overdue:
            return InvoiceStatus.OVERDUE.value
        return InvoiceStatus(self.status).value


class InvoiceItem(Base):
    """
    Invoice line item.

    raw_description is the internal working note; only description is
    ever shown to the client.
    """

    __tablename__ = "invoice_items"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    invoice_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("invoices.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    description: Mapped[str] = mapped_column(Text, nullable=False)
    raw_description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    quantity: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=1)
    rate: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=0)
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=0)
    item_date: Mapped[date] = mapped_column(Date, nullable=False, default=date.today)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    invoice: Mapped["Invoice"] = relationship("Invoice", back_populates="items")

    def __repr__(self) -> str:
        return f"<InvoiceItem(id={self.id}, amount={self.amount})>"
