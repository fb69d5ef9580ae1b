"""
Client model.

WHAT: SQLAlchemy model for the people and companies that get invoiced.

WHY: A client row carries everything the invoicing pipeline needs when
nothing has been snapshotted yet: billing address, recipient emails,
default rate, reminder cadence, preferred email template, Drive folder
and payment terms.
"""

import uuid
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional, TYPE_CHECKING

from sqlalchemy import (
    Date,
    DateTime,
    ForeignKey,
    Numeric,
    String,
    Text,
    Uuid,
    Enum as SQLEnum,
)
from sqlalchemy.orm import relationship, Mapped, mapped_column

from app.models.base import Base

if TYPE_CHECKING:
    from app.models.email_template import EmailTemplate
    from app.models.invoice import Invoice


class ReminderType(str, Enum):
    """
    How often a client is included in the unpaid-invoice reminder.

    - NONE: never
    - WEEKLY_FRIDAY: every Friday
    - MONTHLY_END: on the last day of each month
    """

    NONE = "none"
    WEEKLY_FRIDAY = "weekly_friday"
    MONTHLY_END = "monthly_end"


class Client(Base):
    """
    Invoiced party.

    Attributes:
        target_email: Primary invoice recipient (may be empty, in which case
            a send needs an explicit recipient override)
        cc_email: Optional copy recipient for invoice emails
        rate: Default hourly rate used to prefill line items
        email_template_id: Template used for template-based sends
        google_drive_folder_url: Destination folder for PDF archival
        terms: Payment terms printed on the invoice
    """

    __tablename__ = "clients"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)

    # Billing address
    address: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    city: Mapped[str] = mapped_column(String(120), nullable=False, default="")
    state: Mapped[str] = mapped_column(String(120), nullable=False, default="")
    postal_code: Mapped[str] = mapped_column(String(32), nullable=False, default="")
    country: Mapped[str] = mapped_column(String(120), nullable=False, default="")

    # Contact
    target_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    cc_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    rate: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=0)

    # WHY: values_callable stores the lowercase value, not the member name
    reminder_type: Mapped[ReminderType] = mapped_column(
        SQLEnum(
            ReminderType,
            name="remindertype",
            values_callable=lambda enum: [e.value for e in enum],
        ),
        nullable=False,
        default=ReminderType.NONE,
        index=True,
    )
    reminder_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    email_template_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("email_templates.id", ondelete="SET NULL"),
        nullable=True,
    )
    google_drive_folder_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    terms: Mapped[str] = mapped_column(Text, nullable=False, default="")

    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    email_template: Mapped[Optional["EmailTemplate"]] = relationship("EmailTemplate")
    invoices: Mapped[List["Invoice"]] = relationship(
        "Invoice",
        back_populates="client",
    )

    def __repr__(self) -> str:
        return f"<Client(id={self.id}, name={self.name})>"
