"""
Business settings model.

WHAT: The single row describing the invoicing business itself: identity,
address, contact and bank/beneficiary details.

WHY: Printed in the invoice header and the payment information footer,
used as the sender address and as the reminder summary recipient.
At most one row exists; saving is an upsert (see BusinessSettingsDAO).
"""

import uuid
from datetime import datetime
from typing import Any, Dict

from sqlalchemy import DateTime, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base


# Field order matters: it is the order of the snapshot's "business" block
BUSINESS_FIELDS = (
    "company_name",
    "owner_name",
    "address",
    "city",
    "state",
    "postal_code",
    "country",
    "email",
    "phone",
    "beneficiary_name",
    "beneficiary_cnpj",
    "swift_code",
    "bank_name",
    "bank_address",
    "routing_number",
    "account_number",
    "account_type",
)


class BusinessSettings(Base):
    """Invoicing entity details (singleton)."""

    __tablename__ = "business_settings"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    # Identity
    company_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    owner_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")

    # Address
    address: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    city: Mapped[str] = mapped_column(String(120), nullable=False, default="")
    state: Mapped[str] = mapped_column(String(120), nullable=False, default="")
    postal_code: Mapped[str] = mapped_column(String(32), nullable=False, default="")
    country: Mapped[str] = mapped_column(String(120), nullable=False, default="")

    # Contact
    email: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    phone: Mapped[str] = mapped_column(String(64), nullable=False, default="")

    # Payment beneficiary
    beneficiary_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    beneficiary_cnpj: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    swift_code: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    bank_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    bank_address: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    routing_number: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    account_number: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    account_type: Mapped[str] = mapped_column(String(64), nullable=False, default="")

    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    def to_dict(self) -> Dict[str, Any]:
        """Plain copy of the business fields, as stored in invoice snapshots."""
        return {field: getattr(self, field) for field in BUSINESS_FIELDS}

    def __repr__(self) -> str:
        return f"<BusinessSettings(company_name={self.company_name})>"
