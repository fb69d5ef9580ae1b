"""
Invoice schemas for API request/response validation.

WHAT: Pydantic schemas for invoice data validation.

WHY: Schemas provide:
1. Type-safe request/response handling
2. Automatic validation with clear error messages
3. OpenAPI documentation generation
4. Money serialized as exact two-decimal strings

HOW: Uses Pydantic v2 with Field validators and model_config. Amounts
are never accepted from the client: subtotal, tax and total are always
recomputed from the items.
"""

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.models.invoice import InvoiceStatus
from app.schemas.common import Money
from app.services.invoice_totals import MAX_AMOUNT


# ============================================================================
# Request Schemas
# ============================================================================


class InvoiceItemInput(BaseModel):
    """One line item as submitted by the invoice form."""

    model_config = ConfigDict(str_strip_whitespace=True)

    description: str = Field(..., min_length=1, max_length=2000)
    raw_description: Optional[str] = Field(
        default=None,
        max_length=5000,
        description="Internal work note, never shown to the client",
    )
    quantity: Decimal = Field(default=Decimal("1"), gt=0, le=MAX_AMOUNT)
    rate: Decimal = Field(default=Decimal("0"), ge=0, le=MAX_AMOUNT)
    item_date: Optional[date] = Field(default=None, description="Defaults to the issue date")


class InvoiceCreate(BaseModel):
    """
    Schema for creating an invoice.

    invoice_number defaults to the client's next number.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    client_id: Optional[uuid.UUID] = None
    invoice_number: Optional[int] = Field(default=None, ge=1)
    issue_date: Optional[date] = Field(default=None, description="Defaults to today")
    due_date: date
    tax_rate: Decimal = Field(default=Decimal("0"), ge=0, le=100, description="Tax percentage")
    items: List[InvoiceItemInput] = Field(default_factory=list)
    notes: Optional[str] = Field(default=None, max_length=5000)
    terms: Optional[str] = Field(default=None, max_length=5000)

    @model_validator(mode="after")
    def due_not_before_issue(self) -> "InvoiceCreate":
        if self.issue_date and self.due_date < self.issue_date:
            raise ValueError("due_date cannot be before issue_date")
        return self


class InvoiceUpdate(BaseModel):
    """
    Schema for updating an invoice.

    When items is present the whole item list is replaced and totals are
    recomputed. The metadata snapshot is never touched.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    client_id: Optional[uuid.UUID] = None
    invoice_number: Optional[int] = Field(default=None, ge=1)
    issue_date: Optional[date] = None
    due_date: Optional[date] = None
    tax_rate: Optional[Decimal] = Field(default=None, ge=0, le=100)
    items: Optional[List[InvoiceItemInput]] = None
    notes: Optional[str] = Field(default=None, max_length=5000)
    terms: Optional[str] = Field(default=None, max_length=5000)


class MarkPaidRequest(BaseModel):
    paid_date: date = Field(..., description="Calendar date the payment arrived")


class MarkTransferredRequest(BaseModel):
    transferred_date: date = Field(..., description="Calendar date the money was transferred")


# ============================================================================
# Response Schemas
# ============================================================================


class InvoiceItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    description: str
    raw_description: Optional[str]
    quantity: Decimal
    rate: Money
    amount: Money
    item_date: date
    position: int


class InvoiceClientSummary(BaseModel):
    """The live client, for linking in the UI."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    target_email: Optional[str]
    cc_email: Optional[str]
    google_drive_folder_url: Optional[str]


class InvoiceResponse(BaseModel):
    """
    Invoice as returned by the API.

    WHY: display_status is "overdue" for late unpaid invoices even though
    the stored status is still pending or sent. bill_to is resolved from
    the snapshot first, so renamed clients don't change old invoices.
    """

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    invoice_number: int
    client_id: Optional[uuid.UUID]
    client: Optional[InvoiceClientSummary] = None
    status: InvoiceStatus
    display_status: str
    subtotal: Money
    tax_rate: Decimal
    tax: Money
    total: Money
    issue_date: date
    due_date: date
    sent_at: Optional[datetime]
    paid_at: Optional[datetime]
    transferred_at: Optional[datetime]
    file_path: Optional[str]
    metadata: Optional[Dict[str, Any]] = Field(default=None, validation_alias="invoice_metadata")
    bill_to: Dict[str, Any] = Field(default_factory=dict)
    notes: Optional[str]
    terms: Optional[str]
    items: List[InvoiceItemResponse] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class NextInvoiceNumberResponse(BaseModel):
    invoice_number: int


class InvoicePDFUrlResponse(BaseModel):
    url: str
    expires_in: int
