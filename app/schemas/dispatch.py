"""
Invoice dispatch schemas.

WHAT: Request and response bodies for send-invoice, email-preview,
save-to-drive and process-reminders.

WHY: These endpoints keep the camelCase field names the web client
already sends (invoiceId, useTemplate, saveToGoogleDrive). Aliases map
them onto snake_case attributes; populate_by_name lets Python callers
use either.
"""

import uuid
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)


class SendInvoiceRequest(_CamelModel):
    """
    Send an invoice by email.

    Either use_template is set, or body is given (freeform). subject
    defaults to "Invoice {number}" on the freeform path.
    """

    invoice_id: uuid.UUID = Field(..., alias="invoiceId")
    to: Optional[EmailStr] = Field(
        default=None,
        description="Recipient override (defaults to the client's email)",
    )
    subject: Optional[str] = Field(default=None, max_length=200)
    body: Optional[str] = Field(default=None, max_length=50000)
    use_template: bool = Field(default=False, alias="useTemplate")
    save_to_google_drive: bool = Field(default=False, alias="saveToGoogleDrive")

    @model_validator(mode="before")
    @classmethod
    def blank_recipient_is_none(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("to") == "":
            data = {**data, "to": None}
        return data

    @model_validator(mode="after")
    def body_or_template(self) -> "SendInvoiceRequest":
        if not self.use_template and not self.body:
            raise ValueError("body is required unless useTemplate is true")
        return self


class GoogleDriveOutcome(BaseModel):
    """Result of the optional archival step: either ids or an error."""

    model_config = ConfigDict(populate_by_name=True)

    file_id: Optional[str] = Field(default=None, serialization_alias="fileId")
    file_name: Optional[str] = Field(default=None, serialization_alias="fileName")
    error: Optional[str] = None


class SendInvoiceResponse(BaseModel):
    success: bool = True
    message: str = "Invoice sent successfully"
    message_id: Optional[str] = Field(default=None, serialization_alias="messageId")
    google_drive: Optional[GoogleDriveOutcome] = Field(
        default=None, serialization_alias="googleDrive"
    )


class InvoiceIdRequest(_CamelModel):
    invoice_id: uuid.UUID = Field(..., alias="invoiceId")


class EmailPreviewResponse(BaseModel):
    html: str
    subject: str


class SaveToDriveResponse(BaseModel):
    success: bool = True
    file_id: str = Field(..., serialization_alias="fileId")
    file_name: str = Field(..., serialization_alias="fileName")
    message: str


class ReminderScanResponse(BaseModel):
    """
    Outcome of a reminder scan.

    Only success and message are always present; the rest depend on how
    far the scan got.
    """

    success: bool = True
    message: str
    skipped: Optional[bool] = None
    message_id: Optional[str] = Field(default=None, serialization_alias="messageId")
    reminder_type: Optional[str] = Field(default=None, serialization_alias="reminderType")
    reminder_types: Optional[List[str]] = Field(default=None, serialization_alias="reminderTypes")
    client_count: Optional[int] = Field(default=None, serialization_alias="clientCount")
    unpaid_count: Optional[int] = Field(default=None, serialization_alias="unpaidCount")
    invoice_count: Optional[int] = Field(default=None, serialization_alias="invoiceCount")
    total_unpaid: Optional[str] = Field(default=None, serialization_alias="totalUnpaid")
    sent_to: Optional[str] = Field(default=None, serialization_alias="sentTo")
