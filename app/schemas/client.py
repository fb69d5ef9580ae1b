"""
Client schemas for API request/response validation.

HOW: Uses Pydantic v2. Create requires a name; update is partial.
"""

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from app.models.client import ReminderType
from app.schemas.common import Money


class ClientBase(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=255)
    address: str = Field(default="", max_length=255)
    city: str = Field(default="", max_length=120)
    state: str = Field(default="", max_length=120)
    postal_code: str = Field(default="", max_length=32)
    country: str = Field(default="", max_length=120)
    target_email: Optional[EmailStr] = Field(
        default=None,
        description="Primary invoice recipient",
    )
    cc_email: Optional[EmailStr] = Field(
        default=None,
        description="Copy recipient for invoice emails",
    )
    rate: Decimal = Field(default=Decimal("0"), ge=0, description="Default hourly rate")
    reminder_type: ReminderType = ReminderType.NONE
    reminder_date: Optional[date] = None
    email_template_id: Optional[uuid.UUID] = None
    google_drive_folder_url: Optional[str] = Field(default=None, max_length=2000)
    terms: str = Field(default="", max_length=5000)

    @field_validator("target_email", "cc_email", mode="before")
    @classmethod
    def blank_email_is_none(cls, value):
        return value or None


class ClientCreate(ClientBase):
    """Schema for creating a client."""


class ClientUpdate(BaseModel):
    """
    Schema for updating a client.

    Only fields present in the request body are changed.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    address: Optional[str] = Field(default=None, max_length=255)
    city: Optional[str] = Field(default=None, max_length=120)
    state: Optional[str] = Field(default=None, max_length=120)
    postal_code: Optional[str] = Field(default=None, max_length=32)
    country: Optional[str] = Field(default=None, max_length=120)
    target_email: Optional[EmailStr] = None
    cc_email: Optional[EmailStr] = None
    rate: Optional[Decimal] = Field(default=None, ge=0)
    reminder_type: Optional[ReminderType] = None
    reminder_date: Optional[date] = None
    email_template_id: Optional[uuid.UUID] = None
    google_drive_folder_url: Optional[str] = Field(default=None, max_length=2000)
    terms: Optional[str] = Field(default=None, max_length=5000)

    @field_validator("target_email", "cc_email", mode="before")
    @classmethod
    def blank_email_is_none(cls, value):
        return value or None


class ClientResponse(BaseModel):
    """Client as returned by the API."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    address: str
    city: str
    state: str
    postal_code: str
    country: str
    target_email: Optional[str]
    cc_email: Optional[str]
    rate: Money
    reminder_type: ReminderType
    reminder_date: Optional[date]
    email_template_id: Optional[uuid.UUID]
    google_drive_folder_url: Optional[str]
    terms: str
    created_at: datetime
    updated_at: datetime
