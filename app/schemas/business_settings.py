"""
Business settings schemas.

WHAT: Request and response bodies for GET/PUT /settings.

WHY: Saving is an upsert of the whole record, so the request carries
every field with "" as the default.
"""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class BusinessSettingsBase(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    company_name: str = Field(default="", max_length=255)
    owner_name: str = Field(default="", max_length=255)
    address: str = Field(default="", max_length=255)
    city: str = Field(default="", max_length=120)
    state: str = Field(default="", max_length=120)
    postal_code: str = Field(default="", max_length=32)
    country: str = Field(default="", max_length=120)
    email: str = Field(
        default="",
        max_length=255,
        description="Sender address for invoices and recipient of reminder summaries",
    )
    phone: str = Field(default="", max_length=64)
    beneficiary_name: str = Field(default="", max_length=255)
    beneficiary_cnpj: str = Field(default="", max_length=64)
    swift_code: str = Field(default="", max_length=64)
    bank_name: str = Field(default="", max_length=255)
    bank_address: str = Field(default="", max_length=255)
    routing_number: str = Field(default="", max_length=64)
    account_number: str = Field(default="", max_length=64)
    account_type: str = Field(default="", max_length=64)


class BusinessSettingsUpdate(BusinessSettingsBase):
    """Schema for saving business settings."""


class BusinessSettingsResponse(BusinessSettingsBase):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    updated_at: datetime
