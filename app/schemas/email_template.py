"""
Email template schemas for API request/response validation.

WHAT: Pydantic schemas for invoice email templates.

Subjects and bodies may contain `{{key}}`, `#{key}` or `{key}`
placeholders; they are stored as written and only merged at send time.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class EmailTemplateCreate(BaseModel):
    """Schema for creating an email template."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=100)
    subject: str = Field(..., min_length=1, max_length=200)
    body: str = Field(..., min_length=1, description="HTML body with placeholders")


class EmailTemplateUpdate(BaseModel):
    """Schema for updating an email template (partial)."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    subject: Optional[str] = Field(default=None, min_length=1, max_length=200)
    body: Optional[str] = Field(default=None, min_length=1)


class EmailTemplateResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    subject: str
    body: str
    created_at: datetime
    updated_at: datetime
