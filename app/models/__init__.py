"""
Database models package.

WHY: Centralizing model imports ensures Alembic and Base.metadata see every
table, and makes it easier to import models elsewhere.
"""

from app.models.base import Base, TimestampMixin, PrimaryKeyMixin
from app.models.email_template import EmailTemplate
from app.models.client import Client, ReminderType
from app.models.business_settings import BusinessSettings, BUSINESS_FIELDS
from app.models.invoice import Invoice, InvoiceItem, InvoiceStatus

__all__ = [
    "Base",
    "TimestampMixin",
    "PrimaryKeyMixin",
    "EmailTemplate",
    "Client",
    "ReminderType",
    "BusinessSettings",
    "BUSINESS_FIELDS",
    "Invoice",
    "InvoiceItem",
    "InvoiceStatus",
]
