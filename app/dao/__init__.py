"""
Data Access Object (DAO) package.

WHY: DAOs provide a clean separation between database operations and business logic,
making the codebase more testable and maintainable.
"""

from app.dao.base import BaseDAO
from app.dao.client import ClientDAO
from app.dao.business_settings import BusinessSettingsDAO
from app.dao.email_template import EmailTemplateDAO
from app.dao.invoice import InvoiceDAO

__all__ = [
    "BaseDAO",
    "ClientDAO",
    "BusinessSettingsDAO",
    "EmailTemplateDAO",
    "InvoiceDAO",
]
