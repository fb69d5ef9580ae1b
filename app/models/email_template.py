"""
Email Template model.

WHAT: Named subject + HTML body pair used for template-based invoice emails.

WHY: Lets the business word its invoice emails once and reuse them.
Both subject and body may contain placeholder tokens (`{{invoice_number}}`,
`#{client_name}`, `{total}`) that are filled by the placeholder engine.
"""

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, PrimaryKeyMixin, TimestampMixin


class EmailTemplate(PrimaryKeyMixin, TimestampMixin, Base):
    """Reusable invoice email template."""

    __tablename__ = "email_templates"

    name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    subject: Mapped[str] = mapped_column(String(200), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)

    def __repr__(self) -> str:
        return f"<EmailTemplate(id={self.id}, name={self.name})>"
