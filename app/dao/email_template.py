"""
Email Template Data Access Object (DAO).

WHAT: Database operations for email templates.

WHY: Template-based sends need a fallback when the client has no
preferred template, so "first template" lives here next to the CRUD.
"""

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.dao.base import BaseDAO
from app.models.email_template import EmailTemplate


class EmailTemplateDAO(BaseDAO[EmailTemplate]):
    """Data Access Object for EmailTemplate model."""

    def __init__(self, session: AsyncSession):
        """Initialize EmailTemplateDAO."""
        super().__init__(EmailTemplate, session)

    async def list_templates(self) -> List[EmailTemplate]:
        """List templates ordered by name."""
        result = await self.session.execute(
            select(EmailTemplate).order_by(EmailTemplate.name)
        )
        return list(result.scalars().all())

    async def get_first(self) -> Optional[EmailTemplate]:
        """
        Get the first template by name.

        WHY: Used when a client has no template (or its template was
        deleted) and the sender asked for a template-based email.
        """
        result = await self.session.execute(
            select(EmailTemplate)
            .order_by(EmailTemplate.name, EmailTemplate.created_at)
            .limit(1)
        )
        return result.scalar_one_or_none()
