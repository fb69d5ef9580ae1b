"""
Business Settings Data Access Object (DAO).

WHAT: Read and upsert the singleton business settings row.

WHY: At most one row may exist. Saving updates it if present and inserts
it otherwise, so callers never have to know which.
"""

from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.dao.base import BaseDAO
from app.models.business_settings import BusinessSettings


class BusinessSettingsDAO(BaseDAO[BusinessSettings]):
    """Data Access Object for the BusinessSettings singleton."""

    def __init__(self, session: AsyncSession):
        super().__init__(BusinessSettings, session)

    async def get_current(self) -> Optional[BusinessSettings]:
        """
        Get the settings row.

        Returns:
            The settings, or None if the business hasn't been set up yet
        """
        result = await self.session.execute(select(BusinessSettings).limit(1))
        return result.scalar_one_or_none()

    async def upsert(self, **fields: Any) -> BusinessSettings:
        """
        Save settings: update the existing row, else insert one.

        Args:
            **fields: BusinessSettings column values

        Returns:
            The saved settings row
        """
        existing = await self.get_current()
        if existing is None:
            return await self.create(**fields)

        for field, value in fields.items():
            setattr(existing, field, value)

        await self.session.flush()
        await self.session.refresh(existing)
        return existing
