"""
Client Data Access Object (DAO).

WHAT: Database operations for the Client model.
"""

from typing import Iterable, List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.dao.base import BaseDAO
from app.models.client import Client, ReminderType


class ClientDAO(BaseDAO[Client]):
    """
    Data Access Object for Client model.

    Adds name-ordered listing and the reminder cadence lookup used by the
    reminder scan.
    """

    def __init__(self, session: AsyncSession):
        super().__init__(Client, session)

    async def list_clients(self, skip: int = 0, limit: int = 500) -> List[Client]:
        """List clients alphabetically."""
        return await self.get_all(skip=skip, limit=limit, order_by=Client.name)

    async def get_by_reminder_types(
        self,
        reminder_types: Iterable[ReminderType],
    ) -> List[Client]:
        """
        Get clients enrolled in any of the given reminder cadences.

        Args:
            reminder_types: Cadences that apply today

        Returns:
            Matching clients ordered by name (empty if no cadences given)
        """
        reminder_types = list(reminder_types)
        if not reminder_types:
            return []

        result = await self.session.execute(
            select(Client)
            .where(Client.reminder_type.in_(reminder_types))
            .order_by(Client.name)
        )
        return list(result.scalars().all())
