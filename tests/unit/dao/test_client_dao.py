"""
Unit tests for Client and EmailTemplate DAOs.

WHAT: Listing order, reminder cadence lookup and the template fallback.
"""

import pytest

from app.dao.client import ClientDAO
from app.dao.email_template import EmailTemplateDAO
from app.models.client import ReminderType
from tests.factories import ClientFactory, EmailTemplateFactory


class TestClientDAO:
    """Tests for ClientDAO."""

    @pytest.mark.asyncio
    async def test_list_clients_by_name(self, db_session):
        await ClientFactory.create(db_session, name="Zeta")
        await ClientFactory.create(db_session, name="Alpha")

        clients = await ClientDAO(db_session).list_clients()

        assert [c.name for c in clients] == ["Alpha", "Zeta"]

    @pytest.mark.asyncio
    async def test_get_by_reminder_types(self, db_session):
        await ClientFactory.create(db_session, name="Weekly", reminder_type=ReminderType.WEEKLY_FRIDAY)
        await ClientFactory.create(db_session, name="Monthly", reminder_type=ReminderType.MONTHLY_END)
        await ClientFactory.create(db_session, name="Never", reminder_type=ReminderType.NONE)
        client_dao = ClientDAO(db_session)

        weekly = await client_dao.get_by_reminder_types([ReminderType.WEEKLY_FRIDAY])
        both = await client_dao.get_by_reminder_types(
            [ReminderType.WEEKLY_FRIDAY, ReminderType.MONTHLY_END]
        )

        assert [c.name for c in weekly] == ["Weekly"]
        assert [c.name for c in both] == ["Monthly", "Weekly"]
        assert await client_dao.get_by_reminder_types([]) == []


class TestEmailTemplateDAO:
    """Tests for EmailTemplateDAO."""

    @pytest.mark.asyncio
    async def test_get_first_by_name(self, db_session):
        await EmailTemplateFactory.create(db_session, name="Reminder")
        await EmailTemplateFactory.create(db_session, name="Default")

        first = await EmailTemplateDAO(db_session).get_first()

        assert first.name == "Default"

    @pytest.mark.asyncio
    async def test_get_first_none(self, db_session):
        assert await EmailTemplateDAO(db_session).get_first() is None

    @pytest.mark.asyncio
    async def test_list_templates(self, db_session):
        await EmailTemplateFactory.create(db_session, name="B")
        await EmailTemplateFactory.create(db_session, name="A")

        templates = await EmailTemplateDAO(db_session).list_templates()

        assert [t.name for t in templates] == ["A", "B"]
