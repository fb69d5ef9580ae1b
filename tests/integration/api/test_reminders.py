"""
Integration tests for the reminder scan endpoint.

WHAT: POST /api/process-reminders on reminder and non-reminder days.

HOW: The scan reads today's date from the service module, so tests pin
it by patching that module's date class.
"""

from datetime import date
from decimal import Decimal
from unittest.mock import patch

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.client import ReminderType
from app.services.email import MockEmailProvider
from tests.factories import BusinessSettingsFactory, ClientFactory, InvoiceFactory


def fixed_today(day: date):
    """Patch the scan's notion of today."""
    return patch("app.services.reminder_service.reminder_today", lambda: day)


class TestProcessReminders:
    """Integration tests for POST /api/process-reminders."""

    @pytest.mark.asyncio
    async def test_non_reminder_day(self, client: AsyncClient, db_session: AsyncSession):
        """
        Test a Monday.

        WHY: The scan is a no-op with only success, skipped and message
        in the body, even when clients have unpaid invoices.
        """
        acme = await ClientFactory.create(db_session, reminder_type=ReminderType.WEEKLY_FRIDAY)
        await InvoiceFactory.create(db_session, client=acme)

        with fixed_today(date(2024, 5, 13)):
            response = await client.post("/api/process-reminders")

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "skipped": True,
            "message": "Not a reminder day (not Friday or last day of month)",
        }
        assert MockEmailProvider.sent_emails == []

    @pytest.mark.asyncio
    async def test_friday_sends_summary(self, client: AsyncClient, db_session: AsyncSession):
        await BusinessSettingsFactory.create(db_session)
        acme = await ClientFactory.create(db_session, reminder_type=ReminderType.WEEKLY_FRIDAY)
        await InvoiceFactory.create(
            db_session,
            client=acme,
            items=[{"description": "Work", "quantity": Decimal("1"), "rate": Decimal("200.25")}],
            issue_date=date(2024, 4, 1),
        )

        with fixed_today(date(2024, 5, 10)):
            response = await client.post("/api/process-reminders")

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Reminder email sent successfully"
        assert data["reminderType"] == "Weekly Friday"
        assert data["reminderTypes"] == ["weekly_friday"]
        assert data["clientCount"] == 1
        assert data["invoiceCount"] == 1
        assert data["totalUnpaid"] == "200.25"
        assert data["sentTo"] == "owner@studio.example.com"
        assert "skipped" not in data

        message = MockEmailProvider.sent_emails[0]
        assert message.to == ["owner@studio.example.com"]
        assert message.subject == (
            "Invoice Reminder: Weekly Friday - 1 Client(s) with Unpaid Invoices"
        )

    @pytest.mark.asyncio
    async def test_no_clients_on_cadence(self, client: AsyncClient, db_session: AsyncSession):
        await ClientFactory.create(db_session, reminder_type=ReminderType.MONTHLY_END)

        with fixed_today(date(2024, 5, 10)):
            response = await client.post("/api/process-reminders")

        assert response.json() == {
            "success": True,
            "message": "No clients configured for reminders on this day",
            "reminderTypes": ["weekly_friday"],
            "clientCount": 0,
        }

    @pytest.mark.asyncio
    async def test_business_email_missing(self, client: AsyncClient, db_session: AsyncSession):
        await BusinessSettingsFactory.create(db_session, email="")
        acme = await ClientFactory.create(db_session, reminder_type=ReminderType.MONTHLY_END)
        await InvoiceFactory.create(db_session, client=acme, issue_date=date(2024, 2, 1))

        with fixed_today(date(2024, 2, 29)):
            response = await client.post("/api/process-reminders")

        assert response.status_code == 400
        assert response.json()["message"] == "Business email not configured in business settings"
        assert MockEmailProvider.sent_emails == []
