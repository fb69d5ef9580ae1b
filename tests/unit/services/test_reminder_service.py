"""
Unit tests for ReminderService.

WHAT: Cadence days, the scan outcomes and the summary email.

WHY: The scan runs unattended. It must stay silent on non-reminder days,
skip clients with nothing outstanding, and never mail a summary without
a business address.

HOW: Runs against the in-memory SQLite session with the mock email
provider; `today` is passed explicitly.
"""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from app.core import config
from app.core.exceptions import BusinessEmailNotConfiguredError
from app.models.client import ReminderType
from app.models.invoice import InvoiceStatus
from app.services.email import EmailType, MockEmailProvider
from app.services.reminder_service import (
    ReminderService,
    is_last_day_of_month,
    reminder_today,
    reminder_types_for,
)
from tests.factories import BusinessSettingsFactory, ClientFactory, InvoiceFactory

FRIDAY = date(2024, 5, 10)
MONTH_END_THURSDAY = date(2024, 2, 29)
FRIDAY_MONTH_END = date(2024, 5, 31)
MONDAY = date(2024, 5, 13)


class TestReminderDays:
    """Tests for the cadence calendar."""

    def test_last_day_of_month(self):
        assert is_last_day_of_month(date(2024, 2, 29)) is True
        assert is_last_day_of_month(date(2023, 2, 28)) is True
        assert is_last_day_of_month(date(2024, 2, 28)) is False
        assert is_last_day_of_month(date(2024, 12, 31)) is True

    def test_friday(self):
        assert reminder_types_for(FRIDAY) == [ReminderType.WEEKLY_FRIDAY]

    def test_month_end(self):
        assert reminder_types_for(MONTH_END_THURSDAY) == [ReminderType.MONTHLY_END]

    def test_friday_that_is_month_end(self):
        assert reminder_types_for(FRIDAY_MONTH_END) == [
            ReminderType.WEEKLY_FRIDAY,
            ReminderType.MONTHLY_END,
        ]

    def test_other_day(self):
        assert reminder_types_for(MONDAY) == []


class TestProcessReminders:
    """Tests for ReminderService.process_reminders."""

    @pytest.fixture
    def service(self, email_service):
        return ReminderService(email_service)

    @pytest.mark.asyncio
    async def test_skips_non_reminder_day(self, service, db_session):
        result = await service.process_reminders(db_session, today=MONDAY)

        assert result == {
            "success": True,
            "skipped": True,
            "message": "Not a reminder day (not Friday or last day of month)",
        }
        assert MockEmailProvider.sent_emails == []

    @pytest.mark.asyncio
    async def test_no_clients_on_cadence(self, service, db_session):
        await ClientFactory.create(db_session, reminder_type=ReminderType.MONTHLY_END)

        result = await service.process_reminders(db_session, today=FRIDAY)

        assert result["message"] == "No clients configured for reminders on this day"
        assert result["reminder_types"] == ["weekly_friday"]
        assert result["client_count"] == 0
        assert MockEmailProvider.sent_emails == []

    @pytest.mark.asyncio
    async def test_no_unpaid_invoices(self, service, db_session):
        client = await ClientFactory.create(db_session, reminder_type=ReminderType.WEEKLY_FRIDAY)
        await InvoiceFactory.create(db_session, client=client, status=InvoiceStatus.PAID)

        result = await service.process_reminders(db_session, today=FRIDAY)

        assert result["message"] == "No unpaid invoices for clients with reminders"
        assert result["client_count"] == 1
        assert result["unpaid_count"] == 0
        assert MockEmailProvider.sent_emails == []

    @pytest.mark.asyncio
    async def test_business_email_missing(self, service, db_session):
        await BusinessSettingsFactory.create(db_session, email="")
        client = await ClientFactory.create(db_session, reminder_type=ReminderType.WEEKLY_FRIDAY)
        await InvoiceFactory.create(db_session, client=client)

        with pytest.raises(BusinessEmailNotConfiguredError) as exc_info:
            await service.process_reminders(db_session, today=FRIDAY)

        assert exc_info.value.message == "Business email not configured in business settings"
        assert exc_info.value.status_code == 400
        assert MockEmailProvider.sent_emails == []

    @pytest.mark.asyncio
    async def test_sends_summary(self, service, db_session):
        """
        Test the summary groups unpaid invoices by client.

        Paid invoices and clients with nothing outstanding are left out.
        """
        await BusinessSettingsFactory.create(db_session)
        acme = await ClientFactory.create(
            db_session, name="Acme & Co", reminder_type=ReminderType.MONTHLY_END
        )
        globex = await ClientFactory.create(
            db_session, name="Globex", reminder_type=ReminderType.WEEKLY_FRIDAY
        )
        settled = await ClientFactory.create(
            db_session, name="Settled Inc", reminder_type=ReminderType.WEEKLY_FRIDAY
        )
        await ClientFactory.create(db_session, name="Quiet LLC", reminder_type=ReminderType.NONE)

        await InvoiceFactory.create(db_session, client=acme, invoice_number=1)  # 450.00
        await InvoiceFactory.create(
            db_session, client=acme, invoice_number=2, status=InvoiceStatus.SENT,
            items=[{"description": "Support", "quantity": 1, "rate": Decimal("1000.50")}],
        )
        await InvoiceFactory.create(db_session, client=acme, invoice_number=3, status=InvoiceStatus.PAID)
        await InvoiceFactory.create(db_session, client=globex, invoice_number=1)
        await InvoiceFactory.create(db_session, client=settled, invoice_number=1, status=InvoiceStatus.PAID)

        result = await service.process_reminders(db_session, today=FRIDAY_MONTH_END)

        assert result["success"] is True
        assert result["message"] == "Reminder email sent successfully"
        assert result["reminder_type"] == "Weekly Friday"
        assert result["reminder_types"] == ["weekly_friday", "monthly_end"]
        assert result["client_count"] == 2
        assert result["invoice_count"] == 3
        assert result["total_unpaid"] == "1900.50"
        assert result["sent_to"] == "owner@studio.example.com"
        assert result["message_id"].startswith("mock-")

        assert len(MockEmailProvider.sent_emails) == 1
        message = MockEmailProvider.sent_emails[0]
        assert message.to == ["owner@studio.example.com"]
        assert message.email_type == EmailType.REMINDER
        assert message.subject == (
            "Invoice Reminder: Weekly Friday - 2 Client(s) with Unpaid Invoices"
        )
        assert "Acme &amp; Co" in message.html_content
        assert "Globex" in message.html_content
        assert "Settled Inc" not in message.html_content
        assert "Quiet LLC" not in message.html_content
        assert "$1,450.50" in message.html_content
        assert "Total Outstanding: $1,900.50" in message.html_content
        assert "2 client(s) with 3 unpaid invoice(s)" in message.html_content


class TestRunScheduledScan:
    """Tests for the scheduler entry point."""

    @pytest.mark.asyncio
    async def test_commits_and_closes(self, email_service):
        session = MagicMock()
        session.commit = AsyncMock()
        session.rollback = AsyncMock()
        session.close = AsyncMock()
        service = ReminderService(email_service, session_factory=lambda: session)

        with patch.object(
            service, "process_reminders", AsyncMock(return_value={"message": "done"})
        ):
            result = await service.run_scheduled_scan()

        assert result == {"message": "done"}
        session.commit.assert_awaited_once()
        session.rollback.assert_not_awaited()
        session.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_rolls_back_and_reraises(self, email_service):
        session = MagicMock()
        session.commit = AsyncMock()
        session.rollback = AsyncMock()
        session.close = AsyncMock()
        service = ReminderService(email_service, session_factory=lambda: session)

        with patch.object(
            service,
            "process_reminders",
            AsyncMock(side_effect=BusinessEmailNotConfiguredError()),
        ):
            with pytest.raises(BusinessEmailNotConfiguredError):
                await service.run_scheduled_scan()

        session.commit.assert_not_awaited()
        session.rollback.assert_awaited_once()
        session.close.assert_awaited_once()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "zone, expected",
        [
            ("UTC", date(2024, 5, 10)),
            ("Asia/Tokyo", date(2024, 5, 11)),
            ("America/Los_Angeles", date(2024, 5, 10)),
        ],
    )
    async def test_scans_the_date_in_reminder_timezone(
        self, email_service, monkeypatch, zone, expected
    ):
        """
        Test the scan date follows REMINDER_TIMEZONE.

        WHY: The cron fires in REMINDER_TIMEZONE. At 15:30 UTC it is
        already the next day in Tokyo, so a Friday cron there must not
        evaluate Thursday.
        """
        session = MagicMock()
        session.commit = AsyncMock()
        session.rollback = AsyncMock()
        session.close = AsyncMock()
        service = ReminderService(email_service, session_factory=lambda: session)
        monkeypatch.setattr(config.settings, "REMINDER_TIMEZONE", zone)
        instant = datetime(2024, 5, 10, 15, 30, tzinfo=timezone.utc)

        class FixedClock(datetime):
            @classmethod
            def now(cls, tz=None):
                return instant.astimezone(tz)

        scan = AsyncMock(return_value={"message": "done"})
        with patch("app.services.reminder_service.datetime", FixedClock), patch.object(
            service, "process_reminders", scan
        ):
            await service.run_scheduled_scan()

        assert scan.await_args.kwargs["today"] == expected


class TestReminderToday:
    """Tests for the scan clock."""

    def test_uses_configured_zone(self, monkeypatch):
        monkeypatch.setattr(config.settings, "REMINDER_TIMEZONE", "Asia/Tokyo")
        instant = datetime(2024, 5, 31, 23, 0, tzinfo=timezone.utc)

        class FixedClock(datetime):
            @classmethod
            def now(cls, tz=None):
                return instant.astimezone(tz)

        with patch("app.services.reminder_service.datetime", FixedClock):
            assert reminder_today() == date(2024, 6, 1)
