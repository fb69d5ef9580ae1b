"""
Reminder Service.

WHAT: Daily scan that emails the business owner a summary of unpaid
invoices for clients who opted into reminders.

WHY: Clients choose a cadence (every Friday or the last day of the
month). Rather than nagging clients directly, the owner gets one digest
per cadence day and follows up personally.

HOW:
1. Work out which cadences apply today (none -> skip, no mail)
2. Load clients on those cadences and their non-paid invoices
3. Group by client, dropping clients with nothing outstanding
4. Render the Jinja2 summary and send it to the business email

process_reminders runs inside a caller-provided session (the API
route); run_scheduled_scan owns its session for the scheduler.
"""

import logging
from collections import defaultdict
from datetime import date, datetime, timedelta
from decimal import Decimal
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional
from zoneinfo import ZoneInfo

from jinja2 import Environment, FileSystemLoader, select_autoescape
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import BusinessEmailNotConfiguredError
from app.dao.business_settings import BusinessSettingsDAO
from app.dao.client import ClientDAO
from app.dao.invoice import InvoiceDAO
from app.db.session import AsyncSessionLocal
from app.models.client import ReminderType
from app.services.email import EmailMessage, EmailService, EmailType
from app.services.invoice_totals import ZERO, round2, to_decimal
from app.services.pdf_service import format_currency, format_date

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent.parent / "templates" / "email"
SUMMARY_TEMPLATE = "reminder_summary.html"

REMINDER_LABELS = {
    ReminderType.WEEKLY_FRIDAY: "Weekly Friday",
    ReminderType.MONTHLY_END: "End of Month",
}

FRIDAY = 4


def reminder_today() -> date:
    """Current date in REMINDER_TIMEZONE, the zone the scan cron fires in."""
    return datetime.now(ZoneInfo(settings.REMINDER_TIMEZONE)).date()


def is_last_day_of_month(day: date) -> bool:
    return (day + timedelta(days=1)).month != day.month


def reminder_types_for(day: date) -> List[ReminderType]:
    """
    Cadences that fire on a given day.

    >>> reminder_types_for(date(2024, 5, 31))
    [<ReminderType.WEEKLY_FRIDAY: 'weekly_friday'>, <ReminderType.MONTHLY_END: 'monthly_end'>]
    """
    types = []
    if day.weekday() == FRIDAY:
        types.append(ReminderType.WEEKLY_FRIDAY)
    if is_last_day_of_month(day):
        types.append(ReminderType.MONTHLY_END)
    return types


class ReminderService:
    """
    Service for the unpaid-invoice reminder scan.

    Example:
        service = ReminderService(email_service)
        result = await service.process_reminders(session)
    """

    def __init__(
        self,
        email_service: EmailService,
        session_factory: Callable[[], AsyncSession] = AsyncSessionLocal,
    ):
        self.email_service = email_service
        self._session_factory = session_factory
        self._env = Environment(
            loader=FileSystemLoader(str(TEMPLATE_DIR)),
            autoescape=select_autoescape(["html", "xml"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def render_summary(
        self,
        reminder_label: str,
        today: date,
        sections: List[Dict[str, Any]],
        invoice_count: int,
        total_unpaid: Decimal,
    ) -> str:
        template = self._env.get_template(SUMMARY_TEMPLATE)
        return template.render(
            reminder_label=reminder_label,
            today=format_date(today),
            sections=sections,
            invoice_count=invoice_count,
            total_unpaid=format_currency(total_unpaid),
        )

    async def process_reminders(
        self,
        session: AsyncSession,
        today: Optional[date] = None,
    ) -> Dict[str, Any]:
        """
        Run the reminder scan for a day.

        Args:
            session: Database session (not committed here)
            today: Day to evaluate, defaults to today in
                REMINDER_TIMEZONE

        Returns:
            Snake_case result dict; see ReminderScanResponse for the
            fields each outcome carries

        Raises:
            BusinessEmailNotConfiguredError: Summary built but nowhere to send it
            EmailServiceError: Mail provider failure
        """
        today = today or reminder_today()
        types = reminder_types_for(today)

        if not types:
            logger.info(f"{today} is not a reminder day, skipping")
            return {
                "success": True,
                "skipped": True,
                "message": "Not a reminder day (not Friday or last day of month)",
            }

        type_values = [t.value for t in types]
        clients = await ClientDAO(session).get_by_reminder_types(types)
        if not clients:
            logger.info(f"No clients on reminder cadences {type_values}")
            return {
                "success": True,
                "message": "No clients configured for reminders on this day",
                "reminder_types": type_values,
                "client_count": 0,
            }

        invoices = await InvoiceDAO(session).get_unpaid_for_clients([c.id for c in clients])
        by_client = defaultdict(list)
        for invoice in invoices:
            by_client[invoice.client_id].append(invoice)

        with_unpaid = [c for c in clients if by_client.get(c.id)]
        if not with_unpaid:
            logger.info("No unpaid invoices for clients with reminders")
            return {
                "success": True,
                "message": "No unpaid invoices for clients with reminders",
                "reminder_types": type_values,
                "client_count": len(clients),
                "unpaid_count": 0,
            }

        sections = []
        total_unpaid = ZERO
        invoice_count = 0
        for client in with_unpaid:
            client_invoices = by_client[client.id]
            client_total = round2(sum((to_decimal(i.total) for i in client_invoices), ZERO))
            total_unpaid += client_total
            invoice_count += len(client_invoices)
            sections.append({
                "name": client.name,
                "email": client.target_email,
                "total": format_currency(client_total),
                "invoices": [
                    {
                        "number": i.invoice_number,
                        "due_date": format_date(i.due_date),
                        "amount": format_currency(i.total),
                    }
                    for i in client_invoices
                ],
            })

        business = await BusinessSettingsDAO(session).get_current()
        business_email = business.email if business is not None else None
        if not business_email:
            raise BusinessEmailNotConfiguredError(
                message="Business email not configured in business settings"
            )

        label = REMINDER_LABELS[types[0]]
        html = self.render_summary(label, today, sections, invoice_count, total_unpaid)
        subject = (
            f"Invoice Reminder: {label} - "
            f"{len(with_unpaid)} Client(s) with Unpaid Invoices"
        )

        result = await self.email_service.send_email(
            EmailMessage(
                to=[business_email],
                subject=subject,
                html_content=html,
                email_type=EmailType.REMINDER,
                metadata={"reminder_types": ",".join(type_values)},
            )
        )

        logger.info(
            f"Reminder summary sent to {business_email}: "
            f"{len(with_unpaid)} client(s), {invoice_count} invoice(s), "
            f"{format_currency(total_unpaid)} outstanding"
        )
        return {
            "success": True,
            "message": "Reminder email sent successfully",
            "message_id": result.message_id,
            "reminder_type": label,
            "reminder_types": type_values,
            "client_count": len(with_unpaid),
            "invoice_count": invoice_count,
            "total_unpaid": format(round2(total_unpaid), "f"),
            "sent_to": business_email,
        }

    async def run_scheduled_scan(self) -> Dict[str, Any]:
        """
        Scheduler entry point: runs the scan in its own session.

        Errors are logged and re-raised so APScheduler records the failure.
        """
        logger.info("Starting scheduled reminder scan")
        session = self._session_factory()
        try:
            result = await self.process_reminders(session, today=reminder_today())
            await session.commit()
        except Exception as e:
            logger.error(f"Error in reminder scan job: {e}")
            await session.rollback()
            raise
        finally:
            await session.close()

        logger.info(f"Reminder scan finished: {result['message']}")
        return result
