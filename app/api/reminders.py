"""
Reminder API endpoint.

WHAT: Run the unpaid-invoice reminder scan on demand.

WHY: The scan normally runs from the scheduler; the endpoint lets an
operator (or an external cron) trigger it. On a day that is neither a
Friday nor a month end it is a no-op.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.deps import get_reminder_service
from app.db.session import get_db
from app.schemas.dispatch import ReminderScanResponse
from app.services.reminder_service import ReminderService


router = APIRouter(tags=["reminders"])


@router.post(
    "/process-reminders",
    response_model=ReminderScanResponse,
    response_model_exclude_none=True,
    summary="Run reminder scan",
)
async def process_reminders(
    db: AsyncSession = Depends(get_db),
    service: ReminderService = Depends(get_reminder_service),
) -> ReminderScanResponse:
    """
    Run the reminder scan for today.

    Raises:
        BusinessEmailNotConfiguredError (400): Nowhere to send the summary
        EmailServiceError (502): Mail provider failure
    """
    result = await service.process_reminders(db)
    return ReminderScanResponse(**result)
