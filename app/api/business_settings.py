"""
Business settings API endpoints.

WHAT: Read and save the single business-settings record.

WHY: The sender details (company, address, email) and bank details for
the payment-information block live here. They are copied into each
invoice's snapshot when the invoice is created.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.dao.business_settings import BusinessSettingsDAO
from app.db.session import get_db
from app.schemas.business_settings import BusinessSettingsResponse, BusinessSettingsUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get(
    "",
    response_model=Optional[BusinessSettingsResponse],
    summary="Get business settings",
    description="Returns null until settings are saved for the first time",
)
async def get_settings(
    db: AsyncSession = Depends(get_db),
) -> Optional[BusinessSettingsResponse]:
    current = await BusinessSettingsDAO(db).get_current()
    if current is None:
        return None
    return BusinessSettingsResponse.model_validate(current)


@router.put(
    "",
    response_model=BusinessSettingsResponse,
    summary="Save business settings",
)
async def save_settings(
    data: BusinessSettingsUpdate,
    db: AsyncSession = Depends(get_db),
) -> BusinessSettingsResponse:
    """
    Create or replace the business settings.

    Invoices already issued keep the business details they were
    snapshotted with.
    """
    saved = await BusinessSettingsDAO(db).upsert(**data.model_dump())
    logger.info("Business settings saved")
    return BusinessSettingsResponse.model_validate(saved)
