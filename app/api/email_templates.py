"""
Email template API endpoints.

WHAT: CRUD for the subject/body templates used by template-based sends.

WHY: Templates hold the wording of invoice emails with placeholders
such as {{client_name}} and {{total}}; clients may pick one, otherwise
the first template by name is used.
"""

import logging
import uuid
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import EmailTemplateNotFoundError
from app.dao.email_template import EmailTemplateDAO
from app.db.session import get_db
from app.schemas.email_template import (
    EmailTemplateCreate,
    EmailTemplateResponse,
    EmailTemplateUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/email-templates", tags=["email-templates"])


@router.get(
    "",
    response_model=List[EmailTemplateResponse],
    summary="List email templates",
    description="List templates ordered by name",
)
async def list_templates(
    db: AsyncSession = Depends(get_db),
) -> List[EmailTemplateResponse]:
    templates = await EmailTemplateDAO(db).list_templates()
    return [EmailTemplateResponse.model_validate(t) for t in templates]


@router.post(
    "",
    response_model=EmailTemplateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create email template",
)
async def create_template(
    data: EmailTemplateCreate,
    db: AsyncSession = Depends(get_db),
) -> EmailTemplateResponse:
    template = await EmailTemplateDAO(db).create(**data.model_dump())
    logger.info(f"Created email template {template.name} ({template.id})")
    return EmailTemplateResponse.model_validate(template)


@router.get(
    "/{template_id}",
    response_model=EmailTemplateResponse,
    summary="Get email template",
)
async def get_template(
    template_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> EmailTemplateResponse:
    template = await EmailTemplateDAO(db).get_by_id(template_id)
    if template is None:
        raise EmailTemplateNotFoundError(template_id=str(template_id))
    return EmailTemplateResponse.model_validate(template)


@router.patch(
    "/{template_id}",
    response_model=EmailTemplateResponse,
    summary="Update email template",
)
async def update_template(
    template_id: uuid.UUID,
    data: EmailTemplateUpdate,
    db: AsyncSession = Depends(get_db),
) -> EmailTemplateResponse:
    changes = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}
    template = await EmailTemplateDAO(db).update(template_id, **changes)
    if template is None:
        raise EmailTemplateNotFoundError(template_id=str(template_id))
    return EmailTemplateResponse.model_validate(template)


@router.delete(
    "/{template_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete email template",
    description="Clients using this template fall back to the first template by name",
)
async def delete_template(
    template_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> None:
    if not await EmailTemplateDAO(db).delete(template_id):
        raise EmailTemplateNotFoundError(template_id=str(template_id))
    logger.info(f"Deleted email template {template_id}")
