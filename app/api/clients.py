"""
Client management API endpoints.

WHAT: CRUD for billed clients.

WHY: A client carries everything an invoice needs from the customer
side: bill-to address, recipient and CC emails, default terms, reminder
cadence, preferred email template and Drive folder.

HOW: Thin router over ClientDAO. The request session commits when the
handler returns (get_db).
"""

import logging
import uuid
from typing import List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ClientNotFoundError, EmailTemplateNotFoundError
from app.dao.client import ClientDAO
from app.dao.email_template import EmailTemplateDAO
from app.db.session import get_db
from app.schemas.client import ClientCreate, ClientResponse, ClientUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/clients", tags=["clients"])

# Fields a PATCH may clear by sending null
_NULLABLE_FIELDS = {
    "target_email",
    "cc_email",
    "reminder_date",
    "email_template_id",
    "google_drive_folder_url",
}


async def _require_template(db: AsyncSession, template_id) -> None:
    if template_id is not None and not await EmailTemplateDAO(db).exists(id=template_id):
        raise EmailTemplateNotFoundError(template_id=str(template_id))


@router.get(
    "",
    response_model=List[ClientResponse],
    summary="List clients",
    description="List all clients ordered by name",
)
async def list_clients(
    skip: int = Query(0, ge=0),
    limit: int = Query(500, ge=1, le=1000),
    db: AsyncSession = Depends(get_db),
) -> List[ClientResponse]:
    clients = await ClientDAO(db).list_clients(skip=skip, limit=limit)
    return [ClientResponse.model_validate(c) for c in clients]


@router.post(
    "",
    response_model=ClientResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create client",
)
async def create_client(
    data: ClientCreate,
    db: AsyncSession = Depends(get_db),
) -> ClientResponse:
    """
    Create a client.

    Raises:
        EmailTemplateNotFoundError (404): email_template_id doesn't exist
    """
    await _require_template(db, data.email_template_id)
    client = await ClientDAO(db).create(**data.model_dump())
    logger.info(f"Created client {client.name} ({client.id})")
    return ClientResponse.model_validate(client)


@router.get(
    "/{client_id}",
    response_model=ClientResponse,
    summary="Get client",
)
async def get_client(
    client_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> ClientResponse:
    client = await ClientDAO(db).get_by_id(client_id)
    if client is None:
        raise ClientNotFoundError(client_id=str(client_id))
    return ClientResponse.model_validate(client)


@router.patch(
    "/{client_id}",
    response_model=ClientResponse,
    summary="Update client",
    description="Update only the supplied fields",
)
async def update_client(
    client_id: uuid.UUID,
    data: ClientUpdate,
    db: AsyncSession = Depends(get_db),
) -> ClientResponse:
    """
    Update a client.

    Existing invoices are unaffected: they print from their snapshot.
    """
    dao = ClientDAO(db)
    if await dao.get_by_id(client_id) is None:
        raise ClientNotFoundError(client_id=str(client_id))

    changes = {
        field: value
        for field, value in data.model_dump(exclude_unset=True).items()
        if value is not None or field in _NULLABLE_FIELDS
    }
    if "email_template_id" in changes:
        await _require_template(db, changes["email_template_id"])

    client = await dao.update(client_id, **changes)
    return ClientResponse.model_validate(client)


@router.delete(
    "/{client_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete client",
    description="Delete a client; its invoices are kept without a client",
)
async def delete_client(
    client_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> None:
    if not await ClientDAO(db).delete(client_id):
        raise ClientNotFoundError(client_id=str(client_id))
    logger.info(f"Deleted client {client_id}")
