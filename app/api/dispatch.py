"""
Invoice dispatch API endpoints.

WHAT: Send an invoice by email, preview the email, and archive the PDF
to Google Drive.

WHY: These paths keep the names and camelCase bodies the web client
already calls (/send-invoice, /email-preview, /save-to-drive).

HOW: Each route builds an InvoiceDispatchService from the request
session and the shared collaborators on app.state.
"""

from fastapi import APIRouter, Depends

from app.core.deps import get_dispatch_service
from app.schemas.dispatch import (
    EmailPreviewResponse,
    InvoiceIdRequest,
    SaveToDriveResponse,
    SendInvoiceRequest,
    SendInvoiceResponse,
)
from app.services.invoice_dispatch_service import InvoiceDispatchService


router = APIRouter(tags=["dispatch"])


@router.post(
    "/send-invoice",
    response_model=SendInvoiceResponse,
    summary="Send invoice email",
    description="Email the invoice with its PDF attached and mark it sent",
)
async def send_invoice(
    data: SendInvoiceRequest,
    service: InvoiceDispatchService = Depends(get_dispatch_service),
) -> SendInvoiceResponse:
    """
    Send an invoice.

    Google Drive archival, when requested, never fails the send: its
    outcome is reported in googleDrive.

    Raises:
        InvoiceNotFoundError (404): Unknown invoice
        MissingRecipientError (400): No recipient available
        NoTemplateConfiguredError (404): useTemplate with no templates
        EmailServiceError (502): Mail provider rejected the message
    """
    result = await service.send_invoice(data)
    return SendInvoiceResponse(**result)


@router.post(
    "/email-preview",
    response_model=EmailPreviewResponse,
    summary="Preview invoice email",
    description="Render the template-based email without sending it",
)
async def preview_email(
    data: InvoiceIdRequest,
    service: InvoiceDispatchService = Depends(get_dispatch_service),
) -> EmailPreviewResponse:
    result = await service.preview_email(data.invoice_id)
    return EmailPreviewResponse(**result)


@router.post(
    "/save-to-drive",
    response_model=SaveToDriveResponse,
    summary="Save invoice PDF to Google Drive",
    description="Upload the stored PDF to the client's Drive folder",
)
async def save_to_drive(
    data: InvoiceIdRequest,
    service: InvoiceDispatchService = Depends(get_dispatch_service),
) -> SaveToDriveResponse:
    result = await service.save_to_drive(data.invoice_id)
    return SaveToDriveResponse(**result)
