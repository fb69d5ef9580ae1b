"""
Invoice management API endpoints.

WHAT: RESTful API for invoice CRUD, payment tracking and PDFs.

WHY: Invoices are the core record of the app: created from line items,
settled by marking them paid (and later transferred), and rendered as
PDFs on demand.

HOW: FastAPI router over InvoiceService. Responses carry the
snapshot-resolved bill-to so the UI shows what the PDF prints.
"""

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from app.core.deps import get_invoice_service, get_pdf_renderer
from app.models.invoice import Invoice, InvoiceStatus
from app.schemas.invoice import (
    InvoiceCreate,
    InvoicePDFUrlResponse,
    InvoiceResponse,
    InvoiceUpdate,
    MarkPaidRequest,
    MarkTransferredRequest,
    NextInvoiceNumberResponse,
)
from app.services.invoice_service import InvoiceService
from app.services.invoice_snapshot import ResolvedParties
from app.services.pdf_service import InvoicePDFRenderer


router = APIRouter(prefix="/invoices", tags=["invoices"])


def _invoice_to_response(invoice: Invoice, parties: ResolvedParties) -> InvoiceResponse:
    """
    Convert an Invoice (loaded with client and items) to its response.

    WHY: bill_to isn't a column; it's resolved snapshot-first alongside
    the invoice.
    """
    response = InvoiceResponse.model_validate(invoice)
    response.bill_to = dict(parties.bill_to)
    return response


async def _respond(service: InvoiceService, invoice: Invoice) -> InvoiceResponse:
    return _invoice_to_response(invoice, await service.resolve_parties(invoice))


# ============================================================================
# Invoice CRUD Endpoints
# ============================================================================


@router.get(
    "",
    response_model=List[InvoiceResponse],
    summary="List invoices",
    description="List invoices, newest issue date first",
)
async def list_invoices(
    status_filter: Optional[InvoiceStatus] = Query(None, alias="status"),
    client_id: Optional[uuid.UUID] = Query(None),
    service: InvoiceService = Depends(get_invoice_service),
) -> List[InvoiceResponse]:
    listed = await service.list_invoices(status=status_filter, client_id=client_id)
    return [_invoice_to_response(invoice, parties) for invoice, parties in listed]


@router.post(
    "",
    response_model=InvoiceResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create invoice",
    description="Create an invoice; totals are computed from the items",
)
async def create_invoice(
    data: InvoiceCreate,
    service: InvoiceService = Depends(get_invoice_service),
) -> InvoiceResponse:
    """
    Create an invoice in pending status.

    Line amounts, subtotal, tax and total are computed server-side, and
    the client and business details are snapshotted into metadata.

    Raises:
        ClientNotFoundError (404): Unknown client_id
    """
    invoice = await service.create_invoice(data)
    return await _respond(service, invoice)


@router.get(
    "/next-number",
    response_model=NextInvoiceNumberResponse,
    summary="Next invoice number",
    description="Highest invoice number for the client plus one (1 if none)",
)
async def get_next_invoice_number(
    client_id: Optional[uuid.UUID] = Query(None),
    service: InvoiceService = Depends(get_invoice_service),
) -> NextInvoiceNumberResponse:
    number = await service.get_next_invoice_number(client_id)
    return NextInvoiceNumberResponse(invoice_number=number)


@router.get(
    "/{invoice_id}",
    response_model=InvoiceResponse,
    summary="Get invoice",
)
async def get_invoice(
    invoice_id: uuid.UUID,
    service: InvoiceService = Depends(get_invoice_service),
) -> InvoiceResponse:
    invoice = await service.get_invoice(invoice_id)
    return await _respond(service, invoice)


@router.patch(
    "/{invoice_id}",
    response_model=InvoiceResponse,
    summary="Update invoice",
    description="Update invoice fields; supplying items replaces all of them",
)
async def update_invoice(
    invoice_id: uuid.UUID,
    data: InvoiceUpdate,
    service: InvoiceService = Depends(get_invoice_service),
) -> InvoiceResponse:
    invoice = await service.update_invoice(invoice_id, data)
    return await _respond(service, invoice)


@router.delete(
    "/{invoice_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete invoice",
)
async def delete_invoice(
    invoice_id: uuid.UUID,
    service: InvoiceService = Depends(get_invoice_service),
) -> None:
    await service.delete_invoice(invoice_id)


# ============================================================================
# Payment Tracking Endpoints
# ============================================================================


@router.post(
    "/{invoice_id}/mark-paid",
    response_model=InvoiceResponse,
    summary="Mark invoice paid",
    description="Set status to paid with the given payment date; repeatable",
)
async def mark_invoice_paid(
    invoice_id: uuid.UUID,
    data: MarkPaidRequest,
    service: InvoiceService = Depends(get_invoice_service),
) -> InvoiceResponse:
    invoice = await service.mark_paid(invoice_id, data.paid_date)
    return await _respond(service, invoice)


@router.post(
    "/{invoice_id}/mark-transferred",
    response_model=InvoiceResponse,
    summary="Mark invoice transferred",
    description="Record when the payment was transferred; status is unchanged",
)
async def mark_invoice_transferred(
    invoice_id: uuid.UUID,
    data: MarkTransferredRequest,
    service: InvoiceService = Depends(get_invoice_service),
) -> InvoiceResponse:
    invoice = await service.mark_transferred(invoice_id, data.transferred_date)
    return await _respond(service, invoice)


# ============================================================================
# PDF Endpoints
# ============================================================================


@router.get(
    "/{invoice_id}/pdf",
    status_code=status.HTTP_200_OK,
    summary="Download invoice PDF",
    description="Render the invoice as PDF (not stored)",
)
async def download_invoice_pdf(
    invoice_id: uuid.UUID,
    service: InvoiceService = Depends(get_invoice_service),
    renderer: InvoicePDFRenderer = Depends(get_pdf_renderer),
) -> Response:
    """
    Render and return the invoice PDF.

    Raises:
        InvoiceNotFoundError (404): Unknown invoice
        PDFRenderError (500): Rendering failed
    """
    invoice, pdf_bytes = await service.render_pdf(invoice_id, renderer)
    filename = f"invoice-{invoice.invoice_number}.pdf"
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get(
    "/{invoice_id}/pdf-url",
    response_model=InvoicePDFUrlResponse,
    summary="Signed URL for the stored PDF",
)
async def get_invoice_pdf_url(
    invoice_id: uuid.UUID,
    service: InvoiceService = Depends(get_invoice_service),
) -> InvoicePDFUrlResponse:
    """
    Short-lived download link for the PDF stored when the invoice was sent.

    Raises:
        InvoicePDFNotGeneratedError (400): Nothing stored yet
    """
    url, expires_in = await service.get_pdf_url(invoice_id)
    return InvoicePDFUrlResponse(url=url, expires_in=expires_in)
