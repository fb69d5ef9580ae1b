"""
FastAPI dependencies for service collaborators.

WHY: External clients (mail, S3, Drive, Ollama) and the PDF renderer are
built once in create_app() and kept on app.state. Routes receive them
through these dependencies, so tests can swap any of them with
app.dependency_overrides instead of patching module globals.
"""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.services.email import EmailService
from app.services.google_drive_service import GoogleDriveService
from app.services.invoice_dispatch_service import InvoiceDispatchService
from app.services.invoice_service import InvoiceService
from app.services.pdf_service import InvoicePDFRenderer
from app.services.reminder_service import ReminderService
from app.services.storage_service import StorageService
from app.services.summarize_service import SummarizeService


def get_email_service(request: Request) -> EmailService:
    return request.app.state.email_service


def get_storage_service(request: Request) -> StorageService:
    return request.app.state.storage_service


def get_drive_service(request: Request) -> GoogleDriveService:
    return request.app.state.drive_service


def get_pdf_renderer(request: Request) -> InvoicePDFRenderer:
    return request.app.state.pdf_renderer


def get_summarize_service(request: Request) -> SummarizeService:
    return request.app.state.summarize_service


def get_reminder_service(request: Request) -> ReminderService:
    return request.app.state.reminder_service


async def get_invoice_service(
    db: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage_service),
) -> InvoiceService:
    """Per-request invoice service bound to the request's session."""
    return InvoiceService(db, storage=storage)


async def get_dispatch_service(
    db: AsyncSession = Depends(get_db),
    email_service: EmailService = Depends(get_email_service),
    storage: StorageService = Depends(get_storage_service),
    renderer: InvoicePDFRenderer = Depends(get_pdf_renderer),
    drive: GoogleDriveService = Depends(get_drive_service),
) -> InvoiceDispatchService:
    """Per-request dispatch service wired to the shared collaborators."""
    return InvoiceDispatchService(
        db,
        email_service=email_service,
        storage=storage,
        renderer=renderer,
        drive=drive,
    )
