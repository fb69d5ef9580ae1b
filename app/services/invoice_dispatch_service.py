"""
Invoice Dispatch Service.

WHAT: Sends invoices by email, previews the email, and archives PDFs to
Google Drive.

WHY: Sending is the one step with a real-world side effect that cannot be
undone. The pipeline is therefore split into a primary operation that
must succeed (resolve recipient, build content, send, mark sent) and
auxiliary operations that must never break it (backfilling notes and
terms, persisting a freshly rendered PDF, archiving to Drive).

HOW: send_invoice runs:
1. Load invoice + client + items, and business settings
2. Resolve the recipient (fails before any mail is sent)
3. Snapshot metadata if missing; backfill notes/terms (auxiliary)
4. Build subject and body (template or freeform)
5. Resolve PDF bytes: stored copy, else render and persist (auxiliary)
6. Send through EmailService (fatal on failure)
7. Mark sent and commit
8. Archive to Drive if asked (auxiliary, reported in the response)
"""

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import (
    AppException,
    CredentialsNotConfiguredError,
    DriveFolderNotConfiguredError,
    InvoiceNotFoundError,
    InvoicePDFNotGeneratedError,
    MissingRecipientError,
    NoTemplateConfiguredError,
    PDFRenderError,
    S3Error,
)
from app.dao.business_settings import BusinessSettingsDAO
from app.dao.email_template import EmailTemplateDAO
from app.dao.invoice import InvoiceDAO
from app.models.email_template import EmailTemplate
from app.models.invoice import Invoice
from app.schemas.dispatch import SendInvoiceRequest
from app.services.email import EmailAttachment, EmailMessage, EmailService, EmailType
from app.services.google_drive_service import GoogleDriveService, extract_folder_id
from app.services.invoice_snapshot import (
    ResolvedParties,
    build_invoice_metadata,
    build_payment_information,
    resolve_invoice_parties,
)
from app.services.pdf_service import (
    InvoicePDFRenderer,
    build_invoice_document,
    format_currency,
    format_date,
    format_money,
)
from app.services.placeholder_engine import render_placeholders, text_to_html
from app.services.storage_service import StorageService, invoice_pdf_path

logger = logging.getLogger(__name__)

DEFAULT_TERMS = "Please make the payment by the due date."


# ============================================================================
# Auxiliary operations
# ============================================================================


@dataclass
class AuxiliaryResult:
    """Outcome of a best-effort side operation."""

    name: str
    ok: bool
    error: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)


async def run_auxiliary(
    name: str,
    operation: Callable[[], Awaitable[Optional[Dict[str, Any]]]],
) -> AuxiliaryResult:
    """
    Run a side operation whose failure must not affect the caller.

    Errors are logged and captured in the result instead of raised.
    """
    try:
        data = await operation()
    except AppException as e:
        logger.warning(f"{name} failed: {e.message}", extra={"operation": name})
        return AuxiliaryResult(name=name, ok=False, error=e.message)
    except Exception as e:
        logger.exception(f"{name} failed unexpectedly", extra={"operation": name})
        return AuxiliaryResult(name=name, ok=False, error=str(e) or e.__class__.__name__)
    return AuxiliaryResult(name=name, ok=True, data=data or {})


# ============================================================================
# Email content
# ============================================================================


def build_email_values(invoice: Invoice, parties: ResolvedParties) -> Dict[str, str]:
    """
    Placeholder values for invoice emails.

    Client and company fields come from the resolved parties, so a
    snapshot always wins over live data.
    """
    bill_to = parties.bill_to_value
    business = parties.business_value
    values = {
        "invoice_number": str(invoice.invoice_number),
        "invoice_date": format_date(invoice.issue_date),
        "due_date": format_date(invoice.due_date),
        "amount": format_currency(invoice.total),
        "subtotal": format_money(invoice.subtotal),
        "tax": format_money(invoice.tax),
        "total": format_currency(invoice.total),
        "total_raw": format_money(invoice.total),
        "terms": parties.terms or DEFAULT_TERMS,
        "client_name": bill_to("name", "Client"),
        "client_email": bill_to("email"),
        "client_address": bill_to("address"),
        "client_city": bill_to("city"),
        "client_state": bill_to("state"),
        "client_postal_code": bill_to("postal_code"),
        "client_country": bill_to("country"),
        "client_terms": parties.terms,
        "company_name": business("company_name", "Your Company"),
        "owner_name": business("owner_name"),
        "company_address": business("address"),
        "company_city": business("city"),
        "company_state": business("state"),
        "company_postal_code": business("postal_code"),
        "company_country": business("country"),
        "company_email": business("email"),
        "company_phone": business("phone"),
    }
    for name in (
        "beneficiary_name",
        "beneficiary_cnpj",
        "swift_code",
        "bank_name",
        "bank_address",
        "routing_number",
        "account_number",
        "account_type",
    ):
        values[name] = business(name)
    return values


class InvoiceDispatchService:
    """
    Service for sending and archiving invoices.

    Collaborators are created once at startup and passed in; the session
    is per request.
    """

    def __init__(
        self,
        session: AsyncSession,
        email_service: EmailService,
        storage: StorageService,
        renderer: InvoicePDFRenderer,
        drive: Optional[GoogleDriveService] = None,
    ):
        self.session = session
        self.email_service = email_service
        self.storage = storage
        self.renderer = renderer
        self.drive = drive
        self.invoice_dao = InvoiceDAO(session)
        self.settings_dao = BusinessSettingsDAO(session)
        self.template_dao = EmailTemplateDAO(session)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def _load(self, invoice_id: uuid.UUID) -> Tuple[Invoice, Any]:
        invoice = await self.invoice_dao.get_with_relations(invoice_id)
        if invoice is None:
            raise InvoiceNotFoundError(invoice_id=str(invoice_id))
        business = await self.settings_dao.get_current()
        return invoice, business

    async def _resolve_template(self, invoice: Invoice) -> EmailTemplate:
        """
        The client's template, else the first template by name.

        Raises:
            NoTemplateConfiguredError: No templates exist
        """
        client = invoice.client
        if client is not None and client.email_template_id is not None:
            template = await self.template_dao.get_by_id(client.email_template_id)
            if template is not None:
                return template
            logger.warning(
                f"Client {client.id} points at missing template {client.email_template_id}"
            )

        template = await self.template_dao.get_first()
        if template is None:
            raise NoTemplateConfiguredError()
        return template

    async def _template_content(
        self,
        invoice: Invoice,
        parties: ResolvedParties,
    ) -> Tuple[str, str]:
        template = await self._resolve_template(invoice)
        values = build_email_values(invoice, parties)
        return (
            render_placeholders(template.subject, values),
            render_placeholders(template.body, values),
        )

    # ------------------------------------------------------------------
    # PDF
    # ------------------------------------------------------------------

    async def _persist_pdf(self, invoice: Invoice, pdf_bytes: bytes) -> Dict[str, Any]:
        path = invoice_pdf_path(invoice.id, invoice.invoice_number)
        await self.storage.upload(pdf_bytes, path)
        await self.invoice_dao.set_file_path(invoice, path)
        return {"file_path": path}

    async def resolve_pdf(
        self,
        invoice: Invoice,
        parties: ResolvedParties,
    ) -> Optional[bytes]:
        """
        PDF bytes for an invoice: the stored copy, else a fresh render.

        A fresh render is persisted best-effort. Returns None only when
        nothing is stored and rendering failed.
        """
        if invoice.file_path:
            try:
                return await self.storage.download(invoice.file_path)
            except S3Error as e:
                logger.warning(
                    f"Stored PDF for invoice {invoice.id} unavailable, re-rendering: {e.message}"
                )

        try:
            pdf_bytes = self.renderer.render(build_invoice_document(invoice, parties))
        except PDFRenderError as e:
            logger.warning(f"Sending invoice {invoice.id} without attachment: {e.message}")
            return None

        await run_auxiliary("pdf_persist", lambda: self._persist_pdf(invoice, pdf_bytes))
        return pdf_bytes

    # ------------------------------------------------------------------
    # Drive
    # ------------------------------------------------------------------

    def _require_drive_folder(self, invoice: Invoice) -> str:
        folder_url = invoice.client.google_drive_folder_url if invoice.client else None
        if not folder_url:
            raise DriveFolderNotConfiguredError(invoice_id=str(invoice.id))
        return folder_url

    def _require_drive(self) -> GoogleDriveService:
        if self.drive is None or not self.drive.is_configured():
            raise CredentialsNotConfiguredError(
                message="Google Drive credentials not configured"
            )
        return self.drive

    async def _archive(self, invoice: Invoice, pdf_bytes: Optional[bytes]) -> Dict[str, Any]:
        folder_url = self._require_drive_folder(invoice)
        if not pdf_bytes:
            raise InvoicePDFNotGeneratedError(invoice_id=str(invoice.id))
        drive = self._require_drive()
        result = await drive.upload_pdf(folder_url, pdf_bytes, f"{invoice.invoice_number}.pdf")
        return {"file_id": result.file_id, "file_name": result.file_name}

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def send_invoice(self, request: SendInvoiceRequest) -> Dict[str, Any]:
        """
        Email an invoice to its client.

        Args:
            request: Validated send request

        Returns:
            {"success", "message", "message_id", "google_drive"} where
            google_drive is None (not requested), {"file_id", "file_name"}
            or {"error"}

        Raises:
            InvoiceNotFoundError: Unknown invoice
            MissingRecipientError: No override and no client email
            NoTemplateConfiguredError: Template path with no templates
            EmailServiceError: The mail provider failed (nothing is marked)
        """
        invoice, business = await self._load(request.invoice_id)
        client = invoice.client

        recipient = request.to or (client.target_email if client is not None else None)
        if not recipient:
            raise MissingRecipientError(invoice_id=str(invoice.id))

        if invoice.invoice_metadata is None:
            invoice.invoice_metadata = build_invoice_metadata(client, business)
            await self.session.flush()

        await run_auxiliary(
            "notes_terms_backfill",
            lambda: self._backfill(invoice, business),
        )

        parties = resolve_invoice_parties(invoice, client, business)

        if request.use_template:
            subject, html = await self._template_content(invoice, parties)
        else:
            values = build_email_values(invoice, parties)
            subject = render_placeholders(
                request.subject or f"Invoice {invoice.invoice_number}", values
            )
            html = text_to_html(render_placeholders(request.body or "", values))

        pdf_bytes = await self.resolve_pdf(invoice, parties)

        attachments = []
        if pdf_bytes:
            attachments.append(
                EmailAttachment(filename=f"{invoice.invoice_number}.pdf", content=pdf_bytes)
            )

        cc = [client.cc_email] if client is not None and client.cc_email else []
        from_email = (business.email if business is not None else "") or settings.EMAIL_DEFAULT_FROM

        result = await self.email_service.send_email(
            EmailMessage(
                to=[recipient],
                subject=subject,
                html_content=html,
                from_email=from_email,
                cc=cc,
                attachments=attachments,
                email_type=EmailType.INVOICE,
                metadata={"invoice_id": str(invoice.id)},
            )
        )

        await self.invoice_dao.mark_sent(invoice)
        await self.session.commit()
        logger.info(
            f"Invoice {invoice.invoice_number} ({invoice.id}) sent to {recipient}",
            extra={
                "invoice_id": str(invoice.id),
                "message_id": result.message_id,
                "has_attachment": bool(attachments),
            },
        )

        google_drive = None
        if request.save_to_google_drive:
            archived = await run_auxiliary(
                "google_drive_archive",
                lambda: self._archive(invoice, pdf_bytes),
            )
            google_drive = archived.data if archived.ok else {"error": archived.error}

        return {
            "success": True,
            "message": "Invoice sent successfully",
            "message_id": result.message_id,
            "google_drive": google_drive,
        }

    async def _backfill(self, invoice: Invoice, business: Any) -> Dict[str, Any]:
        client_terms = invoice.client.terms if invoice.client is not None else None
        changed = await self.invoice_dao.backfill_notes_and_terms(
            invoice,
            notes=build_payment_information(business) or None,
            terms=client_terms or None,
        )
        return {"changed": changed}

    async def preview_email(self, invoice_id: uuid.UUID) -> Dict[str, str]:
        """
        Build the template-based email without sending it.

        Returns:
            {"html", "subject"}

        Raises:
            InvoiceNotFoundError: Unknown invoice
            NoTemplateConfiguredError: No templates exist
        """
        invoice, business = await self._load(invoice_id)
        parties = resolve_invoice_parties(invoice, invoice.client, business)
        subject, html = await self._template_content(invoice, parties)
        return {"html": html, "subject": subject}

    async def save_to_drive(self, invoice_id: uuid.UUID) -> Dict[str, Any]:
        """
        Upload an invoice's stored PDF to the client's Drive folder.

        Raises:
            InvoiceNotFoundError: Unknown invoice
            DriveFolderNotConfiguredError: Client has no folder
            ValidationError: Folder URL can't be parsed
            InvoicePDFNotGeneratedError: No stored PDF
            CredentialsNotConfiguredError: Google credentials missing
            S3Error / OAuthTokenError / GoogleDriveError: Upstream failures
        """
        invoice, _ = await self._load(invoice_id)

        folder_url = self._require_drive_folder(invoice)
        extract_folder_id(folder_url)
        if not invoice.file_path:
            raise InvoicePDFNotGeneratedError(invoice_id=str(invoice.id))
        drive = self._require_drive()

        pdf_bytes = await self.storage.download(invoice.file_path)
        result = await drive.upload_pdf(folder_url, pdf_bytes, f"{invoice.invoice_number}.pdf")

        return {
            "success": True,
            "file_id": result.file_id,
            "file_name": result.file_name,
            "message": f"Invoice {invoice.invoice_number} saved to Google Drive successfully",
        }
