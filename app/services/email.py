"""
Email service for sending invoice and reminder emails.

WHAT: This service provides a unified interface for sending emails through
a transactional email provider (Resend), with a mock provider for
development and tests.

WHY: Email is how invoices reach clients and how the business learns
about unpaid invoices. A send that fails must be reported to the caller,
never silently dropped, because a sent email cannot be recalled and the
invoice status depends on it.

HOW: Uses the Resend REST API over httpx. The service abstracts provider
details and provides:
- Attachments (base64 encoded for the API)
- CC recipients
- A finite request timeout
- EmailServiceError with the upstream status when a send fails

Design decisions:
- Provider abstraction: Easy to switch providers
- Mock provider when no API key is configured, so local runs and tests
  never hit the network
"""

import base64
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

import httpx

from app.core.config import settings
from app.core.exceptions import EmailServiceError

logger = logging.getLogger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"


# ============================================================================
# Email Types and Messages
# ============================================================================


class EmailType(str, Enum):
    """
    Types of emails this application sends.

    WHY: Used to tag log lines so invoice sends and reminder summaries
    can be told apart.
    """

    INVOICE = "invoice"
    """Invoice sent to a client."""

    REMINDER = "reminder"
    """Unpaid invoice summary sent to the business."""


@dataclass
class EmailAttachment:
    """A file attached to an email."""

    filename: str
    content: bytes
    content_type: str = "application/pdf"

    def to_resend(self) -> Dict[str, str]:
        return {
            "filename": self.filename,
            "content": base64.b64encode(self.content).decode("ascii"),
        }


@dataclass
class EmailMessage:
    """
    Represents an email to be sent.

    WHAT: Data container for email content and metadata.
    """

    to: List[str]
    """Recipient email addresses."""

    subject: str
    """Email subject line."""

    html_content: str
    """HTML email body."""

    from_email: Optional[str] = None
    """Sender email (defaults to EMAIL_DEFAULT_FROM)."""

    cc: List[str] = field(default_factory=list)
    """Copy recipients."""

    attachments: List[EmailAttachment] = field(default_factory=list)

    reply_to: Optional[str] = None
    """Reply-to address."""

    email_type: EmailType = EmailType.INVOICE
    """Type of email for logging."""

    metadata: Optional[Dict[str, Any]] = None
    """Additional context for logging."""


@dataclass
class EmailResult:
    """
    Result of an email send operation.
    """

    success: bool
    """Whether email was sent successfully."""

    message_id: Optional[str] = None
    """Provider message ID for tracking."""

    error: Optional[str] = None
    """Error message if send failed."""

    provider: Optional[str] = None
    """Which provider was used."""

    status_code: Optional[int] = None
    """Upstream HTTP status, when the provider answered."""


# ============================================================================
# Email Provider Interface
# ============================================================================


class EmailProvider(ABC):
    """
    Abstract base class for email providers.

    WHY: Provider abstraction allows:
    - Easy switching between providers
    - Testing with mock providers
    """

    @abstractmethod
    async def send(self, message: EmailMessage) -> EmailResult:
        """
        Send an email message.

        Args:
            message: The email message to send

        Returns:
            EmailResult with success status and provider details
        """
        pass

    @abstractmethod
    def is_configured(self) -> bool:
        """
        Check if this provider is properly configured.

        Returns:
            True if API keys/credentials are present
        """
        pass


class ResendProvider(EmailProvider):
    """
    Resend email provider implementation.

    WHY: Resend provides a simple REST API with attachment support and
    returns a message id we can hand back to the caller.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        """
        Initialize Resend provider.

        Args:
            api_key: Resend API key (defaults to settings)
            timeout: Request timeout in seconds (defaults to settings)
        """
        self._api_key = api_key or settings.RESEND_API_KEY
        self._timeout = timeout or settings.EMAIL_TIMEOUT_SECONDS

    def is_configured(self) -> bool:
        """Check if Resend API key is configured."""
        return bool(self._api_key)

    def _payload(self, message: EmailMessage) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "from": message.from_email or settings.EMAIL_DEFAULT_FROM,
            "to": message.to,
            "subject": message.subject,
            "html": message.html_content,
        }
        if message.cc:
            payload["cc"] = message.cc
        if message.reply_to:
            payload["reply_to"] = message.reply_to
        if message.attachments:
            payload["attachments"] = [a.to_resend() for a in message.attachments]
        return payload

    async def send(self, message: EmailMessage) -> EmailResult:
        """
        Send email via Resend API.

        HOW: Uses httpx for async HTTP requests to Resend API.

        Args:
            message: Email message to send

        Returns:
            EmailResult with send status
        """
        if not self.is_configured():
            return EmailResult(
                success=False,
                error="Resend API key not configured",
                provider="resend",
            )

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(
                    RESEND_API_URL,
                    headers={
                        "Authorization": f"Bearer {self._api_key}",
                        "Content-Type": "application/json",
                    },
                    json=self._payload(message),
                )

                if response.status_code in (200, 201):
                    data = response.json()
                    return EmailResult(
                        success=True,
                        message_id=data.get("id"),
                        provider="resend",
                        status_code=response.status_code,
                    )
                else:
                    return EmailResult(
                        success=False,
                        error=f"Resend API error: {response.status_code} - {response.text}",
                        provider="resend",
                        status_code=response.status_code,
                    )

        except httpx.HTTPError as e:
            logger.error(f"Resend send error: {e}")
            return EmailResult(
                success=False,
                error=str(e) or e.__class__.__name__,
                provider="resend",
            )


class MockEmailProvider(EmailProvider):
    """
    Mock email provider for testing and development.

    WHY: Allows testing email flows without sending real emails.
    Logs emails instead of sending them.
    """

    sent_emails: List[EmailMessage] = []
    """Class-level list to track sent emails for testing."""

    MAX_RECORDED = 100
    """Only the most recent sends are kept, so long dev runs don't grow memory."""

    def is_configured(self) -> bool:
        """Mock provider is always configured."""
        return True

    async def send(self, message: EmailMessage) -> EmailResult:
        """
        Mock send - logs email instead of sending.

        Returns:
            Always returns success
        """
        logger.info(
            f"[MOCK EMAIL] To: {', '.join(message.to)}, "
            f"Subject: {message.subject}, "
            f"Type: {message.email_type.value}, "
            f"Attachments: {len(message.attachments)}"
        )

        MockEmailProvider.sent_emails.append(message)
        del MockEmailProvider.sent_emails[: -self.MAX_RECORDED]

        return EmailResult(
            success=True,
            message_id=f"mock-{datetime.utcnow().timestamp()}",
            provider="mock",
        )

    @classmethod
    def clear_sent_emails(cls):
        """Clear sent emails list (for test cleanup)."""
        cls.sent_emails = []


# ============================================================================
# Email Service
# ============================================================================


class EmailService:
    """
    High-level email service.

    WHAT: Sends an EmailMessage through the configured provider and turns
    provider failures into EmailServiceError.

    HOW: Created once in create_app() and injected into request handlers
    through app.core.deps.get_email_service.
    """

    def __init__(self, provider: Optional[EmailProvider] = None):
        """
        Initialize email service.

        Args:
            provider: Email provider to use (auto-detected if not provided)
        """
        if provider:
            self._provider = provider
        elif settings.RESEND_API_KEY:
            self._provider = ResendProvider()
        else:
            # Use mock provider in development/testing
            logger.warning("No email provider configured, using mock provider")
            self._provider = MockEmailProvider()

    @property
    def provider(self) -> EmailProvider:
        return self._provider

    async def send_email(self, message: EmailMessage) -> EmailResult:
        """
        Send an email message.

        WHAT: Sends an email using the configured provider.

        Args:
            message: Email message to send

        Returns:
            EmailResult for a successful send

        Raises:
            EmailServiceError: If the provider rejected or failed the send
        """
        logger.info(
            f"Sending {message.email_type.value} email to {', '.join(message.to)}",
            extra={
                "email_type": message.email_type.value,
                "to": message.to,
                "cc": message.cc,
                "attachments": [a.filename for a in message.attachments],
            },
        )

        result = await self._provider.send(message)

        if not result.success:
            logger.error(
                f"Email send failed: {result.error}",
                extra={
                    "email_type": message.email_type.value,
                    "to": message.to,
                    "error": result.error,
                },
            )
            raise EmailServiceError(
                message=f"Failed to send email: {result.error}",
                provider=result.provider,
                upstream_status=result.status_code,
            )

        logger.info(
            f"Email sent successfully: {result.message_id}",
            extra={
                "message_id": result.message_id,
                "provider": result.provider,
            },
        )
        return result
