"""
Custom exception hierarchy for structured error handling.

WHY: Custom exceptions provide:
1. Consistent error handling across the API
2. HTTP status code mapping for FastAPI
3. Structured error responses with contextual data
4. No sensitive data leaks in error messages

The categories callers care about:
- ValidationError: malformed input, never retried
- ResourceNotFoundError: invoice / client / template missing
- MissingConfigurationError: something the user must set up first
  (recipient email, template, business email, third-party credentials)
- ExternalServiceError: mail, storage, OAuth, Drive or AI call failed
- ComputationError: PDF rendering failed

IMPORTANT: NEVER use base Exception class. Always use custom exceptions.
"""

from typing import Any, Dict, Optional


class AppException(Exception):
    """
    Base exception class for all application exceptions.

    WHY: Centralizing exception handling in a base class ensures consistent
    error responses, HTTP status code mapping, and prevents sensitive data
    leaks in error messages.

    All custom exceptions should inherit from this class.
    """

    status_code: int = 500
    default_message: str = "An unexpected error occurred"

    def __init__(
        self,
        message: Optional[str] = None,
        status_code: Optional[int] = None,
        **context: Any,
    ):
        """
        Initialize exception with message and context.

        Args:
            message: Human-readable error message (shown verbatim by the UI)
            status_code: HTTP status code (overrides class default)
            **context: Additional context for debugging (filtered in to_dict)
        """
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        self.context = context
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """
        Serialize exception to dictionary for JSON response.

        Returns:
            Dictionary with error details (sensitive fields filtered out)
        """
        sensitive_fields = {"password", "token", "secret", "key", "api_key", "refresh_token"}
        filtered_context = {
            k: v for k, v in self.context.items() if k.lower() not in sensitive_fields
        }

        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "status_code": self.status_code,
            "details": filtered_context if filtered_context else None,
        }


# ============================================================================
# Validation & Input Exceptions
# ============================================================================


class ValidationError(AppException):
    """
    Raised when input validation fails.

    HTTP Status: 400 Bad Request
    """

    status_code = 400
    default_message = "Validation failed"


# ============================================================================
# Resource Exceptions
# ============================================================================


class ResourceNotFoundError(AppException):
    """
    Raised when a requested resource doesn't exist.

    WHY: Including resource type and ID in context helps debugging.

    HTTP Status: 404 Not Found
    """

    status_code = 404
    default_message = "Resource not found"


class InvoiceNotFoundError(ResourceNotFoundError):
    """Raised when an invoice doesn't exist."""

    default_message = "Invoice not found"


class ClientNotFoundError(ResourceNotFoundError):
    """Raised when a client doesn't exist."""

    default_message = "Client not found"


class EmailTemplateNotFoundError(ResourceNotFoundError):
    """Raised when an email template doesn't exist."""

    default_message = "Email template not found"


# ============================================================================
# Missing Configuration Exceptions
# ============================================================================


class MissingConfigurationError(AppException):
    """
    Raised when an operation needs setup the user hasn't done yet.

    WHY: These are terminal for the request but fixable by the user, so
    the message must say what to configure.

    HTTP Status: 400 Bad Request
    """

    status_code = 400
    default_message = "Required configuration is missing"


class MissingRecipientError(MissingConfigurationError):
    """Raised when neither a recipient override nor a client email exists."""

    default_message = (
        "No recipient email address available. "
        "Please provide an email or configure one for the client."
    )


class NoTemplateConfiguredError(MissingConfigurationError):
    """
    Raised when a template-based email is requested but no template exists.

    HTTP Status: 404 Not Found
    """

    status_code = 404
    default_message = "No email template found. Please create an email template."


class BusinessEmailNotConfiguredError(MissingConfigurationError):
    """Raised when the reminder summary has no business address to go to."""

    default_message = "Business email not configured"


class DriveFolderNotConfiguredError(MissingConfigurationError):
    """Raised when archiving for a client without a Google Drive folder."""

    default_message = "Client does not have a Google Drive folder configured"


class InvoicePDFNotGeneratedError(MissingConfigurationError):
    """Raised when an operation needs a stored PDF that doesn't exist yet."""

    default_message = "Invoice PDF has not been generated yet. Please generate the PDF first."


class CredentialsNotConfiguredError(MissingConfigurationError):
    """
    Raised when server-side third-party credentials are missing.

    HTTP Status: 500 Internal Server Error (operator must fix the deployment)
    """

    status_code = 500
    default_message = "Third-party credentials not configured"


# ============================================================================
# External Service Exceptions
# ============================================================================


class ExternalServiceError(AppException):
    """
    Base exception for external service failures.

    WHY: External API failures should return 502 Bad Gateway, indicating
    the problem is with an upstream service, not our application.

    HTTP Status: 502 Bad Gateway
    """

    status_code = 502
    default_message = "External service error"


class S3Error(ExternalServiceError):
    """
    Raised when S3/object storage operations fail.

    WHY: Storage reads and writes on the send path are best-effort, so
    callers catch this specifically and keep going.
    """

    default_message = "File storage error"


class EmailServiceError(ExternalServiceError):
    """
    Raised when the mail transport rejects or fails a send.

    WHY: A failed invoice send is fatal for the request; upstream status
    and message are carried in the context.
    """

    default_message = "Email service error"


class OAuthTokenError(ExternalServiceError):
    """
    Raised when the OAuth refresh-token exchange fails.

    HTTP Status: 401 Unauthorized
    """

    status_code = 401
    default_message = "OAuth token invalid or expired"


class GoogleDriveError(ExternalServiceError):
    """Raised when a Google Drive upload fails or the folder URL is unusable."""

    default_message = "Google Drive error"


class AIServiceError(ExternalServiceError):
    """
    Base exception for AI/LLM service failures.

    HTTP Status: 502 Bad Gateway
    """

    default_message = "AI service error"


class AIConnectionError(AIServiceError):
    """
    Raised when the summarization model server can't be reached.

    WHY: "Model server is down" is actionable for the user (start it),
    unlike a generic failure, so it is reported separately.

    HTTP Status: 503 Service Unavailable
    """

    status_code = 503
    default_message = "Cannot connect to Ollama. Make sure Ollama is running."


class AIRateLimitError(AIServiceError):
    """
    Raised when AI service rate limit is exceeded.

    HTTP Status: 429 Too Many Requests
    """

    status_code = 429
    default_message = "AI service rate limit exceeded - please try again later"


# ============================================================================
# Computation Exceptions
# ============================================================================


class ComputationError(AppException):
    """
    Raised when an internal computation fails.

    HTTP Status: 500 Internal Server Error
    """

    status_code = 500
    default_message = "Computation failed"


class PDFRenderError(ComputationError):
    """
    Raised when the invoice PDF can't be rendered.

    WHY: On the send path this means "no attachment available", not
    "abort the send".
    """

    default_message = "Failed to render invoice PDF"
