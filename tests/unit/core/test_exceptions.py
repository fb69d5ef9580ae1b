"""
Tests for custom exception hierarchy.

WHY: Comprehensive exception testing ensures:
1. Exceptions serialize correctly without leaking sensitive data
2. HTTP status codes map correctly
3. Context data is properly filtered
4. Exception handlers work as expected
"""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.core.exceptions import (
    AIConnectionError,
    AIRateLimitError,
    AppException,
    BusinessEmailNotConfiguredError,
    CredentialsNotConfiguredError,
    DriveFolderNotConfiguredError,
    EmailServiceError,
    GoogleDriveError,
    InvoiceNotFoundError,
    InvoicePDFNotGeneratedError,
    MissingRecipientError,
    NoTemplateConfiguredError,
    OAuthTokenError,
    PDFRenderError,
    ResourceNotFoundError,
    S3Error,
    ValidationError,
)
from app.core.exception_handlers import app_exception_handler, validation_exception_handler
from fastapi.exceptions import RequestValidationError


class TestAppException:
    """Test base AppException class."""

    def test_default_message(self):
        """Verify default message is used when none provided."""
        exc = AppException()
        assert exc.message == "An unexpected error occurred"
        assert exc.status_code == 500

    def test_custom_message(self):
        """Verify custom message overrides default."""
        exc = AppException(message="Custom error message")
        assert exc.message == "Custom error message"
        assert str(exc) == "Custom error message"

    def test_custom_status_code(self):
        """Verify custom status code overrides class default."""
        exc = AppException(status_code=418)
        assert exc.status_code == 418

    def test_context_data(self):
        """Verify context data is stored."""
        exc = AppException(invoice_id="abc", action="send")
        assert exc.context == {"invoice_id": "abc", "action": "send"}

    def test_to_dict_basic(self):
        """Verify exception serializes to dict correctly."""
        exc = AppException(message="Test error", invoice_id="abc")
        result = exc.to_dict()

        assert result == {
            "error": "AppException",
            "message": "Test error",
            "status_code": 500,
            "details": {"invoice_id": "abc"},
        }

    def test_to_dict_filters_sensitive_data(self):
        """Verify sensitive fields are filtered from dict."""
        exc = AppException(
            message="Test error",
            invoice_id="abc",
            refresh_token="1//0g",
            api_key="re_123",
            secret="mysecret",
            regular_field="visible",
        )
        details = exc.to_dict()["details"]

        assert "refresh_token" not in details
        assert "api_key" not in details
        assert "secret" not in details
        assert details["invoice_id"] == "abc"
        assert details["regular_field"] == "visible"

    def test_to_dict_no_context(self):
        """Verify to_dict works with no context data."""
        assert AppException(message="Test error").to_dict()["details"] is None


class TestStatusCodes:
    """Each failure kind maps to a fixed HTTP status."""

    @pytest.mark.parametrize(
        "exc_class, status_code",
        [
            (ValidationError, 400),
            (ResourceNotFoundError, 404),
            (InvoiceNotFoundError, 404),
            (MissingRecipientError, 400),
            (BusinessEmailNotConfiguredError, 400),
            (DriveFolderNotConfiguredError, 400),
            (InvoicePDFNotGeneratedError, 400),
            (NoTemplateConfiguredError, 404),
            (CredentialsNotConfiguredError, 500),
            (S3Error, 502),
            (EmailServiceError, 502),
            (GoogleDriveError, 502),
            (OAuthTokenError, 401),
            (AIConnectionError, 503),
            (AIRateLimitError, 429),
            (PDFRenderError, 500),
        ],
    )
    def test_status_code(self, exc_class, status_code):
        assert exc_class().status_code == status_code

    def test_missing_recipient_message(self):
        assert MissingRecipientError().message.startswith("No recipient email address available")


class TestExceptionHandlerIntegration:
    """Test exception handler integration with FastAPI."""

    @pytest.fixture
    def app(self):
        """Create test FastAPI app with exception handlers."""
        app = FastAPI()
        app.add_exception_handler(AppException, app_exception_handler)
        app.add_exception_handler(RequestValidationError, validation_exception_handler)

        @app.get("/test-not-found")
        async def test_not_found():
            raise InvoiceNotFoundError(invoice_id="abc")

        @app.get("/test-sensitive-data")
        async def test_sensitive_data():
            raise AppException(
                message="Error with sensitive data",
                invoice_id="abc",
                api_key="should-be-filtered",
            )

        @app.get("/test-validation/{number}")
        async def test_validation(number: int):
            return {"number": number}

        return app

    @pytest.fixture
    def client(self, app):
        """Create test client."""
        return TestClient(app)

    def test_exception_handler_returns_json(self, client):
        """Verify exception handler returns JSON response."""
        response = client.get("/test-not-found")

        assert response.status_code == 404
        assert response.headers["content-type"] == "application/json"

        data = response.json()
        assert data["error"] == "InvoiceNotFoundError"
        assert data["message"] == "Invoice not found"
        assert data["status_code"] == 404
        assert data["details"]["invoice_id"] == "abc"

    def test_exception_handler_filters_sensitive_data(self, client):
        """Verify exception handler filters sensitive data from response."""
        data = client.get("/test-sensitive-data").json()

        assert "api_key" not in data["details"]
        assert data["details"]["invoice_id"] == "abc"

    def test_request_validation_is_400(self, client):
        response = client.get("/test-validation/not-a-number")

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "ValidationError"
        assert data["details"]["errors"][0]["field"] == "path.number"
