"""
Unit tests for EmailService.

WHAT: Tests the Resend provider, the mock provider and the service's
error translation.

WHY: A failed send must surface as EmailServiceError, never as a
silent success, because invoice status is only updated after a send.

HOW: Uses a mocked httpx.AsyncClient for the Resend API.
"""

import base64

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

import httpx

from app.core.exceptions import EmailServiceError
from app.services.email import (
    EmailAttachment,
    EmailMessage,
    EmailService,
    EmailType,
    MockEmailProvider,
    ResendProvider,
)


def make_message(**overrides) -> EmailMessage:
    fields = dict(
        to=["billing@acme.example.com"],
        subject="Invoice 1",
        html_content="<p>Hi</p>",
        from_email="owner@studio.example.com",
    )
    fields.update(overrides)
    return EmailMessage(**fields)


def mock_post(mock_client, status_code=200, json_data=None, text=""):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = json_data or {}
    response.text = text
    post = AsyncMock(return_value=response)
    mock_client.return_value.__aenter__.return_value.post = post
    return post


class TestResendProvider:
    """Tests for ResendProvider."""

    @pytest.fixture
    def provider(self):
        return ResendProvider(api_key="re_test", timeout=5)

    def test_is_configured(self, provider):
        assert provider.is_configured() is True

    @pytest.mark.asyncio
    async def test_send_success(self, provider):
        """Test a 200 response returns the provider message id."""
        with patch("app.services.email.httpx.AsyncClient") as mock_client:
            post = mock_post(mock_client, json_data={"id": "msg_123"})

            result = await provider.send(make_message(cc=["ap@acme.example.com"]))

            assert result.success is True
            assert result.message_id == "msg_123"
            payload = post.call_args.kwargs["json"]
            assert payload["from"] == "owner@studio.example.com"
            assert payload["to"] == ["billing@acme.example.com"]
            assert payload["cc"] == ["ap@acme.example.com"]
            assert "attachments" not in payload
            assert post.call_args.kwargs["headers"]["Authorization"] == "Bearer re_test"
            mock_client.assert_called_once_with(timeout=5)

    @pytest.mark.asyncio
    async def test_send_encodes_attachments(self, provider):
        """Test attachments are sent base64 encoded."""
        attachment = EmailAttachment(filename="1.pdf", content=b"%PDF-1.4")

        with patch("app.services.email.httpx.AsyncClient") as mock_client:
            post = mock_post(mock_client, json_data={"id": "msg_1"})

            await provider.send(make_message(attachments=[attachment]))

            sent = post.call_args.kwargs["json"]["attachments"]
            assert sent == [
                {"filename": "1.pdf", "content": base64.b64encode(b"%PDF-1.4").decode("ascii")}
            ]

    @pytest.mark.asyncio
    async def test_send_api_error(self, provider):
        """Test a non-2xx response is a failed result with the status."""
        with patch("app.services.email.httpx.AsyncClient") as mock_client:
            mock_post(mock_client, status_code=422, text="invalid from")

            result = await provider.send(make_message())

            assert result.success is False
            assert result.status_code == 422
            assert "invalid from" in result.error

    @pytest.mark.asyncio
    async def test_send_network_error(self, provider):
        """Test transport errors become a failed result."""
        with patch("app.services.email.httpx.AsyncClient") as mock_client:
            mock_client.return_value.__aenter__.return_value.post = AsyncMock(
                side_effect=httpx.ConnectTimeout("timed out")
            )

            result = await provider.send(make_message())

            assert result.success is False
            assert result.error == "timed out"

    @pytest.mark.asyncio
    async def test_send_unconfigured(self, monkeypatch):
        """Test no request is made without an API key."""
        from app.core import config
        monkeypatch.setattr(config.settings, "RESEND_API_KEY", None)
        provider = ResendProvider(api_key=None)

        with patch("app.services.email.httpx.AsyncClient") as mock_client:
            result = await provider.send(make_message())

            assert result.success is False
            mock_client.assert_not_called()


class TestEmailService:
    """Tests for EmailService."""

    def test_defaults_to_mock_without_api_key(self):
        service = EmailService()
        assert isinstance(service.provider, MockEmailProvider)

    @pytest.mark.asyncio
    async def test_send_email_records_with_mock(self):
        service = EmailService(provider=MockEmailProvider())

        result = await service.send_email(make_message(email_type=EmailType.REMINDER))

        assert result.success is True
        assert result.message_id.startswith("mock-")
        assert MockEmailProvider.sent_emails[-1].subject == "Invoice 1"

    @pytest.mark.asyncio
    async def test_mock_keeps_only_recent_sends(self, monkeypatch):
        """Test the mock outbox is capped at its most recent messages."""
        monkeypatch.setattr(MockEmailProvider, "MAX_RECORDED", 3)
        provider = MockEmailProvider()

        for n in range(5):
            await provider.send(make_message(subject=f"Invoice {n}"))

        assert [m.subject for m in MockEmailProvider.sent_emails] == [
            "Invoice 2",
            "Invoice 3",
            "Invoice 4",
        ]

    @pytest.mark.asyncio
    async def test_send_email_failure_raises(self):
        """Test a failed provider result raises EmailServiceError (502)."""
        provider = ResendProvider(api_key="re_test")

        with patch("app.services.email.httpx.AsyncClient") as mock_client:
            mock_post(mock_client, status_code=500, text="boom")

            with pytest.raises(EmailServiceError) as exc_info:
                await EmailService(provider=provider).send_email(make_message())

        assert exc_info.value.status_code == 502
        assert exc_info.value.context["upstream_status"] == 500
        assert "Failed to send email" in exc_info.value.message
