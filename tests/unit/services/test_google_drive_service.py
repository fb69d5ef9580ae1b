"""
Unit tests for GoogleDriveService.

WHAT: Folder URL parsing, token exchange and multipart upload.

HOW: httpx.AsyncClient is patched; post() answers the token exchange
first and the upload second.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

import httpx

from app.core.exceptions import (
    CredentialsNotConfiguredError,
    GoogleDriveError,
    OAuthTokenError,
    ValidationError,
)
from app.services.google_drive_service import (
    DRIVE_UPLOAD_URL,
    GOOGLE_TOKEN_URL,
    GoogleDriveService,
    extract_folder_id,
)

FOLDER_URL = "https://drive.google.com/drive/folders/1AbC_d-E?usp=sharing"


def response(status_code: int, json_data=None, text: str = "") -> MagicMock:
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = json_data or {}
    resp.text = text
    return resp


class TestExtractFolderId:
    """Tests for extract_folder_id."""

    def test_extracts_id(self):
        assert extract_folder_id(FOLDER_URL) == "1AbC_d-E"

    @pytest.mark.parametrize("url", ["", None, "https://drive.google.com/file/d/xyz"])
    def test_invalid_url(self, url):
        with pytest.raises(ValidationError) as exc_info:
            extract_folder_id(url)
        assert exc_info.value.message == "Invalid Google Drive folder URL"


class TestGoogleDriveService:
    """Tests for GoogleDriveService.upload_pdf."""

    @pytest.fixture
    def service(self):
        return GoogleDriveService(
            client_id="cid",
            client_secret="secret",
            refresh_token="refresh",
            timeout=5,
        )

    @pytest.mark.asyncio
    async def test_upload_success(self, service):
        with patch("app.services.google_drive_service.httpx.AsyncClient") as mock_client:
            post = AsyncMock(side_effect=[
                response(200, {"access_token": "ya29"}),
                response(200, {"id": "file-1"}),
            ])
            mock_client.return_value.__aenter__.return_value.post = post

            result = await service.upload_pdf(FOLDER_URL, b"%PDF", "7.pdf")

        assert result.file_id == "file-1"
        assert result.file_name == "7.pdf"

        token_call, upload_call = post.call_args_list
        assert token_call.args[0] == GOOGLE_TOKEN_URL
        assert token_call.kwargs["data"]["grant_type"] == "refresh_token"
        assert upload_call.args[0] == DRIVE_UPLOAD_URL
        assert upload_call.kwargs["headers"]["Authorization"] == "Bearer ya29"
        body = upload_call.kwargs["content"]
        assert b'"parents": ["1AbC_d-E"]' in body
        assert b"%PDF" in body

    @pytest.mark.asyncio
    async def test_token_failure(self, service):
        with patch("app.services.google_drive_service.httpx.AsyncClient") as mock_client:
            mock_client.return_value.__aenter__.return_value.post = AsyncMock(
                return_value=response(400, text="invalid_grant")
            )

            with pytest.raises(OAuthTokenError) as exc_info:
                await service.upload_pdf(FOLDER_URL, b"%PDF", "7.pdf")

        assert "invalid_grant" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_upload_failure(self, service):
        with patch("app.services.google_drive_service.httpx.AsyncClient") as mock_client:
            mock_client.return_value.__aenter__.return_value.post = AsyncMock(side_effect=[
                response(200, {"access_token": "ya29"}),
                response(403, text="insufficient permissions"),
            ])

            with pytest.raises(GoogleDriveError) as exc_info:
                await service.upload_pdf(FOLDER_URL, b"%PDF", "7.pdf")

        assert exc_info.value.context["upstream_status"] == 403

    @pytest.mark.asyncio
    async def test_timeout(self, service):
        with patch("app.services.google_drive_service.httpx.AsyncClient") as mock_client:
            mock_client.return_value.__aenter__.return_value.post = AsyncMock(
                side_effect=httpx.ReadTimeout("timed out")
            )

            with pytest.raises(GoogleDriveError):
                await service.upload_pdf(FOLDER_URL, b"%PDF", "7.pdf")

    @pytest.mark.asyncio
    async def test_bad_folder_checked_before_credentials(self, monkeypatch):
        from app.core import config
        for name in ("GOOGLE_CLIENT_ID", "GOOGLE_CLIENT_SECRET", "GOOGLE_REFRESH_TOKEN"):
            monkeypatch.setattr(config.settings, name, None)
        service = GoogleDriveService()

        with pytest.raises(ValidationError):
            await service.upload_pdf("not a url", b"%PDF", "7.pdf")
        with pytest.raises(CredentialsNotConfiguredError) as exc_info:
            await service.upload_pdf(FOLDER_URL, b"%PDF", "7.pdf")

        assert exc_info.value.message == "Google Drive credentials not configured"
        assert exc_info.value.status_code == 500
