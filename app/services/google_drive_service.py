"""
Google Drive archival service.

WHAT: Uploads invoice PDFs into a client's Google Drive folder.

WHY: Clients and accountants keep a shared folder per client; archiving
each sent invoice there saves a manual upload.

HOW:
1. Parse the folder id out of the folder URL the user pasted
2. Exchange the configured refresh token for an access token
3. Multipart upload (JSON metadata + PDF bytes) into that folder

All calls go through httpx with a finite timeout. Token failures raise
OAuthTokenError, upload failures raise GoogleDriveError.
"""

import json
import logging
import re
import uuid
from dataclasses import dataclass
from typing import Optional

import httpx

from app.core.config import settings
from app.core.exceptions import (
    CredentialsNotConfiguredError,
    GoogleDriveError,
    OAuthTokenError,
    ValidationError,
)

logger = logging.getLogger(__name__)

GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
DRIVE_UPLOAD_URL = "https://www.googleapis.com/upload/drive/v3/files?uploadType=multipart"

FOLDER_ID_PATTERN = re.compile(r"folders/([a-zA-Z0-9_-]+)")


def extract_folder_id(folder_url: str) -> str:
    """
    Get the folder id from a Drive folder URL.

    Example:
        >>> extract_folder_id("https://drive.google.com/drive/folders/1AbC_d-E")
        '1AbC_d-E'

    Raises:
        ValidationError: If the URL has no folders/<id> segment
    """
    match = FOLDER_ID_PATTERN.search(folder_url or "")
    if not match:
        raise ValidationError(
            message="Invalid Google Drive folder URL",
            folder_url=folder_url,
        )
    return match.group(1)


@dataclass
class DriveUploadResult:
    file_id: str
    file_name: str


class GoogleDriveService:
    """
    Uploads files to Google Drive with a long-lived refresh token.

    One instance is created at startup. Credentials default to settings.
    """

    def __init__(
        self,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        refresh_token: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.client_id = client_id or settings.GOOGLE_CLIENT_ID
        self.client_secret = client_secret or settings.GOOGLE_CLIENT_SECRET
        self.refresh_token = refresh_token or settings.GOOGLE_REFRESH_TOKEN
        self.timeout = timeout or settings.GOOGLE_DRIVE_TIMEOUT_SECONDS

    def is_configured(self) -> bool:
        return bool(self.client_id and self.client_secret and self.refresh_token)

    async def _get_access_token(self, client: httpx.AsyncClient) -> str:
        """
        Exchange the refresh token for an access token.

        Raises:
            OAuthTokenError: If Google rejects the exchange
        """
        response = await client.post(
            GOOGLE_TOKEN_URL,
            data={
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "refresh_token": self.refresh_token,
                "grant_type": "refresh_token",
            },
        )
        if response.status_code != 200:
            logger.error(
                f"Failed to get Google access token: {response.status_code}",
                extra={"status": response.status_code, "error": response.text},
            )
            raise OAuthTokenError(
                message=f"Failed to get Google access token: {response.text}",
                upstream_status=response.status_code,
            )

        access_token = response.json().get("access_token")
        if not access_token:
            raise OAuthTokenError(message="Google token response had no access token")
        return access_token

    @staticmethod
    def _multipart_body(metadata: dict, pdf_bytes: bytes, boundary: str) -> bytes:
        return b"".join(
            [
                f"--{boundary}\r\n".encode(),
                b"Content-Type: application/json; charset=UTF-8\r\n\r\n",
                json.dumps(metadata).encode(),
                f"\r\n--{boundary}\r\n".encode(),
                b"Content-Type: application/pdf\r\n\r\n",
                pdf_bytes,
                f"\r\n--{boundary}--".encode(),
            ]
        )

    async def upload_pdf(
        self,
        folder_url: str,
        pdf_bytes: bytes,
        filename: str,
    ) -> DriveUploadResult:
        """
        Upload a PDF into the folder at folder_url.

        Args:
            folder_url: Drive folder URL (must contain folders/<id>)
            pdf_bytes: File content
            filename: Name to give the file in Drive

        Returns:
            DriveUploadResult with the new file's id

        Raises:
            ValidationError: Folder URL can't be parsed
            CredentialsNotConfiguredError: Google credentials missing
            OAuthTokenError: Token exchange failed
            GoogleDriveError: Upload failed or timed out
        """
        folder_id = extract_folder_id(folder_url)

        if not self.is_configured():
            raise CredentialsNotConfiguredError(
                message="Google Drive credentials not configured"
            )

        metadata = {
            "name": filename,
            "parents": [folder_id],
            "mimeType": "application/pdf",
        }
        boundary = f"invoice-{uuid.uuid4().hex}"

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                access_token = await self._get_access_token(client)

                logger.info(f"Uploading {filename} to Google Drive folder {folder_id}")
                response = await client.post(
                    DRIVE_UPLOAD_URL,
                    headers={
                        "Authorization": f"Bearer {access_token}",
                        "Content-Type": f"multipart/related; boundary={boundary}",
                    },
                    content=self._multipart_body(metadata, pdf_bytes, boundary),
                )
        except httpx.HTTPError as e:
            logger.error(f"Google Drive request failed: {e}")
            raise GoogleDriveError(
                message=f"Failed to upload to Google Drive: {e}",
                folder_id=folder_id,
            )

        if response.status_code not in (200, 201):
            logger.error(
                f"Failed to upload to Google Drive: {response.status_code}",
                extra={"status": response.status_code, "error": response.text},
            )
            raise GoogleDriveError(
                message=f"Failed to upload to Google Drive: {response.text}",
                folder_id=folder_id,
                upstream_status=response.status_code,
            )

        file_id = response.json().get("id")
        logger.info(
            f"File uploaded to Google Drive: {file_id}",
            extra={"file_id": file_id, "file_name": filename},
        )
        return DriveUploadResult(file_id=file_id, file_name=filename)
