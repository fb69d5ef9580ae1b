"""
Storage Service.

WHAT: Object storage for generated invoice PDFs (S3 or any S3-compatible
endpoint).

WHY: PDFs are rendered once and reused: the send pipeline attaches the
stored copy, the Drive archival uploads it, and the UI previews it
through a short-lived signed URL.

HOW: Thin wrapper over a boto3 S3 client. boto3 is blocking, so each
call runs in Starlette's threadpool. Client errors and connection
failures are raised as S3Error; callers decide whether that is fatal.
"""

import logging
from typing import Any, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from starlette.concurrency import run_in_threadpool

from app.core.config import settings
from app.core.exceptions import S3Error

logger = logging.getLogger(__name__)


def invoice_pdf_path(invoice_id: Any, invoice_number: Any) -> str:
    """
    Storage path for an invoice's PDF.

    Invoice numbers are only unique per client, so the invoice id is part
    of the path.
    """
    return f"{invoice_id}/inv-{invoice_number}.pdf"


class StorageService:
    """
    Service for invoice PDF storage.

    WHAT: upload / download / delete / signed URL.

    HOW: One instance is created at startup and shared; the boto3 client
    is thread-safe.
    """

    def __init__(
        self,
        s3_client: Optional[Any] = None,
        bucket_name: Optional[str] = None,
    ):
        """
        Initialize StorageService.

        Args:
            s3_client: Preconfigured boto3 S3 client (built from settings if omitted)
            bucket_name: Bucket holding invoice PDFs
        """
        if s3_client is None:
            s3_client = boto3.client(
                "s3",
                endpoint_url=settings.S3_ENDPOINT_URL,
                aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
                aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
                region_name=settings.AWS_REGION,
                config=Config(
                    connect_timeout=settings.S3_TIMEOUT_SECONDS,
                    read_timeout=settings.S3_TIMEOUT_SECONDS,
                    retries={"max_attempts": 2},
                ),
            )
        self.s3_client = s3_client
        self.bucket_name = bucket_name or settings.S3_BUCKET_NAME

    async def upload(
        self,
        data: bytes,
        path: str,
        content_type: str = "application/pdf",
    ) -> str:
        """
        Upload bytes, overwriting anything already at path.

        Returns:
            The storage path

        Raises:
            S3Error: If the upload fails
        """
        try:
            await run_in_threadpool(
                self.s3_client.put_object,
                Bucket=self.bucket_name,
                Key=path,
                Body=data,
                ContentType=content_type,
            )
        except (ClientError, BotoCoreError) as e:
            raise S3Error(
                message="Failed to upload file to storage",
                path=path,
                error=str(e),
            )

        logger.info(f"Uploaded {len(data)} bytes to {path}")
        return path

    async def download(self, path: str) -> bytes:
        """
        Download a stored file.

        Raises:
            S3Error: If the file is missing or the download fails
        """
        try:
            response = await run_in_threadpool(
                self.s3_client.get_object,
                Bucket=self.bucket_name,
                Key=path,
            )
            return await run_in_threadpool(response["Body"].read)
        except (ClientError, BotoCoreError) as e:
            raise S3Error(
                message="Failed to download file from storage",
                path=path,
                error=str(e),
            )

    async def delete(self, path: str) -> None:
        """
        Delete a stored file.

        Raises:
            S3Error: If the delete fails
        """
        try:
            await run_in_threadpool(
                self.s3_client.delete_object,
                Bucket=self.bucket_name,
                Key=path,
            )
        except (ClientError, BotoCoreError) as e:
            raise S3Error(
                message="Failed to delete file from storage",
                path=path,
                error=str(e),
            )

    async def generate_signed_url(
        self,
        path: str,
        expires_in: Optional[int] = None,
    ) -> str:
        """
        Generate a time-limited download URL.

        Args:
            path: Storage path
            expires_in: Validity in seconds (defaults to S3_SIGNED_URL_EXPIRES_SECONDS)

        Raises:
            S3Error: If signing fails
        """
        try:
            return await run_in_threadpool(
                self.s3_client.generate_presigned_url,
                "get_object",
                Params={"Bucket": self.bucket_name, "Key": path},
                ExpiresIn=expires_in or settings.S3_SIGNED_URL_EXPIRES_SECONDS,
            )
        except (ClientError, BotoCoreError) as e:
            raise S3Error(
                message="Failed to generate download URL",
                path=path,
                error=str(e),
            )
