# src/app/infra/storage/s3_provider.py
"""
S3-compatible image storage.
Works with AWS S3 and with R2/MinIO through a custom endpoint.
"""
from __future__ import annotations

import base64
import binascii
import logging
from typing import Optional

import boto3
import httpx
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from src.app.domain.errors import StorageError, StorageUploadError
from src.app.infra.storage.base import ImageStorage

logger = logging.getLogger(__name__)

CACHE_CONTROL = "public, max-age=31536000"
DOWNLOAD_TIMEOUT_SECONDS = 30.0

_EXTENSIONS = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/webp": "webp",
    "image/gif": "gif",
}


def _decode_data_url(image_url: str) -> tuple[bytes, str]:
    header, _, data = image_url.partition(",")
    if not data or ";base64" not in header:
        raise StorageError("Unsupported data URL (expected base64 payload)")
    content_type = header[len("data:"):].split(";", 1)[0] or "image/png"
    try:
        return base64.b64decode(data, validate=True), content_type
    except (binascii.Error, ValueError) as e:
        raise StorageError(f"Invalid base64 image data: {e}") from e


class S3ImageStorage(ImageStorage):
    """
    Image storage on S3 (or an S3-compatible service) using boto3.

    Objects are uploaded with a one-year cache header and exposed through
    public_url when set, otherwise through the bucket's virtual-host URL.
    """

    def __init__(
        self,
        bucket_name: str,
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
        region: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        public_url: Optional[str] = None,
        client=None,
        http_client: Optional[httpx.Client] = None,
    ):
        if not bucket_name:
            raise StorageError("Missing S3 configuration. Required: S3_BUCKET_NAME")

        self.bucket_name = bucket_name
        self.region = region or "us-east-1"
        self.endpoint_url = endpoint_url
        self.public_url = public_url.rstrip("/") if public_url else None

        self._client = client or boto3.client(
            "s3",
            endpoint_url=endpoint_url,
            aws_access_key_id=access_key_id,
            aws_secret_access_key=secret_access_key,
            config=Config(
                signature_version="s3v4",
                retries={"max_attempts": 3, "mode": "adaptive"},
            ),
            region_name=self.region,
        )
        self._http = http_client or httpx.Client(timeout=DOWNLOAD_TIMEOUT_SECONDS, follow_redirects=True)

        logger.info(
            "S3ImageStorage initialized: bucket=%s, endpoint=%s",
            self.bucket_name,
            self.endpoint_url or "aws",
        )

    def _fetch(self, image_url: str) -> tuple[bytes, str]:
        if image_url.startswith("data:"):
            return _decode_data_url(image_url)

        try:
            response = self._http.get(image_url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error("Failed to download image %s: %s", image_url[:120], e)
            raise StorageError(f"Failed to download image: {e}") from e

        content_type = response.headers.get("content-type", "image/png").split(";", 1)[0].strip()
        return response.content, content_type

    def _object_url(self, object_key: str) -> str:
        if self.public_url:
            return f"{self.public_url}/{object_key}"
        if self.endpoint_url:
            return f"{self.endpoint_url.rstrip('/')}/{self.bucket_name}/{object_key}"
        return f"https://{self.bucket_name}.s3.{self.region}.amazonaws.com/{object_key}"

    def store_from_url(self, image_url: str, suggested_name: str) -> str:
        body, content_type = self._fetch(image_url)
        if not body:
            raise StorageError("Downloaded image is empty")

        extension = _EXTENSIONS.get(content_type, "png")
        object_key = self.generate_object_key(suggested_name, extension=extension)

        try:
            self._client.put_object(
                Bucket=self.bucket_name,
                Key=object_key,
                Body=body,
                ContentType=content_type,
                CacheControl=CACHE_CONTROL,
            )
        except (ClientError, BotoCoreError) as e:
            logger.error("Failed to upload image to S3: %s", e)
            raise StorageUploadError(object_key, str(e)) from e

        logger.info("Stored image: key=%s, size=%d bytes", object_key, len(body))
        return self._object_url(object_key)
