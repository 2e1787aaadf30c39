from __future__ import annotations

import re
from unittest.mock import MagicMock

import httpx
import pytest
from botocore.exceptions import ClientError

from src.app.domain.errors import StorageError, StorageUploadError
from src.app.infra.storage.s3_provider import CACHE_CONTROL, S3ImageStorage

KEY_PATTERN = r"recipes/\d{4}/\d{2}/[0-9a-f]{8}_torta-de-limao\.(png|jpg)"


def _http(status_code: int = 200, content: bytes = b"jpeg-bytes") -> httpx.Client:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, content=content, headers={"content-type": "image/jpeg"})

    return httpx.Client(transport=httpx.MockTransport(handler))


def _storage(s3: MagicMock, http: httpx.Client | None = None, **kwargs) -> S3ImageStorage:
    return S3ImageStorage(bucket_name="receitas", client=s3, http_client=http or _http(), **kwargs)


class TestS3ImageStorage:
    def test_requires_bucket(self) -> None:
        with pytest.raises(StorageError):
            S3ImageStorage(bucket_name="", client=MagicMock())

    def test_stores_downloaded_image(self) -> None:
        s3 = MagicMock()

        url = _storage(s3, public_url="https://cdn.example.com/").store_from_url(
            "https://images.example.com/raw", "torta-de-limao"
        )

        kwargs = s3.put_object.call_args.kwargs
        assert kwargs["Bucket"] == "receitas"
        assert kwargs["Body"] == b"jpeg-bytes"
        assert kwargs["ContentType"] == "image/jpeg"
        assert kwargs["CacheControl"] == CACHE_CONTROL
        assert re.fullmatch(KEY_PATTERN, kwargs["Key"])
        assert url == f"https://cdn.example.com/{kwargs['Key']}"

    def test_stores_data_url(self) -> None:
        s3 = MagicMock()

        url = _storage(s3, region="sa-east-1").store_from_url("data:image/png;base64,aGVsbG8=", "torta-de-limao")

        kwargs = s3.put_object.call_args.kwargs
        assert kwargs["Body"] == b"hello"
        assert kwargs["Key"].endswith(".png")
        assert url.startswith("https://receitas.s3.sa-east-1.amazonaws.com/recipes/")

    def test_invalid_data_url(self) -> None:
        with pytest.raises(StorageError):
            _storage(MagicMock()).store_from_url("data:image/png,raw", "torta-de-limao")

    def test_download_failure(self) -> None:
        with pytest.raises(StorageError):
            _storage(MagicMock(), _http(status_code=404)).store_from_url("https://images.example.com/x", "x")

    def test_upload_failure(self) -> None:
        s3 = MagicMock()
        s3.put_object.side_effect = ClientError({"Error": {"Code": "AccessDenied", "Message": "no"}}, "PutObject")

        with pytest.raises(StorageUploadError) as exc_info:
            _storage(s3).store_from_url("https://images.example.com/raw", "torta-de-limao")
        assert exc_info.value.object_key.startswith("recipes/")

    def test_custom_endpoint_url(self) -> None:
        s3 = MagicMock()
        url = _storage(s3, endpoint_url="https://acct.r2.cloudflarestorage.com").store_from_url(
            "https://images.example.com/raw", "torta-de-limao"
        )
        assert url.startswith("https://acct.r2.cloudflarestorage.com/receitas/recipes/")
