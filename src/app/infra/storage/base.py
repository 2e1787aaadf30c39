# src/app/infra/storage/base.py
"""
Abstract base class for image storage.
This interface allows easy swapping between different storage backends (S3, R2, GCS, etc.)
"""
from __future__ import annotations

import re
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from uuid import uuid4


class ImageStorage(ABC):
    """
    Abstract interface for persisting generated images under a stable URL.

    Implementations:
    - S3ImageStorage: AWS S3 or any S3-compatible endpoint (Cloudflare R2, MinIO)
    """

    @abstractmethod
    def store_from_url(self, image_url: str, suggested_name: str) -> str:
        """
        Copy an image into storage and return its public URL.

        Args:
            image_url: Source URL (http(s) or data:)
            suggested_name: Human-readable base for the object name

        Returns:
            Stable public URL of the stored object

        Raises:
            StorageError: download or upload failed
        """
        pass

    def generate_object_key(
        self,
        filename: str,
        extension: str = "png",
        prefix: str = "recipes",
    ) -> str:
        """
        Generate a standardized object key for an image.

        Format: {prefix}/{YYYY}/{MM}/{uuid}_{filename}.{extension}
        """
        now = datetime.now(timezone.utc)
        year = now.strftime("%Y")
        month = now.strftime("%m")

        # Sanitize filename
        safe_filename = re.sub(r"[^a-zA-Z0-9._-]", "_", filename) or "image"
        unique_id = uuid4().hex[:8]

        return f"{prefix}/{year}/{month}/{unique_id}_{safe_filename}.{extension}"
