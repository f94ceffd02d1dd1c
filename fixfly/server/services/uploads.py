"""
Image uploads stored on the local filesystem.
"""

from __future__ import annotations

import uuid
from pathlib import Path
from typing import Optional

from fastapi import UploadFile
from starlette.concurrency import run_in_threadpool

from fixfly.core.logging_config import get_logger
from fixfly.core.models.io.uploads import UploadRead
from fixfly.server.core.config import UploadConfig, settings
from fixfly.server.errors import FileTooLargeError, ValidationFailedError

logger = get_logger(__name__)

ALLOWED_IMAGE_TYPES = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
}
ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp"}


class UploadService:
    def __init__(self, config: Optional[UploadConfig] = None):
        self.config = config or settings.uploads

    @property
    def directory(self) -> Path:
        return Path(self.config.directory)

    def validate(self, file: UploadFile) -> str:
        """Check type and declared size. Returns the extension to store the file with."""
        content_type = (file.content_type or "").lower()
        extension = Path(file.filename or "").suffix.lower()
        if content_type not in ALLOWED_IMAGE_TYPES or (extension and extension not in ALLOWED_EXTENSIONS):
            raise ValidationFailedError(
                "Only JPEG, PNG and WebP images are allowed", error_code="INVALID_FILE_TYPE"
            )
        if file.size is not None and file.size > self.config.max_image_size:
            raise self._too_large()
        return ALLOWED_IMAGE_TYPES[content_type]

    def _too_large(self) -> FileTooLargeError:
        return FileTooLargeError(f"File too large. Maximum size: {self.config.max_image_size // 1024 // 1024}MB")

    async def save_image(self, file: UploadFile) -> UploadRead:
        extension = self.validate(file)
        # Read one byte past the limit to detect oversized bodies without a declared size.
        content = await file.read(self.config.max_image_size + 1)
        if len(content) > self.config.max_image_size:
            raise self._too_large()

        filename = f"{uuid.uuid4().hex}{extension}"
        target = self.directory / filename
        await run_in_threadpool(self._write, target, content)
        logger.info(f"Stored upload {filename} ({len(content)} bytes)")
        return UploadRead(
            url=f"{self.config.base_url.rstrip('/')}/{filename}",
            filename=filename,
            size=len(content),
            content_type=file.content_type or "application/octet-stream",
        )

    @staticmethod
    def _write(target: Path, content: bytes) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)


_upload_service: Optional[UploadService] = None


def get_upload_service() -> UploadService:
    global _upload_service
    if _upload_service is None:
        _upload_service = UploadService()
    return _upload_service
