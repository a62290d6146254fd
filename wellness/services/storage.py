"""
File storage service for uploaded images
Files are written under UPLOAD_DIR and served from /uploads
"""

from typing import Optional, Tuple
from pathlib import Path
import asyncio
import base64
import binascii
import logging
import re
import uuid

from wellness.core.config import settings
from wellness.core.exceptions import BadRequestException

logger = logging.getLogger(__name__)

DATA_URL_PATTERN = re.compile(r"^data:(?P<mime>image/[\w.+-]+);base64,(?P<data>.+)$", re.DOTALL)

MIME_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
    "image/gif": ".gif",
}


class StorageService:
    """Storage service for file uploads"""

    def __init__(self, base_dir: Optional[str] = None):
        self.base_dir = Path(base_dir or settings.UPLOAD_DIR)

    @staticmethod
    def is_data_url(value: Optional[str]) -> bool:
        return bool(value) and value.startswith("data:")

    @staticmethod
    def decode_data_url(data_url: str) -> Tuple[bytes, str]:
        """Split a base64 data URL into raw bytes and a file extension"""
        match = DATA_URL_PATTERN.match(data_url)
        if not match:
            raise BadRequestException("Некорректный формат изображения", "INVALID_IMAGE")

        extension = MIME_EXTENSIONS.get(match.group("mime"))
        if not extension:
            raise BadRequestException("Неподдерживаемый тип изображения", "INVALID_IMAGE")

        try:
            content = base64.b64decode(match.group("data"), validate=True)
        except (binascii.Error, ValueError):
            raise BadRequestException("Некорректные данные изображения", "INVALID_IMAGE")

        return content, extension

    def _validate(self, content: bytes, extension: str) -> None:
        if extension.lower() not in settings.ALLOWED_IMAGE_EXTENSIONS:
            raise BadRequestException("Неподдерживаемый тип изображения", "INVALID_IMAGE")
        if len(content) > settings.MAX_UPLOAD_SIZE:
            raise BadRequestException("Файл слишком большой", "FILE_TOO_LARGE")

    async def save_image(self, content: bytes, extension: str, folder: str = "specialists") -> str:
        """
        Write image bytes to disk

        Returns:
            Public URL path of the stored file
        """
        self._validate(content, extension)

        filename = f"{uuid.uuid4().hex}{extension.lower()}"
        target = self.base_dir / folder / filename

        # Run in thread pool
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._write_sync, target, content)

        logger.info(f"Stored image {target}")
        return f"/uploads/{folder}/{filename}"

    async def save_data_url(self, data_url: str, folder: str = "specialists") -> str:
        content, extension = self.decode_data_url(data_url)
        return await self.save_image(content, extension, folder)

    @staticmethod
    def _write_sync(target: Path, content: bytes) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)
