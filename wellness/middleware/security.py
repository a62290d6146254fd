"""Security middleware and input sanitization"""

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from typing import Optional
import bleach
import os
import re
import logging

from wellness.core.exceptions import BadRequestException

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = {
    'image/jpeg': ['.jpg', '.jpeg'],
    'image/png': ['.png'],
    'image/gif': ['.gif'],
    'image/webp': ['.webp'],
}


class SecurityMiddleware(BaseHTTPMiddleware):
    """Adds security headers to every response"""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-XSS-Protection"] = "1; mode=block"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        path = request.url.path
        is_docs_endpoint = path.startswith('/api/docs') or path.startswith('/api/redoc') or path.startswith('/openapi.json')

        if is_docs_endpoint:
            # Swagger UI loads its assets from a CDN
            response.headers["Content-Security-Policy"] = (
                "default-src 'self' 'unsafe-inline' https: data: blob:; "
                "script-src 'self' 'unsafe-inline' https:; "
                "style-src 'self' 'unsafe-inline' https:; "
                "img-src 'self' data: https:"
            )
        else:
            response.headers["Content-Security-Policy"] = (
                "default-src 'self'; "
                "img-src 'self' data: https:; "
                "frame-ancestors 'none'"
            )

        return response


def sanitize_text(value: Optional[str], max_length: Optional[int] = None) -> Optional[str]:
    """Strip all HTML and null bytes from user-supplied text"""
    if value is None:
        return None

    value = value.replace("\x00", "")
    value = bleach.clean(value, tags=[], strip=True)
    value = re.sub(r'javascript:', '', value, flags=re.IGNORECASE)
    value = value.strip()

    if max_length:
        value = value[:max_length]
    return value


def validate_file_upload(filename: str, content_type: str) -> str:
    """Check an uploaded image's type and return its extension"""
    if content_type not in ALLOWED_IMAGE_TYPES:
        raise BadRequestException(f"File type {content_type} not allowed", "INVALID_IMAGE")

    ext = os.path.splitext(filename or "")[1].lower()
    if not ext:
        return ALLOWED_IMAGE_TYPES[content_type][0]

    if ext not in ALLOWED_IMAGE_TYPES[content_type]:
        raise BadRequestException(f"File extension {ext} does not match content type", "INVALID_IMAGE")

    return ext
