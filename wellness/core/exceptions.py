"""
Custom exception classes and error handlers
Provides consistent error responses across the application
"""

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from typing import Any, Dict, List, Optional
import logging

from .config import settings

logger = logging.getLogger(__name__)


class WellnessException(HTTPException):
    """Base exception class for the wellness center API"""

    def __init__(
        self,
        status_code: int,
        detail: str,
        error_code: Optional[str] = None,
        headers: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.error_code = error_code

    def to_content(self) -> Dict[str, Any]:
        return {"success": False, "error": self.detail, "errorCode": self.error_code}


class BadRequestException(WellnessException):
    """400 Bad Request"""

    def __init__(self, detail: str, error_code: str = "BAD_REQUEST"):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            error_code=error_code
        )


class UnauthorizedException(WellnessException):
    """401 Unauthorized"""

    def __init__(self, detail: str = "Необходима авторизация", error_code: str = "UNAUTHORIZED"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            error_code=error_code,
            headers={"WWW-Authenticate": "Bearer"}
        )


class ForbiddenException(WellnessException):
    """403 Forbidden"""

    def __init__(self, detail: str = "Доступ запрещен", error_code: str = "FORBIDDEN"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
            error_code=error_code
        )


class NotFoundException(WellnessException):
    """404 Not Found"""

    def __init__(self, detail: str = "Not found", error_code: str = "NOT_FOUND"):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
            error_code=error_code
        )


class ConflictException(WellnessException):
    """409 Conflict"""

    def __init__(self, detail: str, error_code: str = "CONFLICT"):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
            error_code=error_code
        )


class InternalServerException(WellnessException):
    """500 Internal Server Error"""

    def __init__(
        self,
        detail: str = "Internal server error",
        error_code: str = "INTERNAL_ERROR"
    ):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=detail,
            error_code=error_code
        )


# Business logic exceptions
class MissingFieldsException(BadRequestException):
    """Required request fields are absent or empty"""

    def __init__(self, missing_fields: List[str]):
        super().__init__(
            detail=f"Отсутствуют обязательные поля: {', '.join(missing_fields)}",
            error_code="MISSING_FIELDS"
        )
        self.missing_fields = missing_fields

    def to_content(self) -> Dict[str, Any]:
        content = super().to_content()
        content["missingFields"] = self.missing_fields
        return content


class SlotUnavailableException(BadRequestException):
    """Specialist is busy at the requested time"""

    def __init__(self, detail: str = "Специалист недоступен в указанное время"):
        super().__init__(detail=detail, error_code="SLOT_UNAVAILABLE")


class InvalidPromoException(BadRequestException):
    """Promo code validation failed"""

    def __init__(self, detail: str):
        super().__init__(detail=detail, error_code="INVALID_PROMO")


class InvalidReferralCodeException(BadRequestException):
    """Referral code validation failed"""

    def __init__(self, detail: str = "Неверный реферальный код"):
        super().__init__(detail=detail, error_code="INVALID_REFERRAL_CODE")


class DuplicateResourceException(ConflictException):
    """Resource already exists"""

    def __init__(self, resource: str, field: str, value: str):
        super().__init__(
            detail=f"{resource} with {field} '{value}' already exists",
            error_code="DUPLICATE_RESOURCE"
        )


class ReferralCodeGenerationException(InternalServerException):
    """Could not find a free referral code"""

    def __init__(self, attempts: int):
        super().__init__(
            detail=f"Не удалось сгенерировать уникальный реферальный код за {attempts} попыток",
            error_code="REFERRAL_CODE_EXHAUSTED"
        )


def register_exception_handlers(app: FastAPI) -> None:
    """Render every error as {success: false, error, errorCode}"""

    @app.exception_handler(WellnessException)
    async def wellness_exception_handler(request: Request, exc: WellnessException):
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_content(),
            headers=exc.headers,
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = [
            {"field": ".".join(str(part) for part in error["loc"][1:]), "message": error["msg"]}
            for error in exc.errors()
        ]
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "success": False,
                "error": "Некорректные данные запроса",
                "errorCode": "VALIDATION_ERROR",
                "details": errors,
            },
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error(
            f"Unhandled error on {request.method} {request.url.path}: {exc}",
            exc_info=exc,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "success": False,
                "error": settings.INTERNAL_ERROR_MESSAGE,
                "errorCode": "INTERNAL_ERROR",
            },
        )
