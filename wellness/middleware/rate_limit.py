"""Rate limiting middleware using slowapi"""

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded

from wellness.core.config import settings


# Custom key function that considers user authentication
def get_rate_limit_key(request: Request) -> str:
    """Get rate limit key based on user or IP"""
    user_id = getattr(request.state, "user_id", None)

    if user_id:
        return f"user:{user_id}"

    # Fall back to IP address
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        ip = forwarded.split(",")[0].strip()
    else:
        ip = request.client.host if request.client else "unknown"

    return f"ip:{ip}"


# Create limiter instance
limiter = Limiter(
    key_func=get_rate_limit_key,
    default_limits=[settings.RATE_LIMIT_DEFAULT],
    storage_uri=settings.RATE_LIMIT_STORAGE_URL,
    strategy="fixed-window",
    headers_enabled=True,
    enabled=settings.RATE_LIMIT_ENABLED,
)


# Custom rate limit exceeded handler
async def custom_rate_limit_handler(request: Request, exc: RateLimitExceeded) -> Response:
    response = JSONResponse(
        status_code=429,
        content={
            "success": False,
            "error": f"Слишком много запросов. {exc.detail}",
            "errorCode": "RATE_LIMIT_EXCEEDED",
        }
    )
    return request.app.state.limiter._inject_headers(
        response, request.state.view_rate_limit
    )
