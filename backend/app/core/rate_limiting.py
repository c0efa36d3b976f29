"""
Rate limiting configuration and utilities
"""

from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from fastapi import Request, status
from fastapi.responses import JSONResponse
import logging

logger = logging.getLogger(__name__)

# Rate limit configurations
RATE_LIMITS = {
    "auth_login": "5/minute",        # 5 login attempts per minute
    "auth_register": "3/minute",     # 3 registrations per minute
    "password_reset": "3/hour",      # 3 password resets per hour
    "payment_verify": "20/minute",
}

# Create rate limiter instance
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["1000/day", "200/hour"]
)

# Custom rate limit exceeded handler
def custom_rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    """Custom handler for rate limit exceeded"""
    logger.warning(f"Rate limit exceeded for {get_remote_address(request)}: {exc.detail}")

    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content={
            "success": False,
            "error": "Rate limit exceeded",
            "message": f"Too many requests. Limit: {exc.detail}",
        }
    )
