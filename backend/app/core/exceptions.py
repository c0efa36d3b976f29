from typing import Any, Dict, List, Optional

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
import logging

from app.core.config import settings

logger = logging.getLogger(__name__)

class MarketplaceException(Exception):
    """Base exception for the marketplace API"""
    def __init__(
        self,
        message: str,
        status_code: int = 500,
        error: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.error = error
        self.data = data
        super().__init__(self.message)

class ValidationError(MarketplaceException):
    """Raised when request data fails a business rule"""
    def __init__(self, message: str = "Validation error", **kwargs):
        super().__init__(message, status.HTTP_400_BAD_REQUEST, **kwargs)

class NotFoundError(MarketplaceException):
    """Raised when a record does not exist or is not visible to the caller"""
    def __init__(self, message: str = "Resource not found", **kwargs):
        super().__init__(message, status.HTTP_404_NOT_FOUND, **kwargs)

class AuthenticationError(MarketplaceException):
    """Raised when credentials are missing or invalid"""
    def __init__(self, message: str = "Authentication required", **kwargs):
        super().__init__(message, status.HTTP_401_UNAUTHORIZED, **kwargs)

class PermissionDeniedError(MarketplaceException):
    """Raised when the caller may not act on a resource"""
    def __init__(self, message: str = "Access denied", **kwargs):
        super().__init__(message, status.HTTP_403_FORBIDDEN, **kwargs)

class ConflictError(MarketplaceException):
    """Raised on duplicates and already-applied state changes"""
    def __init__(self, message: str = "Conflict", **kwargs):
        super().__init__(message, status.HTTP_409_CONFLICT, **kwargs)

class UpstreamServiceError(MarketplaceException):
    """Raised when an external service (gateway, storage) fails"""
    def __init__(self, message: str = "Upstream service error", status_code: int = status.HTTP_502_BAD_GATEWAY, **kwargs):
        super().__init__(message, status_code, **kwargs)


def error_body(message: str, error: Optional[str] = None, **extra: Any) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": False, "message": message}
    if error:
        body["error"] = error
    body.update({k: v for k, v in extra.items() if v is not None})
    return body


def format_validation_errors(exc: RequestValidationError) -> List[Dict[str, str]]:
    """Flatten pydantic errors into a field/message list"""
    errors = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path", "form")]
        errors.append({
            "field": ".".join(loc) or "body",
            "message": err.get("msg", "Invalid value"),
        })
    return errors


async def marketplace_exception_handler(request: Request, exc: MarketplaceException):
    """Handle application exceptions"""
    if exc.status_code >= 500:
        logger.error(f"Marketplace exception on {request.url.path}: {exc.message}")
    else:
        logger.info(f"{exc.status_code} on {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.message, exc.error, data=exc.data)
    )

async def request_validation_exception_handler(request: Request, exc: RequestValidationError):
    """Render request validation failures as 400 with field messages"""
    errors = format_validation_errors(exc)
    logger.info(f"Validation error on {request.url.path}: {errors}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body("Validation error", errors=errors)
    )

async def integrity_exception_handler(request: Request, exc: IntegrityError):
    """Handle unique-constraint violations"""
    logger.warning(f"Integrity error: {str(exc.orig)}")
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content=error_body("Duplicate value for a unique field")
    )

async def sqlalchemy_exception_handler(request: Request, exc: SQLAlchemyError):
    """Handle SQLAlchemy database exceptions"""
    logger.error(f"Database error: {str(exc)}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("Database error occurred")
    )

async def general_exception_handler(request: Request, exc: Exception):
    """Handle general exceptions"""
    logger.exception(f"Unexpected error: {str(exc)}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(
            "Internal server error",
            str(exc) if settings.ENVIRONMENT == "development" else None
        )
    )
