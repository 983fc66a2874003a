"""
Error taxonomy and FastAPI error handlers
"""

import traceback
from typing import Optional

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from app.core.config import config
from app.core.logger import logger


class ErrorResponse(Exception):
    """Base exception for application errors"""

    def __init__(self, message: str, status_code: int = 400, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class ValidationError(ErrorResponse):
    """Malformed input on create or update"""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=400, details=details)


class NotFoundError(ErrorResponse):
    """Referenced auction does not exist"""

    def __init__(self, message: str = "Auction not found", details: dict = None):
        super().__init__(message, status_code=404, details=details)


class ForbiddenError(ErrorResponse):
    """Caller is not the recorded seller"""

    def __init__(self, message: str = "Only the seller can modify this auction", details: dict = None):
        super().__init__(message, status_code=403, details=details)


class TransientInfrastructureError(ErrorResponse):
    """Store or transport temporarily unavailable, retry budget exhausted"""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=503, details=details)


class PublicationFailureError(ErrorResponse):
    """
    The store write is committed but the lifecycle event could not be
    published within the retry budget. The event is parked in the outbox
    and the caller has to treat the operation as degraded.
    """

    def __init__(
        self,
        message: str,
        auction_id: str,
        event_type: str,
        outbox_id: Optional[str] = None,
    ):
        super().__init__(
            message,
            status_code=502,
            details={
                "auction_id": auction_id,
                "event_type": event_type,
                "persisted": True,
                "outbox_id": outbox_id,
            },
        )
        self.auction_id = auction_id
        self.event_type = event_type
        self.outbox_id = outbox_id


class PoisonMessageError(Exception):
    """Inbound event cannot be parsed; it goes to the dead-letter topic"""

    def __init__(self, message: str, payload: Optional[dict] = None):
        self.message = message
        self.payload = payload
        super().__init__(message)


class ErrorResponseModel(BaseModel):
    """Pydantic model for error responses"""
    error: str
    details: Optional[dict] = None


async def error_response_handler(request: Request, exc: ErrorResponse):
    """Handler for ErrorResponse exceptions"""
    metadata = {
        "event": "error_response",
        "status_code": exc.status_code,
        "url": str(request.url),
        "method": request.method,
        **exc.details,
    }

    if config.environment == "development":
        metadata["traceback"] = traceback.format_exc()

    if exc.status_code >= 500:
        logger.error(f"Error: {exc.message}", metadata=metadata)
    else:
        logger.warning(f"Error: {exc.message}", metadata=metadata)

    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message, "details": exc.details}
    )


async def http_exception_handler(request: Request, exc: HTTPException):
    """Handler for FastAPI HTTPException"""
    logger.warning(
        f"HTTPException: {exc.detail}",
        metadata={
            "event": "http_exception",
            "status_code": exc.status_code,
            "url": str(request.url),
            "method": request.method,
        }
    )

    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )
