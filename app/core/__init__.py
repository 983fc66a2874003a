"""
Core module initialization
"""

from .config import config
from .errors import (
    ErrorResponse,
    ErrorResponseModel,
    ForbiddenError,
    NotFoundError,
    PoisonMessageError,
    PublicationFailureError,
    TransientInfrastructureError,
    ValidationError,
)
from .logger import logger

__all__ = [
    "config",
    "ErrorResponse",
    "ErrorResponseModel",
    "ForbiddenError",
    "NotFoundError",
    "PoisonMessageError",
    "PublicationFailureError",
    "TransientInfrastructureError",
    "ValidationError",
    "logger",
]
