"""Unit tests for the error taxonomy and handlers"""
import json

import pytest
from unittest.mock import Mock
from fastapi import HTTPException

from app.core.errors import (
    ErrorResponse,
    ForbiddenError,
    NotFoundError,
    PublicationFailureError,
    TransientInfrastructureError,
    ValidationError,
    error_response_handler,
    http_exception_handler,
)


def mock_request():
    request = Mock()
    request.url = "http://test/api/auctions"
    request.method = "POST"
    return request


class TestErrorClasses:
    """Status codes of each error kind"""

    @pytest.mark.parametrize("error, status_code", [
        (ValidationError("bad year"), 400),
        (NotFoundError(), 404),
        (ForbiddenError(), 403),
        (TransientInfrastructureError("store down"), 503),
    ])
    def test_status_codes(self, error, status_code):
        assert isinstance(error, ErrorResponse)
        assert error.status_code == status_code
        assert error.details == {}

    def test_publication_failure_reports_persisted(self):
        error = PublicationFailureError("saved", auction_id="a1", event_type="auction.deleted")

        assert error.status_code == 502
        assert error.details == {
            "auction_id": "a1",
            "event_type": "auction.deleted",
            "persisted": True,
            "outbox_id": None,
        }


class TestHandlers:
    """Tests for the FastAPI exception handlers"""

    @pytest.mark.asyncio
    async def test_error_response_handler(self):
        response = await error_response_handler(mock_request(), NotFoundError(details={"auction_id": "a1"}))

        assert response.status_code == 404
        assert json.loads(response.body) == {"error": "Auction not found", "details": {"auction_id": "a1"}}

    @pytest.mark.asyncio
    async def test_server_error_is_reported(self):
        response = await error_response_handler(
            mock_request(), TransientInfrastructureError("store down")
        )
        assert response.status_code == 503

    @pytest.mark.asyncio
    async def test_http_exception_handler_keeps_headers(self):
        exc = HTTPException(status_code=401, detail="Authentication required", headers={"WWW-Authenticate": "Bearer"})

        response = await http_exception_handler(mock_request(), exc)

        assert response.status_code == 401
        assert json.loads(response.body) == {"error": "Authentication required"}
        assert response.headers["www-authenticate"] == "Bearer"
