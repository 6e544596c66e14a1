"""Tests for error handling"""
import json

import pytest
from unittest.mock import Mock, patch
from fastapi import HTTPException
from fastapi.responses import JSONResponse

from app.core.errors import (
    ConflictError,
    DatabaseError,
    ErrorResponse,
    ForbiddenError,
    NotFoundError,
    error_response_handler,
    http_exception_handler,
)


def mock_request():
    request = Mock()
    request.url = "http://testserver/api/reviews/1"
    request.method = "GET"
    return request


class TestErrorResponse:
    """Test ErrorResponse exception classes"""

    def test_error_response_creation(self):
        """Test creating an ErrorResponse"""
        error = ErrorResponse("Something went wrong", status_code=400)
        assert error.message == "Something went wrong"
        assert error.status_code == 400
        assert error.details == {}

    def test_error_response_default_status_code(self):
        """Test that ErrorResponse defaults to status code 400"""
        error = ErrorResponse("Bad request")
        assert error.status_code == 400
        assert str(error) == "Bad request"

    def test_not_found_defaults(self):
        error = NotFoundError()
        assert error.status_code == 404
        assert error.message == "Review not found"

    def test_forbidden(self):
        error = ForbiddenError("Cannot like a hidden review")
        assert error.status_code == 403

    def test_conflict_carries_code(self):
        """Conflict details expose the machine-readable code and extra fields"""
        error = ConflictError("Duplicate", code="REVIEW_ALREADY_EXISTS", details={"existingReviewId": "abc"})
        assert error.status_code == 409
        assert error.code == "REVIEW_ALREADY_EXISTS"
        assert error.details == {"code": "REVIEW_ALREADY_EXISTS", "existingReviewId": "abc"}

    def test_database_error(self):
        assert DatabaseError().status_code == 503


class TestErrorHandlers:
    """Test error handler functions"""

    @pytest.mark.asyncio
    async def test_error_response_handler(self):
        """Test error_response_handler function"""
        error = ErrorResponse("Test error", status_code=404, details={"id": "123"})

        with patch('app.core.errors.logger') as mock_logger:
            response = await error_response_handler(mock_request(), error)

        assert isinstance(response, JSONResponse)
        assert response.status_code == 404
        assert json.loads(response.body) == {"error": "Test error", "details": {"id": "123"}}
        mock_logger.warning.assert_called_once()

    @pytest.mark.asyncio
    async def test_error_response_handler_server_error_logs_error(self):
        error = DatabaseError("Database error during review update")

        with patch('app.core.errors.logger') as mock_logger:
            response = await error_response_handler(mock_request(), error)

        assert response.status_code == 503
        mock_logger.error.assert_called_once()

    @pytest.mark.asyncio
    async def test_http_exception_handler(self):
        """Test http_exception_handler function"""
        exception = HTTPException(status_code=401, detail="Authentication required",
                                  headers={"WWW-Authenticate": "Bearer"})

        with patch('app.core.errors.logger'):
            response = await http_exception_handler(mock_request(), exception)

        assert response.status_code == 401
        assert json.loads(response.body) == {"error": "Authentication required"}
        assert response.headers["www-authenticate"] == "Bearer"
