"""
Standardized error handling for the Inkwell publishing core.

Provides consistent error codes, exception classes, and response formatting.
The route layer maps these onto HTTP responses through
``publishing_exception_handler``.
"""

import logging
import uuid
from enum import Enum
from typing import Any, Dict, Optional
from dataclasses import dataclass, field

from django.core.exceptions import ValidationError as DjangoValidationError
from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)


# =============================================================================
# Error Codes
# =============================================================================

class ErrorCode(str, Enum):
    """Standardized error codes for API responses."""

    # Validation errors (400)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_SCHEDULE = "INVALID_SCHEDULE"

    # Authorization (403)
    PERMISSION_DENIED = "PERMISSION_DENIED"

    # Resource errors (404/409)
    NOT_FOUND = "NOT_FOUND"
    INVALID_TRANSITION = "INVALID_TRANSITION"

    # Collaborator errors
    NOTIFICATION_FAILED = "NOTIFICATION_FAILED"

    # Server errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"


# =============================================================================
# Error Response Schema
# =============================================================================

@dataclass
class ErrorDetail:
    """Detailed error information."""
    code: ErrorCode
    message: str
    field: Optional[str] = None
    details: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "code": self.code.value if isinstance(self.code, ErrorCode) else self.code,
            "message": self.message,
        }
        if self.field:
            result["field"] = self.field
        if self.details:
            result["details"] = self.details
        return result


@dataclass
class ErrorResponse:
    """Standardized error response."""
    error: ErrorDetail
    request_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.error.to_dict(),
            "request_id": self.request_id,
        }

    def to_response(self, status_code: int = 400) -> Response:
        return Response(self.to_dict(), status=status_code)


# =============================================================================
# Custom Exceptions
# =============================================================================

class PublishingException(APIException):
    """Base exception for publishing lifecycle errors."""

    status_code = status.HTTP_400_BAD_REQUEST
    error_code = ErrorCode.INTERNAL_ERROR
    default_detail = "An error occurred"

    def __init__(
        self,
        message: Optional[str] = None,
        code: Optional[ErrorCode] = None,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None,
    ):
        self.message = message or self.default_detail
        self.error_code = code or self.error_code
        self.field = field
        self.error_details = details or {}

        if status_code:
            self.status_code = status_code

        super().__init__(detail=self.message)

    def get_error_response(self, request_id: Optional[str] = None) -> ErrorResponse:
        return ErrorResponse(
            error=ErrorDetail(
                code=self.error_code,
                message=self.message,
                field=self.field,
                details=self.error_details if self.error_details else None,
            ),
            request_id=request_id or str(uuid.uuid4()),
        )

    def to_dict(self) -> Dict[str, Any]:
        return self.get_error_response().error.to_dict()


class InvalidTransition(PublishingException):
    """Requested status change is not allowed from the current state."""
    status_code = status.HTTP_409_CONFLICT
    error_code = ErrorCode.INVALID_TRANSITION
    default_detail = "Status transition not allowed"


class Forbidden(PublishingException):
    """Actor lacks the role or ownership the transition requires."""
    status_code = status.HTTP_403_FORBIDDEN
    error_code = ErrorCode.PERMISSION_DENIED
    default_detail = "Permission denied"


class NotFound(PublishingException):
    """Article not found."""
    status_code = status.HTTP_404_NOT_FOUND
    error_code = ErrorCode.NOT_FOUND
    default_detail = "Article not found"


class InvalidSchedule(PublishingException):
    """Scheduled publish time is unparseable or not in the future."""
    status_code = status.HTTP_400_BAD_REQUEST
    error_code = ErrorCode.INVALID_SCHEDULE
    default_detail = "Invalid scheduled publish date"


class TransientRepositoryError(PublishingException):
    """Article storage temporarily unavailable. Safe to retry."""
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    error_code = ErrorCode.SERVICE_UNAVAILABLE
    default_detail = "Article storage unavailable"


class NotificationFailure(PublishingException):
    """Notification could not be emitted. Logged, never propagated."""
    status_code = status.HTTP_502_BAD_GATEWAY
    error_code = ErrorCode.NOTIFICATION_FAILED
    default_detail = "Notification could not be delivered"


# =============================================================================
# Exception Handler
# =============================================================================

def get_request_id(request) -> str:
    """Get or generate request ID from request."""
    if hasattr(request, 'request_id'):
        return request.request_id
    return str(uuid.uuid4())


def publishing_exception_handler(exc, context):
    """
    Exception handler for DRF views built on the publishing core.

    Converts publishing exceptions to the standardized error response format
    and defers everything else to DRF.
    """
    request = context.get('request')
    request_id = get_request_id(request) if request else str(uuid.uuid4())

    if isinstance(exc, PublishingException):
        error_response = exc.get_error_response(request_id)
        logger.warning(
            f"API Error: {exc.error_code.value}",
            extra={
                "request_id": request_id,
                "error_code": exc.error_code.value,
                "error_message": exc.message,
                "status_code": exc.status_code,
            }
        )
        return error_response.to_response(exc.status_code)

    if isinstance(exc, DjangoValidationError):
        if hasattr(exc, 'message_dict'):
            details = exc.message_dict
            message = "Validation failed"
        else:
            details = {"errors": exc.messages}
            message = exc.messages[0] if exc.messages else "Validation failed"

        error_response = ErrorResponse(
            error=ErrorDetail(
                code=ErrorCode.VALIDATION_ERROR,
                message=message,
                details=details,
            ),
            request_id=request_id,
        )
        return error_response.to_response(status.HTTP_400_BAD_REQUEST)

    if isinstance(exc, Http404):
        error_response = ErrorResponse(
            error=ErrorDetail(
                code=ErrorCode.NOT_FOUND,
                message=str(exc) if str(exc) else "Resource not found",
            ),
            request_id=request_id,
        )
        return error_response.to_response(status.HTTP_404_NOT_FOUND)

    return drf_exception_handler(exc, context)
