"""
Structured error classes for the access core.

Every error carries an HTTP status and a machine-readable code so the API
layer can render it without knowing which service raised it. Negative
outcomes that are part of normal operation (access denied by a resolver,
an invalid token, an unusable promo code) are return values, not errors.
"""

from typing import Any, Optional

from fastapi import status


class RentalAccessError(Exception):
    """Base exception for access-core errors."""

    http_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code: str = "INTERNAL_ERROR"
    title: str = "Internal error"

    def __init__(
        self,
        message: Optional[str] = None,
        error_code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        self.message = message or self.title
        if error_code:
            self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict:
        """Convert to an RFC 9457 problem document."""
        body = {
            "type": "about:blank",
            "title": self.title,
            "status": self.http_status,
            "detail": self.message,
            "code": self.error_code,
        }
        body.update(self.details)
        return body


class UnauthenticatedError(RentalAccessError):
    """No usable identity on a route that needs one."""
    http_status = status.HTTP_401_UNAUTHORIZED
    error_code = "UNAUTHENTICATED"
    title = "Authentication required"


class ForbiddenError(RentalAccessError):
    """Identity present but not allowed (missing role, no rental, not the owner)."""
    http_status = status.HTTP_403_FORBIDDEN
    error_code = "FORBIDDEN"
    title = "Forbidden"


class NotFoundError(RentalAccessError):
    """Referenced movie, pack, video source, rental or transaction does not exist."""
    http_status = status.HTTP_404_NOT_FOUND
    error_code = "NOT_FOUND"
    title = "Not found"


class ConflictError(RentalAccessError):
    """Request clashes with existing state."""
    http_status = status.HTTP_409_CONFLICT
    error_code = "CONFLICT"
    title = "Conflict"


class RentalConflictError(ConflictError):
    """
    The owner already holds an active rental for the target, or lost a race
    to a concurrent purchase of it.
    """
    error_code = "RENTAL_EXISTS"
    title = "Active rental already exists"

    def __init__(self, message: Optional[str] = None, existing_rental_id: Optional[str] = None):
        self.existing_rental_id = existing_rental_id
        details = {"rentalId": existing_rental_id} if existing_rental_id else None
        super().__init__(message or "An active rental already exists for this content", details=details)


class DuplicateTransactionError(ConflictError):
    """A rental with this transaction id was already recorded."""
    error_code = "DUPLICATE_TRANSACTION"
    title = "Transaction already recorded"


class InvalidRequestError(RentalAccessError):
    """Malformed input or a target that cannot be rented."""
    http_status = status.HTTP_400_BAD_REQUEST
    error_code = "INVALID_REQUEST"
    title = "Invalid request"


class InternalError(RentalAccessError):
    """Storage failure or missing server configuration."""


class TokenServiceConfigError(InternalError):
    """The video token secret is not configured."""
    error_code = "TOKEN_SERVICE_NOT_CONFIGURED"
    title = "Video token service not configured"
