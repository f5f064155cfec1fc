# slotkeeper/core/exceptions.py
"""
Domain-specific exceptions for the reservation core.

Services raise these; the API layer converts them to HTTP responses via
``to_http_exception`` (or the application-wide exception handler).
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status

HTTP_422_UNPROCESSABLE: int = getattr(status, "HTTP_422_UNPROCESSABLE_CONTENT", 422)


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "code": self.code,
            "details": self.details,
        }

    def to_http_exception(self) -> HTTPException:
        return HTTPException(status_code=self.status_code, detail=self.to_dict())


class ValidationException(DomainException):
    """Raised when request input fails business validation."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, code or "VALIDATION_ERROR", details)


class NotFoundException(DomainException):
    """Raised when a requested entity is not found."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""

    status_code = status.HTTP_409_CONFLICT


class BusinessRuleException(DomainException):
    """Raised when a business rule is violated."""

    status_code = HTTP_422_UNPROCESSABLE


class UnauthorizedException(DomainException):
    """Raised when a caller cannot be authenticated."""

    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenException(DomainException):
    """Raised when the caller's role lacks a capability."""

    status_code = status.HTTP_403_FORBIDDEN


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message": self.message or "An error occurred processing your request",
            "code": self.code,
            "details": self.details if self.details else {},
        }


# Specific business exceptions


class SlotNoLongerAvailableException(ConflictException):
    """Raised when the requested slot was taken (or blocked) before the write."""

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message or "The selected time slot is no longer available",
            code="SLOT_NO_LONGER_AVAILABLE",
            details=details or {},
        )


class InvalidStateTransitionException(ConflictException):
    """Raised when an operation is not allowed from the entity's current state."""

    def __init__(self, entity: str, current: str, attempted: str):
        super().__init__(
            message=f"Cannot {attempted} a {entity} in state '{current}'",
            code="INVALID_STATE_TRANSITION",
            details={"entity": entity, "current_state": current, "attempted": attempted},
        )


class InsufficientCreditsException(BusinessRuleException):
    """Raised when a credit balance cannot cover a reservation."""

    def __init__(self, credit_type: str, remaining: int, required: int = 1):
        super().__init__(
            message=f"Not enough '{credit_type}' credits to pay for this reservation",
            code="INSUFFICIENT_CREDITS",
            details={
                "credit_type": credit_type,
                "credits_remaining": remaining,
                "credits_required": required,
            },
        )


class InvalidSignatureException(UnauthorizedException):
    """Raised when an inbound webhook signature does not verify."""

    def __init__(self, message: str = "Invalid webhook signature"):
        super().__init__(message=message, code="INVALID_SIGNATURE")


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    constraint violations.
    """
