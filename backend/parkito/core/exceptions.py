# backend/parkito/core/exceptions.py
"""
Domain-specific exceptions for the Parkito host dashboard.

These exceptions provide clear, business-focused error messages
that can be caught and handled appropriately at the API layer.
The availability core itself never raises them for slot validation or
draft storage problems; they are used at the HTTP and integration edges.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

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

    def to_http_exception(self) -> HTTPException:
        """Default conversion to HTTPException (override in subclasses)."""
        return self._http(status.HTTP_500_INTERNAL_SERVER_ERROR)

    def _http(self, status_code: int) -> HTTPException:
        return HTTPException(
            status_code=status_code,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class ValidationException(DomainException):
    """Raised when request validation fails."""

    def to_http_exception(self) -> HTTPException:
        return self._http(status.HTTP_400_BAD_REQUEST)


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    def to_http_exception(self) -> HTTPException:
        return self._http(status.HTTP_404_NOT_FOUND)


class UnauthorizedException(DomainException):
    """Raised when the host session carries no access token."""

    def to_http_exception(self) -> HTTPException:
        return self._http(status.HTTP_401_UNAUTHORIZED)


class ExternalServiceException(DomainException):
    """Raised when a backend function call fails."""

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, code=code, details=details)
        self.status_code = status_code

    def to_http_exception(self) -> HTTPException:
        upstream = self.status_code
        # Client errors from the backend are passed through, everything else is a 502
        if upstream is not None and 400 <= upstream < 500:
            return self._http(upstream)
        return self._http(status.HTTP_502_BAD_GATEWAY)
