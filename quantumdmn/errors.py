"""
Error types for the QuantumDMN client.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Serializable error payload."""

    code: str
    message: str
    details: Dict[str, Any] = {}


class DmnClientError(Exception):
    """Base exception for the QuantumDMN client."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to a serializable error payload."""
        return ErrorResponse(
            code=self.code,
            message=self.message,
            details=self.details
        )


class ConfigurationError(DmnClientError):
    """Malformed or incomplete credential material or client settings."""

    def __init__(self, message: str = "Invalid configuration", details: Optional[Dict[str, Any]] = None):
        super().__init__("CONFIGURATION_ERROR", message, details)


class AuthenticationError(DmnClientError):
    """The token endpoint refused the assertion or answered with an unusable body."""

    def __init__(self,
                 message: str = "Authentication failed",
                 status_code: Optional[int] = None,
                 body: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        self.status_code = status_code
        self.body = body
        details = dict(details or {})
        if status_code is not None:
            details.setdefault("status_code", status_code)
        if body is not None:
            details.setdefault("body", body)
        super().__init__("AUTHENTICATION_ERROR", message, details)


class TransportError(DmnClientError):
    """Network-level failure reaching a remote endpoint."""

    def __init__(self, target: str, message: str = "Transport error", details: Optional[Dict[str, Any]] = None):
        self.target = target
        super().__init__("TRANSPORT_ERROR", f"{target}: {message}", details)


class ApiError(DmnClientError):
    """The DMN API answered an evaluation request with a non-2xx status."""

    def __init__(self, status_code: int, body: str, message: Optional[str] = None):
        self.status_code = status_code
        self.body = body
        super().__init__(
            "API_ERROR",
            message or f"DMN API error: {status_code}",
            {"status_code": status_code, "body": body}
        )


class FeelTypeMismatch(DmnClientError, TypeError):
    """A FEEL value accessor was used against a value of another type."""

    def __init__(self, expected: str, actual: str):
        self.expected = expected
        self.actual = actual
        super().__init__(
            "TYPE_MISMATCH",
            f"Not a {expected}: {actual}",
            {"expected": expected, "actual": actual}
        )
