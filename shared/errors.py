"""
Shared error handling for the Sentry exporter.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response format."""

    code: str
    message: str
    details: Dict[str, Any] = {}


class ExporterException(Exception):
    """Base exception for the exporter."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            code=self.code,
            message=self.message,
            details=self.details
        )


class ConfigurationError(ExporterException):
    """Invalid or missing configuration."""

    def __init__(self, message: str = "Invalid configuration", details: Optional[Dict[str, Any]] = None):
        super().__init__("CONFIGURATION_ERROR", message, details)


class UpstreamTransportError(ExporterException):
    """The upstream API could not be reached (DNS, connect, timeout)."""

    def __init__(self, message: str = "Upstream unreachable", details: Optional[Dict[str, Any]] = None):
        super().__init__("UPSTREAM_TRANSPORT_ERROR", message, details)


class UpstreamStatusError(ExporterException):
    """The upstream API answered outside the 2xx range."""

    def __init__(self, status_code: int, body: str = "", details: Optional[Dict[str, Any]] = None):
        self.status_code = status_code
        self.body = body
        details = {"status_code": status_code, "body": body, **(details or {})}
        super().__init__("UPSTREAM_STATUS_ERROR", f"unexpected status code: {status_code}", details)


class DecodeError(ExporterException):
    """The upstream response body is not JSON or has an unexpected shape."""

    def __init__(self, message: str = "Malformed upstream response", details: Optional[Dict[str, Any]] = None):
        super().__init__("DECODE_ERROR", message, details)


class ContractViolationError(ExporterException):
    """A value the upstream guarantees to be well-formed failed validation."""

    def __init__(self, message: str = "Upstream contract violated", details: Optional[Dict[str, Any]] = None):
        super().__init__("CONTRACT_VIOLATION", message, details)
