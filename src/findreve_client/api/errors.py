"""Errors raised by the request gateway."""

from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Classification of a failed request."""

    CREDENTIAL_EXPIRED = "credential_expired"
    APPLICATION = "application"
    TRANSPORT = "transport"


class GatewayError(Exception):
    """Base class for request failures surfaced to callers.

    Attributes:
        message: Human-readable description.
        status_code: HTTP status, when the server answered.
    """

    kind: ErrorKind = ErrorKind.APPLICATION

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class AuthenticationExpiredError(GatewayError):
    """The server rejected the stored credential (HTTP 401)."""

    kind = ErrorKind.CREDENTIAL_EXPIRED

    def __init__(
        self,
        message: str = "Authentication expired, please log in again",
        status_code: Optional[int] = 401,
    ):
        super().__init__(message, status_code)


class RequestFailedError(GatewayError):
    """Non-2xx response or application-level failure envelope."""

    kind = ErrorKind.APPLICATION
