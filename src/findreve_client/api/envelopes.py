"""Pydantic models for server response envelopes.

Server payloads are decoded defensively: unknown fields are ignored and
missing fields fall back to defaults, so callers always get a usable
message even from a malformed error body.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class ObjectEnvelope(BaseModel):
    """Envelope returned by the object endpoint.

    A `code` of 0 means success, with the payload under `data`.
    """

    model_config = ConfigDict(extra="ignore")

    code: int
    data: Any = None
    msg: Optional[str] = None

    @property
    def ok(self) -> bool:
        """Check whether the envelope reports success."""
        return self.code == 0


class ErrorEnvelope(BaseModel):
    """Structured error body of a non-2xx response."""

    model_config = ConfigDict(extra="ignore")

    msg: Any = None
    detail: Any = None

    @property
    def message(self) -> Optional[str]:
        """First non-empty string among `msg` and `detail`."""
        for value in (self.msg, self.detail):
            if isinstance(value, str) and value:
                return value
        return None


class TokenResponse(BaseModel):
    """Successful response of the password-grant token endpoint."""

    model_config = ConfigDict(extra="allow")

    access_token: str = Field(min_length=1)
    token_type: str = "bearer"


class LoginResult(BaseModel):
    """Tagged outcome of a login attempt.

    Attributes:
        success: Whether a token was obtained and stored.
        data: Token payload on success.
        error: Human-readable reason on failure.
    """

    success: bool
    data: Optional[dict[str, Any]] = None
    error: Optional[str] = None

    @classmethod
    def succeeded(cls, data: dict[str, Any]) -> LoginResult:
        return cls(success=True, data=data)

    @classmethod
    def failed(cls, error: str) -> LoginResult:
        return cls(success=False, error=error)
