"""Authenticated API access for findreve-client."""

from findreve_client.api.config import GatewayConfig
from findreve_client.api.envelopes import (
    ErrorEnvelope,
    LoginResult,
    ObjectEnvelope,
    TokenResponse,
)
from findreve_client.api.errors import (
    AuthenticationExpiredError,
    ErrorKind,
    GatewayError,
    RequestFailedError,
)
from findreve_client.api.gateway import (
    RequestFailed,
    RequestGateway,
    RequestOutcome,
    RequestSucceeded,
    encode_form,
)
from findreve_client.api.navigation import (
    Navigator,
    RecordingNavigator,
    build_location,
)

__all__ = [
    # Gateway
    "GatewayConfig",
    "RequestGateway",
    "RequestOutcome",
    "RequestSucceeded",
    "RequestFailed",
    "encode_form",
    # Errors
    "ErrorKind",
    "GatewayError",
    "AuthenticationExpiredError",
    "RequestFailedError",
    # Envelopes
    "ErrorEnvelope",
    "LoginResult",
    "ObjectEnvelope",
    "TokenResponse",
    # Navigation
    "Navigator",
    "RecordingNavigator",
    "build_location",
]
