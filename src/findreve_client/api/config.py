"""Configuration for the request gateway."""

import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_BASE_URL = "http://localhost:8080"


@dataclass
class GatewayConfig:
    """Configuration for RequestGateway.

    Attributes:
        base_url: Server root (falls back to FINDREVE_BASE_URL env var).
        timeout: Request timeout in seconds (default: 30.0).
        token_endpoint: Password-grant token endpoint.
        admin_endpoint: Endpoint checked to validate the stored token.
        object_endpoint: Object lookup endpoint, with a {key} placeholder.
        login_path: Location of the login surface for redirects.
    """

    base_url: Optional[str] = None
    timeout: float = 30.0
    token_endpoint: str = "/api/token"
    admin_endpoint: str = "/api/admin/"
    object_endpoint: str = "/api/object/{key}"
    login_path: str = "/login"

    def __post_init__(self) -> None:
        """Set base URL from environment if not provided."""
        if self.base_url is None:
            self.base_url = os.getenv("FINDREVE_BASE_URL", DEFAULT_BASE_URL)
        self.base_url = self.base_url.rstrip("/")
        if "{key}" not in self.object_endpoint:
            raise ValueError(
                "object_endpoint must contain a {key} placeholder"
            )
