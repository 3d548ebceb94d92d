"""
findreve-client: authenticated data access and local caching for Findreve.
"""

from findreve_client.api import (
    AuthenticationExpiredError,
    GatewayConfig,
    RequestFailedError,
    RequestGateway,
)
from findreve_client.storage import CredentialStore, ObjectCache

__version__ = "0.1.0"
__author__ = "Findreve"

# Package metadata
__title__ = "findreve-client"
__description__ = "Authenticated data access and local caching for Findreve"

__license__ = "MIT"

# Version tuple for programmatic access (major, minor, patch)
VERSION = (0, 1, 0)

__all__ = [
    "__version__",
    "__author__",
    "VERSION",
    # Gateway
    "GatewayConfig",
    "RequestGateway",
    "AuthenticationExpiredError",
    "RequestFailedError",
    # Storage
    "CredentialStore",
    "ObjectCache",
]
