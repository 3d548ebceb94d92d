"""Bearer credential store backed by key/value storage."""

from __future__ import annotations

import logging

from findreve_client.storage.backends import KeyValueStorage

logger = logging.getLogger(__name__)

TOKEN_KEY = "user-token"


class CredentialStore:
    """Get/set/clear access to the single bearer token.

    The token is read from storage on every call and never held in
    memory, so a token cleared elsewhere is seen immediately.

    Attributes:
        storage: Backing key/value storage.
        key: Storage key holding the token.
    """

    def __init__(self, storage: KeyValueStorage, key: str = TOKEN_KEY) -> None:
        self.storage = storage
        self.key = key

    def get(self) -> str | None:
        """Return the stored token, or None if absent or empty."""
        token = self.storage.get_item(self.key)
        return token or None

    def set(self, token: str) -> None:
        """Persist a new token, replacing any existing one."""
        self.storage.set_item(self.key, token)

    def clear(self) -> None:
        """Remove the stored token."""
        self.storage.remove_item(self.key)
        logger.debug("Credential cleared")

    @property
    def has_token(self) -> bool:
        """Check whether a token is currently stored."""
        return self.get() is not None
