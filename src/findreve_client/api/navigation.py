"""Navigation collaborator used to send the user to the login surface."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Optional
from urllib.parse import urlencode

logger = logging.getLogger(__name__)


def build_location(path: str, query: Optional[Dict[str, str]] = None) -> str:
    """Join a path and query parameters into a location string.

    Slashes in query values are left unescaped so redirect targets stay
    readable, e.g. "/login?redirect=/admin&expired=true".
    """
    if not query:
        return path
    return f"{path}?{urlencode(query, safe='/')}"


class Navigator(ABC):
    """Interface the embedding environment implements for redirects."""

    @property
    @abstractmethod
    def current_path(self) -> str:
        """Return the current location (path plus query, if any)."""
        pass

    @abstractmethod
    def push(self, path: str, query: Optional[Dict[str, str]] = None) -> None:
        """Request navigation to `path` with optional query parameters."""
        pass


class RecordingNavigator(Navigator):
    """Navigator that tracks the location and records every redirect.

    Attributes:
        history: Full locations pushed, oldest first.
    """

    def __init__(self, current_path: str = "/") -> None:
        self._current_path = current_path
        self.history: List[str] = []

    @property
    def current_path(self) -> str:
        return self._current_path

    @current_path.setter
    def current_path(self, value: str) -> None:
        self._current_path = value

    @property
    def last_location(self) -> Optional[str]:
        """Return the most recent redirect, if any."""
        return self.history[-1] if self.history else None

    def push(self, path: str, query: Optional[Dict[str, str]] = None) -> None:
        location = build_location(path, query)
        logger.info(f"Redirect requested: {location}")
        self.history.append(location)
        self._current_path = location
