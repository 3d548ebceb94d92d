"""Authenticated request gateway with cache-first object lookup.

Every request carries the stored bearer token. A 401 response clears the
token and asks the navigator to send the user to the login surface.
Object lookups read through the ObjectCache before touching the network.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Union
from urllib.parse import quote, urlencode

import httpx
from pydantic import ValidationError

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
from findreve_client.api.navigation import Navigator
from findreve_client.storage.backends import StorageError
from findreve_client.storage.credentials import CredentialStore
from findreve_client.storage.object_cache import ObjectCache

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json"
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"

INVALID_CREDENTIALS_MESSAGE = "Invalid username or password"
LOGIN_FAILED_MESSAGE = "Login failed"
OBJECT_FAILED_MESSAGE = "Failed to fetch object"

Body = Union[str, bytes, Mapping[str, Any], list, None]


@dataclass
class RequestSucceeded:
    """A 2xx response with its decoded JSON body."""

    payload: Any


@dataclass
class RequestFailed:
    """A request that did not produce a usable payload.

    Attributes:
        kind: Which class of failure occurred.
        message: Human-readable description.
        status_code: HTTP status, if the server answered.
        cause: Original transport exception, for TRANSPORT failures.
    """

    kind: ErrorKind
    message: str
    status_code: Optional[int] = None
    cause: Optional[BaseException] = None

    def to_exception(self) -> BaseException:
        """Convert to the exception raised at the gateway boundary."""
        if self.kind is ErrorKind.TRANSPORT and self.cause is not None:
            return self.cause
        if self.kind is ErrorKind.CREDENTIAL_EXPIRED:
            return AuthenticationExpiredError(self.message, self.status_code)
        return RequestFailedError(self.message, self.status_code)


RequestOutcome = Union[RequestSucceeded, RequestFailed]


def encode_form(fields: Mapping[str, Any]) -> str:
    """URL-encode a flat mapping, skipping None values.

    Booleans are written as "true"/"false".
    """
    pairs = []
    for name, value in fields.items():
        if value is None:
            continue
        if isinstance(value, bool):
            value = "true" if value else "false"
        pairs.append((name, str(value)))
    return urlencode(pairs)


class RequestGateway:
    """HTTP gateway for the lost item lookup service.

    Uses httpx for HTTP requests. Holds no per-request state; the
    credential store, cache and navigator are injected.

    Example:
        >>> storage = MemoryStorage()
        >>> gateway = RequestGateway(
        ...     CredentialStore(storage),
        ...     ObjectCache(storage),
        ...     RecordingNavigator(),
        ... )
        >>> item = gateway.get_object("abc123")
    """

    def __init__(
        self,
        credentials: CredentialStore,
        cache: ObjectCache,
        navigator: Navigator,
        config: Optional[GatewayConfig] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        """Initialise the gateway.

        Args:
            credentials: Store holding the bearer token.
            cache: Object cache consulted by get_object().
            navigator: Receives redirects when the token expires.
            config: Gateway configuration. If None, uses defaults with the
                base URL from the FINDREVE_BASE_URL environment variable.
            transport: Optional httpx transport (e.g. httpx.MockTransport).
        """
        self.credentials = credentials
        self.cache = cache
        self.navigator = navigator
        self.config = config or GatewayConfig()
        self._transport = transport

    def _client(self) -> httpx.Client:
        return httpx.Client(
            base_url=self.config.base_url or "",
            timeout=self.config.timeout,
            transport=self._transport,
        )

    # ========================================================================
    # Request primitive
    # ========================================================================

    def _build_headers(
        self, extra: Optional[Mapping[str, str]] = None
    ) -> httpx.Headers:
        headers = httpx.Headers({"Accept": JSON_CONTENT_TYPE})
        if extra:
            headers.update(extra)
        token = self.credentials.get()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    @staticmethod
    def _encode_body(
        body: Body, headers: httpx.Headers
    ) -> Optional[Union[str, bytes]]:
        """Serialise `body`, adding a JSON content type where needed.

        Strings and bytes are sent unchanged (pre-encoded forms, raw text).
        """
        if body is None or isinstance(body, (str, bytes)):
            return body
        if "Content-Type" not in headers:
            headers["Content-Type"] = JSON_CONTENT_TYPE
        return json.dumps(body)

    def _dispatch(
        self,
        method: str,
        url: str,
        content: Optional[Union[str, bytes]],
        headers: httpx.Headers,
    ) -> RequestOutcome:
        logger.debug(f"{method} {url}")
        try:
            with self._client() as client:
                response = client.request(
                    method, url, content=content, headers=headers
                )
        except httpx.HTTPError as e:
            logger.error(f"API request error: {method} {url}: {e!r}")
            return RequestFailed(ErrorKind.TRANSPORT, str(e), cause=e)
        return self._classify(response)

    def _classify(self, response: httpx.Response) -> RequestOutcome:
        status = response.status_code

        if status == 401:
            self._handle_expired_credential()
            return RequestFailed(
                ErrorKind.CREDENTIAL_EXPIRED,
                AuthenticationExpiredError().message,
                status,
            )

        if not response.is_success:
            try:
                envelope = ErrorEnvelope.model_validate(response.json())
                message = envelope.message or f"Request failed: {status}"
            except ValueError:
                message = f"Request failed: {status} {response.reason_phrase}"
            logger.error(f"API request error: {message}")
            return RequestFailed(ErrorKind.APPLICATION, message, status)

        if not response.content:
            return RequestSucceeded(None)
        try:
            return RequestSucceeded(response.json())
        except ValueError as e:
            logger.error(f"Invalid JSON in response: {e}")
            return RequestFailed(
                ErrorKind.APPLICATION, f"Invalid JSON response: {e}", status
            )

    def _handle_expired_credential(self) -> None:
        logger.warning("Authentication failed, token may have expired")
        self.credentials.clear()

        current = self.navigator.current_path
        if current.split("?", 1)[0] != self.config.login_path:
            self.navigator.push(
                self.config.login_path,
                {"redirect": current, "expired": "true"},
            )

    def send(
        self,
        method: str,
        url: str,
        body: Body = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Any:
        """Send an authenticated request and return the decoded JSON.

        Args:
            method: HTTP method.
            url: Path relative to the configured base URL, or absolute URL.
            body: Pre-encoded str/bytes, or a JSON-serialisable value.
            headers: Extra headers; a caller Content-Type wins.

        Returns:
            Decoded JSON body (None for an empty body).

        Raises:
            AuthenticationExpiredError: On HTTP 401.
            RequestFailedError: On any other non-2xx status.
            httpx.HTTPError: On network faults, unchanged.
        """
        request_headers = self._build_headers(headers)
        content = self._encode_body(body, request_headers)
        outcome = self._dispatch(method.upper(), url, content, request_headers)
        if isinstance(outcome, RequestFailed):
            raise outcome.to_exception()
        return outcome.payload

    def get(
        self, url: str, headers: Optional[Mapping[str, str]] = None
    ) -> Any:
        return self.send("GET", url, headers=headers)

    def post(
        self,
        url: str,
        data: Body = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Any:
        return self.send("POST", url, data, headers)

    def patch(
        self,
        url: str,
        data: Body = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Any:
        # PATCH always carries a body, even when empty
        return self.send("PATCH", url, "" if data is None else data, headers)

    def delete(
        self, url: str, headers: Optional[Mapping[str, str]] = None
    ) -> Any:
        return self.send("DELETE", url, headers=headers)

    def submit_form(
        self,
        url: str,
        fields: Mapping[str, Any],
        headers: Optional[Mapping[str, str]] = None,
    ) -> Any:
        """POST a flat mapping as an URL-encoded form."""
        form_headers: Dict[str, str] = {"Content-Type": FORM_CONTENT_TYPE}
        if headers:
            form_headers.update(headers)
        return self.post(url, encode_form(fields), form_headers)

    # ========================================================================
    # Authentication
    # ========================================================================

    def login(self, username: str, password: str) -> LoginResult:
        """Exchange username and password for a bearer token.

        Never raises. A stored token is only written on success.

        Returns:
            LoginResult with the token payload, or the failure reason.
        """
        form = encode_form(
            {
                "username": username,
                "password": password,
                "grant_type": "password",
            }
        )
        try:
            with self._client() as client:
                response = client.post(
                    self.config.token_endpoint,
                    content=form,
                    headers={
                        "Content-Type": FORM_CONTENT_TYPE,
                        "Accept": JSON_CONTENT_TYPE,
                    },
                )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.error(f"Login error: {e!r}")
            return LoginResult.failed(str(e) or LOGIN_FAILED_MESSAGE)

        if not response.is_success:
            if response.status_code == 401:
                error = INVALID_CREDENTIALS_MESSAGE
            else:
                error = LOGIN_FAILED_MESSAGE
                try:
                    envelope = ErrorEnvelope.model_validate(response.json())
                    detail = envelope.detail
                    if isinstance(detail, str) and detail:
                        error = detail
                except ValueError as e:
                    logger.error(f"Failed to parse login error response: {e}")
            logger.error(f"Login error: {error}")
            return LoginResult.failed(error)

        try:
            payload = response.json()
            token = TokenResponse.model_validate(payload)
            self.credentials.set(token.access_token)
        except (ValueError, StorageError) as e:
            logger.error(f"Login error: {e}")
            return LoginResult.failed(LOGIN_FAILED_MESSAGE)

        return LoginResult.succeeded(payload)

    def validate_token(self) -> bool:
        """Check the stored token against the admin endpoint.

        Returns:
            True only if a token is stored and the server answers with
            the JSON literal true.
        """
        try:
            if not self.credentials.has_token:
                logger.debug("No authentication token found")
                return False
            response = self.get(self.config.admin_endpoint)
        except (
            GatewayError,
            httpx.HTTPError,
            httpx.InvalidURL,
            StorageError,
        ) as e:
            logger.info(f"Token validation failed: {e}")
            return False
        return response is True

    def logout(self) -> None:
        """Forget the stored token and scrub cached objects."""
        self.credentials.clear()
        self.clear_cache()

    # ========================================================================
    # Objects
    # ========================================================================

    def object_url(self, key: str) -> str:
        """Return the object endpoint path for `key`, URL-escaped."""
        return self.config.object_endpoint.format(key=quote(key, safe=""))

    def get_object(self, key: str, use_cache: bool = True) -> Any:
        """Fetch an object by key, preferring a valid cached copy.

        Args:
            key: Object identifier (e.g. an item code).
            use_cache: Whether to serve from the cache when possible.

        Returns:
            The object payload.

        Raises:
            AuthenticationExpiredError: On HTTP 401.
            RequestFailedError: On HTTP errors or a non-zero envelope code.
            httpx.HTTPError: On network faults, unchanged.
        """
        if use_cache:
            cached = self.cache.read(key)
            if cached is not None:
                logger.debug(f"Using cached item data: {key}")
                return cached

        try:
            payload = self.get(self.object_url(key))
            try:
                envelope = ObjectEnvelope.model_validate(payload)
            except ValidationError:
                raise RequestFailedError(OBJECT_FAILED_MESSAGE)
            if not envelope.ok:
                raise RequestFailedError(envelope.msg or OBJECT_FAILED_MESSAGE)
        except (GatewayError, httpx.HTTPError) as e:
            logger.error(f"Error fetching object {key!r}: {e}")
            raise

        if envelope.data is not None:
            self.cache.write(key, envelope.data)
        return envelope.data

    def clear_cache(self) -> None:
        """Remove every cached object."""
        self.cache.clear_all()
