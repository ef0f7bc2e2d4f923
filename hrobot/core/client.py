"""
Core HTTP client for the Hetzner Robot webservice.

Handles authentication, request/response, and error classification.
No retries are ever performed: every failure is raised to the caller.
"""

import base64
import logging
import os
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, TypeVar
from urllib.parse import quote, urlsplit

import httpx

from hrobot.core.envelope import NO_CONTENT, Envelope, Parser, encode_form
from hrobot.core.errors import ConfigurationError, TransportError, map_error

logger = logging.getLogger(__name__)

# Configuration
DEFAULT_BASE_URL = "https://robot-ws.your-server.de"
DEFAULT_TIMEOUT = 60
DEFAULT_LIMITS = httpx.Limits(max_connections=20, max_keepalive_connections=10)

USERNAME_ENV = "HROBOT_USERNAME"
PASSWORD_ENV = "HROBOT_PASSWORD"

T = TypeVar("T")


@dataclass(frozen=True)
class Credentials:
    """Robot webservice user and password, used for HTTP Basic authentication."""

    username: str
    password: str = field(repr=False)

    @classmethod
    def from_env(cls) -> "Credentials":
        """Read credentials from HROBOT_USERNAME and HROBOT_PASSWORD."""
        username = os.environ.get(USERNAME_ENV)
        password = os.environ.get(PASSWORD_ENV)
        if not username or not password:
            raise ConfigurationError(f"{USERNAME_ENV} and {PASSWORD_ENV} environment variables must be set")
        return cls(username, password)

    @property
    def authorization_header(self) -> str:
        token = base64.b64encode(f"{self.username}:{self.password}".encode()).decode("ascii")
        return f"Basic {token}"

    def auth(self) -> httpx.BasicAuth:
        return httpx.BasicAuth(self.username, self.password)


@dataclass(frozen=True)
class Request:
    """A single API call: method, path, and optional form body and query."""

    method: str
    path: str
    form: Mapping[str, Any] | None = None
    params: Mapping[str, Any] | None = None


@dataclass(frozen=True)
class RawResponse:
    """Status and fully read body of a completed exchange."""

    status: int
    body: bytes
    headers: Mapping[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


def build_path(template: str, **ids: Any) -> str:
    """
    Interpolate resource identifiers into a path template.

    Each identifier is percent-encoded as a single path segment, so values such
    as IPv6 addresses or key fingerprints cannot alter the path structure.
    """
    return template.format(**{name: quote(str(value), safe="") for name, value in ids.items()})


class APIClient:
    """
    Low-level async HTTP client for the Robot webservice.

    Handles:
    - HTTP Basic authentication
    - Form-encoded request bodies
    - Error classification (transport, remote, unparseable, serialization)
    - Envelope decoding of successful responses

    A single instance holds one pooled connection set and is safe to share
    between concurrent tasks.
    """

    def __init__(
        self,
        credentials: Credentials,
        base_url: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
        limits: httpx.Limits | None = None,
    ):
        """
        Initialize the API client.

        Args:
            credentials: Robot webservice credentials
            base_url: API base URL override (must be https)
            timeout: Request timeout in seconds
            transport: Alternate httpx transport, e.g. for tests
            limits: Connection pool limits

        """
        self.base_url = (base_url or DEFAULT_BASE_URL).rstrip("/")
        if urlsplit(self.base_url).scheme != "https":
            raise ConfigurationError(f"Robot base URL must use https: {self.base_url}")

        self._credentials = credentials
        self.timeout = timeout
        self._http = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout),
            transport=transport,
            limits=limits or DEFAULT_LIMITS,
            headers={"Accept": "application/json"},
        )

    @property
    def username(self) -> str:
        return self._credentials.username

    @property
    def is_closed(self) -> bool:
        return self._http.is_closed

    async def aclose(self) -> None:
        """Release pooled connections."""
        await self._http.aclose()

    async def __aenter__(self) -> "APIClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def execute(self, request: Request) -> RawResponse:
        """
        Send one request and read the full response.

        Args:
            request: Method, path, and optional form body and query parameters

        Returns:
            RawResponse with status code and body, whatever the status

        Raises:
            TransportError: On DNS, connect, TLS, timeout or connection failures
            SerializationError: If the form body cannot be encoded

        """
        headers = {}
        content = None
        if request.form is not None:
            content = encode_form(request.form)
            headers["Content-Type"] = "application/x-www-form-urlencoded"

        params = None
        if request.params:
            params = {k: v for k, v in request.params.items() if v is not None}

        logger.debug("%s %s (%d byte body)", request.method, request.path, len(content or ""))
        started = time.monotonic()
        try:
            response = await self._http.request(
                request.method,
                request.path,
                content=content,
                params=params,
                headers=headers,
                auth=self._credentials.auth(),
            )
        except (httpx.RequestError, httpx.InvalidURL) as e:
            logger.warning("%s %s failed: %s", request.method, request.path, e)
            raise TransportError(f"Connection error: {e}", details={"path": request.path}) from e

        elapsed = time.monotonic() - started
        logger.debug(
            "%s %s -> %d (%d bytes, %.3fs)",
            request.method,
            request.path,
            response.status_code,
            len(response.content),
            elapsed,
        )
        return RawResponse(response.status_code, response.content, dict(response.headers))

    async def call(self, request: Request, envelope: Envelope = NO_CONTENT, parser: Parser[T] | None = None) -> Any:
        """
        Send a request and decode its result.

        Args:
            request: The request to send
            envelope: Wrapping convention of the response payload
            parser: Converts an unwrapped payload; None if no payload is expected

        Returns:
            The decoded value(s), or None when no payload is expected

        Raises:
            ApiError: Remote service returned a structured error
            UnparseableResponseError: Non-2xx status with an unreadable body
            TransportError: The exchange could not be completed
            SerializationError: Request encoding or response decoding failed

        """
        response = await self.execute(request)
        if not response.ok:
            raise map_error(response.status, response.body)
        if parser is None:
            return None
        return envelope.decode(response.body, parser)

    # =========================================================================
    # HTTP Methods
    # =========================================================================

    async def get(
        self,
        path: str,
        envelope: Envelope = NO_CONTENT,
        parser: Parser[T] | None = None,
        params: Mapping[str, Any] | None = None,
    ) -> Any:
        """Make a GET request."""
        return await self.call(Request("GET", path, params=params), envelope, parser)

    async def post(
        self,
        path: str,
        form: Mapping[str, Any] | None = None,
        envelope: Envelope = NO_CONTENT,
        parser: Parser[T] | None = None,
    ) -> Any:
        """Make a POST request."""
        return await self.call(Request("POST", path, form), envelope, parser)

    async def put(
        self,
        path: str,
        form: Mapping[str, Any] | None = None,
        envelope: Envelope = NO_CONTENT,
        parser: Parser[T] | None = None,
    ) -> Any:
        """Make a PUT request."""
        return await self.call(Request("PUT", path, form), envelope, parser)

    async def delete(
        self,
        path: str,
        form: Mapping[str, Any] | None = None,
        envelope: Envelope = NO_CONTENT,
        parser: Parser[T] | None = None,
    ) -> Any:
        """Make a DELETE request."""
        return await self.call(Request("DELETE", path, form), envelope, parser)
