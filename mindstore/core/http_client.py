"""HTTP client for the content API.

Configures an httpx client with sensible defaults for timeouts and headers,
and wraps it in ApiClient, which turns every failure into an ApiError so
callers only ever see parsed JSON or a typed failure.
"""

import logging
from typing import Any

import httpx

from mindstore.core.exceptions import ApiError
from mindstore.core.retry import retry_async

logger = logging.getLogger(__name__)

# Default timeout configuration (in seconds)
DEFAULT_CONNECT_TIMEOUT = 10.0
DEFAULT_READ_TIMEOUT = 30.0
DEFAULT_WRITE_TIMEOUT = 10.0
DEFAULT_POOL_TIMEOUT = 10.0

USER_AGENT = "Mindstore/1.0 (+https://github.com/mindstore/mindstore-client)"


def get_timeout(read: float = DEFAULT_READ_TIMEOUT) -> httpx.Timeout:
    """Get default timeout configuration.

    Args:
        read: Read timeout in seconds.

    Returns:
        httpx.Timeout with configured connect/read/write/pool timeouts.
    """
    return httpx.Timeout(
        connect=DEFAULT_CONNECT_TIMEOUT,
        read=read,
        write=DEFAULT_WRITE_TIMEOUT,
        pool=DEFAULT_POOL_TIMEOUT,
    )


def get_headers() -> dict[str, str]:
    """Get default headers for API requests."""
    return {
        "User-Agent": USER_AGENT,
        "Accept": "application/json",
        "Content-Type": "application/json",
    }


def create_client(
    *,
    timeout: httpx.Timeout | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Create an async HTTP client with configured defaults.

    Args:
        timeout: Custom timeout configuration. Uses defaults if not provided.
        transport: Optional transport (tests pass httpx.MockTransport).

    Returns:
        Configured httpx.AsyncClient ready for use.
    """
    return httpx.AsyncClient(
        timeout=timeout or get_timeout(),
        headers=get_headers(),
        follow_redirects=True,
        transport=transport,
    )


def _error_message(data: dict[str, Any], status: int) -> str:
    return data.get("error") or data.get("message") or f"Request failed with status {status}"


class ApiClient:
    """JSON client for the content API.

    Exposes get/post/put/delete. Each returns the parsed response body
    (an empty dict when the body is not JSON) or raises ApiError:
    status 0 for transport failures, the HTTP status otherwise.

    GET requests are retried on transient failures; writes are sent once.

    Example:
        async with ApiClient("http://localhost:3001/api") as api:
            data = await api.get("/urls", params={"userId": "u1"})
    """

    def __init__(
        self,
        base_url: str,
        *,
        client: httpx.AsyncClient | None = None,
        timeout: httpx.Timeout | None = None,
        read_attempts: int = 3,
        retry_delay: float = 0.5,
    ):
        """Initialize the API client.

        Args:
            base_url: API root, e.g. "http://localhost:3001/api".
            client: Existing httpx client to use. When omitted a client is
                created and closed by aclose().
            timeout: Timeout for the client created here.
            read_attempts: Attempts for GET requests (1 disables retry).
            retry_delay: Base backoff delay between GET attempts.
        """
        self.base_url = base_url.rstrip("/")
        self._client = client or create_client(timeout=timeout)
        self._owns_client = client is None
        self._read_attempts = read_attempts
        self._retry_delay = retry_delay

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    async def request(
        self,
        method: str,
        endpoint: str,
        *,
        body: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Send one request and return the parsed JSON body.

        Raises:
            ApiError: On non-2xx responses or transport failures.
        """
        url = f"{self.base_url}{endpoint}"
        try:
            response = await self._client.request(method, url, json=body, params=params)
        except httpx.RequestError as e:
            logger.debug("%s %s failed: %r", method, url, e)
            raise ApiError(str(e) or "Network error", 0) from e

        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {"data": data}

        if not response.is_success:
            raise ApiError(_error_message(data, response.status_code), response.status_code, data)

        return data

    async def get(self, endpoint: str, *, params: dict[str, Any] | None = None) -> dict[str, Any]:
        return await retry_async(
            self.request,
            "GET",
            endpoint,
            params=params,
            max_attempts=self._read_attempts,
            base_delay=self._retry_delay,
        )

    async def post(self, endpoint: str, body: dict[str, Any] | None = None) -> dict[str, Any]:
        return await self.request("POST", endpoint, body=body)

    async def put(self, endpoint: str, body: dict[str, Any] | None = None) -> dict[str, Any]:
        return await self.request("PUT", endpoint, body=body)

    async def delete(self, endpoint: str, body: dict[str, Any] | None = None) -> dict[str, Any]:
        return await self.request("DELETE", endpoint, body=body)
