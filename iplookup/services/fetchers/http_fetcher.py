"""HTTP fetcher for the IPinfo API."""

from typing import Any

import httpx

from iplookup.exceptions import APIError, RequestQuotaExceededError, TransportError
from iplookup.services.fetchers.base import BaseFetcher
from iplookup.utils.logging import get_logger

# Constants
CLIENT_VERSION = "1.0.0"
USER_AGENT = f"IPinfoClient/Python/{CLIENT_VERSION}"
STATUS_CODE_QUOTA_EXCEEDED = 429
CLIENT_ERROR_CODE = 400

logger = get_logger(__name__)


def build_headers(access_token: str | None, extra: dict[str, str] | None = None) -> dict[str, str]:
    """Build the default request headers; `extra` entries win."""
    headers = {
        "user-agent": USER_AGENT,
        "accept": "application/json",
    }
    if access_token:
        headers["authorization"] = f"Bearer {access_token}"
    if extra:
        headers.update({k.lower(): v for k, v in extra.items()})
    return headers


class HTTPFetcher(BaseFetcher):
    """Query the IPinfo HTTP API."""

    def __init__(
        self,
        name: str = "ipinfo-http",
        access_token: str | None = None,
        timeout_seconds: float = 2.0,
        headers: dict[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize HTTP fetcher.

        Args:
            name: Unique identifier for this fetcher.
            access_token: API token sent as a bearer token.
            timeout_seconds: Default request timeout.
            headers: Additional HTTP headers, overriding the defaults.
            transport: Custom httpx transport (tests, proxies).
        """
        super().__init__(name, timeout_seconds)
        self.headers = build_headers(access_token, headers)
        self.transport = transport
        self.client: httpx.AsyncClient | None = None

    async def initialize(self) -> None:
        """Create the HTTP client."""
        if self.client is None:
            self.client = httpx.AsyncClient(
                timeout=self.timeout_seconds,
                headers=self.headers,
                transport=self.transport,
            )
        logger.debug(f"HTTP fetcher {self.name} initialized")
        self._ready = True

    async def shutdown(self) -> None:
        """Close HTTP client."""
        if self.client:
            await self.client.aclose()
            self.client = None
        self._ready = False

    async def get_json(self, url: str, timeout: float | None = None) -> Any:
        """GET `url` and decode the JSON body."""
        return await self._request("GET", url, timeout=timeout)

    async def post_json(
        self,
        url: str,
        payload: Any,
        params: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> Any:
        """POST `payload` as JSON to `url` and decode the JSON body."""
        return await self._request("POST", url, json=payload, params=params, timeout=timeout)

    async def _request(self, method: str, url: str, timeout: float | None = None, **kwargs) -> Any:
        if not self._ready or not self.client:
            msg = f"HTTP fetcher {self.name} is not initialized"
            raise TransportError(msg)

        try:
            response = await self.client.request(
                method,
                url,
                timeout=timeout if timeout is not None else self.timeout_seconds,
                **kwargs,
            )
        except httpx.TimeoutException as e:
            logger.error(f"HTTP fetcher {self.name} timeout: {method} {url}")
            msg = f"Request timed out: {method} {url}"
            raise TransportError(msg) from e
        except httpx.HTTPError as e:
            logger.error(f"HTTP fetcher {self.name} request failed: {e}")
            raise TransportError(str(e)) from e

        self._raise_for_status(response)

        try:
            return response.json()
        except ValueError as e:
            msg = f"Invalid JSON in response from {url}"
            raise TransportError(msg) from e

    def _raise_for_status(self, response: httpx.Response) -> None:
        """Map error statuses to typed errors.

        Args:
            response: Response received from the API.
        """
        if response.status_code == STATUS_CODE_QUOTA_EXCEEDED:
            logger.warning(f"HTTP fetcher {self.name}: request quota exceeded")
            raise RequestQuotaExceededError
        if response.status_code >= CLIENT_ERROR_CODE:
            logger.warning(f"HTTP fetcher {self.name} returned status {response.status_code}")
            raise APIError(response.status_code, response.reason_phrase)
