"""Abstract base class for remote lookup fetchers."""

from abc import ABC, abstractmethod
from typing import Any


class BaseFetcher(ABC):
    """Abstract base class for fetching raw lookup data from a remote API."""

    def __init__(self, name: str, timeout_seconds: float = 2.0):
        """Initialize the fetcher.

        Args:
            name: Unique identifier for this fetcher.
            timeout_seconds: Default timeout for remote calls.
        """
        self.name = name
        self.timeout_seconds = timeout_seconds
        self._ready = False

    async def initialize(self) -> None:
        """Open connections. Override in subclasses."""
        self._ready = True

    async def shutdown(self) -> None:
        """Release connections. Override in subclasses."""
        self._ready = False

    @abstractmethod
    async def get_json(self, url: str, timeout: float | None = None) -> Any:
        """GET `url` and return the decoded JSON body.

        Raises:
            RequestQuotaExceededError: If the API reports the quota is used up.
            APIError: If the API answers with an error status.
            TransportError: If no usable response was received.
        """

    @abstractmethod
    async def post_json(
        self,
        url: str,
        payload: Any,
        params: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> Any:
        """POST `payload` as JSON to `url` and return the decoded JSON body.

        Raises the same errors as `get_json`.
        """

    def is_ready(self) -> bool:
        """Check if fetcher is ready to accept calls."""
        return self._ready

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name}, ready={self._ready})"
