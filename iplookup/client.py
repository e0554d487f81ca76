"""Lookup clients for the IPinfo API tiers."""

import asyncio
import time
from abc import ABC, abstractmethod
from typing import Any

import httpx

from iplookup.config import settings
from iplookup.exceptions import IPinfoError
from iplookup.models.details import Details, DetailsCore, DetailsLite, DetailsPlus
from iplookup.services.batch_dispatcher import BatchDispatcher
from iplookup.services.bogon import bogon_details, is_bogon
from iplookup.services.fetchers.base import BaseFetcher
from iplookup.services.fetchers.http_fetcher import HTTPFetcher
from iplookup.services.formatter import DetailsFormatter
from iplookup.services.reference_tables import ReferenceTables
from iplookup.utils.cache import BaseCache, DefaultCache
from iplookup.utils.cache_keys import address_of
from iplookup.utils.logging import generate_lookup_id, get_logger, log_lookup, set_lookup_id
from iplookup.utils.metrics import LookupMetrics

# Bump to invalidate cache entries written by older formats
CACHE_KEY_VSN = "1"

_MISSING = object()

logger = get_logger(__name__)


class BaseIPinfoClient(ABC):
    """Single-address lookups: bogon check, cache, fetch, format."""

    service_name = "ipinfo"

    def __init__(
        self,
        access_token: str | None = None,
        *,
        cache: BaseCache | None = None,
        cache_maxsize: int | None = None,
        cache_ttl: float | None = None,
        timeout: float | None = None,
        headers: dict[str, str] | None = None,
        fetcher: BaseFetcher | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        data_dir: str | None = None,
    ):
        """Initialize the client.

        Args:
            access_token: API token; defaults to the IPINFO_ACCESS_TOKEN setting.
            cache: Cache to use instead of a private `DefaultCache`. May be shared
                between clients.
            cache_maxsize: Entry bound of the default cache.
            cache_ttl: Entry time-to-live of the default cache, in seconds.
            timeout: Request timeout in seconds.
            headers: Extra HTTP headers, overriding the defaults.
            fetcher: Fetcher to use instead of the HTTP one.
            transport: httpx transport for the default HTTP fetcher.
            data_dir: Directory holding the country reference tables.
        """
        self.access_token = access_token if access_token is not None else settings.access_token

        if cache is not None:
            self.cache = cache
        else:
            self.cache = DefaultCache(
                maxsize=cache_maxsize if cache_maxsize is not None else settings.cache_maxsize,
                ttl=cache_ttl if cache_ttl is not None else settings.cache_ttl_seconds,
            )

        self.timeout = timeout if timeout is not None else settings.request_timeout_seconds
        self.fetcher = fetcher or HTTPFetcher(
            name=f"{self.service_name}-http",
            access_token=self.access_token,
            timeout_seconds=self.timeout,
            headers=headers,
            transport=transport,
        )
        self.data_dir = data_dir if data_dir is not None else settings.data_dir
        self.metrics = LookupMetrics()
        self.formatter: DetailsFormatter | None = None
        self._init_lock = asyncio.Lock()

    async def initialize(self) -> None:
        """Load reference tables and open the fetcher."""
        async with self._init_lock:
            if self.formatter is None:
                tables = await ReferenceTables.load(self.data_dir)
                self.formatter = DetailsFormatter(tables)
            if not self.fetcher.is_ready():
                await self.fetcher.initialize()
        logger.info(f"{self.__class__.__name__} ready: cache={self.cache!r}")

    async def shutdown(self) -> None:
        """Close the fetcher."""
        await self.fetcher.shutdown()

    async def __aenter__(self):
        await self.initialize()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.shutdown()

    def is_ready(self) -> bool:
        return self.formatter is not None and self.fetcher.is_ready()

    async def _ensure_ready(self) -> None:
        if not self.is_ready():
            await self.initialize()

    @staticmethod
    def cache_key(key: str) -> str:
        """Cache key for a raw lookup key, tagged with the cache format version."""
        return f"{key}_v{CACHE_KEY_VSN}"

    @abstractmethod
    def details_url(self, ip_address: str) -> str:
        """URL of the single-lookup endpoint for `ip_address` (empty means the caller)."""

    @abstractmethod
    def format_details(self, raw: dict[str, Any]):
        """Turn a raw API response into this tier's result model."""

    @abstractmethod
    def bogon_result(self, ip_address: str):
        """Local result for a bogon address."""

    async def get_request_details(self, ip_address: str = "") -> Any:
        """Raw API data for one address, served from the cache when possible.

        Raises:
            RequestQuotaExceededError: If the API quota is used up.
            APIError: If the API answers with an error status.
            TransportError: If the request failed at the network level.
        """
        raw, _cached = await self._lookup_raw(ip_address)
        return raw

    async def _lookup_raw(self, ip_address: str) -> tuple[Any, bool]:
        key = self.cache_key(ip_address)
        raw = self.cache.get(key, _MISSING)
        cached = raw is not _MISSING

        if cached:
            self.metrics.incr("cache_hits")
        else:
            self.metrics.incr("cache_misses")
            self.metrics.incr("requests_total")
            await self._ensure_ready()
            start_time = time.time()
            raw = await self.fetcher.get_json(self.details_url(ip_address), timeout=self.timeout)
            self.metrics.timing("fetch_ms", (time.time() - start_time) * 1000.0)
            self.cache.set(key, raw)

        # Every notation of an address shares one entry; answer in the caller's
        if ip_address and isinstance(raw, dict) and "ip" in raw:
            raw = {**raw, "ip": address_of(ip_address)}
        return raw, cached

    async def get_details(self, ip_address: str | None = None):
        """Formatted details for one address; no address means the caller's own.

        Bogon addresses are answered locally with ``bogon=True``.

        Raises:
            IPinfoError: If the remote lookup fails.
        """
        ip = str(ip_address) if ip_address else ""
        set_lookup_id(generate_lookup_id())
        start_time = time.time()

        if ip and is_bogon(ip):
            self.metrics.incr("bogon_lookups")
            log_lookup(ip, (time.time() - start_time) * 1000.0, bogon=True)
            return self.bogon_result(ip)

        await self._ensure_ready()
        raw, cached = await self._lookup_raw(ip)
        if not isinstance(raw, dict):
            msg = f"Unexpected response for {ip or 'me'}: {raw!r}"
            raise IPinfoError(msg)

        log_lookup(ip, (time.time() - start_time) * 1000.0, cached=cached)
        return self.format_details(raw)

    def get_metrics(self) -> dict:
        return self.metrics.snapshot()

    def get_status(self) -> dict:
        """Readiness, cache occupancy and fetcher state."""
        status = {
            "status": "ready" if self.is_ready() else "not_ready",
            "service": self.service_name,
            "fetcher": repr(self.fetcher),
        }
        if isinstance(self.cache, DefaultCache):
            status["cache"] = {
                "size": self.cache.size(),
                "maxsize": self.cache.maxsize,
                "ttl": self.cache.ttl,
            }
        return status


class IPinfo(BaseIPinfoClient):
    """Client for the standard API, with batch and map support."""

    service_name = "ipinfo"

    def __init__(self, access_token: str | None = None, *, api_url: str | None = None, **kwargs):
        super().__init__(access_token, **kwargs)
        self.api_url = (api_url or settings.api_url).rstrip("/")
        self.dispatcher = BatchDispatcher(
            fetcher=self.fetcher,
            cache=self.cache,
            batch_url=f"{self.api_url}/batch",
            cache_key=self.cache_key,
            max_size=settings.batch_max_size,
            metrics=self.metrics,
        )

    def details_url(self, ip_address: str) -> str:
        return f"{self.api_url}/{ip_address}" if ip_address else self.api_url

    def format_details(self, raw: dict[str, Any]) -> Details:
        return self.formatter.format_details(raw)

    def bogon_result(self, ip_address: str) -> Details:
        return Details.from_raw(bogon_details(ip_address))

    async def get_batch_details(
        self,
        keys: list[str],
        chunk_size: int = 0,
        timeout: float | None = None,
        filter: bool = False,
    ) -> dict[str, Any]:
        """Raw data for many keys at once.

        Args:
            keys: Addresses, ``address/field`` forms (e.g. ``8.8.8.8/hostname``)
                or ASN identifiers (e.g. ``AS123``).
            chunk_size: Keys per remote call; 0 or invalid means the maximum.
            timeout: Seconds allowed for each remote call; defaults to the
                IPINFO_BATCH_TIMEOUT_SECONDS setting.
            filter: Ask the API to drop unresolvable keys.

        Returns:
            Mapping from each resolvable key to its raw value. Keys whose
            chunk failed are absent; no error is raised for them.
        """
        await self._ensure_ready()
        return await self.dispatcher.dispatch(
            [str(k) for k in keys],
            chunk_size=chunk_size,
            timeout=timeout if timeout is not None else settings.batch_timeout_seconds,
            filter=filter,
        )

    async def get_map_url(self, ips: list[str]) -> str:
        """URL of a map showing the given addresses.

        Raises:
            IPinfoError: If the map could not be created.
        """
        await self._ensure_ready()
        self.metrics.incr("requests_total")
        response = await self.fetcher.post_json(
            f"{self.api_url}/tools/map",
            [str(ip).strip() for ip in ips],
            params={"cli": 1},
            timeout=self.timeout,
        )
        if not isinstance(response, dict) or "reportUrl" not in response:
            msg = "Map response did not contain a report URL"
            raise IPinfoError(msg)
        return response["reportUrl"]


class IPinfoLite(BaseIPinfoClient):
    """Client for the Lite API."""

    service_name = "ipinfo-lite"

    def __init__(self, access_token: str | None = None, *, api_url: str | None = None, **kwargs):
        super().__init__(access_token, **kwargs)
        self.api_url = (api_url or settings.api_lite_url).rstrip("/")

    def details_url(self, ip_address: str) -> str:
        return f"{self.api_url}/{ip_address or 'me'}"

    def format_details(self, raw: dict[str, Any]) -> DetailsLite:
        return self.formatter.format_lite(raw)

    def bogon_result(self, ip_address: str) -> DetailsLite:
        return DetailsLite.from_raw(bogon_details(ip_address))


class IPinfoCore(BaseIPinfoClient):
    """Client for the Core API."""

    service_name = "ipinfo-core"

    def __init__(self, access_token: str | None = None, *, api_url: str | None = None, **kwargs):
        super().__init__(access_token, **kwargs)
        self.api_url = (api_url or settings.api_core_url).rstrip("/")

    def details_url(self, ip_address: str) -> str:
        return f"{self.api_url}/{ip_address or 'me'}"

    def format_details(self, raw: dict[str, Any]) -> DetailsCore:
        return self.formatter.format_core(raw)

    def bogon_result(self, ip_address: str) -> DetailsCore:
        return DetailsCore.from_raw(bogon_details(ip_address))


class IPinfoPlus(IPinfoCore):
    """Client for the Plus API; same endpoint as Core, richer payload."""

    service_name = "ipinfo-plus"

    def format_details(self, raw: dict[str, Any]) -> DetailsPlus:
        return self.formatter.format_plus(raw)

    def bogon_result(self, ip_address: str) -> DetailsPlus:
        return DetailsPlus.from_raw(bogon_details(ip_address))
