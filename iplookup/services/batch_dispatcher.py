"""Concurrent batch lookups with cache deduplication."""

import asyncio
import time
from typing import Any

from iplookup.services.fetchers.base import BaseFetcher
from iplookup.utils.cache import BaseCache
from iplookup.utils.logging import generate_lookup_id, get_logger, log_chunk_error, set_lookup_id
from iplookup.utils.metrics import LookupMetrics

# Constants
BATCH_MAX_SIZE = 1000
BATCH_TIMEOUT = 5.0

logger = get_logger(__name__)

_MISSING = object()


def clamp_chunk_size(chunk_size: int | None, max_size: int = BATCH_MAX_SIZE) -> int:
    """Clamp a requested chunk size into ``(0, max_size]``.

    Zero, negative or missing sizes fall back to `max_size`.
    """
    if not chunk_size or chunk_size <= 0:
        return max_size
    return min(chunk_size, max_size)


def split_chunks(keys: list[str], chunk_size: int) -> list[list[str]]:
    """Split `keys` into contiguous chunks of at most `chunk_size`."""
    return [keys[i : i + chunk_size] for i in range(0, len(keys), chunk_size)]


class BatchDispatcher:
    """Serve a batch of lookup keys from the cache and the `/batch` endpoint.

    Every uncached chunk costs exactly one remote call. Chunks run
    concurrently and fail independently: a chunk that errors or exceeds the
    timeout contributes nothing, its siblings are unaffected.
    """

    def __init__(
        self,
        fetcher: BaseFetcher,
        cache: BaseCache,
        batch_url: str,
        cache_key=None,
        max_size: int = BATCH_MAX_SIZE,
        metrics: LookupMetrics | None = None,
    ):
        """Initialize the dispatcher.

        Args:
            fetcher: Fetcher used for the remote batch calls.
            cache: Cache shared with the single-lookup path.
            batch_url: URL of the batch endpoint.
            cache_key: Maps a raw key to its cache key (identity by default).
            max_size: Largest number of keys sent in one remote call.
            metrics: Counters to update, if any.
        """
        self.fetcher = fetcher
        self.cache = cache
        self.batch_url = batch_url
        self.cache_key = cache_key or (lambda key: key)
        self.max_size = max_size
        self.metrics = metrics or LookupMetrics()

    async def dispatch(
        self,
        keys: list[str],
        chunk_size: int = 0,
        timeout: float = BATCH_TIMEOUT,
        filter: bool = False,
    ) -> dict[str, Any]:
        """Resolve `keys`, returning a mapping from each resolvable key to its raw value.

        Args:
            keys: Addresses, ``address/field`` forms or ASN identifiers.
            chunk_size: Keys per remote call; invalid values mean the maximum.
            timeout: Seconds allowed for each chunk call.
            filter: Passed through to the API as ``filter=1``.

        Returns:
            Unordered mapping; keys that failed to resolve are absent.
        """
        set_lookup_id(generate_lookup_id("batch"))
        result: dict[str, Any] = {}
        misses: list[str] = []

        for key in keys:
            value = self.cache.get(self.cache_key(key), _MISSING)
            if value is _MISSING:
                misses.append(key)
            else:
                result[key] = value

        self.metrics.incr("cache_hits", len(result))
        self.metrics.incr("cache_misses", len(misses))

        if not misses:
            logger.debug(f"Batch of {len(keys)} keys served entirely from cache")
            return result

        chunks = split_chunks(misses, clamp_chunk_size(chunk_size, self.max_size))
        logger.info(f"Batch: {len(result)} cached, {len(misses)} to fetch in {len(chunks)} chunk(s)")

        start_time = time.time()
        outcomes = await asyncio.gather(
            *(self._fetch_chunk(chunk, timeout, filter) for chunk in chunks),
            return_exceptions=True,
        )
        self.metrics.timing("batch_fetch_ms", (time.time() - start_time) * 1000.0)

        fetched: dict[str, Any] = {}
        for index, (chunk, outcome) in enumerate(zip(chunks, outcomes, strict=True)):
            if isinstance(outcome, BaseException):
                self.metrics.incr("chunk_failures")
                log_chunk_error(index, len(chunk), repr(outcome))
                continue
            if not isinstance(outcome, dict):
                self.metrics.incr("chunk_failures")
                log_chunk_error(index, len(chunk), f"unexpected response type {type(outcome).__name__}")
                continue
            fetched.update(outcome)

        for key in misses:
            if key in fetched:
                self.cache.set(self.cache_key(key), fetched[key])
                result[key] = fetched[key]

        return result

    async def _fetch_chunk(self, chunk: list[str], timeout: float, filter: bool) -> Any:
        self.metrics.incr("requests_total")
        params = {"filter": 1} if filter else None
        return await asyncio.wait_for(
            self.fetcher.post_json(self.batch_url, chunk, params=params, timeout=timeout),
            timeout=timeout,
        )
