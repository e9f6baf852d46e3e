"""DKIM selector discovery: concurrent lookups of known provider selectors, cached per domain."""

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional

from .exceptions import DnsError
from .models import DnsStatus, SelectorCacheEntry

logger = logging.getLogger(__name__)

CACHE_TTL = 300.0  # seconds


def dkim_name(selector: str, domain: str) -> str:
    return f"{selector}._domainkey.{domain}"


class SelectorCache:
    """domain -> discovered selectors, expiring after `ttl` seconds of `clock` time. Thread-safe."""

    def __init__(self, ttl: float = CACHE_TTL, clock: Callable[[], float] = time.monotonic):
        self._ttl = ttl
        self._clock = clock
        self._entries: dict[str, SelectorCacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, domain: str) -> Optional[list]:
        key = domain.lower()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() >= entry.expires_at:
                del self._entries[key]
                return None
            return list(entry.selectors)

    def put(self, domain: str, selectors: list) -> None:
        entry = SelectorCacheEntry(selectors=list(selectors), expires_at=self._clock() + self._ttl)
        with self._lock:
            self._entries[domain.lower()] = entry

    def invalidate(self, domain: str) -> None:
        with self._lock:
            self._entries.pop(domain.lower(), None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


class SelectorDiscovery:
    def __init__(
        self,
        fetcher,
        selectors: list,
        cache: Optional[SelectorCache] = None,
        max_workers: int = 16,
    ):
        self._fetcher = fetcher
        # Query each candidate once, keeping first-seen order.
        self._selectors = list(dict.fromkeys(selectors))
        self._cache = cache if cache is not None else SelectorCache()
        self._max_workers = max_workers

    @property
    def cache(self) -> SelectorCache:
        return self._cache

    def discover(self, domain: str) -> list:
        """Return the candidate selectors that publish at least one TXT record for `domain`."""
        cached = self._cache.get(domain)
        if cached is not None:
            logger.debug("Using cached selectors for %s: %s", domain, cached)
            return cached

        if not self._selectors:
            found = []
        else:
            workers = min(self._max_workers, len(self._selectors))
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="dkim-lookup") as pool:
                present = list(pool.map(lambda s: self._lookup(s, domain), self._selectors))
            found = [s for s, hit in zip(self._selectors, present) if hit]

        self._cache.put(domain, found)
        logger.debug("Discovered %d selectors for %s: %s", len(found), domain, found)
        return found

    def _lookup(self, selector: str, domain: str) -> bool:
        name = dkim_name(selector, domain)
        try:
            response = self._fetcher.query_txt(name)
        except DnsError as e:
            logger.warning("Error probing DKIM selector %s: %s", name, e)
            return False
        return response.status != DnsStatus.NXDOMAIN and len(response.records) > 0
