"""DNS-over-HTTPS query engine: endpoint rotation with retries, in-memory TTL cache."""

import logging
import random
import threading
import time
from typing import Callable, Optional

import dns.exception
import dns.message
import dns.query
import dns.rcode
import dns.rdatatype
import httpx

from .config import AppConfig, DEFAULT_DOH_URLS
from .exceptions import (
    DnsAllEndpointsExhaustedError,
    DnsError,
    DnsQueryError,
    DnsTimeoutError,
)
from .models import DnsStatus, RegistrationResult, TxtLookupResult

logger = logging.getLogger(__name__)


# ── Response Cache ─────────────────────────────────────────────────────────────

class DohCache:
    """In-memory cache with TTL enforcement. Thread-safe."""

    MAX_ENTRIES = 10_000
    MAX_TTL = 86_400

    def __init__(self, min_ttl: int = 300, clock: Callable[[], float] = time.monotonic):
        self._min_ttl = min_ttl
        self._clock = clock
        self._store: dict[str, tuple[TxtLookupResult, float]] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _make_key(name: str, record_type: str) -> str:
        return f"{record_type.upper()}:{name.lower().rstrip('.')}"

    def get(self, name: str, record_type: str) -> Optional[TxtLookupResult]:
        key = self._make_key(name, record_type)
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return None
            result, expires_at = entry
            if self._clock() >= expires_at:
                del self._store[key]
                return None
        return TxtLookupResult(
            name=result.name,
            status=result.status,
            records=list(result.records),
            endpoint=result.endpoint,
            response_time_ms=0.0,
            cache_hit=True,
            ttl=result.ttl,
        )

    def put(self, name: str, record_type: str, result: TxtLookupResult) -> None:
        key = self._make_key(name, record_type)
        ttl = max(self._min_ttl, min(self.MAX_TTL, result.ttl))
        with self._lock:
            if len(self._store) >= self.MAX_ENTRIES:
                self._evict_expired()
            if key not in self._store and len(self._store) >= self.MAX_ENTRIES:
                del self._store[next(iter(self._store))]
            self._store[key] = (result, self._clock() + ttl)

    def flush(self) -> None:
        with self._lock:
            self._store.clear()

    def _evict_expired(self) -> None:
        now = self._clock()
        for k in [k for k, (_, exp) in self._store.items() if now >= exp]:
            del self._store[k]


# ── DoH Client ─────────────────────────────────────────────────────────────────

TIMEOUT = 10.0
MAX_RETRIES = 3
MAX_BACKOFF = 5.0


class DohClient:
    """TXT lookup port backed by RFC 8484 DNS-over-HTTPS endpoints."""

    def __init__(
        self,
        endpoints: Optional[list] = None,
        timeout: float = TIMEOUT,
        retries: int = MAX_RETRIES,
        cache: Optional[DohCache] = None,
        sleep: Callable[[float], None] = time.sleep,
        rng: Optional[random.Random] = None,
    ):
        self._endpoints = list(endpoints or DEFAULT_DOH_URLS)
        self._timeout = timeout
        self._retries = max(1, retries)
        self._cache = cache if cache is not None else DohCache()
        self._sleep = sleep
        self._rng = rng or random.Random()

    @property
    def endpoints(self) -> list:
        return list(self._endpoints)

    def query(self, name: str, record_type: str) -> TxtLookupResult:
        """Cache first, then endpoints starting from a random one."""
        name = name.strip().rstrip(".")

        cached = self._cache.get(name, record_type)
        if cached is not None:
            logger.debug("Cache hit for %s %s", record_type, name)
            return cached

        last_error: Optional[DnsError] = None
        only_timeouts = True
        for url in self._rotation():
            for attempt in range(1, self._retries + 1):
                try:
                    logger.debug("DoH %s %s via %s (attempt %d/%d)", record_type, name, url, attempt, self._retries)
                    result = self._query_endpoint(url, name, record_type)
                except (DnsTimeoutError, DnsQueryError) as e:
                    last_error = e
                    only_timeouts = only_timeouts and isinstance(e, DnsTimeoutError)
                    logger.warning("DoH query attempt %d failed for %s: %s", attempt, name, e)
                    if attempt < self._retries:
                        self._sleep(min(2 ** (attempt - 1), MAX_BACKOFF))
                    continue
                self._cache.put(name, record_type, result)
                return result

        if only_timeouts:
            raise DnsTimeoutError(f"DNS query timed out for {record_type} {name}: {last_error}")
        raise DnsAllEndpointsExhaustedError(
            f"All DoH endpoints failed for {record_type} {name}: {last_error}"
        )

    def query_txt(self, name: str) -> TxtLookupResult:
        return self.query(name, "TXT")

    def check_registration(self, domain: str) -> RegistrationResult:
        """A domain counts as registered unless the A lookup is NXDOMAIN."""
        start = time.monotonic()
        result = self.query(domain, "A")
        elapsed = (time.monotonic() - start) * 1000
        registered = result.status != DnsStatus.NXDOMAIN
        logger.info("DNS check completed for %s: registered=%s", domain, registered)
        return RegistrationResult(
            domain=domain,
            is_registered=registered,
            status=result.status,
            query_time_ms=elapsed,
        )

    # ── Internals ──────────────────────────────────────────────────────────────

    def _rotation(self) -> list:
        start = self._rng.randrange(len(self._endpoints))
        return self._endpoints[start:] + self._endpoints[:start]

    def _query_endpoint(self, url: str, name: str, record_type: str) -> TxtLookupResult:
        rdtype = dns.rdatatype.from_text(record_type)
        request = dns.message.make_query(name, rdtype)

        start = time.monotonic()
        try:
            response = dns.query.https(request, url, timeout=self._timeout)
        except (dns.exception.Timeout, httpx.TimeoutException):
            raise DnsTimeoutError(f"Timeout querying {url} for {record_type} {name}")
        except (httpx.HTTPError, dns.exception.DNSException, ValueError, OSError) as e:
            raise DnsQueryError(f"DoH error from {url} for {record_type} {name}: {e}")
        elapsed = (time.monotonic() - start) * 1000

        rcode = response.rcode()
        if rcode == dns.rcode.NXDOMAIN:
            return TxtLookupResult(
                name=name,
                status=DnsStatus.NXDOMAIN,
                endpoint=url,
                response_time_ms=elapsed,
            )
        if rcode != dns.rcode.NOERROR:
            raise DnsQueryError(f"{dns.rcode.to_text(rcode)} from {url} for {record_type} {name}")

        records, ttl = self._parse_answer(response, rdtype)
        return TxtLookupResult(
            name=name,
            status=DnsStatus.NOERROR,
            records=records,
            endpoint=url,
            response_time_ms=elapsed,
            ttl=ttl,
        )

    @staticmethod
    def _parse_answer(response, rdtype) -> tuple:
        records = []
        ttl = 0
        for rrset in response.answer:
            # CNAME links in the chain are skipped, only the final type counts
            if rrset.rdtype != rdtype:
                continue
            ttl = rrset.ttl
            for rdata in rrset:
                if rdtype == dns.rdatatype.TXT:
                    # Concatenate multi-string TXT records per RFC 7208 §3.3
                    records.append(b"".join(rdata.strings).decode("utf-8", errors="replace"))
                else:
                    records.append(rdata.to_text())
        return records, ttl


def create_client(config: AppConfig) -> DohClient:
    """Module-level factory for CLI and API use."""
    return DohClient(
        endpoints=config.dns.doh_urls,
        timeout=config.dns.timeout,
        retries=config.dns.retries,
        cache=DohCache(min_ttl=config.dns.cache_ttl),
    )
