"""Unit tests for DKIM selector discovery and the selector cache."""

from authscore.dkim_discovery import SelectorCache, SelectorDiscovery
from authscore.exceptions import DnsQueryError, DnsTimeoutError

from .helpers import dkim_txt, mock_fetcher, nxdomain

DOMAIN = "example.com"
SELECTORS = ["google", "selector1", "selector2", "k1", "default"]


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


def name(selector):
    return f"{selector}._domainkey.{DOMAIN}"


def discovery(mapping, selectors=SELECTORS, cache=None):
    fetcher = mock_fetcher(mapping)
    return fetcher, SelectorDiscovery(fetcher, selectors, cache=cache or SelectorCache(), max_workers=4)


class TestDiscover:
    def test_returns_selectors_with_records(self):
        _, d = discovery({name("google"): [dkim_txt()], name("k1"): [dkim_txt()]})
        assert d.discover(DOMAIN) == ["google", "k1"]

    def test_preserves_candidate_order(self):
        _, d = discovery({name("default"): [dkim_txt()], name("google"): [dkim_txt()]})
        assert d.discover(DOMAIN) == ["google", "default"]

    def test_none_found(self):
        _, d = discovery({})
        assert d.discover(DOMAIN) == []

    def test_nxdomain_is_absent(self):
        _, d = discovery({name("google"): nxdomain(name("google"))})
        assert d.discover(DOMAIN) == []

    def test_queries_every_candidate(self):
        fetcher, d = discovery({})
        d.discover(DOMAIN)
        queried = sorted(c.args[0] for c in fetcher.query_txt.call_args_list)
        assert queried == sorted(name(s) for s in SELECTORS)

    def test_failing_lookup_does_not_abort_others(self):
        _, d = discovery({
            name("google"): DnsTimeoutError("slow"),
            name("selector1"): DnsQueryError("SERVFAIL"),
            name("selector2"): [dkim_txt()],
        })
        assert d.discover(DOMAIN) == ["selector2"]

    def test_duplicate_candidates_queried_once(self):
        fetcher, d = discovery({name("google"): [dkim_txt()]}, selectors=["google", "google"])
        assert d.discover(DOMAIN) == ["google"]
        assert fetcher.query_txt.call_count == 1

    def test_empty_candidate_list(self):
        fetcher, d = discovery({}, selectors=[])
        assert d.discover(DOMAIN) == []
        fetcher.query_txt.assert_not_called()


class TestDiscoveryCache:
    def test_cache_hit_skips_lookups(self):
        fetcher, d = discovery({name("google"): [dkim_txt()]})
        d.discover(DOMAIN)
        calls = fetcher.query_txt.call_count
        assert d.discover(DOMAIN) == ["google"]
        assert fetcher.query_txt.call_count == calls

    def test_empty_result_is_cached(self):
        fetcher, d = discovery({})
        d.discover(DOMAIN)
        d.discover(DOMAIN)
        assert fetcher.query_txt.call_count == len(SELECTORS)

    def test_expired_entry_queried_again(self):
        clock = FakeClock()
        fetcher, d = discovery({name("google"): [dkim_txt()]}, cache=SelectorCache(ttl=300, clock=clock))
        d.discover(DOMAIN)
        clock.now += 301
        d.discover(DOMAIN)
        assert fetcher.query_txt.call_count == 2 * len(SELECTORS)

    def test_cache_scoped_per_domain(self):
        fetcher, d = discovery({name("google"): [dkim_txt()]})
        d.discover(DOMAIN)
        assert d.discover("other.org") == []


class TestSelectorCache:
    def test_get_missing(self):
        assert SelectorCache().get(DOMAIN) is None

    def test_put_then_get(self):
        cache = SelectorCache()
        cache.put(DOMAIN, ["google"])
        assert cache.get(DOMAIN) == ["google"]

    def test_domain_key_case_insensitive(self):
        cache = SelectorCache()
        cache.put("Example.COM", ["google"])
        assert cache.get(DOMAIN) == ["google"]

    def test_expiry(self):
        clock = FakeClock()
        cache = SelectorCache(ttl=10, clock=clock)
        cache.put(DOMAIN, ["google"])
        clock.now += 9
        assert cache.get(DOMAIN) == ["google"]
        clock.now += 1
        assert cache.get(DOMAIN) is None

    def test_returned_list_is_a_copy(self):
        cache = SelectorCache()
        cache.put(DOMAIN, ["google"])
        cache.get(DOMAIN).append("mutated")
        assert cache.get(DOMAIN) == ["google"]

    def test_invalidate_and_clear(self):
        cache = SelectorCache()
        cache.put(DOMAIN, ["a"])
        cache.put("other.org", ["b"])
        cache.invalidate(DOMAIN)
        assert cache.get(DOMAIN) is None
        cache.clear()
        assert cache.get("other.org") is None
