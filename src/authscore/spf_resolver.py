"""Recursive SPF chain resolver: walks include/redirect into a flat, ordered record list."""

import logging
import re
from typing import Optional

from .exceptions import DnsError, SpfResolutionError
from .models import DnsStatus, SpfRecordKind, SpfRecordOccurrence

logger = logging.getLogger(__name__)

SPF_PREFIX = "v=spf1"
MAX_DEPTH = 20

_INCLUDE_RE = re.compile(r"include:([\w.-]+)")
_REDIRECT_RE = re.compile(r"redirect=([\w.-]+)")


class SpfResolver:
    def __init__(self, fetcher, max_depth: int = MAX_DEPTH):
        self._fetcher = fetcher
        self._max_depth = max_depth

    def resolve(
        self,
        domain: str,
        visited: Optional[set] = None,
        kind: SpfRecordKind = SpfRecordKind.INITIAL,
    ) -> list:
        """
        Return every SPF record reachable from `domain`, root first, in textual discovery order.

        `visited` is shared by the whole call tree of one resolution: a domain already
        seen anywhere in the tree resolves to nothing. Lookup failures abort the resolution.
        """
        if visited is None:
            visited = set()
        return self._resolve(domain, visited, kind, depth=0)

    def _resolve(self, domain: str, visited: set, kind: SpfRecordKind, depth: int) -> list:
        if domain in visited:
            logger.debug("Circular SPF reference to %s, skipping", domain)
            return []
        if depth > self._max_depth:
            logger.warning("SPF chain deeper than %d levels at %s, truncating", self._max_depth, domain)
            return []
        visited.add(domain)

        logger.debug("SPF lookup for %s (%s)", domain, kind.value)
        try:
            response = self._fetcher.query_txt(domain)
        except SpfResolutionError:
            raise
        except DnsError as e:
            raise SpfResolutionError(domain, f"SPF lookup failed for {domain}: {e}") from e

        if response.status == DnsStatus.NXDOMAIN:
            return []

        occurrences = []
        for value in response.records:
            record = _strip_quotes(value)
            if not record.startswith(SPF_PREFIX):
                continue
            occurrences.append(SpfRecordOccurrence(domain=domain, raw_record=record, kind=kind))

            for included in _INCLUDE_RE.findall(record):
                logger.debug("Found include:%s in %s", included, domain)
                occurrences.extend(self._resolve(included, visited, SpfRecordKind.INCLUDE, depth + 1))

            redirect = _REDIRECT_RE.search(record)
            if redirect:
                logger.debug("Found redirect=%s in %s", redirect.group(1), domain)
                occurrences.extend(
                    self._resolve(redirect.group(1), visited, SpfRecordKind.REDIRECT, depth + 1)
                )

        return occurrences


def _strip_quotes(value: str) -> str:
    return value.strip().strip('"')
