"""DKIM scoring: implementation, key strength, selector count and test mode (max 20)."""

from typing import Callable, Optional

from .dkim_key import key_bits
from .models import DkimKeyLength, DkimRecordSet, DkimTags, ScoreItem, ScoringResult
from .scoring import finalize

STRONG_KEY_BITS = 2048
MIN_KEY_BITS = 1024


class DkimScorer:
    def __init__(self, key_analyzer: Callable[[DkimTags, str], Optional[int]] = key_bits):
        self._key_analyzer = key_analyzer

    def score(self, record_set: DkimRecordSet) -> ScoringResult:
        items = [
            self._implemented(record_set),
            self._key_length(record_set),
            self._multiple_selectors(record_set),
            self._no_test_mode(record_set),
        ]
        return finalize(items)

    def key_lengths(self, record_set: DkimRecordSet) -> list:
        return [
            DkimKeyLength(selector=r.selector, bits=self._key_analyzer(r.tags, r.selector))
            for r in record_set.records
        ]

    def _implemented(self, record_set: DkimRecordSet) -> ScoreItem:
        passed = len(record_set.records) > 0
        return ScoreItem(
            name="DKIM Implemented",
            description="At least one DKIM selector publishes a key record.",
            score=10 if passed else 0,
            max_score=10,
            passed=passed,
            details=f"{len(record_set.records)} DKIM record(s) found" if passed else "No DKIM records found",
        )

    def _key_length(self, record_set: DkimRecordSet) -> ScoreItem:
        lengths = self.key_lengths(record_set)
        known = [k.bits for k in lengths if k.bits is not None]

        if not known:
            score = 0
        elif any(b < MIN_KEY_BITS for b in known):
            score = 0
        elif max(known) >= STRONG_KEY_BITS:
            score = 5
        else:
            score = 3

        if lengths:
            details = ", ".join(
                f"{k.selector}: {k.bits} bits" if k.bits is not None else f"{k.selector}: unknown"
                for k in lengths
            )
        else:
            details = "No keys to analyze"

        return ScoreItem(
            name="DKIM Key Length",
            description="RSA keys of 2048 bits or more earn full credit; 1024 bits partial; anything weaker none.",
            score=score,
            max_score=5,
            passed=score == 5,
            details=details,
        )

    def _multiple_selectors(self, record_set: DkimRecordSet) -> ScoreItem:
        count = len(set(record_set.selectors))
        passed = count >= 2
        return ScoreItem(
            name="DKIM Multiple Selectors",
            description="Two or more selectors allow key rotation without downtime.",
            score=3 if passed else 0,
            max_score=3,
            passed=passed,
            details=f"{count} selector(s) found",
        )

    def _no_test_mode(self, record_set: DkimRecordSet) -> ScoreItem:
        testing = [r.selector for r in record_set.records if "y" in (r.tags.flags or [])]
        passed = not testing
        return ScoreItem(
            name="No DKIM Test Mode",
            description="No selector is flagged t=y (testing), which tells receivers to ignore failures.",
            score=2 if passed else 0,
            max_score=2,
            passed=passed,
            details="No selectors in test mode" if passed else "Test mode enabled on: " + ", ".join(testing),
        )
