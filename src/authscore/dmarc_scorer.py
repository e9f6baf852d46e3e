"""DMARC scoring: six weighted items, max 40."""

from typing import Optional

from .models import DmarcRecord, ScoreItem, ScoringResult
from .scoring import finalize

POLICY_POINTS = {"reject": 10, "quarantine": 8, "none": 3}
POLICY_RANK = {"none": 0, "quarantine": 1, "reject": 2}
ALIGNMENT_MODES = {"r", "s"}
ENFORCED_POLICIES = {"reject", "quarantine"}

PRESENT, POLICY, SUBDOMAINS, ALIGNMENT, REPORTING, PERCENTAGE = range(6)

# (name, description, max_score), in scoring order
ITEM_SPECS = (
    ("DMARC Record Present", "DMARC TXT record found at _dmarc.<domain>. Missing it is a major gap.", 10),
    ("DMARC Policy Enforcement", "Strictness of the p= policy: reject 10, quarantine 8, none 3.", 10),
    ("DMARC Coverage for Subdomains", "sp= is absent or not weaker than p=.", 5),
    ("DMARC Alignment Mode", "aspf/adkim are relaxed (default) or strict.", 5),
    ("DMARC Reporting (RUA)", "Aggregate reporting address (rua) is specified to receive feedback.", 5),
    ("DMARC Policy Percentage", "Enforced policies apply to 100% of mail (pct).", 5),
)


def _item(index: int, score: int, passed: bool, details: str) -> ScoreItem:
    name, description, max_score = ITEM_SPECS[index]
    return ScoreItem(
        name=name,
        description=description,
        score=score,
        max_score=max_score,
        passed=passed,
        details=details,
    )


class DmarcScorer:
    def score(self, record: Optional[DmarcRecord]) -> ScoringResult:
        if record is None:
            # Every item is still emitted so the maximum stays 40.
            return finalize([_item(i, 0, False, "No DMARC record found") for i in range(len(ITEM_SPECS))])

        tags = record.tags
        items = [
            _item(PRESENT, 10, True, "DMARC record found"),
            self._policy(tags.policy),
            self._subdomain(tags.policy, tags.subdomain_policy),
            self._alignment(tags.alignment_spf or "r", tags.alignment_dkim or "r"),
            self._reporting(tags.report_emails or []),
            self._percentage(tags.policy, tags.percentage, tags.percentage_raw),
        ]
        return finalize(items)

    def _policy(self, policy: str) -> ScoreItem:
        score = POLICY_POINTS.get(policy, 0)
        if policy == "reject":
            details = "Policy is 'reject' (full enforcement)"
        elif policy == "quarantine":
            details = "Policy is 'quarantine' (partial enforcement)"
        elif policy == "none":
            details = "Policy is 'none' (monitor only, no protection)"
        else:
            details = f"Policy is '{policy}' (invalid)"
        return _item(POLICY, score, score > 0, details)

    def _subdomain(self, policy: str, subdomain_policy: Optional[str]) -> ScoreItem:
        if not subdomain_policy:
            score, details = 5, "No subdomain policy set, subdomains inherit p="
        elif (
            subdomain_policy in POLICY_RANK
            and policy in POLICY_RANK
            and POLICY_RANK[subdomain_policy] >= POLICY_RANK[policy]
        ):
            score, details = 5, f"sp={subdomain_policy} (not weaker than p)"
        else:
            score, details = 0, f"sp={subdomain_policy} (weaker than p or not comparable)"
        return _item(SUBDOMAINS, score, score == 5, details)

    def _alignment(self, aspf: str, adkim: str) -> ScoreItem:
        passed = aspf in ALIGNMENT_MODES and adkim in ALIGNMENT_MODES
        details = f"aspf={aspf}, adkim={adkim}" + ("" if passed else " (misconfigured)")
        return _item(ALIGNMENT, 5 if passed else 0, passed, details)

    def _reporting(self, report_emails: list) -> ScoreItem:
        passed = len(report_emails) > 0
        details = "rua=" + ", ".join(report_emails) if passed else "No rua specified"
        return _item(REPORTING, 5 if passed else 0, passed, details)

    def _percentage(self, policy: str, pct: Optional[int], raw: Optional[str]) -> ScoreItem:
        if policy in ENFORCED_POLICIES:
            if pct is None and raw is not None:
                score, details = 0, f"pct={raw} (invalid)"
            elif pct is None or pct == 100:
                score, details = 5, f"pct={100 if pct is None else pct}"
            elif pct >= 50:
                score, details = 2, f"pct={pct}"
            else:
                score, details = 0, f"pct={pct}"
        else:
            score = 2
            details = f"Policy is '{policy}' (pct not applicable)"
        return _item(PERCENTAGE, score, score == 5, details)
