"""Top-level orchestrator: runs the SPF, DKIM and DMARC pipelines and combines their scores."""

import logging
from typing import Optional

from .config import AppConfig
from .dkim_discovery import SelectorCache, SelectorDiscovery
from .dkim_scorer import DkimScorer
from .dkim_service import DkimService
from .dmarc_analyzer import DmarcAnalyzer
from .dmarc_scorer import DmarcScorer
from .models import DkimAudit, DmarcAudit, DomainScoreReport, SpfAudit
from .scoring import percentage
from .spf_resolver import SpfResolver
from .spf_scorer import SpfScorer
from .spf_validator import SpfRuleValidator

logger = logging.getLogger(__name__)


class EmailAuthAuditor:
    def __init__(self, fetcher, config: Optional[AppConfig] = None, selector_cache: Optional[SelectorCache] = None):
        config = config or AppConfig()
        self._fetcher = fetcher

        self._spf_resolver = SpfResolver(fetcher, max_depth=config.spf.max_depth)
        self._spf_validator = SpfRuleValidator(max_lookups=config.spf.max_lookups)
        self._spf_scorer = SpfScorer()

        cache = selector_cache if selector_cache is not None else SelectorCache(ttl=config.dkim.selector_cache_ttl)
        self._discovery = SelectorDiscovery(
            fetcher,
            config.dkim.selectors,
            cache=cache,
            max_workers=config.dkim.max_workers,
        )
        self._dkim_service = DkimService(fetcher, self._discovery, max_workers=config.dkim.max_workers)
        self._dkim_scorer = DkimScorer()

        self._dmarc_analyzer = DmarcAnalyzer(fetcher)
        self._dmarc_scorer = DmarcScorer()

    @property
    def dkim_service(self) -> DkimService:
        return self._dkim_service

    @property
    def dkim_scorer(self) -> DkimScorer:
        return self._dkim_scorer

    def audit(self, domain: str) -> DomainScoreReport:
        """
        Full pipeline for one domain.

        SPF and DMARC transport failures propagate; DKIM lookup failures count as absent selectors.
        """
        logger.info("Auditing email authentication for %s", domain)
        spf = self.audit_spf(domain)
        dkim = self.audit_dkim(domain)
        dmarc = self.audit_dmarc(domain)

        total = spf.score.total_score + dkim.score.total_score + dmarc.score.total_score
        maximum = (
            spf.score.max_possible_score
            + dkim.score.max_possible_score
            + dmarc.score.max_possible_score
        )
        report = DomainScoreReport(
            domain=domain,
            spf=spf,
            dkim=dkim,
            dmarc=dmarc,
            total_score=total,
            max_possible_score=maximum,
            percentage=percentage(total, maximum),
        )
        logger.info("Audit for %s complete: %d/%d (%d%%)", domain, total, maximum, report.percentage)
        return report

    def audit_spf(self, domain: str) -> SpfAudit:
        records = self._spf_resolver.resolve(domain)
        validation = self._spf_validator.validate(records)
        return SpfAudit(
            domain=domain,
            records=records,
            validation=validation,
            score=self._spf_scorer.score(validation),
        )

    def audit_dkim(self, domain: str) -> DkimAudit:
        record_set = self._dkim_service.get_records(domain)
        return DkimAudit(
            domain=domain,
            record_set=record_set,
            validation=self._dkim_service.validate(record_set),
            score=self._dkim_scorer.score(record_set),
        )

    def audit_dmarc(self, domain: str) -> DmarcAudit:
        record = self._dmarc_analyzer.get_record(domain)
        return DmarcAudit(
            domain=domain,
            record=record,
            validation=self._dmarc_analyzer.validate(domain, record),
            score=self._dmarc_scorer.score(record),
        )
