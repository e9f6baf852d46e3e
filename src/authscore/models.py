"""Shared data contracts between all authscore modules. Zero logic here."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ── Enums ──────────────────────────────────────────────────────────────────────

class DnsStatus(Enum):
    NOERROR = "NOERROR"
    NXDOMAIN = "NXDOMAIN"
    SERVFAIL = "SERVFAIL"
    TIMEOUT = "TIMEOUT"
    ERROR = "ERROR"


class SpfRecordKind(Enum):
    INITIAL = "initial"
    INCLUDE = "include"
    REDIRECT = "redirect"


class IssueSeverity(Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


# ── DNS Layer ──────────────────────────────────────────────────────────────────

@dataclass
class TxtLookupResult:
    name: str
    status: DnsStatus = DnsStatus.NOERROR
    records: list = field(default_factory=list)  # list[str], chunks already joined
    endpoint: str = ""
    response_time_ms: float = 0.0
    cache_hit: bool = False
    ttl: int = 0


@dataclass
class RegistrationResult:
    domain: str
    is_registered: bool
    status: DnsStatus
    query_time_ms: float = 0.0


# ── SPF Layer ──────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class SpfRecordOccurrence:
    domain: str
    raw_record: str
    kind: SpfRecordKind


@dataclass
class SyntaxCheckResult:
    is_valid: bool
    errors: list = field(default_factory=list)  # list[str]


@dataclass
class RecordError:
    occurrence: SpfRecordOccurrence
    message: str


@dataclass
class SpfCheck:
    is_valid: bool
    message: Optional[str] = None


@dataclass
class SpfErrorCheck:
    is_valid: bool
    errors: list = field(default_factory=list)  # list[RecordError]


@dataclass
class SpfQualifierCheck:
    qualifier: Optional[str]
    message: Optional[str] = None


@dataclass
class SpfValidationReport:
    has_spf_record: SpfCheck
    syntax_validation: SpfErrorCheck
    one_initial_spf_record: SpfCheck
    max_ten_spf_records: SpfCheck
    deprecated_mechanisms: SpfErrorCheck
    unsafe_all_mechanism: SpfErrorCheck
    first_all_qualifier: SpfQualifierCheck


# ── Scoring ────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ScoreItem:
    name: str
    description: str
    score: int
    max_score: int
    passed: bool
    details: str = ""

    def __post_init__(self):
        if not 0 <= self.score <= self.max_score:
            raise ValueError(f"{self.name}: score {self.score} outside [0, {self.max_score}]")


@dataclass
class ScoringResult:
    total_score: int
    max_possible_score: int
    percentage: int
    score_items: list = field(default_factory=list)  # list[ScoreItem]
    grade: Optional[str] = None


# ── Validation issues (DKIM / DMARC) ───────────────────────────────────────────

@dataclass
class ValidationIssue:
    code: str
    message: str
    severity: IssueSeverity


# ── DKIM Layer ─────────────────────────────────────────────────────────────────

@dataclass
class DkimTags:
    version: str = ""
    algorithm: str = ""
    key_type: str = ""
    public_key: str = ""
    service_type: Optional[str] = None
    flags: Optional[list] = None  # list[str]
    notes: Optional[str] = None


@dataclass
class DkimRecord:
    domain: str
    selector: str
    raw_record: str
    tags: DkimTags
    retrieved_at: datetime = field(default_factory=_utcnow)


@dataclass
class DkimRecordSet:
    domain: str
    records: list = field(default_factory=list)  # list[DkimRecord]
    retrieved_at: datetime = field(default_factory=_utcnow)

    @property
    def selectors(self) -> list:
        return [r.selector for r in self.records]


@dataclass
class SelectorCacheEntry:
    selectors: list  # list[str]
    expires_at: float


@dataclass
class DkimSelectorValidation:
    selector: str
    is_valid: bool
    checks: dict  # check name -> bool
    issues: list = field(default_factory=list)  # list[ValidationIssue]


@dataclass
class DkimValidationResult:
    domain: str
    is_valid: bool
    records: list = field(default_factory=list)        # list[DkimSelectorValidation]
    domain_issues: list = field(default_factory=list)  # list[ValidationIssue]


@dataclass
class DkimKeyLength:
    selector: str
    bits: Optional[int]


# ── DMARC Layer ────────────────────────────────────────────────────────────────

@dataclass
class DmarcTags:
    version: str = ""
    policy: str = "none"
    subdomain_policy: Optional[str] = None
    percentage: Optional[int] = None
    percentage_raw: Optional[str] = None   # pct= as published, set even when it does not parse
    report_format: Optional[list] = None    # list[str]
    report_interval: Optional[int] = None
    report_emails: Optional[list] = None    # list[str]
    forensic_emails: Optional[list] = None  # list[str]
    failure_options: Optional[list] = None  # list[str]
    alignment_spf: Optional[str] = None
    alignment_dkim: Optional[str] = None


@dataclass
class DmarcRecord:
    domain: str
    raw_record: str
    tags: DmarcTags
    retrieved_at: datetime = field(default_factory=_utcnow)


@dataclass
class DmarcValidationResult:
    domain: str
    is_valid: bool
    record: Optional[DmarcRecord]
    checks: dict  # check name -> bool
    issues: list = field(default_factory=list)  # list[ValidationIssue]


# ── Top-Level Result ───────────────────────────────────────────────────────────

@dataclass
class SpfAudit:
    domain: str
    records: list  # list[SpfRecordOccurrence]
    validation: SpfValidationReport
    score: ScoringResult


@dataclass
class DkimAudit:
    domain: str
    record_set: DkimRecordSet
    validation: DkimValidationResult
    score: ScoringResult


@dataclass
class DmarcAudit:
    domain: str
    record: Optional[DmarcRecord]
    validation: DmarcValidationResult
    score: ScoringResult


@dataclass
class DomainScoreReport:
    domain: str
    spf: SpfAudit
    dkim: DkimAudit
    dmarc: DmarcAudit
    total_score: int
    max_possible_score: int
    percentage: int
    analyzed_at: datetime = field(default_factory=_utcnow)
