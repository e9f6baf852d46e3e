"""Runtime configuration. Read once from the environment (and a local .env file)."""

import logging
import os
from dataclasses import dataclass, field
from typing import Mapping, Optional
from urllib.parse import urlparse

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_DOH_URLS = [
    "https://dns.google/dns-query",
    "https://cloudflare-dns.com/dns-query",
    "https://unfiltered.adguard-dns.com/dns-query",
]

# Provider selectors queried during DKIM discovery. Order is the order results are reported in.
DEFAULT_DKIM_SELECTORS = [
    # Microsoft 365
    "selector1", "selector2",
    # Google Workspace
    "google",
    # Generic
    "default", "dkim", "mail",
    # Mailchimp / Mandrill
    "k1", "k2", "k3", "k4", "k5", "k6", "k7", "k8",
    # Everlytic, Global Micro, ProtonMail
    "everlytickey1", "everlytickey2", "eversrv", "mxvault", "pm",
    "s1", "s2", "smtp",
    # Amazon SES
    "amazonses",
    # SendGrid
    "smtpapi", "s1024",
    # Zoho
    "zoho", "zohomail",
    # Other ESPs
    "mailjet", "postmark", "sendinblue", "qualtrics", "mandrill",
    "mailchimp", "mailgun", "sparkpost", "sendgrid",
    # Zendesk
    "zendesk", "zendesk1", "zendesk2",
    # Rotation schemes
    "current", "previous", "rotate",
]

LOG_LEVELS = ("debug", "info", "warning", "error")


@dataclass
class DnsSettings:
    doh_urls: list = field(default_factory=lambda: list(DEFAULT_DOH_URLS))
    timeout: float = 10.0       # seconds, per attempt
    retries: int = 3
    cache_ttl: int = 300        # seconds, floor for cached answers


@dataclass
class SpfSettings:
    max_lookups: int = 10
    max_depth: int = 20


@dataclass
class DkimSettings:
    selectors: list = field(default_factory=lambda: list(DEFAULT_DKIM_SELECTORS))
    selector_cache_ttl: float = 300.0  # seconds
    max_workers: int = 16


@dataclass
class ServerSettings:
    host: str = "0.0.0.0"
    port: int = 8787
    cors_enabled: bool = True
    cors_origins: list = field(default_factory=lambda: ["*"])


@dataclass
class AppConfig:
    dns: DnsSettings = field(default_factory=DnsSettings)
    spf: SpfSettings = field(default_factory=SpfSettings)
    dkim: DkimSettings = field(default_factory=DkimSettings)
    server: ServerSettings = field(default_factory=ServerSettings)
    log_level: str = "info"


def load_config(env: Optional[Mapping[str, str]] = None) -> AppConfig:
    """Build an AppConfig from `env` (defaults to os.environ after loading .env)."""
    if env is None:
        load_dotenv()
        env = os.environ

    dns = DnsSettings(
        doh_urls=_doh_urls(env),
        timeout=_int(env, "DNS_TIMEOUT", 10_000) / 1000,
        retries=max(1, _int(env, "DNS_RETRIES", 3)),
        cache_ttl=_int(env, "DNS_CACHE_TTL", 300),
    )
    spf = SpfSettings(
        max_lookups=_int(env, "SPF_MAX_LOOKUPS", 10),
        max_depth=_int(env, "SPF_MAX_DEPTH", 20),
    )
    dkim = DkimSettings(
        selectors=_csv(env.get("DKIM_SELECTORS")) or list(DEFAULT_DKIM_SELECTORS),
        selector_cache_ttl=_int(env, "DKIM_SELECTOR_CACHE_TTL", 300_000) / 1000,
        max_workers=max(1, _int(env, "DKIM_MAX_WORKERS", 16)),
    )
    server = ServerSettings(
        host=env.get("HOST", "0.0.0.0"),
        port=_int(env, "PORT", 8787),
        cors_enabled=env.get("CORS_ENABLED", "true").strip().lower() not in ("0", "false", "no"),
        cors_origins=_csv(env.get("CORS_ORIGINS")) or ["*"],
    )

    level = env.get("LOG_LEVEL", "info").strip().lower()
    if level == "warn":
        level = "warning"
    if level not in LOG_LEVELS:
        logger.warning("Unknown LOG_LEVEL %r, using 'info'", level)
        level = "info"

    return AppConfig(dns=dns, spf=spf, dkim=dkim, server=server, log_level=level)


def validate_doh_urls(urls: list) -> bool:
    """True when the list is non-empty and every entry is an https:// URL."""
    if not urls:
        return False
    return all(_is_https(u) for u in urls)


# ── Helpers ────────────────────────────────────────────────────────────────────

def _doh_urls(env: Mapping[str, str]) -> list:
    if env.get("DOH_URLS"):
        urls = _csv(env["DOH_URLS"])
    elif env.get("DOH_URL"):
        urls = [env["DOH_URL"].strip()]
    else:
        return list(DEFAULT_DOH_URLS)

    valid = [u for u in urls if _is_https(u)]
    for dropped in set(urls) - set(valid):
        logger.warning("Ignoring non-HTTPS DoH URL: %s", dropped)
    return valid or list(DEFAULT_DOH_URLS)


def _is_https(url: str) -> bool:
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme == "https" and bool(parsed.netloc)


def _csv(value: Optional[str]) -> list:
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def _int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Invalid integer for %s=%r, using %s", key, raw, default)
        return default
