"""HTTP API exposing the authscore pipelines.

Endpoints:
  GET /health
  GET /api/spf?domain=            — SPF chain, rule checks, score
  GET /api/dkim?domain=[&selector=] — discovered DKIM records (or one record)
  GET /api/dkim/validate?domain=  — DKIM validation and score
  GET /api/dmarc?domain=          — DMARC record, validation, score
  GET /api/score?domain=          — combined SPF + DKIM + DMARC report
  GET /api/dns?domain=            — registration check
  GET /api/doh                    — configured DoH endpoints

Every success body carries request_id, response_time_ms and timestamp.
Errors use {"error": {"code", "message", "request_id", "timestamp"}}.
"""

import logging
import random
import time
import uuid
from datetime import datetime, timezone
from functools import lru_cache
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from . import __version__
from .auditor import EmailAuthAuditor
from .config import AppConfig, load_config, validate_doh_urls
from .dkim_discovery import SelectorCache
from .dkim_key import key_bits
from .doh_client import create_client
from .exceptions import AuthScoreError, DkimRecordNotFoundError, DnsTimeoutError, InvalidDomainError
from .logging_setup import configure_logging
from .report_json import JsonReporter
from .validation import validate_domain

logger = logging.getLogger(__name__)


# ── Dependencies ───────────────────────────────────────────────────────────────

@lru_cache(maxsize=1)
def get_config() -> AppConfig:
    return load_config()


@lru_cache(maxsize=1)
def get_fetcher():
    return create_client(get_config())


@lru_cache(maxsize=1)
def get_selector_cache() -> SelectorCache:
    # The only state shared between requests.
    return SelectorCache(ttl=get_config().dkim.selector_cache_ttl)


def get_auditor(
    fetcher=Depends(get_fetcher),
    config: AppConfig = Depends(get_config),
    selector_cache: SelectorCache = Depends(get_selector_cache),
) -> EmailAuthAuditor:
    return EmailAuthAuditor(fetcher, config, selector_cache=selector_cache)


# ── App ────────────────────────────────────────────────────────────────────────

def create_app(config: Optional[AppConfig] = None) -> FastAPI:
    config = config or get_config()
    configure_logging(config.log_level)

    application = FastAPI(
        title="authscore API",
        description="SPF, DKIM and DMARC record resolution and scoring.",
        version=__version__,
        docs_url="/docs",
        openapi_url="/openapi.json",
    )
    if config.server.cors_enabled:
        application.add_middleware(
            CORSMiddleware,
            allow_origins=config.server.cors_origins,
            allow_methods=["GET", "OPTIONS"],
            allow_headers=["*"],
        )
    application.middleware("http")(_request_context)
    application.add_exception_handler(AuthScoreError, _auth_score_error)
    application.add_exception_handler(Exception, _unhandled)
    application.include_router(router)
    return application


_reporter = JsonReporter()


class ResponseMeta(BaseModel):
    request_id: str
    response_time_ms: float
    timestamp: str


class HealthResponse(ResponseMeta):
    status: str
    version: str


class DohResponse(ResponseMeta):
    url: str
    urls: list[str]
    total_providers: int


def _now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


async def _request_context(request: Request, call_next):
    request.state.request_id = str(uuid.uuid4())
    request.state.started = time.monotonic()
    logger.info("%s %s [%s]", request.method, request.url.path, request.state.request_id)
    response = await call_next(request)
    response.headers["X-Request-ID"] = request.state.request_id
    return response


def _envelope(request: Request, payload: dict) -> dict:
    elapsed = (time.monotonic() - request.state.started) * 1000
    return {
        **payload,
        "request_id": request.state.request_id,
        "response_time_ms": round(elapsed, 2),
        "timestamp": _now(),
    }


# ── Error handling ─────────────────────────────────────────────────────────────

def _error_response(request: Request, code: str, message: str, http_status: int) -> JSONResponse:
    request_id = getattr(request.state, "request_id", "") or str(uuid.uuid4())
    body = {
        "error": {
            "code": code,
            "message": message,
            "request_id": request_id,
            "timestamp": _now(),
        }
    }
    return JSONResponse(status_code=http_status, content=body, headers={"X-Request-ID": request_id})


async def _auth_score_error(request: Request, exc: AuthScoreError) -> JSONResponse:
    if isinstance(exc, InvalidDomainError):
        logger.warning("Invalid domain on %s: %s", request.url.path, exc)
        return _error_response(request, "INVALID_DOMAIN", str(exc), 400)
    if isinstance(exc, DkimRecordNotFoundError):
        return _error_response(request, "DKIM_RECORD_NOT_FOUND", str(exc), 404)
    if isinstance(exc, DnsTimeoutError):
        logger.error("DNS timeout on %s: %s", request.url.path, exc)
        return _error_response(request, "DNS_TIMEOUT", str(exc), 504)
    logger.error("Request to %s failed: %s", request.url.path, exc)
    return _error_response(request, "LOOKUP_FAILED", str(exc), 500)


async def _unhandled(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s", request.url.path)
    return _error_response(request, "INTERNAL_ERROR", "An unexpected error occurred.", 500)


# ── Routes ─────────────────────────────────────────────────────────────────────

router = APIRouter()


@router.get("/health", tags=["system"], response_model=HealthResponse)
def health(request: Request) -> dict:
    return _envelope(request, {"status": "ok", "version": __version__})


@router.get("/api/spf", tags=["spf"])
def spf(request: Request, domain: Optional[str] = None, auditor: EmailAuthAuditor = Depends(get_auditor)) -> dict:
    audit = auditor.audit_spf(validate_domain(domain))
    return _envelope(request, _reporter.spf_dict(audit))


@router.get("/api/dkim", tags=["dkim"])
def dkim(
    request: Request,
    domain: Optional[str] = None,
    selector: Optional[str] = None,
    auditor: EmailAuthAuditor = Depends(get_auditor),
) -> dict:
    domain = validate_domain(domain)
    if selector:
        record = auditor.dkim_service.get_record(domain, selector.strip())
        payload = _reporter.dkim_record_dict(record)
        payload["key_bits"] = key_bits(record.tags, record.selector)
        return _envelope(request, payload)
    record_set = auditor.dkim_service.get_records(domain)
    return _envelope(request, _reporter.dkim_record_set_dict(record_set))


@router.get("/api/dkim/validate", tags=["dkim"])
def dkim_validate(
    request: Request,
    domain: Optional[str] = None,
    auditor: EmailAuthAuditor = Depends(get_auditor),
) -> dict:
    audit = auditor.audit_dkim(validate_domain(domain))
    payload = _reporter.dkim_dict(audit)
    payload["key_lengths"] = [
        {"selector": k.selector, "bits": k.bits}
        for k in auditor.dkim_scorer.key_lengths(audit.record_set)
    ]
    return _envelope(request, payload)


@router.get("/api/dmarc", tags=["dmarc"])
def dmarc(request: Request, domain: Optional[str] = None, auditor: EmailAuthAuditor = Depends(get_auditor)) -> dict:
    audit = auditor.audit_dmarc(validate_domain(domain))
    return _envelope(request, _reporter.dmarc_dict(audit))


@router.get("/api/score", tags=["score"])
def score(request: Request, domain: Optional[str] = None, auditor: EmailAuthAuditor = Depends(get_auditor)) -> dict:
    report = auditor.audit(validate_domain(domain))
    return _envelope(request, _reporter.report_dict(report))


@router.get("/api/dns", tags=["dns"])
def dns_check(request: Request, domain: Optional[str] = None, fetcher=Depends(get_fetcher)) -> dict:
    result = fetcher.check_registration(validate_domain(domain))
    return _envelope(request, _reporter.registration_dict(result))


@router.get("/api/doh", tags=["dns"], response_model=DohResponse)
def doh(request: Request, config: AppConfig = Depends(get_config)):
    urls = config.dns.doh_urls
    if not validate_doh_urls(urls):
        return _error_response(request, "INVALID_DOH_CONFIG", "Invalid DoH URLs configuration", 500)
    return _envelope(request, {
        "url": random.choice(urls),
        "urls": list(urls),
        "total_providers": len(urls),
    })


app = create_app()
