"""authscore CLI. Score a domain's SPF, DKIM and DMARC posture from the terminal."""

import sys
from typing import Optional

import click
from rich.console import Console

from . import __version__
from .auditor import EmailAuthAuditor
from .config import LOG_LEVELS, load_config
from .dkim_key import key_bits
from .doh_client import create_client
from .exceptions import AuthScoreError, InvalidDomainError
from .logging_setup import configure_logging
from .models import DkimAudit, DkimRecordSet
from .report_json import JsonReporter
from .report_text import TextReporter
from .validation import validate_domain

FORMAT_OPTION = click.option(
    "--format", "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    show_default=True,
    help="Output format.",
)


@click.group()
@click.version_option(version=__version__, prog_name="authscore")
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default=None,
    help="Log verbosity (defaults to LOG_LEVEL or 'info').",
)
@click.pass_context
def cli(ctx: click.Context, log_level: Optional[str]):
    """authscore: email authentication scoring.

    Resolves SPF, DKIM and DMARC records over DNS-over-HTTPS and grades
    each against RFC 7208, RFC 6376 and RFC 7489 best practice.
    """
    config = load_config()
    configure_logging(log_level or config.log_level)
    ctx.ensure_object(dict)
    ctx.obj["config"] = config


@cli.command("score")
@click.argument("domain")
@FORMAT_OPTION
@click.option(
    "--output", "output_file",
    default=None,
    type=click.Path(),
    help="Write output to FILE instead of stdout.",
)
@click.pass_context
def score(ctx: click.Context, domain: str, output_format: str, output_file: Optional[str]):
    """Full SPF + DKIM + DMARC score for DOMAIN."""
    try:
        domain = validate_domain(domain)
        auditor = _auditor(ctx)
        if output_format == "text":
            Console(stderr=True).print(f"[dim]Scoring {domain}...[/dim]", highlight=False)
        report = auditor.audit(domain)

        if output_format == "json":
            output = JsonReporter().render(report)
            if output_file:
                _write_file(output_file, output)
                click.echo(f"Report written to: {output_file}", err=True)
            else:
                click.echo(output)
        elif output_file:
            with open(output_file, "w", encoding="utf-8") as f:
                plain_console = Console(file=f, highlight=False, no_color=True)
                TextReporter(console=plain_console).render(report)
            click.echo(f"Report written to: {output_file}", err=True)
        else:
            TextReporter().render(report)
    except AuthScoreError as e:
        _fail(e)


@cli.command("check-spf")
@click.argument("domain")
@FORMAT_OPTION
@click.pass_context
def check_spf(ctx: click.Context, domain: str, output_format: str):
    """SPF chain, rule checks and score for DOMAIN."""
    try:
        audit = _auditor(ctx).audit_spf(validate_domain(domain))
        if output_format == "json":
            click.echo(JsonReporter().dumps(JsonReporter().spf_dict(audit)))
        else:
            TextReporter().render_spf(audit)
    except AuthScoreError as e:
        _fail(e)


@cli.command("check-dkim")
@click.argument("domain")
@click.option("--selector", default=None, help="Check one explicit selector instead of discovering.")
@FORMAT_OPTION
@click.pass_context
def check_dkim(ctx: click.Context, domain: str, selector: Optional[str], output_format: str):
    """DKIM selector discovery, validation and score for DOMAIN."""
    try:
        domain = validate_domain(domain)
        auditor = _auditor(ctx)
        reporter = JsonReporter()

        if selector:
            record = auditor.dkim_service.get_record(domain, selector)
            record_set = DkimRecordSet(domain=domain, records=[record])
            audit = DkimAudit(
                domain=domain,
                record_set=record_set,
                validation=auditor.dkim_service.validate(record_set),
                score=auditor.dkim_scorer.score(record_set),
            )
            if output_format == "json":
                payload = reporter.dkim_dict(audit)
                payload["key_bits"] = key_bits(record.tags, selector)
                click.echo(reporter.dumps(payload))
            else:
                text = TextReporter()
                text.render_dkim_record(record, key_bits(record.tags, selector))
                text.render_dkim(audit, auditor.dkim_scorer.key_lengths(record_set))
            return

        audit = auditor.audit_dkim(domain)
        if output_format == "json":
            click.echo(reporter.dumps(reporter.dkim_dict(audit)))
        else:
            TextReporter().render_dkim(audit, auditor.dkim_scorer.key_lengths(audit.record_set))
    except AuthScoreError as e:
        _fail(e)


@cli.command("check-dmarc")
@click.argument("domain")
@FORMAT_OPTION
@click.pass_context
def check_dmarc(ctx: click.Context, domain: str, output_format: str):
    """DMARC record, validation and score for DOMAIN."""
    try:
        audit = _auditor(ctx).audit_dmarc(validate_domain(domain))
        if output_format == "json":
            click.echo(JsonReporter().dumps(JsonReporter().dmarc_dict(audit)))
        else:
            TextReporter().render_dmarc(audit)
    except AuthScoreError as e:
        _fail(e)


@cli.command("check-dns")
@click.argument("domain")
@FORMAT_OPTION
@click.pass_context
def check_dns(ctx: click.Context, domain: str, output_format: str):
    """Check whether DOMAIN is registered (A lookup, NXDOMAIN means unregistered)."""
    try:
        domain = validate_domain(domain)
        result = create_client(ctx.obj["config"]).check_registration(domain)
        if output_format == "json":
            click.echo(JsonReporter().dumps(JsonReporter().registration_dict(result)))
        else:
            TextReporter().render_registration(result)
    except AuthScoreError as e:
        _fail(e)


@cli.command("serve")
@click.option("--host", default=None, help="Bind address (defaults to HOST or 0.0.0.0).")
@click.option("--port", default=None, type=int, help="Listen port (defaults to PORT or 8787).")
@click.pass_context
def serve(ctx: click.Context, host: Optional[str], port: Optional[int]):
    """Start the HTTP API server.

    Requires the [api] optional dependencies:

        pip install 'authscore[api]'
    """
    try:
        import uvicorn  # noqa: PLC0415
    except ImportError:
        click.echo("Error: uvicorn is not installed. Run: pip install 'authscore[api]'", err=True)
        sys.exit(1)

    config = ctx.obj["config"]
    host = host or config.server.host
    port = port or config.server.port
    click.echo(f"Starting authscore API on http://{host}:{port}", err=True)
    click.echo(f"API docs: http://{host}:{port}/docs", err=True)
    uvicorn.run("authscore.api_server:app", host=host, port=port, log_level=config.log_level)


# ── Helpers ────────────────────────────────────────────────────────────────────

def _auditor(ctx: click.Context) -> EmailAuthAuditor:
    config = ctx.obj["config"]
    return EmailAuthAuditor(create_client(config), config)


def _fail(error: AuthScoreError) -> None:
    if isinstance(error, InvalidDomainError):
        click.echo(f"Error: Invalid domain: {error}", err=True)
    else:
        click.echo(f"Error: {error}", err=True)
    sys.exit(1)


def _write_file(path: str, content: str) -> None:
    with open(path, "w", encoding="utf-8") as f:
        f.write(content)
