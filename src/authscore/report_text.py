"""Rich terminal renderer for audit results."""

from typing import Optional

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .models import (
    DkimAudit,
    DkimRecord,
    DmarcAudit,
    DomainScoreReport,
    IssueSeverity,
    RegistrationResult,
    ScoringResult,
    SpfAudit,
)

GRADE_STYLE = {
    "A": "bold white on green",
    "B": "bold white on green",
    "C": "bold white on dark_orange",
    "D": "bold white on dark_orange",
    "F": "bold white on red",
}

SEVERITY_STYLE = {
    IssueSeverity.ERROR: "red",
    IssueSeverity.WARNING: "yellow",
    IssueSeverity.INFO: "blue",
}


def _pct_style(pct: int) -> str:
    if pct >= 80:
        return "green"
    if pct >= 60:
        return "yellow"
    return "red"


class TextReporter:
    def __init__(self, console: Optional[Console] = None):
        self._console = console or Console()

    def render(self, report: DomainScoreReport) -> None:
        c = self._console
        c.print()
        c.print(Panel(
            f"[bold]EMAIL AUTHENTICATION SCORE: {report.domain.upper()}[/bold]",
            style="bold blue",
            expand=False,
        ))

        c.print("\n[bold]## OVERALL[/bold]")
        summary = Table(box=box.SIMPLE, show_header=True, header_style="bold")
        summary.add_column("Component", width=10)
        summary.add_column("Score", justify="right", width=10)
        summary.add_column("Percent", justify="right", width=8)
        for label, result in (
            ("SPF", report.spf.score),
            ("DKIM", report.dkim.score),
            ("DMARC", report.dmarc.score),
        ):
            style = _pct_style(result.percentage)
            summary.add_row(
                label,
                f"{result.total_score}/{result.max_possible_score}",
                f"[{style}]{result.percentage}%[/{style}]",
            )
        style = _pct_style(report.percentage)
        summary.add_row(
            "[bold]Total[/bold]",
            f"[bold]{report.total_score}/{report.max_possible_score}[/bold]",
            f"[bold {style}]{report.percentage}%[/bold {style}]",
        )
        c.print(summary)

        self.render_spf(report.spf)
        self.render_dkim(report.dkim)
        self.render_dmarc(report.dmarc)

    # ── Per-component renderers (also used by the check-* subcommands) ─────────

    def render_spf(self, audit: SpfAudit) -> None:
        c = self._console
        c.print()
        c.print(Panel(f"[bold]SPF ANALYSIS: {audit.domain.upper()}[/bold]", style="bold blue", expand=False))

        if not audit.records:
            c.print("\n[red]No SPF record found.[/red]")
        else:
            c.print("\n[bold]Record chain:[/bold]")
            for occurrence in audit.records:
                c.print(f"  [dim]{occurrence.kind.value:<8}[/dim] [bold]{occurrence.domain}[/bold]")
                c.print(Text(f"           {occurrence.raw_record}", no_wrap=False))

        v = audit.validation
        errors = v.syntax_validation.errors + v.deprecated_mechanisms.errors + v.unsafe_all_mechanism.errors
        if errors:
            c.print("\n[bold yellow]Issues:[/bold yellow]")
            for e in errors:
                c.print(f"  [red]•[/red] {e.occurrence.domain}: {e.message}")

        self._render_score(audit.score)

    def render_dkim(self, audit: DkimAudit, key_lengths: Optional[list] = None) -> None:
        c = self._console
        c.print()
        c.print(Panel(f"[bold]DKIM ANALYSIS: {audit.domain.upper()}[/bold]", style="bold blue", expand=False))

        if not audit.record_set.records:
            c.print("\n[red]No DKIM selectors discovered.[/red]")
        else:
            table = Table(box=box.SIMPLE, show_header=True, header_style="bold")
            table.add_column("Selector")
            table.add_column("Algorithm")
            table.add_column("Valid", width=6)
            table.add_column("Key", justify="right")
            bits_by_selector = {k.selector: k.bits for k in (key_lengths or [])}
            valid_by_selector = {r.selector: r.is_valid for r in audit.validation.records}
            for record in audit.record_set.records:
                bits = bits_by_selector.get(record.selector)
                valid = valid_by_selector.get(record.selector, False)
                table.add_row(
                    record.selector,
                    record.tags.algorithm or "-",
                    "[green]yes[/green]" if valid else "[red]no[/red]",
                    f"{bits} bits" if bits else "-",
                )
            c.print(table)

        self._render_issues(
            audit.validation.domain_issues + [i for r in audit.validation.records for i in r.issues]
        )
        self._render_score(audit.score)

    def render_dkim_record(self, record: DkimRecord, bits: Optional[int]) -> None:
        c = self._console
        c.print()
        c.print(Panel(
            f"[bold]DKIM RECORD: {record.selector}._domainkey.{record.domain}[/bold]",
            style="bold blue",
            expand=False,
        ))
        t = record.tags
        c.print(f"\n[bold]Version:[/bold] {t.version or '-'}")
        c.print(f"[bold]Algorithm:[/bold] {t.algorithm or '-'}")
        c.print(f"[bold]Key type:[/bold] {t.key_type or '-'}")
        c.print(f"[bold]Key length:[/bold] {f'{bits} bits' if bits else 'unknown'}")
        if t.flags:
            c.print(f"[bold]Flags:[/bold] {', '.join(t.flags)}")
        key = t.public_key
        c.print(f"[bold]Public key:[/bold] {key[:60]}{'...' if len(key) > 60 else ''}")

    def render_dmarc(self, audit: DmarcAudit) -> None:
        c = self._console
        c.print()
        c.print(Panel(f"[bold]DMARC ANALYSIS: {audit.domain.upper()}[/bold]", style="bold blue", expand=False))

        record = audit.record
        c.print(f"\n[bold]Record:[/bold] {escape(record.raw_record) if record else 'Not found'}")
        if record:
            t = record.tags
            policy_color = {"none": "yellow", "quarantine": "blue", "reject": "green"}.get(t.policy, "white")
            c.print(f"[bold]Policy:[/bold] [{policy_color}]{t.policy}[/{policy_color}]")
            if t.subdomain_policy:
                c.print(f"[bold]Subdomain policy:[/bold] {t.subdomain_policy}")
            if t.report_emails:
                c.print(f"[bold]Aggregate reports:[/bold] {', '.join(t.report_emails)}")

        self._render_issues(audit.validation.issues)
        self._render_score(audit.score)

    def render_registration(self, result: RegistrationResult) -> None:
        c = self._console
        status = "[green]Registered[/green]" if result.is_registered else "[red]Not registered (NXDOMAIN)[/red]"
        c.print(f"\n[bold]{result.domain}[/bold]: {status}")
        c.print(f"[dim]DNS status {result.status.value}, {result.query_time_ms:.0f} ms[/dim]")

    # ── Shared sections ────────────────────────────────────────────────────────

    def _render_issues(self, issues: list) -> None:
        if not issues:
            return
        c = self._console
        c.print("\n[bold yellow]Issues:[/bold yellow]")
        for issue in issues:
            style = SEVERITY_STYLE.get(issue.severity, "white")
            c.print(f"  [{style}]{escape(f'[{issue.code}]')}[/{style}] {escape(issue.message)}")

    def _render_score(self, result: ScoringResult) -> None:
        c = self._console
        table = Table(box=box.SIMPLE, show_header=True, header_style="bold")
        table.add_column("Check")
        table.add_column("Score", justify="right", width=7)
        table.add_column("Details")
        for item in result.score_items:
            mark = "[green]✓[/green]" if item.passed else "[red]✗[/red]"
            table.add_row(f"{mark} {item.name}", f"{item.score}/{item.max_score}", item.details)
        c.print(table)

        line = f"Score: {result.total_score}/{result.max_possible_score} ({result.percentage}%)"
        if result.grade:
            c.print(Panel(f" {line}  Grade {result.grade} ", style=GRADE_STYLE.get(result.grade, "bold"), expand=False))
        else:
            c.print(f"[bold {_pct_style(result.percentage)}]{line}[/]")
