from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .errors import ReportError
from .models import ScanReport, SensitiveFinding

FORBIDDEN_PREVIEW = 10


def save_report(report: ScanReport, path: Path) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as f:
            json.dump(report.to_dict(), f, indent=2, ensure_ascii=False)
    except OSError as e:
        raise ReportError(f"Could not write report to {path}: {e}") from e


def load_report(path: Path) -> ScanReport:
    with path.open("r", encoding="utf-8") as f:
        return ScanReport.from_dict(json.load(f))


def group_findings(findings: List[SensitiveFinding]) -> List[Tuple[str, int, int]]:
    """(info_type, count, max risk score), highest risk first."""
    groups: Dict[str, Tuple[int, int]] = {}
    for f in findings:
        count, score = groups.get(f.info_type, (0, 0))
        groups[f.info_type] = (count + 1, max(score, f.risk_score))
    rows = [(name, count, score) for name, (count, score) in groups.items()]
    rows.sort(key=lambda r: (-r[2], -r[1], r[0]))
    return rows


def print_summary(report: ScanReport, console: Optional[Console] = None) -> None:
    console = console or Console()

    console.print(
        Panel.fit(
            "apihound - API Path Scanner",
            style="bold cyan",
            border_style="cyan",
        )
    )

    summary = Table.grid(expand=False, padding=(0, 2))
    summary.add_column(justify="left")
    summary.add_column(justify="right")
    summary.add_row("Target", report.scan_config.target)
    summary.add_row("Paths scanned", str(report.scan_config.paths_scanned))
    summary.add_row("Duration", f"{report.scan_duration:.2f}s")
    summary.add_row("Started", report.scan_timestamp)
    summary.add_row("5xx errors", f"[red]{report.error_count}[/red]")
    summary.add_row("403 forbidden", f"[yellow]{len(report.forbidden_urls)}[/yellow]")
    summary.add_row("Transport errors", f"[magenta]{report.transport_errors}[/magenta]")
    summary.add_row("Successful", f"{report.success_count}/{len(report.basic_results)}")
    console.print(Panel(summary, title="Summary", border_style="blue", box=box.ROUNDED))

    if report.sensitive_findings:
        table = Table(
            title=f"Sensitive findings ({len(report.sensitive_findings)})",
            expand=False,
            box=box.SIMPLE_HEAVY,
            header_style="bold",
        )
        table.add_column("Type", no_wrap=True)
        table.add_column("Risk", justify="right")
        table.add_column("Count", justify="right")
        for name, count, score in group_findings(report.sensitive_findings):
            table.add_row(name, f"[{_risk_style(score)}]{score}[/]", str(count))
        console.print(table)
    else:
        console.print("[green]No sensitive information found.[/green]")

    if report.forbidden_urls:
        console.print(f"\n[bold]403 forbidden URLs ({len(report.forbidden_urls)}):[/bold]")
        for i, url in enumerate(report.forbidden_urls[:FORBIDDEN_PREVIEW], start=1):
            console.print(f"  {i}. {url}")
        if len(report.forbidden_urls) > FORBIDDEN_PREVIEW:
            console.print(f"  ... and {len(report.forbidden_urls) - FORBIDDEN_PREVIEW} more")


def _risk_style(score: int) -> str:
    if score >= 9:
        return "bold white on red"
    if score >= 7:
        return "bold magenta"
    if score >= 5:
        return "yellow"
    return "green"
