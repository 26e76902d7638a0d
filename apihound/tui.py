from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Sequence

from textual.app import App, ComposeResult
from textual.containers import Vertical
from textual.widgets import DataTable, Footer, Header, Label, LoadingIndicator

from .errors import ScanError
from .models import ScanReport, ScanTarget
from .reporter import group_findings, save_report
from .scanner import validate_and_scan


class ApiScanApp(App):
    CSS = """
    Screen {
        align: center middle;
    }
    """

    BINDINGS = [("q", "quit", "Quit")]

    def __init__(
        self,
        target: ScanTarget,
        user_agents: Sequence[str],
        output: Optional[Path] = None,
    ) -> None:
        super().__init__()
        self.target = target
        self.user_agents: List[str] = list(user_agents)
        self.output = output
        self.report: Optional[ScanReport] = None
        self.progress_label = Label("Validating User-Agent…")
        self.results = DataTable(zebra_stripes=True)
        self.findings = DataTable(zebra_stripes=True)
        self.spinner = LoadingIndicator()

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        yield Vertical(
            Label(f"apihound - {self.target.base_url}", id="title"),
            self.progress_label,
            self.spinner,
            self.results,
            self.findings,
        )
        yield Footer()

    def on_mount(self) -> None:
        self.results.add_columns("Status", "Found", "Path", "Length", "Time (ms)")
        self.findings.add_columns("Type", "Risk", "Count")
        self.spinner.display = True
        self.run_worker(self.run_scan(), exclusive=True)

    async def run_scan(self) -> None:
        try:
            self.report = await validate_and_scan(
                self.target,
                self.user_agents,
                progress_cb=self._update_progress,
            )
        except ScanError as e:
            self.progress_label.update(f"Scan aborted: {e}")
            self.spinner.display = False
            return
        self.spinner.display = False
        self._populate(self.report)
        if self.output is not None:
            try:
                save_report(self.report, self.output)
            except ScanError as e:
                self.progress_label.update(str(e))
                return
            self.progress_label.update(f"Done. Report written to {self.output}")

    def _update_progress(self, done: int, total: int) -> None:
        self.progress_label.update(f"Scanning paths: {done}/{total}")

    def _populate(self, report: ScanReport) -> None:
        for r in report.basic_results:
            self.results.add_row(str(r.status_code), "yes" if r.found else "no", r.path, str(r.content_length), str(r.response_time))
        for name, count, score in group_findings(report.sensitive_findings):
            self.findings.add_row(name, str(score), str(count))
        self.progress_label.update(
            f"Done: {len(report.basic_results)} results, {len(report.sensitive_findings)} findings, "
            f"{report.error_count} 5xx, {len(report.forbidden_urls)} forbidden"
        )
