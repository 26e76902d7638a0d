from pathlib import Path

import pytest
from rich.console import Console

from apihound.errors import ReportError
from apihound.models import ScanConfigEcho, ScanReport, ScanResult, SensitiveFinding
from apihound.reporter import group_findings, load_report, print_summary, save_report


def _report(forbidden: int = 0) -> ScanReport:
    return ScanReport(
        scan_config=ScanConfigEcho(target="https://example.com", paths_scanned=3),
        basic_results=[
            ScanResult("admin", "https://example.com/admin", 200, 22, 12, True),
            ScanResult("old", "https://example.com/old", 410, 0, 7, False),
        ],
        sensitive_findings=[
            SensitiveFinding("https://example.com/admin", "Internal Email", 3, "a@b.c"),
            SensitiveFinding("https://example.com/admin", "Password Field", 8, '"pas****3t"'),
            SensitiveFinding("https://example.com/admin", "Internal Email", 3),
        ],
        error_count=2,
        transport_errors=1,
        forbidden_urls=[f"https://example.com/f{i}" for i in range(forbidden)],
        scan_timestamp="2026-01-01T00:00:00+00:00",
        scan_finished="2026-01-01T00:00:01+00:00",
        scan_duration=1.25,
    )


def test_round_trip(tmp_path: Path) -> None:
    report = _report(forbidden=2)
    out = tmp_path / "nested" / "report.json"
    save_report(report, out)
    assert load_report(out) == report


def test_dict_round_trip() -> None:
    report = _report(forbidden=1)
    assert ScanReport.from_dict(report.to_dict()) == report


def test_save_failure_raises_report_error(tmp_path: Path) -> None:
    blocker = tmp_path / "file"
    blocker.write_text("x", encoding="utf-8")
    with pytest.raises(ReportError):
        save_report(_report(), blocker / "report.json")


def test_group_findings_orders_by_risk() -> None:
    assert group_findings(_report().sensitive_findings) == [
        ("Password Field", 1, 8),
        ("Internal Email", 2, 3),
    ]


def test_success_count() -> None:
    assert _report().success_count == 1


def test_summary_truncates_forbidden_list() -> None:
    console = Console(record=True, width=120)
    print_summary(_report(forbidden=13), console=console)
    text = console.export_text()
    assert "https://example.com/f9" in text
    assert "https://example.com/f10" not in text
    assert "... and 3 more" in text
    assert "Password Field" in text
    assert "1/2" in text


def test_summary_without_findings() -> None:
    report = _report()
    report.sensitive_findings = []
    console = Console(record=True, width=120)
    print_summary(report, console=console)
    assert "No sensitive information found." in console.export_text()
