from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Tuple


def join_url(base_url: str, path: str) -> str:
    base = base_url.rstrip("/")
    # Paths with a leading slash are appended as-is to avoid "//"
    if path.startswith("/"):
        return base + path
    return f"{base}/{path}"


@dataclass(frozen=True)
class ScanTarget:
    base_url: str
    paths: Tuple[str, ...]
    concurrency: int = 20
    timeout: float = 10.0
    auth_token: Optional[str] = None
    proxy: Optional[str] = None
    verify_tls: bool = True

    def url_for(self, path: str) -> str:
        return join_url(self.base_url, path)


@dataclass
class RequestOutcome:
    """One dispatched path after routing. `retained` is False for discards."""

    path: str
    url: str
    status_code: int
    content_length: int
    response_time: int  # milliseconds
    found: bool
    retained: bool

    def to_result(self) -> "ScanResult":
        return ScanResult(
            path=self.path,
            url=self.url,
            status_code=self.status_code,
            content_length=self.content_length,
            response_time=self.response_time,
            found=self.found,
        )


@dataclass
class ScanResult:
    path: str
    url: str
    status_code: int
    content_length: int
    response_time: int
    found: bool


@dataclass
class SensitiveFinding:
    url: str
    info_type: str
    risk_score: int
    evidence: Optional[str] = None


@dataclass
class ScanConfigEcho:
    target: str
    paths_scanned: int


@dataclass
class ScanReport:
    scan_config: ScanConfigEcho
    basic_results: List[ScanResult] = field(default_factory=list)
    sensitive_findings: List[SensitiveFinding] = field(default_factory=list)
    error_count: int = 0
    transport_errors: int = 0
    forbidden_urls: List[str] = field(default_factory=list)
    scan_timestamp: str = ""
    scan_finished: str = ""
    scan_duration: float = 0.0

    @property
    def success_count(self) -> int:
        return sum(1 for r in self.basic_results if r.found)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScanReport":
        return cls(
            scan_config=ScanConfigEcho(**data["scan_config"]),
            basic_results=[ScanResult(**r) for r in data.get("basic_results", [])],
            sensitive_findings=[SensitiveFinding(**f) for f in data.get("sensitive_findings", [])],
            error_count=int(data.get("error_count", 0)),
            transport_errors=int(data.get("transport_errors", 0)),
            forbidden_urls=list(data.get("forbidden_urls", [])),
            scan_timestamp=data.get("scan_timestamp", ""),
            scan_finished=data.get("scan_finished", ""),
            scan_duration=float(data.get("scan_duration", 0.0)),
        )
