from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime
from typing import Callable, List, Optional, Sequence

import httpx

from .detectors import Detector
from .errors import ConfigError
from .fetcher import build_client, build_headers, fetch_path
from .models import RequestOutcome, ScanConfigEcho, ScanReport, ScanTarget, SensitiveFinding
from .useragents import validate_user_agent

ProgressCallback = Callable[[int, int], None]


class _RateLimiter:
    def __init__(self, concurrency: int):
        self._sem = asyncio.Semaphore(concurrency)

    async def __aenter__(self):
        await self._sem.acquire()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self._sem.release()


class _Aggregate:
    """Shared scan state. Every mutation is one short critical section."""

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self.outcomes: List[RequestOutcome] = []
        self.findings: List[SensitiveFinding] = []
        self.forbidden_urls: List[str] = []
        self.error_count = 0
        self.transport_errors = 0
        self.completed = 0

    async def keep(self, outcome: RequestOutcome, findings: List[SensitiveFinding]) -> None:
        async with self._lock:
            self.outcomes.append(outcome)
            self.findings.extend(findings)

    async def forbidden(self, url: str) -> None:
        async with self._lock:
            self.forbidden_urls.append(url)

    async def server_error(self) -> None:
        async with self._lock:
            self.error_count += 1

    async def transport_error(self) -> None:
        async with self._lock:
            self.transport_errors += 1

    async def tick(self) -> int:
        async with self._lock:
            self.completed += 1
            return self.completed


def _wants_body(status: int) -> bool:
    return status not in (403, 404) and not 500 <= status <= 599


def route(
    path: str,
    url: str,
    status: int,
    content_length: int,
    elapsed_ms: int,
    findings: List[SensitiveFinding],
) -> RequestOutcome:
    """Apply the status-code policy to one response.

    404, 403 and 5xx are never retained. A 200 is retained only when it
    produced findings; any other status is always retained.
    """
    if not _wants_body(status):
        retained = False
    elif status == 200:
        retained = bool(findings)
    else:
        retained = True
    return RequestOutcome(
        path=path,
        url=url,
        status_code=status,
        content_length=content_length,
        response_time=elapsed_ms,
        found=200 <= status < 300,
        retained=retained,
    )


async def scan_async(
    target: ScanTarget,
    user_agent: str,
    detector: Optional[Detector] = None,
    client: Optional[httpx.AsyncClient] = None,
    progress_cb: Optional[ProgressCallback] = None,
) -> ScanReport:
    """Dispatch every path of `target` and return the aggregated report.

    At most target.concurrency requests are in flight at once. Results are
    recorded in completion order. An externally supplied client is not closed.
    """
    if not target.paths:
        raise ConfigError("Path list is empty")

    log = logging.getLogger(__name__)
    detector = detector or Detector()
    headers = build_headers(user_agent, target.auth_token, always_auth=True)
    total = len(target.paths)
    agg = _Aggregate()
    limiter = _RateLimiter(target.concurrency)

    async def worker(http: httpx.AsyncClient, path: str) -> None:
        try:
            await handle(http, path)
        finally:
            completed = await agg.tick()
            if progress_cb:
                progress_cb(completed, total)

    async def handle(http: httpx.AsyncClient, path: str) -> None:
        url = target.url_for(path)
        res = await fetch_path(http, url, headers, target.timeout, _wants_body)
        if res.error is not None or res.status_code is None:
            log.warning("Request failed: %s - %s", url, res.error)
            await agg.transport_error()
            return
        findings = detector.detect(url, res.body) if res.body is not None else []
        outcome = route(path, url, res.status_code, res.content_length, res.elapsed_ms, findings)
        if outcome.retained:
            await agg.keep(outcome, findings)
            log.info("%s %s (%d findings)", outcome.status_code, url, len(findings))
        elif outcome.status_code == 403:
            log.debug("403 %s", url)
            await agg.forbidden(url)
        elif 500 <= outcome.status_code <= 599:
            log.debug("%s %s", outcome.status_code, url)
            await agg.server_error()
        else:
            log.debug("%s %s (discarded)", outcome.status_code, url)

    started_at = datetime.now().astimezone()
    start = time.perf_counter()
    if client is None:
        async with build_client(target) as own_client:
            await _dispatch(worker, own_client, target.paths, limiter)
    else:
        await _dispatch(worker, client, target.paths, limiter)
    duration = time.perf_counter() - start

    return ScanReport(
        scan_config=ScanConfigEcho(target=target.base_url, paths_scanned=total),
        basic_results=[o.to_result() for o in agg.outcomes],
        sensitive_findings=agg.findings,
        error_count=agg.error_count,
        transport_errors=agg.transport_errors,
        forbidden_urls=agg.forbidden_urls,
        scan_timestamp=started_at.isoformat(),
        scan_finished=datetime.now().astimezone().isoformat(),
        scan_duration=round(duration, 3),
    )


async def _dispatch(worker, client: httpx.AsyncClient, paths: Sequence[str], limiter: _RateLimiter) -> None:
    tasks = [asyncio.create_task(_guarded(worker, client, path, limiter)) for path in paths]
    if tasks:
        await asyncio.gather(*tasks)


async def _guarded(fn, client: httpx.AsyncClient, path: str, limiter: _RateLimiter):
    async with limiter:
        await fn(client, path)


async def select_user_agent(
    target: ScanTarget,
    pool: Sequence[str],
    client: httpx.AsyncClient,
) -> str:
    """Probe the target base URL once per pool entry until one is accepted."""

    async def probe(ua: str) -> httpx.Response:
        headers = build_headers(ua, target.auth_token)
        return await client.get(target.base_url, headers=headers, timeout=target.timeout)

    return await validate_user_agent(pool, probe)


async def validate_and_scan(
    target: ScanTarget,
    user_agents: Sequence[str],
    detector: Optional[Detector] = None,
    progress_cb: Optional[ProgressCallback] = None,
) -> ScanReport:
    async with build_client(target) as client:
        ua = await select_user_agent(target, user_agents, client)
        return await scan_async(target, ua, detector=detector, client=client, progress_cb=progress_cb)


def run_scan(
    target: ScanTarget,
    user_agents: Sequence[str],
    detector: Optional[Detector] = None,
    progress_cb: Optional[ProgressCallback] = None,
) -> ScanReport:
    """Synchronous wrapper: validate a User-Agent, then scan."""
    return asyncio.run(validate_and_scan(target, user_agents, detector=detector, progress_cb=progress_cb))
