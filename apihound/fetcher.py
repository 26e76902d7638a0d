from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

import httpx

from .models import ScanTarget

BASE_HEADERS: Dict[str, str] = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,*/*;q=0.8",
    "Accept-Language": "zh-CN,zh;q=0.9,en;q=0.8",
    "Accept-Encoding": "gzip, deflate, br",
    "Connection": "keep-alive",
}


@dataclass
class FetchResult:
    url: str
    status_code: Optional[int]
    body: Optional[str]
    content_length: int
    elapsed_ms: int
    error: Optional[str]


def build_headers(user_agent: str, auth_token: Optional[str], *, always_auth: bool = False) -> Dict[str, str]:
    """Request headers for a given identity.

    With always_auth, an empty "Bearer " value is sent when no token is configured.
    """
    headers = {"User-Agent": user_agent, **BASE_HEADERS}
    if auth_token is not None or always_auth:
        headers["Authorization"] = f"Bearer {auth_token or ''}"
    return headers


def build_client(target: ScanTarget) -> httpx.AsyncClient:
    """The one transport shared by every unit of work in a scan."""
    limits = httpx.Limits(max_connections=target.concurrency, max_keepalive_connections=target.concurrency)
    return httpx.AsyncClient(
        timeout=target.timeout,
        follow_redirects=True,
        proxy=target.proxy,
        verify=target.verify_tls,
        limits=limits,
    )


async def fetch_path(
    client: httpx.AsyncClient,
    url: str,
    headers: Dict[str, str],
    timeout: float,
    wants_body: Callable[[int], bool],
) -> FetchResult:
    """GET `url`, reading the body only if wants_body(status) is true.

    Transport errors and unusable URLs are returned in FetchResult.error
    rather than raised.
    """
    log = logging.getLogger(__name__)
    start = time.perf_counter()
    try:
        log.debug("GET %s", url)
        async with client.stream("GET", url, headers=headers, timeout=timeout) as r:
            elapsed_ms = int((time.perf_counter() - start) * 1000)
            status_code = r.status_code
            if not wants_body(status_code):
                return FetchResult(url, status_code, None, 0, elapsed_ms, None)
            raw = await r.aread()
            return FetchResult(
                url=url,
                status_code=status_code,
                body=_safe_decode(r, raw),
                content_length=len(raw),
                elapsed_ms=elapsed_ms,
                error=None,
            )
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        return FetchResult(
            url=url,
            status_code=None,
            body=None,
            content_length=0,
            elapsed_ms=int((time.perf_counter() - start) * 1000),
            error=f"{type(e).__name__}: {e}",
        )


def _safe_decode(r: httpx.Response, raw: bytes) -> str:
    encoding = r.encoding or "utf-8"
    try:
        return raw.decode(encoding, errors="replace")
    except LookupError:
        return raw.decode("utf-8", errors="replace")
