from __future__ import annotations

import logging
from typing import Awaitable, Callable, Sequence

import httpx

from .errors import ConfigError, UserAgentsExhausted

Probe = Callable[[str], Awaitable[httpx.Response]]


async def validate_user_agent(pool: Sequence[str], probe: Probe) -> str:
    """Return the first User-Agent in `pool` for which `probe` gets a 2xx.

    Each candidate is tried at most once, in pool order. Raises
    UserAgentsExhausted after len(pool) failed attempts.
    """
    if not pool:
        raise ConfigError("User-Agent pool is empty")

    log = logging.getLogger(__name__)
    attempts = len(pool)
    for index in range(attempts):
        ua = pool[index]
        try:
            response = await probe(ua)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            log.warning("[UA failed] %s | error: %s: %s", ua, type(e).__name__, e)
            continue
        if response.is_success:
            log.info("[UA ok] %s", ua)
            return ua
        log.warning("[UA failed] %s | status: %s", ua, response.status_code)
    raise UserAgentsExhausted(attempts)
