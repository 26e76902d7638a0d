import httpx
import pytest

from apihound.errors import ConfigError, UserAgentsExhausted
from apihound.useragents import validate_user_agent


def _recording_probe(statuses):
    calls = []

    async def probe(ua: str) -> httpx.Response:
        calls.append(ua)
        status = statuses[ua]
        if isinstance(status, Exception):
            raise status
        return httpx.Response(status)

    return probe, calls


async def test_first_success_wins() -> None:
    probe, calls = _recording_probe({"ua0": 403, "ua1": 500, "ua2": 200, "ua3": 200})
    ua = await validate_user_agent(["ua0", "ua1", "ua2", "ua3"], probe)
    assert ua == "ua2"
    assert calls == ["ua0", "ua1", "ua2"]


async def test_success_on_first_probe() -> None:
    probe, calls = _recording_probe({"ua1": 204})
    assert await validate_user_agent(["ua1"], probe) == "ua1"
    assert calls == ["ua1"]


async def test_all_rejected() -> None:
    probe, calls = _recording_probe({"a": 403, "b": 429, "c": 301})
    with pytest.raises(UserAgentsExhausted) as exc:
        await validate_user_agent(["a", "b", "c"], probe)
    assert calls == ["a", "b", "c"]
    assert exc.value.attempts == 3


async def test_transport_error_counts_as_attempt() -> None:
    probe, calls = _recording_probe({"a": httpx.ConnectError("refused"), "b": 200})
    assert await validate_user_agent(["a", "b"], probe) == "b"
    assert calls == ["a", "b"]


async def test_empty_pool_is_config_error() -> None:
    probe, calls = _recording_probe({})
    with pytest.raises(ConfigError):
        await validate_user_agent([], probe)
    assert calls == []
