import json
from pathlib import Path

import httpx
import respx

from apihound.cli import build_parser, main

BASE = "https://example.com"


def _setup(tmp_path: Path) -> list:
    dictionary = tmp_path / "dict.txt"
    dictionary.write_text("admin\nlogin\nhealth\nboom\nsecret\n", encoding="utf-8")
    uas = tmp_path / "uas.txt"
    uas.write_text("ua1\n", encoding="utf-8")
    return [
        "--target",
        BASE,
        "--dictionary",
        str(dictionary),
        "--user-agent-file",
        str(uas),
        "--output",
        str(tmp_path / "out" / "report.json"),
        "--concurrency",
        "4",
    ]


def test_parser_defaults() -> None:
    args = build_parser().parse_args(["-t", BASE])
    assert args.concurrency == 20
    assert args.timeout == 10.0
    assert args.dictionary == Path("./config/api_dict.txt")
    assert args.output == Path("./config/scan_report.json")
    assert args.user_agent_file == Path("./config/user-agents.txt")


@respx.mock
def test_full_run_writes_report(tmp_path: Path) -> None:
    respx.get(BASE, path="/").mock(return_value=httpx.Response(200))
    respx.get(f"{BASE}/admin").mock(return_value=httpx.Response(200, text='{"password": "s3cr3t"}'))
    respx.get(f"{BASE}/login").mock(return_value=httpx.Response(404))
    respx.get(f"{BASE}/health").mock(return_value=httpx.Response(200, text="ok"))
    respx.get(f"{BASE}/boom").mock(return_value=httpx.Response(502))
    respx.get(f"{BASE}/secret").mock(return_value=httpx.Response(403))

    assert main(_setup(tmp_path)) == 0

    data = json.loads((tmp_path / "out" / "report.json").read_text(encoding="utf-8"))
    assert [r["path"] for r in data["basic_results"]] == ["admin"]
    assert len(data["sensitive_findings"]) == 1
    assert data["error_count"] == 1
    assert data["forbidden_urls"] == [f"{BASE}/secret"]
    assert data["scan_config"] == {"target": BASE, "paths_scanned": 5}


def test_bad_concurrency_exits_before_network(tmp_path: Path) -> None:
    with respx.mock(assert_all_called=False) as mock:
        assert main(_setup(tmp_path) + ["--concurrency", "0"]) == 1
        assert not mock.calls


@respx.mock
def test_user_agent_exhaustion_exits_with_error(tmp_path: Path) -> None:
    respx.get(BASE, path="/").mock(return_value=httpx.Response(403))
    assert main(_setup(tmp_path)) == 1
    assert not (tmp_path / "out" / "report.json").exists()
