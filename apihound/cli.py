from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List

from rich.console import Console
from rich.logging import RichHandler
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn, TimeElapsedColumn

from .config import ScanConfig, load_paths, load_user_agents
from .errors import ScanError
from .reporter import print_summary, save_report
from .scanner import run_scan


def _configure_logging(debug: bool, verbose: bool) -> None:
    level = logging.DEBUG if debug else (logging.INFO if verbose else logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=debug, markup=False, show_time=False, show_path=False)],
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="apihound",
        description="Probe a target for live API paths and flag responses that leak sensitive information.",
    )
    parser.add_argument("-t", "--target", required=True, help="Target base URL (e.g. https://api.example.com)")
    parser.add_argument("-d", "--dictionary", type=Path, default=Path("./config/api_dict.txt"), help="Path dictionary file")
    parser.add_argument("-o", "--output", type=Path, default=Path("./config/scan_report.json"), help="JSON report path")
    parser.add_argument("-c", "--concurrency", type=int, default=20, help="Concurrent requests (1-100)")
    parser.add_argument("--timeout", type=float, default=10.0, help="Per-request timeout in seconds")
    parser.add_argument("--proxy", help="Proxy URL (e.g. http://localhost:8080)")
    parser.add_argument("--auth-token", help="Bearer token sent with every request")
    parser.add_argument(
        "--user-agent-file",
        type=Path,
        default=Path("./config/user-agents.txt"),
        help="User-Agent pool, one per line",
    )
    parser.add_argument("--include-paths", type=Path, help="Extra paths to scan, one per line")
    parser.add_argument("--exclude-paths", type=Path, help="Paths to skip, one per line")
    parser.add_argument("--insecure", action="store_true", help="Disable TLS verification")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging")
    parser.add_argument("--tui", action="store_true", help="Launch Textual TUI instead of Rich CLI")
    return parser


def config_from_args(args: argparse.Namespace) -> ScanConfig:
    return ScanConfig(
        target=args.target,
        dictionary=args.dictionary,
        output=args.output,
        concurrency=args.concurrency,
        timeout=args.timeout,
        proxy=args.proxy,
        auth_token=args.auth_token,
        user_agent_file=args.user_agent_file,
        include_paths=args.include_paths,
        exclude_paths=args.exclude_paths,
        insecure=args.insecure,
    )


def main(argv: List[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    _configure_logging(args.debug, args.verbose)
    console = Console()

    config = config_from_args(args)
    try:
        config.validate()
        paths = load_paths(config)
        user_agents = load_user_agents(config.user_agent_file)
    except ScanError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        return 1

    target = config.to_target(paths)
    console.print(f"Loaded {len(paths)} API paths for {target.base_url}")

    if args.tui:
        from .tui import ApiScanApp

        app = ApiScanApp(target, user_agents, output=config.output)
        app.run()
        return 0

    try:
        with Progress(
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            console=console,
            transient=True,
        ) as progress:
            task_id = progress.add_task("Scanning", total=len(paths))
            report = run_scan(
                target,
                user_agents,
                progress_cb=lambda done, total: progress.update(task_id, completed=done),
            )
    except ScanError as e:
        console.print(f"[red]Scan aborted:[/red] {e}")
        return 1

    print_summary(report, console=console)

    try:
        save_report(report, config.output)
    except ScanError as e:
        console.print(f"[red]{e}[/red]")
        return 1
    console.print(f"[green]JSON report written to[/green] {config.output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
