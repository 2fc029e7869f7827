"""CLI entrypoint for spa-sync-bridge."""

from __future__ import annotations

import argparse
import json
from pathlib import Path

from spabridge.app_config import AppConfig
from spabridge.errors import ConfigError
from spabridge.models import RunReport
from spabridge.runner import run_scenario
from spabridge.settings import load_settings
from spabridge.steps import parse_step, read_steps_file
from spabridge.storage import RUNS_DIR, latest_log_tail, latest_report, latest_status


def main(argv: list[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command == "run":
        run_command(
            args.url,
            steps=list(args.step or []),
            steps_file=args.steps_file,
            config_assignments=list(args.config or []),
            headed=args.headed,
        )
        return
    if args.command == "status":
        print(json.dumps(latest_status(), indent=2, ensure_ascii=False))
        return
    if args.command == "logs":
        logs_command(args.tail)
        return
    if args.command == "report":
        report_command()
        return

    parser.print_help()


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="spabridge", description="Drive a single-page app through its test hook.")
    subparsers = parser.add_subparsers(dest="command")

    run_parser = subparsers.add_parser("run", help='Run steps: spabridge run URL --step "I press \\"OK\\" in the app"')
    run_parser.add_argument("url", type=str)
    run_parser.add_argument("--step", action="append", help="Scenario step (repeatable).")
    run_parser.add_argument("--steps-file", type=Path, help="File with one step per line; # starts a comment.")
    run_parser.add_argument(
        "--config",
        action="append",
        metavar="KEY=JSON",
        help="App config override applied at launch (repeatable).",
    )
    run_parser.add_argument("--headed", action="store_true", help="Show the browser window.")

    subparsers.add_parser("status", help="Show latest run status")

    logs_parser = subparsers.add_parser("logs", help="Tail the bridge log of the latest run")
    logs_parser.add_argument("--tail", type=int, default=200)

    subparsers.add_parser("report", help="Print the latest run report; exit non-zero if it failed")
    return parser


def run_command(
    url: str,
    *,
    steps: list[str],
    steps_file: Path | None,
    config_assignments: list[str],
    headed: bool,
) -> None:
    all_steps = list(steps)
    if steps_file is not None:
        if not steps_file.exists():
            raise SystemExit(f"Steps file not found: {steps_file}")
        all_steps.extend(read_steps_file(steps_file.read_text(encoding="utf-8").splitlines()))
    if not all_steps:
        raise SystemExit("No steps given. Use --step or --steps-file.")
    for text in all_steps:
        try:
            parse_step(text)
        except ValueError as exc:
            raise SystemExit(str(exc)) from exc

    config = AppConfig()
    for assignment in config_assignments:
        try:
            config.parse_assignment(assignment)
        except ConfigError as exc:
            raise SystemExit(str(exc)) from exc

    report = run_scenario(url, all_steps, app_config=config, settings=load_settings(), headed=headed)
    _print_report(report)


def logs_command(tail_count: int) -> None:
    lines = latest_log_tail(tail_count)
    if lines is None:
        raise SystemExit(f"No runs recorded under {RUNS_DIR}/")
    print("\n".join(lines))


def report_command() -> None:
    try:
        report = latest_report()
    except ValueError as exc:
        raise SystemExit(f"Latest report is unreadable: {exc}") from exc
    if report is None:
        raise SystemExit(f"No finished run recorded under {RUNS_DIR}/")
    _print_report(report)


def _print_report(report: RunReport) -> None:
    print(json.dumps(report.to_dict(), indent=2, ensure_ascii=False))
    if report.result != "success":
        raise SystemExit(f"Step failed: {report.failed_step} ({report.error})")


if __name__ == "__main__":
    main()
