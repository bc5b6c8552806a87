"""
Command-line interface for sitetrust.

Usage:
    sitetrust check example.com
    sitetrust check http://phishing-test.tk --scale 5pt --json
    sitetrust report https://scam.example
    sitetrust unreport https://scam.example
    sitetrust serve --port 8080
    sitetrust --env-file /etc/sitetrust/sitetrust.env check example.com
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from dataclasses import replace
from typing import Optional

from dotenv import dotenv_values

from .config import EngineConfig, load_config, validate_config
from .errors import InvalidTargetError
from .models import ScoreReport
from .pipeline import AnalysisEngine
from .storage.reports import ReportStore
from .utils.domains import parse_target

logger = logging.getLogger(__name__)


def _load_env_file(path: str) -> None:
    """Load environment variables from a .env-style file."""
    values = dotenv_values(path)
    for key, value in values.items():
        if value is None:
            continue
        os.environ[key] = value


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[
            logging.StreamHandler(sys.stderr),
        ],
    )


def format_report(report: ScoreReport) -> str:
    """Human-readable rendering of a report."""
    lines = [
        f"{report.hostname}: {report.final_score}/{report.max_score:g} ({report.description})",
    ]
    for tag in report.tags:
        lines.append(f"  {tag}")
    if report.penalty_breakdown:
        lines.append("Penalties:")
        for entry in report.penalty_breakdown:
            lines.append(f"  {entry.source}: {entry.delta:g}")
    if report.provider_links:
        lines.append("Provider reports:")
        for source, link in report.provider_links:
            lines.append(f"  {source}: {link}")
    return "\n".join(lines)


async def _check(config: EngineConfig, url: str, as_json: bool) -> int:
    if config.reports_db is not None:
        async with ReportStore(config.reports_db) as store:
            report = await AnalysisEngine.from_config(config, report_store=store).analyze(url)
    else:
        report = await AnalysisEngine.from_config(config).analyze(url)

    if as_json:
        print(json.dumps(report.to_dict(), ensure_ascii=False, indent=2))
    else:
        print(format_report(report))
    return 0


async def _report(config: EngineConfig, url: str, remove: bool) -> int:
    if config.reports_db is None:
        print("REPORTS_DB is not set; report storage is disabled", file=sys.stderr)
        return 2

    target = parse_target(url)
    async with ReportStore(config.reports_db) as store:
        if remove:
            removed = await store.remove_report(target.hostname)
            print(f"Removed report for {target.hostname}" if removed else f"No report for {target.hostname}")
        else:
            record = await store.save_report(target.url, target.hostname)
            print(f"Reported {record.hostname} at {record.reported_at_display()}")
    return 0


async def _serve(config: EngineConfig, host: str, port: int) -> int:
    from .server import AnalysisServer

    server = AnalysisServer(host, port, config)
    await server.start()
    try:
        await asyncio.Event().wait()
    finally:
        await server.stop()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="sitetrust", description="Score how trustworthy a URL is.")
    parser.add_argument("--env-file", help="Load environment variables from a .env file first")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    check = sub.add_parser("check", help="Analyze a URL and print its score")
    check.add_argument("url")
    check.add_argument("--scale", choices=["5pt", "100pt"], help="Score scale (default from SITETRUST_SCALE)")
    check.add_argument("--json", action="store_true", help="Print the report as JSON")

    report = sub.add_parser("report", help="Record a URL as reported unsafe")
    report.add_argument("url")

    unreport = sub.add_parser("unreport", help="Remove a stored report")
    unreport.add_argument("url")

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8080)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    _setup_logging(args.verbose)

    if args.env_file:
        _load_env_file(args.env_file)
        logger.debug("Loaded environment from %s", args.env_file)

    config = load_config()
    if getattr(args, "scale", None):
        config = replace(config, scale=args.scale, weights=None)

    errors = validate_config(config)
    if errors:
        for error in errors:
            print(f"Config error: {error}", file=sys.stderr)
        return 2

    try:
        if args.command == "check":
            return asyncio.run(_check(config, args.url, args.json))
        if args.command == "report":
            return asyncio.run(_report(config, args.url, remove=False))
        if args.command == "unreport":
            return asyncio.run(_report(config, args.url, remove=True))
        if args.command == "serve":
            return asyncio.run(_serve(config, args.host, args.port))
    except InvalidTargetError as e:
        print(f"Invalid URL: {e}", file=sys.stderr)
        return 2
    except KeyboardInterrupt:
        return 130
    return 1
