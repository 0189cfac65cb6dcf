#!/usr/bin/env python3
"""
Deep Research command line entry point.

    deep-research "quantum computing breakthroughs"   search and print
    deep-research                                     read the query from the clipboard
    deep-research --config                            print effective configuration
"""

import argparse
import json
import sys
from typing import Optional, Sequence

from dotenv import load_dotenv

load_dotenv()

from api.factory import build_source_clients
from config.config import Config
from host.capabilities import HostCapabilities, HostError
from models.report import Report
from models.shortcut_params import ShortcutParameters
from orchestrator.aggregator import ResearchAggregator
from utils.logger import get_logger
from utils.presenter import render_failure, render_notification, render_report

logger = get_logger(__name__)


class SetupError(Exception):
    """Nothing to search for, or the host cannot provide the query."""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="deep-research",
        description="Search Brave, NewsAPI, Newsdata.io and Google at once and summarize the results.",
    )
    parser.add_argument("query", nargs="*", help="Query text (default: clipboard contents)")
    parser.add_argument("--config", action="store_true", help="Print effective configuration as JSON and exit")
    parser.add_argument("--json", action="store_true", help="Print the report as JSON instead of text")
    parser.add_argument("--sources", help="Comma-separated source ids to query")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--sequential", action="store_true", help="Query sources one at a time")
    mode.add_argument("--parallel", action="store_true", help="Query sources concurrently")
    parser.add_argument("--max-results", type=int, help="Results per source")
    parser.add_argument("--timeout-ms", type=int, help="Per-request timeout in milliseconds")
    parser.add_argument("--retries", type=int, help="Attempts per source")
    parser.add_argument("--language", help="Result language code, e.g. en, de")
    parser.add_argument("--country", help="Two-letter country code for Brave and Newsdata.io")
    parser.add_argument(
        "--sort-by", choices=["publishedAt", "relevancy", "popularity"], help="NewsAPI sort order"
    )
    parser.add_argument("--category", help="Newsdata.io news category, e.g. technology")
    parser.add_argument("--freshness", help="Brave freshness filter: pd, pw, pm, py or a date range")
    parser.add_argument("--images", action="store_true", help="Add a Google image search pass")
    parser.add_argument(
        "--shortcut-parameter",
        help="Automation parameter: JSON object (query, API keys, options) or plain query text",
    )
    parser.add_argument("--no-clipboard", action="store_true", help="Do not copy the result to the clipboard")
    parser.add_argument("--no-notify", action="store_true", help="Do not show a notification")
    return parser


def build_parameters(args: argparse.Namespace) -> ShortcutParameters:
    """Merge the automation parameter object with CLI flags (flags win)."""
    params = ShortcutParameters.parse(args.shortcut_parameter)
    merged = params.model_dump(exclude_none=True)

    cli_values = {
        "enabled_sources": args.sources,
        "max_results_per_source": args.max_results,
        "timeout_ms": args.timeout_ms,
        "retry_count": args.retries,
        "scheduling_mode": "sequential" if args.sequential else ("parallel" if args.parallel else None),
        "copy_result_to_clipboard": False if args.no_clipboard else None,
        "show_notifications": False if args.no_notify else None,
        "language": args.language,
        "country": args.country,
        "sort_by": args.sort_by,
        "category": args.category,
        "freshness": args.freshness,
        "include_images": True if args.images else None,
    }
    merged.update({key: value for key, value in cli_values.items() if value is not None})
    return ShortcutParameters.model_validate(merged)


def resolve_query(args: argparse.Namespace, params: ShortcutParameters, host: HostCapabilities) -> str:
    """CLI words first, then the parameter object, then the clipboard."""
    if args.query:
        return " ".join(args.query)
    if params.query:
        return params.query

    logger.info("No query provided as argument, reading from clipboard")
    try:
        text = host.read_clipboard()
    except HostError as e:
        raise SetupError(str(e)) from e
    if not text or not text.strip():
        raise SetupError("Clipboard is empty or contains only whitespace")
    return text


def deliver(report: Report, text: str, config: Config, host: HostCapabilities) -> None:
    """Clipboard and notification output; failures here never fail the run."""
    settings = config.settings
    clipboard_text = render_failure(report) if report.all_failed else text

    if settings.copy_result_to_clipboard:
        try:
            host.write_clipboard(clipboard_text)
        except HostError as e:
            logger.error(f"Clipboard delivery failed: {e}")

    if settings.show_notifications:
        title, message = render_notification(report)
        if not report.all_failed and settings.copy_result_to_clipboard:
            message += ". Results copied to clipboard."
        try:
            host.notify(title, message)
        except HostError as e:
            logger.error(f"Notification delivery failed: {e}")


def main(argv: Optional[Sequence[str]] = None, host: Optional[HostCapabilities] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        params = build_parameters(args)
    except ValueError as e:
        print(f"Error: invalid parameters: {e}", file=sys.stderr)
        return 1

    if host is None:
        from host.desktop import DesktopHost

        host = DesktopHost()

    config = Config(overrides=params, credential_lookup=host.get_credential)

    if args.config:
        print(json.dumps(config.to_dict(redact=True), indent=2))
        return 0

    try:
        query = resolve_query(args, params, host)
    except SetupError as e:
        logger.error(f"Cannot start research: {e}")
        print(f"Error: {e}", file=sys.stderr)
        print('Usage: deep-research "your search query" or copy a query to the clipboard', file=sys.stderr)
        if config.settings.show_notifications:
            try:
                host.notify("Research Error", str(e))
            except HostError:
                logger.warning("Could not notify about setup error")
        return 1

    config.validate()
    aggregator = ResearchAggregator(
        build_source_clients(config, host),
        scheduling_mode=config.settings.scheduling_mode,
        search_options=config.search_options(),
    )
    report = aggregator.run_sync(query, config.enabled_sources)

    text = render_report(report, max_items=config.settings.max_results_per_source)
    if args.json:
        print(json.dumps(report.to_dict(), indent=2))
    else:
        print(text)

    deliver(report, text, config, host)
    return 0


if __name__ == "__main__":
    sys.exit(main())
