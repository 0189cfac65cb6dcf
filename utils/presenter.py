"""Render a Report as plain text for clipboard and console output."""

from config.sources import display_name
from models.report import Report
from models.search_result import DEFAULT_DESCRIPTION, SearchResultItem

DEFAULT_MAX_ITEMS = 5
MAX_DESCRIPTION_CHARS = 300


def _trim_text(text: str, limit: int = MAX_DESCRIPTION_CHARS) -> str:
    raw = (text or "").strip()
    if len(raw) <= limit:
        return raw
    return raw[: limit - 3].rstrip() + "..."


def _render_item(index: int, item: SearchResultItem) -> list[str]:
    lines = [f"{index}. {item.title}"]
    if item.url:
        lines.append(f"   URL: {item.url}")
    if item.description and item.description != DEFAULT_DESCRIPTION:
        lines.append(f"   {_trim_text(item.description)}")
    if item.published_at:
        lines.append(f"   Published: {item.published_at}")
    if item.author:
        lines.append(f"   Author: {item.author}")
    if item.source_name:
        lines.append(f"   Source: {item.source_name}")
    lines.append("")
    return lines


def render_report(report: Report, max_items: int = DEFAULT_MAX_ITEMS) -> str:
    """
    Render the report as text.

    Deterministic for a given report: no clock reads, sources in outcome
    order, errors in the order they were recorded.

    Args:
        report: Report to render
        max_items: Items shown per source

    Returns:
        Multi-line summary ending with a newline
    """
    lines = [
        f'Deep Research Results for: "{report.query}"',
        f"Generated: {report.timestamp}",
        f"Total Results: {report.total_results}",
        f"Sources: {report.success_count} succeeded, {report.error_count} failed",
    ]
    if report.attempted_sources:
        lines.append("Queried: " + ", ".join(display_name(s) for s in report.attempted_sources))
    lines.append("")

    for source_id, outcome in report.outcomes.items():
        label = display_name(source_id)
        if outcome.fallback_query:
            label += " (Fallback)"
        lines.append(f"=== {label} ({outcome.result_count} results) ===")
        if not outcome.items:
            lines.append("No results.")
            lines.append("")
        for index, item in enumerate(outcome.items[:max_items], start=1):
            lines.extend(_render_item(index, item))

    if report.errors:
        lines.append("=== ERRORS ===")
        for error in report.errors:
            lines.append(f"{error.source_id}: {error.message}")
        lines.append("")

    return "\n".join(lines).rstrip("\n") + "\n"


def render_notification(report: Report) -> tuple[str, str]:
    """Title and one-line message for the end-of-run notification."""
    if report.all_failed:
        return (
            "Research Failed",
            "All sources failed. Check your configuration and network connection.",
        )
    return (
        "Research Complete",
        f"{report.success_count} sources succeeded. Total: {report.total_results} results",
    )


def render_failure(report: Report) -> str:
    """Error text delivered in place of results when every source failed."""
    details = "; ".join(f"{error.source_id}: {error.message}" for error in report.errors)
    return f'Research failed for "{report.query}". {details}'.strip()
