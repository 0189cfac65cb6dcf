"""
Models package for normalized search results and aggregated reports.
"""

from .report import Report, ReportError
from .search_result import SearchResultItem, SourceOutcome
from .shortcut_params import ShortcutParameters

__all__ = ["Report", "ReportError", "SearchResultItem", "ShortcutParameters", "SourceOutcome"]
