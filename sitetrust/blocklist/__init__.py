"""Blocklist loading and domain matching."""

from .loader import DEFAULT_BLOCKLIST_NAMES, BlockList, BlockListSource, parse_blocklist
from .matcher import analyze_against_all_lists, format_list_label, matches

__all__ = [
    "DEFAULT_BLOCKLIST_NAMES",
    "BlockList",
    "BlockListSource",
    "parse_blocklist",
    "analyze_against_all_lists",
    "format_list_label",
    "matches",
]
