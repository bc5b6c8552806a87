"""Domain matching against blocklists.

Matching is attempted in a fixed order and the first rule that succeeds wins:

1. Exact entry (``example.com`` matches ``example.com``).
2. Parent domain (``example.com`` also matches ``a.sub.example.com``).
3. Wildcard (``*.example.com`` matches ``example.com`` and its subdomains).

Wildcard suffixes must sit on a label boundary, so ``*.example.com`` never
matches ``notexample.com``.
"""

from __future__ import annotations

import re
from pathlib import PurePosixPath
from typing import TYPE_CHECKING, Iterable

from ..utils.domains import normalize_hostname

if TYPE_CHECKING:
    from .loader import BlockList

_SEPARATORS = re.compile(r"[-_]")


def _entry_set(entries: Iterable[str]) -> frozenset[str]:
    # BlockList entries are normalized at load time.
    if isinstance(entries, frozenset):
        return entries
    return frozenset(normalize_hostname(entry) for entry in entries)


def matches(hostname: str, entries: Iterable[str]) -> bool:
    """Return True if ``hostname`` is covered by any of ``entries``."""
    host = normalize_hostname(hostname)
    if not host:
        return False
    entry_set = _entry_set(entries)
    if not entry_set:
        return False

    if host in entry_set:
        return True

    labels = host.split(".")
    for i in range(1, len(labels)):
        parent = ".".join(labels[i:])
        if parent and parent in entry_set:
            return True

    for entry in entry_set:
        if not entry.startswith("*."):
            continue
        pattern = entry[2:]
        if not pattern:
            continue
        if host == pattern or host.endswith("." + pattern):
            return True

    return False


def format_list_label(name: str) -> str:
    """Turn a list file name into a display label (``fake-shops.txt`` -> ``Fake shops``)."""
    base = PurePosixPath(name).stem
    base = _SEPARATORS.sub(" ", base).strip()
    if not base:
        return name
    return base[0].upper() + base[1:]


def match_label(name: str) -> str:
    return f'✗ Matched "{format_list_label(name)}"'


def analyze_against_all_lists(hostname: str, lists: Iterable["BlockList"]) -> list[str]:
    """Check a hostname against every list, returning one label per matching list.

    Labels keep list iteration order; a list name contributes at most once.
    """
    results: list[str] = []
    seen: set[str] = set()
    for blocklist in lists:
        if blocklist.name in seen or not blocklist.entries:
            continue
        if matches(hostname, blocklist.entries):
            seen.add(blocklist.name)
            results.append(match_label(blocklist.name))
    return results
