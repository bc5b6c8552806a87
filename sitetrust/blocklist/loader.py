"""Blocklist file loading.

Blocklists are plain text files, one pattern per line. Blank lines and
``#`` comments are ignored. Hosts-file entries (``0.0.0.0 example.com`` or
``127.0.0.1 example.com``) are reduced to their domain.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional

from ..errors import ListLoadError
from ..utils.domains import normalize_hostname

logger = logging.getLogger(__name__)

HOSTS_PREFIXES = ("0.0.0.0 ", "127.0.0.1 ")

# Used when the blocklist directory cannot be enumerated.
DEFAULT_BLOCKLIST_NAMES: list[str] = [
    "drugs.txt",
    "phishing.txt",
    "malware.txt",
    "fraud.txt",
    "porn.txt",
    "scam.txt",
]


@dataclass(frozen=True)
class BlockList:
    """A named, immutable set of domain patterns."""

    name: str
    patterns: tuple[str, ...] = ()
    entries: frozenset[str] = field(init=False)

    def __post_init__(self):
        object.__setattr__(self, "entries", frozenset(self.patterns))

    def __len__(self) -> int:
        return len(self.patterns)


def parse_blocklist(text: str) -> list[str]:
    """Parse blocklist text into normalized patterns, keeping file order."""
    patterns: list[str] = []
    seen: set[str] = set()
    for line in text.splitlines():
        value = line.strip()
        if not value or value.startswith("#"):
            continue
        for prefix in HOSTS_PREFIXES:
            if value.startswith(prefix):
                value = value[len(prefix):].strip()
                break
        # Drop trailing inline comments and extra columns.
        value = value.split("#", 1)[0].strip()
        if not value:
            continue
        pattern = normalize_hostname(value.split()[0])
        if not pattern or pattern in seen:
            continue
        seen.add(pattern)
        patterns.append(pattern)
    return patterns


class BlockListSource:
    """Reads named blocklists from a directory."""

    def __init__(self, directory: Path, default_names: Optional[list[str]] = None):
        self.directory = Path(directory)
        self.default_names = list(default_names or DEFAULT_BLOCKLIST_NAMES)

    def list_available(self) -> list[str]:
        """Enumerate ``*.txt`` lists, falling back to the default category names."""
        try:
            names = sorted(
                path.name
                for path in self.directory.iterdir()
                if path.is_file() and path.suffix == ".txt" and not path.name.startswith(".")
            )
        except OSError as e:
            logger.warning(f"Could not enumerate blocklists in {self.directory}: {e}")
            return list(self.default_names)
        return names

    def load(self, name: str) -> BlockList:
        """Load a single list by file name."""
        path = self.directory / name
        try:
            text = path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            raise ListLoadError(name, str(e)) from e
        patterns = parse_blocklist(text)
        logger.debug(f"Loaded blocklist {name}: {len(patterns)} entries")
        return BlockList(name=name, patterns=tuple(patterns))

    def load_all(self, names: Optional[Iterable[str]] = None) -> list[BlockList]:
        """Load every named list; unreadable lists are logged and treated as empty."""
        lists: list[BlockList] = []
        for name in names if names is not None else self.list_available():
            try:
                lists.append(self.load(name))
            except ListLoadError as e:
                logger.warning(str(e))
                lists.append(BlockList(name=name))
        return lists
