"""Offline domain-name heuristics."""

from __future__ import annotations

import re
from typing import Iterable, Optional, Pattern

from ..models import HeuristicFinding, Severity
from ..utils.domains import normalize_hostname, public_suffix

SOURCE = "domain_heuristics"

DEFAULT_SUSPICIOUS_PATTERNS: list[str] = [
    r"\d{4,}",  # long digit runs
    r"-\d+$",  # trailing -digits
    r"[a-z]{20,}",  # very long label without separators
    r"(.)\1{3,}",  # repeated characters (aaaa)
]

DEFAULT_SUSPICIOUS_TLDS: set[str] = {
    "tk",
    "ml",
    "ga",
    "cf",
    "gq",
    "xyz",
    "top",
    "work",
    "click",
}


class HeuristicAnalyzer:
    """Flags hostnames that look machine-generated or use throwaway TLDs.

    Rules run in priority order and the first hit is the only finding: name
    patterns first, then the TLD denylist. Penalties are not stacked across
    rules; one coarse tag is reported per hostname.
    """

    def __init__(
        self,
        penalty: float,
        suspicious_patterns: Optional[Iterable[str]] = None,
        suspicious_tlds: Optional[Iterable[str]] = None,
    ):
        self.penalty = penalty
        self.patterns: list[Pattern[str]] = [
            re.compile(p)
            for p in (DEFAULT_SUSPICIOUS_PATTERNS if suspicious_patterns is None else suspicious_patterns)
        ]
        self.suspicious_tlds = {
            t.lower().lstrip(".")
            for t in (DEFAULT_SUSPICIOUS_TLDS if suspicious_tlds is None else suspicious_tlds)
        }

    def evaluate(self, hostname: str) -> HeuristicFinding:
        host = normalize_hostname(hostname)

        for pattern in self.patterns:
            if pattern.search(host):
                return self._suspicious("⚠ Suspicious domain name")

        if self._has_suspicious_tld(host):
            return self._suspicious("⚠ High-risk domain extension")

        return HeuristicFinding(
            source=SOURCE,
            is_suspicious=False,
            penalty=0.0,
            reason="✓ Domain looks legitimate",
            severity=Severity.SAFE,
        )

    def _has_suspicious_tld(self, host: str) -> bool:
        suffix = public_suffix(host)
        if suffix:
            # Compare the last label so "co.tk"-style suffixes still hit "tk".
            return suffix in self.suspicious_tlds or suffix.rsplit(".", 1)[-1] in self.suspicious_tlds
        return any(host.endswith("." + tld) for tld in self.suspicious_tlds)

    def _suspicious(self, reason: str) -> HeuristicFinding:
        return HeuristicFinding(
            source=SOURCE,
            is_suspicious=True,
            penalty=self.penalty,
            reason=reason,
            severity=Severity.MEDIUM,
        )
