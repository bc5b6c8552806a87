"""Result types shared across the sitetrust analysis pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class Severity(str, Enum):
    """Severity attached to a single check message."""

    SAFE = "safe"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class SeverityClass(str, Enum):
    """Coarse colour class for a final score."""

    GOOD = "good"
    MEDIUM = "medium"
    BAD = "bad"


class TrustLabel(str, Enum):
    """Human-facing trust level of a final score."""

    VERY_TRUSTWORTHY = "very_trustworthy"
    TRUSTWORTHY = "trustworthy"
    CAUTION = "caution"
    POTENTIALLY_RISKY = "potentially_risky"
    RISKY = "risky"
    VERY_RISKY = "very_risky"


class ThreatCategory(str, Enum):
    """Fixed threat taxonomy that provider vocabularies are mapped into."""

    PHISHING = "phishing"
    MALWARE = "malware"
    SPAM = "spam"
    CRYPTO_MINING = "crypto_mining"
    COMMAND_AND_CONTROL = "command_and_control"


@dataclass(frozen=True)
class Target:
    """A validated analysis target."""

    url: str
    hostname: str
    scheme: str


@dataclass(frozen=True)
class HeuristicFinding:
    """Outcome of one heuristic or technical check."""

    source: str
    is_suspicious: bool
    penalty: float
    reason: str
    severity: Severity = Severity.SAFE

    @property
    def is_problem(self) -> bool:
        """Whether the message should surface as a warning tag."""
        return bool(self.reason) and self.severity != Severity.SAFE


@dataclass(frozen=True)
class AccessibilityResult:
    """Result of the reachability probe."""

    is_accessible: bool
    message: str
    severity: Severity = Severity.SAFE
    status_code: Optional[int] = None


@dataclass(frozen=True)
class Verdict:
    """Normalized threat classification from one provider."""

    source: str
    malicious: bool = False
    categories: frozenset[ThreatCategory] = frozenset()
    numeric_penalty: float = 0.0
    raw_score_fraction: Optional[str] = None
    detections: Optional[int] = None
    total_engines: Optional[int] = None
    reputation: Optional[int] = None
    # Link to the provider's own report for this URL.
    result_url: Optional[str] = None


@dataclass(frozen=True)
class PenaltyEntry:
    """One line of the penalty breakdown."""

    source: str
    delta: float


@dataclass(frozen=True)
class ScoreReport:
    """Final, immutable outcome of one analysis."""

    final_score: int
    max_score: float
    scale: str
    label: TrustLabel
    description: str
    severity_class: SeverityClass
    tags: tuple[str, ...] = ()
    penalty_breakdown: tuple[PenaltyEntry, ...] = ()
    hostname: str = ""
    url: str = ""
    reachable: bool = True
    degraded_sources: tuple[str, ...] = field(default_factory=tuple)
    # (provider, report URL) for each verdict that links to the provider's report.
    provider_links: tuple[tuple[str, str], ...] = ()

    @property
    def degraded(self) -> bool:
        return bool(self.degraded_sources)

    @property
    def total_penalty(self) -> float:
        return -sum(entry.delta for entry in self.penalty_breakdown)

    def to_dict(self) -> dict:
        return {
            "url": self.url,
            "hostname": self.hostname,
            "score": self.final_score,
            "max_score": self.max_score,
            "scale": self.scale,
            "label": self.label.value,
            "description": self.description,
            "severity_class": self.severity_class.value,
            "tags": list(self.tags),
            "penalties": [
                {"source": entry.source, "delta": entry.delta}
                for entry in self.penalty_breakdown
            ],
            "reachable": self.reachable,
            "degraded_sources": list(self.degraded_sources),
            "provider_links": dict(self.provider_links),
        }
