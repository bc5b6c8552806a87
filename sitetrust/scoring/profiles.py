"""Scoring scales and weight presets.

Weights are positive deductions from the scale maximum. Two presets exist:
``5pt`` (star rating) and ``100pt`` (percentage). Any weight can be
overridden through ``ScoringWeights.with_overrides`` or ``scoring.yaml``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields, replace
from typing import Any, Optional

from ..models import SeverityClass, ThreatCategory, TrustLabel

logger = logging.getLogger(__name__)

SCALE_5PT = "5pt"
SCALE_100PT = "100pt"


@dataclass(frozen=True)
class ScoringWeights:
    """Penalty table for one scale."""

    # Penalty for 1, 2, and 3+ blocklist matches.
    blocklist_steps: tuple[float, float, float] = (40.0, 70.0, 90.0)
    insecure_http: float = 20.0
    certificate_invalid: float = 40.0
    certificate_unverifiable: float = 20.0
    suspicious_domain: float = 20.0
    intel_malicious: float = 30.0
    # (minimum detections, penalty), highest matching tier wins.
    detection_tiers: tuple[tuple[int, float], ...] = ((1, 10.0), (5, 25.0), (10, 40.0))
    # (reputation strictly below, penalty), highest matching tier wins.
    reputation_tiers: tuple[tuple[int, float], ...] = ((-10, 5.0), (-50, 15.0))
    category_penalties: dict[ThreatCategory, float] = field(
        default_factory=lambda: {
            ThreatCategory.PHISHING: 20.0,
            ThreatCategory.MALWARE: 30.0,
            ThreatCategory.SPAM: 10.0,
            ThreatCategory.CRYPTO_MINING: 15.0,
            ThreatCategory.COMMAND_AND_CONTROL: 35.0,
        }
    )

    def with_overrides(self, overrides: dict[str, Any]) -> "ScoringWeights":
        """Return a copy with values from a plain mapping (e.g. parsed YAML)."""
        known = {f.name for f in fields(self)}
        changes: dict[str, Any] = {}
        for key, value in (overrides or {}).items():
            if key not in known:
                logger.warning("Unknown scoring weight: %s", key)
                continue
            try:
                changes[key] = _coerce_weight(key, value, getattr(self, key))
            except (TypeError, ValueError) as exc:
                logger.warning("Invalid value for scoring weight %s: %s", key, exc)
        return replace(self, **changes)


def _coerce_weight(key: str, value: Any, current: Any) -> Any:
    if key == "blocklist_steps":
        steps = tuple(float(v) for v in value)
        if len(steps) != 3:
            raise ValueError("expected three steps")
        return steps
    if key in ("detection_tiers", "reputation_tiers"):
        return tuple(sorted(((int(t), float(p)) for t, p in value), key=lambda item: abs(item[0])))
    if key == "category_penalties":
        merged = dict(current)
        for name, penalty in dict(value).items():
            merged[ThreatCategory(str(name))] = float(penalty)
        return merged
    return float(value)


WEIGHTS_100PT = ScoringWeights()

WEIGHTS_5PT = ScoringWeights(
    blocklist_steps=(2.0, 3.5, 4.5),
    insecure_http=1.0,
    certificate_invalid=2.0,
    certificate_unverifiable=1.0,
    suspicious_domain=1.0,
    intel_malicious=1.5,
    detection_tiers=((1, 0.5), (5, 1.25), (10, 2.0)),
    reputation_tiers=((-10, 0.25), (-50, 0.75)),
    category_penalties={
        ThreatCategory.PHISHING: 1.0,
        ThreatCategory.MALWARE: 1.5,
        ThreatCategory.SPAM: 0.5,
        ThreatCategory.CRYPTO_MINING: 0.75,
        ThreatCategory.COMMAND_AND_CONTROL: 1.75,
    },
)


@dataclass(frozen=True)
class ScoreBand:
    """Label assigned to scores at or above ``min_score``."""

    min_score: float
    label: TrustLabel
    title: str
    description: str
    severity_class: SeverityClass


@dataclass(frozen=True)
class ScaleProfile:
    """Everything that depends on the chosen scale."""

    name: str
    max_score: float
    weights: ScoringWeights
    # Ordered from highest threshold to lowest; the last band is the floor.
    bands: tuple[ScoreBand, ...]
    # (minimum score, tags) used when an analysis produced no tags at all.
    positive_tags: tuple[tuple[float, tuple[str, ...]], ...] = ()
    min_score: float = 0.0

    def band_for(self, score: float) -> ScoreBand:
        for band in self.bands:
            if score >= band.min_score:
                return band
        return self.bands[-1]

    def positive_tags_for(self, score: float) -> tuple[str, ...]:
        for threshold, tags in self.positive_tags:
            if score >= threshold:
                return tags
        return ()


POSITIVE_TAGS_FULL = ("✓ HTTPS secured", "✓ No threat detected", "✓ Trusted domain")

PROFILE_100PT = ScaleProfile(
    name=SCALE_100PT,
    max_score=100.0,
    weights=WEIGHTS_100PT,
    bands=(
        ScoreBand(
            80, TrustLabel.VERY_TRUSTWORTHY, "Very trustworthy",
            "This site shows solid security guarantees.", SeverityClass.GOOD,
        ),
        ScoreBand(
            50, TrustLabel.CAUTION, "Caution",
            "A few points of concern were detected on this domain.", SeverityClass.MEDIUM,
        ),
        ScoreBand(
            0, TrustLabel.RISKY, "Risky site",
            "This site shows a high risk of phishing or fraud.", SeverityClass.BAD,
        ),
    ),
    positive_tags=((90, ("✓ Secure site", "✓ Encrypted connection", "✓ No risk detected")),),
)

PROFILE_5PT = ScaleProfile(
    name=SCALE_5PT,
    max_score=5.0,
    weights=WEIGHTS_5PT,
    bands=(
        ScoreBand(
            4.5, TrustLabel.VERY_TRUSTWORTHY, "Very trustworthy",
            "Secure and trustworthy site", SeverityClass.GOOD,
        ),
        ScoreBand(
            3.5, TrustLabel.TRUSTWORTHY, "Trustworthy",
            "Generally safe site", SeverityClass.GOOD,
        ),
        ScoreBand(
            2.5, TrustLabel.CAUTION, "Attention required",
            "Suspicious elements detected", SeverityClass.MEDIUM,
        ),
        ScoreBand(
            1.5, TrustLabel.POTENTIALLY_RISKY, "Potentially risky",
            "Several risks detected", SeverityClass.BAD,
        ),
        ScoreBand(
            0, TrustLabel.VERY_RISKY, "Very risky",
            "Potentially malicious site", SeverityClass.BAD,
        ),
    ),
    positive_tags=(
        (4.5, POSITIVE_TAGS_FULL),
        (3.5, ("✓ No threat detected",)),
    ),
)

_PROFILES = {SCALE_100PT: PROFILE_100PT, SCALE_5PT: PROFILE_5PT}


def get_scale_profile(name: str, weights: Optional[ScoringWeights] = None) -> ScaleProfile:
    """Look up a scale preset, optionally swapping in custom weights."""
    key = (name or SCALE_100PT).strip().lower()
    if key in {"5", "5pt", "stars"}:
        key = SCALE_5PT
    elif key in {"100", "100pt", "percent"}:
        key = SCALE_100PT
    if key not in _PROFILES:
        raise ValueError(f"Unknown scale: {name!r} (expected '5pt' or '100pt')")
    profile = _PROFILES[key]
    if weights is not None:
        profile = replace(profile, weights=weights)
    return profile
