"""Combines blocklist, heuristic and threat-intel signals into one score."""

from __future__ import annotations

import logging
import math
from typing import Iterable, Optional, Sequence

from ..intel.categories import CATEGORY_LABELS
from ..models import (
    AccessibilityResult,
    HeuristicFinding,
    PenaltyEntry,
    ScoreReport,
    ThreatCategory,
    Verdict,
)
from .profiles import ScaleProfile, ScoreBand

logger = logging.getLogger(__name__)

DEGRADED_TAG = "⚠ Some sources were unavailable; score based on partial data"

PROVIDER_NAMES = {
    "urlscanner": "Cloudflare URL Scanner",
    "virustotal": "VirusTotal",
}


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _dedupe(items: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    result: list[str] = []
    for item in items:
        if item and item not in seen:
            seen.add(item)
            result.append(item)
    return result


class ScoreAggregator:
    """Applies a scale profile's weighting policy.

    - Blocklist matches cost a step penalty (1, 2, 3+ matches), not a linear one.
    - Heuristic and technical findings add up.
    - Each verdict costs its flat penalty plus a detection-count tier and a
      reputation tier; each confirmed category costs once, however many
      providers reported it.
    """

    def __init__(self, profile: ScaleProfile):
        self.profile = profile
        self.weights = profile.weights

    # -- penalty policy -----------------------------------------------------

    def blocklist_penalty(self, match_count: int) -> float:
        if match_count <= 0:
            return 0.0
        steps = self.weights.blocklist_steps
        return float(steps[min(match_count, len(steps)) - 1])

    def detection_penalty(self, detections: Optional[int]) -> float:
        penalty = 0.0
        if not detections:
            return penalty
        for threshold, tier_penalty in self.weights.detection_tiers:
            if detections >= threshold:
                penalty = tier_penalty
        return penalty

    def reputation_penalty(self, reputation: Optional[int]) -> float:
        penalty = 0.0
        if reputation is None:
            return penalty
        for threshold, tier_penalty in self.weights.reputation_tiers:
            if reputation < threshold:
                penalty = tier_penalty
        return penalty

    def intel_penalty(self, verdict: Verdict) -> float:
        return (
            verdict.numeric_penalty
            + self.detection_penalty(verdict.detections)
            + self.reputation_penalty(verdict.reputation)
        )

    def category_penalty(self, categories: Iterable[ThreatCategory]) -> float:
        return sum(self.weights.category_penalties.get(c, 0.0) for c in set(categories))

    # -- tags ---------------------------------------------------------------

    def _intel_tags(self, verdicts: Sequence[Verdict], categories: set[ThreatCategory]) -> list[str]:
        tags: list[str] = []
        for verdict in verdicts:
            provider = PROVIDER_NAMES.get(verdict.source, verdict.source)
            if verdict.detections:
                tags.append(f"✗ {provider}: {verdict.raw_score_fraction} engines flagged this URL")
            elif verdict.malicious:
                tags.append(f"✗ Flagged as malicious by {provider}")
            if self.reputation_penalty(verdict.reputation) > 0:
                tags.append(f"⚠ Poor {provider} reputation ({verdict.reputation})")
        # Taxonomy order keeps tags stable across providers.
        for category in ThreatCategory:
            if category in categories:
                tags.append(f"✗ {CATEGORY_LABELS[category]} detected")
        return tags

    # -- report -------------------------------------------------------------

    def classify(self, final_score: float) -> ScoreBand:
        """Band (label, description, severity class) for a final score."""
        return self.profile.band_for(final_score)

    def aggregate(
        self,
        matches: Sequence[str],
        findings: Sequence[HeuristicFinding],
        verdicts: Sequence[Verdict],
        *,
        hostname: str = "",
        url: str = "",
        reported_advisory: Optional[str] = None,
        degraded_sources: Sequence[str] = (),
    ) -> ScoreReport:
        breakdown: list[PenaltyEntry] = []

        block_penalty = self.blocklist_penalty(len(matches))
        if block_penalty:
            breakdown.append(PenaltyEntry("blocklists", -block_penalty))

        for finding in findings:
            if finding.penalty:
                breakdown.append(PenaltyEntry(finding.source, -finding.penalty))

        categories: set[ThreatCategory] = set()
        for verdict in verdicts:
            categories.update(verdict.categories)
            penalty = self.intel_penalty(verdict)
            if penalty:
                breakdown.append(PenaltyEntry(verdict.source, -penalty))

        cat_penalty = self.category_penalty(categories)
        if cat_penalty:
            breakdown.append(PenaltyEntry("threat_categories", -cat_penalty))

        raw = self.profile.max_score + sum(entry.delta for entry in breakdown)
        final_score = round_half_up(max(self.profile.min_score, min(self.profile.max_score, raw)))

        tags = _dedupe(
            ([reported_advisory] if reported_advisory else [])
            + [f.reason for f in findings if f.is_problem]
            + list(matches)
            + self._intel_tags(verdicts, categories)
        )
        if not tags:
            tags = list(self.profile.positive_tags_for(final_score))
        if degraded_sources:
            tags.append(DEGRADED_TAG)

        logger.debug(
            f"Aggregated {hostname or url}: raw={raw:.2f} final={final_score} "
            f"penalties={len(breakdown)}"
        )
        return self._report(
            final_score,
            tags=tags,
            breakdown=breakdown,
            hostname=hostname,
            url=url,
            degraded_sources=degraded_sources,
            provider_links=[(v.source, v.result_url) for v in verdicts if v.result_url],
        )

    def unreachable(
        self,
        accessibility: AccessibilityResult,
        *,
        hostname: str = "",
        url: str = "",
        reported_advisory: Optional[str] = None,
    ) -> ScoreReport:
        """Report for a target that failed the reachability gate."""
        tags = _dedupe(([reported_advisory] if reported_advisory else []) + [accessibility.message])
        return self._report(
            round_half_up(self.profile.min_score),
            tags=tags,
            breakdown=[],
            hostname=hostname,
            url=url,
            reachable=False,
        )

    def _report(
        self,
        final_score: int,
        *,
        tags: list[str],
        breakdown: list[PenaltyEntry],
        hostname: str,
        url: str,
        reachable: bool = True,
        degraded_sources: Sequence[str] = (),
        provider_links: Sequence[tuple[str, str]] = (),
    ) -> ScoreReport:
        band = self.classify(final_score)
        return ScoreReport(
            final_score=final_score,
            max_score=self.profile.max_score,
            scale=self.profile.name,
            label=band.label,
            description=band.description,
            severity_class=band.severity_class,
            tags=tuple(tags),
            penalty_breakdown=tuple(breakdown),
            hostname=hostname,
            url=url,
            reachable=reachable,
            degraded_sources=tuple(degraded_sources),
            provider_links=tuple(provider_links),
        )
