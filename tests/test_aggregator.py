"""Tests for score aggregation."""

import pytest

from sitetrust.models import (
    AccessibilityResult,
    HeuristicFinding,
    Severity,
    SeverityClass,
    ThreatCategory,
    TrustLabel,
    Verdict,
)
from sitetrust.scoring import DEGRADED_TAG, PROFILE_5PT, PROFILE_100PT, ScoreAggregator
from sitetrust.scoring.aggregator import round_half_up


def _finding(source: str, penalty: float, reason: str, severity: Severity = Severity.MEDIUM):
    return HeuristicFinding(
        source=source,
        is_suspicious=penalty > 0,
        penalty=penalty,
        reason=reason,
        severity=severity,
    )


SAFE_FINDINGS = [
    _finding("https", 0, "✓ HTTPS enabled", Severity.SAFE),
    _finding("domain_heuristics", 0, "✓ Domain looks legitimate", Severity.SAFE),
]


@pytest.fixture
def aggregator():
    return ScoreAggregator(PROFILE_100PT)


class TestScoreAggregator:
    """Penalty policy, tags and bands on the 100-point scale."""

    def test_clean_site_gets_positive_tags(self, aggregator):
        report = aggregator.aggregate([], SAFE_FINDINGS, [])
        assert report.final_score == 100
        assert report.label == TrustLabel.VERY_TRUSTWORTHY
        assert report.severity_class == SeverityClass.GOOD
        assert report.tags == ("✓ Secure site", "✓ Encrypted connection", "✓ No risk detected")
        assert report.penalty_breakdown == ()
        assert not report.degraded

    def test_blocklist_step_penalty(self, aggregator):
        assert [aggregator.blocklist_penalty(n) for n in range(5)] == [0, 40, 70, 90, 90]

    def test_more_matches_never_improve_the_score(self, aggregator):
        scores = [
            aggregator.aggregate([f"✗ Matched \"List {i}\"" for i in range(n)], [], []).final_score
            for n in range(6)
        ]
        assert scores == sorted(scores, reverse=True)

    def test_score_is_clamped_at_zero(self, aggregator):
        findings = [
            _finding("https", 20, "✗ Site not secure (HTTP)", Severity.HIGH),
            _finding("domain_heuristics", 20, "⚠ High-risk domain extension"),
        ]
        verdict = Verdict(
            source="urlscanner",
            malicious=True,
            categories=frozenset(ThreatCategory),
            numeric_penalty=30.0,
        )
        report = aggregator.aggregate(['✗ Matched "Phishing"'] * 3, findings, [verdict])
        assert report.final_score == 0
        assert report.label == TrustLabel.RISKY
        assert report.total_penalty > 100

    def test_tag_order_and_breakdown(self, aggregator):
        findings = [
            _finding("https", 20, "✗ Site not secure (HTTP)", Severity.HIGH),
            _finding("domain_heuristics", 20, "⚠ High-risk domain extension"),
            _finding("mixed_content", 0, "", Severity.SAFE),
        ]
        report = aggregator.aggregate(
            ['✗ Matched "Phishing"'],
            findings,
            [],
            reported_advisory="⚠ This site was already reported (2024-05-01 10:00 UTC).",
        )
        assert report.tags == (
            "⚠ This site was already reported (2024-05-01 10:00 UTC).",
            "✗ Site not secure (HTTP)",
            "⚠ High-risk domain extension",
            '✗ Matched "Phishing"',
        )
        assert [(e.source, e.delta) for e in report.penalty_breakdown] == [
            ("blocklists", -40.0),
            ("https", -20.0),
            ("domain_heuristics", -20.0),
        ]
        assert report.final_score == 20

    def test_low_detection_tier_and_reputation(self, aggregator):
        verdict = Verdict(
            source="virustotal",
            malicious=True,
            raw_score_fraction="3/97",
            detections=3,
            total_engines=97,
            reputation=-43,
        )
        assert aggregator.detection_penalty(3) == 10.0
        assert aggregator.reputation_penalty(-43) == 5.0
        assert aggregator.reputation_penalty(-60) == 15.0
        assert aggregator.reputation_penalty(0) == 0.0

        report = aggregator.aggregate([], SAFE_FINDINGS, [verdict])
        assert report.final_score == 85
        assert report.tags == (
            "✗ VirusTotal: 3/97 engines flagged this URL",
            "⚠ Poor VirusTotal reputation (-43)",
        )

    def test_command_and_control_is_the_heaviest_category(self, aggregator):
        penalties = {c: aggregator.category_penalty([c]) for c in ThreatCategory}
        assert max(penalties, key=penalties.get) == ThreatCategory.COMMAND_AND_CONTROL

        verdict = Verdict(
            source="urlscanner",
            malicious=True,
            categories=frozenset({ThreatCategory.COMMAND_AND_CONTROL}),
            numeric_penalty=30.0,
        )
        report = aggregator.aggregate([], SAFE_FINDINGS, [verdict])
        assert ("threat_categories", -35.0) in [(e.source, e.delta) for e in report.penalty_breakdown]
        assert report.final_score == 35
        assert report.tags == (
            "✗ Flagged as malicious by Cloudflare URL Scanner",
            "✗ Command and control detected",
        )

    def test_shared_category_is_charged_once(self, aggregator):
        verdicts = [
            Verdict(source="urlscanner", malicious=True, categories=frozenset({ThreatCategory.PHISHING})),
            Verdict(source="virustotal", malicious=True, categories=frozenset({ThreatCategory.PHISHING})),
        ]
        report = aggregator.aggregate([], [], verdicts)
        assert report.final_score == 80
        assert report.tags.count("✗ Phishing detected") == 1

    def test_provider_links_are_exposed(self, aggregator):
        verdicts = [
            Verdict(source="urlscanner", result_url="https://radar.cloudflare.com/scan/scan-1"),
            Verdict(source="virustotal"),
        ]
        report = aggregator.aggregate([], SAFE_FINDINGS, verdicts)
        assert report.provider_links == (("urlscanner", "https://radar.cloudflare.com/scan/scan-1"),)
        assert report.to_dict()["provider_links"] == {
            "urlscanner": "https://radar.cloudflare.com/scan/scan-1",
        }

    def test_degraded_tag_is_appended_last(self, aggregator):
        report = aggregator.aggregate([], SAFE_FINDINGS, [], degraded_sources=["virustotal"])
        assert report.tags[-1] == DEGRADED_TAG
        assert report.degraded_sources == ("virustotal",)
        assert report.degraded

    def test_unreachable(self, aggregator):
        access = AccessibilityResult(False, "✗ Site unreachable (DNS or connection failure)", Severity.CRITICAL)
        report = aggregator.unreachable(access, hostname="gone.example", url="https://gone.example")
        assert report.final_score == 0
        assert report.reachable is False
        assert report.tags == ("✗ Site unreachable (DNS or connection failure)",)
        assert report.to_dict()["reachable"] is False


class TestFivePointScale:
    """Band lookup and rounding on the star scale."""

    def test_bands(self):
        aggregator = ScoreAggregator(PROFILE_5PT)
        assert aggregator.classify(5).label == TrustLabel.VERY_TRUSTWORTHY
        assert aggregator.classify(4).label == TrustLabel.TRUSTWORTHY
        assert aggregator.classify(3).label == TrustLabel.CAUTION
        assert aggregator.classify(2).label == TrustLabel.POTENTIALLY_RISKY
        assert aggregator.classify(1).severity_class == SeverityClass.BAD

    def test_half_point_rounds_up(self):
        assert round_half_up(3.5) == 4
        assert round_half_up(2.5) == 3
        assert round_half_up(2.49) == 2

        aggregator = ScoreAggregator(PROFILE_5PT)
        findings = [_finding("https", 1.0, "✗ Site not secure (HTTP)", Severity.HIGH)]
        verdict = Verdict(source="virustotal", detections=1, raw_score_fraction="1/90")
        report = aggregator.aggregate([], findings, [verdict])
        assert report.final_score == 4
        assert report.label == TrustLabel.TRUSTWORTHY
        assert report.max_score == 5

    def test_positive_tags_by_score(self):
        aggregator = ScoreAggregator(PROFILE_5PT)
        assert len(aggregator.aggregate([], [], []).tags) == 3

    @pytest.mark.parametrize("matches", [0, 1, 2, 3, 7])
    def test_bounds(self, matches):
        aggregator = ScoreAggregator(PROFILE_5PT)
        findings = [_finding("https", 1.0, "✗ Site not secure (HTTP)", Severity.HIGH)]
        report = aggregator.aggregate(["✗ Matched \"X\""] * matches, findings, [])
        assert 0 <= report.final_score <= 5
