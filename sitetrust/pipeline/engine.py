"""Analysis engine: the single entry point that produces a ScoreReport."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Optional, Sequence

from ..analyzer.accessibility import AccessibilityProbe
from ..analyzer.heuristics import HeuristicAnalyzer
from ..analyzer.security import SecurityAnalyzer
from ..blocklist.loader import BlockListSource
from ..blocklist.matcher import analyze_against_all_lists
from ..config import EngineConfig, Timeouts
from ..intel.base import ThreatIntelAdapter
from ..intel.urlscanner import URLScannerAdapter
from ..intel.virustotal import VirusTotalAdapter
from ..models import ScoreReport, Verdict
from ..scoring.aggregator import ScoreAggregator
from ..scoring.profiles import ScaleProfile
from ..storage.reports import ReportStore
from ..utils.domains import parse_target

logger = logging.getLogger(__name__)

BLOCKLIST_BRANCH = "blocklists"
SECURITY_BRANCH = "security"


class AnalysisEngine:
    """Runs every signal source for one URL and aggregates the result.

    The reachability probe gates everything else. The remaining branches
    (blocklists, local security checks, each threat-intel adapter) run
    concurrently; a branch that fails or misses the deadline contributes
    no signal and is listed in ``ScoreReport.degraded_sources``.
    Only an invalid target aborts an analysis.
    """

    def __init__(
        self,
        *,
        profile: ScaleProfile,
        blocklists: BlockListSource,
        security: SecurityAnalyzer,
        adapters: Sequence[ThreatIntelAdapter] = (),
        accessibility: Optional[AccessibilityProbe] = None,
        report_store: Optional[ReportStore] = None,
        blocklist_names: Optional[list[str]] = None,
        timeouts: Optional[Timeouts] = None,
    ):
        self.profile = profile
        self.aggregator = ScoreAggregator(profile)
        self.blocklists = blocklists
        self.blocklist_names = blocklist_names
        self.security = security
        self.adapters = [a for a in adapters if a.enabled]
        self.accessibility = accessibility
        self.report_store = report_store
        self.timeouts = timeouts or Timeouts()

    @classmethod
    def from_config(
        cls,
        config: EngineConfig,
        report_store: Optional[ReportStore] = None,
    ) -> "AnalysisEngine":
        profile = config.profile()
        weights = profile.weights
        t = config.timeouts
        adapters: list[ThreatIntelAdapter] = [
            URLScannerAdapter(
                config.cloudflare_account_id or None,
                config.cloudflare_api_token or None,
                malicious_penalty=weights.intel_malicious,
                request_timeout=t.intel_request,
                poll_interval=t.poll_interval,
                max_attempts=t.poll_max_attempts,
                max_wait=t.poll_max_wait,
            ),
            VirusTotalAdapter(config.virustotal_api_key or None, request_timeout=t.intel_request),
        ]
        return cls(
            profile=profile,
            blocklists=BlockListSource(config.blocklist_dir),
            blocklist_names=config.blocklist_names,
            security=SecurityAnalyzer(
                weights,
                heuristics=HeuristicAnalyzer(penalty=weights.suspicious_domain),
                certificate_timeout=t.certificate,
                check_certificate=config.check_certificate,
            ),
            adapters=adapters,
            accessibility=AccessibilityProbe(timeout=t.accessibility) if config.check_accessibility else None,
            report_store=report_store,
            timeouts=t,
        )

    async def _reported_advisory(self, hostname: str) -> Optional[str]:
        if not self.report_store:
            return None
        try:
            record = await self.report_store.get_report(hostname)
        except Exception as e:
            logger.warning(f"Report lookup failed for {hostname}: {e}")
            return None
        return record.advisory() if record else None

    async def _check_blocklists(self, hostname: str) -> list[str]:
        names = self.blocklist_names
        if names is None:
            names = await asyncio.to_thread(self.blocklists.list_available)
        lists = await asyncio.to_thread(self.blocklists.load_all, names)
        matches = analyze_against_all_lists(hostname, lists)
        if matches:
            logger.info(f"Blocklist matches for {hostname}: {len(matches)}")
        return matches

    async def _gather_branches(
        self, branches: dict[str, Awaitable[Any]]
    ) -> tuple[dict[str, Any], list[str]]:
        """Run branches concurrently under the analysis deadline.

        Returns the successful results by branch name and the names of
        branches that failed or were cancelled.
        """
        tasks = {name: asyncio.ensure_future(coro) for name, coro in branches.items()}
        done, pending = await asyncio.wait(
            tasks.values(), timeout=self.timeouts.analysis_deadline
        )

        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        results: dict[str, Any] = {}
        failed: list[str] = []
        for name, task in tasks.items():
            if task in pending:
                logger.warning(f"{name} did not finish within {self.timeouts.analysis_deadline:g}s")
                failed.append(name)
                continue
            exc = task.exception()
            if exc is not None:
                logger.warning(f"{name} failed: {exc}")
                failed.append(name)
                continue
            results[name] = task.result()
        return results, failed

    async def analyze(self, url: str) -> ScoreReport:
        """Analyze one URL. Raises InvalidTargetError for unusable input."""
        target = parse_target(url)
        logger.info(f"Analyzing: {target.url}")

        advisory = await self._reported_advisory(target.hostname)
        degraded: list[str] = []

        if self.accessibility:
            try:
                access = await self.accessibility.check(target.url)
            except Exception as e:
                logger.warning(f"Accessibility probe failed for {target.url}: {e}")
                degraded.append("accessibility")
            else:
                if not access.is_accessible:
                    logger.info(f"Analysis stopped, site unreachable: {target.url}")
                    return self.aggregator.unreachable(
                        access,
                        hostname=target.hostname,
                        url=target.url,
                        reported_advisory=advisory,
                    )

        branches: dict[str, Awaitable[Any]] = {
            BLOCKLIST_BRANCH: self._check_blocklists(target.hostname),
            SECURITY_BRANCH: self.security.analyze(target.url, target.hostname),
        }
        for adapter in self.adapters:
            branches[adapter.name] = adapter.scan(target.url)

        results, failed = await self._gather_branches(branches)
        degraded.extend(failed)

        verdicts: list[Verdict] = [
            results[adapter.name] for adapter in self.adapters if adapter.name in results
        ]
        report = self.aggregator.aggregate(
            results.get(BLOCKLIST_BRANCH, []),
            results.get(SECURITY_BRANCH, []),
            verdicts,
            hostname=target.hostname,
            url=target.url,
            reported_advisory=advisory,
            degraded_sources=degraded,
        )
        logger.info(
            f"Analysis complete for {target.hostname}: "
            f"{report.final_score}/{report.max_score:g} ({report.label.value})"
        )
        return report


async def analyze(url: str, config: Optional[EngineConfig] = None) -> ScoreReport:
    """Analyze a URL with a one-off engine built from ``config``."""
    config = config or EngineConfig()
    if config.reports_db is None:
        return await AnalysisEngine.from_config(config).analyze(url)

    async with ReportStore(config.reports_db) as store:
        return await AnalysisEngine.from_config(config, report_store=store).analyze(url)
