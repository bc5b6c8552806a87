"""Reachability probe used to gate the full analysis."""

from __future__ import annotations

import logging

import httpx

from ..models import AccessibilityResult, Severity

logger = logging.getLogger(__name__)


class AccessibilityProbe:
    """Checks that a URL answers at all before it is analyzed.

    Any HTTP response, whatever its status, counts as reachable. Name
    resolution failures, refused connections and timeouts do not.
    """

    def __init__(self, timeout: float = 5.0):
        self.timeout = timeout

    async def check(self, url: str) -> AccessibilityResult:
        try:
            # Certificate problems are judged separately; only reachability matters here.
            async with httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                verify=False,
            ) as client:
                resp = await client.head(url)
                if resp.status_code in (405, 501):
                    resp = await client.get(url)
        except httpx.TimeoutException:
            logger.info(f"Site did not respond within {self.timeout}s: {url}")
            return AccessibilityResult(
                is_accessible=False,
                message=f"✗ Site did not respond within {self.timeout:g} seconds",
                severity=Severity.CRITICAL,
            )
        except httpx.HTTPError as e:
            logger.info(f"Site unreachable: {url} ({e})")
            return AccessibilityResult(
                is_accessible=False,
                message="✗ Site unreachable (DNS or connection failure)",
                severity=Severity.CRITICAL,
            )

        return AccessibilityResult(
            is_accessible=True,
            message="✓ Site reachable",
            severity=Severity.SAFE,
            status_code=resp.status_code,
        )
