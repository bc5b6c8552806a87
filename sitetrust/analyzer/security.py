"""Transport-level security checks (HTTPS, certificate, mixed content)."""

from __future__ import annotations

import logging
import ssl
from urllib.parse import urlparse

import httpx

from ..models import HeuristicFinding, Severity
from ..scoring.profiles import ScoringWeights
from .heuristics import HeuristicAnalyzer

logger = logging.getLogger(__name__)


def check_https(url: str, penalty: float) -> HeuristicFinding:
    """Penalize targets that are not served over HTTPS."""
    try:
        scheme = urlparse(url).scheme.lower()
    except ValueError:
        scheme = ""

    if scheme == "https":
        return HeuristicFinding(
            source="https",
            is_suspicious=False,
            penalty=0.0,
            reason="✓ HTTPS enabled",
            severity=Severity.SAFE,
        )
    if not scheme:
        return HeuristicFinding(
            source="https",
            is_suspicious=True,
            penalty=penalty,
            reason="✗ Invalid protocol",
            severity=Severity.HIGH,
        )
    return HeuristicFinding(
        source="https",
        is_suspicious=True,
        penalty=penalty,
        reason="✗ Site not secure (HTTP)",
        severity=Severity.HIGH,
    )


def check_mixed_content(url: str) -> HeuristicFinding:
    """Mixed-content check.

    No page content is inspected; HTTPS targets always pass. Kept so callers
    get a stable set of findings.
    """
    if urlparse(url).scheme.lower() != "https":
        return HeuristicFinding(source="mixed_content", is_suspicious=False, penalty=0.0, reason="")
    return HeuristicFinding(
        source="mixed_content",
        is_suspicious=False,
        penalty=0.0,
        reason="✓ No mixed content detected",
        severity=Severity.SAFE,
    )


def _is_certificate_error(exc: BaseException) -> bool:
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        if isinstance(current, ssl.SSLError):
            return True
        if "certificate" in str(current).lower():
            return True
        current = current.__cause__ or current.__context__
    return False


class SecurityAnalyzer:
    """Runs the network-free heuristics plus the HTTPS/certificate checks."""

    def __init__(
        self,
        weights: ScoringWeights,
        heuristics: HeuristicAnalyzer | None = None,
        certificate_timeout: float = 3.0,
        check_certificate: bool = True,
    ):
        self.weights = weights
        self.heuristics = heuristics or HeuristicAnalyzer(penalty=weights.suspicious_domain)
        self.certificate_timeout = certificate_timeout
        self.certificate_enabled = check_certificate

    async def check_certificate(self, url: str) -> HeuristicFinding:
        """Probe the site over TLS with verification enabled.

        A certificate failure is penalized. A timeout is treated as a valid
        certificate so slow networks are not punished.
        """
        if urlparse(url).scheme.lower() != "https":
            return HeuristicFinding(
                source="certificate",
                is_suspicious=True,
                penalty=self.weights.insecure_http,
                reason="✗ No SSL certificate",
                severity=Severity.HIGH,
            )

        try:
            async with httpx.AsyncClient(timeout=self.certificate_timeout, verify=True) as client:
                await client.head(url)
        except httpx.TimeoutException:
            logger.debug(f"Certificate probe timed out for {url}")
            return HeuristicFinding(
                source="certificate",
                is_suspicious=False,
                penalty=0.0,
                reason="✓ SSL certificate present",
                severity=Severity.SAFE,
            )
        except httpx.HTTPError as e:
            if _is_certificate_error(e):
                logger.info(f"Invalid certificate for {url}: {e}")
                return HeuristicFinding(
                    source="certificate",
                    is_suspicious=True,
                    penalty=self.weights.certificate_invalid,
                    reason="✗ SSL certificate invalid or expired",
                    severity=Severity.CRITICAL,
                )
            logger.debug(f"Certificate probe inconclusive for {url}: {e}")
            return HeuristicFinding(
                source="certificate",
                is_suspicious=True,
                penalty=self.weights.certificate_unverifiable,
                reason="⚠ Unable to verify the certificate",
                severity=Severity.MEDIUM,
            )

        return HeuristicFinding(
            source="certificate",
            is_suspicious=False,
            penalty=0.0,
            reason="✓ Valid SSL certificate",
            severity=Severity.SAFE,
        )

    async def analyze(self, url: str, hostname: str) -> list[HeuristicFinding]:
        """Run every check; findings are additive across checks."""
        findings: list[HeuristicFinding] = []

        https = check_https(url, self.weights.insecure_http)
        findings.append(https)

        # The certificate probe only makes sense for HTTPS targets.
        if not https.is_suspicious and self.certificate_enabled:
            findings.append(await self.check_certificate(url))

        findings.append(self.heuristics.evaluate(hostname))
        findings.append(check_mixed_content(url))
        return findings
