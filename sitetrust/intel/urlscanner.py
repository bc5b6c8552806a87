"""
Cloudflare URL Scanner adapter (submit, then poll for the result).

A scan is created with a POST, then the result endpoint is polled until the
task reports ``finished``. A 404 from the result endpoint means the scan is
not ready yet. Polling is bounded by both an attempt count and a wall-clock
budget.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Optional

import aiohttp

from ..errors import AnalysisTimeoutError, ProviderLookupError, SubmissionError
from ..models import Verdict
from .base import ThreatIntelAdapter
from .categories import classify_labels

logger = logging.getLogger(__name__)

API_BASE = "https://api.cloudflare.com/client/v4/accounts/{account_id}/urlscanner/v2"
REPORT_URL = "https://radar.cloudflare.com/scan/{scan_id}"


class URLScannerAdapter(ThreatIntelAdapter):
    """Submits a fresh scan and waits for the provider's overall verdict."""

    name = "urlscanner"

    def __init__(
        self,
        account_id: Optional[str],
        api_token: Optional[str],
        *,
        malicious_penalty: float = 0.0,
        request_timeout: float = 15.0,
        poll_interval: float = 3.0,
        max_attempts: int = 20,
        max_wait: float = 60.0,
    ):
        super().__init__(request_timeout=request_timeout)
        self.account_id = account_id
        self.api_token = api_token
        self.malicious_penalty = malicious_penalty
        self.poll_interval = poll_interval
        self.max_attempts = max(1, int(max_attempts))
        self.max_wait = max_wait

    @property
    def enabled(self) -> bool:
        return bool(self.account_id and self.api_token)

    @property
    def base_url(self) -> str:
        return API_BASE.format(account_id=self.account_id)

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.api_token}"}

    async def submit(self, url: str) -> str:
        """Create a scan and return its identifier."""
        headers = {**self._headers(), "Content-Type": "application/json"}
        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(
                    f"{self.base_url}/scan",
                    headers=headers,
                    json={"url": url},
                    timeout=self._timeout(),
                ) as resp:
                    if resp.status not in (200, 201):
                        body = await resp.text()
                        raise SubmissionError(
                            self.name,
                            f"scan request rejected ({resp.status}): {body[:200]}",
                            status=resp.status,
                        )
                    data = await resp.json()
        except asyncio.TimeoutError as e:
            raise SubmissionError(self.name, "scan request timed out") from e
        except (aiohttp.ClientError, ValueError) as e:
            raise SubmissionError(self.name, f"scan request failed: {e}") from e

        if not isinstance(data, dict):
            raise SubmissionError(self.name, "malformed scan response")
        result = data.get("result") or {}
        if not isinstance(result, dict):
            raise SubmissionError(self.name, "malformed scan response: result")
        scan_id = data.get("uuid") or result.get("uuid")
        if not scan_id:
            raise SubmissionError(self.name, "no scan identifier (uuid) in response")

        logger.debug(f"URL scanner: submitted {url} as {scan_id}")
        return str(scan_id)

    async def poll(self, scan_id: str) -> dict:
        """Wait for a scan to finish and return the raw result payload."""
        deadline = time.monotonic() + self.max_wait
        attempt = 0

        try:
            async with aiohttp.ClientSession() as session:
                while True:
                    attempt += 1
                    data = await self._fetch_result(session, scan_id)
                    if data is not None:
                        return data

                    logger.debug(f"URL scanner: {scan_id} pending (attempt {attempt})")
                    if attempt >= self.max_attempts:
                        raise AnalysisTimeoutError(
                            self.name, f"scan {scan_id} still pending after {attempt} attempts"
                        )
                    if time.monotonic() + self.poll_interval > deadline:
                        raise AnalysisTimeoutError(
                            self.name, f"scan {scan_id} still pending after {self.max_wait:g}s"
                        )
                    await asyncio.sleep(self.poll_interval)
        except AnalysisTimeoutError:
            # asyncio.TimeoutError is the builtin TimeoutError on 3.11+.
            raise
        except asyncio.TimeoutError as e:
            raise ProviderLookupError(self.name, f"result request for {scan_id} timed out") from e
        except aiohttp.ClientError as e:
            raise ProviderLookupError(self.name, f"result request failed: {e}") from e

    async def _fetch_result(self, session: Any, scan_id: str) -> Optional[dict]:
        """Fetch one result; ``None`` means the scan is not finished yet."""
        async with session.get(
            f"{self.base_url}/result/{scan_id}",
            headers=self._headers(),
            timeout=self._timeout(),
        ) as resp:
            if resp.status == 404:
                return None
            if resp.status != 200:
                body = await resp.text()
                raise ProviderLookupError(
                    self.name,
                    f"result request failed ({resp.status}): {body[:200]}",
                    status=resp.status,
                )
            try:
                data = await resp.json()
            except ValueError as e:
                raise ProviderLookupError(self.name, "result payload is not JSON") from e

        if not isinstance(data, dict):
            raise ProviderLookupError(self.name, "malformed result payload")

        status = (data.get("task") or {}).get("status")
        if status and str(status).lower() != "finished":
            return None
        return data

    def parse_verdict(self, data: dict, scan_id: Optional[str] = None) -> Verdict:
        """Map a finished scan payload to a verdict."""
        if not isinstance(data, dict):
            raise ProviderLookupError(self.name, "malformed result payload")
        verdicts = data.get("verdicts") or {}
        if not isinstance(verdicts, dict):
            raise ProviderLookupError(self.name, "malformed verdicts in result payload")
        overall = verdicts.get("overall") or {}
        if not isinstance(overall, dict):
            raise ProviderLookupError(self.name, "malformed overall verdict in result payload")

        labels = overall.get("categories") or []
        tags = overall.get("tags") or []
        if not isinstance(labels, list) or not isinstance(tags, list):
            raise ProviderLookupError(self.name, "malformed verdict labels in result payload")

        malicious = overall.get("malicious") is True
        categories = classify_labels(labels + tags, malicious)

        return Verdict(
            source=self.name,
            malicious=malicious,
            categories=categories,
            numeric_penalty=self.malicious_penalty if malicious else 0.0,
            result_url=REPORT_URL.format(scan_id=scan_id) if scan_id else None,
        )

    async def scan(self, url: str) -> Verdict:
        scan_id = await self.submit(url)
        data = await self.poll(scan_id)
        verdict = self.parse_verdict(data, scan_id)
        logger.debug(
            f"URL scanner: {url} malicious={verdict.malicious} "
            f"categories={sorted(c.value for c in verdict.categories)}"
        )
        return verdict
