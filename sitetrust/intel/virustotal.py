"""VirusTotal URL reputation adapter (single lookup, no polling)."""

from __future__ import annotations

import asyncio
import base64
import logging
from typing import Optional

import aiohttp

from ..errors import ProviderLookupError
from ..models import Verdict
from .base import ThreatIntelAdapter
from .categories import classify_labels

logger = logging.getLogger(__name__)

API_URL = "https://www.virustotal.com/api/v3/urls/{url_id}"
GUI_URL = "https://www.virustotal.com/gui/url/{url_id}"


def encode_url_id(url: str) -> str:
    """VirusTotal URL identifier: unpadded URL-safe base64 of the URL."""
    return base64.urlsafe_b64encode(url.encode("utf-8")).decode("ascii").rstrip("=")


class VirusTotalAdapter(ThreatIntelAdapter):
    """Looks up the last analysis stats and community reputation of a URL."""

    name = "virustotal"

    def __init__(self, api_key: Optional[str], *, request_timeout: float = 15.0):
        super().__init__(request_timeout=request_timeout)
        self.api_key = api_key

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    async def lookup(self, url: str) -> dict:
        """Fetch the raw URL report."""
        url_id = encode_url_id(url)
        headers = {"x-apikey": self.api_key or ""}
        try:
            async with aiohttp.ClientSession() as session:
                async with session.get(
                    API_URL.format(url_id=url_id),
                    headers=headers,
                    timeout=self._timeout(),
                ) as resp:
                    if resp.status == 404:
                        raise ProviderLookupError(self.name, "URL not found", status=404)
                    if resp.status == 429:
                        logger.warning("VirusTotal rate limit exceeded")
                    if resp.status != 200:
                        body = await resp.text()
                        raise ProviderLookupError(
                            self.name,
                            f"lookup failed ({resp.status}): {body[:200]}",
                            status=resp.status,
                        )
                    return await resp.json()
        except asyncio.TimeoutError as e:
            raise ProviderLookupError(self.name, "lookup timed out") from e
        except (aiohttp.ClientError, ValueError) as e:
            raise ProviderLookupError(self.name, f"lookup failed: {e}") from e

    def parse_verdict(self, data: dict, url: str = "") -> Verdict:
        """Turn a URL report into a verdict with a ``detections/total`` fraction."""
        try:
            attrs = data["data"]["attributes"]
            stats = attrs["last_analysis_stats"]
        except (KeyError, TypeError) as e:
            raise ProviderLookupError(self.name, "malformed payload: missing analysis stats") from e
        if not isinstance(stats, dict):
            raise ProviderLookupError(self.name, "malformed payload: analysis stats")

        try:
            counts = {key: int(value or 0) for key, value in stats.items()}
            reputation = int(attrs.get("reputation") or 0)
        except (TypeError, ValueError) as e:
            raise ProviderLookupError(self.name, "malformed payload: non-numeric stats") from e

        malicious_count = counts.get("malicious", 0)
        detections = malicious_count + counts.get("suspicious", 0)
        total = sum(counts.values())

        vendor_categories = attrs.get("categories") or {}
        labels = list(vendor_categories.values()) if isinstance(vendor_categories, dict) else []
        malicious = malicious_count > 0

        url_id = encode_url_id(url) if url else None
        return Verdict(
            source=self.name,
            malicious=malicious,
            categories=classify_labels(labels, malicious),
            raw_score_fraction=f"{detections}/{total}",
            detections=detections,
            total_engines=total,
            reputation=reputation,
            result_url=GUI_URL.format(url_id=url_id) if url_id else None,
        )

    async def scan(self, url: str) -> Verdict:
        data = await self.lookup(url)
        verdict = self.parse_verdict(data, url)
        logger.debug(
            f"VirusTotal: {url} = {verdict.raw_score_fraction} flagged, reputation {verdict.reputation}"
        )
        return verdict
