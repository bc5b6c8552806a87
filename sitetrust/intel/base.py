"""Base class for threat-intelligence adapters."""

from __future__ import annotations

from abc import ABC, abstractmethod

import aiohttp

from ..models import Verdict


class ThreatIntelAdapter(ABC):
    """Translates one provider's payload into a ``Verdict``.

    Adapters hold no per-target state; every ``scan`` call builds a fresh
    verdict.
    """

    name: str = "intel"

    def __init__(self, request_timeout: float = 15.0):
        self.request_timeout = request_timeout

    @property
    @abstractmethod
    def enabled(self) -> bool:
        """Whether the adapter has the credentials it needs."""

    @abstractmethod
    async def scan(self, url: str) -> Verdict:
        """Return the provider's verdict for ``url``."""

    def _timeout(self) -> aiohttp.ClientTimeout:
        return aiohttp.ClientTimeout(total=self.request_timeout)
