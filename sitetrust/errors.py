"""Exception types raised by sitetrust components."""

from __future__ import annotations


class SiteTrustError(Exception):
    """Base class for all sitetrust errors."""


class InvalidTargetError(SiteTrustError, ValueError):
    """The URL or hostname cannot be analyzed at all."""


class ListLoadError(SiteTrustError):
    """A blocklist file could not be read."""

    def __init__(self, name: str, reason: str):
        super().__init__(f"Failed to load blocklist {name}: {reason}")
        self.name = name
        self.reason = reason


class ProviderError(SiteTrustError):
    """Base class for threat-intelligence provider failures."""

    def __init__(self, provider: str, message: str, status: int | None = None):
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.status = status


class SubmissionError(ProviderError):
    """Provider rejected the scan request or returned no scan identifier."""


class ProviderLookupError(ProviderError):
    """Provider query failed or returned a malformed payload."""


class AnalysisTimeoutError(ProviderError, TimeoutError):
    """A bounded probe or poll loop ran out of budget."""
