"""sitetrust: URL trust scoring from blocklists, heuristics and threat intelligence."""

from .config import EngineConfig, Timeouts, load_config
from .errors import (
    AnalysisTimeoutError,
    InvalidTargetError,
    ListLoadError,
    ProviderLookupError,
    SiteTrustError,
    SubmissionError,
)
from .models import ScoreReport, Verdict
from .pipeline import AnalysisEngine, analyze

__version__ = "0.1.0"

__all__ = [
    "AnalysisEngine",
    "AnalysisTimeoutError",
    "EngineConfig",
    "InvalidTargetError",
    "ListLoadError",
    "ProviderLookupError",
    "ScoreReport",
    "SiteTrustError",
    "SubmissionError",
    "Timeouts",
    "Verdict",
    "analyze",
    "load_config",
]
