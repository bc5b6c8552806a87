"""Scoring policy for sitetrust."""

from .aggregator import DEGRADED_TAG, ScoreAggregator
from .profiles import (
    PROFILE_5PT,
    PROFILE_100PT,
    SCALE_5PT,
    SCALE_100PT,
    ScaleProfile,
    ScoringWeights,
    get_scale_profile,
)

__all__ = [
    "DEGRADED_TAG",
    "ScoreAggregator",
    "PROFILE_5PT",
    "PROFILE_100PT",
    "SCALE_5PT",
    "SCALE_100PT",
    "ScaleProfile",
    "ScoringWeights",
    "get_scale_profile",
]
