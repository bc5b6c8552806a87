"""Local analyzers for sitetrust."""

from .accessibility import AccessibilityProbe
from .heuristics import HeuristicAnalyzer
from .security import SecurityAnalyzer, check_https, check_mixed_content

__all__ = [
    "AccessibilityProbe",
    "HeuristicAnalyzer",
    "SecurityAnalyzer",
    "check_https",
    "check_mixed_content",
]
