"""Analysis pipeline for sitetrust."""

from .engine import AnalysisEngine, analyze

__all__ = ["AnalysisEngine", "analyze"]
