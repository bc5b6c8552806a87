"""Storage modules for sitetrust."""

from .reports import ReportRecord, ReportStore

__all__ = ["ReportRecord", "ReportStore"]
