"""Threat-intelligence adapters for sitetrust."""

from .base import ThreatIntelAdapter
from .categories import classify_labels
from .urlscanner import URLScannerAdapter
from .virustotal import VirusTotalAdapter, encode_url_id

__all__ = [
    "ThreatIntelAdapter",
    "classify_labels",
    "URLScannerAdapter",
    "VirusTotalAdapter",
    "encode_url_id",
]
