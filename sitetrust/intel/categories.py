"""Mapping of free-text provider labels onto the fixed threat taxonomy."""

from __future__ import annotations

from typing import Any, Iterable

from ..models import ThreatCategory

# Case-insensitive substring keywords per category.
CATEGORY_KEYWORDS: dict[ThreatCategory, tuple[str, ...]] = {
    ThreatCategory.PHISHING: ("phish",),
    ThreatCategory.MALWARE: ("malware", "virus", "trojan"),
    ThreatCategory.SPAM: ("spam", "bulk"),
    ThreatCategory.CRYPTO_MINING: ("crypto", "mining"),
    ThreatCategory.COMMAND_AND_CONTROL: ("c2", "command and control", "botnet"),
}

CATEGORY_LABELS: dict[ThreatCategory, str] = {
    ThreatCategory.PHISHING: "Phishing",
    ThreatCategory.MALWARE: "Malware",
    ThreatCategory.SPAM: "Spam",
    ThreatCategory.CRYPTO_MINING: "Crypto mining",
    ThreatCategory.COMMAND_AND_CONTROL: "Command and control",
}


def label_text(label: Any) -> str:
    """Providers send labels either as strings or as ``{"name": ...}`` objects."""
    if isinstance(label, str):
        return label
    if isinstance(label, dict):
        return str(label.get("name") or "")
    return ""


def classify_labels(labels: Iterable[Any], malicious: bool) -> frozenset[ThreatCategory]:
    """Map provider labels to categories.

    Keyword hits only count when the provider itself marked the target as
    malicious.
    """
    if not malicious:
        return frozenset()

    lowered = [label_text(label).lower() for label in labels or []]
    found: set[ThreatCategory] = set()
    for category, keywords in CATEGORY_KEYWORDS.items():
        if any(keyword in text for text in lowered for keyword in keywords):
            found.add(category)
    return frozenset(found)
