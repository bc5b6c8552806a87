"""Hostname normalization utilities."""

from __future__ import annotations

import ipaddress
import re
from urllib.parse import urlparse

import idna
import tldextract

from ..errors import InvalidTargetError
from ..models import Target

# Offline extractor: use the bundled public suffix snapshot, never fetch it.
_EXTRACT = tldextract.TLDExtract(suffix_list_urls=())

_LABEL_RE = re.compile(r"^[a-z0-9_](?:[a-z0-9_-]{0,61}[a-z0-9_])?$")
_ALLOWED_SCHEMES = {"http", "https"}


def normalize_hostname(value: str) -> str:
    """
    Normalize a hostname to its canonical key.

    - Strip surrounding whitespace
    - Lowercase
    - Strip trailing dots
    - Encode internationalized names to their ASCII (punycode) form
    """
    host = str(value or "").strip().lower().rstrip(". \t\r\n")
    if host and not host.isascii():
        try:
            # UTS46 maps ideographic full stops to ".", so strip again.
            host = idna.encode(host, uts46=True).decode("ascii").rstrip(".")
        except idna.IDNAError:
            # Leave undecodable names as-is; validation happens in parse_target.
            pass
    return host


def is_ip_address(host: str) -> bool:
    try:
        ipaddress.ip_address(host.strip("[]"))
    except ValueError:
        return False
    return True


def is_valid_hostname(host: str) -> bool:
    """Check label syntax of a normalized hostname (IP literals allowed)."""
    if not host or len(host) > 253:
        return False
    if is_ip_address(host):
        return True
    return all(_LABEL_RE.match(label) for label in host.split("."))


def parse_target(url: str) -> Target:
    """Validate a URL (or bare host) and extract its normalized hostname.

    Bare hosts are treated as ``https://`` targets.
    """
    raw = (url or "").strip()
    if not raw:
        raise InvalidTargetError("Empty URL")

    candidate = raw if "://" in raw else f"https://{raw}"
    parsed = urlparse(candidate)
    scheme = (parsed.scheme or "").lower()
    if scheme not in _ALLOWED_SCHEMES:
        raise InvalidTargetError(f"Unsupported scheme: {parsed.scheme or '(none)'}")

    try:
        # Accessing .port validates it.
        parsed.port
    except ValueError as exc:
        raise InvalidTargetError(f"Invalid port in {raw}") from exc

    hostname = normalize_hostname(parsed.hostname or "")
    if not is_valid_hostname(hostname):
        raise InvalidTargetError(f"Invalid hostname in {raw}")

    return Target(url=candidate, hostname=hostname, scheme=scheme)


def public_suffix(host: str) -> str:
    """Return the public suffix of a hostname (empty for IPs and bare labels)."""
    host = normalize_hostname(host)
    if not host or is_ip_address(host):
        return ""
    return _EXTRACT(host).suffix.lower()

