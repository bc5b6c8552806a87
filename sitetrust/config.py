"""Configuration management for sitetrust."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv

from .scoring.profiles import SCALE_100PT, ScaleProfile, ScoringWeights, get_scale_profile

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Timeouts:
    """Time budgets, in seconds unless noted."""

    accessibility: float = 5.0
    certificate: float = 3.0
    intel_request: float = 15.0
    poll_interval: float = 3.0
    poll_max_attempts: int = 20
    poll_max_wait: float = 60.0
    # Whole fan-out; branches still pending afterwards count as "no signal".
    analysis_deadline: float = 90.0


@dataclass
class EngineConfig:
    """Per-analysis configuration."""

    scale: str = SCALE_100PT
    weights: Optional[ScoringWeights] = None  # None = preset for the scale
    timeouts: Timeouts = field(default_factory=Timeouts)

    # Blocklists
    blocklist_dir: Path = field(default_factory=lambda: Path("./blocklists"))
    blocklist_names: Optional[list[str]] = None  # None = every *.txt in blocklist_dir

    # Threat intelligence (adapters stay disabled without credentials)
    cloudflare_account_id: str = ""
    cloudflare_api_token: str = ""
    virustotal_api_key: str = ""

    # Report storage (read for the "already reported" advisory)
    reports_db: Optional[Path] = None

    # Network probes
    check_accessibility: bool = True
    check_certificate: bool = True

    def __post_init__(self):
        self.blocklist_dir = Path(self.blocklist_dir)
        if self.reports_db is not None:
            self.reports_db = Path(self.reports_db)

    def profile(self) -> ScaleProfile:
        """Resolve the scale preset, applying custom weights if set."""
        return get_scale_profile(self.scale, self.weights)


def _load_scoring_overrides(config_dir: Path, scale: str) -> Optional[ScoringWeights]:
    """Load weight overrides from config/scoring.yaml (optional).

    The file may hold a flat ``weights:`` mapping, or per-scale mappings
    under ``scales: {5pt: {...}, 100pt: {...}}``.
    """
    path = Path(config_dir or ".") / "scoring.yaml"
    if not path.exists():
        return None

    try:
        data = yaml.safe_load(path.read_text()) or {}
    except (OSError, yaml.YAMLError) as exc:
        logger.warning("Failed to parse scoring.yaml: %s", exc)
        return None
    if not isinstance(data, dict):
        logger.warning("Ignoring scoring.yaml: expected a mapping")
        return None

    profile = get_scale_profile(scale)
    overrides: dict = {}
    if isinstance(data.get("weights"), dict):
        overrides.update(data["weights"])
    scales = data.get("scales")
    if isinstance(scales, dict) and isinstance(scales.get(profile.name), dict):
        overrides.update(scales[profile.name])
    if not overrides:
        return None
    return profile.weights.with_overrides(overrides)


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r", name, raw)
        return default


def load_config() -> EngineConfig:
    """Load configuration from environment variables."""
    load_dotenv()

    scale = os.getenv("SITETRUST_SCALE", SCALE_100PT).strip().lower() or SCALE_100PT

    names_str = os.getenv("BLOCKLIST_NAMES", "")
    blocklist_names = [n.strip() for n in names_str.split(",") if n.strip()] or None

    reports_db = os.getenv("REPORTS_DB", "").strip()
    config_dir = Path(os.getenv("CONFIG_DIR", "./config"))

    defaults = Timeouts()
    timeouts = Timeouts(
        accessibility=_env_float("ACCESSIBILITY_TIMEOUT", defaults.accessibility),
        certificate=_env_float("CERTIFICATE_TIMEOUT", defaults.certificate),
        intel_request=_env_float("INTEL_REQUEST_TIMEOUT", defaults.intel_request),
        poll_interval=_env_float("POLL_INTERVAL", defaults.poll_interval),
        poll_max_attempts=int(_env_float("POLL_MAX_ATTEMPTS", defaults.poll_max_attempts)),
        poll_max_wait=_env_float("POLL_MAX_WAIT", defaults.poll_max_wait),
        analysis_deadline=_env_float("ANALYSIS_DEADLINE", defaults.analysis_deadline),
    )

    try:
        weights = _load_scoring_overrides(config_dir, scale)
    except ValueError:
        # Unknown scale; validate_config reports it.
        weights = None

    return EngineConfig(
        scale=scale,
        weights=weights,
        timeouts=timeouts,
        blocklist_dir=Path(os.getenv("BLOCKLIST_DIR", "./blocklists")),
        blocklist_names=blocklist_names,
        cloudflare_account_id=os.getenv("CLOUDFLARE_ACCOUNT_ID", ""),
        cloudflare_api_token=os.getenv("CLOUDFLARE_API_TOKEN", ""),
        virustotal_api_key=os.getenv("VIRUSTOTAL_API_KEY", ""),
        reports_db=Path(reports_db) if reports_db else None,
        check_accessibility=os.getenv("CHECK_ACCESSIBILITY", "true").lower() == "true",
        check_certificate=os.getenv("CHECK_CERTIFICATE", "true").lower() == "true",
    )


def validate_config(config: EngineConfig) -> list[str]:
    """Validate configuration and return list of error messages."""
    errors: list[str] = []
    try:
        config.profile()
    except ValueError as exc:
        errors.append(str(exc))

    t = config.timeouts
    if t.poll_interval < 0:
        errors.append("POLL_INTERVAL must not be negative")
    if t.poll_max_attempts < 1:
        errors.append("POLL_MAX_ATTEMPTS must be at least 1")
    for name, value in (
        ("ACCESSIBILITY_TIMEOUT", t.accessibility),
        ("CERTIFICATE_TIMEOUT", t.certificate),
        ("INTEL_REQUEST_TIMEOUT", t.intel_request),
        ("ANALYSIS_DEADLINE", t.analysis_deadline),
    ):
        if value <= 0:
            errors.append(f"{name} must be positive")

    if bool(config.cloudflare_account_id) != bool(config.cloudflare_api_token):
        errors.append("CLOUDFLARE_ACCOUNT_ID and CLOUDFLARE_API_TOKEN must be set together")

    if not config.virustotal_api_key and not config.cloudflare_api_token:
        logger.info("No threat-intelligence credentials configured; only local checks will run")

    return errors
