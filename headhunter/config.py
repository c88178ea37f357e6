"""
Centralized configuration for the headhunter snapshot service.

All values that vary by deployment belong here.
Override via environment variables where marked.
"""

import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path

import yaml

from headhunter import paths

logger = logging.getLogger(__name__)

# ============================================================
# Snapshot cache
# ============================================================

SNAPSHOT_CACHE_TTL_SECONDS: int = int(os.environ.get("HEADHUNTER_SNAPSHOT_TTL", "45"))
"""Seconds a computed dashboard snapshot is served from cache before recomputation."""

SNAPSHOT_CACHE_NAMESPACE: str = "headhunter:dashboard"
"""Cache key namespace for dashboard snapshots."""

CACHE_MAX_ENTRIES: int = int(os.environ.get("HEADHUNTER_CACHE_MAX_ENTRIES", "512"))
"""Maximum cached snapshots before LRU eviction."""

# ============================================================
# Lookback window
# ============================================================

DEFAULT_LOOKBACK_DAYS: int = 30
"""Lookback used when the caller does not supply one."""

MIN_LOOKBACK_DAYS: int = 7
"""Lower clamp for the lookback window."""

MAX_LOOKBACK_DAYS: int = 120
"""Upper clamp for the lookback window."""

# ============================================================
# Repository fan-out
# ============================================================

REPOSITORY_FANOUT_WORKERS: int = int(os.environ.get("HEADHUNTER_FANOUT_WORKERS", "8"))
"""Thread pool size for concurrent repository reads during one snapshot build."""

APPLICATION_QUERY_LIMIT: int = int(os.environ.get("HEADHUNTER_APPLICATION_LIMIT", "500"))
"""Most recent applications loaded per snapshot (network-wide fallback included)."""

# ============================================================
# Logging
# ============================================================

LOG_LEVEL: str = os.environ.get("HEADHUNTER_LOG_LEVEL", "INFO")
"""Root log level applied by configure_logging()."""

# ============================================================
# Intelligence hub targets (config/intelligence_targets.yaml)
# ============================================================

TARGETS_FILE = "intelligence_targets.yaml"


@dataclass(frozen=True)
class IntelligenceTargets:
    """Coefficients the intelligence hub uses to derive gap-analysis targets."""

    pipeline_value_per_mandate: float = 150000.0
    pipeline_value_floor: float = 150000.0
    offer_conversion_factor: float = 0.65
    touchpoints_per_week: float = 50.0
    touchpoint_floor: int = 40
    placement_coverage: float = 0.75


def load_intelligence_targets(path: Path | None = None) -> IntelligenceTargets:
    """Load YAML targets, falling back to defaults for missing keys or files."""
    config_path = path or (paths.config_dir() / TARGETS_FILE)
    if not config_path.exists():
        logger.warning("Intelligence targets config not found at %s, using defaults", config_path)
        return IntelligenceTargets()
    try:
        with open(config_path) as f:
            raw = yaml.safe_load(f) or {}
    except (yaml.YAMLError, OSError) as exc:
        logger.warning("Failed to load intelligence targets: %s", exc)
        return IntelligenceTargets()

    section = raw.get("targets", raw) if isinstance(raw, dict) else {}
    if not isinstance(section, dict):
        section = {}
    known = {f.name for f in fields(IntelligenceTargets)}
    overrides = {}
    for key, value in section.items():
        if key not in known:
            logger.debug("Ignoring unknown intelligence target %r", key)
            continue
        try:
            overrides[key] = int(value) if key == "touchpoint_floor" else float(value)
        except (TypeError, ValueError):
            logger.warning("Invalid value for intelligence target %r: %r", key, value)
    return IntelligenceTargets(**overrides)
