"""Load, validate, and hot-reload the analytics engine configuration.

The config lives in ``analytics_config.yaml`` alongside this module.  It is
loaded once on first use and cached.  Call ``reload_analytics_config()`` to
re-read it from disk after an admin edit, no restart required.

Usage::

    from src.analytics.config_loader import get_analytics_config

    config = get_analytics_config()
    config.sperm_health.range_for("count").optimal   # 40.0
    config.cycle.luteal_phase_days                  # 14
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger("ovulink.analytics.config")

# Path to the YAML file sitting next to this module
_CONFIG_PATH = Path(__file__).parent / "analytics_config.yaml"

# Scored semen-analysis parameters, in recommendation order
SPERM_PARAMETERS: tuple[str, ...] = ("count", "motility", "morphology", "volume")

_DEFAULT_RANGES: dict[str, tuple[float, float]] = {
    "count": (15.0, 40.0),
    "motility": (40.0, 60.0),
    "morphology": (4.0, 15.0),
    "volume": (1.5, 4.0),
}

_DEFAULT_WEIGHTS: dict[str, float] = {
    "bookmarked": 3.0,
    "liked": 2.0,
    "viewed": 1.0,
    "category_match": 2.0,
    "tag_match": 1.0,
}


# ---------------------------------------------------------------------------
# Typed config sections
# ---------------------------------------------------------------------------


@dataclass
class TrendConfig:
    significance_pct: float = 5.0


@dataclass
class CyclePredictionConfig:
    """Calendar-method prediction constants."""

    rolling_window_cycles: int = 6
    min_cycles: int = 2
    luteal_phase_days: int = 14
    fertile_days_before_ovulation: int = 5
    fertile_days_after_ovulation: int = 1


@dataclass
class ReferenceRange:
    """Lower reference limit and optimal target for one parameter."""

    min: float
    optimal: float


@dataclass
class SpermHealthConfig:
    """Semen-analysis scoring settings."""

    reference_ranges: dict[str, ReferenceRange]
    excellent_threshold: int = 80  # ≥ this = Excellent
    good_threshold: int = 60       # ≥ this = Good
    fair_threshold: int = 40       # ≥ this = Fair
    trend_months: int = 6

    def range_for(self, parameter: str) -> ReferenceRange:
        return self.reference_ranges[parameter]


@dataclass
class ContentConfig:
    """Content affinity weights."""

    weights: dict[str, float]
    default_limit: int = 10

    def weight(self, signal: str) -> float:
        return self.weights.get(signal, 0.0)


@dataclass
class CalendarConfig:
    lookahead_days: int = 30


@dataclass
class UsageConfig:
    cost_per_token_usd: float = 0.00001
    cost_limit_usd: float = 5.0


@dataclass
class AnalyticsConfig:
    """Complete, validated analytics configuration.

    This is the single in-memory representation of analytics_config.yaml.
    Every engine component reads its constants from this object.

    Attributes:
        version:       Config schema version string.
        trend:         Trend significance threshold.
        cycle:         Cycle prediction window and phase constants.
        sperm_health:  Reference ranges and category thresholds.
        content:       Content affinity weights and default limit.
        calendar:      Default lookahead for the upcoming-events timeline.
        usage:         Prediction-service cost budget.
    """

    version: str
    trend: TrendConfig
    cycle: CyclePredictionConfig
    sperm_health: SpermHealthConfig
    content: ContentConfig
    calendar: CalendarConfig
    usage: UsageConfig
    _raw: dict = field(default_factory=dict, repr=False)


# ---------------------------------------------------------------------------
# Loader / validation
# ---------------------------------------------------------------------------


class ConfigValidationError(ValueError):
    """Raised when analytics_config.yaml fails validation."""


def _load_yaml(path: Path) -> dict:
    """Read and parse a YAML file.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigValidationError: If the YAML is malformed.
    """
    if not path.exists():
        raise FileNotFoundError(f"Analytics config not found: {path}")

    with path.open("r", encoding="utf-8") as fh:
        try:
            loaded = yaml.safe_load(fh) or {}
        except yaml.YAMLError as exc:
            raise ConfigValidationError(f"YAML parse error in {path}: {exc}") from exc

    if not isinstance(loaded, dict):
        raise ConfigValidationError(f"{path} must contain a mapping at the top level")
    return loaded


def _validate_and_build(raw: dict) -> AnalyticsConfig:
    """Validate the raw YAML dict and construct an AnalyticsConfig.

    Missing sections fall back to the built-in defaults; present values are
    type- and range-checked.  All problems are collected and reported at once.

    Raises:
        ConfigValidationError: If any value is invalid.
    """
    errors: list[str] = []

    def _number(section: dict, key: str, path: str, default: float) -> float:
        value = section.get(key, default)
        try:
            return float(value)
        except (TypeError, ValueError):
            errors.append(f"{path}.{key} must be a number, got {value!r}")
            return default

    def _count(section: dict, key: str, path: str, default: int, minimum: int) -> int:
        value = section.get(key, default)
        try:
            n = int(value)
        except (TypeError, ValueError):
            errors.append(f"{path}.{key} must be an integer, got {value!r}")
            return default
        if n < minimum:
            errors.append(f"{path}.{key} = {n} must be >= {minimum}")
        return n

    def _section(parent: dict, key: str, path: str) -> dict:
        value = parent.get(key) or {}
        if not isinstance(value, dict):
            errors.append(f"'{path}' must be a mapping")
            return {}
        return value

    version = str(raw.get("version", "1.0"))

    # ── Trend ──
    tr_raw = _section(raw, "trend", "trend")
    trend = TrendConfig(significance_pct=_number(tr_raw, "significance_pct", "trend", 5.0))
    if trend.significance_pct < 0:
        errors.append("trend.significance_pct must be >= 0")

    # ── Cycle prediction ──
    cp_raw = _section(raw, "cycle_prediction", "cycle_prediction")
    fw_raw = _section(cp_raw, "fertile_window", "cycle_prediction.fertile_window")
    cycle = CyclePredictionConfig(
        rolling_window_cycles=_count(cp_raw, "rolling_window_cycles", "cycle_prediction", 6, 2),
        min_cycles=_count(cp_raw, "min_cycles", "cycle_prediction", 2, 2),
        luteal_phase_days=_count(cp_raw, "luteal_phase_days", "cycle_prediction", 14, 0),
        fertile_days_before_ovulation=_count(
            fw_raw, "days_before_ovulation", "cycle_prediction.fertile_window", 5, 0
        ),
        fertile_days_after_ovulation=_count(
            fw_raw, "days_after_ovulation", "cycle_prediction.fertile_window", 1, 0
        ),
    )
    if cycle.min_cycles > cycle.rolling_window_cycles:
        errors.append(
            "cycle_prediction.min_cycles cannot exceed cycle_prediction.rolling_window_cycles"
        )

    # ── Sperm health ──
    sh_raw = _section(raw, "sperm_health", "sperm_health")
    rr_raw = _section(sh_raw, "reference_ranges", "sperm_health.reference_ranges")
    ranges: dict[str, ReferenceRange] = {}
    for name in SPERM_PARAMETERS:
        default_min, default_opt = _DEFAULT_RANGES[name]
        path = f"sperm_health.reference_ranges.{name}"
        entry = _section(rr_raw, name, path)
        rng = ReferenceRange(
            min=_number(entry, "min", path, default_min),
            optimal=_number(entry, "optimal", path, default_opt),
        )
        if rng.min < 0 or rng.optimal <= rng.min:
            errors.append(f"{path} needs 0 <= min < optimal (got {rng.min}, {rng.optimal})")
        ranges[name] = rng
    for name in rr_raw:
        if name not in SPERM_PARAMETERS:
            errors.append(f"sperm_health.reference_ranges.{name} is not a scored parameter")

    ct_raw = _section(sh_raw, "category_thresholds", "sperm_health.category_thresholds")
    ct_path = "sperm_health.category_thresholds"
    sperm_health = SpermHealthConfig(
        reference_ranges=ranges,
        excellent_threshold=_count(ct_raw, "excellent", ct_path, 80, 1),
        good_threshold=_count(ct_raw, "good", ct_path, 60, 1),
        fair_threshold=_count(ct_raw, "fair", ct_path, 40, 1),
        trend_months=_count(sh_raw, "trend_months", "sperm_health", 6, 1),
    )
    if not (
        100 >= sperm_health.excellent_threshold
        > sperm_health.good_threshold
        > sperm_health.fair_threshold
    ):
        errors.append(f"{ct_path} must satisfy 100 >= excellent > good > fair")

    # ── Content ──
    cn_raw = _section(raw, "content", "content")
    w_raw = _section(cn_raw, "weights", "content.weights")
    weights: dict[str, float] = {}
    for signal, default in _DEFAULT_WEIGHTS.items():
        w = _number(w_raw, signal, "content.weights", default)
        if w < 0:
            errors.append(f"content.weights.{signal} = {w} must be >= 0")
        weights[signal] = w
    content = ContentConfig(
        weights=weights,
        default_limit=_count(cn_raw, "default_limit", "content", 10, 1),
    )

    # ── Calendar ──
    cal_raw = _section(raw, "calendar", "calendar")
    calendar = CalendarConfig(
        lookahead_days=_count(cal_raw, "lookahead_days", "calendar", 30, 1),
    )

    # ── Usage ──
    us_raw = _section(raw, "usage", "usage")
    usage = UsageConfig(
        cost_per_token_usd=_number(us_raw, "cost_per_token_usd", "usage", 0.00001),
        cost_limit_usd=_number(us_raw, "cost_limit_usd", "usage", 5.0),
    )
    if usage.cost_per_token_usd < 0 or usage.cost_limit_usd < 0:
        errors.append("usage costs must be >= 0")

    if errors:
        raise ConfigValidationError(
            f"analytics_config.yaml has {len(errors)} validation error(s):\n"
            + "\n".join(f"  • {e}" for e in errors)
        )

    return AnalyticsConfig(
        version=version,
        trend=trend,
        cycle=cycle,
        sperm_health=sperm_health,
        content=content,
        calendar=calendar,
        usage=usage,
        _raw=raw,
    )


def build_analytics_config(raw: dict[str, Any] | None = None) -> AnalyticsConfig:
    """Build a config from an in-memory mapping (defaults when empty)."""
    return _validate_and_build(raw or {})


def load_analytics_config(path: Path | None = None) -> AnalyticsConfig:
    """Load and validate the analytics config from disk.

    Args:
        path: Override path to YAML. Uses the bundled analytics_config.yaml by default.
    """
    target = path or _CONFIG_PATH
    raw = _load_yaml(target)
    config = _validate_and_build(raw)
    logger.info("Loaded analytics config v%s from %s", config.version, target)
    return config


# ---------------------------------------------------------------------------
# Global singleton with hot-reload support
# ---------------------------------------------------------------------------

_config: AnalyticsConfig | None = None
_config_lock = threading.Lock()


def get_analytics_config() -> AnalyticsConfig:
    """Return the global AnalyticsConfig, loading it on first call.

    Thread-safe.  Use ``reload_analytics_config()`` to refresh after YAML changes.
    """
    global _config
    if _config is None:
        with _config_lock:
            if _config is None:  # double-checked locking
                _config = load_analytics_config()
    return _config


def reload_analytics_config(path: Path | None = None) -> AnalyticsConfig:
    """Reload the config from disk and replace the global singleton.

    If validation fails the old config is retained and the error re-raised.

    Raises:
        ConfigValidationError: If the new config is invalid.
        FileNotFoundError:     If the config file is missing.
    """
    global _config
    new_config = load_analytics_config(path)  # validate before acquiring lock
    with _config_lock:
        old_version = _config.version if _config else "none"
        _config = new_config
    logger.info(
        "Reloaded analytics config: %s → %s",
        old_version,
        new_config.version,
    )
    return new_config
