"""Load, validate, and hot-reload the Cyclecast engine configuration.

The config lives in ``cycle_config.yaml`` alongside this module.  At startup
it is loaded once and cached.  Call ``reload_cycle_config()`` to re-read from
disk after an edit — no restart required.

Usage::

    from src.cycles.config_loader import get_cycle_config

    config = get_cycle_config()
    config.cycle_length.max_usable_gap_days   # 45
    config.category_for("Cramps")             # 'Physical'
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from src.cycles.base import NotificationPreferences, Theme

logger = logging.getLogger("cyclecast.cycles.config")

# Path to the YAML file sitting next to this module
_CONFIG_PATH = Path(__file__).parent / "cycle_config.yaml"


# ---------------------------------------------------------------------------
# Typed config sections
# ---------------------------------------------------------------------------


@dataclass
class PredictionConfig:
    """Next-period and fertile-window heuristics."""

    default_cycle_length: int = 28
    luteal_phase_days: int = 14
    fertile_days_before_ovulation: int = 5
    fertile_days_after_ovulation: int = 1


@dataclass
class CycleLengthConfig:
    max_usable_gap_days: int = 45
    recent_cycles: int = 6


@dataclass
class PeriodConfig:
    """Period duration defaults.

    ``assumed_open_period_days`` only affects calendar display of an
    ongoing period; prediction and analytics never use it.
    """

    default_duration_days: int = 5
    assumed_open_period_days: int = 5
    predicted_period_days: int = 5


@dataclass
class ProfileDefaults:
    """Values a new profile starts from on the first period log."""

    average_cycle_length: int = 28
    average_period_length: int = 5
    theme: Theme = Theme.light
    notifications: NotificationPreferences = field(default_factory=NotificationPreferences)


@dataclass
class SymptomCategory:
    name: str
    symptoms: list[str]


@dataclass
class CycleConfig:
    """Complete, validated engine configuration.

    This is the single in-memory representation of cycle_config.yaml.
    The analytics, prediction, and calendar components all read from it.

    Attributes:
        version:            Config schema version string.
        prediction:         Next-period / ovulation heuristics.
        cycle_length:       Usable-gap bound and recent-history size.
        variance_penalty:   Multiplier in the regularity score.
        period:             Period duration defaults.
        profile_defaults:   Starting values for a new profile.
        symptom_categories: Symptom catalog offered to the logging flow.
        period_tags:        Suggested tags for a period log.
    """

    version: str
    prediction: PredictionConfig
    cycle_length: CycleLengthConfig
    variance_penalty: float
    period: PeriodConfig
    profile_defaults: ProfileDefaults
    symptom_categories: list[SymptomCategory] = field(default_factory=list)
    period_tags: list[str] = field(default_factory=list)
    _raw: dict = field(default_factory=dict, repr=False)

    # ------------------------------------------------------------------
    # Convenience accessors
    # ------------------------------------------------------------------

    @property
    def fertile_window_days(self) -> int:
        """Span in days from fertile window start to end."""
        p = self.prediction
        return p.fertile_days_before_ovulation + p.fertile_days_after_ovulation

    def symptoms_in(self, category: str) -> list[str]:
        """Return the catalog symptoms for a category (empty if unknown)."""
        for cat in self.symptom_categories:
            if cat.name == category:
                return list(cat.symptoms)
        return []

    def category_for(self, symptom_type: str) -> str | None:
        """Return the catalog category of a symptom, or None for free text."""
        for cat in self.symptom_categories:
            if symptom_type in cat.symptoms:
                return cat.name
        return None


# ---------------------------------------------------------------------------
# Loader / validation
# ---------------------------------------------------------------------------


class ConfigValidationError(ValueError):
    """Raised when cycle_config.yaml fails validation."""


def _load_yaml(path: Path) -> dict:
    """Read and parse a YAML file.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigValidationError: If the YAML is malformed.
    """
    if not path.exists():
        raise FileNotFoundError(f"Cycle config not found: {path}")

    with path.open("r", encoding="utf-8") as fh:
        try:
            return yaml.safe_load(fh) or {}
        except yaml.YAMLError as exc:
            raise ConfigValidationError(f"YAML parse error in {path}: {exc}") from exc


def _validate_and_build(raw: dict) -> CycleConfig:
    """Validate the raw YAML dict and construct a CycleConfig.

    Applies defaults for any missing optional field.

    Raises:
        ConfigValidationError: If any value is missing, mistyped, or out of range.
    """
    errors: list[str] = []

    def _positive_int(d: dict, key: str, section: str, default: int) -> int:
        val = d.get(key, default)
        try:
            n = int(val)
        except (TypeError, ValueError):
            errors.append(f"{section}.{key} must be an integer, got {val!r}")
            return default
        if n <= 0:
            errors.append(f"{section}.{key} must be positive, got {n}")
        return n

    def _section(key: str) -> dict:
        val = raw.get(key) or {}
        if not isinstance(val, dict):
            errors.append(f"'{key}' must be a mapping")
            return {}
        return val

    version = str(raw.get("version", "1.0"))

    # ── Prediction ──
    pr_raw = _section("prediction")
    fw_raw = pr_raw.get("fertile_window") or {}
    prediction = PredictionConfig(
        default_cycle_length=_positive_int(pr_raw, "default_cycle_length", "prediction", 28),
        luteal_phase_days=_positive_int(pr_raw, "luteal_phase_days", "prediction", 14),
        fertile_days_before_ovulation=_positive_int(
            fw_raw, "days_before_ovulation", "prediction.fertile_window", 5
        ),
        fertile_days_after_ovulation=_positive_int(
            fw_raw, "days_after_ovulation", "prediction.fertile_window", 1
        ),
    )

    # ── Cycle length ──
    cl_raw = _section("cycle_length")
    cycle_length = CycleLengthConfig(
        max_usable_gap_days=_positive_int(cl_raw, "max_usable_gap_days", "cycle_length", 45),
        recent_cycles=_positive_int(cl_raw, "recent_cycles", "cycle_length", 6),
    )
    if prediction.luteal_phase_days >= cycle_length.max_usable_gap_days:
        errors.append(
            f"prediction.luteal_phase_days ({prediction.luteal_phase_days}) must be "
            f"shorter than cycle_length.max_usable_gap_days ({cycle_length.max_usable_gap_days})"
        )

    # ── Regularity ──
    rg_raw = _section("regularity")
    try:
        variance_penalty = float(rg_raw.get("variance_penalty", 2))
    except (TypeError, ValueError):
        errors.append(
            f"regularity.variance_penalty must be a number, got {rg_raw.get('variance_penalty')!r}"
        )
        variance_penalty = 2.0
    if variance_penalty < 0:
        errors.append(
            f"regularity.variance_penalty must not be negative, got {variance_penalty}"
        )
        variance_penalty = 2.0

    # ── Period ──
    pd_raw = _section("period")
    period = PeriodConfig(
        default_duration_days=_positive_int(pd_raw, "default_duration_days", "period", 5),
        assumed_open_period_days=_positive_int(pd_raw, "assumed_open_period_days", "period", 5),
        predicted_period_days=_positive_int(pd_raw, "predicted_period_days", "period", 5),
    )

    # ── Profile defaults ──
    pf_raw = _section("profile_defaults")
    notif_raw = pf_raw.get("notifications") or {}
    theme_raw = pf_raw.get("theme", "light")
    try:
        theme = Theme(theme_raw)
    except ValueError:
        errors.append(f"profile_defaults.theme must be 'light' or 'dark', got {theme_raw!r}")
        theme = Theme.light
    profile_defaults = ProfileDefaults(
        average_cycle_length=_positive_int(
            pf_raw, "average_cycle_length", "profile_defaults", 28
        ),
        average_period_length=_positive_int(
            pf_raw, "average_period_length", "profile_defaults", 5
        ),
        theme=theme,
        notifications=NotificationPreferences(
            period_reminder=bool(notif_raw.get("period_reminder", True)),
            ovulation_reminder=bool(notif_raw.get("ovulation_reminder", True)),
            pms_alert=bool(notif_raw.get("pms_alert", True)),
        ),
    )

    # ── Symptom catalog ──
    categories: list[SymptomCategory] = []
    seen: dict[str, str] = {}
    for name, symptoms in _section("symptoms").items():
        if not isinstance(symptoms, list):
            errors.append(f"symptoms.{name} must be a list of labels")
            continue
        labels = [str(s) for s in symptoms]
        for label in labels:
            if label in seen:
                errors.append(
                    f"Symptom '{label}' listed under both '{seen[label]}' and '{name}'"
                )
            seen[label] = name
        categories.append(SymptomCategory(name=str(name), symptoms=labels))

    tags_raw: Any = raw.get("period_tags") or []
    if not isinstance(tags_raw, list):
        errors.append("'period_tags' must be a list")
        tags_raw = []

    if errors:
        raise ConfigValidationError(
            f"cycle_config.yaml has {len(errors)} validation error(s):\n"
            + "\n".join(f"  • {e}" for e in errors)
        )

    return CycleConfig(
        version=version,
        prediction=prediction,
        cycle_length=cycle_length,
        variance_penalty=variance_penalty,
        period=period,
        profile_defaults=profile_defaults,
        symptom_categories=categories,
        period_tags=[str(t) for t in tags_raw],
        _raw=raw,
    )


def load_cycle_config(path: Path | None = None) -> CycleConfig:
    """Load and validate the cycle config from disk.

    Args:
        path: Override path to YAML. Uses the bundled cycle_config.yaml by default.

    Returns:
        Validated CycleConfig instance.
    """
    target = path or _CONFIG_PATH
    raw = _load_yaml(target)
    config = _validate_and_build(raw)
    logger.info("Loaded cycle config v%s from %s", config.version, target)
    return config


# ---------------------------------------------------------------------------
# Global singleton with hot-reload support
# ---------------------------------------------------------------------------

_config: CycleConfig | None = None
_config_lock = threading.Lock()


def get_cycle_config() -> CycleConfig:
    """Return the global CycleConfig singleton, loading it on first call.

    Thread-safe.  Use ``reload_cycle_config()`` to refresh after YAML changes.
    """
    global _config
    if _config is None:
        with _config_lock:
            if _config is None:  # double-checked locking
                _config = load_cycle_config()
    return _config


def reload_cycle_config(path: Path | None = None) -> CycleConfig:
    """Reload the cycle config from disk and replace the global singleton.

    If validation fails, the old config is retained and the error is re-raised.

    Raises:
        ConfigValidationError: If the new config is invalid.
        FileNotFoundError:     If the config file is missing.
    """
    global _config
    new_config = load_cycle_config(path)  # validate before acquiring lock
    with _config_lock:
        old_version = _config.version if _config else "none"
        _config = new_config
    logger.info("Reloaded cycle config: %s → %s", old_version, new_config.version)
    return new_config
