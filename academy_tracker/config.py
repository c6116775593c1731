from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Mapping

from .constants import DEFAULT_ANALYSIS_WINDOW_DAYS
from .env import get_env

try:  # pragma: no cover - Python 3.11+
    import tomllib  # type: ignore[attr-defined]
except ModuleNotFoundError:  # pragma: no cover - Python <3.11
    try:
        import tomli as tomllib  # type: ignore
    except ModuleNotFoundError:
        tomllib = None  # type: ignore

DEFAULT_PLAN_TOLERANCE = 0.01


@dataclass(frozen=True)
class RecommendationThresholds:
    optimal: float = 5.0
    medium: float = 10.0
    high: float = 15.0


@dataclass(frozen=True)
class AppConfig:
    analysis_window_days: int = DEFAULT_ANALYSIS_WINDOW_DAYS
    plan_tolerance: float = DEFAULT_PLAN_TOLERANCE
    thresholds: RecommendationThresholds = RecommendationThresholds()


def _config_path() -> Path | None:
    """Resolve the TOML configuration file, if present."""
    env_override = get_env("CONFIG")
    if env_override:
        path = Path(env_override).expanduser()
        return path if path.exists() else None

    default_path = Path("config/academy_tracker.toml")
    if default_path.exists():
        return default_path
    return None


def _load_toml(path: Path) -> Mapping[str, Any]:
    if tomllib is None:
        raise RuntimeError("TOML configuration requires Python 3.11+ or the 'tomli' package.")
    with path.open("rb") as handle:
        return tomllib.load(handle)


def _coerce_window(raw: Any) -> int:
    try:
        days = int(raw)
    except (TypeError, ValueError):
        return DEFAULT_ANALYSIS_WINDOW_DAYS
    return days if days > 0 else DEFAULT_ANALYSIS_WINDOW_DAYS


def _coerce_tolerance(raw: Any) -> float:
    try:
        tolerance = float(raw)
    except (TypeError, ValueError):
        return DEFAULT_PLAN_TOLERANCE
    return tolerance if tolerance >= 0 else DEFAULT_PLAN_TOLERANCE


def _coerce_thresholds(raw: Mapping[str, Any] | None) -> RecommendationThresholds:
    base = RecommendationThresholds()
    if not raw:
        return base
    try:
        optimal = float(raw.get("optimal", base.optimal))
        medium = float(raw.get("medium", base.medium))
        high = float(raw.get("high", base.high))
    except (TypeError, ValueError):
        return base
    if not 0 <= optimal <= medium <= high:
        return base
    return RecommendationThresholds(optimal=optimal, medium=medium, high=high)


def _build_config(raw: Mapping[str, Any]) -> AppConfig:
    thresholds_section = raw.get("thresholds")
    thresholds = _coerce_thresholds(thresholds_section if isinstance(thresholds_section, Mapping) else None)
    return AppConfig(
        analysis_window_days=_coerce_window(raw.get("analysis_window_days", DEFAULT_ANALYSIS_WINDOW_DAYS)),
        plan_tolerance=_coerce_tolerance(raw.get("plan_tolerance", DEFAULT_PLAN_TOLERANCE)),
        thresholds=thresholds,
    )


@lru_cache(maxsize=1)
def get_config() -> AppConfig:
    """Load configuration once, falling back to built-in defaults."""
    path = _config_path()
    if not path:
        return AppConfig()
    data = _load_toml(path)
    return _build_config(data)


def as_dict() -> dict[str, Any]:
    """Return the effective configuration for debug/CLI display."""
    config = get_config()
    return {
        "analysis_window_days": config.analysis_window_days,
        "plan_tolerance": config.plan_tolerance,
        "thresholds": {
            "optimal": config.thresholds.optimal,
            "medium": config.thresholds.medium,
            "high": config.thresholds.high,
        },
        "source": str(_config_path() or "defaults"),
    }
