"""Configuration manager for TypeGraph CLI using TOML files."""

from __future__ import annotations

import logging
from typing import Any, Dict

import toml

from . import config
from .config import AnalysisSettings

logger = logging.getLogger(__name__)

CONFIG_FILE = config.BASE_DIR / "config.toml"


def _positive_int(raw: Any) -> int:
    value = int(raw)
    if value < 1:
        raise ValueError(f"expected a positive integer, got {value}")
    return value


def _depth(raw: Any) -> int:
    value = _positive_int(raw)
    if value > config.MAX_DEPTH:
        raise ValueError(f"depth must be at most {config.MAX_DEPTH}")
    return value


# Keys accepted in the [analysis] section and how to coerce CLI input for them
ANALYSIS_KEYS = {
    "default_max_depth": _depth,
    "matrix_limit": _positive_int,
    "fetch_limit": _positive_int,
    "system_prefixes": lambda raw: [p.strip() for p in str(raw).split(",") if p.strip()],
}


def load_full_config() -> Dict[str, Any]:
    """Load the entire TOML config (all sections)."""
    if not CONFIG_FILE.exists():
        return {}
    try:
        with open(CONFIG_FILE, "r", encoding="utf-8") as f:
            return toml.load(f)
    except (OSError, toml.TomlDecodeError) as exc:
        logger.warning("Could not read %s: %s", CONFIG_FILE, exc)
        return {}


def _save_full_config(payload: Dict[str, Any]) -> bool:
    """Write entire config dict to TOML file, preserving all sections."""
    CONFIG_FILE.parent.mkdir(parents=True, exist_ok=True)
    try:
        with open(CONFIG_FILE, "w", encoding="utf-8") as f:
            toml.dump(payload, f)
        return True
    except OSError as exc:
        logger.warning("Could not write %s: %s", CONFIG_FILE, exc)
        return False


def load_analysis_config() -> Dict[str, Any]:
    """Load the ``[analysis]`` section (empty dict when absent)."""
    section = load_full_config().get("analysis", {})
    return dict(section) if isinstance(section, dict) else {}


def load_settings() -> AnalysisSettings:
    """Analysis settings with TOML overrides applied on top of the defaults."""
    return AnalysisSettings.from_mapping(load_analysis_config())


def save_analysis_value(key: str, raw_value: str) -> bool:
    """Persist one ``[analysis]`` key.

    Args:
        key: One of :data:`ANALYSIS_KEYS`.
        raw_value: Value as typed on the command line.

    Returns:
        True if saved successfully, False otherwise.

    Raises:
        KeyError: Unknown key.
        ValueError: Value cannot be coerced to the key's type.
    """
    coerce = ANALYSIS_KEYS[key]
    value = coerce(raw_value)

    payload = load_full_config()
    section = payload.get("analysis")
    if not isinstance(section, dict):
        section = {}
    section[key] = value
    payload["analysis"] = section
    return _save_full_config(payload)


def reset_analysis_config() -> bool:
    """Drop the ``[analysis]`` section, keeping any other sections."""
    payload = load_full_config()
    if "analysis" not in payload:
        return True
    del payload["analysis"]
    return _save_full_config(payload)
