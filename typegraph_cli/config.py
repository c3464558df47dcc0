"""Configuration paths and analysis defaults for local TypeGraph catalogs."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Tuple

logger = logging.getLogger(__name__)

BASE_DIR = Path(os.environ.get("TYPEGRAPH_HOME", str(Path.home() / ".typegraph"))).expanduser()
MEMORY_DIR = BASE_DIR / "memory"
STATE_FILE = BASE_DIR / "state.json"

MIN_DEPTH = 1
MAX_DEPTH = 10
DEFAULT_MAX_DEPTH = 5
DEFAULT_MATRIX_LIMIT = 20
DEFAULT_FETCH_LIMIT = 1000
SYSTEM_PREFIXES: Tuple[str, ...] = ("System.", "UnityEngine.", "Unity.", "Microsoft.", "Mono.")


@dataclass
class AnalysisSettings:
    """Tunables handed to :class:`~typegraph_cli.analyzer.TypeAnalyzer`.

    Example:
        settings = AnalysisSettings(matrix_limit=50)
        settings = AnalysisSettings.from_mapping(load_analysis_config())
    """

    default_max_depth: int = DEFAULT_MAX_DEPTH
    matrix_limit: int = DEFAULT_MATRIX_LIMIT
    fetch_limit: int = DEFAULT_FETCH_LIMIT
    system_prefixes: Tuple[str, ...] = SYSTEM_PREFIXES

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "AnalysisSettings":
        """Build settings from a ``[analysis]`` table, ignoring bad entries."""
        settings = cls()
        for key in ("default_max_depth", "matrix_limit", "fetch_limit"):
            if key not in values:
                continue
            try:
                number = int(values[key])
            except (TypeError, ValueError):
                logger.warning("Ignoring non-integer analysis setting %s=%r", key, values[key])
                continue
            if number < 1 or (key == "default_max_depth" and number > MAX_DEPTH):
                logger.warning("Ignoring out-of-range analysis setting %s=%d", key, number)
                continue
            setattr(settings, key, number)

        prefixes = values.get("system_prefixes")
        if isinstance(prefixes, (list, tuple)) and all(isinstance(p, str) for p in prefixes):
            settings.system_prefixes = tuple(prefixes)
        elif prefixes is not None:
            logger.warning("Ignoring malformed system_prefixes setting: %r", prefixes)
        return settings


def ensure_base_dirs() -> None:
    """Create base directories for local storage if needed."""
    MEMORY_DIR.mkdir(parents=True, exist_ok=True)
    BASE_DIR.mkdir(parents=True, exist_ok=True)
