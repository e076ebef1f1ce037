"""Configuration manager for CodeDNA CLI using TOML files."""

from __future__ import annotations

import logging
from dataclasses import asdict, fields
from pathlib import Path
from typing import Any, Dict

import toml

from . import config
from .config import IngestSettings

logger = logging.getLogger(__name__)


def config_file() -> Path:
    return config.BASE_DIR / "config.toml"


def load_full_config() -> Dict[str, Any]:
    """Load the entire TOML config (all sections)."""
    path = config_file()
    if not path.exists():
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            return toml.load(f)
    except (OSError, toml.TomlDecodeError) as exc:
        logger.warning("Ignoring unreadable config %s: %s", path, exc)
        return {}


def load_ingest_settings() -> IngestSettings:
    """Build :class:`IngestSettings` from the ``[ingest]`` section.

    Unknown keys are ignored and values of the wrong type fall back to
    the defaults, so a hand-edited file can never break ingestion.
    """
    defaults = IngestSettings()
    section = load_full_config().get("ingest", {})
    if not isinstance(section, dict):
        return defaults

    overrides: Dict[str, Any] = {}
    for f in fields(IngestSettings):
        if f.name not in section:
            continue
        value = section[f.name]
        default = getattr(defaults, f.name)
        if isinstance(default, list):
            if isinstance(value, list) and all(isinstance(v, str) for v in value):
                # an empty pattern would match every name
                overrides[f.name] = [v.strip() for v in value if v.strip()]
        elif isinstance(default, float):
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                overrides[f.name] = float(value)
        elif isinstance(value, int) and not isinstance(value, bool):
            overrides[f.name] = value
        if f.name not in overrides:
            logger.warning("Ignoring invalid [ingest] %s = %r", f.name, value)

    return IngestSettings(**{**asdict(defaults), **overrides})
