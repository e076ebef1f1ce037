"""Configuration paths and ingestion defaults for local CodeDNA memory."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

BASE_DIR = Path(os.environ.get("CODEDNA_HOME", str(Path.home() / ".codedna"))).expanduser()
PROJECTS_DIR = BASE_DIR / "projects"
META_DB_PATH = BASE_DIR / "meta.db"
STATE_FILE = BASE_DIR / "state.json"

TS_EXTENSIONS = (".ts", ".tsx", ".mts", ".cts")
JS_EXTENSIONS = (".js", ".jsx", ".mjs", ".cjs")
# Resolution tries extensions in this order.
SUPPORTED_EXTENSIONS = (".ts", ".tsx", ".js", ".jsx", ".mts", ".cts", ".mjs", ".cjs")

DEFAULT_EXCLUDE_PATTERNS = [
    "node_modules",
    "dist",
    "build",
    ".git",
    "coverage",
    ".next",
    ".turbo",
]


@dataclass
class IngestSettings:
    """Tunables for one ingestion run (overridable from ``config.toml``)."""

    exclude_patterns: List[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDE_PATTERNS))
    damping: float = 0.85
    max_iterations: int = 50
    convergence: float = 1e-6
    top_files_count: int = 20
    dna_max_tokens: int = 1500


def ensure_base_dirs() -> None:
    """Create base directories for local storage if needed."""
    BASE_DIR.mkdir(parents=True, exist_ok=True)
    PROJECTS_DIR.mkdir(parents=True, exist_ok=True)
