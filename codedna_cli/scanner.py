"""Source locator: find JS/TS files in a project, honouring exclude and ignore rules."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from .config import DEFAULT_EXCLUDE_PATTERNS, SUPPORTED_EXTENSIONS, TS_EXTENSIONS
from .errors import ProjectRootError
from .models import ScannedFile

logger = logging.getLogger(__name__)

IGNORE_FILE = ".gitignore"


def load_ignore_patterns(project_root: Path) -> List[str]:
    """Read ``.gitignore`` patterns as verbatim name exclusions.

    Blank lines and ``#`` comments are skipped and a trailing ``/`` is
    stripped. Patterns are not glob-expanded.
    """
    ignore_path = project_root / IGNORE_FILE
    if not ignore_path.is_file():
        return []
    try:
        content = ignore_path.read_text(encoding="utf-8", errors="ignore")
    except OSError as exc:
        logger.debug("Could not read %s: %s", ignore_path, exc)
        return []

    patterns = []
    for line in content.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        line = line.rstrip("/")
        if line:
            patterns.append(line)
    return patterns


def language_for(path: str) -> Optional[str]:
    ext = os.path.splitext(path)[1]
    if ext not in SUPPORTED_EXTENSIONS:
        return None
    return "typescript" if ext in TS_EXTENSIONS else "javascript"


def is_excluded(name: str, patterns: Iterable[str]) -> bool:
    if name.startswith("."):
        return True
    return any(name == p or p in name for p in patterns)


def scan_project(
    project_root: Path,
    exclude_patterns: Optional[Sequence[str]] = None,
) -> List[ScannedFile]:
    """Walk *project_root* and return every supported source file.

    Raises:
        ProjectRootError: If *project_root* is missing or not a directory.
    """
    root = Path(project_root)
    if not root.is_dir():
        raise ProjectRootError(root)

    base = list(DEFAULT_EXCLUDE_PATTERNS if exclude_patterns is None else exclude_patterns)
    patterns = base + load_ignore_patterns(root)

    files: List[ScannedFile] = []
    _scan_dir(root, root, patterns, files)
    logger.debug("Scanned %s: %d source files", root, len(files))
    return files


def _scan_dir(root: Path, directory: Path, patterns: List[str], files: List[ScannedFile]) -> None:
    try:
        with os.scandir(directory) as it:
            entries = sorted(it, key=lambda e: e.name)
    except OSError as exc:
        logger.debug("Skipping unreadable directory %s: %s", directory, exc)
        return

    for entry in entries:
        if is_excluded(entry.name, patterns):
            continue
        try:
            if entry.is_dir(follow_symlinks=False):
                _scan_dir(root, Path(entry.path), patterns, files)
                continue
            if not entry.is_file():
                continue
            language = language_for(entry.name)
            if language is None:
                continue
            size = entry.stat().st_size
        except OSError as exc:
            logger.debug("Skipping unreadable entry %s: %s", entry.path, exc)
            continue

        absolute = Path(entry.path)
        relative = absolute.relative_to(root).as_posix()
        files.append(
            ScannedFile(
                absolute_path=absolute,
                relative_path=relative,
                language=language,
                size_bytes=size,
            )
        )
