"""Thin git wrapper. Every helper degrades to None / [] outside a repository."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import List, Optional

logger = logging.getLogger(__name__)

GIT_TIMEOUT_SECONDS = 10


def _git(path: Path, *args: str) -> Optional[str]:
    try:
        result = subprocess.run(
            ["git", *args],
            cwd=str(path),
            capture_output=True,
            text=True,
            timeout=GIT_TIMEOUT_SECONDS,
        )
    except (OSError, subprocess.SubprocessError) as exc:
        logger.debug("git %s failed in %s: %s", " ".join(args), path, exc)
        return None
    if result.returncode != 0:
        logger.debug("git %s exited %d in %s", " ".join(args), result.returncode, path)
        return None
    return result.stdout.strip()


def get_current_commit_id(path: Path) -> Optional[str]:
    """Return the HEAD commit hash, or None if *path* is not in a git repository."""
    output = _git(path, "rev-parse", "HEAD")
    return output or None


def get_recent_commit_subjects(path: Path, limit: int = 10) -> List[str]:
    """Return up to *limit* ``<short-hash> <subject>`` lines, newest first."""
    if limit <= 0:
        return []
    output = _git(path, "log", "--oneline", f"-{limit}")
    if not output:
        return []
    return [line for line in output.splitlines() if line.strip()][:limit]


def get_remote_url(path: Path, remote: str = "origin") -> Optional[str]:
    output = _git(path, "remote", "get-url", remote)
    return output or None
