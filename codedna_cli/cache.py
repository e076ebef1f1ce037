"""Cache gate: reuse a saved Project DNA while the commit fingerprint is unchanged."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from . import vcs
from .project_dna import FINGERPRINT_KEY, dna_path

logger = logging.getLogger(__name__)


def get_cache_key(project_root: Path) -> Optional[str]:
    return vcs.get_current_commit_id(project_root)


def is_cache_valid(slug: str, project_root: Path) -> bool:
    """True when the saved DNA for *slug* embeds the current commit id.

    A missing artifact, an unknown commit or any read failure counts as
    invalid, forcing regeneration.
    """
    path = dna_path(slug)
    if not path.is_file():
        return False

    head = get_cache_key(project_root)
    if not head:
        return False

    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        logger.debug("Cannot read cached DNA %s: %s", path, exc)
        return False
    return f"{FINGERPRINT_KEY}: {head}" in content
