"""Project DNA: a compact, cacheable summary of a project for context loading.

The document is plain markdown with a small front-matter header. Its
``git_head:`` line carries the commit fingerprint that the cache gate
looks for, so the key must stay in sync with :mod:`codedna_cli.cache`.
"""

from __future__ import annotations

import json
import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from . import config, vcs
from .models import ProjectDNA, ProjectInfo, RankedFile

logger = logging.getLogger(__name__)

FINGERPRINT_KEY = "git_head"
UNKNOWN_FINGERPRINT = "unknown"
DNA_FILENAME = "dna.md"

MAX_TOP_FILES = 20
MAX_DEPENDENCIES = 10
MAX_HISTORY = 10

# (package names, stack label, include version, pattern label)
STACK_RULES = [
    (("next",), "Next.js", True, "Next.js"),
    (("react",), "React", True, None),
    (("vue",), "Vue", True, None),
    (("express", "fastify"), "Server", False, None),
    (("typescript",), "TypeScript", False, "TypeScript"),
    (("@supabase/ssr", "@supabase/supabase-js"), "Supabase", False, None),
    (("prisma", "@prisma/client"), "Prisma", False, None),
    (("drizzle-orm",), "Drizzle", False, None),
    (("vitest",), None, False, "Vitest"),
    (("jest",), None, False, "Jest"),
]

_START_SCRIPT_RE = re.compile(r"(?:^|\s)(?:node|ts-node|tsx)\s+(\S+)")
_REMOTE_NAME_RE = re.compile(r"[/:]([^/:]+?)(?:\.git)?/?$")


def slugify(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")


def _read_package_json(project_root: Path) -> Optional[Dict[str, Any]]:
    pkg_path = project_root / "package.json"
    if not pkg_path.is_file():
        return None
    try:
        data = json.loads(pkg_path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        logger.warning("Skipping unreadable %s: %s", pkg_path, exc)
        return None
    return data if isinstance(data, dict) else None


def repo_name_from_remote(remote: str) -> str:
    """``https://github.com/user/repo.git`` or ``git@host:user/repo.git`` -> ``repo``."""
    match = _REMOTE_NAME_RE.search(remote.strip())
    return match.group(1) if match else remote


def detect_project(project_root: Path) -> Optional[ProjectInfo]:
    """Identify the project by its git remote, falling back to ``package.json``."""
    remote = vcs.get_remote_url(project_root)
    if remote:
        name = repo_name_from_remote(remote)
        return ProjectInfo(name=name, slug=slugify(name), remote=remote)

    pkg = _read_package_json(project_root)
    if pkg is not None:
        name = pkg.get("name") or project_root.name
        return ProjectInfo(name=str(name), slug=slugify(str(name)))
    return None


def _merged_dependencies(pkg: Dict[str, Any]) -> Dict[str, str]:
    merged: Dict[str, str] = {}
    for key in ("dependencies", "devDependencies"):
        section = pkg.get(key)
        if isinstance(section, dict):
            for dep, version in section.items():
                merged[str(dep)] = str(version)
    return merged


def critical_dependencies(deps: Dict[str, str], limit: int = MAX_DEPENDENCIES) -> Dict[str, str]:
    """First *limit* dependencies, leaving out ``@types/*`` packages."""
    picked: Dict[str, str] = {}
    for dep, version in deps.items():
        if dep.startswith("@types/"):
            continue
        if len(picked) >= limit:
            break
        picked[dep] = version
    return picked


def gather_project_metadata(project_root: Path, info: Optional[ProjectInfo] = None) -> ProjectDNA:
    """Collect stack, entry points, dependencies and history for *project_root*."""
    project_root = Path(project_root)
    name = info.name if info else project_root.name
    slug = info.slug if info else slugify(name)
    dna = ProjectDNA(slug=slug, name=name)

    pkg = _read_package_json(project_root)
    if pkg is not None:
        deps = _merged_dependencies(pkg)
        for packages, stack_label, with_version, pattern in STACK_RULES:
            hit = next((p for p in packages if p in deps), None)
            if hit is None:
                continue
            if stack_label:
                dna.stack.append(f"{stack_label} {deps[hit]}" if with_version else stack_label)
            if pattern:
                dna.detected_patterns.append(pattern)

        dna.dependencies = critical_dependencies(deps)

        main = pkg.get("main")
        if isinstance(main, str) and main:
            dna.entrypoints.append(main)
        scripts = pkg.get("scripts")
        start = scripts.get("start") if isinstance(scripts, dict) else None
        if isinstance(start, str):
            match = _START_SCRIPT_RE.search(start)
            if match and match.group(1) not in dna.entrypoints:
                dna.entrypoints.append(match.group(1))

    if (project_root / "tsconfig.json").exists() and "TypeScript" not in dna.stack:
        dna.stack.append("TypeScript")

    dna.recent_history = vcs.get_recent_commit_subjects(project_root, MAX_HISTORY)

    if (project_root / "README.md").exists():
        dna.detected_patterns.append("README")
    if (project_root / "CLAUDE.md").exists():
        dna.detected_patterns.append("CLAUDE.md")

    dna.vcs_fingerprint = vcs.get_current_commit_id(project_root) or UNKNOWN_FINGERPRINT
    return dna


def estimate_tokens(text: str) -> int:
    return round(len(text) / 4)


def generate_dna(metadata: ProjectDNA, top_files: Sequence[RankedFile]) -> str:
    """Render *metadata* and the ranked files as the DNA markdown document."""
    generated_at = metadata.generated_at or datetime.now(timezone.utc).isoformat()
    lines: List[str] = [
        "---",
        f"project: {metadata.slug}",
        f"generated: {generated_at}",
        f"{FINGERPRINT_KEY}: {metadata.vcs_fingerprint}",
        "---",
        "",
        f"# Project DNA: {metadata.name}",
        "",
    ]

    def section(title: str, body: List[str]) -> None:
        if body:
            lines.append(f"## {title}")
            lines.extend(body)
            lines.append("")

    section("Stack", [", ".join(metadata.stack)] if metadata.stack else [])
    section("Entrypoints", [f"- {ep}" for ep in metadata.entrypoints])
    section(
        "Top Files (by import centrality)",
        [f"- {f.path} ({f.rank})" for f in list(top_files)[:MAX_TOP_FILES]],
    )
    deps = critical_dependencies(metadata.dependencies)
    section("Critical Dependencies", [f"- {dep}: {ver}" for dep, ver in deps.items()])
    section("Recent Commits", [f"- {entry}" for entry in metadata.recent_history[:MAX_HISTORY]])
    section(
        "Detected Patterns",
        [", ".join(metadata.detected_patterns)] if metadata.detected_patterns else [],
    )
    return "\n".join(lines)


def dna_path(slug: str) -> Path:
    return config.PROJECTS_DIR / slug / DNA_FILENAME


def save_dna(slug: str, content: str) -> Path:
    """Write the DNA for *slug*; unchanged content leaves the file untouched."""
    path = dna_path(slug)
    path.parent.mkdir(parents=True, exist_ok=True)
    try:
        if path.is_file() and path.read_text(encoding="utf-8") == content:
            logger.debug("DNA for %s unchanged", slug)
            return path
    except (OSError, UnicodeDecodeError) as exc:
        logger.debug("Rewriting unreadable DNA %s: %s", path, exc)
    path.write_text(content, encoding="utf-8")
    return path


def load_dna(slug: str) -> Optional[str]:
    path = dna_path(slug)
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return None
