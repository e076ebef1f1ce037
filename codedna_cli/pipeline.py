"""Ingestion pipeline: scan -> extract -> graph -> rank -> Project DNA -> persist."""

from __future__ import annotations

import logging
import sqlite3
import time
from pathlib import Path
from typing import Optional

from .cache import is_cache_valid
from .config import IngestSettings
from .errors import ProjectRootError
from .graph_builder import build_import_graph
from .models import IngestResult, ProjectInfo
from .pagerank import calculate_pagerank
from .project_dna import (
    MAX_DEPENDENCIES,
    dna_path,
    detect_project,
    estimate_tokens,
    gather_project_metadata,
    generate_dna,
    save_dna,
    slugify,
)
from .scanner import scan_project
from .storage import CodeGraphStore

logger = logging.getLogger(__name__)


class IngestPipeline:
    """Runs one ingestion of a project root, honouring the DNA cache."""

    def __init__(
        self,
        settings: Optional[IngestSettings] = None,
        store: Optional[CodeGraphStore] = None,
    ) -> None:
        self.settings = settings or IngestSettings()
        self.store = store

    def resolve_project(self, project_root: Path) -> ProjectInfo:
        info = detect_project(project_root)
        if info is None or not info.slug:
            name = project_root.name
            info = ProjectInfo(name=name, slug=slugify(name) or "project")
        return info

    def run(self, project_root: Path, force: bool = False) -> IngestResult:
        """Ingest *project_root*.

        Raises:
            ProjectRootError: If the root does not exist or is not a directory.
        """
        root = Path(project_root).resolve()
        if not root.is_dir():
            raise ProjectRootError(root)

        project = self.resolve_project(root)

        if not force and is_cache_valid(project.slug, root):
            logger.info("DNA for %s is current; skipping ingest", project.slug)
            return IngestResult(
                project=project.name,
                slug=project.slug,
                cached=True,
                dna_path=dna_path(project.slug),
            )

        started = time.monotonic()
        settings = self.settings

        files = scan_project(root, settings.exclude_patterns)
        logger.info("Found %d source files in %s", len(files), root)

        graph = build_import_graph(root, files)
        ranking = calculate_pagerank(
            graph,
            damping=settings.damping,
            max_iterations=settings.max_iterations,
            convergence=settings.convergence,
            top_k=settings.top_files_count,
        )
        logger.info(
            "Ranked %d nodes / %d edges in %d iterations (converged=%s)",
            len(graph.nodes), len(graph.edges), ranking.iterations, ranking.converged,
        )

        metadata = gather_project_metadata(root, project)
        top = ranking.top_files
        content = generate_dna(metadata, top)
        # Shrink the ranked list until the document fits the token budget.
        while estimate_tokens(content) > settings.dna_max_tokens and top:
            top = top[: len(top) // 2] if len(top) > 1 else []
            content = generate_dna(metadata, top)
        if estimate_tokens(content) > settings.dna_max_tokens:
            logger.warning(
                "Project DNA for %s exceeds %d tokens (limited to %d dependencies)",
                project.slug, settings.dna_max_tokens, MAX_DEPENDENCIES,
            )
        path = save_dna(project.slug, content)

        self._persist(graph, project.slug)

        return IngestResult(
            project=project.name,
            slug=project.slug,
            cached=False,
            files=len(files),
            nodes=len(graph.nodes),
            edges=len(graph.edges),
            iterations=ranking.iterations,
            converged=ranking.converged,
            top_files=ranking.top_files,
            dna_path=path,
            token_estimate=estimate_tokens(content),
            duration_ms=int((time.monotonic() - started) * 1000),
        )

    def _persist(self, graph, slug: str) -> None:
        store = self.store
        owned = store is None
        try:
            if owned:
                store = CodeGraphStore()
            store.save_graph(graph, slug)
        except (sqlite3.Error, OSError) as exc:
            logger.warning("Could not persist code graph for %s: %s", slug, exc)
        finally:
            if owned and store is not None:
                store.close()
