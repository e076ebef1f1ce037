"""SQLite persistence for per-project code graphs plus project bookkeeping.

Nodes are keyed by ``(path, project)`` and edges by ``(source, target,
project)`` so re-ingesting a project upserts rows instead of duplicating
them.
"""

from __future__ import annotations

import json
import logging
import shutil
import sqlite3
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from . import config
from .models import ImportGraph

logger = logging.getLogger(__name__)


# ===================================================================
# ProjectManager  (project directories / active project)
# ===================================================================

class ProjectManager:
    """Manage per-project directories and active project state."""

    def __init__(self) -> None:
        config.ensure_base_dirs()

    def list_projects(self) -> List[str]:
        if not config.PROJECTS_DIR.exists():
            return []
        return sorted(p.name for p in config.PROJECTS_DIR.iterdir() if p.is_dir())

    def project_dir(self, slug: str) -> Path:
        return config.PROJECTS_DIR / slug

    def create_or_get_project(self, slug: str) -> Path:
        path = self.project_dir(slug)
        path.mkdir(parents=True, exist_ok=True)
        return path

    def set_current_project(self, slug: str) -> None:
        config.ensure_base_dirs()
        config.STATE_FILE.write_text(
            json.dumps({"current_project": slug}, indent=2),
            encoding="utf-8",
        )

    def get_current_project(self) -> Optional[str]:
        if not config.STATE_FILE.exists():
            return None
        try:
            payload = json.loads(config.STATE_FILE.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            return None
        return payload.get("current_project")

    def delete_project(self, slug: str) -> bool:
        path = self.project_dir(slug)
        if not path.exists():
            return False
        shutil.rmtree(path)
        if self.get_current_project() == slug:
            config.STATE_FILE.write_text(
                json.dumps({"current_project": None}, indent=2),
                encoding="utf-8",
            )
        return True


# ===================================================================
# CodeGraphStore  (SQLite)
# ===================================================================

class CodeGraphStore:
    """Relational store for ranked file nodes and import edges."""

    def __init__(self, db_path: Optional[Path] = None) -> None:
        self.db_path = db_path or config.META_DB_PATH
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(str(self.db_path))
        self.conn.row_factory = sqlite3.Row
        self._init_schema()

    def close(self) -> None:
        self.conn.close()

    def __enter__(self) -> "CodeGraphStore":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Schema
    # ------------------------------------------------------------------

    def _init_schema(self) -> None:
        cur = self.conn.cursor()
        cur.execute("""
            CREATE TABLE IF NOT EXISTS code_graph_nodes (
                path        TEXT NOT NULL,
                language    TEXT NOT NULL,
                imports     TEXT NOT NULL DEFAULT '[]',
                exports     TEXT NOT NULL DEFAULT '[]',
                definitions TEXT NOT NULL DEFAULT '[]',
                pagerank    REAL NOT NULL DEFAULT 0,
                project     TEXT NOT NULL,
                UNIQUE (path, project)
            )
        """)
        cur.execute("""
            CREATE TABLE IF NOT EXISTS code_graph_edges (
                source  TEXT NOT NULL,
                target  TEXT NOT NULL,
                type    TEXT NOT NULL,
                project TEXT NOT NULL,
                UNIQUE (source, target, project)
            )
        """)
        cur.execute("CREATE INDEX IF NOT EXISTS idx_cg_nodes_project ON code_graph_nodes(project)")
        cur.execute("CREATE INDEX IF NOT EXISTS idx_cg_edges_project ON code_graph_edges(project)")
        self.conn.commit()

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def clear_project(self, project: str) -> None:
        with self.conn:
            self.conn.execute("DELETE FROM code_graph_nodes WHERE project = ?", (project,))
            self.conn.execute("DELETE FROM code_graph_edges WHERE project = ?", (project,))

    def _upsert_nodes(self, rows: Iterable[Dict[str, Any]]) -> None:
        self.conn.executemany(
            """
            INSERT INTO code_graph_nodes (path, language, imports, exports, definitions, pagerank, project)
            VALUES (:path, :language, :imports, :exports, :definitions, :pagerank, :project)
            ON CONFLICT(path, project) DO UPDATE SET
                language = excluded.language,
                imports = excluded.imports,
                exports = excluded.exports,
                definitions = excluded.definitions,
                pagerank = excluded.pagerank
            """,
            list(rows),
        )

    def _upsert_edges(self, rows: Iterable[Dict[str, Any]]) -> None:
        self.conn.executemany(
            """
            INSERT INTO code_graph_edges (source, target, type, project)
            VALUES (:source, :target, :type, :project)
            ON CONFLICT(source, target, project) DO UPDATE SET type = excluded.type
            """,
            list(rows),
        )

    def save_graph(self, graph: ImportGraph, project: str) -> None:
        """Replace the stored graph of *project* with *graph* in one transaction."""
        with self.conn:
            self.conn.execute("DELETE FROM code_graph_nodes WHERE project = ?", (project,))
            self.conn.execute("DELETE FROM code_graph_edges WHERE project = ?", (project,))
            self._upsert_nodes(graph.node_records(project))
            self._upsert_edges(graph.edge_records(project))
        logger.debug(
            "Stored %d nodes / %d edges for %s", len(graph.nodes), len(graph.edges), project,
        )

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_nodes(self, project: str) -> List[Dict[str, Any]]:
        rows = self.conn.execute(
            "SELECT * FROM code_graph_nodes WHERE project = ? ORDER BY pagerank DESC, rowid",
            (project,),
        ).fetchall()
        result = []
        for row in rows:
            item = dict(row)
            for key in ("imports", "exports", "definitions"):
                item[key] = json.loads(item[key] or "[]")
            result.append(item)
        return result

    def get_edges(self, project: str) -> List[Dict[str, Any]]:
        rows = self.conn.execute(
            "SELECT source, target, type, project FROM code_graph_edges WHERE project = ? ORDER BY rowid",
            (project,),
        ).fetchall()
        return [dict(row) for row in rows]
