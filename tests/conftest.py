"""Pytest configuration and fixtures for CodeDNA CLI tests."""

import shutil
import tempfile
from pathlib import Path
from typing import Generator, List, Optional

import pytest

from codedna_cli.models import EdgeKind, GraphEdge, GraphNode, ImportGraph
from codedna_cli.storage import CodeGraphStore


class FakeGit:
    """Stand-in for the git collaborator so tests never depend on a real repo."""

    def __init__(self) -> None:
        self.head: Optional[str] = None
        self.remote: Optional[str] = None
        self.subjects: List[str] = []

    def get_current_commit_id(self, path) -> Optional[str]:
        return self.head

    def get_remote_url(self, path, remote: str = "origin") -> Optional[str]:
        return self.remote

    def get_recent_commit_subjects(self, path, limit: int = 10) -> List[str]:
        return self.subjects[:limit]


@pytest.fixture(autouse=True)
def fake_git(monkeypatch) -> FakeGit:
    """Replace git lookups in every test; tests set ``head``/``remote`` as needed."""
    fake = FakeGit()
    monkeypatch.setattr("codedna_cli.vcs.get_current_commit_id", fake.get_current_commit_id)
    monkeypatch.setattr("codedna_cli.vcs.get_remote_url", fake.get_remote_url)
    monkeypatch.setattr("codedna_cli.vcs.get_recent_commit_subjects", fake.get_recent_commit_subjects)
    return fake


@pytest.fixture(autouse=True)
def codedna_home(tmp_path: Path, monkeypatch) -> Path:
    """Point all CodeDNA storage at a temporary home directory."""
    home = tmp_path / "codedna_home"
    monkeypatch.setattr("codedna_cli.config.BASE_DIR", home)
    monkeypatch.setattr("codedna_cli.config.PROJECTS_DIR", home / "projects")
    monkeypatch.setattr("codedna_cli.config.META_DB_PATH", home / "meta.db")
    monkeypatch.setattr("codedna_cli.config.STATE_FILE", home / "state.json")
    return home


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    tmp = Path(tempfile.mkdtemp())
    yield tmp
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def sample_project_path() -> Path:
    """Get path to sample test project."""
    return Path(__file__).parent / "fixtures" / "sample_project"


@pytest.fixture
def write_files(temp_dir: Path):
    """Write ``{relative_path: text}`` into ``temp_dir`` and return the root."""

    def _write(files: dict) -> Path:
        for rel, text in files.items():
            path = temp_dir / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(text, encoding="utf-8")
        return temp_dir

    return _write


@pytest.fixture
def temp_store(codedna_home: Path) -> Generator[CodeGraphStore, None, None]:
    """A CodeGraphStore backed by a temporary SQLite file."""
    store = CodeGraphStore(codedna_home / "test.db")
    yield store
    store.close()


@pytest.fixture
def sample_typescript_code() -> str:
    """Sample TypeScript module exercising most import/export forms."""
    return '''import React, { useState, useEffect as useFx } from 'react';
import * as path from 'node:path';
import type { Config } from './types';
import './styles.css';
const { readFile, writeFile: write } = require('fs');
const helpers = require('./helpers');

export const VERSION = '1.0';
export async function loadConfig(file: string): Promise<Config> {
  const mod = await import('./lazy');
  return mod.load(file);
}
export abstract class BaseStore {}
export interface StoreOptions { name: string }
export type Id = string;
export enum Color { Red, Green }

function internalHelper() {}
class Cache {}

export { internalHelper, Cache as MemoryCache };
export { Button, Icon as AppIcon } from './components';
export * from './utils';
export default class App {}
'''


@pytest.fixture
def make_graph():
    """Build an ImportGraph from node ids and ``(source, target[, kind])`` tuples."""

    def _make(node_ids, edges) -> ImportGraph:
        graph = ImportGraph()
        for node_id in node_ids:
            graph.add_node(GraphNode(id=node_id, absolute_path=Path(node_id), language="typescript"))
        for edge in edges:
            kind = EdgeKind(edge[2]) if len(edge) > 2 else EdgeKind.STATIC
            graph.add_edge(GraphEdge(source=edge[0], target=edge[1], kind=kind))
        return graph

    return _make
