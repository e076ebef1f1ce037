"""Core data models used by scanning, graph building, ranking and DNA generation."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional


@dataclass(frozen=True)
class ScannedFile:
    absolute_path: Path
    relative_path: str
    language: str
    size_bytes: int


@dataclass
class ParsedImport:
    specifier: str
    is_relative: bool
    is_dynamic: bool
    imported_names: List[str] = field(default_factory=list)


@dataclass
class ParsedFileStructure:
    imports: List[ParsedImport] = field(default_factory=list)
    exports: List[str] = field(default_factory=list)
    definitions: List[str] = field(default_factory=list)


class EdgeKind(str, Enum):
    STATIC = "static"
    DYNAMIC = "dynamic"


@dataclass
class GraphNode:
    id: str
    absolute_path: Path
    language: str
    resolved_import_targets: List[str] = field(default_factory=list)
    exports: List[str] = field(default_factory=list)
    definitions: List[str] = field(default_factory=list)
    rank: float = 0.0


@dataclass(frozen=True)
class GraphEdge:
    source: str
    target: str
    kind: EdgeKind


@dataclass
class ImportGraph:
    """File-level import graph: ``source`` imports ``target``."""

    nodes: Dict[str, GraphNode] = field(default_factory=dict)
    edges: List[GraphEdge] = field(default_factory=list)
    _edge_keys: set = field(default_factory=set, repr=False, compare=False)

    def add_node(self, node: GraphNode) -> None:
        if node.id in self.nodes:
            raise ValueError(f"Duplicate node id: {node.id}")
        self.nodes[node.id] = node

    def add_edge(self, edge: GraphEdge) -> bool:
        """Add *edge* unless it dangles or already exists. Returns True if added."""
        if edge.source not in self.nodes or edge.target not in self.nodes:
            return False
        if edge in self._edge_keys:
            return False
        self._edge_keys.add(edge)
        self.edges.append(edge)
        node = self.nodes[edge.source]
        if edge.target not in node.resolved_import_targets:
            node.resolved_import_targets.append(edge.target)
        return True

    def incoming(self) -> Dict[str, List[str]]:
        """Map each node id to the ids of the nodes that import it."""
        result: Dict[str, List[str]] = {node_id: [] for node_id in self.nodes}
        for edge in self.edges:
            result[edge.target].append(edge.source)
        return result

    def out_degree(self) -> Dict[str, int]:
        result = {node_id: 0 for node_id in self.nodes}
        for edge in self.edges:
            result[edge.source] += 1
        return result

    def node_records(self, project_slug: str) -> List[Dict[str, object]]:
        """Rows for the ``code_graph_nodes`` table."""
        return [
            {
                "path": node.id,
                "language": node.language,
                "imports": json.dumps(node.resolved_import_targets),
                "exports": json.dumps(node.exports),
                "definitions": json.dumps(node.definitions),
                "pagerank": node.rank,
                "project": project_slug,
            }
            for node in self.nodes.values()
        ]

    def edge_records(self, project_slug: str) -> List[Dict[str, object]]:
        """Rows for the ``code_graph_edges`` table."""
        return [
            {
                "source": edge.source,
                "target": edge.target,
                "type": edge.kind.value,
                "project": project_slug,
            }
            for edge in self.edges
        ]


@dataclass
class RankedFile:
    path: str
    rank: float


@dataclass
class RankResult:
    scores: Dict[str, float]
    iterations: int
    converged: bool
    top_files: List[RankedFile] = field(default_factory=list)


@dataclass
class ProjectInfo:
    name: str
    slug: str
    remote: Optional[str] = None


@dataclass
class ProjectDNA:
    slug: str
    name: str
    stack: List[str] = field(default_factory=list)
    entrypoints: List[str] = field(default_factory=list)
    top_files: List[RankedFile] = field(default_factory=list)
    dependencies: Dict[str, str] = field(default_factory=dict)
    recent_history: List[str] = field(default_factory=list)
    detected_patterns: List[str] = field(default_factory=list)
    vcs_fingerprint: str = "unknown"
    generated_at: str = ""


@dataclass
class IngestResult:
    project: str
    slug: str
    cached: bool
    files: int = 0
    nodes: int = 0
    edges: int = 0
    iterations: int = 0
    converged: bool = True
    top_files: List[RankedFile] = field(default_factory=list)
    dna_path: Optional[Path] = None
    token_estimate: int = 0
    duration_ms: int = 0
