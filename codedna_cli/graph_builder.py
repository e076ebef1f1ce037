"""Build the file-level import graph from scanned files."""

from __future__ import annotations

import logging
import posixpath
from pathlib import Path
from typing import Callable, Collection, Optional, Sequence

from .config import SUPPORTED_EXTENSIONS
from .models import EdgeKind, GraphEdge, GraphNode, ImportGraph, ParsedFileStructure, ScannedFile
from .parser import parse_file

logger = logging.getLogger(__name__)

INDEX_FILES = tuple(f"index{ext}" for ext in SUPPORTED_EXTENSIONS)

ParseFn = Callable[[Path], ParsedFileStructure]


def _join(base: str, name: str) -> str:
    return name if base in ("", ".") else f"{base}/{name}"


def _match_candidates(base: str, known_paths: Collection[str]) -> Optional[str]:
    if base not in ("", "."):
        for ext in SUPPORTED_EXTENSIONS:
            candidate = base + ext
            if candidate in known_paths:
                return candidate
    for index_file in INDEX_FILES:
        candidate = _join(base, index_file)
        if candidate in known_paths:
            return candidate
    return None


def _strip_source_extension(specifier: str) -> Optional[str]:
    for ext in SUPPORTED_EXTENSIONS:
        if specifier.endswith(ext) and len(specifier) > len(ext):
            return specifier[: -len(ext)]
    return None


def resolve_import(
    specifier: str,
    importer_path: str,
    known_paths: Collection[str],
) -> Optional[str]:
    """Map a relative *specifier* to a project-relative file id.

    Tries, in order: ``<spec><ext>`` for each supported extension, then
    ``<spec>/index<ext>``, then the same two steps with a trailing source
    extension removed (``./util.js`` written in TypeScript resolving to
    ``util.ts``). A leading ``/`` is taken relative to the project root.

    Returns:
        The matching file id, or None if nothing in *known_paths* matches.
    """
    def base_for(spec: str) -> Optional[str]:
        if spec.startswith("/"):
            joined = spec.lstrip("/")
        else:
            joined = posixpath.join(posixpath.dirname(importer_path), spec)
        base = posixpath.normpath(joined) if joined else "."
        if base == ".." or base.startswith("../"):
            return None
        return base

    base = base_for(specifier)
    if base is not None:
        resolved = _match_candidates(base, known_paths)
        if resolved:
            return resolved

    stripped = _strip_source_extension(specifier)
    if stripped is not None:
        base = base_for(stripped)
        if base is not None:
            return _match_candidates(base, known_paths)
    return None


def build_import_graph(
    project_root: Path,
    files: Sequence[ScannedFile],
    parse: ParseFn = parse_file,
) -> ImportGraph:
    """Extract every file once and connect files by their resolved relative imports.

    Every file becomes a node, including files with no imports or exports.
    Imports that cannot be resolved inside the project are dropped.
    """
    graph = ImportGraph()
    known_paths = {f.relative_path for f in files}

    parsed = {}
    for file in files:
        structure = parse(file.absolute_path)
        parsed[file.relative_path] = structure
        graph.add_node(
            GraphNode(
                id=file.relative_path,
                absolute_path=file.absolute_path,
                language=file.language,
                exports=list(structure.exports),
                definitions=list(structure.definitions),
            )
        )

    dropped = 0
    for file in files:
        for imp in parsed[file.relative_path].imports:
            if not imp.is_relative:
                continue
            target = resolve_import(imp.specifier, file.relative_path, known_paths)
            if target is None:
                dropped += 1
                logger.debug("Unresolved import %r in %s", imp.specifier, file.relative_path)
                continue
            kind = EdgeKind.DYNAMIC if imp.is_dynamic else EdgeKind.STATIC
            graph.add_edge(GraphEdge(source=file.relative_path, target=target, kind=kind))

    logger.debug(
        "Import graph for %s: %d nodes, %d edges, %d unresolved relative imports",
        project_root, len(graph.nodes), len(graph.edges), dropped,
    )
    return graph
