"""PageRank-style importance ranking over the import graph.

Authority flows from an importer to the file it imports, so files that are
imported by many (and by important) files rank highest. Nodes that import
nothing do not spread their score anywhere; there is no dangling-mass
correction, unlike textbook PageRank.
"""

from __future__ import annotations

import logging
from typing import Dict

from .models import ImportGraph, RankedFile, RankResult

logger = logging.getLogger(__name__)

DEFAULT_DAMPING = 0.85
DEFAULT_MAX_ITERATIONS = 50
DEFAULT_CONVERGENCE = 1e-6
DEFAULT_TOP_K = 20
DEFAULT_PRECISION = 3


def calculate_pagerank(
    graph: ImportGraph,
    damping: float = DEFAULT_DAMPING,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
    convergence: float = DEFAULT_CONVERGENCE,
    top_k: int = DEFAULT_TOP_K,
    precision: int = DEFAULT_PRECISION,
) -> RankResult:
    """Rank every node of *graph* and write the normalised score to ``node.rank``.

    Args:
        graph: Import graph; edge ``source -> target`` means source imports target
        damping: Probability of following an import (0.85 is standard)
        max_iterations: Upper bound on power iterations
        convergence: Stop once no score moves by more than this
        top_k: Number of entries in ``top_files``
        precision: Decimal places kept in ``top_files``

    Returns:
        RankResult with scores scaled so the best node is 1.0
    """
    if not 0.0 <= damping <= 1.0:
        raise ValueError(f"damping must be within [0, 1], got {damping}")
    if max_iterations < 1:
        raise ValueError(f"max_iterations must be positive, got {max_iterations}")

    node_ids = list(graph.nodes)
    n = len(node_ids)
    if n == 0:
        return RankResult(scores={}, iterations=0, converged=True, top_files=[])

    incoming = graph.incoming()
    out_degree = graph.out_degree()

    scores: Dict[str, float] = {node_id: 1.0 / n for node_id in node_ids}
    base = (1.0 - damping) / n
    iterations = 0
    converged = False

    for _ in range(max_iterations):
        iterations += 1
        new_scores: Dict[str, float] = {}
        max_diff = 0.0

        for node_id in node_ids:
            total = 0.0
            for src in incoming[node_id]:
                total += scores[src] / out_degree[src]
            score = base + damping * total
            new_scores[node_id] = score
            diff = abs(score - scores[node_id])
            if diff > max_diff:
                max_diff = diff

        scores = new_scores
        if max_diff < convergence:
            converged = True
            break

    max_score = max(scores.values())
    if max_score > 0:
        scores = {node_id: score / max_score for node_id, score in scores.items()}

    for node_id, node in graph.nodes.items():
        node.rank = scores[node_id]

    logger.debug(
        "PageRank over %d nodes: %d iterations (%s)",
        n, iterations, "converged" if converged else "max iterations",
    )

    # sorted() is stable, so ties keep node insertion order
    ranked = sorted(node_ids, key=lambda node_id: scores[node_id], reverse=True)
    top = [RankedFile(path=node_id, rank=round(scores[node_id], precision)) for node_id in ranked[:top_k]]
    return RankResult(scores=scores, iterations=iterations, converged=converged, top_files=top)
