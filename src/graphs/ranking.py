"""ranking.py
PageRank scores for the article citation graph.

Scores are stored as a ``pagerank`` node attribute so that they end up in
the GraphML output next to the bibliographic fields:

    graph = build_article_citation_graph(corpus)
    annotate_pagerank(graph, alpha=settings.pagerank_alpha)
"""

from __future__ import annotations

import logging

import networkx as nx

from src.graphs.graph import PropertyGraph

logger = logging.getLogger(__name__)

PAGERANK = "pagerank"


def annotate_pagerank(graph: PropertyGraph, alpha: float = 0.85) -> dict[str, float]:
    """Run PageRank on *graph* and store each score on its node.

    Returns:
        Scores by node name (empty for an empty graph).
    """
    graph.add_node_property(PAGERANK, "float")
    if graph.node_count == 0:
        return {}
    scores = nx.pagerank(graph.graph, alpha=alpha, weight="weight", max_iter=1000, tol=1e-9)
    for name, score in scores.items():
        graph.graph.nodes[name][PAGERANK] = score
    top = sorted(scores.items(), key=lambda item: item[1], reverse=True)[:5]
    logger.info("PageRank computed on %d nodes; top: %s", len(scores), ", ".join(f"{k}={v:.4f}" for k, v in top))
    return scores
