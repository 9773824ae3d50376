# explorer/graph.py
"""
Graph building.

Responsibilities:
- Evaluate the view query through the repository engine
- Materialise at most max_nodes nodes with display labels
- Keep only edges whose endpoints were both materialised

This module does NOT:
- classify or colour nodes
- lay out or draw the graph
"""

from __future__ import annotations

from dataclasses import dataclass, field
from itertools import islice
from typing import Dict, List, Optional, Tuple
import logging

from explorer.engine import CommitId, CommitInfo, RepositoryEngine


logger = logging.getLogger(__name__)


MAX_NODES = 100

_SUMMARY_LEN = 12


@dataclass(frozen=True)
class GraphNode:
    id: CommitId
    label: str
    summary: str = ""


@dataclass(frozen=True)
class GraphEdge:
    source: CommitId
    target: CommitId


@dataclass(frozen=True)
class Graph:
    nodes: List[GraphNode] = field(default_factory=list)
    edges: List[GraphEdge] = field(default_factory=list)
    overflow: bool = False
    _index: Dict[CommitId, int] = field(default_factory=dict, repr=False, compare=False)

    def index_of(self, commit_id: CommitId) -> Optional[int]:
        return self._index.get(commit_id)

    def __contains__(self, commit_id: object) -> bool:
        return commit_id in self._index


def build_graph(
    engine: RepositoryEngine,
    view_query: str,
    *,
    max_nodes: int = MAX_NODES,
) -> Graph:
    """
    Build a capped node/edge graph for view_query.

    Raises:
        QueryParseError: the query is malformed or cannot be resolved.
        EngineError: evaluation failed while reading commits.
    """
    if max_nodes <= 0:
        raise ValueError("max_nodes must be a positive integer")

    handle = engine.resolve(view_query)
    working_copy_id = engine.current_working_copy_id()

    nodes: List[GraphNode] = []
    index: Dict[CommitId, int] = {}
    candidate_edges: List[Tuple[CommitId, CommitId]] = []

    commits = handle.iterate_with_parents()
    try:
        for commit in islice(commits, max_nodes):
            index[commit.commit_id] = len(nodes)
            nodes.append(
                GraphNode(
                    id=commit.commit_id,
                    label=_label_for(engine, commit, working_copy_id),
                    summary=_summary_for(commit.description),
                )
            )
            for parent in commit.parents:
                candidate_edges.append((commit.commit_id, parent))
    finally:
        close = getattr(commits, "close", None)
        if close is not None:
            close()

    edges = [
        GraphEdge(source=source, target=target)
        for source, target in candidate_edges
        if source in index and target in index
    ]

    dropped = len(candidate_edges) - len(edges)
    if dropped:
        logger.debug("dropped %d edges leaving the displayed set", dropped)

    # Exactly max_nodes results cannot be told apart from a truncated result.
    overflow = len(nodes) == max_nodes

    return Graph(nodes=nodes, edges=edges, overflow=overflow, _index=index)


def _label_for(
    engine: RepositoryEngine,
    commit: CommitInfo,
    working_copy_id: Optional[CommitId],
) -> str:
    prefix_len = engine.unique_label_prefix_length(commit)
    label = commit.change_id[:prefix_len] if prefix_len > 0 else commit.change_id
    if working_copy_id is not None and commit.commit_id == working_copy_id:
        label = f"@ {label}"
    return label


def _summary_for(description: str) -> str:
    lines = description.splitlines()
    first = lines[0] if lines else ""
    # a line of exactly _SUMMARY_LEN characters is marked as cut too
    if len(first) >= _SUMMARY_LEN:
        return first[:_SUMMARY_LEN] + "..."
    return first
