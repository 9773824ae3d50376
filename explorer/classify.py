# explorer/classify.py
"""
Node classification.

Responsibilities:
- Evaluate the selection query and the immutability query per node
- Derive one of six display categories per node

This module does NOT:
- build graphs
- decide when classification runs
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Optional, Sequence
import logging

from explorer.engine import CommitId, EngineError, QueryParseError, RepositoryEngine
from explorer.graph import GraphNode


logger = logging.getLogger(__name__)


IMMUTABLE_QUERY = "immutable()"


class NodeKind(Enum):
    WORKING_COPY = "working_copy"
    IMMUTABLE = "immutable"
    REGULAR = "regular"


class NodeCategory(Enum):
    WORKING_COPY_MATCHED = "working_copy_matched"
    WORKING_COPY_UNMATCHED = "working_copy_unmatched"
    IMMUTABLE_MATCHED = "immutable_matched"
    IMMUTABLE_UNMATCHED = "immutable_unmatched"
    REGULAR_MATCHED = "regular_matched"
    REGULAR_UNMATCHED = "regular_unmatched"

    @property
    def kind(self) -> NodeKind:
        return _KINDS[self]

    @property
    def matched(self) -> bool:
        return self in _MATCHED

    @property
    def color(self) -> str:
        return _COLORS[self]


_KINDS = {
    NodeCategory.WORKING_COPY_MATCHED: NodeKind.WORKING_COPY,
    NodeCategory.WORKING_COPY_UNMATCHED: NodeKind.WORKING_COPY,
    NodeCategory.IMMUTABLE_MATCHED: NodeKind.IMMUTABLE,
    NodeCategory.IMMUTABLE_UNMATCHED: NodeKind.IMMUTABLE,
    NodeCategory.REGULAR_MATCHED: NodeKind.REGULAR,
    NodeCategory.REGULAR_UNMATCHED: NodeKind.REGULAR,
}

_MATCHED = frozenset(
    {
        NodeCategory.WORKING_COPY_MATCHED,
        NodeCategory.IMMUTABLE_MATCHED,
        NodeCategory.REGULAR_MATCHED,
    }
)

# Bright for matched, dimmed for unmatched.
_COLORS = {
    NodeCategory.WORKING_COPY_MATCHED: "#26ff00",
    NodeCategory.WORKING_COPY_UNMATCHED: "#295923",
    NodeCategory.IMMUTABLE_MATCHED: "#21cdff",
    NodeCategory.IMMUTABLE_UNMATCHED: "#2e5059",
    NodeCategory.REGULAR_MATCHED: "#fffc00",
    NodeCategory.REGULAR_UNMATCHED: "#636222",
}


@dataclass(frozen=True)
class Classification:
    categories: Dict[CommitId, NodeCategory] = field(default_factory=dict)
    selection_error: Optional[str] = None


def category_for(kind: NodeKind, matched: bool) -> NodeCategory:
    if kind is NodeKind.WORKING_COPY:
        if matched:
            return NodeCategory.WORKING_COPY_MATCHED
        return NodeCategory.WORKING_COPY_UNMATCHED

    if kind is NodeKind.IMMUTABLE:
        if matched:
            return NodeCategory.IMMUTABLE_MATCHED
        return NodeCategory.IMMUTABLE_UNMATCHED

    if kind is NodeKind.REGULAR:
        if matched:
            return NodeCategory.REGULAR_MATCHED
        return NodeCategory.REGULAR_UNMATCHED

    raise ValueError(f"Unsupported node kind: {kind}")


def kind_for(is_working_copy: bool, is_immutable: bool) -> NodeKind:
    if is_working_copy:
        return NodeKind.WORKING_COPY
    if is_immutable:
        return NodeKind.IMMUTABLE
    return NodeKind.REGULAR


def classify_nodes(
    engine: RepositoryEngine,
    nodes: Sequence[GraphNode],
    selection_query: str,
    working_copy_id: Optional[CommitId],
    *,
    immutable_query: str = IMMUTABLE_QUERY,
) -> Classification:
    """
    Assign a category to every node.

    A selection query that does not resolve degrades to "nothing matches" and
    its message is returned in Classification.selection_error.

    Raises:
        EngineError: the immutability query failed, or a membership probe failed.
    """
    node_ids = [n.id for n in nodes]

    selection_error: Optional[str] = None
    try:
        in_selection: Callable[[CommitId], bool] = engine.resolve(selection_query).membership_test(node_ids)
    except QueryParseError as e:
        selection_error = str(e)
        in_selection = _never

    try:
        is_immutable = engine.resolve(immutable_query).membership_test(node_ids)
    except QueryParseError as e:
        raise EngineError(f"Immutability query failed: {e}") from e

    categories: Dict[CommitId, NodeCategory] = {}
    for commit_id in node_ids:
        is_wc = working_copy_id is not None and commit_id == working_copy_id
        kind = kind_for(is_wc, is_immutable(commit_id))
        categories[commit_id] = category_for(kind, in_selection(commit_id))

    if selection_error is not None:
        logger.debug("selection query failed, nothing matches: %s", selection_error)

    return Classification(categories=categories, selection_error=selection_error)


def _never(_commit_id: CommitId) -> bool:
    return False
