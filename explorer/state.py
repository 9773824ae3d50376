# explorer/state.py
"""
Explorer view-model.

Owns the two query fields, the displayed graph and its categories, and decides
on each tick what needs to be rebuilt or reclassified.

This module does NOT:
- render anything
- run its own loop; the host calls tick() once per refresh
"""

from __future__ import annotations

from dataclasses import InitVar, dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Callable, Dict, List, Optional
import logging

from explorer.classify import IMMUTABLE_QUERY, NodeCategory, classify_nodes
from explorer.engine import CommitId, EngineError, QueryParseError, RepositoryEngine
from explorer.graph import MAX_NODES, Graph, GraphEdge, GraphNode, build_graph
from explorer.history import QueryHistory

if TYPE_CHECKING:
    from explorer.config import ExplorerConfig


logger = logging.getLogger(__name__)


VIEW = "view"
SELECTION = "selection"

OVERFLOW_WARNING = "Node limit reached. The graph is incomplete."


class FieldStatus(Enum):
    CLEAN = "clean"
    DIRTY = "dirty"
    ERRORED = "errored"


@dataclass
class QueryField:
    name: str
    text: str
    history: QueryHistory
    applied: Optional[str] = None
    error: Optional[str] = None

    # True while text came from the user rather than from history recall
    edited: bool = True

    @property
    def is_dirty(self) -> bool:
        return self.text != self.applied

    @property
    def status(self) -> FieldStatus:
        if self.is_dirty:
            return FieldStatus.DIRTY
        if self.error is not None:
            return FieldStatus.ERRORED
        return FieldStatus.CLEAN


@dataclass(frozen=True)
class TickResult:
    view_rebuilt: bool = False
    reclassified: bool = False


@dataclass(frozen=True)
class Snapshot:
    nodes: List[GraphNode]
    edges: List[GraphEdge]
    categories: Dict[CommitId, NodeCategory]
    overflow: bool
    view_error: str
    selection_error: str
    view_warning: str = ""

    def category_of(self, commit_id: CommitId) -> NodeCategory:
        return self.categories.get(commit_id, NodeCategory.REGULAR_UNMATCHED)


@dataclass
class ExplorerState:
    engine: RepositoryEngine
    view_query: InitVar[str]
    selection_query: InitVar[str]
    immutable_query: str = IMMUTABLE_QUERY
    max_nodes: int = MAX_NODES
    history_size: int = 50
    on_layout_reset: Optional[Callable[[], None]] = None

    graph: Graph = field(init=False, default_factory=Graph)
    categories: Dict[CommitId, NodeCategory] = field(init=False, default_factory=dict)
    working_copy_id: Optional[CommitId] = field(init=False, default=None)
    layout_epoch: int = field(init=False, default=0)
    fields: Dict[str, QueryField] = field(init=False, default_factory=dict)

    def __post_init__(self, view_query: str, selection_query: str) -> None:
        self.fields = {
            VIEW: QueryField(name=VIEW, text=view_query, history=QueryHistory(self.history_size)),
            SELECTION: QueryField(
                name=SELECTION,
                text=selection_query,
                history=QueryHistory(self.history_size),
            ),
        }

    @classmethod
    def from_config(cls, cfg: "ExplorerConfig", engine: RepositoryEngine) -> "ExplorerState":
        return cls(
            engine,
            view_query=cfg.queries.view,
            selection_query=cfg.queries.selection,
            immutable_query=cfg.queries.immutable,
            max_nodes=cfg.max_nodes,
            history_size=cfg.history_size,
        )

    @property
    def view(self) -> QueryField:
        return self.fields[VIEW]

    @property
    def selection(self) -> QueryField:
        return self.fields[SELECTION]

    @property
    def overflow(self) -> bool:
        return self.graph.overflow

    # ---------------------------------------------------------------------
    # Field edits
    # ---------------------------------------------------------------------

    def set_text(self, name: str, text: str) -> None:
        f = self._field(name)
        if f.text == text:
            return
        f.text = text
        f.edited = True

    def history_back(self, name: str) -> None:
        f = self._field(name)
        if not len(f.history):
            return
        f.history.prev()
        self._recall(f)

    def history_forward(self, name: str) -> None:
        f = self._field(name)
        if not len(f.history):
            return
        f.history.next()
        self._recall(f)

    # ---------------------------------------------------------------------
    # Processing
    # ---------------------------------------------------------------------

    def tick(self) -> TickResult:
        view_rebuilt = False
        view_changed = self.view.is_dirty

        if view_changed:
            view_rebuilt = self._rebuild()

        reclassified = False
        if view_changed or self.selection.is_dirty:
            reclassified = self._reclassify()

        return TickResult(view_rebuilt=view_rebuilt, reclassified=reclassified)

    def snapshot(self) -> Snapshot:
        return Snapshot(
            nodes=list(self.graph.nodes),
            edges=list(self.graph.edges),
            categories=dict(self.categories),
            overflow=self.graph.overflow,
            view_error=self.view.error or "",
            selection_error=self.selection.error or "",
            view_warning=OVERFLOW_WARNING if self.graph.overflow else "",
        )

    def _rebuild(self) -> bool:
        f = self.view
        text = f.text
        self._remember(f)

        try:
            graph = build_graph(self.engine, text, max_nodes=self.max_nodes)
        except (QueryParseError, EngineError) as e:
            logger.debug("view query %r failed: %s", text, e)
            f.error = str(e)
            f.applied = text
            return False

        self.graph = graph
        self.categories = {}
        self.working_copy_id = self.engine.current_working_copy_id()
        self.layout_epoch += 1
        if self.on_layout_reset is not None:
            self.on_layout_reset()

        f.error = None
        f.applied = text
        self._confirm(f)
        return True

    def _reclassify(self) -> bool:
        f = self.selection
        text = f.text
        self._remember(f)
        f.applied = text

        try:
            result = classify_nodes(
                self.engine,
                self.graph.nodes,
                text,
                self.working_copy_id,
                immutable_query=self.immutable_query,
            )
        except EngineError as e:
            logger.warning("classification aborted, keeping previous categories: %s", e)
            return False

        self.categories = result.categories
        f.error = result.selection_error
        if result.selection_error is None:
            self._confirm(f)
        return True

    # ---------------------------------------------------------------------
    # History bookkeeping
    # ---------------------------------------------------------------------

    def _remember(self, f: QueryField) -> None:
        """
        Record user-typed text as a tentative history entry until it succeeds.
        """
        if f.edited:
            f.history.add(f.text, tentative=True)

    def _confirm(self, f: QueryField) -> None:
        if f.edited:
            f.history.set_last_tentative(False)
            f.edited = False

    def _recall(self, f: QueryField) -> None:
        f.text = f.history.current()
        f.edited = False

    def _field(self, name: str) -> QueryField:
        try:
            return self.fields[name]
        except KeyError:
            raise ValueError(f"Unknown query field: {name}") from None
