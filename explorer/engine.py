# explorer/engine.py
"""
Repository engine contract.

The engine owns the commit store and the query language. The view-model only
consumes the operations below.

This module does NOT:
- parse or evaluate queries
- talk to a repository
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, Iterator, Optional, Protocol, Tuple


CommitId = str


class QueryParseError(RuntimeError):
    """
    Raised when query text is malformed or cannot be resolved.
    """


class EngineError(RuntimeError):
    """
    Raised when a resolved query fails to evaluate.
    """


@dataclass(frozen=True)
class CommitInfo:
    commit_id: CommitId
    change_id: str
    parents: Tuple[CommitId, ...] = ()
    description: str = ""


class QueryHandle(Protocol):
    def iterate_with_parents(self) -> Iterator[CommitInfo]:
        """
        Lazily yield commits of the query with their ordered parents.

        Closing the iterator must stop any further evaluation.
        """
        ...

    def membership_test(
        self,
        within: Optional[Iterable[CommitId]] = None,
    ) -> Callable[[CommitId], bool]:
        """
        Return a predicate telling whether a commit belongs to the query.

        within: optional hint listing the only ids that will be probed.
        The predicate raises EngineError on evaluation failure.
        """
        ...


class RepositoryEngine(Protocol):
    def resolve(self, query: str) -> QueryHandle:
        ...

    def current_working_copy_id(self) -> Optional[CommitId]:
        ...

    def unique_label_prefix_length(self, commit: CommitInfo) -> int:
        ...
