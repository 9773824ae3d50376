"""
In-memory repository engine for tests.

Queries are looked up by exact text; unknown text fails to parse the way a
real engine rejects an unknown symbol.
"""

from typing import Callable, Dict, Iterable, Iterator, List, Optional

from explorer.engine import CommitId, CommitInfo, EngineError, QueryParseError


def linear_commits(count: int) -> List[CommitInfo]:
    """Newest first: c{count-1} -> ... -> c0."""
    commits = []
    for i in reversed(range(count)):
        parents = (f"c{i - 1}",) if i > 0 else ()
        commits.append(CommitInfo(commit_id=f"c{i}", change_id=f"zz{i:04d}kkkk", parents=parents))
    return commits


def sample_commits() -> List[CommitInfo]:
    """
    wc -> merge -> (left, right) -> base -> root, newest first.
    """
    return [
        CommitInfo("wc", "wwwwxxxx", ("merge",), ""),
        CommitInfo("merge", "mmmmxxxx", ("left", "right"), "Merge left and right branches"),
        CommitInfo("right", "rrrrxxxx", ("base",), "Right"),
        CommitInfo("left", "llllxxxx", ("base",), "Left"),
        CommitInfo("base", "bbbbxxxx", ("root",), "Base commit\n\nwith a body"),
        CommitInfo("root", "zzzzzzzz", (), ""),
    ]


class FakeQuery:
    def __init__(self, engine: "FakeEngine", query: str) -> None:
        self.engine = engine
        self.query = query

    def iterate_with_parents(self) -> Iterator[CommitInfo]:
        fail_after = self.engine.fail_iteration.get(self.query)
        for i, commit_id in enumerate(self.engine.queries[self.query]):
            if fail_after is not None and i >= fail_after:
                raise EngineError(f"Object {commit_id} is missing")
            self.engine.pulled += 1
            yield self.engine.commits[commit_id]

    def membership_test(self, within: Optional[Iterable[CommitId]] = None) -> Callable[[CommitId], bool]:
        self.engine.membership_calls.append((self.query, None if within is None else list(within)))
        members = set(self.engine.queries[self.query])

        def contains(commit_id: CommitId) -> bool:
            if self.query in self.engine.fail_membership:
                raise EngineError("membership probe failed")
            return commit_id in members

        return contains


class FakeEngine:
    def __init__(
        self,
        commits: List[CommitInfo],
        queries: Dict[str, List[CommitId]],
        *,
        working_copy_id: Optional[CommitId] = None,
        prefix_len: int = 4,
    ) -> None:
        self.commits = {c.commit_id: c for c in commits}
        self.queries = dict(queries)
        self.working_copy_id = working_copy_id
        self.prefix_len = prefix_len
        self.fail_iteration: Dict[str, int] = {}
        self.fail_membership: set = set()
        self.resolved: List[str] = []
        self.membership_calls: list = []
        self.pulled = 0

    def resolve(self, query: str) -> FakeQuery:
        self.resolved.append(query)
        if query not in self.queries:
            raise QueryParseError(f"Failed to parse revset: {query}")
        return FakeQuery(self, query)

    def current_working_copy_id(self) -> Optional[CommitId]:
        return self.working_copy_id

    def unique_label_prefix_length(self, commit: CommitInfo) -> int:
        return self.prefix_len


def sample_engine() -> FakeEngine:
    commits = sample_commits()
    everything = [c.commit_id for c in commits]
    return FakeEngine(
        commits,
        {
            "::": everything,
            "all()": everything,
            "@": ["wc"],
            "@-": ["merge"],
            "@ | @-": ["wc", "merge"],
            "immutable()": ["base", "root"],
            "::base": ["base", "root"],
            "left | right": ["right", "left"],
            "none()": [],
        },
        working_copy_id="wc",
    )
