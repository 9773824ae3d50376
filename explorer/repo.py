# explorer/repo.py
"""
Repository access through the jj command line.

Implements the repository engine contract on top of a local Jujutsu
repository. Handles Git Bash ↔ Windows path normalisation.

Every call runs jj with the working copy snapshot disabled so exploring never
modifies the repository.
"""

from __future__ import annotations

from pathlib import Path
from subprocess import PIPE, CalledProcessError, Popen, run
from typing import Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Set
import json
import logging
import os
from tempfile import TemporaryFile

from explorer.engine import CommitId, CommitInfo, EngineError, QueryParseError


logger = logging.getLogger(__name__)


# Single source of truth for template field separation
_FIELD_SEP = "\t"

_COMMIT_TEMPLATE = (
    'commit_id ++ "\\t" ++ '
    'change_id ++ "\\t" ++ '
    'change_id.shortest().prefix() ++ "\\t" ++ '
    'parents.map(|p| p.commit_id()).join(" ") ++ "\\t" ++ '
    'description.first_line() ++ "\\n"'
)

_ID_TEMPLATE = 'commit_id ++ "\\n"'

_PREFIX_TEMPLATE = 'change_id.shortest().prefix()'


class JjRepositoryError(RuntimeError):
    pass


def _normalise_repo_path(repo_path: Path) -> Path:
    """
    Convert Git Bash paths (/c/Users/...) to native Windows paths (C:\\Users\\...).
    No-op on non-Windows systems.
    """
    if os.name != "nt":
        return repo_path

    p = str(repo_path)

    if p.startswith("/") and len(p) >= 3 and p[2] == "/":
        drive = p[1]
        if drive.isalpha():
            return Path(f"{drive.upper()}:/{p[3:]}")

    return Path(p)


def clean_error_message(stderr: str) -> str:
    """
    Drop the empty gutter lines jj puts around source excerpts.
    """
    lines = [line for line in stderr.splitlines() if line.rstrip() != "  |" and line.strip()]
    return "\n".join(lines).strip()


def parse_commit_line(line: str) -> tuple[CommitInfo, str]:
    """
    Parse one line of _COMMIT_TEMPLATE output.

    Returns (commit, shortest unique change id prefix).
    """
    parts = line.rstrip("\n").split(_FIELD_SEP, 4)

    if len(parts) != 5:
        raise EngineError(f"Malformed jj log line: {line!r}")

    commit_id, change_id, prefix, parents_raw, description = parts

    if not commit_id or not change_id:
        raise EngineError(f"Malformed jj log line: {line!r}")

    commit = CommitInfo(
        commit_id=commit_id,
        change_id=change_id,
        parents=tuple(parents_raw.split()),
        description=description,
    )
    return commit, prefix


def alias_config_args(revset_aliases: Mapping[str, str]) -> List[str]:
    """
    Build --config arguments defining extra revset aliases.

    JSON string quoting is valid TOML basic string quoting.
    """
    args: List[str] = []
    for name, expr in revset_aliases.items():
        args.extend(["--config", f"revset-aliases.{json.dumps(name)}={json.dumps(expr)}"])
    return args


class JjRepository:
    def __init__(
        self,
        repo_path: Path,
        *,
        jj_command: str = "jj",
        revset_aliases: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.repo_path = _normalise_repo_path(Path(repo_path))
        self.jj_command = jj_command
        self.revset_aliases: Dict[str, str] = dict(revset_aliases or {})
        self._prefix_lengths: Dict[str, int] = {}

    # ---------------------------------------------------------------------
    # Engine contract
    # ---------------------------------------------------------------------

    def resolve(self, query: str) -> "JjQuery":
        """
        Check that query parses and resolves, and return a handle for it.

        Raises QueryParseError with jj's message otherwise.
        """
        try:
            self._run(["log", "--no-graph", "--limit", "1", "-r", query, "-T", '""'])
        except CalledProcessError as e:
            raise QueryParseError(clean_error_message(e.stderr or "") or "Failed to parse revset") from e

        return JjQuery(self, query)

    def current_working_copy_id(self) -> Optional[CommitId]:
        try:
            out = self._run(["log", "--no-graph", "-r", "@", "-T", "commit_id"])
        except (CalledProcessError, EngineError) as e:
            logger.debug("no working copy commit: %s", e)
            return None
        commit_id = out.strip()
        return commit_id or None

    def unique_label_prefix_length(self, commit: CommitInfo) -> int:
        known = self._prefix_lengths.get(commit.change_id)
        if known is not None:
            return known

        try:
            out = self._run(["log", "--no-graph", "-r", commit.commit_id, "-T", _PREFIX_TEMPLATE])
        except CalledProcessError as e:
            raise EngineError(clean_error_message(e.stderr or "") or "jj log failed") from e

        length = len(out.strip()) or len(commit.change_id)
        self._prefix_lengths[commit.change_id] = length
        return length

    # ---------------------------------------------------------------------
    # Repository helpers
    # ---------------------------------------------------------------------

    def ensure_jj_repository(self) -> None:
        try:
            self._run(["root"])
        except (CalledProcessError, EngineError) as e:
            raise JjRepositoryError(f"Not a jj repository: {self.repo_path}") from e

    def iter_commits(self, query: str) -> Iterator[CommitInfo]:
        """
        Stream commits of query, newest first, with their parents.

        stderr is collected in a temporary file, never a pipe, so it cannot
        fill up while stdout is streamed. Closing the generator terminates the
        jj process.
        """
        errors = TemporaryFile(mode="w+", encoding="utf-8", errors="replace")
        try:
            proc = Popen(
                self._base_args() + ["log", "--no-graph", "-r", query, "-T", _COMMIT_TEMPLATE],
                stdout=PIPE,
                stderr=errors,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except OSError as e:
            errors.close()
            raise EngineError(f"Failed to run {self.jj_command}: {e}") from e

        finished = False
        try:
            assert proc.stdout is not None
            for line in proc.stdout:
                if not line.strip():
                    continue
                commit, prefix = parse_commit_line(line)
                if prefix:
                    self._prefix_lengths[commit.change_id] = len(prefix)
                yield commit

            if proc.wait() != 0:
                errors.seek(0)
                raise EngineError(clean_error_message(errors.read()) or "jj log failed")
            finished = True
        finally:
            if not finished and proc.poll() is None:
                proc.kill()
            proc.wait()
            if proc.stdout is not None:
                proc.stdout.close()
            errors.close()

    def commit_ids(self, query: str) -> Set[CommitId]:
        try:
            out = self._run(["log", "--no-graph", "-r", query, "-T", _ID_TEMPLATE])
        except CalledProcessError as e:
            raise EngineError(clean_error_message(e.stderr or "") or "jj log failed") from e
        return {line.strip() for line in out.splitlines() if line.strip()}

    def _base_args(self) -> List[str]:
        return [
            self.jj_command,
            "-R",
            str(self.repo_path),
            "--no-pager",
            "--color",
            "never",
            "--ignore-working-copy",
        ] + alias_config_args(self.revset_aliases)

    def _run(self, args: List[str]) -> str:
        try:
            result = run(
                self._base_args() + args,
                stdout=PIPE,
                stderr=PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
                check=True,
            )
        except OSError as e:
            raise EngineError(f"Failed to run {self.jj_command}: {e}") from e
        # Do not strip spaces — only remove trailing newlines
        return result.stdout.rstrip("\n")


class JjQuery:
    def __init__(self, repo: JjRepository, query: str) -> None:
        self.repo = repo
        self.query = query

    def iterate_with_parents(self) -> Iterator[CommitInfo]:
        return self.repo.iter_commits(self.query)

    def membership_test(
        self,
        within: Optional[Iterable[CommitId]] = None,
    ) -> Callable[[CommitId], bool]:
        scope = self.query
        if within is not None:
            ids = list(within)
            if not ids:
                return lambda _commit_id: False
            scope = f"({self.query}) & ({' | '.join(ids)})"

        members: Optional[Set[CommitId]] = None

        def contains(commit_id: CommitId) -> bool:
            nonlocal members
            if members is None:
                members = self.repo.commit_ids(scope)
            return commit_id in members

        return contains
