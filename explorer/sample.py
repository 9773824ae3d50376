# explorer/sample.py
"""
Sample repository generation.

Creates a small jj repository with a side branch, a merge, an extra head and
a working copy that is not a head, so there is something interesting to
explore.
"""

from __future__ import annotations

from pathlib import Path
from subprocess import PIPE, CalledProcessError, run
from typing import List


DEFAULT_SAMPLE_DIR = Path("revset-sample")


class SampleRepositoryError(RuntimeError):
    pass


def sample_steps() -> List[List[str]]:
    """
    jj arguments run inside the new repository, in order.
    """
    return [
        ["commit", "-m", "First commit"],
        ["commit", "-m", "Second commit"],
        ["commit", "-m", "Third commit"],
        ["new", "@--", "-m", "Branch"],
        ["new", "-m", "First branch commit"],
        ["new", "heads(::)", "-m", "Merge"],
        ["new", "--no-edit", "-m", "Another head"],
        ["new", "-m", "Commit"],
        ["new", "-m", "Head"],
        ["edit", "@-"],
    ]


def create_sample_repo(target: Path = DEFAULT_SAMPLE_DIR, *, jj_command: str = "jj") -> Path:
    if target.exists():
        raise SampleRepositoryError(
            f'Sample repository directory "{target}" already exists. Please remove it first.'
        )

    _run_jj(jj_command, ["git", "init", str(target)])

    for step in sample_steps():
        _run_jj(jj_command, ["-R", str(target)] + step)

    return target


def _run_jj(jj_command: str, args: List[str]) -> None:
    try:
        run(
            [jj_command] + args,
            stdout=PIPE,
            stderr=PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
            check=True,
        )
    except FileNotFoundError as e:
        raise SampleRepositoryError(f"Command not found: {jj_command}") from e
    except CalledProcessError as e:
        stderr = (e.stderr or "").strip()
        raise SampleRepositoryError(
            "Failed to create sample repository" + (f":\n{stderr}" if stderr else "")
        ) from e
