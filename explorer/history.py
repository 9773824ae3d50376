# explorer/history.py
"""
Per-field query history.

Keeps an undo/redo log of entered query strings. The most recent entry may be
tentative, in which case the next addition replaces it instead of stacking on
top of it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List


@dataclass
class HistoryEntry:
    value: str
    tentative: bool = False


class QueryHistory:
    def __init__(self, max_size: int) -> None:
        if max_size < 1:
            raise ValueError("max_size must be at least 1")

        self.max_size = max_size
        self._entries: List[HistoryEntry] = []
        self._cursor = 0

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def cursor(self) -> int:
        return self._cursor

    def values(self) -> List[str]:
        return [e.value for e in self._entries]

    def add(self, value: str, tentative: bool = False) -> None:
        """
        Append value and move the cursor onto it.

        A tentative last entry is discarded first, wherever the cursor is.
        """
        if self._entries and self._entries[-1].value == value:
            return

        if len(self._entries) >= self.max_size:
            self._entries.pop(0)

        if self._entries and self._entries[-1].tentative:
            self._entries.pop()

        if self._entries and self._entries[-1].value == value:
            self._cursor = len(self._entries) - 1
            return

        self._entries.append(HistoryEntry(value=value, tentative=tentative))
        self._cursor = len(self._entries) - 1

    def current(self) -> str:
        if not self._entries:
            raise IndexError("history is empty")
        return self._entries[self._cursor].value

    def set_last_tentative(self, tentative: bool) -> None:
        if self._entries:
            self._entries[-1].tentative = tentative

    def prev(self) -> None:
        if self._cursor > 0:
            self._cursor -= 1

    def next(self) -> None:
        if self._cursor < len(self._entries) - 1:
            self._cursor += 1
