"""Sparse per-activity completion ledger."""

from __future__ import annotations

from datetime import date
from typing import Iterable, Iterator


class CompletionLedger:
    """Set of dates on which an activity was marked done.

    A date is either present (completed) or absent; there is no stored "false".
    :meth:`toggle` is a flip, so two identical calls cancel out. Callers that
    retry or replay a write must use :meth:`set` with the intended end state.
    """

    __slots__ = ("_dates",)

    def __init__(self, dates: Iterable[date] = ()) -> None:
        self._dates: set[date] = set(dates)

    def is_completed(self, day: date) -> bool:
        return day in self._dates

    def toggle(self, day: date) -> bool:
        """Flip ``day`` and return its new state."""

        if day in self._dates:
            self._dates.discard(day)
            return False
        self._dates.add(day)
        return True

    def set(self, day: date, completed: bool) -> bool:
        """Force ``day`` to ``completed``; return True when the ledger changed."""

        if completed == (day in self._dates):
            return False
        if completed:
            self._dates.add(day)
        else:
            self._dates.discard(day)
        return True

    def count(self) -> int:
        """Total entries, including history outside the activity's live range."""

        return len(self._dates)

    def dates(self) -> list[date]:
        return sorted(self._dates)

    def within(self, start: date, end: date) -> list[date]:
        return sorted(d for d in self._dates if start <= d <= end)

    def copy(self) -> "CompletionLedger":
        return CompletionLedger(self._dates)

    def __contains__(self, day: object) -> bool:
        return day in self._dates

    def __iter__(self) -> Iterator[date]:
        return iter(sorted(self._dates))

    def __len__(self) -> int:
        return len(self._dates)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CompletionLedger):
            return NotImplemented
        return self._dates == other._dates

    def __repr__(self) -> str:
        return f"CompletionLedger({len(self._dates)} dates)"


__all__ = ["CompletionLedger"]
