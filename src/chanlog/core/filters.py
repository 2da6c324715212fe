"""
Filter predicates and thread-safe filter sets.

A filter is any callable ``(template, level, message, line) -> bool``:

- ``template``: the template the line was rendered from,
- ``level``   : the :class:`~chanlog.core.levels.Level` of the line,
- ``message`` : the message text substituted for ``%prompt``,
- ``line``    : the fully rendered line.

Returning ``False`` rejects the line. A `FilterSet` accepts only when every
member accepts. Channels and snapshot files each own one set; a line must
survive every applicable set.

Concurrency
-----------
Members may be added or removed from any thread, including while another
thread iterates: iteration always walks a copied snapshot. `FilterSet.accepts`
holds the set's lock for the whole evaluation so one call sees one
consistent membership.
"""

from __future__ import annotations

import re
import threading
from collections.abc import Iterable, Iterator
from typing import Protocol

from .levels import Level


class Filter(Protocol):
    """Predicate gating whether a line may be written or persisted."""

    def __call__(self, template: str, level: Level, message: str, line: str) -> bool: ...


def evaluate(filters: Iterable[Filter], template: str, level: Level, message: str, line: str) -> bool:
    """Return ``True`` only if every filter in ``filters`` accepts the line."""
    return all(flt(template, level, message, line) for flt in filters)


class FilterSet:
    """Unordered, lock-guarded collection of :class:`Filter` predicates."""

    __slots__ = ("_filters", "_lock")

    def __init__(self, filters: Iterable[Filter] = ()) -> None:
        self._lock = threading.RLock()
        self._filters: set[Filter] = set(filters)

    def add(self, flt: Filter | None) -> None:
        """Add ``flt``; ``None`` is ignored."""
        if flt is None:
            return
        with self._lock:
            self._filters.add(flt)

    def remove(self, flt: Filter | None) -> None:
        """Remove ``flt`` if present."""
        if flt is None:
            return
        with self._lock:
            self._filters.discard(flt)

    def replace(self, filters: Iterable[Filter]) -> None:
        """Swap the whole membership for ``filters``."""
        fresh = set(filters)
        with self._lock:
            self._filters = fresh

    def clear(self) -> None:
        with self._lock:
            self._filters.clear()

    def snapshot(self) -> frozenset[Filter]:
        """Return the current membership as an immutable copy."""
        with self._lock:
            return frozenset(self._filters)

    def accepts(self, template: str, level: Level, message: str, line: str) -> bool:
        """Return ``True`` only if every member accepts the line."""
        with self._lock:
            return evaluate(self._filters, template, level, message, line)

    def __contains__(self, flt: object) -> bool:
        with self._lock:
            return flt in self._filters

    def __iter__(self) -> Iterator[Filter]:
        return iter(self.snapshot())

    def __len__(self) -> int:
        with self._lock:
            return len(self._filters)

    def __repr__(self) -> str:  # pragma: no cover - trivial representation
        return f"FilterSet(size={len(self)})"


# ----------------------------- stock predicates ------------------------------


def only_levels(*levels: Level) -> Filter:
    """Build a filter that accepts lines whose level is one of ``levels``."""
    allowed = frozenset(levels)

    def _only(template: str, level: Level, message: str, line: str) -> bool:
        return level in allowed

    return _only


def exclude_levels(*levels: Level) -> Filter:
    """Build a filter that rejects lines whose level is one of ``levels``."""
    denied = frozenset(levels)

    def _exclude(template: str, level: Level, message: str, line: str) -> bool:
        return level not in denied

    return _exclude


def matching(pattern: str | re.Pattern[str], *, on: str = "message") -> Filter:
    """
    Build a filter that accepts lines where ``pattern`` is found.

    Parameters
    ----------
    pattern : str | re.Pattern[str]
        Regular expression searched with :func:`re.search` semantics.
    on : str
        Which argument to search: ``"message"`` (default) or ``"line"``.
    """
    if on not in ("message", "line"):
        raise ValueError(f"on must be 'message' or 'line', got {on!r}")
    regex = re.compile(pattern) if isinstance(pattern, str) else pattern

    def _matching(template: str, level: Level, message: str, line: str) -> bool:
        return regex.search(message if on == "message" else line) is not None

    return _matching


__all__ = ["Filter", "FilterSet", "evaluate", "exclude_levels", "matching", "only_levels"]
