"""
Records and the per-channel record history.

A `Record` is the immutable fact left behind by one successful write: the
rendered line plus the level, the template it came from, the caller's raw
message and a back-reference to the owning channel.

`RecordHistory` is the ordered, append-only log of those facts for one
channel. Removal exists for administrative trimming only; normal logging
never removes anything.

Design Notes
------------
- **Immutability**: records are frozen dataclasses, as snapshots should be.
- **No cycles in equality**: the channel back-reference is excluded from
  ``__eq__`` and ``__repr__`` because channel equality itself compares
  histories.
- **Thread safety**: a channel may be shared by many threads, so every
  mutation and every read of the underlying list happens under one lock, and
  iteration walks a copied tuple.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .filters import Filter
from .levels import Level

if TYPE_CHECKING:
    from chanlog.channel import Channel


@dataclass(frozen=True, slots=True)
class Record:
    """
    One logged line and its metadata.

    Attributes
    ----------
    level : Level
        Level the line was logged at.
    template : str
        The channel's active template at render time.
    line : str
        The rendered line as delivered, without a trailing line terminator.
    message : str
        The raw message handed to ``log`` / ``log_line``.
    channel : Channel | None
        Owning channel (not part of equality).
    fallback : bool
        ``True`` when ``line`` is the diagnostic that reached the fallback sink
        because the intended sink failed.
    """

    level: Level
    template: str
    line: str
    message: str
    channel: Channel | None = field(default=None, compare=False, repr=False)
    fallback: bool = False

    def accepted_by(self, flt: Filter) -> bool:
        """Run ``flt`` over this record's fields."""
        return flt(self.template, self.level, self.message, self.line)


class RecordHistory:
    """Ordered, lock-guarded sequence of :class:`Record` objects."""

    __slots__ = ("_records", "_lock", "_channel")

    def __init__(self, channel: Channel | None = None) -> None:
        self._records: list[Record] = []
        self._lock = threading.RLock()
        self._channel = channel

    @property
    def channel(self) -> Channel | None:
        """The channel this history belongs to."""
        return self._channel

    # ------------------------------- writes ---------------------------------

    def append(self, record: Record) -> None:
        """Append ``record`` at the end."""
        with self._lock:
            self._records.append(record)

    def insert(self, index: int, record: Record) -> None:
        """Insert ``record`` before ``index``."""
        with self._lock:
            self._records.insert(index, record)

    def remove_at(self, index: int) -> Record:
        """Remove and return the record at ``index`` (administrative)."""
        with self._lock:
            return self._records.pop(index)

    def remove(self, record: Record) -> bool:
        """Remove the first record equal to ``record``; return whether one was found."""
        with self._lock:
            try:
                self._records.remove(record)
            except ValueError:
                return False
            return True

    # ------------------------------- reads ----------------------------------

    def get(self, index: int) -> Record:
        """Return the record at ``index``; raises ``IndexError`` when out of range."""
        with self._lock:
            return self._records[index]

    def all(self) -> tuple[Record, ...]:
        """Return every record, in order, as a read-only tuple."""
        with self._lock:
            return tuple(self._records)

    def by_message(self, message: str) -> tuple[Record, ...]:
        """Return records whose raw message equals ``message`` exactly."""
        return tuple(r for r in self.all() if r.message == message)

    def accepted_by(self, flt: Filter) -> tuple[Record, ...]:
        """Return records that ``flt`` accepts, in order."""
        return tuple(r for r in self.all() if r.accepted_by(flt))

    def __getitem__(self, index: int) -> Record:
        return self.get(index)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def __iter__(self) -> Iterator[Record]:
        return iter(self.all())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RecordHistory):
            return NotImplemented
        return self.all() == other.all()

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:  # pragma: no cover - trivial representation
        return f"RecordHistory(size={len(self)})"


__all__ = ["Record", "RecordHistory"]
