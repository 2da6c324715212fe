"""
Channel log levels.

The set is closed and ordered by numeric id. Ordering is for display only:
there is no minimum-level threshold anywhere in chanlog. ``ERROR`` is the one
level routed to a channel's error sink.
"""

from __future__ import annotations

from enum import Enum


class Level(Enum):
    """Closed set of channel log levels, valued by their numeric id."""

    ERROR = -1
    WARNING = 0
    INFO = 1
    CLIENT = 2
    SERVER = 3

    @property
    def id(self) -> int:
        """Numeric id of the level."""
        return int(self.value)

    @property
    def label(self) -> str:
        """Default text for ``%level``; channels may override it per level."""
        return self.name

    @property
    def is_error(self) -> bool:
        """Whether lines at this level go to the error sink."""
        return self is Level.ERROR

    @classmethod
    def parse(cls, value: int | str) -> Level:
        """
        Resolve a level from its numeric id or its (case-insensitive) name.

        Raises
        ------
        ValueError
            If ``value`` names no level.
        """
        if isinstance(value, int):
            return cls(value)
        key = value.strip().upper()
        try:
            return cls[key]
        except KeyError:
            raise ValueError(f"Unknown level: {value!r}") from None

    def __str__(self) -> str:
        return self.label


__all__ = ["Level"]
