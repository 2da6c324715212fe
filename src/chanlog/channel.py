"""
Channels: named logging entry points.

A `Channel` turns ``(level, message)`` into a rendered line, gates it through
its `FilterSet`, writes it to one of two sinks and remembers it in its
`RecordHistory`. Each channel also owns a `SnapshotManager` that can persist
that history to disk.

Dispatch
--------
1. Sample the clock once; render the template with ``%prompt`` left in place.
2. Optionally expand the raw message too (``RenderOptions.expand_messages``).
3. Render the template again with the message as ``%prompt``; text from the
   title, prefix or suffix is never rescanned.
4. Ask the filter set. A rejection is a silent no-op returning ``False``.
5. Write the line as one contiguous write: ERROR goes to the error sink, every
   other level to the normal sink.
6. If that write fails, send a diagnostic to the *other* sink; if that fails
   too, print the diagnostic to the process stdout.
7. Append a `Record` iff some sink accepted a write.

Only step 5 succeeding makes ``log`` return ``True``. Nothing here raises on
I/O failure.

Channels are normally obtained from a
:class:`~chanlog.registry.ChannelRegistry`, which guarantees one channel per
identity.
"""

from __future__ import annotations

import sys
import threading
from collections.abc import Iterable
from datetime import datetime

from chanlog.core.filters import Filter, FilterSet
from chanlog.core.levels import Level
from chanlog.core.options import RenderOptions
from chanlog.core.records import Record, RecordHistory
from chanlog.core.settings import get_logger, load_settings
from chanlog.core.sinks import LINE_TERMINATOR, Sink, StandardStream, close_sink, write_to
from chanlog.snapshots import SnapshotManager

FALLBACK_MESSAGE = "An error occurred while trying to log a message!:\n "

_log = get_logger("chanlog.channel")


class Channel:
    """
    Named, independently configured logging destination.

    Parameters
    ----------
    identity : str
        Non-empty name, unique within the owning registry.
    out : Sink | None
        Sink for every level except ERROR; defaults to the process stdout.
    err : Sink | None
        Sink for ERROR lines; defaults to the process stderr.

    Notes
    -----
    Equality compares render options and record history only; two channels
    with different identities but the same configuration and history are
    equal. Channels are therefore unhashable.
    """

    def __init__(self, identity: str, out: Sink | None = None, err: Sink | None = None) -> None:
        if not identity:
            raise ValueError("Channel identity must be a non-empty string")
        self._identity = identity
        self._options = RenderOptions()
        self._filters = FilterSet()
        self._records = RecordHistory(self)
        self._out: Sink = out if out is not None else StandardStream("stdout")
        self._err: Sink = err if err is not None else StandardStream("stderr")
        # Serializes sink writes and history appends so lines stay whole and ordered.
        self._io_lock = threading.RLock()
        self._snapshots = SnapshotManager(self)

    # ------------------------------ properties ------------------------------

    @property
    def identity(self) -> str:
        return self._identity

    @property
    def options(self) -> RenderOptions:
        return self._options

    @options.setter
    def options(self, options: RenderOptions) -> None:
        if options is None:
            raise ValueError("options must not be None")
        self._options = options

    @property
    def records(self) -> RecordHistory:
        """Every line this channel has delivered, in order."""
        return self._records

    @property
    def snapshots(self) -> SnapshotManager:
        return self._snapshots

    @property
    def filters(self) -> FilterSet:
        return self._filters

    @property
    def output_stream(self) -> Sink:
        return self._out

    @property
    def error_stream(self) -> Sink:
        return self._err

    # ------------------------------- filters --------------------------------

    def add_filter(self, flt: Filter | None) -> None:
        self._filters.add(flt)

    def remove_filter(self, flt: Filter | None) -> None:
        self._filters.remove(flt)

    def set_filters(self, filters: Iterable[Filter] | None) -> None:
        """Replace every channel filter; ``None`` keeps the current set."""
        if filters is not None:
            self._filters.replace(filters)

    # ------------------------------- logging --------------------------------

    def log(self, level: Level | str | int, message: str) -> bool:
        """Log ``message`` without a trailing line terminator.

        Returns ``True`` only if the intended sink accepted the line.
        """
        return self._dispatch(level, message, terminate=False)

    def log_line(self, level: Level | str | int, message: str) -> bool:
        """Like :meth:`log`, but terminate the written line with ``os.linesep``."""
        return self._dispatch(level, message, terminate=True)

    def _dispatch(self, level: Level | str | int, message: str, *, terminate: bool) -> bool:
        if not isinstance(level, Level):
            level = Level.parse(level)
        options = self._options
        now = datetime.now()

        header = options.render(options.template, level, False, now=now)
        body = options.render(message, level, True, now=now) if options.expand_messages else message
        line = options.render(options.template, level, False, payload=body, now=now)

        if not self._filters.accepts(header, level, body, line):
            return False

        end = LINE_TERMINATOR if terminate else ""
        primary, secondary = (self._err, self._out) if level.is_error else (self._out, self._err)

        with self._io_lock:
            outcome = write_to(primary, line + end)
            if outcome.is_ok():
                self._records.append(Record(level, options.template, line, message, self))
                return True

            _log.debug(
                "channel %r: primary sink write failed: %s", self._identity, outcome.unwrap_err()
            )
            diagnostic = FALLBACK_MESSAGE + message
            if write_to(secondary, diagnostic + end).is_ok():
                self._records.append(
                    Record(level, options.template, diagnostic, message, self, fallback=True)
                )
                return False

            self._last_resort(diagnostic)
            return False

    def _last_resort(self, diagnostic: str) -> None:
        """Both sinks failed: print to the process stdout."""
        try:
            print(diagnostic, file=sys.stdout, flush=True)
        except (OSError, ValueError):
            _log.exception("channel %r: could not emit diagnostic to stdout", self._identity)

    # -------------------------------- sinks ---------------------------------

    def set_output_stream(self, sink: Sink | None) -> None:
        """Close the current normal sink and replace it with ``sink``."""
        if sink is None or sink is self._out:
            return
        outcome = close_sink(self._out)
        if outcome.is_err():
            self.log_line(
                Level.WARNING,
                f"Could not close current output stream ({self._out!r})"
                + load_settings().describe_failure(outcome.unwrap_err()),
            )
        with self._io_lock:
            self._out = sink

    def set_error_stream(self, sink: Sink | None) -> None:
        """Close the current error sink and replace it with ``sink``."""
        if sink is None or sink is self._err:
            return
        outcome = close_sink(self._err)
        if outcome.is_err():
            self.log_line(
                Level.WARNING,
                f"Could not close current error stream ({self._err!r})"
                + load_settings().describe_failure(outcome.unwrap_err()),
            )
        with self._io_lock:
            self._err = sink

    # ------------------------------- dunders --------------------------------

    def __eq__(self, other: object) -> bool:
        if other is self:
            return True
        if not isinstance(other, Channel):
            return NotImplemented
        return self._options == other._options and self._records == other._records

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Channel({self._identity!r})"


__all__ = ["FALLBACK_MESSAGE", "Channel"]
