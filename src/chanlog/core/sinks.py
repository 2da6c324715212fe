"""
Output sinks.

A sink is any byte-writable, flushable, closable destination: an open binary
file, an ``io.BytesIO``, a socket file object, and so on. Channels write one
encoded line per call and flush right after.

`StandardStream` is the default sink pair. It resolves ``sys.stdout`` /
``sys.stderr`` at write time, so stream redirection (pytest capture,
``contextlib.redirect_stdout``) is honoured, and its ``close()`` never closes
the process streams.

`write_to()` turns a write attempt into a :class:`~chanlog.core.result.Result`
instead of an exception; the channel dispatch logic builds its fallback chain
on top of it.
"""

from __future__ import annotations

import os
import sys
from typing import Literal, Protocol, runtime_checkable

from .result import Result, err, ok

ENCODING = "utf-8"
LINE_TERMINATOR = os.linesep

StreamName = Literal["stdout", "stderr"]


@runtime_checkable
class Sink(Protocol):
    """Minimal interface a channel needs from an output destination."""

    def write(self, data: bytes, /) -> object: ...

    def flush(self) -> None: ...

    def close(self) -> None: ...


class StandardStream:
    """Sink bound by name to the process's standard output or error stream."""

    __slots__ = ("name",)

    def __init__(self, name: StreamName) -> None:
        if name not in ("stdout", "stderr"):
            raise ValueError(f"name must be 'stdout' or 'stderr', got {name!r}")
        self.name: StreamName = name

    def write(self, data: bytes, /) -> int:
        stream = getattr(sys, self.name)
        buffer = getattr(stream, "buffer", None)
        if buffer is not None:
            # keep ordering with text already queued on the wrapper
            stream.flush()
            return int(buffer.write(data))
        return int(stream.write(data.decode(ENCODING, errors="replace")))

    def flush(self) -> None:
        getattr(sys, self.name).flush()

    def close(self) -> None:
        """Flush only; the process streams stay open."""
        self.flush()

    def __repr__(self) -> str:
        return f"StandardStream({self.name!r})"


def encode(text: str) -> bytes:
    """UTF-8 encode ``text``; unencodable characters (lone surrogates) become ``?``."""
    return text.encode(ENCODING, errors="replace")


def write_to(sink: Sink, text: str) -> Result[None, Exception]:
    """
    Encode ``text`` and write it to ``sink`` in one call, then flush.

    Returns
    -------
    Result[None, Exception]
        ``Ok(None)`` on success, ``Err(exc)`` for I/O errors and writes to
        closed streams.
    """
    try:
        sink.write(encode(text))
        sink.flush()
    except (OSError, ValueError) as exc:
        return err(exc)
    return ok(None)


def close_sink(sink: Sink) -> Result[None, Exception]:
    """Close ``sink``, reporting failure as ``Err`` rather than raising."""
    try:
        sink.close()
    except (OSError, ValueError) as exc:
        return err(exc)
    return ok(None)


__all__ = [
    "ENCODING",
    "LINE_TERMINATOR",
    "Sink",
    "StandardStream",
    "close_sink",
    "encode",
    "write_to",
]
