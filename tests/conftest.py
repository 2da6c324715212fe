"""Shared fixtures for the chanlog test suite.

Channels write bytes to sinks; the helpers here give tests a recording sink
and a sink that fails on demand, plus an isolated registry per test.
"""

from __future__ import annotations

import io
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pytest

from chanlog.core.settings import load_settings
from chanlog.registry import ChannelRegistry


class RecordingSink(io.BytesIO):
    """In-memory sink that tracks every individual write call."""

    def __init__(self) -> None:
        super().__init__()
        self.writes: list[bytes] = []

    def write(self, data: Any, /) -> int:
        self.writes.append(bytes(data))
        return super().write(data)

    def text(self) -> str:
        return self.getvalue().decode("utf-8")


class BrokenSink:
    """Sink whose writes and/or close raise ``OSError``."""

    def __init__(self, *, fail_write: bool = True, fail_close: bool = False) -> None:
        self.fail_write = fail_write
        self.fail_close = fail_close
        self.closed = False

    def write(self, data: bytes, /) -> int:
        if self.fail_write:
            raise OSError("sink is broken")
        return len(data)

    def flush(self) -> None:
        return None

    def close(self) -> None:
        if self.fail_close:
            raise OSError("cannot close")
        self.closed = True


@pytest.fixture  # type: ignore[misc]
def registry() -> ChannelRegistry:
    """A fresh registry so no channel leaks between tests."""
    return ChannelRegistry()


@pytest.fixture  # type: ignore[misc]
def out_sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture  # type: ignore[misc]
def err_sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture  # type: ignore[misc]
def snapshot_dir(tmp_path: Path, monkeypatch: Any) -> Iterator[Path]:
    """Point CHANLOG_SNAPSHOT_DIR at a temp dir for the duration of a test."""
    target = tmp_path / "logs"
    monkeypatch.setenv("CHANLOG_SNAPSHOT_DIR", str(target))
    load_settings.cache_clear()
    yield target
    monkeypatch.delenv("CHANLOG_SNAPSHOT_DIR", raising=False)
    load_settings.cache_clear()
