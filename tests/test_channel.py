"""
Tests for channel dispatch: rendering, filtering, sink routing and fallback.

Scope
-----
1.  **Happy path**: a logged line reaches the right sink and the history.
2.  **Filters**: a rejection is a silent no-op.
3.  **Fallback**: a failing sink diverts a diagnostic to the other sink, or to
    the process stdout when both fail.
4.  **Sink replacement**: close failures become WARNING lines.
5.  **Equality**: options + history, identity ignored.
"""

from __future__ import annotations

import os
import threading
from typing import Any

import pytest
from conftest import BrokenSink, RecordingSink

from chanlog.channel import FALLBACK_MESSAGE, Channel
from chanlog.core.filters import only_levels
from chanlog.core.levels import Level
from chanlog.core.options import RenderOptions
from chanlog.core.records import Record
from chanlog.core.sinks import StandardStream
from chanlog.registry import ChannelRegistry


def _plain(channel: Channel) -> Channel:
    """Use a clock-free template so lines can be compared exactly."""
    channel.options.template = "%level|%prompt"
    return channel


def test_end_to_end_log_line(
    registry: ChannelRegistry, out_sink: RecordingSink, err_sink: RecordingSink
) -> None:
    """`svc` with default options: one terminated line containing INFO and ready."""
    svc = registry.get_or_create("svc", out_sink, err_sink)

    assert svc.log_line(Level.INFO, "ready") is True

    assert len(out_sink.writes) == 1
    text = out_sink.text()
    assert text.endswith(os.linesep)
    assert "ready" in text and "INFO" in text
    assert err_sink.getvalue() == b""
    assert len(svc.records) == 1


def test_log_appends_one_record_with_raw_message(
    registry: ChannelRegistry, out_sink: RecordingSink, err_sink: RecordingSink
) -> None:
    svc = _plain(registry.get_or_create("svc", out_sink, err_sink))

    for i, level in enumerate(Level):
        assert svc.log(level, f"m{i}") is True
        assert len(svc.records) == i + 1
        rec = svc.records[i]
        assert rec.message == f"m{i}"
        assert rec.level is level
        assert rec.line == f"{level.label}|m{i}"
        assert rec.template == "%level|%prompt"
        assert rec.channel is svc
        assert rec.fallback is False


def test_log_has_no_terminator_and_one_write_per_call(
    registry: ChannelRegistry, out_sink: RecordingSink, err_sink: RecordingSink
) -> None:
    svc = _plain(registry.get_or_create("svc", out_sink, err_sink))
    svc.log(Level.INFO, "a")
    svc.log_line(Level.CLIENT, "b")
    assert out_sink.writes == [b"INFO|a", f"CLIENT|b{os.linesep}".encode()]
    # the terminator is not part of the remembered line
    assert svc.records[1].line == "CLIENT|b"


def test_error_goes_to_error_sink(
    registry: ChannelRegistry, out_sink: RecordingSink, err_sink: RecordingSink
) -> None:
    svc = _plain(registry.get_or_create("svc", out_sink, err_sink))
    svc.log(Level.ERROR, "boom")
    svc.log(Level.WARNING, "careful")
    assert err_sink.text() == "ERROR|boom"
    assert out_sink.text() == "WARNING|careful"


def test_level_names_accepted(
    registry: ChannelRegistry, out_sink: RecordingSink, err_sink: RecordingSink
) -> None:
    svc = _plain(registry.get_or_create("svc", out_sink, err_sink))
    assert svc.log("server", "up") is True
    assert svc.records[0].level is Level.SERVER


def test_filter_rejection_has_no_side_effects(
    registry: ChannelRegistry, out_sink: RecordingSink, err_sink: RecordingSink
) -> None:
    svc = _plain(registry.get_or_create("svc", out_sink, err_sink))
    svc.add_filter(only_levels(Level.ERROR))

    assert svc.log_line(Level.INFO, "dropped") is False
    assert out_sink.writes == [] and err_sink.writes == []
    assert len(svc.records) == 0

    assert svc.log_line(Level.ERROR, "kept") is True
    assert len(svc.records) == 1


def test_filter_receives_rendered_parts(
    registry: ChannelRegistry, out_sink: RecordingSink, err_sink: RecordingSink
) -> None:
    seen: list[tuple[str, Level, str, str]] = []

    def spy(template: str, level: Level, message: str, line: str) -> bool:
        seen.append((template, level, message, line))
        return True

    svc = _plain(registry.get_or_create("svc", out_sink, err_sink))
    svc.set_filters([spy])
    svc.log(Level.INFO, "hi")
    assert seen == [("INFO|%prompt", Level.INFO, "hi", "INFO|hi")]


def test_expand_messages_option(
    registry: ChannelRegistry, out_sink: RecordingSink, err_sink: RecordingSink
) -> None:
    """With expand_messages the raw message is placeholder-expanded too."""
    svc = _plain(registry.get_or_create("svc", out_sink, err_sink))
    svc.log(Level.INFO, "lvl=%level")
    svc.options.expand_messages = True
    svc.log(Level.INFO, "lvl=%level")
    assert svc.records[0].line == "INFO|lvl=%level"
    assert svc.records[1].line == "INFO|lvl=INFO"
    assert svc.records[1].message == "lvl=%level"


def test_primary_failure_falls_back_to_other_sink(
    registry: ChannelRegistry, err_sink: RecordingSink
) -> None:
    """A broken normal sink sends a diagnostic to the error sink instead."""
    svc = _plain(registry.get_or_create("svc", BrokenSink(), err_sink))

    assert svc.log_line(Level.INFO, "ready") is False

    assert err_sink.text() == FALLBACK_MESSAGE + "ready" + os.linesep
    assert len(svc.records) == 1
    rec = svc.records[0]
    assert rec.fallback is True
    assert rec.message == "ready"
    assert rec.line == FALLBACK_MESSAGE + "ready"


def test_error_failure_falls_back_to_normal_sink(
    registry: ChannelRegistry, out_sink: RecordingSink
) -> None:
    svc = _plain(registry.get_or_create("svc", out_sink, BrokenSink()))
    assert svc.log(Level.ERROR, "boom") is False
    assert out_sink.text() == FALLBACK_MESSAGE + "boom"
    assert svc.records[0].fallback is True


def test_total_failure_prints_to_stdout(registry: ChannelRegistry, capsys: Any) -> None:
    """Both sinks broken: diagnostic on stdout, nothing remembered."""
    svc = _plain(registry.get_or_create("svc", BrokenSink(), BrokenSink()))

    assert svc.log_line(Level.INFO, "lost") is False

    captured = capsys.readouterr()
    assert FALLBACK_MESSAGE + "lost" in captured.out
    assert len(svc.records) == 0


def test_default_sinks_are_process_streams(registry: ChannelRegistry, capsys: Any) -> None:
    svc = _plain(registry.get_or_create("svc"))
    assert isinstance(svc.output_stream, StandardStream)

    svc.log_line(Level.INFO, "to stdout")
    svc.log_line(Level.ERROR, "to stderr")

    captured = capsys.readouterr()
    assert "INFO|to stdout" in captured.out
    assert "ERROR|to stderr" in captured.err


def test_set_output_stream_closes_previous(
    registry: ChannelRegistry, out_sink: RecordingSink, err_sink: RecordingSink
) -> None:
    old = BrokenSink(fail_write=False)
    svc = _plain(registry.get_or_create("svc", old, err_sink))

    svc.set_output_stream(out_sink)
    assert old.closed is True
    assert svc.output_stream is out_sink

    svc.set_output_stream(None)
    assert svc.output_stream is out_sink


def test_close_failure_is_logged_as_warning(
    registry: ChannelRegistry, out_sink: RecordingSink, err_sink: RecordingSink
) -> None:
    """A sink that cannot be closed yields a WARNING record; replacement proceeds."""
    stubborn = BrokenSink(fail_write=False, fail_close=True)
    svc = _plain(registry.get_or_create("svc", out_sink, stubborn))

    svc.set_error_stream(err_sink)

    assert svc.error_stream is err_sink
    warnings = [r for r in svc.records if r.level is Level.WARNING]
    assert len(warnings) == 1
    assert "Could not close current error stream" in warnings[0].message


def test_options_setter_rejects_none(registry: ChannelRegistry) -> None:
    svc = registry.get_or_create("svc")
    with pytest.raises(ValueError):
        svc.options = None  # type: ignore[assignment]
    svc.options = RenderOptions(title="x")
    assert svc.options.title == "x"


def test_equality_ignores_identity(
    registry: ChannelRegistry, out_sink: RecordingSink, err_sink: RecordingSink
) -> None:
    a = _plain(registry.get_or_create("a", out_sink, err_sink))
    b = _plain(registry.get_or_create("b", out_sink, err_sink))
    assert a == b

    a.log(Level.INFO, "x")
    assert a != b
    b.log(Level.INFO, "x")
    assert a == b

    b.options.title = "different"
    assert a != b


def test_empty_identity_rejected() -> None:
    with pytest.raises(ValueError):
        Channel("")


def test_concurrent_logging_keeps_lines_whole(
    registry: ChannelRegistry, out_sink: RecordingSink, err_sink: RecordingSink
) -> None:
    """Many threads on one channel: every call is one write and one record."""
    svc = _plain(registry.get_or_create("svc", out_sink, err_sink))

    def worker(n: int) -> None:
        for i in range(50):
            svc.log_line(Level.CLIENT, f"t{n}-{i}")

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(svc.records) == 400
    assert len(out_sink.writes) == 400
    written = [w.decode().rstrip(os.linesep) for w in out_sink.writes]
    assert written == [r.line for r in svc.records]


def test_record_type(registry: ChannelRegistry, out_sink: RecordingSink) -> None:
    svc = registry.get_or_create("svc", out_sink)
    svc.log(Level.INFO, "x")
    assert isinstance(svc.records[0], Record)


def test_unencodable_message_is_still_delivered(
    registry: ChannelRegistry, out_sink: RecordingSink, err_sink: RecordingSink
) -> None:
    """A lone surrogate (e.g. an `os.fsdecode` file name) is replaced on the wire."""
    svc = _plain(registry.get_or_create("svc", out_sink, err_sink))

    assert svc.log_line(Level.INFO, "file=\udcff.txt") is True

    assert out_sink.getvalue() == f"INFO|file=?.txt{os.linesep}".encode()
    assert err_sink.getvalue() == b""
    assert len(svc.records) == 1
    assert svc.records[0].message == "file=\udcff.txt"
    assert svc.records[0].fallback is False


def test_prompt_marker_in_decoration_is_not_rescanned(
    registry: ChannelRegistry, out_sink: RecordingSink, err_sink: RecordingSink
) -> None:
    """`%prompt` arriving via title, prefix or suffix stays literal text."""
    svc = registry.get_or_create("svc", out_sink, err_sink)
    svc.options = RenderOptions(
        template="%title %level %prompt", title="%prompt", prefix="<%prompt>", suffix="!"
    )

    svc.log(Level.INFO, "hi")

    assert svc.records[0].line == "<%prompt>%prompt INFO hi!"


def test_level_labels_stay_per_channel(
    registry: ChannelRegistry, out_sink: RecordingSink, err_sink: RecordingSink
) -> None:
    a = _plain(registry.get_or_create("a", out_sink, err_sink))
    b = _plain(registry.get_or_create("b", RecordingSink(), RecordingSink()))
    a.options.level_labels[Level.WARNING] = "warn"

    a.log(Level.WARNING, "x")
    b.log(Level.WARNING, "x")

    assert a.records[0].line == "warn|x"
    assert b.records[0].line == "WARNING|x"
