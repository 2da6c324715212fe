"""
Rotating snapshot files.

A `SnapshotFile` materializes a channel's record history on disk. It starts
*pending* (name, directory, zip flag and filters are freely editable) and
becomes *sealed* after one successful :meth:`SnapshotFile.save`; sealing is
one-way.

Every channel owns one `SnapshotManager`. The manager always holds exactly one
pending file and an append-only archive of sealed ones. New snapshot files are
only ever minted by the manager: callers configure and save the object
returned by :meth:`SnapshotManager.next_file`.

On-disk layout
--------------
- Default directory: ``settings.snapshot_dir`` (``logs/``).
- Default base name: ``%year-%month-%dom``, placeholder-expanded at save time.
- Plain artifact:    ``<name>.log``.
- Zip artifact:      ``<name>.zip`` holding one entry, plus the sibling
  ``<name>.log`` that the entry was written from.
- Collisions:        ``<name>-<N>.<ext>`` where ``N`` is the number of
  existing ``<name>(-N)?.<ext>`` artifacts. The ``.log`` is created
  exclusively; if another writer takes the name first the next one is tried.

Sealed artifacts have every write permission bit cleared.
"""

from __future__ import annotations

import re
import stat
import threading
import zipfile
from collections.abc import Iterable, Iterator
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

from chanlog.core.filters import Filter, FilterSet, evaluate
from chanlog.core.levels import Level
from chanlog.core.placeholders import Placeholder
from chanlog.core.settings import get_logger, load_settings
from chanlog.core.sinks import LINE_TERMINATOR, encode

if TYPE_CHECKING:
    from chanlog.channel import Channel

DEFAULT_BASE_NAME = f"{Placeholder.YEAR}-{Placeholder.MONTH}-{Placeholder.DAY_OF_MONTH}"
LOG_SUFFIX = ".log"
ZIP_SUFFIX = ".zip"

_log = get_logger("chanlog.snapshots")


def _make_read_only(path: Path) -> None:
    mode = stat.S_IMODE(path.stat().st_mode)
    path.chmod(mode & ~(stat.S_IWUSR | stat.S_IWGRP | stat.S_IWOTH))


def count_existing(directory: Path, name: str, suffix: str) -> int:
    """Count entries in ``directory`` named ``name``, ``name-<N>`` plus ``suffix``."""
    pattern = re.compile(rf"^{re.escape(name)}(-\d+)?{re.escape(suffix)}$")
    return sum(1 for entry in directory.iterdir() if pattern.match(entry.name))


class SnapshotFile:
    """
    One rotation unit: a pending, then sealed, copy of a channel's history.

    Obtain instances through ``channel.snapshots.next_file()``.

    Attributes
    ----------
    base_name : str
        Desired file name without extension; may contain placeholders.
    zip_bundle : bool
        When true, ``save()`` produces ``<name>.zip`` (plus its ``<name>.log``).
    saved_at : datetime | None
        Local time of the successful save, ``None`` while pending.
    """

    def __init__(self, channel: Channel, manager: SnapshotManager) -> None:
        self._channel = channel
        self._manager = manager
        self._lock = threading.Lock()
        self._filters = FilterSet()
        self._directory: Path = load_settings().snapshot_dir
        self._content = ""
        self._sealed = False
        self._path: Path | None = None
        self._zip_path: Path | None = None
        self.base_name: str = DEFAULT_BASE_NAME
        self.zip_bundle: bool = False
        self.saved_at: datetime | None = None

    # ------------------------------ properties ------------------------------

    @property
    def channel(self) -> Channel:
        return self._channel

    @property
    def manager(self) -> SnapshotManager:
        return self._manager

    @property
    def directory(self) -> Path:
        return self._directory

    @directory.setter
    def directory(self, value: str | Path) -> None:
        self._directory = Path(value)

    @property
    def sealed(self) -> bool:
        return self._sealed

    @property
    def path(self) -> Path | None:
        """The ``.log`` artifact once sealed (also the zip's data source)."""
        return self._path

    @property
    def zip_path(self) -> Path | None:
        """The ``.zip`` artifact once sealed with ``zip_bundle`` set."""
        return self._zip_path

    @property
    def content(self) -> str:
        """Text written (or to be written) to the artifact.

        Setting it on a pending file makes ``save()`` write exactly this text
        instead of collecting the channel history.
        """
        return self._content

    @content.setter
    def content(self, value: str) -> None:
        with self._lock:
            if self._sealed:
                _log.warning("snapshot %s is sealed; content change ignored", self._path)
                return
            self._content = value or ""

    @property
    def filters(self) -> FilterSet:
        return self._filters

    def add_filter(self, flt: Filter | None) -> None:
        self._filters.add(flt)

    def remove_filter(self, flt: Filter | None) -> None:
        self._filters.remove(flt)

    def set_filters(self, filters: Iterable[Filter] | None) -> None:
        if filters is not None:
            self._filters.replace(filters)

    # --------------------------------- save ---------------------------------

    def save(self, *, now: datetime | None = None) -> bool:
        """
        Write the artifact(s), seal this file and rotate the manager.

        Parameters
        ----------
        now : datetime | None
            Instant used to expand ``base_name``; defaults to the local clock.

        Returns
        -------
        bool
            ``True`` on success. ``False`` if the file is already sealed or an
            I/O step failed; failures are logged as ERROR on the channel and
            leave the file pending so the save can be retried.
        """
        with self._lock:
            if self._sealed:
                _log.warning("snapshot %s is already sealed; save ignored", self._path)
                return False

            resolved = self._channel.options.expand(self.base_name, now=now)
            suffixes = (ZIP_SUFFIX, LOG_SUFFIX) if self.zip_bundle else (LOG_SUFFIX,)
            try:
                self._directory.mkdir(parents=True, exist_ok=True)
                content = self._content or self._collect()
                data = encode(content)
                while True:
                    name = self._unique_name(resolved, suffixes)
                    log_path = self._directory / f"{name}{LOG_SUFFIX}"
                    try:
                        with log_path.open("xb") as fh:
                            fh.write(data)
                        break
                    except FileExistsError:
                        # another writer claimed the name between listing and opening
                        continue

                zip_path = self._directory / f"{name}{ZIP_SUFFIX}" if self.zip_bundle else None
                if zip_path is not None:
                    with zipfile.ZipFile(zip_path, "x", compression=zipfile.ZIP_DEFLATED) as bundle:
                        bundle.write(log_path, arcname=log_path.name)

                _make_read_only(log_path)
                if zip_path is not None:
                    _make_read_only(zip_path)
            except (OSError, ValueError) as exc:
                self._channel.log_line(
                    Level.ERROR,
                    f'Could not save snapshot file: "{self.base_name}"'
                    + load_settings().describe_failure(exc),
                )
                return False

            self._content = content
            self._path = log_path
            self._zip_path = zip_path
            self._sealed = True
            self.saved_at = datetime.now()
            _log.info("channel %r sealed snapshot %s", self._channel.identity, zip_path or log_path)

        self._manager._on_sealed(self)
        return True

    def _unique_name(self, resolved: str, suffixes: tuple[str, ...]) -> str:
        """Apply the ``-<count>`` collision suffix to ``resolved``."""
        n = count_existing(self._directory, resolved, suffixes[0])
        while True:
            candidate = resolved if n == 0 else f"{resolved}-{n}"
            if not any((self._directory / f"{candidate}{sfx}").exists() for sfx in suffixes):
                return candidate
            n += 1

    def _collect(self) -> str:
        """Render the channel history through this file's own filters."""
        active = self._filters.snapshot()
        return "".join(
            record.line + LINE_TERMINATOR
            for record in self._channel.records
            if evaluate(active, record.template, record.level, record.message, record.line)
        )

    def __str__(self) -> str:
        return self._content

    def __repr__(self) -> str:
        state = "sealed" if self._sealed else "pending"
        return f"SnapshotFile({self.base_name!r}, {state})"


class SnapshotManager:
    """Per-channel holder of the pending snapshot file and the sealed archive."""

    def __init__(self, channel: Channel) -> None:
        self._channel = channel
        self._lock = threading.RLock()
        self._archive: list[SnapshotFile] = []
        self._next: SnapshotFile | None = SnapshotFile(channel, self)

    @property
    def channel(self) -> Channel:
        return self._channel

    def next_file(self) -> SnapshotFile:
        """
        Return the pending snapshot file.

        If the current one has been sealed it is archived first and a fresh
        pending file is minted. Repeated calls without a save in between
        return the same instance.
        """
        with self._lock:
            if self._next is None or self._next.sealed:
                if self._next is not None:
                    self._archive.append(self._next)
                self._next = SnapshotFile(self._channel, self)
            return self._next

    def _on_sealed(self, snapshot: SnapshotFile) -> None:
        """Archive ``snapshot`` right after it seals and mint its successor."""
        with self._lock:
            if snapshot is self._next:
                self._archive.append(snapshot)
                self._next = SnapshotFile(self._channel, self)

    # ------------------------------- archive --------------------------------

    @property
    def archive(self) -> tuple[SnapshotFile, ...]:
        """Sealed snapshot files in save order."""
        with self._lock:
            return tuple(self._archive)

    def by_name(self, name: str, ignore_case: bool = False) -> tuple[SnapshotFile, ...]:
        """Sealed files whose configured ``base_name`` equals ``name``."""
        if ignore_case:
            folded = name.casefold()
            return tuple(f for f in self.archive if f.base_name.casefold() == folded)
        return tuple(f for f in self.archive if f.base_name == name)

    def with_filter(self, flt: Filter) -> tuple[SnapshotFile, ...]:
        """Sealed files whose filter set contains ``flt``."""
        return tuple(f for f in self.archive if flt in f.filters)

    def __getitem__(self, index: int) -> SnapshotFile:
        return self.archive[index]

    def __len__(self) -> int:
        with self._lock:
            return len(self._archive)

    def __iter__(self) -> Iterator[SnapshotFile]:
        return iter(self.archive)


__all__ = [
    "DEFAULT_BASE_NAME",
    "LOG_SUFFIX",
    "ZIP_SUFFIX",
    "SnapshotFile",
    "SnapshotManager",
    "count_existing",
]
