"""chanlog: named log channels with templated rendering and rotating snapshots.

Typical use:

    from chanlog import ChannelRegistry, Level

    registry = ChannelRegistry()
    svc = registry.get_or_create("svc")
    svc.log_line(Level.INFO, "ready")
    svc.snapshots.next_file().save()
"""

from __future__ import annotations

from chanlog.channel import Channel
from chanlog.core.filters import Filter, FilterSet, exclude_levels, matching, only_levels
from chanlog.core.levels import Level
from chanlog.core.options import DEFAULT_TEMPLATE, RenderOptions
from chanlog.core.placeholders import Placeholder
from chanlog.core.records import Record, RecordHistory
from chanlog.registry import ChannelRegistry, default_registry, get_channel
from chanlog.snapshots import SnapshotFile, SnapshotManager

__all__ = [
    "DEFAULT_TEMPLATE",
    "Channel",
    "ChannelRegistry",
    "Filter",
    "FilterSet",
    "Level",
    "Placeholder",
    "Record",
    "RecordHistory",
    "RenderOptions",
    "SnapshotFile",
    "SnapshotManager",
    "__version__",
    "default_registry",
    "exclude_levels",
    "get_channel",
    "matching",
    "only_levels",
]
__version__ = "0.1.0"
