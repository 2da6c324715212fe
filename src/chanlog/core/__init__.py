"""Core building blocks for chanlog.

Leaf modules with no knowledge of channels: levels, placeholders, render
options, filters, records, sinks, the Result type and settings.
"""

from __future__ import annotations

__all__ = ["__doc__"]
