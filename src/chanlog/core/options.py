"""
Per-channel render options.

`RenderOptions` is the mutable configuration a channel renders with: the
active template, prefix/suffix, indentation, AM/PM and level labels, a title
and a flag that controls whether raw messages are placeholder-expanded too.

It is a Pydantic v2 model so that assignments are validated (``indent`` can
never go negative) and equality is structural over every field.

Rendering
---------
``expand()`` substitutes markers only. ``render()`` adds the decoration:

    is_message=False  ->  indent_unit * indent + prefix + expanded + suffix
    is_message=True   ->                         prefix + expanded + suffix

Both take an optional ``now`` so callers (and tests) can pin the instant; the
clock is otherwise sampled exactly once per call.
"""

from __future__ import annotations

import re
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from .levels import Level
from .placeholders import MARKER_PATTERN, ClockSample, Placeholder

DEFAULT_TEMPLATE = (
    f"[{Placeholder.YEAR}:{Placeholder.MONTH}:{Placeholder.WEEK_OF_MONTH}:"
    f"{Placeholder.DAY_OF_MONTH}:{Placeholder.HOUR12}:{Placeholder.MINUTE}:"
    f"{Placeholder.SECOND} {Placeholder.HOUR_AM_PM} - {Placeholder.LEVEL}] "
    f"{Placeholder.PROMPT}"
)
DEFAULT_INDENT = 0
DEFAULT_INDENT_UNIT = "\t"
DEFAULT_AM_LABEL = "AM"
DEFAULT_PM_LABEL = "PM"


def _default_level_labels() -> dict[Level, str]:
    return {level: level.label for level in Level}


class RenderOptions(BaseModel):
    """Template and decoration settings for one channel."""

    model_config = ConfigDict(validate_assignment=True)

    template: str = Field(default=DEFAULT_TEMPLATE, description="Active line template.")
    prefix: str = Field(default="", description="Text prepended to every render.")
    suffix: str = Field(default="", description="Text appended to every render.")
    indent: int = Field(default=DEFAULT_INDENT, ge=0, description="Indent depth.")
    indent_unit: str = Field(default=DEFAULT_INDENT_UNIT, description="One indent step.")
    am_label: str = Field(default=DEFAULT_AM_LABEL, description="Text for %ampm before noon.")
    pm_label: str = Field(default=DEFAULT_PM_LABEL, description="Text for %ampm from noon.")
    title: str = Field(default="", description="Text for %title.")
    level_labels: dict[Level, str] = Field(
        default_factory=_default_level_labels, description="Text for %level, per level."
    )
    expand_messages: bool = Field(
        default=False, description="Also expand placeholders inside raw messages."
    )

    def label_for(self, level: Level) -> str:
        """Display text for ``level``; falls back to the level name."""
        return self.level_labels.get(level, level.label)

    def expand(
        self,
        text: str,
        level: Level | None = None,
        *,
        payload: str | None = None,
        now: datetime | None = None,
    ) -> str:
        """
        Substitute every known marker in ``text`` in a single pass.

        Parameters
        ----------
        text : str
            Template, message or file name to expand.
        level : Level | None
            Level for ``%level``; the marker stays verbatim when ``None``.
        payload : str | None
            Text for ``%prompt``; the marker stays verbatim when ``None``.
        now : datetime | None
            Instant to render; defaults to one sample of the local clock.

        Returns
        -------
        str
            ``text`` with markers replaced. Substituted values are never
            rescanned and unknown ``%tokens`` are left untouched.
        """
        sample = ClockSample(now) if now is not None else ClockSample.now()
        values: dict[Placeholder, str] = sample.values()
        values[Placeholder.HOUR_AM_PM] = self.am_label if sample.is_am else self.pm_label
        values[Placeholder.TITLE] = self.title
        if level is not None:
            values[Placeholder.LEVEL] = self.label_for(level)
        if payload is not None:
            values[Placeholder.PROMPT] = payload

        def _sub(match: re.Match[str]) -> str:
            item = Placeholder(match.group(0))
            return values.get(item, match.group(0))

        return MARKER_PATTERN.sub(_sub, text)

    def render(
        self,
        text: str,
        level: Level | None,
        is_message: bool,
        *,
        payload: str | None = None,
        now: datetime | None = None,
    ) -> str:
        """Expand ``text`` and apply indent (templates only) and prefix/suffix."""
        body = self.prefix + self.expand(text, level, payload=payload, now=now) + self.suffix
        if is_message:
            return body
        return self.indent_unit * self.indent + body


__all__ = [
    "DEFAULT_AM_LABEL",
    "DEFAULT_INDENT",
    "DEFAULT_INDENT_UNIT",
    "DEFAULT_PM_LABEL",
    "DEFAULT_TEMPLATE",
    "RenderOptions",
]
