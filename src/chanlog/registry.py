"""
Channel registry.

Maps channel identities to :class:`~chanlog.channel.Channel` objects with
first-writer-wins semantics: asking for an identity that already exists
returns the existing channel, never a replacement.

Registries are ordinary objects. Components that resolve channels by name
should be handed one explicitly; tests build an isolated registry per case.
`default_registry()` exists for scripts that just want one process-wide
instance.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator

from chanlog.channel import Channel
from chanlog.core.settings import get_logger
from chanlog.core.sinks import Sink

_log = get_logger("chanlog.registry")


class ChannelRegistry:
    """Thread-safe identity → channel mapping, in creation order."""

    def __init__(self) -> None:
        self._channels: dict[str, Channel] = {}
        self._lock = threading.RLock()

    def get_or_create(
        self, identity: str, out: Sink | None = None, err: Sink | None = None
    ) -> Channel:
        """
        Return the channel for ``identity``, creating it if needed.

        Parameters
        ----------
        identity : str
            Non-empty channel name.
        out, err : Sink | None
            Sinks for a newly created channel. Ignored when the channel
            already exists.

        Raises
        ------
        ValueError
            If ``identity`` is empty.
        """
        with self._lock:
            existing = self._channels.get(identity)
            if existing is not None:
                return existing
            channel = Channel(identity, out, err)
            self._channels[identity] = channel
        _log.debug("registered channel %r", identity)
        return channel

    def contains(self, identity: str) -> bool:
        with self._lock:
            return identity in self._channels

    def get(self, identity: str) -> Channel | None:
        """Return the channel for ``identity`` without creating it."""
        with self._lock:
            return self._channels.get(identity)

    def identities(self) -> tuple[str, ...]:
        """Registered identities in creation order."""
        with self._lock:
            return tuple(self._channels)

    def __contains__(self, identity: object) -> bool:
        with self._lock:
            return identity in self._channels

    def __len__(self) -> int:
        with self._lock:
            return len(self._channels)

    def __iter__(self) -> Iterator[str]:
        return iter(self.identities())


_default: ChannelRegistry | None = None
_default_lock = threading.Lock()


def default_registry() -> ChannelRegistry:
    """Accessor for the lazily created process-wide registry."""
    global _default
    with _default_lock:
        if _default is None:
            _default = ChannelRegistry()
        return _default


def get_channel(identity: str, out: Sink | None = None, err: Sink | None = None) -> Channel:
    """Shorthand for ``default_registry().get_or_create(...)``."""
    return default_registry().get_or_create(identity, out, err)


__all__ = ["ChannelRegistry", "default_registry", "get_channel"]
