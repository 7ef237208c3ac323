"""Broadcast channels connecting the parts of the bridge."""

from __future__ import annotations

import asyncio
import weakref
from dataclasses import dataclass, field
from typing import Any

CHANNEL_CAPACITY = 2048

_CLOSED = object()


class ChannelClosed(Exception):
    """Raised when a channel has no one left to talk to."""


class Receiver:
    """One subscriber's view of a broadcast channel."""

    def __init__(self, capacity: int) -> None:
        self._capacity = capacity
        self._queue: asyncio.Queue[Any] = asyncio.Queue()

    def _push(self, item: Any) -> None:
        # a slow receiver loses its oldest messages rather than blocking senders
        if self._queue.qsize() >= self._capacity:
            self._queue.get_nowait()
        self._queue.put_nowait(item)

    async def recv(self) -> Any:
        """Wait for and return the next message; raise ChannelClosed once drained."""
        item = await self._queue.get()
        if item is _CLOSED:
            self._queue.put_nowait(_CLOSED)
            raise ChannelClosed("channel closed")
        return item


class Broadcast:
    """A multi-producer, multi-consumer channel: every receiver gets every message."""

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._capacity = capacity
        self._receivers: weakref.WeakSet[Receiver] = weakref.WeakSet()
        self._closed = False

    def send(self, item: Any) -> int:
        """Deliver item to all current receivers and return how many there were."""
        if self._closed:
            raise ChannelClosed("channel closed")
        receivers = list(self._receivers)
        if not receivers:
            raise ChannelClosed("no receivers")
        for receiver in receivers:
            receiver._push(item)
        return len(receivers)

    def subscribe(self) -> Receiver:
        """Return a receiver that sees every message sent from now on."""
        receiver = Receiver(self._capacity)
        if self._closed:
            receiver._queue.put_nowait(_CLOSED)
        else:
            self._receivers.add(receiver)
        return receiver

    def close(self) -> None:
        """Close the channel; receivers drain what is queued, then see ChannelClosed."""
        if self._closed:
            return
        self._closed = True
        for receiver in list(self._receivers):
            receiver._queue.put_nowait(_CLOSED)
        self._receivers = weakref.WeakSet()


def _channel() -> Broadcast:
    return Broadcast(CHANNEL_CAPACITY)


@dataclass
class Channels:
    """The set of channels shared by every component."""

    from_inverter: Broadcast = field(default_factory=_channel)
    to_inverter: Broadcast = field(default_factory=_channel)
    from_mqtt: Broadcast = field(default_factory=_channel)
    to_mqtt: Broadcast = field(default_factory=_channel)
    to_influx: Broadcast = field(default_factory=_channel)
    to_database: Broadcast = field(default_factory=_channel)