"""Process-local channels: one fan-out group per identity."""

import logging
from collections import defaultdict
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class Subscriber(Protocol):
    async def send_json(self, data: Any, mode: str = "text") -> None: ...


class ChannelRegistry:
    """Maps a channel name to the live connections subscribed to it.

    Only touched from the event loop, so no locking. A channel with no
    subscribers is removed; emitting to it reaches nobody.
    """

    def __init__(self) -> None:
        self._channels: dict[str, set[Subscriber]] = defaultdict(set)

    def join(self, channel: str, subscriber: Subscriber) -> None:
        self._channels[channel].add(subscriber)

    def leave(self, channel: str, subscriber: Subscriber) -> None:
        members = self._channels.get(channel)
        if members is None:
            return
        members.discard(subscriber)
        if not members:
            del self._channels[channel]

    def subscribers(self, channel: str) -> set[Subscriber]:
        return set(self._channels.get(channel, ()))

    def channels(self) -> list[str]:
        return list(self._channels)

    async def emit(self, channel: str, event: str, data: Any) -> int:
        """Send one frame to every subscriber of channel. Returns how many got it."""
        members = self.subscribers(channel)
        if not members:
            logger.debug(f"No subscribers on channel {channel} for {event}")
            return 0

        delivered = 0
        for subscriber in members:
            try:
                await subscriber.send_json({"event": event, "data": data})
                delivered += 1
            except Exception as e:
                # The socket went away between join and now; forget it.
                logger.info(f"Dropping subscriber on channel {channel}: {e}")
                self.leave(channel, subscriber)
        return delivered


channels = ChannelRegistry()
