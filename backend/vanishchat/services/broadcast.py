# vanishchat/services/broadcast.py

import asyncio
import logging
from typing import Any, Optional, Protocol

from pydantic import BaseModel

from vanishchat.core.errors import ChannelError

logger = logging.getLogger(__name__)


class Channel(Protocol):
    """Anything that can push a JSON frame to one connected client (e.g. a WebSocket)."""

    async def send_json(self, data: Any) -> None: ...


class _Subscription:
    """One channel's outbound queue and the task that drains it, in order."""

    def __init__(self, identity: str, channel: Channel):
        self.identity = identity
        self.channel = channel
        self.queue: asyncio.Queue = asyncio.Queue()
        self.writer: Optional[asyncio.Task] = None
        self.closed = False

    def offer(self, payload: dict) -> bool:
        if self.closed:
            return False
        self.queue.put_nowait(payload)
        return True

    def close(self) -> None:
        self.closed = True
        while True:
            try:
                self.queue.get_nowait()
            except asyncio.QueueEmpty:
                break
            self.queue.task_done()
        if self.writer is not None and self.writer is not asyncio.current_task():
            self.writer.cancel()


class BroadcastHub:
    """
    Registry of live channels grouped by identity, with full-room fan-out.

    Registry changes happen on the event loop without awaiting, so each one
    is applied whole. Delivery goes through a per-channel queue and writer
    task: events reach a channel in publish order, and a slow or broken
    channel never holds up the others. A failed send drops that channel.
    """

    def __init__(self):
        self._subscribers: dict[str, dict[Channel, _Subscription]] = {}

    def subscribe(self, identity: str, channel: Channel) -> None:
        channels = self._subscribers.setdefault(identity, {})
        if channel in channels:
            return
        sub = _Subscription(identity, channel)
        sub.writer = asyncio.get_running_loop().create_task(
            self._write(sub), name=f"broadcast-writer:{identity}"
        )
        channels[channel] = sub
        logger.info("🔌 %s connected (%d channel(s))", identity, len(channels))

    def unsubscribe(self, identity: str, channel: Channel) -> None:
        """Remove ``channel``; the identity goes away with its last channel. Safe to repeat."""
        channels = self._subscribers.get(identity)
        if not channels:
            return
        sub = channels.pop(channel, None)
        if not channels:
            del self._subscribers[identity]
        if sub is not None:
            sub.close()
            logger.info("👋 %s disconnected", identity)

    def publish(self, event: BaseModel | dict) -> int:
        """Queue ``event`` for every registered channel. Returns the number of channels reached."""
        payload = event.model_dump(mode="json") if isinstance(event, BaseModel) else event
        delivered = 0
        for channels in list(self._subscribers.values()):
            for sub in list(channels.values()):
                if sub.offer(payload):
                    delivered += 1
        return delivered

    def send_to(self, identity: str, channel: Channel, event: BaseModel | dict) -> bool:
        """Queue ``event`` for one subscribed channel only, behind anything already queued for it."""
        sub = self._subscribers.get(identity, {}).get(channel)
        if sub is None:
            return False
        payload = event.model_dump(mode="json") if isinstance(event, BaseModel) else event
        return sub.offer(payload)

    async def flush(self) -> None:
        """Wait until every queued event has been written or dropped."""
        subs = [sub for channels in self._subscribers.values() for sub in channels.values()]
        await asyncio.gather(*(sub.queue.join() for sub in subs))

    async def close(self) -> None:
        subs = [sub for channels in self._subscribers.values() for sub in channels.values()]
        self._subscribers.clear()
        for sub in subs:
            sub.close()
        writers = [sub.writer for sub in subs if sub.writer is not None]
        await asyncio.gather(*writers, return_exceptions=True)

    def identities(self) -> list[str]:
        return list(self._subscribers)

    def channel_count(self, identity: Optional[str] = None) -> int:
        if identity is not None:
            return len(self._subscribers.get(identity, {}))
        return sum(len(channels) for channels in self._subscribers.values())

    async def _write(self, sub: _Subscription) -> None:
        while True:
            payload = await sub.queue.get()
            try:
                await self._send(sub, payload)
            except ChannelError as e:
                logger.warning("⚠️ %s; dropping channel", e)
                self.unsubscribe(sub.identity, sub.channel)
                return
            finally:
                sub.queue.task_done()

    @staticmethod
    async def _send(sub: _Subscription, payload: dict) -> None:
        try:
            await sub.channel.send_json(payload)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            raise ChannelError(f"send to {sub.identity} failed: {e}") from e
