# vanishchat/services/expiry_scanner.py

import logging
from datetime import datetime
from typing import Callable

from fastapi.concurrency import run_in_threadpool

from vanishchat.core.config import SCAN_INTERVAL_SECONDS
from vanishchat.core.errors import StorageError
from vanishchat.core.message_logic import is_expired, utcnow
from vanishchat.core.scheduler import RecurringTask
from vanishchat.schemas.events import MessageExpiredEvent
from vanishchat.services.broadcast import BroadcastHub
from vanishchat.services.message_store import MessageStore

logger = logging.getLogger(__name__)


class ExpiryScanner:
    """
    Periodically deletes messages whose lifetime has run out and tells
    every connected client about it.

    The expiry event for an id is only published after its delete has been
    committed. A delete that fails is left for the next sweep.
    """

    def __init__(
        self,
        store: MessageStore,
        hub: BroadcastHub,
        interval: float = SCAN_INTERVAL_SECONDS,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.hub = hub
        self.clock = clock
        self._task = RecurringTask("expiry-scanner", interval, self._tick)

    @property
    def running(self) -> bool:
        return self._task.running

    def start(self) -> None:
        self._task.start()

    async def stop(self) -> None:
        await self._task.stop()

    async def _tick(self) -> None:
        await self.sweep(self.clock())

    async def sweep(self, now: datetime) -> list[str]:
        """Run one pass at ``now``; returns the ids that were deleted and announced."""
        try:
            messages = await run_in_threadpool(self.store.list_all)
        except StorageError as e:
            logger.error("Expiry sweep skipped: %s", e)
            return []

        expired_ids = []
        for msg in messages:
            if not is_expired(msg.created_at, msg.lifetime, now):
                continue
            try:
                removed = await run_in_threadpool(self.store.delete_by_id, msg.id)
            except StorageError as e:
                logger.warning("Could not delete expired message %s, retrying next sweep: %s", msg.id, e)
                continue
            if not removed:
                # Another sweep got there first and already announced it
                continue
            self.hub.publish(MessageExpiredEvent(id=msg.id))
            expired_ids.append(msg.id)

        if expired_ids:
            logger.info("🗑️ Expired %d message(s)", len(expired_ids))
        return expired_ids
