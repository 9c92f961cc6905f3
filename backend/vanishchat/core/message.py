# vanishchat/core/message.py

import logging
from datetime import datetime
from typing import Callable, Optional

from fastapi.concurrency import run_in_threadpool

from vanishchat.core import crypto
from vanishchat.core.config import MAX_MESSAGE_LENGTH
from vanishchat.core.errors import CryptoError, ValidationError
from vanishchat.core.message_logic import expires_at, lifetime, remaining_seconds, utcnow
from vanishchat.core.rate_tracker import RateTracker
from vanishchat.schemas.events import MessageView, NewMessageEvent
from vanishchat.services.broadcast import BroadcastHub
from vanishchat.services.message_store import MessageStore, StoredMessage

logger = logging.getLogger(__name__)


def validate_text(text) -> str:
    if not isinstance(text, str):
        raise ValidationError("Message text must be a string")
    text = text.strip()
    if not text:
        raise ValidationError("Message text is empty")
    if len(text) > MAX_MESSAGE_LENGTH:
        raise ValidationError(f"Message text exceeds {MAX_MESSAGE_LENGTH} characters")
    return text


class MessageService:
    """Send path and initial-load query for the shared room."""

    def __init__(
        self,
        store: MessageStore,
        hub: BroadcastHub,
        tracker: Optional[RateTracker] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.hub = hub
        self.tracker = tracker or RateTracker()
        self.clock = clock

    async def send(self, username: str, text) -> NewMessageEvent:
        """
        Encrypt, store and broadcast one message from ``username``.

        Raises ValidationError for bad text, CryptoError or StorageError when
        the message could not be sealed or saved; nothing is broadcast then.
        """
        text = validate_text(text)
        now = self.clock()

        recent = self.tracker.record_and_count(username, now)
        ttl = lifetime(recent)

        key = crypto.new_key()
        envelope = crypto.encrypt(text, key)

        message_id = await run_in_threadpool(self.store.insert, username, envelope, key, now, ttl)
        logger.debug("Stored message %s from %s (ttl=%ss, recent=%d)", message_id, username, ttl, recent)

        event = NewMessageEvent(
            id=message_id,
            username=username,
            message=text,
            createdAt=now,
            lifetime=ttl,
            expiresAt=expires_at(now, ttl),
            remaining=ttl,
        )
        self.hub.publish(event)
        return event

    async def list_active(self) -> list[MessageView]:
        """Decrypted messages that still have time left, oldest first."""
        rows = await run_in_threadpool(self.store.list_all)
        now = self.clock()
        views = []
        for row in rows:
            view = self._view(row, now)
            if view is not None:
                views.append(view)
        views.sort(key=lambda v: v.createdAt)
        return views

    def _view(self, row: StoredMessage, now: datetime) -> Optional[MessageView]:
        remaining = remaining_seconds(row.created_at, row.lifetime, now)
        if remaining <= 0:
            return None
        try:
            text = crypto.decrypt(row.ciphertext, row.encryption_key)
        except CryptoError as e:
            logger.warning("Skipping unreadable message %s: %s", row.id, e)
            return None
        return MessageView(
            id=row.id,
            username=row.username,
            message=text,
            createdAt=row.created_at,
            lifetime=row.lifetime,
            expiresAt=expires_at(row.created_at, row.lifetime),
            remaining=remaining,
        )
