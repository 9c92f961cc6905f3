# vanishchat/services/message_store.py

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError

from vanishchat.core.errors import StorageError
from vanishchat.infra.database import SessionLocal, db_session
from vanishchat.models.message import Message, new_message_id

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredMessage:
    """Detached copy of a ``messages`` row; safe to use after the session closes."""

    id: str
    username: str
    ciphertext: str
    encryption_key: str
    created_at: datetime
    lifetime: int


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _to_record(row: Message) -> StoredMessage:
    return StoredMessage(
        id=row.id,
        username=row.username,
        ciphertext=row.ciphertext,
        encryption_key=row.encryption_key,
        created_at=_as_utc(row.created_at),
        lifetime=row.lifetime,
    )


class MessageStore:
    """
    Encrypted messages at rest.

    Every call runs in its own short transaction, so an insert and a delete
    on different ids never wait on each other; the database serialises
    writes to the same row.
    """

    def __init__(self, session_factory=SessionLocal):
        self._session_factory = session_factory

    def insert(self, username: str, envelope: str, key: str, now: datetime, lifetime: int) -> str:
        if lifetime < 1:
            raise ValueError("lifetime must be at least one second")
        message_id = new_message_id()
        try:
            with db_session(self._session_factory) as session:
                session.add(
                    Message(
                        id=message_id,
                        username=username,
                        ciphertext=envelope,
                        encryption_key=key,
                        created_at=_as_utc(now),
                        lifetime=lifetime,
                    )
                )
        except SQLAlchemyError as e:
            logger.error("❌ Failed to store message from %s: %s", username, e)
            raise StorageError("Failed to store message") from e
        return message_id

    def list_all(self) -> list[StoredMessage]:
        try:
            with db_session(self._session_factory) as session:
                rows = session.execute(select(Message)).scalars().all()
                return [_to_record(row) for row in rows]
        except SQLAlchemyError as e:
            logger.error("❌ Failed to list messages: %s", e)
            raise StorageError("Failed to list messages") from e

    def delete_by_id(self, message_id: str) -> bool:
        """Delete one message. Returns False when it was already gone."""
        try:
            with db_session(self._session_factory) as session:
                result = session.execute(delete(Message).where(Message.id == message_id))
                return result.rowcount > 0
        except SQLAlchemyError as e:
            logger.error("❌ Failed to delete message %s: %s", message_id, e)
            raise StorageError(f"Failed to delete message {message_id}") from e
