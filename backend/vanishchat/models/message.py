# vanishchat/models/message.py

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String, Text

from vanishchat.models.base import Base


def new_message_id() -> str:
    return uuid.uuid4().hex


class Message(Base):
    __tablename__ = "messages"

    # Opaque id handed to clients in new-message / message-expired events
    id = Column(String(32), primary_key=True, default=new_message_id)

    # Sender identity as handed over by the auth layer
    username = Column(String(100), nullable=False)

    # "iv_b64:ciphertext_b64" envelope produced by core.crypto
    ciphertext = Column(Text, nullable=False)

    # Per-message key, stored next to its ciphertext (isolation, not secrecy at rest)
    encryption_key = Column(String(64), nullable=False)

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
        default=lambda: datetime.now(timezone.utc),
    )

    # Seconds; fixed at creation
    lifetime = Column(Integer, nullable=False)
