# vanishchat/schemas/events.py

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class ChatEvent(BaseModel):
    """Inbound ``send`` event; the text itself is checked by the message service."""

    type: Literal["chat"]
    text: str


class AuthEvent(BaseModel):
    type: Literal["auth"]
    username: str = Field(min_length=1, max_length=100)


class MessageView(BaseModel):
    """A decrypted, still-alive message as clients see it."""

    id: str
    username: str
    message: str
    createdAt: datetime
    lifetime: int
    expiresAt: datetime
    remaining: int


class NewMessageEvent(MessageView):
    type: Literal["new-message"] = "new-message"


class MessageExpiredEvent(BaseModel):
    type: Literal["message-expired"] = "message-expired"
    id: str


class AuthSuccessEvent(BaseModel):
    type: Literal["auth-success"] = "auth-success"
    username: str


class ErrorEvent(BaseModel):
    type: Literal["error"] = "error"
    message: str
