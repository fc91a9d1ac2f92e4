"""Chat message model and its wire representation."""

from datetime import datetime, timezone
from typing import Any, Optional

from sqlmodel import Field, SQLModel


class Message(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    sender: str = Field(foreign_key="account.id", index=True)
    receiver: str = Field(foreign_key="account.id", index=True)
    receiver_type: str  # "user" | "caretaker"
    message: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), index=True)


def as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is written in UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def message_payload(msg: Message) -> dict[str, Any]:
    """The record shape pushed in receive_message and returned by the REST routes."""
    return {
        "id": msg.id,
        "sender": msg.sender,
        "receiver": msg.receiver,
        "receiverType": msg.receiver_type,
        "message": msg.message,
        "createdAt": as_utc(msg.created_at).isoformat(),
    }
