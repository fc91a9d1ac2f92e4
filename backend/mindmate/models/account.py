"""Local account shadow and the participant kinds a message can be addressed to."""

import re
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlmodel import Field, SQLModel

IDENTITY_PATTERN = re.compile(r"[0-9a-f]{32}")


def new_identity() -> str:
    return uuid.uuid4().hex


def is_identity(value: object) -> bool:
    """True when value has the store's identity-key format."""
    return isinstance(value, str) and IDENTITY_PATTERN.fullmatch(value) is not None


class ParticipantKind(str, Enum):
    USER = "user"
    CARETAKER = "caretaker"
    AI = "ai"

    @classmethod
    def parse(cls, value: object) -> "ParticipantKind":
        """Case-insensitive lookup; raises ValueError outside the closed set."""
        if not isinstance(value, str):
            raise ValueError(f"Invalid participant kind: {value!r}")
        return cls(value.strip().lower())


class Account(SQLModel, table=True):
    id: str = Field(default_factory=new_identity, primary_key=True, max_length=32)
    name: str = Field(default="User")
    email: str = Field(unique=True, index=True)
    role: str = Field(default=ParticipantKind.USER.value)  # "user" | "caretaker"
    photo: Optional[str] = None
    points: int = Field(default=0)
    chat_messages: int = Field(default=0)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class Activity(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    account_id: str = Field(foreign_key="account.id", index=True)
    type: str
    title: str
    time: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
