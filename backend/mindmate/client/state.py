"""Client-side chat state: contact ordering, unread flags and the visible message list.

Pure and synchronous so the same rules apply whatever drives it. Messages are
kept in their wire shape (dicts); optimistic ones carry a ``local-<n>`` id and
``"local": True`` and are never reconciled with the echo that follows.
"""

import itertools
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from mindmate.models.account import ParticipantKind

ASSISTANT_CONTACT_ID = "ai"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class ContactSummary:
    id: str
    name: str = ""
    email: str = ""
    role: str = ParticipantKind.USER.value
    photo: str | None = None
    has_unread: bool = False
    last_message_time: str | None = None

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "ContactSummary":
        return cls(
            id=str(data["id"]),
            name=data.get("name") or "",
            email=data.get("email") or "",
            role=(data.get("role") or ParticipantKind.USER.value).lower(),
            photo=data.get("photo"),
        )

    @property
    def kind(self) -> ParticipantKind:
        return ParticipantKind.parse(self.role)


def assistant_contact() -> ContactSummary:
    return ContactSummary(id=ASSISTANT_CONTACT_ID, name="MindMate AI", role=ParticipantKind.AI.value)


class ChatState:
    def __init__(self, self_id: str) -> None:
        self.self_id = str(self_id)
        self.contacts: list[ContactSummary] = []
        self.active: ContactSummary | None = None
        self.messages: list[dict[str, Any]] = []
        self.assistant_messages: list[dict[str, Any]] = []
        self._local_ids = itertools.count(1)

    def set_contacts(self, contacts: list[ContactSummary]) -> None:
        self.contacts = list(contacts)

    def contact(self, contact_id: str) -> ContactSummary | None:
        for c in self.contacts:
            if c.id == contact_id:
                return c
        return None

    def select(self, contact: ContactSummary) -> None:
        """Open a conversation: clear its unread flag and empty the list until history arrives."""
        self.active = contact
        self.messages = []
        known = self.contact(contact.id)
        if known is not None:
            known.has_unread = False

    def load_history(self, contact_id: str, records: list[dict[str, Any]]) -> bool:
        """Replace the visible list with fetched history.

        Ignored when the user has switched away while the fetch was in flight.
        """
        if self.active is None or self.active.id != contact_id:
            return False
        self.messages = list(records)
        return True

    def receive(self, record: dict[str, Any]) -> bool:
        """Apply an inbound receive_message. Returns True when it was appended."""
        sender = str(record.get("sender") or "")
        if not sender or sender == self.self_id:
            return False

        appended = False
        if self.active is not None and self.active.id == sender:
            self.messages.append(record)
            appended = True

        self._promote(sender, has_unread=True, when=record.get("createdAt") or _now_iso())
        return appended

    def add_optimistic(self, text: str) -> dict[str, Any]:
        """Append the local echo of a message the user just submitted."""
        if self.active is None:
            raise ValueError("No conversation is open")
        now = _now_iso()
        record = {
            "id": f"local-{next(self._local_ids)}",
            "sender": self.self_id,
            "receiver": self.active.id,
            "receiverType": self.active.role,
            "message": text,
            "createdAt": now,
            "local": True,
        }
        self.messages.append(record)
        self._promote(self.active.id, has_unread=False, when=now)
        return record

    def add_assistant_turn(self, role: str, content: str) -> dict[str, Any]:
        turn = {"role": role, "message": content, "createdAt": _now_iso()}
        self.assistant_messages.append(turn)
        return turn

    def _promote(self, contact_id: str, has_unread: bool, when: str) -> None:
        for idx, c in enumerate(self.contacts):
            if c.id == contact_id:
                c.has_unread = has_unread
                c.last_message_time = when
                self.contacts.insert(0, self.contacts.pop(idx))
                return
