"""Relay core: validate, persist and fan out one send_message event.

A send moves RECEIVED -> VALIDATED -> PERSISTED -> DELIVERED, or ends in
REJECTED. Rejections are logged and dropped; the sender is never told.
Delivery goes to the receiver's channel and the sender's own channel, at
most once per channel, with no queueing for absent subscribers.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from sqlmodel import Session

from mindmate.core.database import engine
from mindmate.core.errors import PersistenceFailure, ValidationFailure
from mindmate.models.message import Message, message_payload
from mindmate.services import message_store
from mindmate.services.relay.channels import ChannelRegistry

logger = logging.getLogger(__name__)

SEND_MESSAGE = "send_message"
RECEIVE_MESSAGE = "receive_message"
CONNECTED = "connected"


class SendState(str, Enum):
    RECEIVED = "received"
    VALIDATED = "validated"
    PERSISTED = "persisted"
    DELIVERED = "delivered"
    REJECTED = "rejected"


@dataclass
class SendOutcome:
    state: SendState
    message: Message | None = None
    reason: str = ""
    delivered_to: int = 0
    # Last stage passed before the terminal state
    reached: SendState = SendState.RECEIVED


def _persist(sender: str, receiver: str, receiver_type: Any, body: str) -> Message:
    with Session(engine) as session:
        return message_store.create_message(session, sender, receiver, receiver_type, body)


class RelayCore:
    def __init__(self, registry: ChannelRegistry) -> None:
        self.registry = registry

    async def dispatch(self, identity: str, frame: Any) -> SendOutcome | None:
        """Route one decoded client frame. Unknown events are ignored."""
        if not isinstance(frame, dict):
            logger.debug(f"Ignoring non-object frame from {identity}")
            return None
        event = frame.get("event")
        if event == SEND_MESSAGE:
            return await self.send_message(identity, frame.get("data"))
        logger.debug(f"Ignoring unknown event {event!r} from {identity}")
        return None

    async def send_message(self, sender: str, payload: Any) -> SendOutcome:
        if not isinstance(payload, dict):
            return self._reject(sender, "payload is not an object")

        receiver = payload.get("receiver")
        body = payload.get("message")
        if not receiver or not isinstance(body, str) or not body.strip():
            return self._reject(sender, "missing receiver or empty message")

        try:
            receiver, kind, body = message_store.validate_send(receiver, payload.get("receiverType"), body)
        except ValidationFailure as e:
            return self._reject(sender, str(e))

        try:
            msg = await asyncio.to_thread(_persist, sender, receiver, kind.value, body)
        except ValidationFailure as e:
            return self._reject(sender, str(e), SendState.VALIDATED)
        except PersistenceFailure as e:
            logger.error(f"send_message from {sender} not persisted: {e}")
            return SendOutcome(SendState.REJECTED, reason=str(e), reached=SendState.VALIDATED)

        record = message_payload(msg)
        delivered = await self.registry.emit(str(receiver), RECEIVE_MESSAGE, record)
        if sender != receiver:
            delivered += await self.registry.emit(str(sender), RECEIVE_MESSAGE, record)
        if delivered == 0:
            logger.debug(f"Message {msg.id} persisted with no live subscribers")
        return SendOutcome(
            SendState.DELIVERED, message=msg, delivered_to=delivered, reached=SendState.PERSISTED
        )

    def _reject(
        self, sender: str, reason: str, reached: SendState = SendState.RECEIVED
    ) -> SendOutcome:
        logger.debug(f"Rejected send_message from {sender}: {reason}")
        return SendOutcome(SendState.REJECTED, reason=reason, reached=reached)
