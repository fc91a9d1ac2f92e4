"""Message store queries shared by the relay and the directory routes.

Every function takes an open Session and raises PersistenceFailure when the
database fails, so callers only ever see the domain taxonomy.
"""

import logging
from contextlib import contextmanager
from datetime import datetime, timezone

from sqlalchemy import case, func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from mindmate.core.errors import PersistenceFailure, UnknownIdentity, ValidationFailure
from mindmate.models.account import Account, Activity, ParticipantKind, is_identity
from mindmate.models.message import Message

logger = logging.getLogger(__name__)


@contextmanager
def _storage_errors(session: Session):
    try:
        yield
    except SQLAlchemyError as e:
        session.rollback()
        raise PersistenceFailure(str(e)) from e


def local_midnight(now: datetime | None = None) -> datetime:
    """Start of the server's local calendar day, expressed in UTC."""
    local_now = (now or datetime.now(timezone.utc)).astimezone()
    midnight = local_now.replace(hour=0, minute=0, second=0, microsecond=0)
    return midnight.astimezone(timezone.utc)


def validate_send(receiver: object, receiver_type: object, body: object) -> tuple[str, ParticipantKind, str]:
    """Check a send request before it touches the store.

    Returns the receiver id, the normalized kind and the body. The body is
    kept as typed; only its trimmed form has to be non-empty.
    """
    if not receiver or not isinstance(body, str) or not body.strip():
        raise ValidationFailure("receiver and a non-empty message are required")
    if not is_identity(receiver):
        raise ValidationFailure(f"Invalid receiver id: {receiver!r}")
    try:
        kind = ParticipantKind.parse(receiver_type)
    except ValueError as e:
        raise ValidationFailure(str(e)) from e
    if kind is ParticipantKind.AI:
        raise ValidationFailure("Assistant messages are not stored")
    return str(receiver), kind, body


def create_message(
    session: Session, sender: str, receiver: object, receiver_type: object, body: object
) -> Message:
    receiver_id, kind, text = validate_send(receiver, receiver_type, body)

    with _storage_errors(session):
        for identity in (sender, receiver_id):
            if session.get(Account, identity) is None:
                raise UnknownIdentity(f"Unknown identity: {identity}")

        msg = Message(sender=sender, receiver=receiver_id, receiver_type=kind.value, message=text)
        session.add(msg)
        session.commit()
        session.refresh(msg)

    logger.debug(f"Stored message {msg.id} {sender} -> {receiver_id}")
    return msg


def conversation_history(session: Session, identity: str, counterpart: str) -> list[Message]:
    """All messages between the two identities, oldest first."""
    with _storage_errors(session):
        return list(session.exec(
            select(Message)
            .where(
                or_(
                    (Message.sender == identity) & (Message.receiver == counterpart),
                    (Message.sender == counterpart) & (Message.receiver == identity),
                )
            )
            .order_by(Message.created_at, Message.id)  # type: ignore
        ).all())


def list_counterparts(session: Session, identity: str) -> list[Account]:
    with _storage_errors(session):
        return list(session.exec(
            select(Account).where(Account.id != identity).order_by(Account.created_at)  # type: ignore
        ).all())


def _involving(identity: str, since: datetime | None):
    clause = or_(Message.sender == identity, Message.receiver == identity)
    if since is not None:
        clause = clause & (Message.created_at >= since)
    return clause


def interaction_partners(session: Session, identity: str, since: datetime | None = None) -> list[str]:
    """Distinct identities on the other side of any message involving identity."""
    other_side = case((Message.sender == identity, Message.receiver), else_=Message.sender)
    with _storage_errors(session):
        rows = session.exec(
            select(other_side).where(_involving(identity, since)).group_by(other_side)
        ).all()
    return [str(row) for row in rows]


def count_messages(session: Session, identity: str, since: datetime | None = None) -> int:
    """Raw number of messages the identity sent or received."""
    with _storage_errors(session):
        return session.exec(
            select(func.count()).select_from(Message).where(_involving(identity, since))
        ).one()


def count_sent(session: Session, identity: str) -> int:
    with _storage_errors(session):
        return session.exec(
            select(func.count()).select_from(Message).where(Message.sender == identity)
        ).one()


def record_message_activity(session: Session, account: Account) -> Account:
    """Bump the sender's chat counters and log a message_sent activity."""
    with _storage_errors(session):
        account.points += 1
        account.chat_messages += 1
        session.add(account)
        session.add(Activity(account_id=account.id, type="message_sent", title="Message sent"))
        session.commit()
        session.refresh(account)
    return account
