"""REST directory and message history, the pull-side complement of the relay."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlmodel import Session

from mindmate.core.database import get_session
from mindmate.core.errors import PersistenceFailure, UnknownIdentity, ValidationFailure
from mindmate.core.security import get_current_account
from mindmate.models.account import Account
from mindmate.models.message import message_payload
from mindmate.services import message_store

router = APIRouter()
logger = logging.getLogger(__name__)


class SendRequest(BaseModel):
    # Optional so a missing field is a 400 from validate_send, not a 422
    receiver_id: str | None = Field(default=None, alias="receiverId")
    receiver_type: str | None = Field(default=None, alias="receiverType")
    message: str | None = None


def _server_error(context: str, error: Exception) -> HTTPException:
    logger.error(f"Error {context}: {error}")
    return HTTPException(status_code=500, detail=f"Server error {context}")


@router.get("/")
async def list_counterparts(
    account: Account = Depends(get_current_account), session: Session = Depends(get_session)
):
    try:
        accounts = message_store.list_counterparts(session, account.id)
    except PersistenceFailure as e:
        raise _server_error("listing contacts", e)
    return [
        {
            "id": a.id,
            "name": a.name,
            "email": a.email,
            "role": a.role,
            "photo": a.photo,
        }
        for a in accounts
    ]


# Declared before /messages/{counterpart_id} so "count" is not taken for an id
@router.get("/messages/count")
async def sent_message_count(
    account: Account = Depends(get_current_account), session: Session = Depends(get_session)
):
    try:
        return {"count": message_store.count_sent(session, account.id)}
    except PersistenceFailure as e:
        raise _server_error("counting messages", e)


@router.get("/messages/{counterpart_id}")
async def get_history(
    counterpart_id: str,
    account: Account = Depends(get_current_account),
    session: Session = Depends(get_session),
):
    try:
        messages = message_store.conversation_history(session, account.id, counterpart_id)
    except PersistenceFailure as e:
        raise _server_error("loading messages", e)
    return [message_payload(m) for m in messages]


@router.post("/send")
async def send_message(
    body: SendRequest,
    account: Account = Depends(get_current_account),
    session: Session = Depends(get_session),
):
    try:
        msg = message_store.create_message(
            session, account.id, body.receiver_id, body.receiver_type, body.message
        )
    except UnknownIdentity as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValidationFailure as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PersistenceFailure as e:
        raise _server_error("sending message", e)
    return message_payload(msg)


@router.post("/update-profile")
async def update_profile(
    account: Account = Depends(get_current_account), session: Session = Depends(get_session)
):
    """Gamification side call made after each send: +1 point, +1 chat message."""
    try:
        account = message_store.record_message_activity(session, account)
    except PersistenceFailure as e:
        raise _server_error("updating profile", e)
    return {"points": account.points, "chatMessages": account.chat_messages}


@router.get("/interactions")
async def interactions(
    account: Account = Depends(get_current_account), session: Session = Depends(get_session)
):
    today = message_store.local_midnight()
    try:
        return {
            "totalInteractions": len(message_store.interaction_partners(session, account.id)),
            "todayInteractions": len(message_store.interaction_partners(session, account.id, since=today)),
            "totalMessages": message_store.count_messages(session, account.id),
            "todayMessages": message_store.count_messages(session, account.id, since=today),
        }
    except PersistenceFailure as e:
        raise _server_error("counting interactions", e)


@router.get("/interactions/unique")
async def unique_interactions(
    account: Account = Depends(get_current_account), session: Session = Depends(get_session)
):
    try:
        return {"count": len(message_store.interaction_partners(session, account.id))}
    except PersistenceFailure as e:
        raise _server_error("fetching interactions", e)


@router.get("/interactions/today")
async def interactions_today(
    account: Account = Depends(get_current_account), session: Session = Depends(get_session)
):
    since = message_store.local_midnight()
    try:
        return {"count": len(message_store.interaction_partners(session, account.id, since=since))}
    except PersistenceFailure as e:
        raise _server_error("fetching today's interactions", e)


@router.get("/interactions/today/users")
async def interactions_today_users(
    account: Account = Depends(get_current_account), session: Session = Depends(get_session)
):
    since = message_store.local_midnight()
    try:
        return {"userIds": message_store.interaction_partners(session, account.id, since=since)}
    except PersistenceFailure as e:
        raise _server_error("fetching today's chat partners", e)
