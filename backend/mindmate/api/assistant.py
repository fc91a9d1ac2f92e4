"""Assistant chat: the "ai" contact is answered here and never goes through the relay."""

import logging
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from mindmate.core.security import get_current_account
from mindmate.models.account import Account
from mindmate.services.llm import get_assistant_provider
from mindmate.services.llm.base import AssistantTurn

router = APIRouter()
logger = logging.getLogger(__name__)

FALLBACK_REPLY = "I'm currently unable to process your request. Please try again later."


class TurnIn(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class AssistantRequest(BaseModel):
    messages: list[TurnIn]


@router.post("/")
async def assistant_reply(body: AssistantRequest, account: Account = Depends(get_current_account)):
    provider = get_assistant_provider()
    if provider is None:
        raise HTTPException(status_code=501, detail="Assistant not available")

    turns = [AssistantTurn(role=m.role, content=m.content) for m in body.messages]
    try:
        content = await provider.reply(turns)
    except Exception as e:
        logger.error(f"Assistant error for {account.id}: {e}")
        content = FALLBACK_REPLY

    return {"message": {"role": "assistant", "content": content}}
