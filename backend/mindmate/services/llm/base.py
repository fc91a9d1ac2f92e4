"""Assistant provider interface. The chat screen's "ai" contact talks to one of these."""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass
class AssistantTurn:
    role: str  # "user" | "assistant"
    content: str


class BaseAssistantProvider(ABC):
    @abstractmethod
    async def reply(self, turns: list[AssistantTurn]) -> str:
        """Return the assistant's next message for the transcript so far."""
        ...
