"""Google Gemini assistant provider."""

from google import genai

from mindmate.core.config import settings
from mindmate.services.llm.base import AssistantTurn, BaseAssistantProvider


class GeminiAssistant(BaseAssistantProvider):
    def __init__(self):
        self.client = genai.Client(api_key=settings.gemini_api_key)
        self.model = settings.assistant_model

    async def reply(self, turns: list[AssistantTurn]) -> str:
        # Gemini calls the assistant side "model"
        contents = [
            {"role": "model" if t.role == "assistant" else "user", "parts": [{"text": t.content}]}
            for t in turns
        ]
        response = await self.client.aio.models.generate_content(
            model=self.model,
            contents=contents,
        )
        return response.text or ""
