"""Assistant provider factory."""

from mindmate.core.config import settings
from mindmate.services.llm.base import BaseAssistantProvider


def get_assistant_provider() -> BaseAssistantProvider | None:
    """Return the configured provider, or None when no API key is set."""
    if not settings.gemini_api_key:
        return None
    from mindmate.services.llm.gemini import GeminiAssistant
    return GeminiAssistant()
