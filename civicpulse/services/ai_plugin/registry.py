"""
AI Client Registry.

Builds the AI client from configuration. Called once at application start-up;
the result is stored on app.state and injected into the analyzers.
"""

from civicpulse.services.ai_plugin.base import AIClient
from civicpulse.services.ai_plugin.groq_provider import GroqAIClient
from civicpulse.core.settings import Settings
from typing import Optional
import logging

logger = logging.getLogger(__name__)


def build_ai_client(settings: Settings) -> Optional[AIClient]:
    """
    Construct the configured AI client.

    Returns:
        An enabled client, or None when AI is disabled or no key is set
        (analyzers then use their fallbacks directly)
    """
    if not settings.AI_ENABLED:
        logger.info("AI is disabled globally (AI_ENABLED=false), analyzers will use fallbacks")
        return None

    client = GroqAIClient(
        api_key=settings.GROQ_API_KEY,
        base_url=settings.GROQ_API_BASE_URL,
        text_model=settings.GROQ_TEXT_MODEL,
        vision_model=settings.GROQ_VISION_MODEL,
        timeout_seconds=settings.AI_TIMEOUT_SECONDS,
    )
    if not client.is_enabled():
        logger.warning("GROQ_API_KEY not configured, analyzers will use fallbacks")
        return None

    logger.info(f"AI client registered: {client.get_model_info()}")
    return client
