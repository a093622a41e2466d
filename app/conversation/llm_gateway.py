# app/conversation/llm_gateway.py
"""
Text Generator Gateway
Single entry point for obtaining the configured text generator.
Providers (Gemini REST, OpenAI SDK) share the `generate(prompt) -> str`
contract; the orchestrator depends only on that.
"""

import logging
from typing import Optional, Protocol, runtime_checkable

from app.core.config import settings

logger = logging.getLogger(__name__)


@runtime_checkable
class TextGenerator(Protocol):
    """Anything that turns an instruction into raw text"""

    async def generate(self, prompt: str) -> str:
        ...


def build_text_generator(provider: Optional[str] = None) -> TextGenerator:
    """
    Build a text generator for the given provider.

    Args:
        provider: "gemini" or "openai" (defaults to settings.LLM_PROVIDER)

    Returns:
        TextGenerator instance
    """
    provider = provider or settings.LLM_PROVIDER

    if provider == "gemini":
        from app.conversation.ai_adapter import GeminiAdapter
        generator = GeminiAdapter.from_settings()
    elif provider == "openai":
        from services.llm_service import OpenAILLMService
        generator = OpenAILLMService()
    else:
        raise ValueError(f"Unknown LLM provider: {provider}")

    logger.info(f"✓ Text generator ready: provider={provider}")
    return generator


# ============================================================
# FACTORY FUNCTION
# ============================================================

_generator_instance: Optional[TextGenerator] = None


def get_text_generator() -> TextGenerator:
    """
    Get singleton text generator instance.

    Returns:
        TextGenerator instance
    """
    global _generator_instance

    if _generator_instance is None:
        _generator_instance = build_text_generator()

    return _generator_instance


async def close_text_generator():
    global _generator_instance

    if _generator_instance is not None:
        close = getattr(_generator_instance, "close", None)
        if close is not None:
            await close()
        _generator_instance = None
        logger.info("✓ Text generator closed")


# ============================================================
# EXPORTS
# ============================================================

__all__ = [
    "TextGenerator",
    "build_text_generator",
    "get_text_generator",
    "close_text_generator",
]
