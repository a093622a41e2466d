# app/api/v1/dependencies.py
"""
FastAPI dependencies for the chat API.
Tests swap any of these through app.dependency_overrides.
"""

from fastapi import Depends
from typing import Optional
import logging

from app.conversation.context_manager import ContextManager, get_context_manager
from app.conversation.llm_gateway import TextGenerator, get_text_generator
from app.infrastructure.cache import CacheAdapter, get_cache_adapter
from app.core.config import settings
from services.conversation_service import ConversationService

logger = logging.getLogger(__name__)

_cache_instance: Optional[CacheAdapter] = None


def get_cache() -> CacheAdapter:
    """Shared cache adapter (Redis or in-memory, per settings.USE_REDIS)"""
    global _cache_instance

    if _cache_instance is None:
        _cache_instance = get_cache_adapter(use_redis=settings.USE_REDIS)
        logger.info(f"✓ Session cache: {type(_cache_instance).__name__}")

    return _cache_instance


def get_session_store(cache: CacheAdapter = Depends(get_cache)) -> ContextManager:
    return get_context_manager(cache=cache)


def get_generator() -> TextGenerator:
    return get_text_generator()


def get_conversation_service(
    context_manager: ContextManager = Depends(get_session_store),
    text_generator: TextGenerator = Depends(get_generator)
) -> ConversationService:
    """
    Dependency factory for ConversationService.
    Uses FastAPI's dependency injection for clean testing.
    """
    return ConversationService(
        context_manager=context_manager,
        text_generator=text_generator
    )
