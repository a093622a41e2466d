# services/llm_service.py

import asyncio
import logging
from typing import Optional

import openai
from openai import OpenAI
from app.core.config import settings
from services.exceptions import TextGenerationError, TextGenerationTimeoutError

logger = logging.getLogger(__name__)


class OpenAILLMService:
    """
    OpenAI text generator (Responses API).
    Implements the `generate(prompt) -> str` contract; JSON is enforced
    through the instruction, the caller validates the payload.
    """

    def __init__(self, client: Optional[OpenAI] = None) -> None:
        self.client = client or OpenAI(api_key=settings.OPENAI_API_KEY)
        self.model = settings.OPENAI_MODEL
        self.max_tokens = settings.OPENAI_MAX_TOKENS
        self.temperature = settings.OPENAI_TEMPERATURE
        self.attempts = max(1, settings.OPENAI_MAX_RETRIES)

    async def _retry(self, func, attempts: int = 3, delay: float = 0.5):
        """Retry wrapper for async calls; only API/transport errors are retried."""
        for attempt in range(attempts):
            try:
                return await func()
            except openai.APIError as e:
                if attempt == attempts - 1:
                    logger.error(f"[OpenAI-LLM] Failed after retries: {e}", exc_info=True)
                    if isinstance(e, openai.APITimeoutError):
                        raise TextGenerationTimeoutError(f"OpenAI timed out: {e}") from e
                    raise TextGenerationError(f"OpenAI call failed: {e}") from e

                sleep = delay * (2 ** attempt)
                logger.warning(f"[OpenAI-LLM] Retry {attempt+1}/{attempts}, waiting {sleep:.1f}s")
                await asyncio.sleep(sleep)

    async def _call_openai(self, messages) -> str:
        """
        Use Responses API. The SDK client is synchronous -> run in thread.
        """

        def sync_call():
            response = self.client.responses.create(
                model=self.model,
                input=messages,
                temperature=self.temperature,
                max_output_tokens=self.max_tokens
            )
            return response.output_text  # always plain text

        return await asyncio.to_thread(sync_call)

    async def generate(self, prompt: str) -> str:
        """
        Generate raw text for an instruction.

        Raises:
            TextGenerationError: If all retries fail
        """
        messages = [
            {
                "role": "system",
                "content": "STRICT INSTRUCTION: Respond ONLY with valid JSON. No text outside JSON."
            },
            {"role": "user", "content": prompt.strip()},
        ]

        raw_text = await self._retry(lambda: self._call_openai(messages), attempts=self.attempts)
        logger.debug(f"[OpenAI-LLM] Response received ({len(raw_text or '')} chars)")
        return (raw_text or "").strip()

    async def close(self):
        """The synchronous SDK client keeps its own pool"""
        await asyncio.to_thread(self.client.close)
