# app/conversation/ai_adapter.py
"""
AI Adapter for Gemini (REST generateContent)
Sends one instruction, returns the raw response text.
Retries transport failures with exponential backoff; schema checks
happen downstream in the response parser.
"""

import asyncio
import logging
import random
from typing import Optional
import httpx

from app.core.config import settings
from services.exceptions import TextGenerationError, TextGenerationTimeoutError

# Setup logging
logger = logging.getLogger(__name__)


class GeminiAdapter:
    """
    Gemini text generator for the travel-advisor conversation.
    Implements the `generate(prompt) -> str` contract.
    """

    # Gemini API configuration
    GEMINI_API_BASE = "https://generativelanguage.googleapis.com/v1beta"

    def __init__(
        self,
        api_key: str,
        model_name: str = "gemini-2.0-flash",
        timeout: float = 60.0,
        max_retries: int = 4,
        base_delay: float = 0.5,
        temperature: float = 0.2,
        max_tokens: int = 2048,
        client: Optional[httpx.AsyncClient] = None
    ):
        """
        Initialize Gemini adapter.

        Args:
            api_key: Gemini API key from environment
            model_name: Gemini model identifier
            timeout: Request timeout in seconds
            max_retries: Maximum attempts per call
            base_delay: Base delay for exponential backoff
            temperature: Sampling temperature
            max_tokens: Maximum response tokens
            client: Optional preconfigured httpx client
        """
        if not api_key:
            raise TextGenerationError("Gemini API key is required")

        self.api_key = api_key
        self.model_name = model_name
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.base_delay = base_delay
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.client = client or httpx.AsyncClient(timeout=timeout)

        # Construct API URL
        self.api_url = f"{self.GEMINI_API_BASE}/models/{self.model_name}:generateContent"

        logger.info(f"✓ Initialized GeminiAdapter with model={model_name}")

    @classmethod
    def from_settings(cls) -> "GeminiAdapter":
        return cls(
            api_key=settings.GEMINI_API_KEY,
            model_name=settings.GEMINI_MODEL,
            timeout=settings.GEMINI_TIMEOUT,
            max_retries=settings.GEMINI_MAX_RETRIES,
            base_delay=settings.GEMINI_BASE_DELAY,
            temperature=settings.GEMINI_TEMPERATURE,
            max_tokens=settings.GEMINI_MAX_TOKENS
        )

    # ============================================================
    # PUBLIC API
    # ============================================================

    async def generate(self, prompt: str) -> str:
        """
        Generate raw text for an instruction.

        Raises:
            TextGenerationError: If all retries fail or the API envelope is malformed
        """
        return await self._call_gemini(
            prompt=prompt,
            temperature=self.temperature,
            max_tokens=self.max_tokens
        )

    # ============================================================
    # GEMINI API CALL IMPLEMENTATION
    # ============================================================

    async def _call_gemini(
        self,
        prompt: str,
        temperature: float = 0.2,
        max_tokens: int = 2048
    ) -> str:
        """
        Call Gemini API with retry logic and exponential backoff.

        Args:
            prompt: Formatted prompt
            temperature: Sampling temperature (0.0-1.0)
            max_tokens: Maximum response tokens

        Returns:
            Raw response text
        """
        payload = {
            "contents": [{
                "parts": [{
                    "text": prompt
                }]
            }],
            "generationConfig": {
                "temperature": temperature,
                "topK": settings.GEMINI_TOP_K,
                "topP": settings.GEMINI_TOP_P,
                "maxOutputTokens": max_tokens,
                "responseMimeType": "application/json"
            }
        }

        headers = {
            "Content-Type": "application/json"
        }

        last_exception: Optional[Exception] = None

        # Retry loop with exponential backoff
        for attempt in range(self.max_retries):
            try:
                logger.debug(f"Gemini API call attempt {attempt + 1}/{self.max_retries}")

                response = await self.client.post(
                    self.api_url,
                    params={"key": self.api_key},
                    json=payload,
                    headers=headers
                )

                if response.status_code != 200:
                    logger.error(f"Gemini API HTTP error {response.status_code}: {response.text[:300]}")
                    raise httpx.HTTPStatusError(
                        f"HTTP {response.status_code}",
                        request=response.request,
                        response=response
                    )

            except httpx.HTTPError as e:
                last_exception = e
                logger.warning(f"Gemini API error on attempt {attempt + 1}: {e}")

                if attempt < self.max_retries - 1:
                    delay = self.base_delay * (2 ** attempt) + random.uniform(0, 0.1)
                    logger.info(f"Retrying after {delay:.2f}s...")
                    await asyncio.sleep(delay)
                continue

            # Extract text from nested structure
            try:
                data = response.json()
                text = data["candidates"][0]["content"]["parts"][0]["text"]
            except (ValueError, KeyError, IndexError, TypeError) as e:
                logger.error(f"Unexpected Gemini response format: {response.text[:300]}")
                raise TextGenerationError(f"Invalid Gemini API response structure: {e}") from e

            logger.debug(f"✓ Gemini response received ({len(text)} chars)")
            return text.strip()

        logger.error(f"All {self.max_retries} Gemini attempts failed")
        if isinstance(last_exception, httpx.TimeoutException):
            raise TextGenerationTimeoutError(
                f"Gemini API timed out after {self.max_retries} attempts"
            ) from last_exception
        raise TextGenerationError(
            f"Gemini API failed after {self.max_retries} attempts: {last_exception}"
        ) from last_exception

    async def close(self):
        """Close HTTP client and cleanup resources"""
        await self.client.aclose()
