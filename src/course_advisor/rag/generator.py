"""
Generator Module - Language model access for structured extraction.
===================================================================

Provides the "given a prompt, return generated text" capability:
- LanguageModel: abstract async interface so callers can swap providers
- GeminiLanguageModel: Google GenAI implementation with a bounded timeout
  and tenacity retries on rate limits and timeouts
- GenerationError: raised when generation ultimately fails
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Optional

from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from course_advisor.indexing.embeddings_gemini import is_rate_limit_error
from course_advisor.shared.config import get_settings
from course_advisor.shared.logging import get_logger

logger = get_logger(__name__)


class GenerationError(RuntimeError):
    """Text generation failed."""


class TransientGenerationError(GenerationError):
    """Rate limit or timeout; worth retrying."""


# ─────────────────────────────────────────────────────────────────────────────
# Abstract Interface
# ─────────────────────────────────────────────────────────────────────────────


class LanguageModel(ABC):
    """Async text generation capability."""

    @property
    @abstractmethod
    def model_name(self) -> str:
        pass

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> str:
        """
        Generate text for prompt.

        Raises:
            GenerationError: If the provider call fails
        """


# ─────────────────────────────────────────────────────────────────────────────
# Gemini Implementation
# ─────────────────────────────────────────────────────────────────────────────


class GeminiLanguageModel(LanguageModel):
    """
    Gemini text generation via the google-genai async client.

    Example:
        >>> model = GeminiLanguageModel()
        >>> text = await model.generate("Parse this transcript ...")
    """

    def __init__(
        self,
        model_name: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        api_key: Optional[str] = None,
        request_timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
    ):
        """
        Initialize the model client settings.

        Args:
            model_name: Gemini model name (default from config)
            temperature: Generation temperature (default from config)
            max_tokens: Maximum tokens to generate (default from config)
            api_key: Gemini API key (default from env)
            request_timeout: Seconds before a call is abandoned
            max_retries: Attempts for transient failures
        """
        settings = get_settings()
        gen_config = settings.generation

        self._model_name = model_name or gen_config.model_name
        self.temperature = temperature if temperature is not None else gen_config.temperature
        self.max_tokens = max_tokens or gen_config.max_output_tokens
        self.api_key = api_key or settings.gemini_api_key
        self.request_timeout = request_timeout or gen_config.request_timeout
        self.max_retries = max_retries or settings.embeddings.max_retries
        self._retry_min_wait = settings.embeddings.retry_min_wait
        self._retry_max_wait = settings.embeddings.retry_max_wait

        if not self.api_key:
            raise ValueError(
                "Gemini API key not found. Set GEMINI_API_KEY environment variable."
            )

        self._client = None

        logger.info(
            f"Language model initialized: model={self._model_name}, "
            f"temp={self.temperature}, max_tokens={self.max_tokens}"
        )

    @property
    def model_name(self) -> str:
        return self._model_name

    @property
    def client(self):
        """Lazy-load Gemini client."""
        if self._client is None:
            from google import genai

            self._client = genai.Client(api_key=self.api_key)
            logger.debug("Gemini client initialized")
        return self._client

    async def generate(
        self,
        prompt: str,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> str:
        config = {
            "temperature": temperature if temperature is not None else self.temperature,
            "max_output_tokens": max_tokens or self.max_tokens,
        }

        text = ""
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.max_retries),
            wait=wait_exponential(multiplier=1, min=self._retry_min_wait, max=self._retry_max_wait),
            retry=retry_if_exception_type(TransientGenerationError),
            reraise=True,
        ):
            with attempt:
                text = await self._generate_once(prompt, config)
        return text

    async def _generate_once(self, prompt: str, config: dict) -> str:
        try:
            response = await asyncio.wait_for(
                self.client.aio.models.generate_content(
                    model=self._model_name,
                    contents=prompt,
                    config=config,
                ),
                timeout=self.request_timeout,
            )
        except asyncio.TimeoutError as e:
            raise TransientGenerationError(
                f"Generation timed out after {self.request_timeout}s"
            ) from e
        except Exception as e:
            if is_rate_limit_error(e):
                raise TransientGenerationError(f"Gemini rate limit: {e}") from e
            raise GenerationError(f"Gemini generation failed: {e}") from e

        return response.text or ""
