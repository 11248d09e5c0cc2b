"""
Gemini Embeddings Module - Google GenAI embeddings API.
=======================================================

Embeds course document text with Google's Gemini API through the async
client of the google-genai SDK. Requires a GEMINI_API_KEY.

SDK failures are translated into the embedding error taxonomy so callers
can tell rate limits apart from permanent failures.
"""

from typing import Any, Optional

from course_advisor.indexing.embeddings_base import (
    EmbeddingError,
    EmbeddingProvider,
    EmbeddingRateLimitError,
)
from course_advisor.shared.config import get_settings
from course_advisor.shared.logging import get_logger

logger = get_logger(__name__)


# Model dimension mapping
GEMINI_MODEL_DIMENSIONS = {
    "text-embedding-004": 768,
    "embedding-001": 768,
}

_RATE_LIMIT_MARKERS = ("RESOURCE_EXHAUSTED", "429", "rate limit", "quota")


def is_rate_limit_error(exc: BaseException) -> bool:
    """Whether an SDK exception is the provider's rate-limit signal."""
    if getattr(exc, "code", None) == 429:
        return True
    status = str(getattr(exc, "status", "") or "")
    if status == "RESOURCE_EXHAUSTED":
        return True
    message = str(exc).lower()
    return any(marker.lower() in message for marker in _RATE_LIMIT_MARKERS)


class GeminiEmbeddingProvider(EmbeddingProvider):
    """
    Gemini embedding provider using the Google GenAI SDK.

    Example:
        >>> provider = GeminiEmbeddingProvider()
        >>> vectors = await provider.embed_batch(["Algebra I (100001)"])
        >>> print(len(vectors[0]))  # 768
    """

    def __init__(
        self,
        model_name: Optional[str] = None,
        api_key: Optional[str] = None,
        task_type: Optional[str] = None,
    ):
        """
        Initialize the Gemini provider.

        Args:
            model_name: Embedding model name
            api_key: Gemini API key (defaults to GEMINI_API_KEY env var)
            task_type: Task type for embeddings
        """
        settings = get_settings()
        gemini_config = settings.embeddings.gemini

        self._model_name = model_name or gemini_config.model_name
        self._api_key = api_key or settings.gemini_api_key
        self._task_type = task_type or gemini_config.task_type

        self._dimensions = GEMINI_MODEL_DIMENSIONS.get(
            self._model_name,
            gemini_config.dimensions,
        )

        if not self._api_key:
            raise ValueError(
                "Gemini API key is required. Set GEMINI_API_KEY environment variable "
                "or pass api_key parameter."
            )

        # Initialize client lazily
        self._client = None

        logger.debug(
            f"Gemini provider configured: model={self._model_name}, "
            f"task_type={self._task_type}"
        )

    @property
    def provider_name(self) -> str:
        return "gemini"

    @property
    def model_name(self) -> str:
        return self._model_name

    @property
    def dimensions(self) -> int:
        return self._dimensions

    @property
    def client(self):
        """Lazy load and return the Gemini client."""
        if self._client is None:
            from google import genai

            self._client = genai.Client(api_key=self._api_key)
            logger.info(f"Gemini client initialized for model: {self._model_name}")
        return self._client

    async def embed_batch(
        self, texts: list[str], task_type: Optional[str] = None
    ) -> list[list[float]]:
        """
        Embed a batch of texts with one API request.

        Args:
            texts: Texts to embed
            task_type: Overrides the configured document task type, e.g.
                RETRIEVAL_QUERY for search queries

        Returns:
            One embedding vector per text
        """
        if not texts:
            return []

        try:
            response = await self.client.aio.models.embed_content(
                model=self._model_name,
                contents=texts,
                config={"task_type": task_type or self._task_type},
            )
        except Exception as e:
            raise self._translate_error(e) from e

        embeddings = response.embeddings or []
        if len(embeddings) != len(texts):
            raise EmbeddingError(
                f"Gemini returned {len(embeddings)} embeddings for {len(texts)} texts"
            )

        return [list(embedding.values or []) for embedding in embeddings]

    def _translate_error(self, exc: Exception) -> EmbeddingError:
        """Map an SDK exception onto the embedding error taxonomy."""
        if is_rate_limit_error(exc):
            return EmbeddingRateLimitError(f"Gemini rate limit: {exc}")
        return EmbeddingError(f"Gemini embedding failed: {exc}")

    def get_info(self) -> dict[str, Any]:
        info = super().get_info()
        info["task_type"] = self._task_type
        info["api_key_set"] = bool(self._api_key)
        return info
