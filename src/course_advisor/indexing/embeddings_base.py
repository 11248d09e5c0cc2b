"""
Embeddings Base Module - Abstract interface for embedding providers.
===================================================================

Defines the provider boundary for embedding operations:
- EmbeddingProvider: async "given texts, return vectors" capability
- Error taxonomy that separates rate limits and timeouts from other failures
- Provider factory driven by configuration
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from course_advisor.shared.config import get_settings
from course_advisor.shared.logging import get_logger

logger = get_logger(__name__)

# Task type for search queries; documents use the provider default
QUERY_TASK_TYPE = "RETRIEVAL_QUERY"


# ─────────────────────────────────────────────────────────────────────────────
# Errors
# ─────────────────────────────────────────────────────────────────────────────


class EmbeddingError(RuntimeError):
    """An embedding request failed and should not be retried."""


class EmbeddingRateLimitError(EmbeddingError):
    """The provider signalled that the request rate is too high."""


class EmbeddingTimeoutError(EmbeddingError):
    """An embedding request exceeded its timeout."""


# ─────────────────────────────────────────────────────────────────────────────
# Abstract Base Class
# ─────────────────────────────────────────────────────────────────────────────


class EmbeddingProvider(ABC):
    """
    Abstract base class for embedding providers.

    Implementations must provide:
    - embed_batch(): Embed a list of texts in one request

    Properties:
    - provider_name: Provider identifier
    - model_name: Name of the embedding model
    - dimensions: Embedding vector dimensions

    ``embed_batch`` returns exactly one vector per input, in input order, or
    raises an ``EmbeddingError`` subclass.
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Get the provider name identifier."""
        pass

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Get the model name being used."""
        pass

    @property
    @abstractmethod
    def dimensions(self) -> int:
        """Get the embedding vector dimensions."""
        pass

    @abstractmethod
    async def embed_batch(
        self, texts: list[str], task_type: Optional[str] = None
    ) -> list[list[float]]:
        """
        Embed multiple texts in one provider request.

        Args:
            texts: List of texts to embed
            task_type: Retrieval task type; None means document embedding.
                Providers without task types ignore it.

        Returns:
            List of embedding vectors, one per text

        Raises:
            EmbeddingRateLimitError: Provider rate limit hit
            EmbeddingError: Any other provider failure
        """
        pass

    def get_info(self) -> dict[str, Any]:
        """Get provider information."""
        return {
            "provider": self.provider_name,
            "model": self.model_name,
            "dimensions": self.dimensions,
        }


# ─────────────────────────────────────────────────────────────────────────────
# Provider Factory
# ─────────────────────────────────────────────────────────────────────────────


def get_embedding_provider(
    provider_name: Optional[str] = None,
    api_key: Optional[str] = None,
) -> EmbeddingProvider:
    """
    Build an embedding provider instance.

    Args:
        provider_name: Provider name. If None, uses config.
        api_key: Optional API key override

    Returns:
        EmbeddingProvider instance

    Raises:
        ValueError: If provider name is invalid or the provider is misconfigured

    Example:
        >>> provider = get_embedding_provider()  # Uses config default
        >>> vectors = await provider.embed_batch(["text1", "text2"])
    """
    if provider_name is None:
        provider_name = get_settings().get_effective_embedding_provider()

    provider_name = provider_name.lower().strip()

    provider: EmbeddingProvider

    if provider_name == "gemini":
        from course_advisor.indexing.embeddings_gemini import GeminiEmbeddingProvider
        provider = GeminiEmbeddingProvider(api_key=api_key)

    else:
        raise ValueError(
            f"Unknown embedding provider: {provider_name}. "
            f"Valid options: gemini"
        )

    logger.info(
        f"Initialized embedding provider: {provider.provider_name} "
        f"(model={provider.model_name}, dims={provider.dimensions})"
    )

    return provider
