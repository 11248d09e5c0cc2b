"""
Embedding Generator Module - Cached, fault-tolerant batch embedding.
====================================================================

Wraps an EmbeddingProvider with:
- Cache lookups so already-embedded text never reaches the provider
- A bounded timeout on every provider call
- Rate-limit handling: split the batch in half, then exponential backoff
  (tenacity) on single items
- Partial-failure tolerance: failed texts come back as None slots instead
  of exceptions
"""

import asyncio
from typing import Optional

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from course_advisor.indexing.embedding_cache import EmbeddingCache
from course_advisor.indexing.embeddings_base import (
    EmbeddingError,
    EmbeddingProvider,
    EmbeddingRateLimitError,
    EmbeddingTimeoutError,
)
from course_advisor.shared.config import get_settings
from course_advisor.shared.logging import get_logger

logger = get_logger(__name__)


class EmbeddingGenerator:
    """
    Order-preserving ``embed(texts) -> vectors`` over a provider and cache.

    The result always has one slot per input text. A slot is None when that
    text could not be embedded; callers drop such slots.

    Example:
        >>> generator = EmbeddingGenerator(provider, cache)
        >>> vectors = await generator.embed(["Algebra I", "Biology"])
        >>> len(vectors)
        2
    """

    def __init__(
        self,
        provider: Optional[EmbeddingProvider],
        cache: Optional[EmbeddingCache] = None,
        request_timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        retry_min_wait: Optional[float] = None,
        retry_max_wait: Optional[float] = None,
    ):
        config = get_settings().embeddings

        self.provider = provider
        self.cache = cache
        self.request_timeout = (
            request_timeout if request_timeout is not None else config.request_timeout
        )
        self.max_retries = max_retries if max_retries is not None else config.max_retries
        self.retry_min_wait = (
            retry_min_wait if retry_min_wait is not None else config.retry_min_wait
        )
        self.retry_max_wait = (
            retry_max_wait if retry_max_wait is not None else config.retry_max_wait
        )

        self.provider_calls = 0

    # ─────────────────────────────────────────────────────────────────────────
    # Public API
    # ─────────────────────────────────────────────────────────────────────────

    async def embed(
        self, texts: list[str], task_type: Optional[str] = None
    ) -> list[Optional[list[float]]]:
        """
        Embed texts, reusing cached vectors.

        Args:
            texts: Texts to embed
            task_type: Provider task type (None for the provider default,
                which is document retrieval)

        Returns:
            One vector (or None on failure) per input text, in input order
        """
        if not texts:
            return []

        results: list[Optional[list[float]]] = [None] * len(texts)
        uncached: dict[str, list[int]] = {}

        for i, text in enumerate(texts):
            cached = self.cache.get(text, task_type) if self.cache is not None else None
            if cached is not None:
                results[i] = cached
            else:
                uncached.setdefault(text, []).append(i)

        if not uncached:
            logger.debug(f"All {len(texts)} embeddings served from cache")
            return results

        pending = list(uncached)
        logger.debug(
            f"Embedding {len(pending)} uncached texts "
            f"({len(texts) - sum(len(v) for v in uncached.values())} cache hits)"
        )

        vectors = await self._embed_uncached(pending, task_type)

        added = 0
        for text, vector in zip(pending, vectors):
            if vector is None:
                continue
            for i in uncached[text]:
                results[i] = list(vector)
            if self.cache is not None and self.cache.put(text, vector, task_type):
                added += 1

        if added and self.cache is not None:
            self.cache.save()

        return results

    # ─────────────────────────────────────────────────────────────────────────
    # Provider Calls
    # ─────────────────────────────────────────────────────────────────────────

    async def _embed_uncached(
        self, texts: list[str], task_type: Optional[str] = None
    ) -> list[Optional[list[float]]]:
        """Embed texts that missed the cache, degrading to None slots."""
        try:
            return await self._call_provider(texts, task_type)

        except EmbeddingRateLimitError:
            if len(texts) > 1:
                mid = len(texts) // 2
                logger.warning(
                    f"Rate limited on batch of {len(texts)}; retrying as halves "
                    f"of {mid} and {len(texts) - mid}"
                )
                await asyncio.sleep(self.retry_min_wait)
                left = await self._embed_uncached(texts[:mid], task_type)
                right = await self._embed_uncached(texts[mid:], task_type)
                return left + right
            return await self._retry_with_backoff(texts, task_type)

        except EmbeddingTimeoutError as e:
            logger.error(f"Dropping batch of {len(texts)} after timeout: {e}")
            return [None] * len(texts)

        except EmbeddingError as e:
            logger.error(f"Dropping batch of {len(texts)} after provider error: {e}")
            return [None] * len(texts)

    async def _retry_with_backoff(
        self, texts: list[str], task_type: Optional[str] = None
    ) -> list[Optional[list[float]]]:
        """
        Retry a rate-limited batch with bounded exponential backoff.

        The call that was just rate limited counts as the first failure, so
        every retry, including the first, waits ``retry_min_wait * 2**n``
        seconds capped at ``retry_max_wait``. At most ``max_retries`` retries
        are made.
        """
        first_wait = min(self.retry_min_wait, self.retry_max_wait)

        logger.warning(
            f"Rate limited; backing off {first_wait:.1f}s (retry 1/{self.max_retries})"
        )
        await asyncio.sleep(first_wait)

        vectors: list[Optional[list[float]]] = [None] * len(texts)
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.max_retries),
                wait=wait_exponential(multiplier=self.retry_min_wait * 2, max=self.retry_max_wait),
                retry=retry_if_exception_type(EmbeddingRateLimitError),
                before_sleep=self._log_backoff,
                reraise=True,
            ):
                with attempt:
                    vectors = await self._call_provider(texts, task_type)
        except EmbeddingError as e:
            logger.error(
                f"Giving up on batch of {len(texts)} after {self.max_retries} retries: {e}"
            )
            return [None] * len(texts)

        return vectors

    def _log_backoff(self, retry_state: RetryCallState) -> None:
        sleep = retry_state.next_action.sleep if retry_state.next_action else 0.0
        logger.warning(
            f"Rate limited; backing off {sleep:.1f}s "
            f"(retry {retry_state.attempt_number + 1}/{self.max_retries})"
        )

    async def _call_provider(
        self, texts: list[str], task_type: Optional[str] = None
    ) -> list[Optional[list[float]]]:
        """One bounded provider request."""
        if self.provider is None:
            raise EmbeddingError("No embedding provider configured")

        self.provider_calls += 1
        try:
            vectors = await asyncio.wait_for(
                self.provider.embed_batch(texts, task_type=task_type),
                timeout=self.request_timeout,
            )
        except asyncio.TimeoutError as e:
            raise EmbeddingTimeoutError(
                f"Embedding request timed out after {self.request_timeout}s"
            ) from e

        if len(vectors) != len(texts):
            raise EmbeddingError(
                f"Provider returned {len(vectors)} vectors for {len(texts)} texts"
            )
        return [list(v) if v else None for v in vectors]
