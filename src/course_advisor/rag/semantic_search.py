"""
Semantic Search Module - Embedding similarity search over the vector store.
==========================================================================

Embeds the query through the cached generator, using the retrieval-query
task type, and ranks stored vectors by cosine similarity. An empty or
unavailable store short-circuits before any provider call, so callers can
fall back immediately.
"""

from typing import Optional

from course_advisor.indexing.embedding_generator import EmbeddingGenerator
from course_advisor.indexing.embeddings_base import QUERY_TASK_TYPE
from course_advisor.indexing.vector_store import VectorStore
from course_advisor.shared.config import get_settings
from course_advisor.shared.logging import get_logger
from course_advisor.shared.schemas import RetrievalHit

logger = get_logger(__name__)


class SemanticSearch:
    """
    Top-k similarity search.

    Example:
        >>> search = SemanticSearch(generator, store)
        >>> hits = await search.search("math courses", k=5)
    """

    def __init__(
        self,
        generator: EmbeddingGenerator,
        store: VectorStore,
        top_k: Optional[int] = None,
    ):
        self.generator = generator
        self.store = store
        self.top_k = top_k if top_k is not None else get_settings().get_effective_top_k()

    async def search(self, query: str, k: Optional[int] = None) -> list[RetrievalHit]:
        """
        Return the k stored chunks most similar to query.

        Returns:
            Hits sorted by descending similarity; empty when the store is
            empty or unavailable, or the query could not be embedded
        """
        k = k if k is not None else self.top_k

        if not query or not query.strip():
            return []

        if not self.store.is_available():
            logger.debug("Vector store unavailable, skipping semantic search")
            return []

        vectors = await self.generator.embed([query], task_type=QUERY_TASK_TYPE)
        if not vectors or vectors[0] is None:
            logger.warning("Query embedding failed, semantic search returns no results")
            return []

        hits = self.store.search(vectors[0], k)
        logger.debug(
            f"Semantic search returned {len(hits)} hits"
            + (f" (top score {hits[0].score:.3f})" if hits else "")
        )
        return hits
