"""
Retriever Module - Tiered passage retrieval.
============================================

Answers ``retrieve(query, k)`` with the strongest tier that has results:
1. Semantic search over the vector store (top k)
2. Scored lexical search over the registered document texts (top 15)
3. Lenient substring search over the same texts (up to 8)

Failures in any tier degrade to the next one; retrieval never raises for
provider problems.
"""

from typing import Optional

from course_advisor.rag.lexical import LexicalSearcher
from course_advisor.rag.semantic_search import SemanticSearch
from course_advisor.shared.logging import get_logger
from course_advisor.shared.schemas import RetrievalResult, SearchTier

logger = get_logger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Document Registry
# ─────────────────────────────────────────────────────────────────────────────


class DocumentRegistry:
    """Normalized source texts by tag; the corpus for lexical search."""

    def __init__(self) -> None:
        self._documents: dict[str, str] = {}

    def register(self, source_tag: str, text: str) -> None:
        self._documents[source_tag] = text

    def remove(self, source_tag: str) -> bool:
        return self._documents.pop(source_tag, None) is not None

    def clear(self) -> int:
        cleared = len(self._documents)
        self._documents.clear()
        return cleared

    def tags(self) -> list[str]:
        return list(self._documents)

    def corpus(self) -> str:
        """All registered texts joined as separate paragraphs."""
        return "\n\n".join(self._documents.values())

    def __len__(self) -> int:
        return len(self._documents)

    def __contains__(self, source_tag: str) -> bool:
        return source_tag in self._documents


# ─────────────────────────────────────────────────────────────────────────────
# Retriever Class
# ─────────────────────────────────────────────────────────────────────────────


class Retriever:
    """
    Tiered retriever combining semantic and lexical search.

    Example:
        >>> retriever = Retriever(semantic, LexicalSearcher(), registry)
        >>> result = await retriever.retrieve("math courses")
        >>> print(result.tier, len(result.passages))
    """

    def __init__(
        self,
        semantic: SemanticSearch,
        lexical: Optional[LexicalSearcher] = None,
        registry: Optional[DocumentRegistry] = None,
    ):
        self.semantic = semantic
        self.lexical = lexical or LexicalSearcher()
        self.registry = registry if registry is not None else DocumentRegistry()

    async def retrieve(self, query: str, k: Optional[int] = None) -> RetrievalResult:
        """
        Retrieve grounding passages for query.

        Args:
            query: User query
            k: Number of semantic results (default from config)

        Returns:
            RetrievalResult with passages and the tier that produced them
        """
        if not query or not query.strip():
            return RetrievalResult(query=query or "")

        hits = await self.semantic.search(query, k)
        if hits:
            logger.info(f"Retrieved {len(hits)} passages via semantic search")
            return RetrievalResult(
                query=query,
                passages=[hit.text for hit in hits],
                tier=SearchTier.SEMANTIC,
                hits=hits,
            )

        logger.info("Semantic search empty or unavailable, falling back to lexical search")
        passages, tier = self.lexical.search_with_tier(self.registry.corpus(), query)

        if passages:
            logger.info(f"Retrieved {len(passages)} passages via {tier.value} search")
        else:
            logger.info("No grounding passages found")

        return RetrievalResult(query=query, passages=passages, tier=tier)
