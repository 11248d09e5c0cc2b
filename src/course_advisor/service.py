"""
Service Module - The course advisor's exposed operations.
=========================================================

CourseAdvisorService owns one instance of every stateful component
(embedding cache, vector store, document registry, analysis cache,
ingestion queue) and exposes the operations the surrounding application
calls:

- ingest / submit_ingestion / regenerate
- retrieve / build_context
- analyze_document
- clear_cache / clear_vectors / vector_count / is_available / status

Components are passed in, so tests build isolated services with fakes.
create_service() wires the configured production components.
"""

from typing import Any, Optional

from course_advisor.analysis.pipeline import DocumentAnalyzer
from course_advisor.indexing.embedding_cache import EmbeddingCache
from course_advisor.indexing.embedding_generator import EmbeddingGenerator
from course_advisor.indexing.embeddings_base import EmbeddingProvider, get_embedding_provider
from course_advisor.indexing.vector_store import VectorStore, create_vector_store
from course_advisor.ingestion.pipeline import IngestionPipeline
from course_advisor.ingestion.tasks import IngestionQueue, IngestionTask
from course_advisor.rag.generator import GeminiLanguageModel, LanguageModel
from course_advisor.rag.lexical import LexicalSearcher
from course_advisor.rag.prompts import GroundingContext, build_grounding_context
from course_advisor.rag.retriever import DocumentRegistry, Retriever
from course_advisor.rag.semantic_search import SemanticSearch
from course_advisor.shared.config import get_settings
from course_advisor.shared.logging import get_logger
from course_advisor.shared.schemas import AnalysisResult, RetrievalResult

logger = get_logger(__name__)


class CourseAdvisorService:
    """
    Retrieval and analysis core of the course advisor.

    Example:
        >>> service = create_service()
        >>> await service.ingest(catalog_text, "catalog")
        >>> passages = await service.retrieve("math courses")
    """

    def __init__(
        self,
        provider: Optional[EmbeddingProvider] = None,
        model: Optional[LanguageModel] = None,
        cache: Optional[EmbeddingCache] = None,
        store: Optional[VectorStore] = None,
        generator: Optional[EmbeddingGenerator] = None,
        ingestion: Optional[IngestionPipeline] = None,
        lexical: Optional[LexicalSearcher] = None,
        analyzer: Optional[DocumentAnalyzer] = None,
    ):
        self.cache = cache
        self.store = store or create_vector_store("memory")
        self.generator = generator or EmbeddingGenerator(provider, cache=cache)
        self.ingestion = ingestion or IngestionPipeline(self.generator, self.store)
        self.registry = DocumentRegistry()
        self.retriever = Retriever(
            SemanticSearch(self.generator, self.store),
            lexical=lexical,
            registry=self.registry,
        )
        self.analyzer = analyzer or DocumentAnalyzer(model=model)
        self.queue = IngestionQueue(self.ingest_with_progress)

    # ─────────────────────────────────────────────────────────────────────────
    # Ingestion
    # ─────────────────────────────────────────────────────────────────────────

    async def ingest(self, document_text: str, source_tag: str) -> int:
        """
        Chunk, embed and store a document; register it for lexical search.

        Repeating an ingestion reuses cached embeddings but appends new rows
        unless the vectors were cleared first.

        Returns:
            Number of vectors stored
        """
        return await self.ingest_with_progress(document_text, source_tag)

    async def ingest_with_progress(
        self,
        document_text: str,
        source_tag: str,
        progress_callback=None,
    ) -> int:
        normalized = self.ingestion.cleaner.clean(document_text)
        self.registry.register(source_tag, normalized)
        return await self.ingestion.ingest(normalized, source_tag, progress_callback)

    def submit_ingestion(self, document_text: str, source_tag: str) -> IngestionTask:
        """Queue a document for background ingestion (requires a running loop)."""
        return self.queue.submit(document_text, source_tag)

    async def regenerate(self, document_text: str, source_tag: str) -> int:
        """Clear cached embeddings and all vectors, then ingest document_text afresh."""
        self.clear_cache()
        self.clear_vectors()
        return await self.ingest(document_text, source_tag)

    # ─────────────────────────────────────────────────────────────────────────
    # Retrieval
    # ─────────────────────────────────────────────────────────────────────────

    async def retrieve_result(self, query: str, k: Optional[int] = None) -> RetrievalResult:
        return await self.retriever.retrieve(query, k)

    async def retrieve(self, query: str, k: Optional[int] = None) -> list[str]:
        """Grounding passages for query (empty list when nothing is found)."""
        result = await self.retriever.retrieve(query, k)
        return result.passages

    async def build_context(
        self,
        query: str,
        analysis: Optional[AnalysisResult] = None,
        document_text: Optional[str] = None,
        k: Optional[int] = None,
    ) -> GroundingContext:
        """
        Grounding context for the answer step.

        The analysis briefing is used when available; otherwise the raw
        document text stands in for it.
        """
        passages = await self.retrieve(query, k)
        return build_grounding_context(
            passages,
            briefing=analysis.briefing if analysis is not None else None,
            document_text=document_text,
            max_document_chars=get_settings().analysis.max_document_chars,
        )

    # ─────────────────────────────────────────────────────────────────────────
    # Analysis
    # ─────────────────────────────────────────────────────────────────────────

    async def analyze_document(self, document_text: str, filename: str = "") -> AnalysisResult:
        return await self.analyzer.analyze(document_text, filename)

    # ─────────────────────────────────────────────────────────────────────────
    # Administration
    # ─────────────────────────────────────────────────────────────────────────

    def clear_cache(self) -> int:
        """Remove every cached embedding; returns the number removed."""
        if self.cache is None:
            return 0
        return self.cache.clear()

    def clear_analysis_cache(self) -> int:
        return self.analyzer.clear_cache()

    def clear_vectors(self) -> int:
        """Remove every stored vector; returns the number removed."""
        return self.store.clear()

    def vector_count(self) -> int:
        return self.store.count()

    def is_available(self) -> bool:
        return self.store.is_available()

    def status(self) -> dict[str, Any]:
        """Snapshot of index, cache and ingestion state."""
        latest = self.queue.latest()
        return {
            "vector_count": self.vector_count(),
            "available": self.is_available(),
            "backend": self.store.backend_name,
            "documents": self.registry.tags(),
            "embedding_cache": self.cache.stats() if self.cache is not None else None,
            "analysis_cache_size": self.analyzer.cache_size,
            "ingestion": latest.to_dict() if latest is not None else None,
        }

    async def close(self) -> None:
        await self.queue.close()


# ─────────────────────────────────────────────────────────────────────────────
# Factory Function
# ─────────────────────────────────────────────────────────────────────────────


def create_service(backend: Optional[str] = None) -> CourseAdvisorService:
    """
    Build a service from configuration.

    Without a GEMINI_API_KEY the service still works: semantic search and
    document analysis are unavailable and retrieval uses lexical search.
    """
    settings = get_settings()

    provider: Optional[EmbeddingProvider] = None
    model: Optional[LanguageModel] = None

    if settings.gemini_api_key:
        provider = get_embedding_provider()
        model = GeminiLanguageModel()
    else:
        logger.warning(
            "GEMINI_API_KEY not set; semantic search and document analysis are disabled"
        )

    return CourseAdvisorService(
        provider=provider,
        model=model,
        cache=EmbeddingCache(),
        store=create_vector_store(backend),
    )
