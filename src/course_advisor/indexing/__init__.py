"""
Indexing Module - Embeddings and vector storage.
================================================

This module handles embedding generation and vector storage:

- embeddings_base: Abstract interface and error taxonomy for embedding providers
- embeddings_gemini: Gemini API embeddings
- embedding_cache: Fingerprint → vector cache persisted as JSON
- embedding_generator: Cached, rate-limit aware batch embedding
- vector_store: In-memory and ChromaDB vector stores
"""

from course_advisor.indexing.embeddings_base import (
    EmbeddingError,
    EmbeddingProvider,
    EmbeddingRateLimitError,
    EmbeddingTimeoutError,
    get_embedding_provider,
)
from course_advisor.indexing.embeddings_gemini import GeminiEmbeddingProvider
from course_advisor.indexing.embedding_cache import EmbeddingCache
from course_advisor.indexing.embedding_generator import EmbeddingGenerator
from course_advisor.indexing.vector_store import (
    ChromaVectorStore,
    InMemoryVectorStore,
    VectorStore,
    create_vector_store,
)

__all__ = [
    # Base
    "EmbeddingError",
    "EmbeddingProvider",
    "EmbeddingRateLimitError",
    "EmbeddingTimeoutError",
    "get_embedding_provider",
    # Providers
    "GeminiEmbeddingProvider",
    # Cache + generator
    "EmbeddingCache",
    "EmbeddingGenerator",
    # Vector Store
    "VectorStore",
    "InMemoryVectorStore",
    "ChromaVectorStore",
    "create_vector_store",
]
