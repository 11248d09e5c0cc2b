"""
Vector Store Module - Storage and similarity search over embedded chunks.
========================================================================

Two interchangeable backends share one interface:
- InMemoryVectorStore: ordered list of vectors, exact cosine ranking
- ChromaVectorStore: persistent ChromaDB collection (cosine space) with
  per-source deletion for selective regeneration

Both reject malformed vectors at insertion and expose an availability flag
that is true once vectors are present and the last ingestion did not
hard-fail.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional

import chromadb
from chromadb.config import Settings as ChromaSettings

from course_advisor.shared.config import get_settings
from course_advisor.shared.logging import get_logger
from course_advisor.shared.schemas import EmbeddedVector, RetrievalHit
from course_advisor.shared.utils import cosine_similarity, ensure_directory

logger = get_logger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Base Class
# ─────────────────────────────────────────────────────────────────────────────


class VectorStore(ABC):
    """
    Common behaviour for vector store backends.

    Subclasses implement the storage primitives; validation, dimensionality
    tracking and the availability flag live here.
    """

    backend_name = "base"

    def __init__(self) -> None:
        self._dimensions: Optional[int] = None
        self._last_embedding_failed = False

    @property
    def dimensions(self) -> Optional[int]:
        """Vector length fixed by the first accepted vector."""
        return self._dimensions

    def add(self, batch: list[EmbeddedVector]) -> int:
        """
        Insert embedded chunks, dropping malformed ones.

        Args:
            batch: Embedded chunks (vector may be None for failed chunks)

        Returns:
            Number of vectors stored
        """
        accepted: list[EmbeddedVector] = []
        for item in batch:
            if item.is_well_formed(self._dimensions):
                if self._dimensions is None:
                    self._dimensions = len(item.vector)
                accepted.append(item)

        rejected = len(batch) - len(accepted)
        if rejected:
            logger.warning(f"Rejected {rejected} of {len(batch)} vectors without a valid embedding")

        if accepted:
            self._insert(accepted)
            logger.debug(f"Stored {len(accepted)} vectors ({self.count()} total)")

        return len(accepted)

    def record_embedding_outcome(self, succeeded: bool) -> None:
        """Remember whether the latest ingestion produced any vectors."""
        self._last_embedding_failed = not succeeded

    def is_available(self) -> bool:
        return self.count() > 0 and not self._last_embedding_failed

    def search(self, query_vector: list[float], k: int = 5) -> list[RetrievalHit]:
        """
        Rank stored vectors by cosine similarity to query_vector.

        Returns:
            Up to k hits, best first; empty if the store is unavailable
        """
        if k <= 0 or not self.is_available():
            return []
        return self._query(query_vector, k)

    def clear(self) -> int:
        """
        Remove every stored vector.

        Returns:
            Number of vectors removed
        """
        cleared = self._remove_all()
        self._dimensions = None
        self._last_embedding_failed = False
        logger.info(f"Cleared {cleared} vectors from {self.backend_name} store")
        return cleared

    def get_stats(self) -> dict[str, Any]:
        return {
            "backend": self.backend_name,
            "count": self.count(),
            "dimensions": self._dimensions,
            "available": self.is_available(),
        }

    @abstractmethod
    def count(self) -> int:
        """Number of stored vectors."""

    @abstractmethod
    def _insert(self, batch: list[EmbeddedVector]) -> None:
        pass

    @abstractmethod
    def _query(self, query_vector: list[float], k: int) -> list[RetrievalHit]:
        pass

    @abstractmethod
    def _remove_all(self) -> int:
        pass


# ─────────────────────────────────────────────────────────────────────────────
# In-Memory Backend
# ─────────────────────────────────────────────────────────────────────────────


class InMemoryVectorStore(VectorStore):
    """
    Process-lifetime vector store.

    Append-only between clears, so concurrent searches never observe a
    partially mutated list. Ties in similarity keep insertion order.
    """

    backend_name = "memory"

    def __init__(self) -> None:
        super().__init__()
        self._items: list[EmbeddedVector] = []

    def count(self) -> int:
        return len(self._items)

    def _insert(self, batch: list[EmbeddedVector]) -> None:
        self._items = self._items + batch

    def _query(self, query_vector: list[float], k: int) -> list[RetrievalHit]:
        items = self._items
        scored = [
            (cosine_similarity(query_vector, item.vector), item)
            for item in items
        ]
        # sorted() is stable, so equal scores stay in insertion order
        scored = sorted(scored, key=lambda pair: pair[0], reverse=True)

        return [
            RetrievalHit(
                chunk_id=item.chunk.id,
                text=item.chunk.text,
                score=score,
                source_tag=item.chunk.source_tag,
            )
            for score, item in scored[:k]
        ]

    def _remove_all(self) -> int:
        cleared = len(self._items)
        self._items = []
        return cleared


# ─────────────────────────────────────────────────────────────────────────────
# ChromaDB Backend
# ─────────────────────────────────────────────────────────────────────────────


class ChromaVectorStore(VectorStore):
    """
    ChromaDB-backed durable vector store.

    Rows are keyed by chunk ID and tagged with ``source_tag`` metadata so one
    document's vectors can be removed and regenerated on their own.

    Example:
        >>> store = ChromaVectorStore(collection_name="course_documents")
        >>> store.add(embedded)
        >>> hits = store.search(query_vector, k=5)
    """

    backend_name = "chroma"

    def __init__(
        self,
        collection_name: Optional[str] = None,
        persist_directory: Optional[Path] = None,
    ):
        super().__init__()
        settings = get_settings()

        self.collection_name = collection_name or settings.vector_store.collection_name
        self.persist_directory = ensure_directory(
            persist_directory
            or settings.resolve_path(settings.vector_store.persist_directory)
        )

        self._client = chromadb.PersistentClient(
            path=str(self.persist_directory),
            settings=ChromaSettings(
                anonymized_telemetry=False,
                allow_reset=True,
            ),
        )
        self._collection = self._get_collection()
        self._dimensions = self._detect_dimensions()

        logger.info(
            f"Vector store initialized: collection={self.collection_name}, "
            f"persist_dir={self.persist_directory}, "
            f"existing_count={self.count()}"
        )

    def _get_collection(self):
        # Embeddings are computed by the caller, so no embedding function is attached
        return self._client.get_or_create_collection(
            name=self.collection_name,
            metadata={"hnsw:space": "cosine"},
        )

    def _detect_dimensions(self) -> Optional[int]:
        """Read the vector length from an existing row, if any."""
        if self._collection.count() == 0:
            return None
        sample = self._collection.get(limit=1, include=["embeddings"])
        embeddings = sample.get("embeddings")
        if embeddings is None or len(embeddings) == 0:
            return None
        return len(embeddings[0])

    def count(self) -> int:
        return self._collection.count()

    def _insert(self, batch: list[EmbeddedVector]) -> None:
        self._collection.upsert(
            ids=[item.chunk.id for item in batch],
            embeddings=[item.vector for item in batch],
            documents=[item.chunk.text for item in batch],
            metadatas=[
                {"source_tag": item.chunk.source_tag, "index": item.chunk.index}
                for item in batch
            ],
        )

    def _query(self, query_vector: list[float], k: int) -> list[RetrievalHit]:
        results = self._collection.query(
            query_embeddings=[query_vector],
            n_results=min(k, self.count()),
            include=["documents", "metadatas", "distances"],
        )
        return self._results_to_hits(results)

    def _results_to_hits(self, results: dict) -> list[RetrievalHit]:
        """Convert ChromaDB results to RetrievalHit objects."""
        hits = []

        if not results or not results.get("ids") or not results["ids"][0]:
            return hits

        ids = results["ids"][0]
        documents = (results.get("documents") or [[]])[0]
        metadatas = (results.get("metadatas") or [[]])[0]
        distances = (results.get("distances") or [[]])[0]

        for i, chunk_id in enumerate(ids):
            # cosine space: similarity = 1 - distance
            distance = distances[i] if distances else 0.0
            metadata = metadatas[i] if metadatas else {}
            hits.append(
                RetrievalHit(
                    chunk_id=chunk_id,
                    text=documents[i] if documents else "",
                    score=1.0 - distance,
                    source_tag=(metadata or {}).get("source_tag", ""),
                )
            )

        hits.sort(key=lambda h: h.score, reverse=True)
        return hits

    def _remove_all(self) -> int:
        cleared = self.count()
        self._client.delete_collection(self.collection_name)
        self._collection = self._get_collection()
        return cleared

    def has_source(self, source_tag: str) -> bool:
        """Whether any vectors are stored for source_tag."""
        found = self._collection.get(where={"source_tag": source_tag}, limit=1)
        return bool(found.get("ids"))

    def delete_source(self, source_tag: str) -> int:
        """
        Remove the vectors of one source document.

        Returns:
            Number of vectors removed
        """
        found = self._collection.get(where={"source_tag": source_tag})
        ids = found.get("ids") or []
        if ids:
            self._collection.delete(ids=ids)
        logger.info(f"Deleted {len(ids)} vectors for source '{source_tag}'")
        return len(ids)


# ─────────────────────────────────────────────────────────────────────────────
# Factory Function
# ─────────────────────────────────────────────────────────────────────────────


def create_vector_store(backend: Optional[str] = None, **kwargs: Any) -> VectorStore:
    """
    Create a vector store for the configured backend.

    Args:
        backend: "memory" or "chroma" (default from config)
        **kwargs: Passed to the backend constructor

    Returns:
        VectorStore instance

    Raises:
        ValueError: If backend name is invalid
    """
    if backend is None:
        backend = get_settings().get_effective_vector_backend()

    backend = backend.lower().strip()

    if backend == "memory":
        return InMemoryVectorStore()
    if backend == "chroma":
        return ChromaVectorStore(**kwargs)

    raise ValueError(f"Unknown vector store backend: {backend}. Valid options: memory, chroma")
