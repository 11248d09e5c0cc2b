"""
Ingestion Pipeline Module - Document text to stored vectors.
============================================================

Runs one document through clean → chunk → embed → store:
- Chunks are embedded in small batches, strictly one after another
- A fixed delay separates batches to stay under provider rate limits
- Chunks whose embedding failed are dropped by the vector store
"""

import asyncio
from typing import Callable, Optional

from tqdm import tqdm

from course_advisor.indexing.embedding_generator import EmbeddingGenerator
from course_advisor.indexing.vector_store import VectorStore
from course_advisor.ingestion.chunker import Chunker
from course_advisor.ingestion.cleaner import TextCleaner
from course_advisor.shared.config import get_settings
from course_advisor.shared.logging import get_logger
from course_advisor.shared.schemas import EmbeddedVector

logger = get_logger(__name__)

ProgressCallback = Callable[[int, int], None]


class IngestionPipeline:
    """
    Ingests plain document text into a vector store.

    Example:
        >>> pipeline = IngestionPipeline(generator, store)
        >>> stored = await pipeline.ingest(catalog_text, source_tag="catalog")
    """

    def __init__(
        self,
        generator: EmbeddingGenerator,
        store: VectorStore,
        chunker: Optional[Chunker] = None,
        cleaner: Optional[TextCleaner] = None,
        batch_size: Optional[int] = None,
        inter_batch_delay: Optional[float] = None,
        show_progress: bool = False,
    ):
        config = get_settings().embeddings

        self.generator = generator
        self.store = store
        self.chunker = chunker or Chunker()
        self.cleaner = cleaner or TextCleaner()
        self.batch_size = max(1, batch_size or config.batch_size)
        self.inter_batch_delay = (
            inter_batch_delay if inter_batch_delay is not None else config.inter_batch_delay
        )
        self.show_progress = show_progress

    async def ingest(
        self,
        text: str,
        source_tag: str,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> int:
        """
        Chunk, embed and store one document.

        Args:
            text: Extracted document text
            source_tag: Tag identifying the document
            progress_callback: Called with (chunks_done, chunks_total) after each batch

        Returns:
            Number of vectors stored
        """
        normalized = self.cleaner.clean(text)
        chunks = list(self.chunker.chunk_document(normalized, source_tag))

        if not chunks:
            logger.warning(f"No text to ingest for source '{source_tag}'")
            return 0

        total = len(chunks)
        logger.info(
            f"Ingesting '{source_tag}': {total} chunks in batches of {self.batch_size}"
        )

        stored = 0
        done = 0
        starts = range(0, total, self.batch_size)

        for batch_number, start in enumerate(
            tqdm(starts, desc=f"Embedding {source_tag}", disable=not self.show_progress)
        ):
            if batch_number > 0 and self.inter_batch_delay > 0:
                await asyncio.sleep(self.inter_batch_delay)

            batch = chunks[start : start + self.batch_size]
            vectors = await self.generator.embed([chunk.text for chunk in batch])

            stored += self.store.add([
                EmbeddedVector(chunk=chunk, vector=vector)
                for chunk, vector in zip(batch, vectors)
            ])
            done += len(batch)

            logger.debug(f"Batch {batch_number + 1}: {done}/{total} chunks processed")
            if progress_callback is not None:
                progress_callback(done, total)

        self.store.record_embedding_outcome(stored > 0)

        if stored < total:
            logger.warning(f"Stored {stored}/{total} chunks for '{source_tag}'")
        else:
            logger.info(f"Stored {stored} chunks for '{source_tag}'")

        return stored
