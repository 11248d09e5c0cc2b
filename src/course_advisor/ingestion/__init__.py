"""
Ingestion Module - Clean, chunk, embed and store document text.
===============================================================

This module handles the document ingestion path:

- cleaner: Text cleaning and normalization
- chunker: Paragraph chunking with overlap
- pipeline: Sequential batch embedding into the vector store
- tasks: Background ingestion queue with observable task state

Pipeline flow:
    Extracted text → Cleaner → Chunker → Chunks → EmbeddingGenerator → VectorStore
"""

from course_advisor.ingestion.cleaner import TextCleaner, normalize_document_text
from course_advisor.ingestion.chunker import Chunker, chunk_text
from course_advisor.ingestion.pipeline import IngestionPipeline
from course_advisor.ingestion.tasks import IngestionQueue, IngestionTask, TaskStatus

__all__ = [
    # Cleaner
    "TextCleaner",
    "normalize_document_text",
    # Chunker
    "Chunker",
    "chunk_text",
    # Pipeline
    "IngestionPipeline",
    # Tasks
    "IngestionQueue",
    "IngestionTask",
    "TaskStatus",
]
