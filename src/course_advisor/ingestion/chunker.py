"""
Chunker Module - Paragraph chunking with overlap for vector storage.
===================================================================

Splits normalized document text into passages sized for embedding and for
inclusion in model prompts:
- Paragraphs (blank-line separated) are accumulated greedily up to a size limit
- Each new chunk is seeded with the tail of the previous chunk
- Oversized paragraphs are kept whole rather than cut mid-sentence
- Chunk IDs are stable and deterministic within a run
"""

import re
from dataclasses import dataclass
from typing import Iterator, Optional

from course_advisor.shared.config import get_settings
from course_advisor.shared.logging import get_logger
from course_advisor.shared.schemas import Chunk
from course_advisor.shared.utils import compute_hash, generate_chunk_id

logger = get_logger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Chunking Configuration
# ─────────────────────────────────────────────────────────────────────────────


@dataclass
class ChunkerConfig:
    """Configuration for text chunking (in characters)."""

    chunk_size: int = 1000
    chunk_overlap: int = 200


# ─────────────────────────────────────────────────────────────────────────────
# Text Splitter
# ─────────────────────────────────────────────────────────────────────────────


class TextSplitter:
    """
    Splits text into overlapping chunks on paragraph boundaries.

    Every chunk is ``overlap + core``. The cores are consecutive slices of the
    input, so joining them reproduces the input exactly; a core that follows
    another one starts with the blank-line separator between them.
    """

    PARAGRAPH_BREAK = re.compile(r"\n[ \t]*\n\s*")

    def __init__(self, config: ChunkerConfig):
        if config.chunk_overlap < 0 or config.chunk_size <= 0:
            raise ValueError("chunk_size must be positive and chunk_overlap non-negative")
        self.config = config

    def paragraph_spans(self, text: str) -> list[tuple[int, int]]:
        """Return (start, end) offsets of the non-empty paragraphs in text."""
        spans = []
        position = 0
        for match in self.PARAGRAPH_BREAK.finditer(text):
            if match.start() > position:
                spans.append((position, match.start()))
            position = match.end()
        if position < len(text):
            spans.append((position, len(text)))
        return spans

    def iter_spans(self, text: str) -> Iterator[tuple[str, str]]:
        """
        Lazily yield ``(overlap, core)`` pairs for text.

        Args:
            text: Normalized document text

        Yields:
            The overlap seeded from the previous chunk and this chunk's core
        """
        spans = self.paragraph_spans(text)
        if not spans:
            return

        overlap = ""
        core_start = 0
        current_end = spans[0][1]

        for start, end in spans[1:]:
            projected = len(overlap) + (end - core_start)
            if projected > self.config.chunk_size:
                core = text[core_start:current_end]
                yield overlap, core
                overlap = self._tail(overlap + core)
                core_start = current_end
            current_end = end

        yield overlap, text[core_start:]

    def split(self, text: str) -> Iterator[str]:
        """
        Lazily yield chunk texts for text.

        Example:
            >>> splitter = TextSplitter(ChunkerConfig(chunk_size=20, chunk_overlap=5))
            >>> list(splitter.split("first paragraph\\n\\nsecond one"))
            ['first paragraph', 'graph\\n\\nsecond one']
        """
        for overlap, core in self.iter_spans(text):
            yield overlap + core

    def _tail(self, chunk_text: str) -> str:
        """Trailing overlap characters of a finished chunk."""
        if self.config.chunk_overlap == 0:
            return ""
        return chunk_text[-self.config.chunk_overlap:]


# ─────────────────────────────────────────────────────────────────────────────
# Chunker Class
# ─────────────────────────────────────────────────────────────────────────────


class Chunker:
    """
    Chunks document text into Chunk records for embedding.

    Example:
        >>> chunker = Chunker()
        >>> chunks = list(chunker.chunk_document(text, source_tag="catalog"))
        >>> for chunk in chunks:
        ...     print(chunk.id, len(chunk.text))
    """

    def __init__(self, config: Optional[ChunkerConfig] = None):
        """
        Initialize the chunker.

        Args:
            config: Custom configuration (loads from settings if None)
        """
        if config is None:
            settings = get_settings()
            config = ChunkerConfig(
                chunk_size=settings.chunking.chunk_size,
                chunk_overlap=settings.chunking.chunk_overlap,
            )

        self.config = config
        self.splitter = TextSplitter(config)

    def split(self, text: str) -> Iterator[str]:
        """Lazily yield chunk texts."""
        return self.splitter.split(text)

    def chunk_document(self, text: str, source_tag: str) -> Iterator[Chunk]:
        """
        Chunk one document.

        Args:
            text: Normalized document text
            source_tag: Tag identifying the source document

        Yields:
            Chunk records in document order
        """
        count = 0
        for index, (overlap, core) in enumerate(self.splitter.iter_spans(text)):
            chunk_text = overlap + core
            count += 1
            yield Chunk(
                id=generate_chunk_id(source_tag, index, compute_hash(chunk_text)),
                text=chunk_text,
                source_tag=source_tag,
                index=index,
                overlap_length=len(overlap),
            )

        logger.debug(f"Created {count} chunks for source '{source_tag}'")


# ─────────────────────────────────────────────────────────────────────────────
# Convenience Functions
# ─────────────────────────────────────────────────────────────────────────────


def chunk_text(
    text: str,
    source_tag: str,
    chunk_size: Optional[int] = None,
    chunk_overlap: Optional[int] = None,
) -> list[Chunk]:
    """
    Chunk a document into a list of Chunk records.

    Args:
        text: Normalized document text
        source_tag: Source document tag
        chunk_size: Optional custom chunk size
        chunk_overlap: Optional custom overlap

    Returns:
        List of Chunk records
    """
    config = None
    if chunk_size is not None or chunk_overlap is not None:
        settings = get_settings()
        config = ChunkerConfig(
            chunk_size=chunk_size if chunk_size is not None else settings.chunking.chunk_size,
            chunk_overlap=(
                chunk_overlap if chunk_overlap is not None else settings.chunking.chunk_overlap
            ),
        )

    return list(Chunker(config=config).chunk_document(text, source_tag))
