"""
Pytest Configuration and Fixtures.
===================================

Shared fixtures for all test modules:
- Fake embedding provider and language model (no network access)
- Sample catalog text and extraction responses
- Pre-wired components and a fully isolated service
- Temporary directories
"""

import asyncio
import json
import tempfile
import time
from pathlib import Path
from typing import Generator, Optional

import pytest

from course_advisor.indexing.embeddings_base import (
    EmbeddingError,
    EmbeddingProvider,
    EmbeddingRateLimitError,
)
from course_advisor.rag.generator import LanguageModel


# ─────────────────────────────────────────────────────────────────────────────
# Fakes
# ─────────────────────────────────────────────────────────────────────────────

KEYWORDS = (
    "math",
    "algebra",
    "biology",
    "science",
    "laboratory",
    "course",
    "english",
    "history",
)


def keyword_vector(text: str) -> list[float]:
    """Keyword occurrence counts plus a constant bias so no vector is all zeros."""
    lowered = text.lower()
    return [float(lowered.count(word)) for word in KEYWORDS] + [1.0]


class FakeEmbeddingProvider(EmbeddingProvider):
    """
    Deterministic keyword-count embeddings.

    Failure modes:
        error: raised on every call
        fail_marker: EmbeddingError when any text contains it
        rate_limit_calls: the next N calls raise a rate-limit error
        rate_limit_above: batches larger than this raise a rate-limit error
        delay: seconds to sleep before answering
    """

    def __init__(
        self,
        error: Optional[Exception] = None,
        fail_marker: Optional[str] = None,
        rate_limit_calls: int = 0,
        rate_limit_above: Optional[int] = None,
        delay: float = 0.0,
    ):
        self.error = error
        self.fail_marker = fail_marker
        self.rate_limit_calls = rate_limit_calls
        self.rate_limit_above = rate_limit_above
        self.delay = delay
        self.calls: list[list[str]] = []
        self.call_times: list[float] = []
        self.task_types: list[Optional[str]] = []

    @property
    def provider_name(self) -> str:
        return "fake"

    @property
    def model_name(self) -> str:
        return "keyword-counts"

    @property
    def dimensions(self) -> int:
        return len(KEYWORDS) + 1

    @property
    def embedded_texts(self) -> list[str]:
        return [text for batch in self.calls for text in batch]

    async def embed_batch(
        self, texts: list[str], task_type: Optional[str] = None
    ) -> list[list[float]]:
        self.calls.append(list(texts))
        self.call_times.append(time.monotonic())
        self.task_types.append(task_type)

        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        if self.rate_limit_calls > 0:
            self.rate_limit_calls -= 1
            raise EmbeddingRateLimitError("429 RESOURCE_EXHAUSTED")
        if self.rate_limit_above is not None and len(texts) > self.rate_limit_above:
            raise EmbeddingRateLimitError("429 RESOURCE_EXHAUSTED")
        if self.fail_marker and any(self.fail_marker in text for text in texts):
            raise EmbeddingError("provider rejected the request")

        return [keyword_vector(text) for text in texts]


class FakeLanguageModel(LanguageModel):
    """Returns a canned response (or raises) and records every prompt."""

    def __init__(self, response: str = "", error: Optional[Exception] = None):
        self.response = response
        self.error = error
        self.prompts: list[str] = []

    @property
    def model_name(self) -> str:
        return "fake-llm"

    async def generate(
        self,
        prompt: str,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.response


# ─────────────────────────────────────────────────────────────────────────────
# Path Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


# ─────────────────────────────────────────────────────────────────────────────
# Sample Data Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def sample_catalog_text() -> str:
    """Two-paragraph catalog excerpt."""
    return (
        "Algebra I (100001) is a one-year mathematics course covering linear "
        "equations and functions. It is the first course in the math sequence."
        "\n\n"
        "Biology (200002) is a laboratory science course that explores living "
        "organisms. It satisfies the life science requirement."
    )


@pytest.fixture
def sample_dirty_text() -> str:
    """Extractor output with page furniture and irregular whitespace."""
    return (
        "  Course   Catalog\t2024  \r\n"
        "Page 1 of 12\n"
        "\n\n\n\n"
        "Algebra I    (100001)\n"
        "- 2 -\n"
        "Biology\x07 (200002)   \n"
    )


@pytest.fixture
def sample_extraction_data() -> dict:
    """Model response for a grade 11 transcript."""
    return {
        "student": {
            "name": "Jane Doe",
            "gradeLevel": 11,
            "school": "Lincoln High School",
            "gpa": {"cumulative": 3.6, "weighted": 3.9},
            "totalCreditsEarned": 70,
        },
        "courses": [
            {"name": "Algebra I", "grade": "A", "credits": 10, "year": "2022-2023",
             "status": "completed", "subject": "math", "isHonors": False, "isAP": False},
            {"name": "Geometry", "grade": "A-", "credits": 10, "year": "2023-2024",
             "status": "completed", "subject": "math", "isHonors": False, "isAP": False},
            {"name": "Algebra II", "grade": None, "credits": 10, "year": "2024-2025",
             "status": "in_progress", "subject": "math", "isHonors": False, "isAP": False},
            {"name": "English 9", "grade": "B", "credits": 10, "year": "2022-2023",
             "status": "completed", "subject": "english", "isHonors": False, "isAP": False},
            {"name": "English 10", "grade": "B", "credits": 10, "year": "2023-2024",
             "status": "completed", "subject": "english", "isHonors": False, "isAP": False},
            {"name": "Biology", "grade": "C", "credits": 10, "year": "2022-2023",
             "status": "completed", "subject": "science", "isHonors": False, "isAP": False},
            {"name": "AP World History", "grade": "A", "credits": 10, "year": "2023-2024",
             "status": "completed", "subject": "social_studies", "isHonors": False, "isAP": True},
            {"name": "Spanish 1", "grade": "D", "credits": 10, "year": "2023-2024",
             "status": "completed", "subject": "language", "isHonors": False, "isAP": False},
            {"name": "Honors Chemistry", "grade": None, "credits": 10, "year": "2024-2025",
             "status": "in_progress", "subject": "science", "isHonors": True, "isAP": False},
        ],
    }


@pytest.fixture
def sample_extraction_response(sample_extraction_data: dict) -> str:
    """The sample extraction wrapped in a markdown code fence."""
    return f"```json\n{json.dumps(sample_extraction_data, indent=2)}\n```"


@pytest.fixture
def sample_record(sample_extraction_response: str):
    """Parsed record for the sample transcript."""
    from course_advisor.analysis.extraction import parse_extraction_response

    return parse_extraction_response(sample_extraction_response)


# ─────────────────────────────────────────────────────────────────────────────
# Component Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def keyword_embedding():
    """The fake provider's text-to-vector function."""
    return keyword_vector


@pytest.fixture
def provider_factory():
    """The fake provider class, for tests that need a failure mode."""
    return FakeEmbeddingProvider


@pytest.fixture
def fake_provider() -> FakeEmbeddingProvider:
    """Healthy keyword embedding provider."""
    return FakeEmbeddingProvider()


@pytest.fixture
def model_factory():
    """The fake language model class."""
    return FakeLanguageModel


@pytest.fixture
def fake_model(sample_extraction_response: str) -> FakeLanguageModel:
    """Language model answering with the sample extraction."""
    return FakeLanguageModel(response=sample_extraction_response)


@pytest.fixture
def memory_cache():
    """Embedding cache that never touches disk."""
    from course_advisor.indexing.embedding_cache import EmbeddingCache

    return EmbeddingCache(persist=False)


@pytest.fixture
def make_generator(memory_cache):
    """Factory for generators with zero backoff waits."""
    from course_advisor.indexing.embedding_generator import EmbeddingGenerator

    def _make(provider, cache=memory_cache, **kwargs):
        kwargs.setdefault("request_timeout", 5.0)
        kwargs.setdefault("max_retries", 3)
        kwargs.setdefault("retry_min_wait", 0)
        kwargs.setdefault("retry_max_wait", 0)
        return EmbeddingGenerator(provider, cache=cache, **kwargs)

    return _make


@pytest.fixture
def generator(make_generator, fake_provider):
    return make_generator(fake_provider)


@pytest.fixture
def small_chunker():
    """Chunker that puts each sample catalog paragraph in its own chunk."""
    from course_advisor.ingestion.chunker import Chunker, ChunkerConfig

    return Chunker(ChunkerConfig(chunk_size=150, chunk_overlap=20))


@pytest.fixture
def make_service(memory_cache, make_generator, small_chunker, fake_model):
    """Factory for isolated services around a given provider."""
    from course_advisor.indexing.vector_store import InMemoryVectorStore
    from course_advisor.ingestion.pipeline import IngestionPipeline
    from course_advisor.service import CourseAdvisorService

    def _make(provider, model=fake_model):
        store = InMemoryVectorStore()
        generator = make_generator(provider)
        ingestion = IngestionPipeline(
            generator,
            store,
            chunker=small_chunker,
            batch_size=3,
            inter_batch_delay=0,
        )
        return CourseAdvisorService(
            provider=provider,
            model=model,
            cache=memory_cache,
            store=store,
            generator=generator,
            ingestion=ingestion,
        )

    return _make


@pytest.fixture
def service(make_service, fake_provider):
    """Service wired to the healthy fake provider and model."""
    return make_service(fake_provider)


# ─────────────────────────────────────────────────────────────────────────────
# Pytest Configuration
# ─────────────────────────────────────────────────────────────────────────────


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "requires_api: marks tests that require API keys"
    )


@pytest.fixture(autouse=True)
def reset_settings():
    """Reload settings between tests so environment changes don't leak."""
    from course_advisor.shared.config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
