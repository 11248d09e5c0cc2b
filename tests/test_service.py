"""
Tests for the Service Module.
=============================

End-to-end tests of CourseAdvisorService with fake providers:
- Ingestion, retrieval and grounding context
- Document analysis
- Administrative operations and status
- Background ingestion tasks
- Configuration-driven construction
"""

import pytest


# ─────────────────────────────────────────────────────────────────────────────
# Ingestion and Retrieval
# ─────────────────────────────────────────────────────────────────────────────


class TestIngestAndRetrieve:
    """Tests for ingest and retrieve."""

    @pytest.mark.asyncio
    async def test_catalog_scenario(self, service, sample_catalog_text):
        """Test that a math question retrieves the Algebra I passage."""
        stored = await service.ingest(sample_catalog_text, "catalog")

        passages = await service.retrieve("math courses")

        assert stored == 2
        assert service.vector_count() == 2
        assert service.is_available()
        assert "Algebra I" in passages[0]

    @pytest.mark.asyncio
    async def test_reingest_uses_cache(self, service, fake_provider, sample_catalog_text):
        """Test that re-ingesting identical text makes no provider calls."""
        await service.ingest(sample_catalog_text, "catalog")
        calls = len(fake_provider.calls)

        stored = await service.ingest(sample_catalog_text, "catalog")

        assert stored == 2
        assert len(fake_provider.calls) == calls
        assert service.vector_count() == 4

    @pytest.mark.asyncio
    async def test_lexical_fallback_without_embeddings(
        self, make_service, provider_factory, sample_catalog_text
    ):
        """Test that retrieval still answers when embedding fails entirely."""
        from course_advisor.indexing.embeddings_base import EmbeddingError

        service = make_service(provider_factory(error=EmbeddingError("service down")))

        stored = await service.ingest(sample_catalog_text, "catalog")
        result = await service.retrieve_result("biology laboratory")

        assert stored == 0
        assert not service.is_available()
        assert result.tier == "lexical"
        assert result.passages[0].startswith("Biology (200002)")

    @pytest.mark.asyncio
    async def test_retrieve_nothing(self, service):
        """Test that an empty service returns no passages."""
        assert await service.retrieve("math courses") == []

    @pytest.mark.asyncio
    async def test_build_context_uses_briefing(self, service, sample_catalog_text):
        """Test grounding context built from passages and the analysis briefing."""
        await service.ingest(sample_catalog_text, "catalog")
        analysis = await service.analyze_document("transcript text", "transcript.pdf")

        context = await service.build_context(
            "What math should I take next?", analysis=analysis, document_text="transcript text"
        )

        assert context.has_grounding
        assert context.student_source == "briefing"
        assert "Algebra I" in context.text
        assert "Jane Doe" in context.text

    @pytest.mark.asyncio
    async def test_build_context_without_anything(self, service):
        """Test the no-information context."""
        from course_advisor.rag.prompts import NO_INFORMATION_MESSAGE

        context = await service.build_context("math courses")

        assert not context.has_grounding
        assert context.text == NO_INFORMATION_MESSAGE


# ─────────────────────────────────────────────────────────────────────────────
# Analysis
# ─────────────────────────────────────────────────────────────────────────────


class TestAnalyzeDocument:
    """Tests for analyze_document."""

    @pytest.mark.asyncio
    async def test_analysis_is_cached(self, service, fake_model):
        """Test that the same document is analyzed once."""
        first = await service.analyze_document("transcript text")
        second = await service.analyze_document("transcript text")

        assert first is second
        assert len(fake_model.prompts) == 1
        assert service.clear_analysis_cache() == 1

    @pytest.mark.asyncio
    async def test_analysis_failure_is_reported(self, make_service, fake_provider, model_factory):
        """Test that an unusable model response is reported, not raised."""
        service = make_service(fake_provider, model=model_factory(response="no json here"))

        result = await service.analyze_document("transcript text")

        assert result.parse_error
        assert result.briefing


# ─────────────────────────────────────────────────────────────────────────────
# Administration
# ─────────────────────────────────────────────────────────────────────────────


class TestAdministration:
    """Tests for the administrative operations."""

    @pytest.mark.asyncio
    async def test_clear_vectors(self, service, sample_catalog_text):
        """Test that clearing vectors falls back to lexical retrieval."""
        await service.ingest(sample_catalog_text, "catalog")

        assert service.clear_vectors() == 2
        assert service.vector_count() == 0
        assert not service.is_available()

        result = await service.retrieve_result("math courses")
        assert result.tier == "lexical"

    @pytest.mark.asyncio
    async def test_clear_cache(self, service, fake_provider, sample_catalog_text):
        """Test that clearing the cache forces fresh provider calls."""
        await service.ingest(sample_catalog_text, "catalog")
        calls = len(fake_provider.calls)

        assert service.clear_cache() == 2

        await service.ingest(sample_catalog_text, "catalog")
        assert len(fake_provider.calls) == calls + 1

    @pytest.mark.asyncio
    async def test_regenerate(self, service, fake_provider, sample_catalog_text):
        """Test that regenerate rebuilds the index from scratch."""
        await service.ingest(sample_catalog_text, "catalog")
        calls = len(fake_provider.calls)

        stored = await service.regenerate(sample_catalog_text, "catalog")

        assert stored == 2
        assert service.vector_count() == 2
        assert len(fake_provider.calls) == calls + 1

    @pytest.mark.asyncio
    async def test_status(self, service, sample_catalog_text):
        """Test the status snapshot."""
        await service.ingest(sample_catalog_text, "catalog")

        status = service.status()

        assert status["vector_count"] == 2
        assert status["available"] is True
        assert status["backend"] == "memory"
        assert status["documents"] == ["catalog"]
        assert status["embedding_cache"]["size"] == 2
        assert status["analysis_cache_size"] == 0
        assert status["ingestion"] is None


# ─────────────────────────────────────────────────────────────────────────────
# Background Ingestion
# ─────────────────────────────────────────────────────────────────────────────


class TestBackgroundIngestion:
    """Tests for submit_ingestion."""

    @pytest.mark.asyncio
    async def test_submitted_task_completes(self, service, sample_catalog_text):
        """Test that a queued document is ingested and reported in status."""
        from course_advisor.ingestion.tasks import TaskStatus

        task = service.submit_ingestion(sample_catalog_text, "catalog")
        assert task.status == TaskStatus.PENDING

        await service.queue.join()

        assert task.status == TaskStatus.DONE
        assert task.vector_count == 2
        assert task.chunks_total == 2
        assert service.status()["ingestion"]["status"] == "done"
        assert "Algebra I" in (await service.retrieve("math courses"))[0]

        await service.close()


# ─────────────────────────────────────────────────────────────────────────────
# Factory
# ─────────────────────────────────────────────────────────────────────────────


class TestCreateService:
    """Tests for create_service."""

    @pytest.mark.asyncio
    async def test_without_api_key(self, monkeypatch, temp_dir, sample_catalog_text):
        """Test that a service without credentials degrades to lexical search."""
        from course_advisor.service import create_service

        monkeypatch.setenv("GEMINI_API_KEY", "")
        monkeypatch.setenv("CACHE__EMBEDDINGS_FILE", str(temp_dir / "embeddings.json"))
        monkeypatch.setenv("CACHE__PERSIST", "false")

        service = create_service("memory")
        service.ingestion.inter_batch_delay = 0

        stored = await service.ingest(sample_catalog_text, "catalog")
        result = await service.retrieve_result("math courses")
        analysis = await service.analyze_document("transcript text")

        assert service.generator.provider is None
        assert stored == 0
        assert result.tier == "lexical"
        assert analysis.parse_error == "No language model configured"
