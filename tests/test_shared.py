"""
Tests for the Shared Module.
============================

Tests for:
- Hashing and chunk ID helpers
- Text and vector utilities
- JSON file I/O
- Settings loading and environment overrides
- Log level context
- Schema helpers
"""

import json
import logging
import math

import pytest


# ─────────────────────────────────────────────────────────────────────────────
# Utilities
# ─────────────────────────────────────────────────────────────────────────────


class TestHashing:
    """Tests for hashing and ID helpers."""

    def test_compute_hash_known_value(self):
        """Test SHA256 of a known string."""
        from course_advisor.shared.utils import compute_hash

        assert compute_hash("hello world") == (
            "b94d27b9934d3e08a52e52d7da7dabfac484efe37a5380ee9088f7ace2efcde9"
        )

    def test_compute_hash_differs(self):
        """Test that different text yields different hashes."""
        from course_advisor.shared.utils import compute_hash

        assert compute_hash("Algebra I") != compute_hash("Algebra II")

    @pytest.mark.parametrize(
        "tag,expected",
        [
            ("Course Catalog 2025", "course_catalog_2025"),
            ("  transcript.pdf ", "transcriptpdf"),
            ("A-G list", "a-g_list"),
            ("!!!", "unknown"),
        ],
    )
    def test_normalize_tag(self, tag, expected):
        """Test tag normalization."""
        from course_advisor.shared.utils import normalize_tag

        assert normalize_tag(tag) == expected

    def test_generate_chunk_id(self):
        """Test the chunk ID format."""
        from course_advisor.shared.utils import generate_chunk_id

        assert generate_chunk_id("Course Catalog", 3, "abc123def456") == "course_catalog_3_abc123de"


class TestTextUtilities:
    """Tests for text helpers."""

    def test_truncate_short_text(self):
        """Test that short text is unchanged."""
        from course_advisor.shared.utils import truncate_text

        assert truncate_text("Biology", 10) == "Biology"

    def test_truncate_long_text(self):
        """Test truncation with suffix."""
        from course_advisor.shared.utils import truncate_text

        result = truncate_text("Advanced Placement Calculus", 10)

        assert result == "Advance..."
        assert len(result) == 10

    @pytest.mark.parametrize(
        "raw",
        [
            '```json\n{"a": 1}\n```',
            '```\n{"a": 1}\n```',
            '  {"a": 1}  ',
        ],
    )
    def test_strip_code_fences(self, raw):
        """Test that fences and whitespace are removed."""
        from course_advisor.shared.utils import strip_code_fences

        assert strip_code_fences(raw) == '{"a": 1}'


class TestCosineSimilarity:
    """Tests for cosine_similarity."""

    def test_identical_vectors(self):
        from course_advisor.shared.utils import cosine_similarity

        assert cosine_similarity([1.0, 2.0, 3.0], [1.0, 2.0, 3.0]) == pytest.approx(1.0)

    def test_orthogonal_vectors(self):
        from course_advisor.shared.utils import cosine_similarity

        assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)

    def test_known_value(self):
        """Test a hand-computed similarity."""
        from course_advisor.shared.utils import cosine_similarity

        assert cosine_similarity([1.0, 1.0], [1.0, 0.0]) == pytest.approx(1 / math.sqrt(2))

    def test_degenerate_inputs(self):
        """Test zero vectors and mismatched lengths."""
        from course_advisor.shared.utils import cosine_similarity

        assert cosine_similarity([0.0, 0.0], [1.0, 1.0]) == 0.0
        assert cosine_similarity([1.0], [1.0, 1.0]) == 0.0


class TestJsonIO:
    """Tests for save_json and load_json."""

    def test_save_creates_parents(self, temp_dir):
        """Test that missing directories are created and no temp file remains."""
        from course_advisor.shared.utils import load_json, save_json

        path = temp_dir / "nested" / "dir" / "data.json"
        save_json(path, {"course": "Biology", "credits": 10})

        assert load_json(path) == {"course": "Biology", "credits": 10}
        assert not path.with_suffix(".json.tmp").exists()

    def test_save_keeps_unicode(self, temp_dir):
        """Test that non-ASCII text is written as-is."""
        from course_advisor.shared.utils import save_json

        path = temp_dir / "data.json"
        save_json(path, {"name": "Español"})

        assert "Español" in path.read_text(encoding="utf-8")

    def test_load_missing_file(self, temp_dir):
        from course_advisor.shared.utils import load_json

        with pytest.raises(FileNotFoundError):
            load_json(temp_dir / "missing.json")

    def test_load_invalid_json(self, temp_dir):
        from course_advisor.shared.utils import load_json

        path = temp_dir / "bad.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(json.JSONDecodeError):
            load_json(path)


# ─────────────────────────────────────────────────────────────────────────────
# Settings
# ─────────────────────────────────────────────────────────────────────────────


class TestSettings:
    """Tests for settings loading."""

    def test_yaml_values(self):
        """Test that values come from config/settings.yaml."""
        from course_advisor.shared.config import get_settings

        settings = get_settings()

        assert settings.chunking.chunk_size == 1000
        assert settings.chunking.chunk_overlap == 200
        assert settings.embeddings.batch_size == 3
        assert settings.retrieval.top_k == 5
        assert settings.retrieval.lexical_top_n == 15
        assert settings.analysis.total_credits_needed == 220

    def test_settings_are_cached(self):
        """Test that get_settings returns a singleton."""
        from course_advisor.shared.config import get_settings

        assert get_settings() is get_settings()

    def test_environment_overrides(self, monkeypatch):
        """Test the top-level environment overrides."""
        from course_advisor.shared.config import get_settings

        monkeypatch.setenv("TOP_K", "7")
        monkeypatch.setenv("VECTOR_BACKEND", "MEMORY")
        monkeypatch.setenv("LOG_LEVEL", "debug")

        settings = get_settings()

        assert settings.get_effective_top_k() == 7
        assert settings.get_effective_vector_backend() == "memory"
        assert settings.get_effective_log_level() == "DEBUG"

    def test_nested_environment_beats_yaml(self, monkeypatch):
        """Test that a nested variable overrides one YAML key and keeps its siblings."""
        from course_advisor.shared.config import get_settings

        monkeypatch.setenv("CHUNKING__CHUNK_SIZE", "500")
        monkeypatch.setenv("CACHE__PERSIST", "false")

        settings = get_settings()

        assert settings.chunking.chunk_size == 500
        assert settings.chunking.chunk_overlap == 200
        assert settings.cache.persist is False

    def test_config_file_from_environment(self, monkeypatch, temp_dir):
        """Test that COURSE_ADVISOR_CONFIG selects the YAML file."""
        from course_advisor.shared.config import get_settings

        config_file = temp_dir / "custom.yaml"
        config_file.write_text("retrieval:\n  top_k: 3\n", encoding="utf-8")
        monkeypatch.setenv("COURSE_ADVISOR_CONFIG", str(config_file))

        settings = get_settings()

        assert settings.get_effective_top_k() == 3
        assert settings.retrieval.lexical_top_n == 15

    def test_missing_yaml_uses_defaults(self, temp_dir):
        """Test that a missing config file falls back to model defaults."""
        from course_advisor.shared.config import _create_settings

        settings = _create_settings(temp_dir / "absent.yaml")

        assert settings.vector_store.backend == "memory"
        assert settings.generation.model_name == "gemini-2.0-flash"

    def test_resolve_path(self, temp_dir):
        """Test relative and absolute path resolution."""
        from course_advisor.shared.config import get_settings

        settings = get_settings()

        assert settings.resolve_path("data/index") == settings.project_root / "data/index"
        assert settings.resolve_path(str(temp_dir)) == temp_dir


# ─────────────────────────────────────────────────────────────────────────────
# Logging
# ─────────────────────────────────────────────────────────────────────────────


class TestLogContext:
    """Tests for LogContext."""

    def test_restores_level(self):
        """Test that the original level is restored on exit."""
        from course_advisor.shared.logging import LogContext

        target = logging.getLogger("course_advisor.test_context")
        target.setLevel(logging.INFO)

        with LogContext("ERROR", "course_advisor.test_context"):
            assert target.level == logging.ERROR

        assert target.level == logging.INFO

    def test_restores_level_on_error(self):
        """Test that the level is restored when the block raises."""
        from course_advisor.shared.logging import LogContext

        target = logging.getLogger("course_advisor.test_context")
        target.setLevel(logging.INFO)

        with pytest.raises(RuntimeError):
            with LogContext("DEBUG", "course_advisor.test_context"):
                raise RuntimeError("boom")

        assert target.level == logging.INFO


# ─────────────────────────────────────────────────────────────────────────────
# Schemas
# ─────────────────────────────────────────────────────────────────────────────


class TestChunk:
    """Tests for the Chunk model."""

    def test_overlap_and_core(self):
        """Test the split between repeated and own text."""
        from course_advisor.shared.schemas import Chunk

        chunk = Chunk(id="c_1", text="tail of prev. New text", source_tag="c", overlap_length=13)

        assert chunk.overlap == "tail of prev."
        assert chunk.core == " New text"

    def test_chunk_is_frozen(self):
        """Test that chunks are immutable."""
        from pydantic import ValidationError

        from course_advisor.shared.schemas import Chunk

        chunk = Chunk(id="c_0", text="text", source_tag="c")

        with pytest.raises(ValidationError):
            chunk.text = "other"


class TestEmbeddedVector:
    """Tests for EmbeddedVector.is_well_formed."""

    @pytest.fixture
    def chunk(self):
        from course_advisor.shared.schemas import Chunk

        return Chunk(id="c_0", text="text", source_tag="c")

    @pytest.mark.parametrize(
        "vector,expected",
        [
            ([0.1, 0.2, 0.3], True),
            (None, False),
            ([], False),
            ([0.0, 0.0, 0.0], False),
            ([0.1, float("nan"), 0.3], False),
            ([0.1, float("inf"), 0.3], False),
        ],
    )
    def test_well_formed(self, chunk, vector, expected):
        from course_advisor.shared.schemas import EmbeddedVector

        assert EmbeddedVector(chunk=chunk, vector=vector).is_well_formed() is expected

    def test_dimension_check(self, chunk):
        """Test the expected-size check."""
        from course_advisor.shared.schemas import EmbeddedVector

        embedded = EmbeddedVector(chunk=chunk, vector=[0.1, 0.2, 0.3])

        assert embedded.is_well_formed(3)
        assert not embedded.is_well_formed(768)


class TestAnalysisResult:
    """Tests for AnalysisResult defaults."""

    def test_analyzed_at_is_utc(self):
        """Test that the analysis timestamp is timezone-aware UTC."""
        from datetime import timedelta

        from course_advisor.shared.schemas import AnalysisResult

        result = AnalysisResult()

        assert result.analyzed_at.tzinfo is not None
        assert result.analyzed_at.utcoffset() == timedelta(0)
