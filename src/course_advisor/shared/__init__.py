"""
Shared Module - Common utilities, configuration, schemas, and logging.
======================================================================

This module provides foundational components used across all other modules:

- config: Configuration loading and management
- logging: Structured logging setup
- schemas: Pydantic data models
- utils: Utility functions (hashing, file I/O, vector math)
"""

from course_advisor.shared.config import get_settings, Settings
from course_advisor.shared.logging import get_logger, setup_logging
from course_advisor.shared.schemas import (
    Chunk,
    EmbeddedVector,
    RetrievalHit,
    RetrievalResult,
    Course,
    ParsedStudentRecord,
    GapAnalysisResult,
    AnalysisResult,
)
from course_advisor.shared.utils import (
    compute_hash,
    cosine_similarity,
    generate_chunk_id,
    ensure_directory,
    load_json,
    save_json,
)

__all__ = [
    # Config
    "get_settings",
    "Settings",
    # Logging
    "get_logger",
    "setup_logging",
    # Schemas
    "Chunk",
    "EmbeddedVector",
    "RetrievalHit",
    "RetrievalResult",
    "Course",
    "ParsedStudentRecord",
    "GapAnalysisResult",
    "AnalysisResult",
    # Utils
    "compute_hash",
    "cosine_similarity",
    "generate_chunk_id",
    "ensure_directory",
    "load_json",
    "save_json",
]
