"""
Course Advisor - Retrieval and Analysis Core for a School Course Catalog
======================================================================

Answers course-planning questions from a small corpus of uploaded school
documents (course catalog, handbook, graduation rules):

- Chunks, embeds and indexes document text with cached Gemini embeddings
- Retrieves grounding passages by similarity, falling back to keyword search
- Analyzes a student's transcript into structured courses and a graduation /
  UC-CSU A-G requirement gap analysis

The answer-generation step consumes the passages and the analysis briefing
as grounding context.
"""

__version__ = "0.1.0"
__author__ = "Course Advisor Team"
__license__ = "MIT"

# Public API - lazy imports to avoid circular dependencies and speed up startup
__all__ = [
    # Version info
    "__version__",
    "__author__",
    "__license__",
    # Main modules (imported on demand)
    "shared",
    "ingestion",
    "indexing",
    "rag",
    "analysis",
    "service",
    "cli",
]
