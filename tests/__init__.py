"""
Tests Package - Unit and integration tests for Course Advisor.
==============================================================

Test modules:
- test_shared: Config, logging, schema and utility tests
- test_ingestion: Cleaner, chunker, pipeline and queue tests
- test_indexing: Embedding cache, generator and vector store tests
- test_rag: Semantic, lexical and tiered retrieval tests
- test_analysis: Record parsing, gap analysis and briefing tests
- test_service: End-to-end service tests
- test_cli: Command-line tests

Run tests with:
    pytest tests/
    pytest tests/ -v --cov=src/course_advisor
    pytest tests/ -m "not integration and not requires_api"
"""
