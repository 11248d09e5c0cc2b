"""
RAG Module - Retrieval and language model access.
=================================================

This module provides the retrieval side of the assistant:

- semantic_search: Embedding similarity search over the vector store
- lexical: Table-driven keyword fallback search
- retriever: Semantic → lexical → lenient tiered retrieval
- generator: Language model interface (Gemini)
- prompts: Extraction prompt and grounding context assembly
"""

from course_advisor.rag.semantic_search import SemanticSearch
from course_advisor.rag.lexical import LexicalSearcher, TermCluster, TERM_CLUSTERS
from course_advisor.rag.retriever import DocumentRegistry, Retriever
from course_advisor.rag.generator import (
    GeminiLanguageModel,
    GenerationError,
    LanguageModel,
)
from course_advisor.rag.prompts import (
    NO_INFORMATION_MESSAGE,
    GroundingContext,
    build_extraction_prompt,
    build_grounding_context,
)

__all__ = [
    # Search
    "SemanticSearch",
    "LexicalSearcher",
    "TermCluster",
    "TERM_CLUSTERS",
    # Retriever
    "DocumentRegistry",
    "Retriever",
    # Generator
    "LanguageModel",
    "GeminiLanguageModel",
    "GenerationError",
    # Prompts
    "NO_INFORMATION_MESSAGE",
    "GroundingContext",
    "build_extraction_prompt",
    "build_grounding_context",
]
