"""
Analysis Pipeline Module - Four-stage personal document analysis.
================================================================

extract → analyze courses → gap analysis → briefing, with results cached
by a SHA256 hash of the full document text. Stage 1 failures do not abort
the run: stages 2-4 still execute on the empty course list so the caller
always receives a complete AnalysisResult.
"""

import time
from typing import Optional

from course_advisor.analysis.briefing import build_briefing
from course_advisor.analysis.course_analysis import analyze_courses
from course_advisor.analysis.extraction import RecordExtractor
from course_advisor.analysis.requirements import RequirementsEngine
from course_advisor.rag.generator import LanguageModel
from course_advisor.shared.logging import get_logger
from course_advisor.shared.schemas import AnalysisResult
from course_advisor.shared.utils import compute_hash

logger = get_logger(__name__)


class DocumentAnalyzer:
    """
    Runs and caches the document analysis pipeline.

    Example:
        >>> analyzer = DocumentAnalyzer(model=GeminiLanguageModel())
        >>> result = await analyzer.analyze(transcript_text, "transcript.pdf")
        >>> print(result.briefing)
    """

    def __init__(
        self,
        model: Optional[LanguageModel] = None,
        extractor: Optional[RecordExtractor] = None,
        engine: Optional[RequirementsEngine] = None,
    ):
        self.extractor = extractor or RecordExtractor(model)
        self.engine = engine or RequirementsEngine()
        self._cache: dict[str, AnalysisResult] = {}

    @property
    def cache_size(self) -> int:
        return len(self._cache)

    async def analyze(self, document_text: str, document_filename: str = "") -> AnalysisResult:
        """
        Analyze a personal academic document.

        Args:
            document_text: Extracted document text
            document_filename: Original filename, kept as metadata

        Returns:
            AnalysisResult (``parse_error`` set when extraction failed)
        """
        key = compute_hash(document_text)
        cached = self._cache.get(key)
        if cached is not None:
            logger.info("Returning cached document analysis")
            return cached

        start = time.perf_counter()

        logger.info("Stage 1: extracting structured course records")
        record = await self.extractor.extract(document_text)
        logger.info(f"Stage 1 complete: {len(record.courses)} courses")

        logger.info("Stage 2: analyzing course data")
        course_analysis = analyze_courses(record)
        logger.info(f"Stage 2 complete: {course_analysis.completed_count} completed courses")

        logger.info("Stage 3: running graduation gap analysis")
        gaps = self.engine.evaluate(record, course_analysis)
        logger.info(f"Stage 3 complete: {len(gaps.missing_requirements)} gaps found")

        logger.info("Stage 4: building briefing")
        briefing = build_briefing(record, course_analysis, gaps)

        result = AnalysisResult(
            student=record.student,
            courses=record.courses,
            parse_error=record.parse_error,
            course_analysis=course_analysis,
            gap_analysis=gaps,
            briefing=briefing,
            document_filename=document_filename,
            processing_time_ms=round((time.perf_counter() - start) * 1000, 1),
        )

        # Failed extractions are retried on the next request
        if result.parse_error is None:
            self._cache[key] = result

        logger.info(f"Document analysis complete ({result.processing_time_ms}ms)")
        return result

    def clear_cache(self) -> int:
        """Drop all cached analyses; returns how many were removed."""
        cleared = len(self._cache)
        self._cache.clear()
        return cleared
