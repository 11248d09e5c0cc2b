"""
Extraction Module - Stage 1: structured course records from a document.
======================================================================

Asks the language model to turn an uploaded transcript, report card or
schedule into the fixed student/courses JSON shape. Malformed responses
never raise: they become an empty record carrying ``parse_error``.
"""

import json
from typing import Any, Optional

from pydantic import ValidationError

from course_advisor.rag.generator import GenerationError, LanguageModel
from course_advisor.rag.prompts import build_extraction_prompt
from course_advisor.shared.config import get_settings
from course_advisor.shared.logging import get_logger
from course_advisor.shared.schemas import Course, ParsedStudentRecord, StudentInfo
from course_advisor.shared.utils import strip_code_fences, truncate_text

logger = get_logger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Response Parsing
# ─────────────────────────────────────────────────────────────────────────────


def _to_float(value: Any) -> Optional[float]:
    try:
        return float(value) if value not in (None, "") else None
    except (TypeError, ValueError):
        return None


def _to_int(value: Any) -> Optional[int]:
    number = _to_float(value)
    return int(number) if number is not None else None


def _parse_student(data: Any) -> StudentInfo:
    if not isinstance(data, dict):
        return StudentInfo()

    gpa = data.get("gpa")
    if isinstance(gpa, dict):
        cumulative, weighted = gpa.get("cumulative"), gpa.get("weighted")
    else:
        cumulative, weighted = gpa, None

    return StudentInfo(
        name=data.get("name") or None,
        grade_level=_to_int(data.get("gradeLevel")),
        school=data.get("school") or None,
        gpa=_to_float(cumulative),
        weighted_gpa=_to_float(weighted),
        total_credits=_to_float(data.get("totalCreditsEarned")),
    )


def _parse_course(data: dict) -> Course:
    return Course(
        name=data.get("name"),
        grade=data.get("grade"),
        credits=data.get("credits"),
        year=data.get("year"),
        semester=data.get("semester"),
        status=data.get("status"),
        subject=data.get("subject"),
        is_honors=data.get("isHonors", False),
        is_ap=data.get("isAP", False),
    )


def parse_extraction_response(raw: str) -> ParsedStudentRecord:
    """
    Parse a model response into a ParsedStudentRecord.

    Code-fence wrapping is removed before parsing. Any structural problem
    yields an empty record with ``parse_error`` set.

    Example:
        >>> parse_extraction_response("not json").parse_error is not None
        True
    """
    try:
        data = json.loads(strip_code_fences(raw or ""))
        if not isinstance(data, dict) or not isinstance(data.get("courses"), list):
            raise ValueError("Invalid response structure: missing courses array")

        return ParsedStudentRecord(
            student=_parse_student(data.get("student")),
            courses=[_parse_course(c) for c in data["courses"] if isinstance(c, dict)],
        )

    except (json.JSONDecodeError, ValidationError, ValueError) as e:
        logger.error(f"Failed to parse extraction response as JSON: {e}")
        logger.error(f"Raw response: {truncate_text(raw or '', 500)}")
        return ParsedStudentRecord(parse_error=str(e))


# ─────────────────────────────────────────────────────────────────────────────
# Extractor
# ─────────────────────────────────────────────────────────────────────────────


class RecordExtractor:
    """
    Structured extraction through a language model.

    Example:
        >>> extractor = RecordExtractor(GeminiLanguageModel())
        >>> record = await extractor.extract(transcript_text)
        >>> len(record.courses)
    """

    def __init__(
        self,
        model: Optional[LanguageModel] = None,
        max_document_chars: Optional[int] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ):
        settings = get_settings()

        self.model = model
        self.max_document_chars = max_document_chars or settings.analysis.max_document_chars
        self.temperature = (
            temperature if temperature is not None else settings.generation.temperature
        )
        self.max_tokens = max_tokens or settings.generation.max_output_tokens

    async def extract(self, document_text: str) -> ParsedStudentRecord:
        """Run the extraction prompt and parse the response."""
        if self.model is None:
            logger.error("No language model configured for document extraction")
            return ParsedStudentRecord(parse_error="No language model configured")

        prompt = build_extraction_prompt(document_text, self.max_document_chars)

        try:
            raw = await self.model.generate(
                prompt,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
        except GenerationError as e:
            logger.error(f"Extraction request failed: {e}")
            return ParsedStudentRecord(parse_error=f"Extraction request failed: {e}")

        return parse_extraction_response(raw)
