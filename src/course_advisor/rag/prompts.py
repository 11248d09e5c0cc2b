"""
Prompts Module - Prompt templates and grounding context assembly.
=================================================================

Contains:
- The structured-extraction prompt for personal academic documents
- Grounding context assembly for the answer step, with an explicit
  no-information marker when nothing was retrieved
"""

from dataclasses import dataclass
from typing import Optional

from course_advisor.shared.logging import get_logger

logger = get_logger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Extraction Prompt
# ─────────────────────────────────────────────────────────────────────────────

TRUNCATION_MARKER = "[... truncated ...]"

EXTRACTION_PROMPT_TEMPLATE = """Parse this academic document and extract ALL course and student information into structured JSON format.

DOCUMENT TEXT:
{document_text}

Respond with ONLY valid JSON (no markdown, no commentary) in this exact format:
{{
  "student": {{
    "name": "Student Name or null if not found",
    "gradeLevel": 9/10/11/12 or null,
    "school": "School name or null",
    "gpa": {{
      "cumulative": number or null,
      "weighted": number or null
    }},
    "totalCreditsEarned": number or null
  }},
  "courses": [
    {{
      "name": "Course Name",
      "grade": "A/B/C/D/F or letter grade received",
      "credits": number or null,
      "year": "2024-2025 or similar",
      "semester": "Fall/Spring/S1/S2/Tri1/etc or null",
      "status": "completed/in_progress/planned",
      "subject": "math/science/english/social_studies/language/arts/pe/elective/cte",
      "isHonors": true/false,
      "isAP": true/false
    }}
  ]
}}

RULES:
- Extract EVERY course listed in the document
- If grade is missing, use null
- Determine subject category based on course name
- Mark AP courses (isAP: true) and Honors courses (isHonors: true)
- If currently taking a course (no grade yet), mark status as "in_progress"
- Best effort for all fields - use null when truly unknown"""


def truncate_document(text: str, max_chars: int) -> str:
    """Keep a bounded prefix of text, marking the cut when one is made."""
    if len(text) <= max_chars:
        return text
    return f"{text[:max_chars]}\n{TRUNCATION_MARKER}"


def build_extraction_prompt(document_text: str, max_chars: int = 6000) -> str:
    """
    Build the structured-extraction prompt for a personal document.

    Args:
        document_text: Raw uploaded document text
        max_chars: Length of the document prefix sent to the model

    Returns:
        Prompt text
    """
    return EXTRACTION_PROMPT_TEMPLATE.format(
        document_text=truncate_document(document_text, max_chars)
    )


# ─────────────────────────────────────────────────────────────────────────────
# Grounding Context
# ─────────────────────────────────────────────────────────────────────────────

NO_INFORMATION_MESSAGE = (
    "I couldn't find any specific information about that in the course catalog."
)


@dataclass
class GroundingContext:
    """Context handed to the answer-generation step."""

    text: str
    has_grounding: bool
    passage_count: int = 0
    student_source: str = "none"  # briefing | document | none


def build_grounding_context(
    passages: list[str],
    briefing: Optional[str] = None,
    document_text: Optional[str] = None,
    max_document_chars: int = 6000,
) -> GroundingContext:
    """
    Assemble grounding context from retrieved passages and student data.

    The analysis briefing is preferred over the raw document text; the raw
    text is only used when no briefing is available.

    Args:
        passages: Retrieved catalog passages
        briefing: Structured analysis briefing, if analysis succeeded
        document_text: Raw personal document text, used as a weaker fallback
        max_document_chars: Prefix length kept from document_text

    Returns:
        GroundingContext; ``has_grounding`` is False when nothing was found
    """
    student_section = ""
    student_source = "none"

    if briefing and briefing.strip():
        student_section = f"STUDENT RECORD ANALYSIS:\n{briefing.strip()}"
        student_source = "briefing"
    elif document_text and document_text.strip():
        student_section = (
            "STUDENT DOCUMENT:\n"
            f"{truncate_document(document_text.strip(), max_document_chars)}"
        )
        student_source = "document"

    passages = [p for p in passages if p and p.strip()]

    if not passages and not student_section:
        logger.info("No grounding data available")
        return GroundingContext(text=NO_INFORMATION_MESSAGE, has_grounding=False)

    catalog_text = "\n\n".join(passages) if passages else NO_INFORMATION_MESSAGE
    sections = [f"COURSE CATALOG INFORMATION:\n{catalog_text}"]
    if student_section:
        sections.append(student_section)

    return GroundingContext(
        text="\n\n".join(sections),
        has_grounding=True,
        passage_count=len(passages),
        student_source=student_source,
    )
