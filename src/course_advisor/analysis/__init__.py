"""
Analysis Module - Personal academic document analysis.
======================================================

Four sequential stages:

- extraction: Language model → structured student/course records
- course_analysis: Status partition, subject grouping, grade averages
- requirements: Graduation and A-G requirement gap analysis
- briefing: Structured text briefing for answer generation

pipeline.DocumentAnalyzer runs all four and caches results per document.
"""

from course_advisor.analysis.extraction import RecordExtractor, parse_extraction_response
from course_advisor.analysis.course_analysis import GRADE_POINTS, analyze_courses
from course_advisor.analysis.requirements import (
    COLLEGE_ENTRANCE_REQUIREMENTS,
    GRADUATION_REQUIREMENTS,
    RequirementsEngine,
    analyze_gaps,
)
from course_advisor.analysis.briefing import build_briefing
from course_advisor.analysis.pipeline import DocumentAnalyzer

__all__ = [
    "RecordExtractor",
    "parse_extraction_response",
    "GRADE_POINTS",
    "analyze_courses",
    "GRADUATION_REQUIREMENTS",
    "COLLEGE_ENTRANCE_REQUIREMENTS",
    "RequirementsEngine",
    "analyze_gaps",
    "build_briefing",
    "DocumentAnalyzer",
]
