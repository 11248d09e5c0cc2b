"""
Schemas Module - Pydantic data models for the application.
==========================================================

Defines all data contracts used across the application:
- Chunk and embedded-vector models for the retrieval index
- Retrieval result models
- Student record models produced by document analysis
- Gap analysis and analysis result models
"""

import math
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator


# ─────────────────────────────────────────────────────────────────────────────
# Enums
# ─────────────────────────────────────────────────────────────────────────────


class CourseStatus(str, Enum):
    """Where a course sits in a student's record."""

    COMPLETED = "completed"
    IN_PROGRESS = "in_progress"
    PLANNED = "planned"


class Subject(str, Enum):
    """Closed set of subject buckets used by the requirement rules."""

    MATH = "math"
    SCIENCE = "science"
    ENGLISH = "english"
    SOCIAL_STUDIES = "social_studies"
    LANGUAGE = "language"
    ARTS = "arts"
    PE = "pe"
    ELECTIVE = "elective"
    CTE = "cte"


class RequirementState(str, Enum):
    """Outcome of one graduation requirement check."""

    MET = "met"
    IN_PROGRESS = "in_progress"
    NOT_MET = "not_met"


class SearchTier(str, Enum):
    """Which retrieval tier produced the passages."""

    SEMANTIC = "semantic"
    LEXICAL = "lexical"
    LENIENT = "lenient"
    NONE = "none"


# ─────────────────────────────────────────────────────────────────────────────
# Chunk Data Models
# ─────────────────────────────────────────────────────────────────────────────


class Chunk(BaseModel):
    """
    A bounded span of document text prepared for embedding.

    The first ``overlap_length`` characters repeat the tail of the previous
    chunk from the same document; the rest is the chunk's own (core) text.
    """

    id: str = Field(..., description="Chunk identifier, stable within a processing run")
    text: str = Field(..., description="Chunk text including the leading overlap")
    source_tag: str = Field(..., description="Tag of the source document")
    index: int = Field(default=0, description="Position of the chunk in its document")
    overlap_length: int = Field(default=0, description="Length of the leading overlap")

    model_config = {"frozen": True}

    @property
    def overlap(self) -> str:
        """Text repeated from the previous chunk."""
        return self.text[: self.overlap_length]

    @property
    def core(self) -> str:
        """Text that belongs to this chunk only."""
        return self.text[self.overlap_length :]


class EmbeddedVector(BaseModel):
    """A chunk paired with its embedding vector (None when embedding failed)."""

    chunk: Chunk
    vector: Optional[list[float]] = None

    def is_well_formed(self, dimensions: Optional[int] = None) -> bool:
        """Check the vector is present, finite, non-zero and of the expected size."""
        if not self.vector:
            return False
        if dimensions is not None and len(self.vector) != dimensions:
            return False
        if not all(isinstance(x, (int, float)) and math.isfinite(x) for x in self.vector):
            return False
        return any(x != 0 for x in self.vector)


# ─────────────────────────────────────────────────────────────────────────────
# Retrieval Models
# ─────────────────────────────────────────────────────────────────────────────


class RetrievalHit(BaseModel):
    """A stored chunk scored against a query."""

    chunk_id: str = Field(..., description="Chunk identifier")
    text: str = Field(..., description="Chunk text content")
    score: float = Field(..., description="Cosine similarity score")
    source_tag: str = Field(default="", description="Source document tag")


class RetrievalResult(BaseModel):
    """Passages returned for a query along with the tier that produced them."""

    query: str
    passages: list[str] = Field(default_factory=list)
    tier: SearchTier = SearchTier.NONE
    hits: list[RetrievalHit] = Field(default_factory=list)

    model_config = {"use_enum_values": True}

    @property
    def is_empty(self) -> bool:
        return not self.passages


# ─────────────────────────────────────────────────────────────────────────────
# Student Record Models
# ─────────────────────────────────────────────────────────────────────────────


class StudentInfo(BaseModel):
    """Student-level fields extracted from a personal document."""

    name: Optional[str] = None
    grade_level: Optional[int] = None
    school: Optional[str] = None
    gpa: Optional[float] = Field(default=None, description="Cumulative GPA")
    weighted_gpa: Optional[float] = None
    total_credits: Optional[float] = None


class Course(BaseModel):
    """One course line from a transcript, report card or schedule."""

    name: str = "Unknown Course"
    grade: Optional[str] = None
    credits: Optional[float] = None
    year: Optional[str] = None
    semester: Optional[str] = None
    status: CourseStatus = CourseStatus.COMPLETED
    subject: Subject = Subject.ELECTIVE
    is_honors: bool = False
    is_ap: bool = False

    model_config = {"use_enum_values": True}

    @field_validator("name", mode="before")
    @classmethod
    def default_name(cls, v: Any) -> str:
        return str(v).strip() if v else "Unknown Course"

    @field_validator("grade", "year", "semester", mode="before")
    @classmethod
    def stringify(cls, v: Any) -> Optional[str]:
        if v is None or v == "":
            return None
        return str(v).strip()

    @field_validator("credits", mode="before")
    @classmethod
    def parse_credits(cls, v: Any) -> Optional[float]:
        try:
            return float(v) if v not in (None, "") else None
        except (TypeError, ValueError):
            return None

    @field_validator("status", mode="before")
    @classmethod
    def coerce_status(cls, v: Any) -> str:
        value = str(v or "").strip().lower().replace("-", "_").replace(" ", "_")
        if value in {s.value for s in CourseStatus}:
            return value
        return CourseStatus.COMPLETED.value

    @field_validator("subject", mode="before")
    @classmethod
    def coerce_subject(cls, v: Any) -> str:
        value = str(v or "").strip().lower().replace(" ", "_")
        if value in {s.value for s in Subject}:
            return value
        return Subject.ELECTIVE.value

    @field_validator("is_honors", "is_ap", mode="before")
    @classmethod
    def coerce_flag(cls, v: Any) -> bool:
        return bool(v)


class ParsedStudentRecord(BaseModel):
    """
    Output of the structured extraction stage.

    ``parse_error`` is set (and ``courses`` empty) when the model response
    could not be turned into the expected structure.
    """

    student: StudentInfo = Field(default_factory=StudentInfo)
    courses: list[Course] = Field(default_factory=list)
    parse_error: Optional[str] = None


# ─────────────────────────────────────────────────────────────────────────────
# Analysis Models
# ─────────────────────────────────────────────────────────────────────────────


class SubjectAverage(BaseModel):
    """Grade-point average for one subject."""

    subject: str
    avg_gpa: float


class CourseAnalysis(BaseModel):
    """Deterministic statistics over a parsed record."""

    completed_count: int = 0
    in_progress_count: int = 0
    completed_course_names: list[str] = Field(default_factory=list)
    in_progress_course_names: list[str] = Field(default_factory=list)
    all_taken_names: list[str] = Field(default_factory=list)
    by_subject: dict[str, list[Course]] = Field(default_factory=dict)
    strong_subjects: list[SubjectAverage] = Field(default_factory=list)
    weak_subjects: list[SubjectAverage] = Field(default_factory=list)
    ap_count: int = 0
    honors_count: int = 0
    total_credits: float = 0.0


class RequirementCheck(BaseModel):
    """Result of comparing one graduation requirement against the record."""

    category: str
    completed: int
    required: int
    remaining: int = 0
    credits_earned: float = 0.0
    credits_required: int = 0
    status: RequirementState

    model_config = {"use_enum_values": True}


class CollegeEntranceCheck(BaseModel):
    """Result of one college-entrance (A-G) requirement check."""

    category: str
    completed: int
    required: int
    met: bool


class GapAnalysisResult(BaseModel):
    """Graduation and college-entrance gap analysis. Never persisted."""

    missing_requirements: list[RequirementCheck] = Field(default_factory=list)
    completed_requirements: list[RequirementCheck] = Field(default_factory=list)
    ag_status: list[CollegeEntranceCheck] = Field(default_factory=list)
    estimated_grade_level: Optional[int] = None
    total_credits_needed: int = 220
    total_credits_earned: float = 0.0
    on_track: bool = False


class AnalysisResult(BaseModel):
    """Full output of the document analysis pipeline."""

    student: StudentInfo = Field(default_factory=StudentInfo)
    courses: list[Course] = Field(default_factory=list)
    parse_error: Optional[str] = None
    course_analysis: CourseAnalysis = Field(default_factory=CourseAnalysis)
    gap_analysis: GapAnalysisResult = Field(default_factory=GapAnalysisResult)
    briefing: str = ""
    document_filename: str = ""
    analyzed_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    processing_time_ms: float = 0.0
