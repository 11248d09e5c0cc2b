"""
Requirements Module - Stage 3: graduation and college-entrance gap analysis.
===========================================================================

Two independent rule tables are evaluated against the subject groups from
stage 2:
- GRADUATION_REQUIREMENTS: met / in_progress / not_met per category
- COLLEGE_ENTRANCE_REQUIREMENTS (UC/CSU A-G): met when enough courses were taken

The tables use their own subject mappings and are not reconciled with each
other.
"""

from dataclasses import dataclass
from typing import Iterable, Optional

from course_advisor.shared.config import get_settings
from course_advisor.shared.schemas import (
    CollegeEntranceCheck,
    CourseAnalysis,
    CourseStatus,
    GapAnalysisResult,
    ParsedStudentRecord,
    RequirementCheck,
    RequirementState,
    Subject,
)


@dataclass(frozen=True)
class GraduationRequirement:
    category: str
    subject: Subject
    years_required: int
    credits_required: int = 0


@dataclass(frozen=True)
class CollegeEntranceRequirement:
    category: str
    subject: Subject
    years_required: int


GRADUATION_REQUIREMENTS: tuple[GraduationRequirement, ...] = (
    GraduationRequirement("English", Subject.ENGLISH, 4, 40),
    GraduationRequirement("Math", Subject.MATH, 3, 30),
    GraduationRequirement("Science", Subject.SCIENCE, 2, 20),
    GraduationRequirement("Social Studies", Subject.SOCIAL_STUDIES, 3, 30),
    GraduationRequirement("World Language", Subject.LANGUAGE, 1, 10),
    GraduationRequirement("PE", Subject.PE, 2, 20),
    GraduationRequirement("Visual/Performing Arts", Subject.ARTS, 1, 10),
    GraduationRequirement("CTE/Elective", Subject.CTE, 0, 0),
)

COLLEGE_ENTRANCE_REQUIREMENTS: tuple[CollegeEntranceRequirement, ...] = (
    CollegeEntranceRequirement("A - History/Social Science", Subject.SOCIAL_STUDIES, 2),
    CollegeEntranceRequirement("B - English", Subject.ENGLISH, 4),
    CollegeEntranceRequirement("C - Mathematics", Subject.MATH, 3),
    CollegeEntranceRequirement("D - Laboratory Science", Subject.SCIENCE, 2),
    CollegeEntranceRequirement("E - Language Other Than English", Subject.LANGUAGE, 2),
    CollegeEntranceRequirement("F - Visual/Performing Arts", Subject.ARTS, 1),
    CollegeEntranceRequirement("G - College Prep Elective", Subject.ELECTIVE, 1),
)


class RequirementsEngine:
    """
    Deterministic rules engine over a parsed record.

    Example:
        >>> engine = RequirementsEngine()
        >>> gaps = engine.evaluate(record, analyze_courses(record))
        >>> gaps.on_track
    """

    def __init__(
        self,
        graduation: Optional[Iterable[GraduationRequirement]] = None,
        college_entrance: Optional[Iterable[CollegeEntranceRequirement]] = None,
        total_credits_needed: Optional[int] = None,
    ):
        self.graduation = tuple(graduation) if graduation is not None else GRADUATION_REQUIREMENTS
        self.college_entrance = (
            tuple(college_entrance)
            if college_entrance is not None
            else COLLEGE_ENTRANCE_REQUIREMENTS
        )
        self.total_credits_needed = (
            total_credits_needed
            if total_credits_needed is not None
            else get_settings().analysis.total_credits_needed
        )

    def check_graduation(
        self, requirement: GraduationRequirement, analysis: CourseAnalysis
    ) -> RequirementCheck:
        courses = analysis.by_subject.get(requirement.subject.value, [])
        done = [c for c in courses if c.status == CourseStatus.COMPLETED.value]
        completed = len(done)
        total = len(courses)
        required = requirement.years_required
        # Credits are informational; status is decided by years alone
        credits = {
            "credits_earned": float(sum(c.credits or 0 for c in done)),
            "credits_required": requirement.credits_required,
        }

        if completed >= required:
            return RequirementCheck(
                category=requirement.category,
                completed=completed,
                required=required,
                status=RequirementState.MET,
                **credits,
            )
        if total >= required:
            return RequirementCheck(
                category=requirement.category,
                completed=completed,
                required=required,
                status=RequirementState.IN_PROGRESS,
                **credits,
            )
        # not_met reports every attempted course, not only completed ones
        return RequirementCheck(
            category=requirement.category,
            completed=total,
            required=required,
            remaining=required - total,
            status=RequirementState.NOT_MET,
            **credits,
        )

    def check_college_entrance(
        self, requirement: CollegeEntranceRequirement, analysis: CourseAnalysis
    ) -> CollegeEntranceCheck:
        total = len(analysis.by_subject.get(requirement.subject.value, []))
        return CollegeEntranceCheck(
            category=requirement.category,
            completed=total,
            required=requirement.years_required,
            met=total >= requirement.years_required,
        )

    def evaluate(
        self, record: ParsedStudentRecord, analysis: CourseAnalysis
    ) -> GapAnalysisResult:
        """Run both rule tables and summarize the gaps."""
        missing: list[RequirementCheck] = []
        satisfied: list[RequirementCheck] = []

        for requirement in self.graduation:
            check = self.check_graduation(requirement, analysis)
            if check.status == RequirementState.NOT_MET.value:
                missing.append(check)
            else:
                satisfied.append(check)

        ag_status = [
            self.check_college_entrance(requirement, analysis)
            for requirement in self.college_entrance
        ]

        return GapAnalysisResult(
            missing_requirements=missing,
            completed_requirements=satisfied,
            ag_status=ag_status,
            estimated_grade_level=record.student.grade_level,
            total_credits_needed=self.total_credits_needed,
            total_credits_earned=analysis.total_credits,
            on_track=not missing,
        )


def analyze_gaps(record: ParsedStudentRecord, analysis: CourseAnalysis) -> GapAnalysisResult:
    """Evaluate the default rule tables."""
    return RequirementsEngine().evaluate(record, analysis)
