"""
Course Analysis Module - Stage 2: deterministic course statistics.
=================================================================

Partitions courses by status, groups them by subject, and flags strong
and weak subjects from letter-grade averages.
"""

from typing import Optional

from course_advisor.shared.schemas import (
    CourseAnalysis,
    CourseStatus,
    ParsedStudentRecord,
    SubjectAverage,
)

GRADE_POINTS: dict[str, float] = {
    "A+": 4.0, "A": 4.0, "A-": 3.7,
    "B+": 3.3, "B": 3.0, "B-": 2.7,
    "C+": 2.3, "C": 2.0, "C-": 1.7,
    "D+": 1.3, "D": 1.0, "D-": 0.7,
    "F": 0.0,
}

STRONG_THRESHOLD = 3.5
WEAK_THRESHOLD = 2.5


def grade_points(grade: Optional[str]) -> Optional[float]:
    """Points for a letter grade, or None when the grade is missing or unknown."""
    if not grade:
        return None
    return GRADE_POINTS.get(grade.strip().upper())


def analyze_courses(record: ParsedStudentRecord) -> CourseAnalysis:
    """
    Compute statistics over a parsed record.

    Subject averages use every course in the subject that has a recognized
    letter grade. Credits are summed over completed courses only.
    """
    courses = record.courses
    completed = [c for c in courses if c.status == CourseStatus.COMPLETED.value]
    in_progress = [c for c in courses if c.status == CourseStatus.IN_PROGRESS.value]

    completed_names = [c.name.lower().strip() for c in completed]
    in_progress_names = [c.name.lower().strip() for c in in_progress]

    by_subject: dict[str, list] = {}
    for course in courses:
        by_subject.setdefault(course.subject, []).append(course)

    strong: list[SubjectAverage] = []
    weak: list[SubjectAverage] = []

    for subject, subject_courses in by_subject.items():
        points = [p for p in (grade_points(c.grade) for c in subject_courses) if p is not None]
        if not points:
            continue
        average = round(sum(points) / len(points), 2)
        if average >= STRONG_THRESHOLD:
            strong.append(SubjectAverage(subject=subject, avg_gpa=average))
        if average < WEAK_THRESHOLD:
            weak.append(SubjectAverage(subject=subject, avg_gpa=average))

    return CourseAnalysis(
        completed_count=len(completed),
        in_progress_count=len(in_progress),
        completed_course_names=completed_names,
        in_progress_course_names=in_progress_names,
        all_taken_names=completed_names + in_progress_names,
        by_subject=by_subject,
        strong_subjects=strong,
        weak_subjects=weak,
        ap_count=sum(1 for c in courses if c.is_ap),
        honors_count=sum(1 for c in courses if c.is_honors),
        total_credits=sum(c.credits or 0.0 for c in completed),
    )
