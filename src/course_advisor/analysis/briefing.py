"""
Briefing Module - Stage 4: structured text summary of an analysis.
==================================================================

Renders the parsed record, course statistics and gap analysis as a stable,
sectioned plain-text briefing. The briefing is grounding context for the
answer step, so sections always appear in the same order.
"""

from course_advisor.shared.schemas import (
    CourseAnalysis,
    CourseStatus,
    GapAnalysisResult,
    ParsedStudentRecord,
)

RECOMMENDATION_RULES: tuple[str, ...] = (
    "NEVER recommend any course listed above as completed or in-progress",
    "PRIORITIZE courses that fill graduation requirement gaps",
    "Suggest honors/AP in strong subjects, standard level in weak areas",
    "Only recommend courses from the course catalog",
    "Follow prerequisite chains (recommend the NEXT course in sequence)",
)


def _number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def _tags(course) -> str:
    return (" [AP]" if course.is_ap else "") + (" [Honors]" if course.is_honors else "")


def build_briefing(
    record: ParsedStudentRecord,
    analysis: CourseAnalysis,
    gaps: GapAnalysisResult,
) -> str:
    """
    Build the analysis briefing.

    Section order: student summary, completed courses, in-progress courses,
    strong subjects, weak subjects, graduation gaps, unmet A-G categories,
    recommendation rules. Empty optional sections are omitted.
    """
    student = record.student
    lines = ["=== STRUCTURED TRANSCRIPT ANALYSIS ===", ""]

    if student.name:
        lines.append(f"Student: {student.name}")
    if student.grade_level:
        lines.append(f"Grade Level: {student.grade_level}")
    if student.gpa:
        lines.append(f"Cumulative GPA: {_number(student.gpa)}")
    if student.weighted_gpa:
        lines.append(f"Weighted GPA: {_number(student.weighted_gpa)}")
    if analysis.total_credits:
        lines.append(f"Credits Earned: {_number(analysis.total_credits)}")
    lines.append(f"AP Courses Taken: {analysis.ap_count}")
    lines.append(f"Honors Courses Taken: {analysis.honors_count}")
    lines.append("")

    lines.append("=== COURSES ALREADY COMPLETED (DO NOT RECOMMEND THESE) ===")
    for course in record.courses:
        if course.status == CourseStatus.COMPLETED.value:
            grade = f" - Grade: {course.grade}" if course.grade else ""
            lines.append(f"  ✓ {course.name}{_tags(course)}{grade}")
    lines.append("")

    in_progress = [c for c in record.courses if c.status == CourseStatus.IN_PROGRESS.value]
    if in_progress:
        lines.append("=== COURSES CURRENTLY IN PROGRESS (DO NOT RECOMMEND THESE) ===")
        for course in in_progress:
            lines.append(f"  → {course.name}{_tags(course)}")
        lines.append("")

    if analysis.strong_subjects:
        lines.append("=== STRONG SUBJECTS (suggest advanced/AP courses) ===")
        for entry in analysis.strong_subjects:
            lines.append(f"  ★ {entry.subject} (avg GPA: {_number(entry.avg_gpa)})")
        lines.append("")

    if analysis.weak_subjects:
        lines.append("=== AREAS NEEDING SUPPORT (suggest appropriate-level courses) ===")
        for entry in analysis.weak_subjects:
            lines.append(f"  ⚠ {entry.subject} (avg GPA: {_number(entry.avg_gpa)})")
        lines.append("")

    if gaps.missing_requirements:
        lines.append("=== GRADUATION REQUIREMENT GAPS (prioritize these) ===")
        for gap in gaps.missing_requirements:
            line = (
                f"  ✗ {gap.category}: needs {gap.remaining} more year(s) "
                f"({gap.completed}/{gap.required} completed)"
            )
            if gap.credits_required:
                line += (
                    f"; {_number(gap.credits_earned)}/{gap.credits_required} credits"
                )
            lines.append(line)
        lines.append("")

    unmet = [entry for entry in gaps.ag_status if not entry.met]
    if unmet:
        lines.append("=== UC/CSU A-G REQUIREMENTS NOT YET MET ===")
        for entry in unmet:
            lines.append(f"  ✗ {entry.category}: {entry.completed}/{entry.required} years completed")
        lines.append("")

    lines.append("=== RECOMMENDATION RULES ===")
    for number, rule in enumerate(RECOMMENDATION_RULES, start=1):
        lines.append(f"{number}. {rule}")

    return "\n".join(lines)
