"""
Marks Calculator
================

Final marks, percentage, grade and result for preview students, and the
student records the placeholder resolver fills templates from.
"""

import logging
import math
from enum import Enum
from typing import Any, Dict, List, Optional

from .formula_evaluator import FormulaError, evaluate_formula, formula_variables

logger = logging.getLogger(__name__)

PASS_PERCENTAGE = 40

GRADE_THRESHOLDS = [
    (90, "A+"),
    (80, "A"),
    (70, "B+"),
    (60, "B"),
    (50, "C"),
    (40, "D"),
]


class CalculationMode(str, Enum):
    SUM = "sum"
    AVERAGE = "average"
    CUSTOM = "custom"


def _mark_value(mark: Dict[str, Any], key: str, default: float) -> float:
    value = mark.get(key)
    try:
        return float(value) if value not in (None, "") else default
    except (TypeError, ValueError):
        return default


def calculate_final_marks(
    marks: List[Dict[str, Any]],
    mode: str = CalculationMode.SUM,
    custom_formula: Optional[str] = None
) -> float:
    """
    Combine a student's marks into one number.

    Args:
        marks: Mark records with "marks" and "maxMarks" (default 100)
        mode: "sum", "average" (percentage of max) or "custom"
        custom_formula: Formula used in custom mode

    Returns:
        Final marks; custom formulas that fail fall back to the total
    """
    if not marks:
        return 0.0

    obtained = [_mark_value(mark, "marks", 0) for mark in marks]
    maximum = [_mark_value(mark, "maxMarks", 100) for mark in marks]
    total = sum(obtained)
    total_max = sum(maximum)

    mode = CalculationMode(mode)
    if mode == CalculationMode.AVERAGE:
        return (total / total_max) * 100 if total_max > 0 else 0.0

    if mode == CalculationMode.CUSTOM and custom_formula:
        try:
            return evaluate_formula(custom_formula, formula_variables(obtained, maximum)) or 0.0
        except FormulaError as e:
            logger.warning(f"[MARKS] Custom formula failed, using total marks: {e}")
            return total

    return total


def percentage_of(obtained: float, maximum: float) -> int:
    """Whole-number percentage, 0 when there is no maximum."""
    if maximum <= 0:
        return 0
    return int(obtained / maximum * 100 + 0.5)


def grade_for(percentage: float) -> str:
    for threshold, grade in GRADE_THRESHOLDS:
        if percentage >= threshold:
            return grade
    return "F"


def result_for(percentage: float) -> str:
    return "Pass" if percentage >= PASS_PERCENTAGE else "Fail"


def _subject_name(subject: Dict[str, Any]) -> str:
    return subject.get("name") or subject.get("subjectName") or ""


def subjects_from_marks(marks: List[Dict[str, Any]], subjects: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Subjects that actually have marks, in first-seen order, one per name.

    Subject ids missing from `subjects` are named "Subject <id>".
    """
    by_id = {subject.get("subjectId"): subject for subject in subjects if subject.get("subjectId")}

    seen_names = set()
    result = []
    for mark in marks:
        subject_id = mark.get("subjectId")
        if not subject_id:
            continue
        info = by_id.get(subject_id, {})
        name = _subject_name(info) or f"Subject {subject_id}"
        if name in seen_names:
            continue
        seen_names.add(name)
        result.append({
            "subjectId": subject_id,
            "name": name,
            "maxMarks": info.get("maxMarks") or 100,
        })
    return result


def build_preview_students(
    students: List[Dict[str, Any]],
    marks: List[Dict[str, Any]],
    subjects: List[Dict[str, Any]],
    classes: List[Dict[str, Any]],
    limit: int = 10,
    calculation_mode: str = CalculationMode.SUM,
    custom_formula: Optional[str] = None
) -> List[Dict[str, Any]]:
    """
    Placeholder-ready student records for the preview.

    Marks are grouped per student; each record carries totals, percentage,
    grade, result, a rank by percentage and `marks_1..n` in the order the
    student's marks were recorded. `finalMarks` combines the marks
    with calculate_final_marks() in `calculation_mode`.

    Args:
        students: Records from /api/students
        marks: Records from /api/marks
        subjects: Records from /api/subjects
        classes: Records from /api/classes
        limit: Maximum number of students returned
        calculation_mode: "sum", "average" or "custom" for `finalMarks`
        custom_formula: Formula used in custom mode

    Returns:
        List of student dicts keyed by placeholder name
    """
    class_names = {
        cls.get("classId"): cls.get("name") or cls.get("className") or cls.get("classId")
        for cls in classes
    }
    subject_names = {subject.get("subjectId"): subject.get("name") for subject in subjects}

    grouped: Dict[Any, Dict[str, Any]] = {}
    for mark in marks:
        entry = grouped.setdefault(mark.get("studentId"), {"total": 0.0, "max": 0.0, "marks": [], "subjects": []})
        entry["marks"].append(mark)
        entry["total"] += _mark_value(mark, "marks", 0)
        entry["max"] += _mark_value(mark, "maxMarks", 100)
        entry["subjects"].append({
            "subjectId": mark.get("subjectId"),
            "name": subject_names.get(mark.get("subjectId")) or "",
            "marks": mark.get("marks"),
            "maxMarks": mark.get("maxMarks"),
        })

    records = []
    for index, student in enumerate(students[:limit]):
        entry = grouped.get(student.get("id"), {"total": 0.0, "max": 0.0, "marks": [], "subjects": []})
        percentage = percentage_of(entry["total"], entry["max"])
        final_marks = calculate_final_marks(entry["marks"], calculation_mode, custom_formula)

        record = {
            "id": student.get("id"),
            "studentId": student.get("studentId"),
            "studentName": student.get("name") or "Unknown",
            "fatherName": student.get("fatherName") or "-",
            "motherName": student.get("motherName") or "-",
            "rollNumber": student.get("studentId") or str(index + 1).zfill(3),
            "class": class_names.get(student.get("classId")) or student.get("classId") or "-",
            "classId": student.get("classId") or "",
            "section": student.get("section") or "-",
            "dob": student.get("dob") or "-",
            "email": student.get("email") or "-",
            "phone": student.get("phone") or "-",
            "address": student.get("address") or "-",
            "attendance": student.get("attendancePercentage") or "-",
            "totalMarks": _format_total(entry["total"]),
            "maxMarks": _format_total(entry["max"]),
            "finalMarks": _format_total(round(final_marks, 2)),
            "percentage": str(percentage),
            "grade": grade_for(percentage),
            "result": result_for(percentage),
            "rank": "-",
            "photo": student.get("photo"),
            "batch": student.get("batch") or "",
            "subjects": entry["subjects"],
        }
        for position, subject in enumerate(entry["subjects"], start=1):
            value = subject.get("marks")
            record[f"marks_{position}"] = "-" if value is None else _format_total(value)
        records.append(record)

    ranked = sorted(records, key=lambda record: int(record["percentage"]), reverse=True)
    for rank, record in enumerate(ranked, start=1):
        record["rank"] = str(rank)

    logger.info(f"[MARKS] Built {len(records)} preview student(s) from {len(marks)} mark record(s)")
    return records


def _format_total(value: Any) -> str:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return str(value)
    if math.isfinite(number) and number == int(number):
        return str(int(number))
    return str(number)
