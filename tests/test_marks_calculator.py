"""
Marks Calculator Tests
======================
"""

import pytest

from marksheet_labs.services.marks_calculator import (
    build_preview_students,
    calculate_final_marks,
    grade_for,
    percentage_of,
    result_for,
    subjects_from_marks,
)

MARKS = [
    {"studentId": "s1", "subjectId": "m", "marks": 90, "maxMarks": 100},
    {"studentId": "s1", "subjectId": "e", "marks": 70, "maxMarks": 100},
    {"studentId": "s2", "subjectId": "m", "marks": 30, "maxMarks": 100},
]

SUBJECTS = [
    {"subjectId": "m", "name": "Mathematics"},
    {"subjectId": "e", "name": "English"},
]


def test_final_marks_modes():
    marks = [{"marks": 40, "maxMarks": 50}, {"marks": 30, "maxMarks": 50}]
    assert calculate_final_marks(marks) == 70
    assert calculate_final_marks(marks, "average") == pytest.approx(70)
    assert calculate_final_marks(marks, "custom", "sum * 2") == 140


def test_final_marks_custom_formula_falls_back_to_total():
    marks = [{"marks": 40}, {"marks": "n/a"}]
    assert calculate_final_marks(marks, "custom", "bogus + 1") == 40


def test_final_marks_without_marks():
    assert calculate_final_marks([]) == 0


def test_percentage_of_rounds_half_up():
    assert percentage_of(2, 3) == 67
    assert percentage_of(1, 3) == 33
    assert percentage_of(5, 0) == 0


@pytest.mark.parametrize("percentage, grade", [
    (95, "A+"), (90, "A+"), (85, "A"), (72, "B+"), (60, "B"), (55, "C"), (40, "D"), (39, "F"),
])
def test_grade_for(percentage, grade):
    assert grade_for(percentage) == grade


def test_result_for():
    assert result_for(40) == "Pass"
    assert result_for(39.9) == "Fail"


def test_subjects_from_marks_keeps_first_seen_order():
    marks = MARKS + [{"studentId": "s3", "subjectId": "x", "marks": 10}]
    assert subjects_from_marks(marks, SUBJECTS) == [
        {"subjectId": "m", "name": "Mathematics", "maxMarks": 100},
        {"subjectId": "e", "name": "English", "maxMarks": 100},
        {"subjectId": "x", "name": "Subject x", "maxMarks": 100},
    ]


def test_build_preview_students():
    students = [
        {"id": "s2", "name": "Ben", "classId": "c5"},
        {"id": "s1", "name": "Asha", "studentId": "R-1", "classId": "c5", "fatherName": "Vikram"},
    ]
    classes = [{"classId": "c5", "name": "Grade 5"}]
    ben, asha = build_preview_students(students, MARKS, SUBJECTS, classes)

    assert asha["studentName"] == "Asha"
    assert asha["rollNumber"] == "R-1"
    assert asha["class"] == "Grade 5"
    assert asha["fatherName"] == "Vikram"
    assert asha["totalMarks"] == "160"
    assert asha["maxMarks"] == "200"
    assert asha["percentage"] == "80"
    assert asha["grade"] == "A"
    assert asha["result"] == "Pass"
    assert asha["rank"] == "1"
    assert asha["marks_1"] == "90"
    assert asha["marks_2"] == "70"
    assert asha["subjects"][0]["name"] == "Mathematics"

    assert ben["rollNumber"] == "001"
    assert ben["fatherName"] == "-"
    assert ben["percentage"] == "30"
    assert ben["result"] == "Fail"
    assert ben["rank"] == "2"


def test_build_preview_students_without_marks_and_limit():
    students = [{"id": f"s{index}", "name": f"Student {index}"} for index in range(15)]
    records = build_preview_students(students, [], [], [])
    assert len(records) == 10
    assert records[0]["percentage"] == "0"
    assert records[0]["grade"] == "F"
    assert records[0]["class"] == "-"
    assert records[0]["finalMarks"] == "0"


@pytest.mark.parametrize("mode, formula, expected", [
    ("sum", None, "160"),
    ("average", None, "80"),
    ("custom", "sum / count", "80"),
    ("custom", "sum / nothing", "160"),
])
def test_preview_final_marks_follow_calculation_mode(mode, formula, expected):
    students = [{"id": "s1", "name": "Asha"}]
    (asha,) = build_preview_students(students, MARKS, SUBJECTS, [], calculation_mode=mode, custom_formula=formula)
    assert asha["finalMarks"] == expected
    assert asha["totalMarks"] == "160"


def test_preview_absent_marks_count_as_zero():
    marks = [
        {"studentId": "s1", "subjectId": "m", "marks": "AB", "maxMarks": 100},
        {"studentId": "s1", "subjectId": "e", "marks": 70, "maxMarks": 100},
    ]
    (asha,) = build_preview_students([{"id": "s1", "name": "Asha"}], marks, SUBJECTS, [], calculation_mode="average")
    assert asha["finalMarks"] == "35"
    assert asha["marks_1"] == "AB"
