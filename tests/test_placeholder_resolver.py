"""
Placeholder Resolver Tests
==========================
"""

from marksheet_labs.models.document_models import TemplateDocument
from marksheet_labs.models.element_models import SubjectRow, create_element
from marksheet_labs.models.keyset_models import KeySet
from marksheet_labs.services.placeholder_resolver import (
    PlaceholderResolver,
    ResolutionContext,
    resolve_placeholders,
)


def test_student_fields_resolve_directly(student):
    assert resolve_placeholders("Name: {{studentName}}, {{class}}", student) == "Name: Asha Rao, Grade 5"


def test_unknown_tokens_are_left_in_place(student):
    assert resolve_placeholders("{{studentName}} {{nickname}}", student) == "Asha Rao {{nickname}}"


def test_student_keys_are_case_sensitive(student):
    assert resolve_placeholders("{{StudentName}}", student) == "{{StudentName}}"


def test_no_context_returns_text_unchanged():
    assert resolve_placeholders("{{studentName}}") == "{{studentName}}"
    assert resolve_placeholders(None) is None
    assert resolve_placeholders("") == ""


def test_substituted_values_are_not_rescanned():
    student = {"motto": "{{secret}}", "secret": "hidden"}
    assert resolve_placeholders("{{motto}}", student) == "{{secret}}"


def test_key_set_manual_key_wins_over_student_field(student):
    key_set = KeySet.model_validate({
        "_id": "k",
        "manualKeys": [{"id": "name", "placeholder": "{{studentName}}"}],
    })
    student = dict(student, name="A. Rao")
    assert resolve_placeholders("{{studentName}}", student, key_set) == "A. Rao"


def test_manual_key_falls_back_to_known_field():
    key_set = KeySet.model_validate({
        "manualKeys": [{"id": "rollNumber", "placeholder": "{{roll}}"}],
    })
    assert resolve_placeholders("{{roll}}", {"studentId": "R-7"}, key_set) == "R-7"


def test_empty_mapped_value_does_not_override(student):
    key_set = KeySet.model_validate({
        "manualKeys": [{"id": "nickname", "placeholder": "{{class}}"}],
    })
    student = dict(student, nickname="")
    assert resolve_placeholders("{{class}}", student, key_set) == "Grade 5"


def test_key_set_without_student_resolves_nothing(key_set):
    assert resolve_placeholders("{{mathMarks}}", None, key_set) == "{{mathMarks}}"


def test_subject_mark_and_calculation_keys(student, key_set):
    text = "{{father}} {{mathMarks}} {{averageMarks}}"
    assert resolve_placeholders(text, student, key_set) == "Vikram Rao 90 80"


def test_subject_name_match_ignores_case(student):
    key_set = KeySet.model_validate({
        "testBasedKeys": [{"id": "e", "placeholder": "{{eng}}", "subjectName": "ENGLISH"}],
    })
    assert resolve_placeholders("{{eng}}", student, key_set) == "70"


def test_calculation_key_for_one_subject(student):
    key_set = KeySet.model_validate({
        "calculationKeys": [{
            "id": "pct",
            "placeholder": "{{englishPct}}",
            "subjectName": "English",
            "calculationConfig": {"formula": "sum / totalMaxMarks * 100"},
        }],
    })
    assert resolve_placeholders("{{englishPct}}%", student, key_set) == "70%"


def test_formula_error_is_reported_and_token_kept(student):
    key_set = KeySet.model_validate({
        "calculationKeys": [{
            "id": "bad",
            "placeholder": "{{bad}}",
            "calculationConfig": {"formula": "sum / 0"},
        }],
    })
    resolver = PlaceholderResolver(ResolutionContext(student=student, key_set=key_set))
    assert resolver.resolve("{{bad}}") == "{{bad}}"
    assert len(resolver.errors) == 1
    assert "Division by zero" in resolver.errors[0]


def test_absent_marks_count_as_zero_in_formulas(key_set):
    student = {"subjects": [
        {"name": "Mathematics", "marks": "AB"},
        {"name": "English", "marks": 80},
        {"name": "Science", "marks": None},
    ]}
    resolver = PlaceholderResolver(ResolutionContext(student=student, key_set=key_set))
    assert resolver.resolve("{{averageMarks}}") == "26.67"
    assert resolver.resolve("{{mathMarks}}") == "AB"
    assert resolver.errors == []


def test_subject_context():
    subject = {"subjectName": "Physics", "subjectId": "p1"}
    text = "{{subjectName}} / {{subject.name}} / {{subjectId}}"
    assert resolve_placeholders(text, subject=subject) == "Physics / Physics / p1"


def test_student_field_wins_over_subject_context():
    assert resolve_placeholders("{{subjectName}}", {"subjectName": "Art"}, subject={"name": "Music"}) == "Art"


def test_numbers_and_booleans_are_stringified():
    student = {"attendance": 92.5, "rank": 3, "passed": True}
    assert resolve_placeholders("{{attendance}} {{rank}} {{passed}}", student) == "92.50 3 true"


def test_resolve_document_touches_text_tables_and_subjects(student):
    table = create_element("table", "t", rows=1, cols=2, headers=["{{class}}", "Roll"], data=[["{{studentId}}", "x"]])
    subjects = create_element("subjects_table", "s", subjects=[
        SubjectRow(id=1, name="Math").model_dump(by_alias=True),
    ])
    document = TemplateDocument(
        elements=[create_element("student_name", "n"), table, subjects, create_element("box", "b")],
        institution_name="{{school}}",
    )
    resolver = PlaceholderResolver(ResolutionContext(student=dict(student, school="Green Valley", marks_1="90")))
    resolved = resolver.resolve_document(document)

    assert resolved.find("n").content == "Asha Rao"
    assert resolved.find("t").headers == ["Grade 5", "Roll"]
    assert resolved.find("t").data == [["R-101", "x"]]
    assert resolved.find("s").subjects[0].marks_placeholder == "90"
    assert resolved.find("b") == document.find("b")
    assert resolved.institution_name == "Green Valley"
    assert document.find("n").content == "{{studentName}}"
