"""
Placeholder Resolver
====================

Substitutes `{{key}}` tokens in element content with values from the
selected student, the active key set and the current subject.

Lookup precedence, highest first:
1. key-set mapping (manual, subject-mark and calculation keys)
2. direct property of the student record (case-sensitive)
3. subject context (subjectName, subject.name, subjectId)
Tokens without a value are left untouched. All keys are replaced in a
single pass, so a substituted value is never scanned again.
"""

import logging
import re
from typing import Any, Dict, List, Optional, Pattern

from pydantic import BaseModel

from ..models.document_models import TemplateDocument
from ..models.element_models import (
    ElementBase,
    GenericElement,
    SubjectsTableElement,
    TableElement,
    TextualElement,
)
from ..models.keyset_models import CalculationKey, KeySet
from .formula_evaluator import format_number, formula_variables, try_evaluate

logger = logging.getLogger(__name__)

# Manual key id -> student field tried when the id itself is missing
MANUAL_KEY_FALLBACKS = {
    "studentName": "name",
    "phoneNumber": "phone",
    "rollNumber": "studentId",
}


def stringify(value: Any) -> str:
    """Placeholder text for a record value."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return format_number(value)
    return str(value)


class ResolutionContext(BaseModel):
    """Everything placeholders can be resolved against."""
    student: Optional[Dict[str, Any]] = None
    key_set: Optional[KeySet] = None
    subject: Optional[Dict[str, Any]] = None


class PlaceholderResolver:
    """Resolves placeholders for one context; build once, apply many times."""

    def __init__(self, context: Optional[ResolutionContext] = None):
        self.context = context or ResolutionContext()
        self.errors: List[str] = []
        self.lookup = self._build_lookup()
        self._pattern = self._compile(self.lookup)

    # ------------------------------------------------------------------
    # Lookup table
    # ------------------------------------------------------------------

    def _build_lookup(self) -> Dict[str, str]:
        lookup: Dict[str, str] = {}
        lookup.update(self._subject_values())
        lookup.update(self._student_values())
        lookup.update(self._key_set_values())
        return lookup

    def _subject_values(self) -> Dict[str, str]:
        subject = self.context.subject or {}
        values = {}
        name = subject.get("subjectName") or subject.get("name")
        if name:
            values["subjectName"] = str(name)
            values["subject.name"] = str(name)
        if subject.get("subjectId"):
            values["subjectId"] = str(subject["subjectId"])
        return values

    def _student_values(self) -> Dict[str, str]:
        student = self.context.student or {}
        return {
            key: stringify(value)
            for key, value in student.items()
            if value is not None and not isinstance(value, (dict, list))
        }

    def _key_set_values(self) -> Dict[str, str]:
        student = self.context.student
        key_set = self.context.key_set
        if student is None or key_set is None:
            return {}

        values: Dict[str, str] = {}
        for key in key_set.manual_keys:
            value = student.get(key.id)
            if value is None and key.id in MANUAL_KEY_FALLBACKS:
                value = student.get(MANUAL_KEY_FALLBACKS[key.id])
            self._put(values, key.placeholder_key, value)

        for key in key_set.test_based_keys:
            subject = self._student_subject(key.subject_name)
            if subject is not None:
                self._put(values, key.placeholder_key, subject.get("marks"))

        for key in key_set.calculation_keys:
            self._put(values, key.placeholder_key, self._calculate(key))

        return values

    @staticmethod
    def _put(values: Dict[str, str], key: str, value: Any) -> None:
        # Empty mapped values never override lower-precedence data
        if value is None:
            return
        text = stringify(value)
        if text != "":
            values[key] = text

    def _student_subjects(self) -> List[Dict[str, Any]]:
        subjects = (self.context.student or {}).get("subjects") or []
        return [subject for subject in subjects if isinstance(subject, dict)]

    def _student_subject(self, subject_name: Optional[str]) -> Optional[Dict[str, Any]]:
        if not subject_name:
            return None
        wanted = subject_name.lower()
        for subject in self._student_subjects():
            names = (subject.get("name") or "", subject.get("subjectName") or "")
            if wanted in (name.lower() for name in names):
                return subject
        return None

    def _calculate(self, key: CalculationKey) -> Optional[str]:
        config = key.calculation_config
        if config is None or not config.formula:
            return None

        subjects = self._student_subjects()
        if key.subject_name:
            subject = self._student_subject(key.subject_name)
            subjects = [subject] if subject is not None else []

        variables = formula_variables(
            [subject.get("marks") for subject in subjects],
            [subject.get("maxMarks") or 100 for subject in subjects],
        )
        result = try_evaluate(config.formula, variables)
        if not result.success:
            self.errors.append(f"{key.placeholder_key}: {result.error}")
            return None
        return format_number(result.value)

    @staticmethod
    def _compile(lookup: Dict[str, str]) -> Optional[Pattern]:
        if not lookup:
            return None
        keys = sorted(lookup, key=len, reverse=True)
        return re.compile("|".join(re.escape("{{%s}}" % key) for key in keys))

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def resolve(self, text: Optional[str]) -> Optional[str]:
        """Replace every known `{{key}}` in text."""
        if not text or self._pattern is None:
            return text
        return self._pattern.sub(lambda match: self.lookup[match.group(0)[2:-2]], text)

    def resolve_element(self, element: ElementBase) -> ElementBase:
        """Copy of the element with its visible text resolved."""
        if isinstance(element, (TextualElement, GenericElement)):
            return element.model_copy(update={"content": self.resolve(element.content)})

        if isinstance(element, TableElement):
            return element.model_copy(update={
                "headers": [self.resolve(header) for header in element.headers],
                "data": [[self.resolve(cell) for cell in row] for row in element.data],
            })

        if isinstance(element, SubjectsTableElement):
            subjects = [
                subject.model_copy(update={
                    "name": self.resolve(subject.name),
                    "marks_placeholder": self.resolve(subject.marks_placeholder),
                })
                for subject in element.subjects
            ]
            return element.model_copy(update={"subjects": subjects})

        return element

    def resolve_document(self, document: TemplateDocument) -> TemplateDocument:
        """Copy of the document with every element resolved."""
        return document.model_copy(update={
            "elements": [self.resolve_element(element) for element in document.elements],
            "institution_name": self.resolve(document.institution_name),
            "subtitle": self.resolve(document.subtitle),
        })


def resolve_placeholders(
    text: Optional[str],
    student: Optional[Dict[str, Any]] = None,
    key_set: Optional[KeySet] = None,
    subject: Optional[Dict[str, Any]] = None
) -> Optional[str]:
    """
    Convenience function to resolve one string.

    Args:
        text: Content with `{{key}}` tokens
        student: Selected student record
        key_set: Active key set
        subject: Subject context with subjectName/subjectId

    Returns:
        Text with every resolvable token replaced
    """
    context = ResolutionContext(student=student, key_set=key_set, subject=subject)
    return PlaceholderResolver(context).resolve(text)
