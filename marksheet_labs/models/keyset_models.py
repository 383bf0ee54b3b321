"""
Key Set Models for Marksheet Labs
==================================

Saved placeholder key sets, as returned by
GET /api/data-field-keys?custom=true under "savedKeys".
"""

from typing import List, Optional
from pydantic import BaseModel, Field

from .element_models import WIRE_CONFIG


def strip_braces(placeholder: Optional[str]) -> str:
    """"{{studentName}}" -> "studentName"."""
    return (placeholder or "").replace("{", "").replace("}", "")


class FieldKey(BaseModel):
    """Common shape of every key in a key set."""
    model_config = WIRE_CONFIG

    id: str
    label: Optional[str] = None
    placeholder: Optional[str] = None

    @property
    def placeholder_key(self) -> str:
        """Placeholder name without braces, falling back to the key id."""
        return strip_braces(self.placeholder) or self.id


class ManualKey(FieldKey):
    """Maps a placeholder to the student field named by `id`."""


class SubjectMarkKey(FieldKey):
    """Maps a placeholder to the student's marks in one subject."""
    subject_name: Optional[str] = None


class CalculationConfig(BaseModel):
    model_config = WIRE_CONFIG

    formula: str = ""
    use_total_marks: bool = False
    per_test: bool = False


class CalculationKey(FieldKey):
    """Maps a placeholder to a formula over the student's marks."""
    subject_name: Optional[str] = None
    calculation_config: Optional[CalculationConfig] = None


class KeySet(BaseModel):
    """Named mapping from placeholder keys to student/record fields."""
    model_config = WIRE_CONFIG

    key_set_id: Optional[str] = Field(default=None, alias="_id")
    name: str = "Untitled Key Set"
    manual_keys: List[ManualKey] = Field(default_factory=list)
    test_based_keys: List[SubjectMarkKey] = Field(default_factory=list)
    calculation_keys: List[CalculationKey] = Field(default_factory=list)
