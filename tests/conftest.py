"""
Shared fixtures for the Marksheet Labs tests.
"""

import pytest

from marksheet_labs.canvas.editor import EditorSession
from marksheet_labs.canvas.operations import default_template
from marksheet_labs.canvas.state_manager import StateManager
from marksheet_labs.models.keyset_models import KeySet
from marksheet_labs.services.school_client import ApiResult


class FakeClock:
    """Monotonic clock the tests advance by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeSchoolClient:
    """In-memory stand-in for SchoolApiClient used by editor tests."""

    def __init__(self):
        self.saved_payloads = []
        self.templates = {}
        self.students = []
        self.marks = []
        self.subjects = []
        self.classes = []
        self.key_sets = []
        self.generated = {}
        self.fail_with = None

    def _result(self, data):
        if self.fail_with:
            return ApiResult(success=False, error=self.fail_with)
        return ApiResult(success=True, data=data)

    async def save_template(self, payload):
        self.saved_payloads.append(payload)
        wire = payload.to_wire()
        wire.setdefault("templateId", f"tpl-{len(self.saved_payloads)}")
        return self._result(wire)

    async def load_template(self, template_id):
        if template_id not in self.templates and not self.fail_with:
            return ApiResult(success=False, error="Template not found")
        return self._result(self.templates.get(template_id))

    async def generate_template(self, prompt):
        return self._result(self.generated)

    async def fetch_students(self, class_id=None, batch=None):
        return self._result(self.students)

    async def fetch_marks(self, class_id=None, test_id=None):
        return self._result(self.marks)

    async def fetch_subjects(self, class_id=None):
        return self._result(self.subjects)

    async def fetch_classes(self):
        return self._result(self.classes)

    async def fetch_key_sets(self):
        return self._result(self.key_sets)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def document():
    return default_template()


@pytest.fixture
def session(clock):
    return EditorSession("test-session", clock=clock)


@pytest.fixture
def state_manager(tmp_path, clock):
    return StateManager(sessions_dir=tmp_path / "sessions", clock=clock)


@pytest.fixture
def fake_client():
    return FakeSchoolClient()


@pytest.fixture
def key_set():
    return KeySet.model_validate({
        "_id": "ks-1",
        "name": "Term 1",
        "manualKeys": [
            {"id": "studentName", "label": "Name", "placeholder": "{{studentName}}"},
            {"id": "fatherName", "label": "Father", "placeholder": "{{father}}"},
        ],
        "testBasedKeys": [
            {"id": "math", "placeholder": "{{mathMarks}}", "subjectName": "Mathematics"},
        ],
        "calculationKeys": [
            {
                "id": "avg",
                "placeholder": "{{averageMarks}}",
                "calculationConfig": {"formula": "sum / count"},
            },
        ],
    })


@pytest.fixture
def student():
    return {
        "id": "s1",
        "studentId": "R-101",
        "name": "Asha Rao",
        "studentName": "Asha Rao",
        "fatherName": "Vikram Rao",
        "class": "Grade 5",
        "percentage": "80",
        "subjects": [
            {"subjectId": "m", "name": "Mathematics", "marks": 90, "maxMarks": 100},
            {"subjectId": "e", "name": "English", "marks": 70, "maxMarks": 100},
        ],
    }
