"""
Preview Routes
==============

API routes for the student preview: fetch preview data and key sets from
the school API, pick a student and key set, and render resolved HTML.
"""

from fastapi import APIRouter, HTTPException
from fastapi.responses import HTMLResponse
from typing import Optional, Dict, Any, List
from pydantic import BaseModel, Field

from . import canvas_routes
from .canvas_routes import EditorResponse, get_editor, respond
from ..models.element_models import WIRE_CONFIG
from ..models.keyset_models import KeySet
from ..services.marks_calculator import CalculationMode

router = APIRouter(prefix="/api/preview", tags=["preview"])


class PreviewDataRequest(BaseModel):
    model_config = WIRE_CONFIG

    class_id: Optional[str] = None
    calculation_mode: CalculationMode = CalculationMode.SUM
    custom_formula: Optional[str] = None


class PreviewSelectionRequest(BaseModel):
    model_config = WIRE_CONFIG

    student_id: Optional[str] = None
    key_set_id: Optional[str] = None


class PreviewRequest(BaseModel):
    """Inline student/key set override the session's selection."""
    model_config = WIRE_CONFIG

    student: Optional[Dict[str, Any]] = None
    key_set: Optional[KeySet] = None
    subject: Optional[Dict[str, Any]] = None


class PreviewResponse(BaseModel):
    model_config = WIRE_CONFIG

    success: bool = True
    html: str
    student_id: Optional[str] = None
    key_set_id: Optional[str] = None
    errors: List[str] = Field(default_factory=list)


class StudentsResponse(BaseModel):
    model_config = WIRE_CONFIG

    students: List[Dict[str, Any]]
    key_sets: List[Dict[str, Any]]


@router.post("/{session_id}/data")
async def load_preview_data(session_id: str, request: Optional[PreviewDataRequest] = None) -> EditorResponse:
    """Fetch students, marks, subjects and classes for the preview."""
    session = get_editor(session_id)
    request = request or PreviewDataRequest()
    loaded = await session.load_preview_data(
        canvas_routes.school_client,
        request.class_id,
        calculation_mode=request.calculation_mode,
        custom_formula=request.custom_formula,
    )
    message = f"Loaded {len(session.preview_students)} student(s)" if loaded else session.status_message
    return respond(session, changed=loaded, success=loaded, message=message)


@router.post("/{session_id}/subjects")
async def refresh_subjects(session_id: str, request: Optional[PreviewDataRequest] = None) -> EditorResponse:
    """Fill the subjects table from the school's subjects."""
    session = get_editor(session_id)
    request = request or PreviewDataRequest()
    changed = await session.refresh_subjects(canvas_routes.school_client, request.class_id)
    return respond(session, changed=changed)


@router.post("/{session_id}/key-sets")
async def load_key_sets(session_id: str) -> EditorResponse:
    session = get_editor(session_id)
    loaded = await session.load_key_sets(canvas_routes.school_client)
    message = f"Loaded {len(session.key_sets)} key set(s)" if loaded else session.status_message
    return respond(session, success=loaded, message=message)


@router.get("/{session_id}/students")
async def list_students(session_id: str) -> StudentsResponse:
    session = get_editor(session_id)
    return StudentsResponse(
        students=session.preview_students,
        key_sets=[key_set.model_dump(by_alias=True) for key_set in session.key_sets],
    )


@router.put("/{session_id}/selection")
async def select_preview(session_id: str, request: PreviewSelectionRequest) -> EditorResponse:
    """Pick the student and key set used for previews (None clears)."""
    session = get_editor(session_id)
    if request.student_id is not None and session.find_student(request.student_id) is None:
        raise HTTPException(status_code=404, detail="Student not found")
    if request.key_set_id is not None and session.find_key_set(request.key_set_id) is None:
        raise HTTPException(status_code=404, detail="Key set not found")

    session.selected_student_id = request.student_id
    session.active_key_set_id = request.key_set_id
    return respond(session)


@router.post("/{session_id}")
async def preview(session_id: str, request: Optional[PreviewRequest] = None) -> PreviewResponse:
    """Document HTML with placeholders resolved for one student."""
    session = get_editor(session_id)
    request = request or PreviewRequest()
    result = session.preview(request.student, request.key_set, request.subject)
    return PreviewResponse(**result.model_dump())


@router.get("/{session_id}/html", response_class=HTMLResponse)
async def preview_html(session_id: str):
    """Resolved HTML for the selected student, as a page."""
    return HTMLResponse(get_editor(session_id).preview().html)
