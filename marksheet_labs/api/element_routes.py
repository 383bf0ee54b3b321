"""
Element Routes
===============

API routes for element management: add, update, delete, duplicate, layer
order, table and subjects-table edits, placeholders and logo upload.
"""

from fastapi import APIRouter, HTTPException
from typing import Optional, Dict, Any, List
from pydantic import BaseModel

from .canvas_routes import EditorResponse, get_editor, respond
from ..models.editor_models import LayerDirection, TableCell
from ..models.element_models import WIRE_CONFIG, ElementType

router = APIRouter(prefix="/api/element", tags=["elements"])


class AddElementRequest(BaseModel):
    model_config = WIRE_CONFIG

    type: str


class UpdateElementRequest(BaseModel):
    """Set one property, camelCase or snake_case name."""
    model_config = WIRE_CONFIG

    property: str
    value: Any = None


class LayerRequest(BaseModel):
    model_config = WIRE_CONFIG

    direction: LayerDirection


class SelectRequest(BaseModel):
    model_config = WIRE_CONFIG

    element_id: Optional[str] = None
    cell: Optional[TableCell] = None


class PlaceholderRequest(BaseModel):
    model_config = WIRE_CONFIG

    key: str
    element_id: Optional[str] = None


class LogoRequest(BaseModel):
    model_config = WIRE_CONFIG

    data_url: str
    element_id: Optional[str] = None


class SubjectUpdateRequest(BaseModel):
    model_config = WIRE_CONFIG

    property: str
    value: Any = None


class SubjectsRequest(BaseModel):
    model_config = WIRE_CONFIG

    subjects: List[Dict[str, Any]]


def require_element(session, element_id: str):
    element = session.document.find(element_id)
    if element is None:
        raise HTTPException(status_code=404, detail="Element not found")
    return element


@router.post("/{session_id}")
async def add_element(session_id: str, request: AddElementRequest) -> EditorResponse:
    """Add an element with its kind's defaults; it becomes the selection."""
    session = get_editor(session_id)
    if request.type not in {kind.value for kind in ElementType}:
        raise HTTPException(status_code=400, detail=f"Unknown element type: {request.type}")
    element_id = session.add_element(request.type)
    return respond(session, changed=True, element_id=element_id, message="Element added")


@router.put("/{session_id}/selection")
async def select_element(session_id: str, request: SelectRequest) -> EditorResponse:
    """Select an element (None clears) and optionally focus a table cell."""
    session = get_editor(session_id)
    if request.element_id is not None:
        require_element(session, request.element_id)
    session.select(request.element_id)
    session.focus_cell(request.cell)
    return respond(session)


@router.post("/{session_id}/placeholder")
async def insert_placeholder(session_id: str, request: PlaceholderRequest) -> EditorResponse:
    """Append {{key}} to the selected element or focused table cell."""
    session = get_editor(session_id)
    if request.element_id is None and session.selected_id is None:
        raise HTTPException(status_code=400, detail="No element selected")
    changed = session.insert_placeholder(request.key, request.element_id)
    return respond(session, changed=changed)


@router.put("/{session_id}/logo")
async def set_logo(session_id: str, request: LogoRequest) -> EditorResponse:
    session = get_editor(session_id)
    if not request.data_url.startswith("data:image/"):
        raise HTTPException(status_code=400, detail="Logo must be an image data URL")
    return respond(session, changed=session.set_logo(request.data_url, request.element_id))


@router.post("/{session_id}/subjects")
async def add_subject(session_id: str) -> EditorResponse:
    session = get_editor(session_id)
    return respond(session, changed=session.add_subject())


@router.put("/{session_id}/subjects")
async def set_subjects(session_id: str, request: SubjectsRequest) -> EditorResponse:
    """Replace the subjects table rows."""
    session = get_editor(session_id)
    return respond(session, changed=session.set_subjects(request.subjects))


@router.put("/{session_id}/subjects/{subject_id}")
async def update_subject(session_id: str, subject_id: int, request: SubjectUpdateRequest) -> EditorResponse:
    session = get_editor(session_id)
    return respond(session, changed=session.update_subject(subject_id, request.property, request.value))


@router.delete("/{session_id}/subjects/{subject_id}")
async def remove_subject(session_id: str, subject_id: int) -> EditorResponse:
    session = get_editor(session_id)
    return respond(session, changed=session.remove_subject(subject_id))


@router.put("/{session_id}/{element_id}")
async def update_element(session_id: str, element_id: str, request: UpdateElementRequest) -> EditorResponse:
    """Update one property of one element; invalid values are not applied."""
    session = get_editor(session_id)
    require_element(session, element_id)
    changed = session.update_element(element_id, request.property, request.value)
    return respond(session, changed=changed)


@router.delete("/{session_id}/{element_id}")
async def remove_element(session_id: str, element_id: str) -> EditorResponse:
    """Remove element from canvas."""
    session = get_editor(session_id)
    require_element(session, element_id)
    return respond(session, changed=session.delete_element(element_id), message="Element removed")


@router.post("/{session_id}/{element_id}/duplicate")
async def duplicate_element(session_id: str, element_id: str) -> EditorResponse:
    session = get_editor(session_id)
    require_element(session, element_id)
    copy_id = session.duplicate_element(element_id)
    return respond(session, changed=copy_id is not None, element_id=copy_id)


@router.post("/{session_id}/{element_id}/layer")
async def move_layer(session_id: str, element_id: str, request: LayerRequest) -> EditorResponse:
    """Swap with the neighbour above or below; no-op at the ends."""
    session = get_editor(session_id)
    require_element(session, element_id)
    return respond(session, changed=session.move_layer(element_id, request.direction))


@router.post("/{session_id}/{element_id}/rows")
async def add_table_row(session_id: str, element_id: str) -> EditorResponse:
    session = get_editor(session_id)
    require_element(session, element_id)
    return respond(session, changed=session.add_table_row(element_id))


@router.delete("/{session_id}/{element_id}/rows")
async def remove_table_row(session_id: str, element_id: str) -> EditorResponse:
    session = get_editor(session_id)
    require_element(session, element_id)
    return respond(session, changed=session.remove_table_row(element_id))


@router.post("/{session_id}/{element_id}/columns")
async def add_table_column(session_id: str, element_id: str) -> EditorResponse:
    session = get_editor(session_id)
    require_element(session, element_id)
    return respond(session, changed=session.add_table_column(element_id))


@router.delete("/{session_id}/{element_id}/columns")
async def remove_table_column(session_id: str, element_id: str) -> EditorResponse:
    session = get_editor(session_id)
    require_element(session, element_id)
    return respond(session, changed=session.remove_table_column(element_id))
