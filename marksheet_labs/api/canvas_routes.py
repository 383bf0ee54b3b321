"""
Canvas Routes
==============

API routes for editor sessions: create/load, state, undo/redo/revert,
save, HTML export and template generation.
"""

from fastapi import APIRouter, HTTPException
from fastapi.responses import HTMLResponse
from typing import Optional, Dict, Any
from pydantic import BaseModel

from ..canvas.editor import EditorSession
from ..models.element_models import WIRE_CONFIG

router = APIRouter(prefix="/api/canvas", tags=["canvas"])

# Injected by server
state_manager = None
school_client = None


class EditorResponse(BaseModel):
    """Outcome of an editor action plus the resulting session state."""
    model_config = WIRE_CONFIG

    success: bool = True
    changed: bool = False
    message: Optional[str] = None
    element_id: Optional[str] = None
    state: Dict[str, Any]


class CreateSessionRequest(BaseModel):
    model_config = WIRE_CONFIG

    session_id: Optional[str] = None
    template_id: Optional[str] = None


class LoadTemplateRequest(BaseModel):
    model_config = WIRE_CONFIG

    template_id: str


class DocumentFieldRequest(BaseModel):
    """templateName, institutionName or subtitle."""
    model_config = WIRE_CONFIG

    field: str
    value: str


class BackgroundRequest(BaseModel):
    model_config = WIRE_CONFIG

    color: Optional[str] = None
    image: Optional[str] = None
    clear_image: bool = False


class GenerateRequest(BaseModel):
    model_config = WIRE_CONFIG

    prompt: str


def respond(
    session: EditorSession,
    changed: bool = False,
    message: Optional[str] = None,
    success: bool = True,
    element_id: Optional[str] = None
) -> EditorResponse:
    """Persist the session and describe it."""
    state_manager.save_session(session.session_id)
    return EditorResponse(
        success=success,
        changed=changed,
        message=message,
        element_id=element_id,
        state=session.to_state(),
    )


def get_editor(session_id: str) -> EditorSession:
    if not state_manager:
        raise HTTPException(status_code=500, detail="State manager not initialized")

    session = state_manager.get_session(session_id)
    if not session:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


@router.post("/session")
async def create_session(request: Optional[CreateSessionRequest] = None) -> EditorResponse:
    """Create a session, optionally loading a stored template into it."""
    if not state_manager:
        raise HTTPException(status_code=500, detail="State manager not initialized")

    request = request or CreateSessionRequest()
    session = state_manager.create_session(request.session_id)
    if request.template_id:
        loaded = await session.load(school_client, request.template_id)
        return respond(session, changed=loaded, success=loaded, message=session.status_message)
    return respond(session, message="Session created")


@router.get("/state/{session_id}")
async def get_state(session_id: str) -> EditorResponse:
    """Get editor state for session."""
    return EditorResponse(state=get_editor(session_id).to_state())


@router.delete("/state/{session_id}")
async def delete_session(session_id: str):
    """Discard a session."""
    if not state_manager:
        raise HTTPException(status_code=500, detail="State manager not initialized")

    if not state_manager.delete_session(session_id):
        raise HTTPException(status_code=404, detail="Session not found")

    return {"message": "Session deleted", "session_id": session_id}


@router.post("/{session_id}/load")
async def load_template(session_id: str, request: LoadTemplateRequest) -> EditorResponse:
    session = get_editor(session_id)
    loaded = await session.load(school_client, request.template_id)
    return respond(session, changed=loaded, success=loaded, message=session.status_message)


@router.post("/{session_id}/save")
async def save_template(session_id: str) -> EditorResponse:
    """Save the template through the school API (POST new, PUT existing)."""
    session = get_editor(session_id)
    saved = await session.save(school_client)
    return respond(session, success=saved, message=session.status_message)


@router.post("/{session_id}/undo")
async def undo(session_id: str) -> EditorResponse:
    session = get_editor(session_id)
    return respond(session, changed=session.undo())


@router.post("/{session_id}/redo")
async def redo(session_id: str) -> EditorResponse:
    session = get_editor(session_id)
    return respond(session, changed=session.redo())


@router.post("/{session_id}/revert")
async def revert(session_id: str) -> EditorResponse:
    """Return to the last saved document."""
    session = get_editor(session_id)
    reverted = session.revert()
    return respond(session, changed=reverted, success=reverted, message=session.status_message)


@router.put("/{session_id}/document")
async def update_document(session_id: str, request: DocumentFieldRequest) -> EditorResponse:
    session = get_editor(session_id)
    if request.field not in ("templateName", "institutionName", "subtitle", "template_name", "institution_name"):
        raise HTTPException(status_code=400, detail=f"Unknown document field: {request.field}")
    return respond(session, changed=session.update_document_field(request.field, request.value))


@router.put("/{session_id}/background")
async def update_background(session_id: str, request: BackgroundRequest) -> EditorResponse:
    session = get_editor(session_id)
    session.set_background(request.color, request.image, request.clear_image)
    return respond(session, changed=True)


@router.put("/{session_id}/sections/{section}")
async def update_section_style(session_id: str, section: str, style: Dict[str, Any]) -> EditorResponse:
    session = get_editor(session_id)
    if section not in session.section_styles:
        raise HTTPException(status_code=404, detail=f"Unknown section: {section}")
    updated = session.set_section_style(section, style)
    if not updated:
        raise HTTPException(status_code=400, detail="Invalid section style")
    return respond(session, changed=True)


@router.post("/{session_id}/generate")
async def generate_template(session_id: str, request: GenerateRequest) -> EditorResponse:
    """Replace the canvas with a layout generated from a prompt."""
    session = get_editor(session_id)
    if not request.prompt.strip():
        raise HTTPException(status_code=400, detail="Prompt is required")
    generated = await session.generate(school_client, request.prompt)
    return respond(session, changed=generated, success=generated, message=session.status_message)


@router.get("/{session_id}/export", response_class=HTMLResponse)
async def export_html(session_id: str):
    """Static HTML with placeholders left in place."""
    return HTMLResponse(get_editor(session_id).export_html())


@router.get("/{session_id}/payload")
async def get_payload(session_id: str) -> Dict[str, Any]:
    """The template document exactly as it would be saved."""
    return get_editor(session_id).build_payload().to_wire()
