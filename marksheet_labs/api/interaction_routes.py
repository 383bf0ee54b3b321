"""
Interaction Routes
==================

API routes feeding pointer, wheel and keyboard input to the interaction
engine, plus tool and zoom controls.
"""

from fastapi import APIRouter, HTTPException
from typing import Optional, Union, Literal
from pydantic import BaseModel

from .canvas_routes import EditorResponse, get_editor, respond
from ..models.editor_models import KeyEvent, PointerEvent, ResizeHandle, Tool, WheelEvent
from ..models.element_models import WIRE_CONFIG

router = APIRouter(prefix="/api/interaction", tags=["interaction"])


class PointerDownRequest(PointerEvent):
    """Pointer-down; element_id is the element under the pointer, if any."""
    element_id: Optional[str] = None
    handle: Optional[ResizeHandle] = None


class ToolRequest(BaseModel):
    model_config = WIRE_CONFIG

    tool: Tool


class ZoomRequest(BaseModel):
    """Absolute zoom percent, or "in"/"out" for one step."""
    model_config = WIRE_CONFIG

    zoom: Union[Literal["in", "out"], float]


@router.post("/{session_id}/pointer/down")
async def pointer_down(session_id: str, request: PointerDownRequest) -> EditorResponse:
    session = get_editor(session_id)
    session.pointer_down(request, request.element_id, request.handle)
    return respond(session)


@router.post("/{session_id}/pointer/move")
async def pointer_move(session_id: str, request: PointerEvent) -> EditorResponse:
    session = get_editor(session_id)
    return respond(session, changed=session.pointer_move(request))


@router.post("/{session_id}/pointer/up")
async def pointer_up(session_id: str) -> EditorResponse:
    """Release; the gesture is recorded in history if it changed anything."""
    session = get_editor(session_id)
    return respond(session, changed=session.pointer_up())


@router.post("/{session_id}/wheel")
async def wheel(session_id: str, request: WheelEvent) -> EditorResponse:
    session = get_editor(session_id)
    return respond(session, changed=session.wheel(request))


@router.post("/{session_id}/key")
async def key(session_id: str, request: KeyEvent) -> EditorResponse:
    session = get_editor(session_id)
    command = session.handle_key(request)
    return respond(session, changed=command is not None, message=command.value if command else None)


@router.put("/{session_id}/tool")
async def set_tool(session_id: str, request: ToolRequest) -> EditorResponse:
    session = get_editor(session_id)
    session.set_tool(request.tool)
    return respond(session, changed=True)


@router.put("/{session_id}/zoom")
async def set_zoom(session_id: str, request: ZoomRequest) -> EditorResponse:
    session = get_editor(session_id)
    if request.zoom == "in":
        session.interaction.zoom_in()
    elif request.zoom == "out":
        session.interaction.zoom_out()
    elif isinstance(request.zoom, (int, float)):
        session.interaction.set_zoom(request.zoom)
    else:
        raise HTTPException(status_code=400, detail="Invalid zoom")
    return respond(session, changed=True)


@router.post("/{session_id}/reset-view")
async def reset_view(session_id: str) -> EditorResponse:
    """Zoom back to 100% and clear the pan offset."""
    session = get_editor(session_id)
    session.interaction.reset_view()
    return respond(session, changed=True)
