"""
Interaction Engine
==================

Turns pointer, wheel and keyboard input into element geometry changes and
viewport updates.

The engine owns the tool mode, zoom, canvas offset and the gesture in
progress. It never touches the document itself: `move()` returns the
geometry the editor should apply to the active element.
"""

import logging
from typing import Dict, Optional, Tuple

from ..config import (
    DEFAULT_ZOOM,
    MAX_ELEMENT_X,
    MAX_ELEMENT_Y,
    MAX_ZOOM,
    MIN_ELEMENT_HEIGHT,
    MIN_ELEMENT_WIDTH,
    MIN_ZOOM,
    ZOOM_STEP,
)
from ..models.editor_models import (
    CanvasOffset,
    Gesture,
    KeyCommand,
    KeyEvent,
    PointerEvent,
    ResizeHandle,
    Tool,
    WheelEvent,
)
from ..models.element_models import ElementBase

logger = logging.getLogger(__name__)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, .5 away from zero."""
    return int(value + 0.5) if value >= 0 else -int(-value + 0.5)


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


class InteractionEngine:
    """Tool-mode state machine for the canvas."""

    def __init__(self):
        self.tool = Tool.SELECT
        self.zoom = DEFAULT_ZOOM
        self.offset = CanvasOffset()
        self.gesture = Gesture.IDLE
        self.active_element_id: Optional[str] = None
        self.resize_handle: Optional[ResizeHandle] = None

        self._pointer_start: Tuple[float, float] = (0, 0)
        self._element_start: Tuple[int, int, int, int] = (0, 0, 0, 0)
        self._pan_start: Tuple[float, float] = (0, 0)

    @property
    def is_dragging(self) -> bool:
        return self.gesture == Gesture.DRAGGING

    @property
    def is_resizing(self) -> bool:
        return self.gesture == Gesture.RESIZING

    @property
    def is_panning(self) -> bool:
        return self.gesture == Gesture.PANNING

    @property
    def in_gesture(self) -> bool:
        return self.gesture != Gesture.IDLE

    @property
    def scale(self) -> float:
        return self.zoom / 100

    # ------------------------------------------------------------------
    # Gestures
    # ------------------------------------------------------------------

    def wants_pan(self, event: PointerEvent) -> bool:
        """Pointer-down pans when the pan tool is active or shift is held."""
        return self.tool == Tool.PAN or event.shift_key

    def begin_pan(self, event: PointerEvent) -> None:
        self.gesture = Gesture.PANNING
        self.active_element_id = None
        self._pan_start = (event.client_x - self.offset.x, event.client_y - self.offset.y)

    def begin_drag(self, element: ElementBase, event: PointerEvent) -> bool:
        """Start moving an element; only in select mode and when idle."""
        if self.tool != Tool.SELECT or self.gesture != Gesture.IDLE:
            return False
        self._capture(element, event)
        self.gesture = Gesture.DRAGGING
        return True

    def begin_resize(self, element: ElementBase, handle: ResizeHandle, event: PointerEvent) -> bool:
        if self.tool != Tool.SELECT or self.gesture != Gesture.IDLE:
            return False
        self._capture(element, event)
        self.resize_handle = ResizeHandle(handle)
        self.gesture = Gesture.RESIZING
        return True

    def _capture(self, element: ElementBase, event: PointerEvent) -> None:
        self.active_element_id = element.id
        self._pointer_start = (event.client_x, event.client_y)
        self._element_start = (element.x, element.y, element.width, element.height)

    def move(self, event: PointerEvent) -> Optional[Dict[str, int]]:
        """
        Advance the gesture in progress.

        Returns:
            Geometry for the active element while dragging or resizing,
            None otherwise (panning updates the offset in place)
        """
        if self.gesture == Gesture.PANNING:
            self.offset = CanvasOffset(
                x=event.client_x - self._pan_start[0],
                y=event.client_y - self._pan_start[1],
            )
            return None

        if self.gesture not in (Gesture.DRAGGING, Gesture.RESIZING):
            return None

        dx = (event.client_x - self._pointer_start[0]) / self.scale
        dy = (event.client_y - self._pointer_start[1]) / self.scale

        if self.gesture == Gesture.DRAGGING:
            return self._dragged(dx, dy)
        return self._resized(dx, dy)

    def _dragged(self, dx: float, dy: float) -> Dict[str, int]:
        start_x, start_y, _, _ = self._element_start
        return {
            "x": round_half_up(clamp(start_x + dx, 0, MAX_ELEMENT_X)),
            "y": round_half_up(clamp(start_y + dy, 0, MAX_ELEMENT_Y)),
        }

    def _resized(self, dx: float, dy: float) -> Dict[str, int]:
        start_x, start_y, start_w, start_h = self._element_start
        handle = self.resize_handle
        x, y, width, height = start_x, start_y, start_w, start_h

        if handle.moves_east:
            width = max(MIN_ELEMENT_WIDTH, start_w + dx)
        if handle.moves_west:
            width = max(MIN_ELEMENT_WIDTH, start_w - dx)
            x = start_x + start_w - width
        if handle.moves_south:
            height = max(MIN_ELEMENT_HEIGHT, start_h + dy)
        if handle.moves_north:
            height = max(MIN_ELEMENT_HEIGHT, start_h - dy)
            y = start_y + start_h - height

        return {
            "x": round_half_up(x),
            "y": round_half_up(y),
            "width": round_half_up(width),
            "height": round_half_up(height),
        }

    def end(self) -> Gesture:
        """Release the pointer; returns the gesture that just finished."""
        finished = self.gesture
        self.gesture = Gesture.IDLE
        self.active_element_id = None
        self.resize_handle = None
        return finished

    # ------------------------------------------------------------------
    # Viewport
    # ------------------------------------------------------------------

    def set_tool(self, tool: Tool) -> None:
        self.tool = Tool(tool)

    def set_zoom(self, zoom: float) -> int:
        self.zoom = int(clamp(round_half_up(zoom), MIN_ZOOM, MAX_ZOOM))
        return self.zoom

    def zoom_in(self) -> int:
        return self.set_zoom(self.zoom + ZOOM_STEP)

    def zoom_out(self) -> int:
        return self.set_zoom(self.zoom - ZOOM_STEP)

    def wheel(self, event: WheelEvent) -> bool:
        """Ctrl/meta + wheel zooms by one step; returns True if handled."""
        if not (event.ctrl_key or event.meta_key):
            return False
        if event.delta_y > 0:
            self.zoom_out()
        else:
            self.zoom_in()
        return True

    def reset_view(self) -> None:
        self.zoom = DEFAULT_ZOOM
        self.offset = CanvasOffset()

    # ------------------------------------------------------------------
    # Keyboard
    # ------------------------------------------------------------------

    @staticmethod
    def interpret_key(event: KeyEvent) -> Optional[KeyCommand]:
        """Map a key press to an editor command; text inputs keep their keys."""
        if event.in_text_input:
            return None

        key = event.key.lower() if len(event.key) == 1 else event.key
        if event.ctrl_key or event.meta_key:
            if key == "z":
                return KeyCommand.REDO if event.shift_key else KeyCommand.UNDO
            if key == "y":
                return KeyCommand.REDO
            if key == "0":
                return KeyCommand.RESET_VIEW
            return None

        if key == "v":
            return KeyCommand.SELECT_TOOL
        if key == "h":
            return KeyCommand.PAN_TOOL
        if key in ("Delete", "Backspace"):
            return KeyCommand.DELETE
        return None
