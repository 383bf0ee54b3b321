"""
Editor Models for Marksheet Labs
=================================

Tool modes, resize handles and the input events fed to the interaction
engine.
"""

from enum import Enum
from typing import Literal, Optional, Union
from pydantic import BaseModel

from .element_models import WIRE_CONFIG


class Tool(str, Enum):
    """Active canvas tool."""
    SELECT = "select"  # click selects, drag moves, handles resize
    PAN = "pan"        # drag moves the viewport


class Gesture(str, Enum):
    """Pointer gesture in progress."""
    IDLE = "idle"
    DRAGGING = "dragging"
    RESIZING = "resizing"
    PANNING = "panning"


class ResizeHandle(str, Enum):
    """Corner and edge-midpoint handles of the selection box."""
    N = "n"
    NE = "ne"
    E = "e"
    SE = "se"
    S = "s"
    SW = "sw"
    W = "w"
    NW = "nw"

    @property
    def moves_north(self) -> bool:
        return "n" in self.value

    @property
    def moves_south(self) -> bool:
        return "s" in self.value

    @property
    def moves_east(self) -> bool:
        return "e" in self.value

    @property
    def moves_west(self) -> bool:
        return "w" in self.value


class LayerDirection(str, Enum):
    UP = "up"
    DOWN = "down"


class KeyCommand(str, Enum):
    """Editor command bound to a keyboard shortcut."""
    SELECT_TOOL = "select_tool"
    PAN_TOOL = "pan_tool"
    DELETE = "delete"
    UNDO = "undo"
    REDO = "redo"
    RESET_VIEW = "reset_view"


class PointerEvent(BaseModel):
    """Pointer position in screen pixels plus modifier state."""
    model_config = WIRE_CONFIG

    client_x: float
    client_y: float
    shift_key: bool = False
    ctrl_key: bool = False
    meta_key: bool = False


class WheelEvent(BaseModel):
    model_config = WIRE_CONFIG

    delta_y: float
    ctrl_key: bool = False
    meta_key: bool = False


class KeyEvent(BaseModel):
    """Key press; in_text_input is true when focus is in an input or textarea."""
    model_config = WIRE_CONFIG

    key: str
    ctrl_key: bool = False
    meta_key: bool = False
    shift_key: bool = False
    in_text_input: bool = False


class CanvasOffset(BaseModel):
    model_config = WIRE_CONFIG

    x: float = 0
    y: float = 0


class TableCell(BaseModel):
    """Focused table cell; row is an index or "header"."""
    model_config = WIRE_CONFIG

    row: Optional[Union[int, Literal["header"]]] = None
    col: Optional[int] = None
