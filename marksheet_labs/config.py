"""
Configuration for Marksheet Labs
=================================

Canvas geometry, editor limits and service settings.
"""

import os
from pathlib import Path
from pydantic import BaseModel


# Canvas geometry (template units, 1 unit = 1 CSS px at 100% zoom)
CANVAS_WIDTH = 600
CANVAS_HEIGHT = 800

# Drag clamp bounds for an element's top-left corner
MAX_ELEMENT_X = 550
MAX_ELEMENT_Y = 750

# Resize floor
MIN_ELEMENT_WIDTH = 30
MIN_ELEMENT_HEIGHT = 20

# Zoom, in percent
MIN_ZOOM = 25
MAX_ZOOM = 200
DEFAULT_ZOOM = 100
ZOOM_STEP = 10

# History
HISTORY_LIMIT = 50
TEXT_EDIT_DEBOUNCE_SECONDS = 0.5

# Section partition (fractions of canvas height)
HEADER_FRACTION = 0.25
FOOTER_FRACTION = 0.25

# Document defaults
DEFAULT_TEMPLATE_NAME = "Untitled Template"
DEFAULT_INSTITUTION_NAME = "Enter Institution Name"
DEFAULT_SUBTITLE = "Academic Year 2024-2025"
DEFAULT_BACKGROUND_COLOR = "#ffffff"

# School management API that owns students, marks and saved templates
SCHOOL_API_BASE_URL = os.getenv("MARKSHEET_API_URL", "http://localhost:3000")


class ServiceConfig(BaseModel):
    """Runtime settings for the builder service."""
    api_base_url: str = SCHOOL_API_BASE_URL
    api_timeout: float = float(os.getenv("MARKSHEET_API_TIMEOUT", "30"))
    sessions_dir: Path = Path(os.getenv("MARKSHEET_SESSIONS_DIR", "sessions"))
