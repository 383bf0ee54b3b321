"""
Marksheet Labs Server
======================

FastAPI server for the marksheet template builder.

Features:
- Editor sessions with undo/redo history and JSON persistence
- Element editing, drag/resize/pan input and keyboard commands
- Student previews with placeholders resolved from school data
- Template save/load and generation through the school API
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

from .config import (
    CANVAS_HEIGHT,
    CANVAS_WIDTH,
    DEFAULT_ZOOM,
    HISTORY_LIMIT,
    MAX_ZOOM,
    MIN_ZOOM,
    ZOOM_STEP,
    ServiceConfig,
)
from .models.element_models import ElementType
from .services.school_client import SchoolApiClient
from .canvas.state_manager import StateManager
from .api import canvas_routes, element_routes, interaction_routes, preview_routes


# Shared service instances
config: ServiceConfig = None
state_manager: StateManager = None
school_client: SchoolApiClient = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    global config, state_manager, school_client

    logger.info("[MARKSHEET-LABS] Starting up...")

    config = ServiceConfig()
    state_manager = StateManager(sessions_dir=config.sessions_dir)
    school_client = SchoolApiClient(base_url=config.api_base_url, timeout=config.api_timeout)

    # Inject into route modules; element, interaction and preview routes
    # resolve sessions through canvas_routes
    canvas_routes.state_manager = state_manager
    canvas_routes.school_client = school_client

    logger.info(f"[MARKSHEET-LABS] Services initialized (school API: {config.api_base_url})")

    yield

    logger.info("[MARKSHEET-LABS] Shutting down...")
    if school_client:
        await school_client.close()


app = FastAPI(
    title="Marksheet Labs",
    description="Marksheet template builder with undoable editing and student previews",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(canvas_routes.router)
app.include_router(element_routes.router)
app.include_router(interaction_routes.router)
app.include_router(preview_routes.router)


@app.get("/")
async def root():
    return {
        "service": "Marksheet Labs",
        "version": "1.0.0",
        "status": "running",
        "endpoints": {
            "session": "/api/canvas/session",
            "state": "/api/canvas/state/{session_id}",
            "elements": "/api/element/{session_id}/{element_id}",
            "interaction": "/api/interaction/{session_id}/pointer/down",
            "preview": "/api/preview/{session_id}"
        }
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": "marksheet-labs",
        "school_api": config.api_base_url if config else None
    }


@app.get("/api/info")
async def api_info():
    """Element kinds and canvas geometry."""
    return {
        "service": "Marksheet Labs",
        "version": "1.0.0",
        "element_types": [kind.value for kind in ElementType],
        "canvas": {
            "width": CANVAS_WIDTH,
            "height": CANVAS_HEIGHT
        },
        "zoom": {
            "min": MIN_ZOOM,
            "max": MAX_ZOOM,
            "default": DEFAULT_ZOOM,
            "step": ZOOM_STEP
        },
        "history_limit": HISTORY_LIMIT
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "marksheet_labs.server:app",
        host="0.0.0.0",
        port=8080,
        reload=True
    )
