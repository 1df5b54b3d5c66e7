"""
Good Circle Proposal Engine - FastAPI Application Entry Point.

Builds marketing proposals from a versioned service library:
- Deterministic assembly of cover, services, terms and placeholders
- AI-written comments section, linted before saving
- HTML and plain-text rendering for paste into the CRM

Run with:
    uvicorn proposal_engine.main:app --reload --port 8000
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from proposal_engine import __version__
from proposal_engine.api import proposals_router, services_router
from proposal_engine.core.config import get_settings
from proposal_engine.library import get_library_info


# ===========================================
# Logging Configuration
# ===========================================

def setup_logging():
    """Configure application logging."""
    settings = get_settings()

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG if settings.DEBUG else logging.INFO)

    # Console handler
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    console_handler.setLevel(logging.DEBUG if settings.DEBUG else logging.INFO)
    root_logger.addHandler(console_handler)

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("hpack").setLevel(logging.WARNING)
    logging.getLogger("postgrest").setLevel(logging.WARNING)

    return logging.getLogger(__name__)


logger = setup_logging()


# ===========================================
# Application Lifespan
# ===========================================

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """Application lifespan handler for startup/shutdown."""
    settings = get_settings()

    logger.info("=" * 50)
    logger.info("Good Circle Proposal Engine Starting Up")
    logger.info("=" * 50)
    logger.info(f"Environment: {'Development' if settings.DEBUG else 'Production'}")
    for name, version in get_library_info().items():
        logger.info(f"{name}: {version}")

    if not settings.SUPABASE_URL or not settings.SUPABASE_KEY:
        logger.warning("Supabase credentials not configured!")

    if not settings.OPENAI_API_KEY:
        logger.warning("OpenAI API key not configured! Requests must supply api_key")

    logger.info("Startup complete - ready to build proposals")

    yield

    logger.info("Good Circle Proposal Engine shutting down...")


# ===========================================
# FastAPI Application
# ===========================================

def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Good Circle Proposal Engine",
        description="""
        Proposal assembly for Good Circle Marketing.

        ## Proposals

        - `POST /api/proposals` - Assemble, write comments, lint and save
        - `GET /api/proposals/{id}` - Fetch the proposal document
        - `PATCH /api/proposals/{id}/comments|cover|services/{key}|status` - Edit
        - `POST /api/proposals/{id}/modules` - Add an optional section
        - `GET /api/proposals/{id}/render?format=html|plain|body` - Render
        - `GET /api/proposals/{id}/validate` - Completeness check

        ## Catalog

        - `GET /api/services` - Service library and versions
        """,
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(proposals_router)
    app.include_router(services_router)

    return app


# Create app instance
app = create_app()


# ===========================================
# Root Endpoints
# ===========================================

@app.get("/", tags=["root"])
async def root():
    """Root endpoint with API information."""
    return JSONResponse({
        "service": "Good Circle Proposal Engine",
        "version": __version__,
        "status": "running",
        "library": get_library_info(),
        "endpoints": {
            "proposals": {
                "create": "POST /api/proposals",
                "get": "GET /api/proposals/{id}",
                "comments": "PATCH /api/proposals/{id}/comments",
                "cover": "PATCH /api/proposals/{id}/cover",
                "service": "PATCH /api/proposals/{id}/services/{service_key}",
                "status": "PATCH /api/proposals/{id}/status",
                "add_module": "POST /api/proposals/{id}/modules",
                "remove_module": "DELETE /api/proposals/{id}/modules/{module_key}",
                "render": "GET /api/proposals/{id}/render?format=html|plain|body",
                "validate": "GET /api/proposals/{id}/validate",
                "delete": "DELETE /api/proposals/{id}",
                "refine": "POST /api/proposals/refine-content"
            },
            "catalog": "GET /api/services",
            "health": "GET /health",
            "docs": "GET /docs"
        }
    })


@app.get("/health", tags=["root"])
async def health():
    """Health check."""
    return {"status": "healthy", "version": __version__}


# ===========================================
# Error Handlers
# ===========================================

@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Global exception handler for unhandled errors."""
    logger.error(f"Unhandled error: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "message": str(exc) if get_settings().DEBUG else "An error occurred"
        }
    )


# ===========================================
# Main Entry Point
# ===========================================

if __name__ == "__main__":
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "proposal_engine.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level="debug" if settings.DEBUG else "info"
    )
