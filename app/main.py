# =============================================================================
# app/main.py - FastAPI Application Entry Point
# =============================================================================
# This is the main entry point for the Project Files API.
# It configures the FastAPI application with middleware, routers, and handlers.
#
# Usage:
#   uvicorn app.main:app --reload
# =============================================================================

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import settings
from app.exceptions import (
    ProjectFilesException,
    project_files_exception_handler,
    validation_exception_handler,
)
from app.routers import health, upload, files

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Logs configuration on startup; batches are in memory so there is
    nothing to flush on shutdown.
    """
    logger.info(f"Starting Project Files API in {settings.ENVIRONMENT} mode")
    logger.info(
        f"Uploads go to bucket '{settings.UPLOAD_BUCKET}' "
        f"(max files: {settings.MAX_FILES}, upsert: {settings.UPLOAD_UPSERT})"
    )

    yield

    logger.info("Shutting down Project Files API")


# Create FastAPI application
app = FastAPI(
    title="Project Files API",
    description="""
## Project File Uploads

Upload batches of files into a project's storage folder.

### How It Works

1. **Create a Batch** - `POST /api/v1/batches` with an optional `project_id`
2. **Add Files** - `POST /api/v1/batches/{id}/files` (multipart, repeatable)
3. **Upload** - `POST /api/v1/batches/{id}/upload`
4. **Retry** - call upload again; only failed files are re-sent

Filenames are sanitized for storage; the original name is kept in the
`project_files` table.
""",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
    openapi_tags=[
        {
            "name": "Upload",
            "description": "Upload batches with partial-failure retry",
        },
        {
            "name": "Files",
            "description": "List, download and delete uploaded project files",
        },
        {
            "name": "Health",
            "description": "API health and readiness checks",
        },
    ],
)


# =============================================================================
# Middleware
# =============================================================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list if settings.is_production else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Exception Handlers
# =============================================================================

@app.exception_handler(ProjectFilesException)
async def handle_project_files_exception(request: Request, exc: ProjectFilesException):
    """Handle custom service exceptions."""
    return await project_files_exception_handler(request, exc)


@app.exception_handler(RequestValidationError)
async def handle_validation_exception(request: Request, exc: RequestValidationError):
    """Handle request validation errors."""
    return await validation_exception_handler(request, exc)


@app.exception_handler(Exception)
async def handle_general_exception(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.exception(f"Unexpected error: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "detail": "An unexpected error occurred",
            "code": "INTERNAL_ERROR",
        }
    )


# =============================================================================
# Routers
# =============================================================================

# Health check endpoints
app.include_router(
    health.router,
    prefix="/api/v1",
    tags=["Health"]
)

# Upload batch endpoints
app.include_router(
    upload.router,
    prefix="/api/v1/batches",
    tags=["Upload"]
)

# Project file endpoints
app.include_router(
    files.router,
    prefix="/api/v1/projects",
    tags=["Files"]
)
