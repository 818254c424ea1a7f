# =============================================================================
# app/routers/files.py - Project File Endpoints
# =============================================================================
# Read and delete files that were already uploaded into a project.
# =============================================================================

import asyncio
from typing import Annotated
from urllib.parse import quote
from uuid import UUID

from fastapi import APIRouter, Path
from fastapi.responses import Response

from app.config import settings
from app.dependencies import BlobStoreDep
from core.models.upload import ProjectFileResponse
from core.services.project_file_service import ProjectFileService

router = APIRouter()


def _content_disposition(row: dict) -> str:
    # ASCII fallback from the storage key, original name via RFC 5987
    fallback = row["file_path"].rsplit("/", 1)[-1]
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(row['file_name'])}"


@router.get("/{project_id}/files", response_model=list[ProjectFileResponse])
async def list_project_files(
    project_id: Annotated[UUID, Path(description="Project UUID")],
):
    """List the project's files, newest first."""
    rows = await asyncio.to_thread(ProjectFileService.list_project_files, project_id)
    return [ProjectFileResponse(**row) for row in rows]


@router.get("/{project_id}/files/{file_id}/download")
async def download_project_file(
    project_id: Annotated[UUID, Path(description="Project UUID")],
    file_id: Annotated[UUID, Path(description="File UUID")],
    blob_store: BlobStoreDep,
):
    """Download a file under its original name."""
    row = await asyncio.to_thread(ProjectFileService.get_file_record, project_id, file_id)
    content = await blob_store.download(settings.UPLOAD_BUCKET, row["file_path"])

    return Response(
        content=content,
        media_type=row["mime_type"],
        headers={"Content-Disposition": _content_disposition(row)},
    )


@router.delete("/{project_id}/files/{file_id}", response_model=ProjectFileResponse)
async def delete_project_file(
    project_id: Annotated[UUID, Path(description="Project UUID")],
    file_id: Annotated[UUID, Path(description="File UUID")],
):
    """
    Delete a file from storage and then its metadata row.

    If the storage delete fails the row is kept and a 500 is returned.
    """
    row = await asyncio.to_thread(
        ProjectFileService.delete_project_file,
        settings.UPLOAD_BUCKET,
        project_id,
        file_id,
    )
    return ProjectFileResponse(**row)
