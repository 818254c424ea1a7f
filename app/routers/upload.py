# =============================================================================
# app/routers/upload.py - Upload Batch Endpoints
# =============================================================================
# Exposes upload batches as a REST resource:
#   POST   /batches                        create a batch
#   GET    /batches/{batch_id}             batch state
#   POST   /batches/{batch_id}/files       add a selection (multipart)
#   DELETE /batches/{batch_id}/files/{name} remove one file
#   POST   /batches/{batch_id}/upload      run one upload cycle
#   DELETE /batches/{batch_id}             reset and drop the batch
#
# Calling /upload again after a partial failure only retries the files that
# failed or never succeeded.
# =============================================================================

import logging
from typing import Annotated

from fastapi import APIRouter, File, UploadFile, Path

from app.dependencies import BatchRegistryDep, BlobStoreDep, MetadataStoreDep
from app.exceptions import CandidateFileNotFoundError, UploadInProgressError
from core.models.upload import BatchCreate, BatchResponse, RawFile

logger = logging.getLogger(__name__)

router = APIRouter()


def _ensure_idle(batch_id: str, registry) -> None:
    if registry.get(batch_id).session.state.in_flight:
        raise UploadInProgressError(batch_id)


# =============================================================================
# Endpoints
# =============================================================================

@router.post("", response_model=BatchResponse, status_code=201)
async def create_batch(
    registry: BatchRegistryDep,
    blob_store: BlobStoreDep,
    metadata_store: MetadataStoreDep,
    request: BatchCreate | None = None,
):
    """
    Create an upload batch.

    With a project_id, files are stored under that project's folder and a
    project_files row is written for each one.
    """
    project_id = None
    if request is not None and request.project_id is not None:
        project_id = str(request.project_id)

    entry = registry.create(blob_store, metadata_store, project_id=project_id)
    return BatchResponse.from_state(entry.batch_id, entry.session.state, entry.project_id)


@router.get("/{batch_id}", response_model=BatchResponse)
async def get_batch(
    batch_id: Annotated[str, Path(description="Batch ID")],
    registry: BatchRegistryDep,
):
    """Get the batch: files, violations, successes, errors and is_success."""
    entry = registry.get(batch_id)
    return BatchResponse.from_state(entry.batch_id, entry.session.state, entry.project_id)


@router.post("/{batch_id}/files", response_model=BatchResponse)
async def add_files(
    batch_id: Annotated[str, Path(description="Batch ID")],
    files: Annotated[list[UploadFile], File(description="Files selected by the user")],
    registry: BatchRegistryDep,
):
    """
    Add one selection of files to the batch.

    Files are checked against the size, type and count limits. Rejected
    files stay in the batch with their violations; accepted files whose
    name is already in the batch are ignored.
    """
    _ensure_idle(batch_id, registry)
    entry = registry.get(batch_id)

    raw_files = []
    for upload in files:
        content = await upload.read()
        raw_files.append(RawFile.from_bytes(
            name=upload.filename or "file",
            content=content,
            mime_type=upload.content_type,
        ))

    logger.info(f"Adding {len(raw_files)} file(s) to batch {batch_id}")
    state = await entry.session.add_selection(raw_files)
    return BatchResponse.from_state(entry.batch_id, state, entry.project_id)


@router.delete("/{batch_id}/files/{file_name}", response_model=BatchResponse)
async def remove_file(
    batch_id: Annotated[str, Path(description="Batch ID")],
    file_name: Annotated[str, Path(description="Original filename")],
    registry: BatchRegistryDep,
):
    """Remove a file from the batch."""
    _ensure_idle(batch_id, registry)
    entry = registry.get(batch_id)

    if file_name not in entry.session.state.file_names:
        raise CandidateFileNotFoundError(batch_id, file_name)

    state = await entry.session.remove_file(file_name)
    return BatchResponse.from_state(entry.batch_id, state, entry.project_id)


@router.post("/{batch_id}/upload", response_model=BatchResponse)
async def upload_batch(
    batch_id: Annotated[str, Path(description="Batch ID")],
    registry: BatchRegistryDep,
):
    """
    Run one upload cycle.

    Per-file failures don't fail the request; they show up in `errors`.
    Call again to retry only the failed files.
    """
    _ensure_idle(batch_id, registry)
    entry = registry.get(batch_id)

    await entry.session.upload()
    return BatchResponse.from_state(entry.batch_id, entry.session.state, entry.project_id)


@router.delete("/{batch_id}", status_code=204)
async def delete_batch(
    batch_id: Annotated[str, Path(description="Batch ID")],
    registry: BatchRegistryDep,
):
    """Clear the batch and forget it. Already uploaded files are kept."""
    _ensure_idle(batch_id, registry)
    entry = registry.discard(batch_id)
    await entry.session.reset()
