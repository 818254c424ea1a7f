# =============================================================================
# app/dependencies.py - Shared Dependencies
# =============================================================================
# FastAPI dependency injection for shared resources.
# These are injected into route handlers using Depends().
#
# Tests override get_blob_store / get_metadata_store with in-memory fakes
# through app.dependency_overrides.
# =============================================================================

import logging
import uuid
from dataclasses import dataclass
from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from app.config import settings
from app.exceptions import BatchNotFoundError
from core.services.project_file_service import SupabaseMetadataStore
from core.services.storage_service import SupabaseBlobStore
from core.services.upload_coordinator import (
    BlobStore,
    MetadataStore,
    UploadCoordinator,
    UploadSession,
)

logger = logging.getLogger(__name__)


def get_blob_store() -> BlobStore:
    """Blob store used by new upload batches."""
    return SupabaseBlobStore()


def get_metadata_store() -> MetadataStore:
    """Metadata store used by new upload batches."""
    return SupabaseMetadataStore()


@dataclass
class BatchEntry:
    """An upload batch tracked by the API process."""
    batch_id: str
    project_id: str | None
    session: UploadSession


class BatchRegistry:
    """
    In-process registry of upload batches.

    Batches live in memory only; a restart drops them (uploaded files and
    their metadata rows are already persisted).
    """

    def __init__(self):
        self._batches: dict[str, BatchEntry] = {}

    def create(
        self,
        blob_store: BlobStore,
        metadata_store: MetadataStore,
        project_id: str | None = None,
    ) -> BatchEntry:
        batch_id = str(uuid.uuid4())
        coordinator = UploadCoordinator(
            blob_store,
            metadata_store,
            settings.upload_options(path=project_id),
        )
        entry = BatchEntry(batch_id=batch_id, project_id=project_id, session=UploadSession(coordinator))
        self._batches[batch_id] = entry
        logger.info(f"Created upload batch {batch_id} (project: {project_id})")
        return entry

    def get(self, batch_id: str) -> BatchEntry:
        """
        Raises:
            BatchNotFoundError: If the batch doesn't exist
        """
        entry = self._batches.get(batch_id)
        if entry is None:
            raise BatchNotFoundError(batch_id)
        return entry

    def discard(self, batch_id: str) -> BatchEntry:
        """
        Raises:
            BatchNotFoundError: If the batch doesn't exist
        """
        entry = self.get(batch_id)
        del self._batches[batch_id]
        return entry


@lru_cache
def get_batch_registry() -> BatchRegistry:
    """Process-wide batch registry."""
    return BatchRegistry()


# Type aliases for dependency injection
BlobStoreDep = Annotated[BlobStore, Depends(get_blob_store)]
MetadataStoreDep = Annotated[MetadataStore, Depends(get_metadata_store)]
BatchRegistryDep = Annotated[BatchRegistry, Depends(get_batch_registry)]
