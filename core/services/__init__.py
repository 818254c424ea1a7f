# =============================================================================
# core/services/__init__.py - Service Layer Exports
# =============================================================================

from .intake_service import PreviewRegistry
from .storage_service import StorageService, SupabaseBlobStore
from .project_file_service import ProjectFileService, SupabaseMetadataStore
from .upload_coordinator import UploadCoordinator, UploadSession

__all__ = [
    "PreviewRegistry",
    "StorageService",
    "SupabaseBlobStore",
    "ProjectFileService",
    "SupabaseMetadataStore",
    "UploadCoordinator",
    "UploadSession",
]
