# =============================================================================
# app/exceptions.py - Custom Exceptions and Handlers
# =============================================================================
# Centralized exception handling for the API.
# Errors carry a suggestion so clients know how to recover, not just what
# failed.
#
# Note: per-file upload failures are NOT raised through this hierarchy.
# They are recorded in the batch error map by the upload coordinator.
# =============================================================================

from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse


class ProjectFilesException(Exception):
    """
    Base exception for the project files service.

    All custom exceptions inherit from this class.
    Provides structured error responses with actionable suggestions.
    """

    def __init__(
        self,
        message: str,
        code: str = "PROJECT_FILES_ERROR",
        status_code: int = 500,
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.suggestion = suggestion
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to API response dict."""
        result = {
            "detail": self.message,
            "code": self.code,
        }
        if self.suggestion:
            result["suggestion"] = self.suggestion
        if self.details:
            result["details"] = self.details
        return result


# =============================================================================
# Batch Exceptions
# =============================================================================

class BatchNotFoundError(ProjectFilesException):
    """Raised when an upload batch ID doesn't exist."""

    def __init__(self, batch_id: str):
        super().__init__(
            message=f"Upload batch not found: {batch_id}",
            code="BATCH_NOT_FOUND",
            status_code=404,
            suggestion="Create a batch first using POST /batches",
            details={"batch_id": batch_id}
        )


class UploadInProgressError(ProjectFilesException):
    """Raised when a batch is modified while an upload cycle is running."""

    def __init__(self, batch_id: str):
        super().__init__(
            message=f"An upload is already running for batch: {batch_id}",
            code="UPLOAD_IN_PROGRESS",
            status_code=409,
            suggestion="Wait for the current upload to finish, then try again",
            details={"batch_id": batch_id}
        )


class BatchHasViolationsError(ProjectFilesException):
    """Raised when uploading a batch that still contains rejected files."""

    def __init__(self, file_names: list[str]):
        super().__init__(
            message=f"Batch contains files with errors: {', '.join(file_names)}",
            code="BATCH_HAS_VIOLATIONS",
            status_code=422,
            suggestion="Remove the rejected files from the batch before uploading",
            details={"file_names": file_names}
        )


class CandidateFileNotFoundError(ProjectFilesException):
    """Raised when removing a file that isn't in the batch."""

    def __init__(self, batch_id: str, file_name: str):
        super().__init__(
            message=f"File not in batch: {file_name}",
            code="CANDIDATE_FILE_NOT_FOUND",
            status_code=404,
            suggestion="Fetch the batch to see which files it contains",
            details={"batch_id": batch_id, "file_name": file_name}
        )


# =============================================================================
# Backend Exceptions
# =============================================================================

class SupabaseClientError(ProjectFilesException):
    """Raised when the Supabase client cannot be created."""

    def __init__(self, error: str):
        super().__init__(
            message=f"Failed to create Supabase client: {error}",
            code="CLIENT_INIT_FAILED",
            status_code=503,
            suggestion="Check SUPABASE_URL and SUPABASE_SERVICE_KEY in your .env file",
            details={"error": error}
        )


# =============================================================================
# Storage Exceptions
# =============================================================================

class StorageUploadError(ProjectFilesException):
    """Raised when a blob write to storage fails."""

    def __init__(self, error: str, path: str | None = None):
        super().__init__(
            message=error,
            code="STORAGE_UPLOAD_ERROR",
            status_code=500,
            suggestion="Retry the upload; enable upsert to overwrite an existing object",
            details={"path": path, "error": error}
        )


class StorageDownloadError(ProjectFilesException):
    """Raised when file download from storage fails."""

    def __init__(self, path: str, error: str):
        super().__init__(
            message=f"Failed to download file from storage: {error}",
            code="STORAGE_DOWNLOAD_ERROR",
            status_code=500,
            suggestion="Try again later or contact support if the issue persists",
            details={"path": path, "error": error}
        )


class StorageDeleteError(ProjectFilesException):
    """Raised when removing objects from storage fails."""

    def __init__(self, paths: list[str], error: str):
        super().__init__(
            message=f"Failed to delete file from storage: {error}",
            code="STORAGE_DELETE_ERROR",
            status_code=500,
            suggestion="Try again later; the metadata row was left untouched",
            details={"paths": paths, "error": error}
        )


# =============================================================================
# Metadata Exceptions
# =============================================================================

class FileRecordError(ProjectFilesException):
    """Raised when a project_files row cannot be written or removed."""

    def __init__(self, error: str, details: dict[str, Any] | None = None):
        super().__init__(
            message=error,
            code="FILE_RECORD_ERROR",
            status_code=500,
            suggestion="Check that the project exists and the project_files table is accessible",
            details={"error": error, **(details or {})}
        )


class ProjectFileNotFoundError(ProjectFilesException):
    """Raised when a project_files row doesn't exist."""

    def __init__(self, file_id: str):
        super().__init__(
            message=f"File not found: {file_id}",
            code="PROJECT_FILE_NOT_FOUND",
            status_code=404,
            suggestion="Check that the file_id is correct and belongs to this project",
            details={"file_id": file_id}
        )


# =============================================================================
# Exception Handlers
# =============================================================================

async def project_files_exception_handler(
    request: Request,
    exc: ProjectFilesException
) -> JSONResponse:
    """
    Convert ProjectFilesException to JSON response.

    Returns structured error with:
    - detail: Human-readable message
    - code: Machine-readable error code
    - suggestion: How to fix (if available)
    - details: Additional context
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


async def validation_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    """
    Handle Pydantic validation errors.

    Converts validation errors to user-friendly messages.
    """
    return JSONResponse(
        status_code=422,
        content={
            "detail": "Validation error",
            "code": "VALIDATION_ERROR",
            "errors": str(exc)
        }
    )
