# =============================================================================
# core/models/upload.py - Upload Batch Schemas
# =============================================================================
# These models describe one upload batch and its lifecycle:
# - RawFile / Rejection: what a selection event delivers
# - CandidateFile: a file sitting in the batch, with its violations
# - UploadOutcome / UploadCycleResult: what one upload cycle produced
# - BatchState: the whole batch (files + successes + errors)
# - StorageRecord: the metadata row written after a successful blob write
# - UploadOptions: coordinator configuration
#
# Per-file lifecycle across cycles:
#   pending -> uploading -> succeeded | failed
#   failed  -> uploading (retry)
# succeeded is terminal until the batch is reset.
# =============================================================================

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

# Stored when the client reports no MIME type (browsers send "" for unknown
# extensions)
DEFAULT_MIME_TYPE = "application/octet-stream"


class ViolationCode(str, Enum):
    """
    Constraint violation codes attached to files at intake time.

    Values match the codes the browser dropzone reports, so violations
    produced client-side and server-side look the same.
    """
    FILE_TOO_LARGE = "file-too-large"
    FILE_INVALID_TYPE = "file-invalid-type"
    TOO_MANY_FILES = "too-many-files"


class FileStatus(str, Enum):
    """Upload status of a single file in the batch."""
    PENDING = "pending"
    UPLOADING = "uploading"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class ConstraintViolation(BaseModel):
    """A constraint a file breaks (attached, never raised)."""

    code: ViolationCode = Field(..., description="Machine-readable violation code")
    message: str = Field(..., description="Human-readable explanation")


# =============================================================================
# Intake Models
# =============================================================================

class RawFile(BaseModel):
    """
    A file as delivered by a selection event, before intake.

    Example:
        RawFile(name="report.pdf", size_bytes=2048,
                mime_type="application/pdf", content=b"...")
    """

    name: str = Field(..., min_length=1, description="Original filename")
    size_bytes: int = Field(..., ge=0, description="File size in bytes")
    mime_type: str = Field(
        default=DEFAULT_MIME_TYPE,
        description="MIME type reported by the client"
    )
    content: bytes = Field(default=b"", repr=False, exclude=True)

    @field_validator("mime_type")
    @classmethod
    def default_empty_mime_type(cls, v: str) -> str:
        return v or DEFAULT_MIME_TYPE

    @classmethod
    def from_bytes(
        cls,
        name: str,
        content: bytes,
        mime_type: str | None = None,
    ) -> "RawFile":
        """Build a RawFile whose size is taken from the content."""
        return cls(
            name=name,
            size_bytes=len(content),
            mime_type=mime_type or DEFAULT_MIME_TYPE,
            content=content,
        )


class Rejection(BaseModel):
    """A file that failed per-drop validation, with the reasons."""

    file: RawFile
    violations: list[ConstraintViolation] = Field(default_factory=list)


class CandidateFile(BaseModel):
    """
    A file in the current batch.

    Accepted files have an empty violation list; rejected files stay in
    the batch so their violations can be shown.
    """

    name: str = Field(..., min_length=1)
    size_bytes: int = Field(..., ge=0)
    mime_type: str
    content: bytes = Field(default=b"", repr=False, exclude=True)

    # Opaque handle issued by PreviewRegistry, released when the file leaves
    # the batch
    preview_handle: str | None = None

    violations: list[ConstraintViolation] = Field(default_factory=list)

    @field_validator("mime_type")
    @classmethod
    def default_empty_mime_type(cls, v: str) -> str:
        return v or DEFAULT_MIME_TYPE

    def has_violation(self, code: ViolationCode) -> bool:
        return any(v.code == code for v in self.violations)


# =============================================================================
# Upload Models
# =============================================================================

class UploadOutcome(BaseModel):
    """Result of one per-file unit of work."""

    file_name: str
    error_message: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.error_message is None


class UploadCycleResult(BaseModel):
    """
    Aggregated result of one upload cycle.

    errors replaces the previous error map entirely; successes is the union
    of previous successes and this cycle's successful outcomes.
    """

    outcomes: list[UploadOutcome] = Field(default_factory=list)
    errors: dict[str, str] = Field(default_factory=dict)
    successes: list[str] = Field(default_factory=list)


class StorageRecord(BaseModel):
    """
    Row written to the project_files table after a blob write succeeds.

    file_name keeps the original (unsanitized) name for display; file_path
    is the sanitized storage key.
    """

    project_id: str = Field(..., min_length=1)
    file_name: str = Field(..., min_length=1)
    file_path: str = Field(..., min_length=1)
    file_size: int = Field(..., ge=0)
    mime_type: str = Field(..., min_length=1)


class ProjectFileResponse(BaseModel):
    """A persisted project_files row returned to clients."""

    id: UUID | str
    project_id: UUID | str
    file_name: str
    file_path: str
    file_size: int
    mime_type: str
    uploaded_at: datetime | None = None


# =============================================================================
# Batch State
# =============================================================================

class BatchState(BaseModel):
    """
    The whole upload batch.

    Transition functions in core/services/ return new BatchState values
    instead of mutating this one.
    """

    files: list[CandidateFile] = Field(default_factory=list)
    successes: list[str] = Field(default_factory=list)
    errors: dict[str, str] = Field(default_factory=dict)
    in_flight: bool = False

    @property
    def file_names(self) -> list[str]:
        return [f.name for f in self.files]

    @property
    def is_success(self) -> bool:
        """
        True when every file in the batch uploaded and nothing failed.

        An untouched batch (no errors and no successes) is not a success.
        """
        if not self.errors and not self.successes:
            return False
        return not self.errors and len(self.successes) == len(self.files)

    def file_status(self, name: str) -> FileStatus:
        """Derive one file's lifecycle status from the batch."""
        if name in self.successes:
            return FileStatus.SUCCEEDED
        if self.in_flight:
            return FileStatus.UPLOADING
        if name in self.errors:
            return FileStatus.FAILED
        return FileStatus.PENDING


# =============================================================================
# Configuration
# =============================================================================

class UploadOptions(BaseModel):
    """
    Coordinator configuration.

    Example:
        UploadOptions(bucket_name="project-files", path="550e8400-...",
                      allowed_mime_types=["image/*"], max_files=10)
    """

    bucket_name: str = Field(..., min_length=1, description="Target storage bucket")

    # Folder inside the bucket. When set it is also the parent project ID
    # for metadata rows.
    path: str | None = Field(default=None, description="Optional key prefix / project ID")

    allowed_mime_types: list[str] = Field(
        default_factory=list,
        description="Allowed MIME types, wildcard suffix allowed (empty = all)"
    )
    max_file_size: int | None = Field(
        default=None,
        ge=0,
        description="Maximum size per file in bytes (None = unlimited)"
    )
    max_files: int = Field(default=1, ge=1, description="Maximum files per batch")
    cache_control: int = Field(default=3600, ge=0, description="Cache-Control max-age seconds")
    upsert: bool = Field(default=False, description="Overwrite existing objects")
    concurrency: int = Field(default=8, ge=1, description="Max concurrent per-file uploads")
    compensate_orphans: bool = Field(
        default=False,
        description="Remove the blob when its metadata row fails to persist"
    )


# =============================================================================
# API Views
# =============================================================================

class CandidateFileResponse(BaseModel):
    """One batch entry as returned by the API."""

    name: str
    size_bytes: int
    mime_type: str
    status: FileStatus
    violations: list[ConstraintViolation] = Field(default_factory=list)


class BatchResponse(BaseModel):
    """Batch view returned by the /batches endpoints."""

    batch_id: str
    project_id: str | None = None
    files: list[CandidateFileResponse] = Field(default_factory=list)
    successes: list[str] = Field(default_factory=list)
    errors: dict[str, str] = Field(default_factory=dict)
    in_flight: bool = False
    is_success: bool = False

    @classmethod
    def from_state(
        cls,
        batch_id: str,
        state: BatchState,
        project_id: str | None = None,
    ) -> "BatchResponse":
        return cls(
            batch_id=batch_id,
            project_id=project_id,
            files=[
                CandidateFileResponse(
                    name=f.name,
                    size_bytes=f.size_bytes,
                    mime_type=f.mime_type,
                    status=state.file_status(f.name),
                    violations=list(f.violations),
                )
                for f in state.files
            ],
            successes=list(state.successes),
            errors=dict(state.errors),
            in_flight=state.in_flight,
            is_success=state.is_success,
        )


class BatchCreate(BaseModel):
    """Input for POST /batches."""

    project_id: UUID | None = Field(
        default=None,
        description="Project the files belong to (None = bucket root, no metadata rows)"
    )
