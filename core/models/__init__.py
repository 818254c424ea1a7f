# =============================================================================
# core/models/ - Pydantic Data Models
# =============================================================================
# This package contains Pydantic schemas for data validation:
# - upload.py: Upload batch, intake, outcome and configuration schemas
#
# These models define the "contract" between API and clients.
# =============================================================================

from .upload import (
    BatchCreate,
    BatchResponse,
    BatchState,
    CandidateFile,
    CandidateFileResponse,
    ConstraintViolation,
    FileStatus,
    ProjectFileResponse,
    RawFile,
    Rejection,
    StorageRecord,
    UploadCycleResult,
    UploadOptions,
    UploadOutcome,
    ViolationCode,
)

__all__ = [
    "BatchCreate",
    "BatchResponse",
    "BatchState",
    "CandidateFile",
    "CandidateFileResponse",
    "ConstraintViolation",
    "FileStatus",
    "ProjectFileResponse",
    "RawFile",
    "Rejection",
    "StorageRecord",
    "UploadCycleResult",
    "UploadOptions",
    "UploadOutcome",
    "ViolationCode",
]
