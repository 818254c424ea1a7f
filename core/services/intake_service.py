# =============================================================================
# core/services/intake_service.py - Upload Batch Intake
# =============================================================================
# Builds the candidate batch from selection events, before any network I/O:
# - validate_selection(): per-drop size/type/count checks
# - add_files(): name-based dedup, preview handles, rejected files kept
# - reconcile_count_constraint(): drops stale too-many-files violations
# - remove_file() / reset(): shrink the batch and release previews
#
# All transitions take a BatchState and return a new one.
# =============================================================================

import logging
import uuid

from core.models.upload import (
    BatchState,
    CandidateFile,
    ConstraintViolation,
    RawFile,
    Rejection,
    UploadOptions,
    ViolationCode,
)

logger = logging.getLogger(__name__)


class PreviewRegistry:
    """
    Issues and releases preview handles.

    Each CandidateFile owns exactly one handle; it must be released when
    the file leaves the batch, whatever its upload status.
    """

    def __init__(self):
        self._live: set[str] = set()

    def create(self, file_name: str) -> str:
        handle = f"preview:{uuid.uuid4()}"
        self._live.add(handle)
        logger.debug(f"Created preview {handle} for {file_name}")
        return handle

    def release(self, handle: str | None) -> None:
        if handle is None:
            return
        self._live.discard(handle)

    @property
    def live_handles(self) -> frozenset[str]:
        return frozenset(self._live)


# =============================================================================
# Validation
# =============================================================================

def mime_type_allowed(mime_type: str, allowed: list[str]) -> bool:
    """
    Check a MIME type against an allow-list.

    Entries match exactly or by wildcard subtype ("image/*").
    An empty allow-list allows everything.
    """
    if not allowed:
        return True

    mime_type = (mime_type or "").lower()
    for pattern in allowed:
        pattern = pattern.lower()
        if pattern.endswith("/*"):
            if mime_type.startswith(pattern[:-1]):
                return True
        elif mime_type == pattern:
            return True
    return False


def _file_violations(file: RawFile, options: UploadOptions) -> list[ConstraintViolation]:
    violations = []

    if not mime_type_allowed(file.mime_type, options.allowed_mime_types):
        allowed = options.allowed_mime_types
        if len(allowed) == 1:
            message = f"File type must be {allowed[0]}"
        else:
            message = f"File type must be one of {', '.join(allowed)}"
        violations.append(ConstraintViolation(code=ViolationCode.FILE_INVALID_TYPE, message=message))

    if options.max_file_size is not None and file.size_bytes > options.max_file_size:
        violations.append(ConstraintViolation(
            code=ViolationCode.FILE_TOO_LARGE,
            message=f"File is larger than {options.max_file_size} bytes",
        ))

    return violations


def validate_selection(
    files: list[RawFile],
    options: UploadOptions,
) -> tuple[list[RawFile], list[Rejection]]:
    """
    Split one selection event into accepted and rejected files.

    Size and type are checked per file. If more files pass those checks
    than max_files allows, every one of them is rejected with
    too-many-files (the per-drop hard limit).

    Args:
        files: Files from a single selection/drop event
        options: Upload constraints

    Returns:
        (accepted, rejected)
    """
    accepted: list[RawFile] = []
    rejected: list[Rejection] = []

    for file in files:
        violations = _file_violations(file, options)
        if violations:
            rejected.append(Rejection(file=file, violations=violations))
        else:
            accepted.append(file)

    if len(accepted) > options.max_files:
        too_many = ConstraintViolation(code=ViolationCode.TOO_MANY_FILES, message="Too many files")
        rejected.extend(Rejection(file=file, violations=[too_many]) for file in accepted)
        accepted = []

    return accepted, rejected


# =============================================================================
# Transitions
# =============================================================================

def add_files(
    state: BatchState,
    accepted: list[RawFile],
    rejected: list[Rejection],
    previews: PreviewRegistry,
    max_files: int,
) -> BatchState:
    """
    Append a selection to the batch.

    Accepted files whose name is already in the batch are dropped (first
    occurrence wins). Rejected files are always appended so their
    violations stay visible.

    Returns:
        New state, with the count constraint reconciled
    """
    seen = set(state.file_names)
    new_files: list[CandidateFile] = []

    for file in accepted:
        if file.name in seen:
            logger.debug(f"Dropping duplicate file: {file.name}")
            continue
        seen.add(file.name)
        new_files.append(CandidateFile(
            name=file.name,
            size_bytes=file.size_bytes,
            mime_type=file.mime_type,
            content=file.content,
            preview_handle=previews.create(file.name),
        ))

    for rejection in rejected:
        file = rejection.file
        new_files.append(CandidateFile(
            name=file.name,
            size_bytes=file.size_bytes,
            mime_type=file.mime_type,
            content=file.content,
            preview_handle=previews.create(file.name),
            violations=list(rejection.violations),
        ))

    new_state = state.model_copy(update={"files": [*state.files, *new_files]})
    return reconcile_count_constraint(new_state, max_files)


def reconcile_count_constraint(state: BatchState, max_files: int) -> BatchState:
    """
    Drop too-many-files violations once the batch fits again.

    Other violation codes are left alone. Calling this on a batch that has
    no such violation returns an equal state. An empty batch also has its
    error map cleared.
    """
    updates: dict = {}

    if not state.files and state.errors:
        updates["errors"] = {}

    if len(state.files) <= max_files and any(
        f.has_violation(ViolationCode.TOO_MANY_FILES) for f in state.files
    ):
        updates["files"] = [
            f.model_copy(update={
                "violations": [v for v in f.violations if v.code != ViolationCode.TOO_MANY_FILES]
            })
            if f.has_violation(ViolationCode.TOO_MANY_FILES) else f
            for f in state.files
        ]

    if not updates:
        return state
    return state.model_copy(update=updates)


def remove_file(
    state: BatchState,
    name: str,
    previews: PreviewRegistry,
    max_files: int,
) -> BatchState:
    """
    Remove every batch entry with the given name and release its preview.

    The file's success/error entries go with it.
    """
    kept = []
    for f in state.files:
        if f.name == name:
            previews.release(f.preview_handle)
        else:
            kept.append(f)

    new_state = state.model_copy(update={
        "files": kept,
        "successes": [s for s in state.successes if s != name],
        "errors": {k: v for k, v in state.errors.items() if k != name},
    })
    return reconcile_count_constraint(new_state, max_files)


def reset(state: BatchState, previews: PreviewRegistry) -> BatchState:
    """Clear the batch, releasing every preview handle."""
    for f in state.files:
        previews.release(f.preview_handle)
    return BatchState()
