# =============================================================================
# core/services/upload_coordinator.py - Batch Upload Coordination
# =============================================================================
# Runs upload cycles over a batch:
# 1. Work out which files are eligible (retry scope)
# 2. Upload each eligible file concurrently: blob first, then metadata row
# 3. Wait for every file, then aggregate errors and successes
#
# One file failing never stops its siblings. Only the aggregated error map
# is surfaced to callers.
#
# UploadSession wraps a BatchState and serializes intake against cycles so
# the eligible set is never computed from a batch that is changing.
# =============================================================================

import asyncio
import logging
from typing import Any, Callable, Protocol

from app.exceptions import BatchHasViolationsError
from core.models.upload import (
    BatchState,
    CandidateFile,
    RawFile,
    Rejection,
    StorageRecord,
    UploadCycleResult,
    UploadOptions,
    UploadOutcome,
)
from core.services import intake_service
from core.services.intake_service import PreviewRegistry
from lib.filenames import build_storage_key

logger = logging.getLogger(__name__)

# Prefix for errors raised by the metadata write after the blob was stored
METADATA_ERROR_PREFIX = "metadata error: "


class BlobStore(Protocol):
    """Object storage the coordinator writes file content to."""

    async def put(
        self,
        bucket: str,
        key: str,
        content: bytes,
        *,
        content_type: str,
        cache_control: int = 3600,
        upsert: bool = False,
    ) -> None: ...

    async def remove(self, bucket: str, keys: list[str]) -> None: ...

    async def download(self, bucket: str, key: str) -> bytes: ...


class MetadataStore(Protocol):
    """Relational store receiving one row per stored file."""

    async def insert(self, record: StorageRecord) -> Any: ...


def _describe(exc: Exception) -> str:
    return getattr(exc, "message", None) or str(exc)


# =============================================================================
# Pure Functions
# =============================================================================

def eligible_files(
    files: list[CandidateFile],
    prior_errors: dict[str, str],
    prior_successes: list[str],
) -> list[CandidateFile]:
    """
    Files to attempt in the next cycle.

    With prior errors: files that failed plus files that never succeeded.
    Files that already succeeded are skipped to avoid writing them twice.
    Without prior errors: the whole batch.

    Batch order is kept and each name appears at most once.
    """
    if not prior_errors:
        return list(files)

    succeeded = set(prior_successes)
    selected = []
    seen = set()
    for f in files:
        if f.name in seen:
            continue
        if f.name in prior_errors or f.name not in succeeded:
            selected.append(f)
            seen.add(f.name)
    return selected


def aggregate_outcomes(
    outcomes: list[UploadOutcome],
    prior_successes: list[str],
) -> UploadCycleResult:
    """
    Combine one cycle's outcomes with earlier successes.

    The error map is rebuilt from this cycle only, so a file that failed
    before and succeeded now disappears from it. Successes accumulate.
    """
    errors = {o.file_name: o.error_message for o in outcomes if not o.succeeded}

    successes = list(dict.fromkeys([
        *prior_successes,
        *(o.file_name for o in outcomes if o.succeeded),
    ]))
    successes = [name for name in successes if name not in errors]

    return UploadCycleResult(outcomes=outcomes, errors=errors, successes=successes)


def apply_upload_cycle_result(state: BatchState, result: UploadCycleResult) -> BatchState:
    """Fold a cycle result into the batch and mark it idle."""
    return state.model_copy(update={
        "errors": dict(result.errors),
        "successes": list(result.successes),
        "in_flight": False,
    })


# =============================================================================
# Coordinator
# =============================================================================

class UploadCoordinator:
    """
    Executes upload cycles against a BlobStore and a MetadataStore.

    Example:
        coordinator = UploadCoordinator(SupabaseBlobStore(), SupabaseMetadataStore(), options)
        result = await coordinator.upload(state)
        state = apply_upload_cycle_result(state, result)
    """

    def __init__(
        self,
        blob_store: BlobStore,
        metadata_store: MetadataStore,
        options: UploadOptions,
    ):
        self.blob_store = blob_store
        self.metadata_store = metadata_store
        self.options = options

    async def upload(self, state: BatchState) -> UploadCycleResult:
        """
        Run one upload cycle.

        Every eligible file is attempted, at most options.concurrency at a
        time. The result is only built after all of them finished.
        """
        targets = eligible_files(state.files, state.errors, state.successes)
        logger.info(
            f"Starting upload cycle: {len(targets)}/{len(state.files)} file(s) "
            f"to bucket {self.options.bucket_name}"
        )

        semaphore = asyncio.Semaphore(self.options.concurrency)

        async def upload_with_semaphore(file: CandidateFile) -> UploadOutcome:
            async with semaphore:
                try:
                    return await self._upload_one(file)
                except Exception as e:
                    message = _describe(e)
                    logger.exception(f"Unexpected error uploading {file.name}: {message}")
                    return UploadOutcome(file_name=file.name, error_message=message)

        outcomes = await asyncio.gather(*(upload_with_semaphore(f) for f in targets))
        result = aggregate_outcomes(list(outcomes), state.successes)

        logger.info(
            f"Upload cycle finished: {len(targets) - len(result.errors)}/{len(targets)} succeeded"
        )
        return result

    async def _upload_one(self, file: CandidateFile) -> UploadOutcome:
        options = self.options
        storage_key = build_storage_key(options.path, file.name)

        try:
            await self.blob_store.put(
                options.bucket_name,
                storage_key,
                file.content,
                content_type=file.mime_type,
                cache_control=options.cache_control,
                upsert=options.upsert,
            )
        except Exception as e:
            message = _describe(e)
            logger.warning(f"Upload failed for {file.name}: {message}")
            return UploadOutcome(file_name=file.name, error_message=message)

        if options.path:
            try:
                record = StorageRecord(
                    project_id=options.path,
                    file_name=file.name,
                    file_path=storage_key,
                    file_size=file.size_bytes,
                    mime_type=file.mime_type,
                )
                await self.metadata_store.insert(record)
            except Exception as e:
                message = _describe(e)
                logger.error(f"Failed to save file metadata for {file.name} ({storage_key}): {message}")
                if options.compensate_orphans:
                    await self._remove_orphan(storage_key)
                return UploadOutcome(file_name=file.name, error_message=METADATA_ERROR_PREFIX + message)

        return UploadOutcome(file_name=file.name)

    async def _remove_orphan(self, storage_key: str) -> None:
        try:
            await self.blob_store.remove(self.options.bucket_name, [storage_key])
            logger.info(f"Removed orphaned object {storage_key}")
        except Exception as e:
            logger.error(f"Failed to remove orphaned object {storage_key}: {_describe(e)}")


# =============================================================================
# Session
# =============================================================================

BatchListener = Callable[[BatchState], None]


class UploadSession:
    """
    Single-writer holder for one upload batch.

    Intake changes and upload cycles take the same lock, so the batch never
    changes while a cycle is running. Listeners get the new state after
    every transition.
    """

    def __init__(
        self,
        coordinator: UploadCoordinator,
        previews: PreviewRegistry | None = None,
    ):
        self.coordinator = coordinator
        self.previews = previews or PreviewRegistry()
        self._state = BatchState()
        self._lock = asyncio.Lock()
        self._listeners: list[BatchListener] = []

    @property
    def options(self) -> UploadOptions:
        return self.coordinator.options

    @property
    def state(self) -> BatchState:
        return self._state

    @property
    def is_success(self) -> bool:
        return self._state.is_success

    def subscribe(self, listener: BatchListener) -> Callable[[], None]:
        """
        Register a state listener.

        Returns:
            A function that removes the listener again
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set_state(self, state: BatchState) -> None:
        self._state = state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception as e:
                logger.error(f"Batch listener failed: {e}")

    async def add_selection(self, files: list[RawFile]) -> BatchState:
        """Validate one selection event and add it to the batch."""
        accepted, rejected = intake_service.validate_selection(files, self.options)
        return await self.add_files(accepted, rejected)

    async def add_files(self, accepted: list[RawFile], rejected: list[Rejection]) -> BatchState:
        async with self._lock:
            self._set_state(intake_service.add_files(
                self._state, accepted, rejected, self.previews, self.options.max_files
            ))
            return self._state

    async def remove_file(self, name: str) -> BatchState:
        async with self._lock:
            self._set_state(intake_service.remove_file(
                self._state, name, self.previews, self.options.max_files
            ))
            return self._state

    async def reset(self) -> BatchState:
        async with self._lock:
            self._set_state(intake_service.reset(self._state, self.previews))
            return self._state

    async def upload(self) -> UploadCycleResult:
        """
        Run one cycle over the batch.

        Raises:
            BatchHasViolationsError: If any file still carries a violation
        """
        async with self._lock:
            invalid = [f.name for f in self._state.files if f.violations]
            if invalid:
                raise BatchHasViolationsError(invalid)

            self._set_state(self._state.model_copy(update={"in_flight": True}))
            try:
                result = await self.coordinator.upload(self._state)
            except BaseException:
                self._set_state(self._state.model_copy(update={"in_flight": False}))
                raise

            self._set_state(apply_upload_cycle_result(self._state, result))
            return result
