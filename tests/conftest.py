# =============================================================================
# tests/conftest.py - Pytest Configuration
# =============================================================================
# This module provides pytest fixtures and configuration for all tests.
#
# Key features:
# - Sets up mock environment variables before any imports
# - In-memory BlobStore / MetadataStore fakes (no Supabase calls)
# - Helpers for building files and upload options
# =============================================================================

import asyncio
import os

# =============================================================================
# Set up test environment BEFORE any imports
# =============================================================================
# This must happen before importing app.config which loads settings immediately

os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_KEY", "test-service-key")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("MAX_FILES", "5")

import pytest

from core.models.upload import RawFile, StorageRecord, UploadOptions


# =============================================================================
# Fakes
# =============================================================================

class FakeBlobStore:
    """
    In-memory blob store.

    failures maps a storage key to the error message its put() raises.
    Without upsert, putting an existing key fails like Supabase does.
    """

    def __init__(self):
        self.objects: dict[tuple[str, str], bytes] = {}
        self.failures: dict[str, str] = {}
        self.remove_failures: set[str] = set()
        self.put_calls: list[dict] = []
        self.removed: list[str] = []
        self.active = 0
        self.max_active = 0

    async def put(self, bucket, key, content, *, content_type, cache_control=3600, upsert=False):
        self.put_calls.append({
            "bucket": bucket,
            "key": key,
            "content_type": content_type,
            "cache_control": cache_control,
            "upsert": upsert,
        })
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            # Yield so sibling uploads overlap
            await asyncio.sleep(0)
            if key in self.failures:
                raise Exception(self.failures[key])
            if (bucket, key) in self.objects and not upsert:
                raise Exception("The resource already exists")
            self.objects[(bucket, key)] = content
        finally:
            self.active -= 1

    async def remove(self, bucket, keys):
        for key in keys:
            if key in self.remove_failures:
                raise Exception(f"Cannot remove {key}")
        for key in keys:
            self.objects.pop((bucket, key), None)
            self.removed.append(key)

    async def download(self, bucket, key):
        await asyncio.sleep(0)
        if (bucket, key) not in self.objects:
            raise Exception("Object not found")
        return self.objects[(bucket, key)]

    def put_keys(self) -> list[str]:
        return [call["key"] for call in self.put_calls]


class FakeMetadataStore:
    """In-memory project_files table. failures maps file_path to an error."""

    def __init__(self):
        self.rows: list[StorageRecord] = []
        self.failures: dict[str, str] = {}

    async def insert(self, record):
        await asyncio.sleep(0)
        if record.file_path in self.failures:
            raise Exception(self.failures[record.file_path])
        self.rows.append(record)
        return {"id": f"row-{len(self.rows)}", **record.model_dump()}


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def blob_store():
    return FakeBlobStore()


@pytest.fixture
def metadata_store():
    return FakeMetadataStore()


@pytest.fixture
def project_id():
    return "550e8400-e29b-41d4-a716-446655440000"


@pytest.fixture
def options(project_id):
    """Options for a project batch of up to 5 files."""
    return UploadOptions(bucket_name="project-files", path=project_id, max_files=5)


@pytest.fixture
def make_file():
    """Build a RawFile from a name and optional content."""

    def _make(name: str, content: bytes = b"hello", mime_type: str = "text/plain") -> RawFile:
        return RawFile.from_bytes(name=name, content=content, mime_type=mime_type)

    return _make
