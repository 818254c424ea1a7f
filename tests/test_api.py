# =============================================================================
# tests/test_api.py - HTTP Layer Tests
# =============================================================================
# Drives the FastAPI app with TestClient. Store dependencies are overridden
# with the in-memory fakes from conftest, so no Supabase calls are made.
# =============================================================================

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from app.dependencies import (
    BatchRegistry,
    get_batch_registry,
    get_blob_store,
    get_metadata_store,
)
from app.exceptions import StorageDeleteError
from app.main import app


@pytest.fixture
def client(blob_store, metadata_store):
    registry = BatchRegistry()
    app.dependency_overrides[get_blob_store] = lambda: blob_store
    app.dependency_overrides[get_metadata_store] = lambda: metadata_store
    app.dependency_overrides[get_batch_registry] = lambda: registry
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _upload_parts(*names: str) -> list:
    return [("files", (name, f"content of {name}".encode(), "text/plain")) for name in names]


def _create_batch(client, project_id=None) -> str:
    body = {"project_id": project_id} if project_id else None
    response = client.post("/api/v1/batches", json=body)
    assert response.status_code == 201
    return response.json()["batch_id"]


# =============================================================================
# Batch Endpoints
# =============================================================================

class TestBatchEndpoints:
    """Tests for /api/v1/batches."""

    def test_create_batch(self, client, project_id):
        response = client.post("/api/v1/batches", json={"project_id": project_id})

        assert response.status_code == 201
        data = response.json()
        assert data["project_id"] == project_id
        assert data["files"] == []
        assert data["is_success"] is False

    def test_unknown_batch(self, client):
        response = client.get("/api/v1/batches/missing")

        assert response.status_code == 404
        assert response.json()["code"] == "BATCH_NOT_FOUND"

    def test_upload_retry_flow(self, client, blob_store, metadata_store, project_id):
        batch_id = _create_batch(client, project_id)
        blob_store.failures[f"{project_id}/A_file.txt"] = "Network error"

        response = client.post(f"/api/v1/batches/{batch_id}/files", files=_upload_parts("A file.txt", "B.txt"))
        assert response.status_code == 200
        assert [f["status"] for f in response.json()["files"]] == ["pending", "pending"]

        # First cycle: A fails
        data = client.post(f"/api/v1/batches/{batch_id}/upload").json()
        assert data["errors"] == {"A file.txt": "Network error"}
        assert data["successes"] == ["B.txt"]
        assert data["is_success"] is False

        # Retry sends only A
        del blob_store.failures[f"{project_id}/A_file.txt"]
        blob_store.put_calls.clear()
        data = client.post(f"/api/v1/batches/{batch_id}/upload").json()

        assert blob_store.put_keys() == [f"{project_id}/A_file.txt"]
        assert data["errors"] == {}
        assert sorted(data["successes"]) == ["A file.txt", "B.txt"]
        assert data["is_success"] is True
        assert sorted(r.file_name for r in metadata_store.rows) == ["A file.txt", "B.txt"]

    def test_duplicate_names_ignored(self, client):
        batch_id = _create_batch(client)

        client.post(f"/api/v1/batches/{batch_id}/files", files=_upload_parts("a.txt"))
        response = client.post(f"/api/v1/batches/{batch_id}/files", files=_upload_parts("a.txt", "b.txt"))

        assert [f["name"] for f in response.json()["files"]] == ["a.txt", "b.txt"]

    def test_too_many_files_blocks_upload_until_removed(self, client):
        batch_id = _create_batch(client)
        names = [f"f{i}.txt" for i in range(6)]

        data = client.post(f"/api/v1/batches/{batch_id}/files", files=_upload_parts(*names)).json()
        assert all(f["violations"][0]["code"] == "too-many-files" for f in data["files"])

        response = client.post(f"/api/v1/batches/{batch_id}/upload")
        assert response.status_code == 422
        assert response.json()["code"] == "BATCH_HAS_VIOLATIONS"

        data = client.delete(f"/api/v1/batches/{batch_id}/files/f0.txt").json()
        assert len(data["files"]) == 5
        assert all(f["violations"] == [] for f in data["files"])

        response = client.post(f"/api/v1/batches/{batch_id}/upload")
        assert response.status_code == 200
        assert response.json()["is_success"] is True

    def test_remove_unknown_file(self, client):
        batch_id = _create_batch(client)

        response = client.delete(f"/api/v1/batches/{batch_id}/files/nope.txt")

        assert response.status_code == 404
        assert response.json()["code"] == "CANDIDATE_FILE_NOT_FOUND"

    def test_delete_batch(self, client):
        batch_id = _create_batch(client)
        client.post(f"/api/v1/batches/{batch_id}/files", files=_upload_parts("a.txt"))

        assert client.delete(f"/api/v1/batches/{batch_id}").status_code == 204
        assert client.get(f"/api/v1/batches/{batch_id}").status_code == 404


# =============================================================================
# Project File Endpoints
# =============================================================================

class TestProjectFileEndpoints:
    """Tests for /api/v1/projects/{id}/files with the service layer patched."""

    def _row(self, project_id):
        return {
            "id": "660e8400-e29b-41d4-a716-446655440001",
            "project_id": project_id,
            "file_name": "Q1 report.pdf",
            "file_path": f"{project_id}/Q1_report.pdf",
            "file_size": 1024,
            "mime_type": "application/pdf",
            "uploaded_at": "2024-01-15T10:30:00+00:00",
        }

    def test_list_files(self, client, project_id):
        with patch(
            "core.services.project_file_service.ProjectFileService.list_project_files",
            return_value=[self._row(project_id)],
        ):
            response = client.get(f"/api/v1/projects/{project_id}/files")

        assert response.status_code == 200
        assert response.json()[0]["file_name"] == "Q1 report.pdf"

    def test_delete_file(self, client, project_id):
        row = self._row(project_id)
        with patch(
            "core.services.project_file_service.ProjectFileService.delete_project_file",
            return_value=row,
        ) as delete:
            response = client.delete(f"/api/v1/projects/{project_id}/files/{row['id']}")

        assert response.status_code == 200
        assert delete.call_args.args[0] == "project-files"

    def test_download_file(self, client, blob_store, project_id):
        row = self._row(project_id)
        blob_store.objects[("project-files", row["file_path"])] = b"%PDF-1.7"
        with patch(
            "core.services.project_file_service.ProjectFileService.get_file_record",
            return_value=row,
        ):
            response = client.get(f"/api/v1/projects/{project_id}/files/{row['id']}/download")

        assert response.status_code == 200
        assert response.content == b"%PDF-1.7"
        assert response.headers["content-type"] == "application/pdf"
        assert response.headers["content-disposition"] == (
            "attachment; filename=\"Q1_report.pdf\"; filename*=UTF-8''Q1%20report.pdf"
        )

    def test_delete_file_storage_failure(self, client, project_id):
        row = self._row(project_id)
        with patch(
            "core.services.project_file_service.ProjectFileService.delete_project_file",
            side_effect=StorageDeleteError([row["file_path"]], "Object not found"),
        ):
            response = client.delete(f"/api/v1/projects/{project_id}/files/{row['id']}")

        assert response.status_code == 500
        assert response.json()["code"] == "STORAGE_DELETE_ERROR"


class TestHealth:
    """Tests for health endpoints."""

    def test_health(self, client):
        response = client.get("/api/v1/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_live(self, client):
        assert client.get("/api/v1/health/live").json()["status"] == "alive"
