# =============================================================================
# core/services/project_file_service.py - project_files Table Operations
# =============================================================================
# Handles the metadata rows that describe files stored in a project folder.
#
# A row is only ever written after its blob was stored. Deleting goes the
# other way round: the blob is removed first and the row only when that
# succeeded, so a row never points at nothing the user can't retry.
# =============================================================================

import asyncio
import logging
from typing import Any
from uuid import UUID

from lib.supabase_client import SupabaseClient
from app.exceptions import FileRecordError, ProjectFileNotFoundError
from core.models.upload import StorageRecord
from core.services.storage_service import StorageService, error_message

logger = logging.getLogger(__name__)

# Table holding one row per uploaded file
TABLE_NAME = "project_files"


class ProjectFileService:
    """
    Service for project file metadata.

    Provides a clean interface between API routes and the project_files
    table. Ownership filtering is the caller's concern.
    """

    @staticmethod
    def create_file_record(record: StorageRecord) -> dict[str, Any]:
        """
        Insert a metadata row for a stored file.

        Args:
            record: Row to write (file_name unsanitized, file_path sanitized)

        Returns:
            Created row dict with id, uploaded_at, etc.

        Raises:
            FileRecordError: If the insert fails
        """
        client = SupabaseClient.get_client()
        data = record.model_dump()

        try:
            response = (
                client.table(TABLE_NAME)
                .insert(data)
                .execute()
            )
        except Exception as e:
            message = error_message(e)
            logger.error(f"Failed to save file metadata for {record.file_path}: {message}")
            raise FileRecordError(message, details={"file_path": record.file_path})

        if not response.data:
            raise FileRecordError(
                "Insert returned no data",
                details={"file_path": record.file_path},
            )

        row = response.data[0]
        logger.info(f"Created file record {row.get('id')} for project {record.project_id}")
        return row

    @staticmethod
    def list_project_files(project_id: str | UUID) -> list[dict[str, Any]]:
        """
        List metadata rows for a project, newest first.

        Raises:
            FileRecordError: If the query fails
        """
        client = SupabaseClient.get_client()
        project_id_str = str(project_id)

        try:
            response = (
                client.table(TABLE_NAME)
                .select("*")
                .eq("project_id", project_id_str)
                .order("uploaded_at", desc=True)
                .execute()
            )
            return response.data or []

        except Exception as e:
            message = error_message(e)
            logger.error(f"Failed to fetch project files for {project_id_str}: {message}")
            raise FileRecordError(message, details={"project_id": project_id_str})

    @staticmethod
    def get_file_record(project_id: str | UUID, file_id: str | UUID) -> dict[str, Any]:
        """
        Get one metadata row.

        Raises:
            ProjectFileNotFoundError: If no row matches project and id
            FileRecordError: If the query fails
        """
        client = SupabaseClient.get_client()
        project_id_str = str(project_id)
        file_id_str = str(file_id)

        try:
            response = (
                client.table(TABLE_NAME)
                .select("*")
                .eq("id", file_id_str)
                .eq("project_id", project_id_str)
                .limit(1)
                .execute()
            )
        except Exception as e:
            message = error_message(e)
            raise FileRecordError(message, details={"file_id": file_id_str})

        if not response.data:
            raise ProjectFileNotFoundError(file_id_str)
        return response.data[0]

    @staticmethod
    def delete_file_record(file_id: str | UUID) -> None:
        """
        Delete one metadata row.

        Raises:
            FileRecordError: If the delete fails
        """
        client = SupabaseClient.get_client()
        file_id_str = str(file_id)

        try:
            client.table(TABLE_NAME).delete().eq("id", file_id_str).execute()
            logger.info(f"Deleted file record {file_id_str}")

        except Exception as e:
            message = error_message(e)
            logger.error(f"Failed to delete file record {file_id_str}: {message}")
            raise FileRecordError(message, details={"file_id": file_id_str})

    @staticmethod
    def delete_project_file(
        bucket_name: str,
        project_id: str | UUID,
        file_id: str | UUID,
    ) -> dict[str, Any]:
        """
        Delete a stored file and its metadata row.

        The object is removed first; if that fails the row stays so the
        user can retry.

        Returns:
            The deleted row

        Raises:
            ProjectFileNotFoundError: If the row doesn't exist
            StorageDeleteError: If the object can't be removed
            FileRecordError: If the row can't be removed
        """
        row = ProjectFileService.get_file_record(project_id, file_id)
        StorageService.remove_files(bucket_name, [row["file_path"]])
        ProjectFileService.delete_file_record(row["id"])
        return row


class SupabaseMetadataStore:
    """Async MetadataStore backed by ProjectFileService."""

    async def insert(self, record: StorageRecord) -> dict[str, Any]:
        return await asyncio.to_thread(ProjectFileService.create_file_record, record)
