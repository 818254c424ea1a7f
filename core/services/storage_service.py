# =============================================================================
# core/services/storage_service.py - Supabase Storage Operations
# =============================================================================
# Handles blob put/remove/download against Supabase Storage.
#
# StorageService is the synchronous wrapper around the Supabase client.
# SupabaseBlobStore adapts it to the async BlobStore interface the upload
# coordinator fans out over.
# =============================================================================

import asyncio
import logging

from lib.supabase_client import SupabaseClient
from app.exceptions import StorageUploadError, StorageDownloadError, StorageDeleteError

logger = logging.getLogger(__name__)


def error_message(exc: Exception) -> str:
    """
    Extract the human-readable message from a Supabase client error.

    storage3 raises StorageException with the response body dict as its
    first argument; postgrest raises APIError with a .message attribute.
    """
    if exc.args and isinstance(exc.args[0], dict) and exc.args[0].get("message"):
        return str(exc.args[0]["message"])
    message = getattr(exc, "message", None)
    if isinstance(message, str) and message:
        return message
    return str(exc)


class StorageService:
    """
    Service for Supabase Storage operations.

    Handles uploading, deleting and downloading objects in a bucket.
    """

    @staticmethod
    def upload_file(
        bucket_name: str,
        path: str,
        content: bytes,
        content_type: str = "application/octet-stream",
        cache_control: int = 3600,
        upsert: bool = False,
    ) -> str:
        """
        Upload raw file content to storage.

        Args:
            bucket_name: Target bucket
            path: Object key (already sanitized)
            content: File bytes
            content_type: MIME type stored with the object
            cache_control: Cache-Control max-age in seconds
            upsert: Overwrite an existing object; when False an existing
                key makes the upload fail

        Returns:
            Storage path

        Raises:
            StorageUploadError: If upload fails
        """
        client = SupabaseClient.get_client()

        try:
            client.storage.from_(bucket_name).upload(
                path=path,
                file=content,
                file_options={
                    "content-type": content_type,
                    "cache-control": str(cache_control),
                    "upsert": "true" if upsert else "false",
                }
            )

            logger.info(f"Uploaded file to storage: {bucket_name}/{path}")
            return path

        except Exception as e:
            message = error_message(e)
            logger.error(f"Storage upload failed for {path}: {message}")
            raise StorageUploadError(message, path=path)

    @staticmethod
    def remove_files(bucket_name: str, paths: list[str]) -> None:
        """
        Delete objects from storage.

        Args:
            bucket_name: Bucket holding the objects
            paths: Object keys to remove

        Raises:
            StorageDeleteError: If removal fails
        """
        client = SupabaseClient.get_client()

        try:
            client.storage.from_(bucket_name).remove(paths)
            logger.info(f"Deleted {len(paths)} file(s) from storage: {paths}")

        except Exception as e:
            message = error_message(e)
            logger.error(f"Failed to delete files {paths}: {message}")
            raise StorageDeleteError(paths, message)

    @staticmethod
    def download_file(bucket_name: str, path: str) -> bytes:
        """
        Download raw file content from storage.

        Args:
            bucket_name: Bucket holding the object
            path: Object key

        Returns:
            File content as bytes

        Raises:
            StorageDownloadError: If download fails
        """
        client = SupabaseClient.get_client()

        try:
            response = client.storage.from_(bucket_name).download(path)
            logger.info(f"Downloaded file from storage: {bucket_name}/{path}")
            return response

        except Exception as e:
            message = error_message(e)
            logger.error(f"Storage download failed for {path}: {message}")
            raise StorageDownloadError(path, message)


class SupabaseBlobStore:
    """
    Async BlobStore backed by StorageService.

    The Supabase client is synchronous, so every call runs in a worker
    thread and the event loop stays free for sibling uploads.
    """

    async def put(
        self,
        bucket: str,
        key: str,
        content: bytes,
        *,
        content_type: str,
        cache_control: int = 3600,
        upsert: bool = False,
    ) -> None:
        await asyncio.to_thread(
            StorageService.upload_file,
            bucket,
            key,
            content,
            content_type,
            cache_control,
            upsert,
        )

    async def remove(self, bucket: str, keys: list[str]) -> None:
        await asyncio.to_thread(StorageService.remove_files, bucket, keys)

    async def download(self, bucket: str, key: str) -> bytes:
        return await asyncio.to_thread(StorageService.download_file, bucket, key)
