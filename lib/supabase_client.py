# =============================================================================
# lib/supabase_client.py - Supabase Client Wrapper
# =============================================================================
# This module owns the single Supabase client used by the service layer.
# Storage (blob) and table (metadata) operations both go through it:
# - core/services/storage_service.py uses client.storage
# - core/services/project_file_service.py uses client.table("project_files")
#
# The client is created lazily so that importing the package never needs
# network access or credentials (tests inject fakes instead).
#
# Usage:
#   from lib.supabase_client import SupabaseClient
#   client = SupabaseClient.get_client()
# =============================================================================

from __future__ import annotations

import logging

from supabase import create_client, Client

from app.config import settings
from app.exceptions import SupabaseClientError

# Set up logging for this module
logger = logging.getLogger(__name__)


class SupabaseClient:
    """
    Singleton holder for the Supabase client.

    All methods are class methods for easy access without instantiation.

    Example:
        client = SupabaseClient.get_client()
        client.storage.from_("project-files").upload(path, data)
    """

    _instance: Client | None = None

    @classmethod
    def get_client(cls) -> Client:
        """
        Get or create the singleton Supabase client.

        Uses the service_role key, which bypasses Row Level Security.
        Ownership filtering is done by the callers of this service.

        Returns:
            Client: Supabase client instance

        Raises:
            SupabaseClientError: If client creation fails
        """
        if cls._instance is None:
            try:
                cls._instance = create_client(
                    settings.SUPABASE_URL,
                    settings.SUPABASE_SERVICE_KEY
                )
                logger.info("Supabase client initialized successfully")
            except Exception as e:
                raise SupabaseClientError(str(e))
        return cls._instance

    # -------------------------------------------------------------------------
    # Health
    # -------------------------------------------------------------------------

    @classmethod
    def check_database(cls, table: str = "project_files") -> None:
        """
        Run a minimal query against a table.

        Raises:
            Exception: Whatever the client raises when the query fails
        """
        client = cls.get_client()
        client.table(table).select("id").limit(1).execute()

    @classmethod
    def check_storage(cls) -> None:
        """
        List buckets to confirm storage is reachable.

        Raises:
            Exception: Whatever the client raises when the call fails
        """
        client = cls.get_client()
        client.storage.list_buckets()
