# =============================================================================
# lib/ - Standalone Utility Modules
# =============================================================================
# This package contains reusable utilities:
# - filenames.py: Storage-key-safe filename sanitization
# - supabase_client.py: Singleton Supabase client
#
# These modules are self-contained and can be tested in isolation.
# =============================================================================

from lib.filenames import build_storage_key, sanitize_filename, split_extension

__all__ = [
    # Filenames
    "build_storage_key",
    "sanitize_filename",
    "split_extension",
]
