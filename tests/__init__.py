# =============================================================================
# tests/ - Test Suite
# =============================================================================
# This package contains all tests for the Project Files API:
# - test_filenames.py: Storage key sanitization
# - test_intake.py: Batch intake, dedup and violation reconciliation
# - test_upload_coordinator.py: Upload cycles, retry scope, sessions
# - test_supabase_services.py: Supabase adapters with a mocked client
# - test_config.py: Settings parsing
# - test_api.py: HTTP endpoints
#
# Run tests with: pytest
# =============================================================================
