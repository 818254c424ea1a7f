# =============================================================================
# core/ - Business Logic Package
# =============================================================================
# This package contains framework-agnostic business logic:
# - models/: Pydantic schemas for upload batches
# - services/: intake, upload coordination and Supabase adapters
#
# Code in this package should NOT import routers or the FastAPI app.
# This keeps the logic testable and reusable.
# =============================================================================
