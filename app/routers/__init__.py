# =============================================================================
# app/routers/ - API Route Definitions
# =============================================================================
# This package contains FastAPI routers organized by feature:
# - health.py: Health check endpoints
# - upload.py: Upload batch endpoints (intake, upload, retry)
# - files.py: Listing, download and deletion of uploaded project files
#
# Each router is mounted in main.py with a URL prefix.
# =============================================================================

from . import health
from . import upload
from . import files

__all__ = [
    "health",
    "upload",
    "files",
]
