# =============================================================================
# tests/test_config.py - Settings Tests
# =============================================================================

import pytest
from pydantic import ValidationError

from app.config import Settings


def _settings(**overrides) -> Settings:
    values = {
        "SUPABASE_URL": "https://test-project.supabase.co",
        "SUPABASE_SERVICE_KEY": "test-service-key",
        "MAX_FILES": 1,
        "MAX_UPLOAD_SIZE_MB": 0,
        "ALLOWED_MIME_TYPES": "",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


class TestUploadOptions:
    """Tests for Settings.upload_options()."""

    def test_defaults(self):
        options = _settings().upload_options()

        assert options.bucket_name == "project-files"
        assert options.path is None
        assert options.allowed_mime_types == []
        assert options.max_file_size is None
        assert options.max_files == 1
        assert options.cache_control == 3600
        assert options.upsert is False
        assert options.compensate_orphans is False

    def test_parsed_values(self):
        settings = _settings(
            MAX_UPLOAD_SIZE_MB=10,
            ALLOWED_MIME_TYPES="image/*, Application/PDF",
            MAX_FILES=4,
        )

        options = settings.upload_options(path="project-1")

        assert options.path == "project-1"
        assert options.max_file_size == 10 * 1024 * 1024
        assert options.allowed_mime_types == ["image/*", "application/pdf"]
        assert options.max_files == 4

    def test_max_files_must_be_positive(self):
        with pytest.raises(ValidationError):
            _settings(MAX_FILES=0)
