import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from macroboard.core.config import Settings, get_settings


def test_settings_defaults():
    """Test that settings load with correct defaults."""
    # Reset cache before test
    get_settings.cache_clear()

    settings = Settings(_env_file=None)

    assert settings.environment == "development"
    assert settings.debug is False
    assert settings.database_path == ":memory:"
    assert settings.threads is None
    assert settings.catalog_path is None
    assert settings.auto_bind_on_load is True
    assert settings.table_fallback_name == "table"
    assert settings.is_development is True


def test_settings_env_override():
    """Test that environment variables override defaults."""
    get_settings.cache_clear()

    with patch.dict(os.environ, {
        "MACROBOARD_ENVIRONMENT": "production",
        "MACROBOARD_DATABASE_PATH": "./data/board.duckdb",
        "MACROBOARD_THREADS": "4",
        "MACROBOARD_AUTO_BIND_ON_LOAD": "false",
        "MACROBOARD_LOG_FORMAT": "json",
        "MACROBOARD_DEBUG": "true",
    }):
        settings = get_settings()

        assert settings.environment == "production"
        assert settings.database_path == "./data/board.duckdb"
        assert settings.threads == 4
        assert settings.auto_bind_on_load is False
        assert settings.log_format == "json"
        assert settings.debug is True
        assert settings.is_development is False

    get_settings.cache_clear()


def test_get_settings_is_cached():
    """Test that settings are loaded once until the cache is cleared."""
    get_settings.cache_clear()

    assert get_settings() is get_settings()

    get_settings.cache_clear()


@pytest.mark.parametrize("threads", [0, -2])
def test_threads_validation(threads):
    """Test that thread counts must be positive."""
    with pytest.raises(ValidationError):
        Settings(threads=threads, _env_file=None)


@pytest.mark.parametrize("name", ["", "1table", "my table", "drop;"])
def test_fallback_name_validation(name):
    """Test that the fallback table name must be a bare identifier."""
    with pytest.raises(ValidationError):
        Settings(table_fallback_name=name, _env_file=None)

    assert Settings(table_fallback_name="upload_1", _env_file=None).table_fallback_name == "upload_1"


def test_invalid_log_level():
    """Test that unknown log levels are rejected."""
    with pytest.raises(ValidationError):
        Settings(log_level="VERBOSE", _env_file=None)
