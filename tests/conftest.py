# Test configuration

import pytest
import os
import sys

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))


@pytest.fixture
def test_settings():
    """Override settings for testing"""
    from sqlonjson.config.settings import Settings
    return Settings(
        _env_file=None,
        database_url="sqlite://",
        log_level="DEBUG",
    )


@pytest.fixture
def converter():
    """Converter bound to the default in-memory backend."""
    from sqlonjson import SqlOnJson
    return SqlOnJson()
