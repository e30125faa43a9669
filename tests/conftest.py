"""Shared fixtures for validation-profiles tests."""
import pytest

from validation_profiles import reset_settings


@pytest.fixture(autouse=True)
def fresh_settings():
    """Reload the bundled settings around each test."""
    reset_settings()
    yield
    reset_settings()
