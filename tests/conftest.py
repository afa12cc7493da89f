import pytest


@pytest.fixture
def settings_env(monkeypatch):
    """Set ROUNDLENS_* variables for one test and rebuild cached settings."""
    from roundlens.config import get_settings

    def apply(**values):
        for key, value in values.items():
            monkeypatch.setenv(f"ROUNDLENS_{key.upper()}", str(value))
        get_settings.cache_clear()
        return get_settings()

    yield apply
    get_settings.cache_clear()
