"""
Pytest configuration and shared fixtures for Galactic tests.
"""

import pytest

from galactic.env_settings import get_env


@pytest.fixture
def env(monkeypatch, tmp_path):
    """Settings pointing at a temporary config dir with a known secret."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    monkeypatch.setenv("GALACTIC_SECRET_KEY", "unit-test-secret")
    monkeypatch.setenv("GALACTIC_CONFIG_DIR", str(config_dir))
    monkeypatch.setenv("GALACTIC_LOG_DIR", str(tmp_path / "logs"))
    get_env.cache_clear()
    yield get_env()
    get_env.cache_clear()


@pytest.fixture
def config_dir(env):
    return env.config_dir
