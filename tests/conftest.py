"""
Pytest configuration and shared fixtures for ideakit tests.
"""

import logging
from pathlib import Path

import pytest

# Import test fixtures to make them available to all tests
# ruff: noqa: F401
from tests.fixtures.distributions import ide_zip, local_ide

from ideakit.config.parser import ResolverConfig
from ideakit.core.platform import clear_platform_cache


@pytest.fixture
def isolated_home(tmp_path: Path, monkeypatch) -> Path:
    """Create isolated home directory for tests."""
    fake_home = tmp_path / "home"
    fake_home.mkdir()

    monkeypatch.setenv("HOME", str(fake_home))
    monkeypatch.setenv("USERPROFILE", str(fake_home))

    return fake_home


@pytest.fixture
def resolver_config(tmp_path: Path) -> ResolverConfig:
    """ResolverConfig keeping every download and cache under tmp_path."""
    return ResolverConfig(
        repository_url="https://repo.example.com/intellij-repository",
        downloads_dir=tmp_path / "downloads",
        lock_timeout=5,
        max_workers=2,
    )


@pytest.fixture(autouse=True)
def reset_platform_cache():
    """Platform detection is cached per process; start every test clean."""
    clear_platform_cache()
    yield
    clear_platform_cache()


@pytest.fixture
def caplog_debug(caplog):
    """caplog capturing ideakit messages down to DEBUG."""
    caplog.set_level(logging.DEBUG, logger="ideakit")
    return caplog
