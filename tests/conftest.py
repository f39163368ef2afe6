"""Pytest configuration and fixtures for assetvault tests.

This module provides common fixtures and configuration for all tests.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from assetvault.acl.groups import InMemoryGroupDirectory
from assetvault.storage.filesystem_store import FilesystemObjectStore

ASSETVAULT_ENV_VARS = (
    "ASSETVAULT_UPLOADS_DIR",
    "PUBLIC_OBJECT_SEARCH_PATHS",
    "ASSETVAULT_CACHE_MAX_AGE",
    "ASSETVAULT_API_KEYS_JSON",
    "ASSETVAULT_OTEL_ENABLED",
    "ASSETVAULT_OTEL_SERVICE_NAME",
    "ASSETVAULT_OTEL_EXPORTER",
    "ASSETVAULT_OTEL_EXPORTER_OTLP_ENDPOINT",
    "ASSETVAULT_OTEL_EXPORTER_OTLP_PROTOCOL",
)


@pytest.fixture(autouse=True)
def clean_assetvault_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove assetvault environment variables so tests start from defaults.

    Tests that need a variable set it with monkeypatch.
    """
    for var in ASSETVAULT_ENV_VARS:
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def uploads_dir(tmp_path: Path) -> Path:
    """Return an empty storage root inside the pytest temp directory."""
    root = tmp_path / "uploads"
    root.mkdir()
    return root


@pytest.fixture
def groups() -> InMemoryGroupDirectory:
    """Group directory with u4 in 'editors' and u5 in 'viewers'."""
    return InMemoryGroupDirectory({"editors": ["u4"], "viewers": ["u5"]})


@pytest.fixture
def store(uploads_dir: Path, groups: InMemoryGroupDirectory) -> FilesystemObjectStore:
    """Create a FilesystemObjectStore rooted at the temp uploads directory."""
    return FilesystemObjectStore(uploads_dir, groups=groups)
