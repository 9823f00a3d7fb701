"""Common pytest configuration."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest

from doctr_cli.settings import get_settings
from doctr_io import InMemoryEventSink, InMemoryLogSink, InMemoryStorageBackend
from doctr_schemas.config import CleanupConfig, PollingConfig, RunConfig


@pytest.fixture
def storage() -> InMemoryStorageBackend:
    """Return an empty in-memory storage backend."""
    return InMemoryStorageBackend()


@pytest.fixture
def log_sink() -> InMemoryLogSink:
    """Return a log sink collecting entries in memory."""
    return InMemoryLogSink()


@pytest.fixture
def event_sink() -> InMemoryEventSink:
    """Return an event sink collecting events in memory."""
    return InMemoryEventSink()


@pytest.fixture
def fast_config() -> RunConfig:
    """Return a run config that never sweeps and polls quickly."""
    return RunConfig(
        polling=PollingConfig(interval_s=0.001),
        cleanup=CleanupConfig(sweep_probability=0.0),
    )


@pytest.fixture
def documents(tmp_path: Path) -> Path:
    """Create a folder with two translatable files and one unsupported file.

    Returns:
        Path: Folder holding ``a.txt``, ``b.docx`` and ``notes.xyz``.
    """
    folder = tmp_path / "docs"
    folder.mkdir()
    (folder / "a.txt").write_bytes(b"hello")
    (folder / "b.docx").write_bytes(b"world!")
    (folder / "notes.xyz").write_bytes(b"skip me")
    return folder


@pytest.fixture(autouse=True)
def _isolated_settings(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> Iterator[None]:
    """Keep ambient DOCTR_* variables and .env files out of tests."""
    for name in (
        "DOCTR_STORAGE_CONNECTION_STRING",
        "DOCTR_CONTAINER_PREFIX",
        "DOCTR_TRANSLATOR_ENDPOINT",
        "DOCTR_TRANSLATOR_KEY",
        "DOCTR_TRANSLATOR_REGION",
        "DOCTR_TRANSLATOR_API_PATH",
        "DOCTR_TRANSLATOR_LANGUAGES_URL",
        "DOCTR_TRANSLATOR_TIMEOUT",
        "DOCTR_CATEGORY",
        "DOCTR_LOG_FILE",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
