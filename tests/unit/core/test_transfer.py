"""Unit tests for bounded upload and download managers."""

from __future__ import annotations

from pathlib import Path

import pytest

from doctr_core.transfer import DownloadManager, UploadManager
from doctr_io import InMemoryStorageBackend
from doctr_schemas.storage import SourceFile
from tests.helpers.fakes import ConcurrencyTrackingStorage, FailingUploadStorage


def _write_files(folder: Path, count: int) -> list[SourceFile]:
    folder.mkdir(parents=True, exist_ok=True)
    files: list[SourceFile] = []
    for index in range(count):
        path = folder / f"doc{index:03d}.txt"
        path.write_bytes(b"x" * (index + 1))
        files.append(SourceFile.from_path(str(path)))
    return files


@pytest.mark.unit
@pytest.mark.asyncio
async def test_upload_never_exceeds_parallel_limit(tmp_path: Path) -> None:
    """At most K uploads are in flight at once."""
    storage = ConcurrencyTrackingStorage()
    storage.add_container("src")
    files = _write_files(tmp_path / "in", 40)
    uploader = UploadManager(storage, max_parallel=4)

    report = await uploader.upload("src", files)

    assert report.count == 40
    assert report.total_bytes == sum(range(1, 41))
    assert storage.peak <= 4
    assert uploader.peak_in_flight <= 4
    assert len(storage.blobs("src")) == 40


@pytest.mark.unit
@pytest.mark.asyncio
async def test_upload_records_failures_without_aborting(tmp_path: Path) -> None:
    """A failed file is reported and the rest still upload."""
    storage = FailingUploadStorage({"doc001.txt"})
    storage.add_container("src")
    files = _write_files(tmp_path / "in", 3)
    missing = SourceFile.from_path(str(tmp_path / "in" / "gone.txt"))

    report = await UploadManager(storage, max_parallel=2).upload(
        "src", [*files, missing]
    )

    assert report.count == 2
    assert sorted(report.transferred) == ["doc000.txt", "doc002.txt"]
    assert {failure.name for failure in report.failures} == {
        "doc001.txt",
        "gone.txt",
    }
    assert report.failed_count == 2


@pytest.mark.unit
@pytest.mark.asyncio
async def test_upload_flattens_directory_structure(tmp_path: Path) -> None:
    """Files from different folders with one base name share a blob."""
    storage = InMemoryStorageBackend()
    storage.add_container("src")
    first = tmp_path / "one" / "same.txt"
    second = tmp_path / "two" / "same.txt"
    for path, content in ((first, b"first"), (second, b"second")):
        path.parent.mkdir(parents=True)
        path.write_bytes(content)

    await UploadManager(storage, max_parallel=1).upload(
        "src", [SourceFile.from_path(str(first)), SourceFile.from_path(str(second))]
    )

    assert list(storage.blobs("src")) == ["same.txt"]


@pytest.mark.unit
def test_managers_reject_non_positive_limit() -> None:
    """A zero or negative limit is a programming error."""
    storage = InMemoryStorageBackend()
    with pytest.raises(ValueError):
        UploadManager(storage, max_parallel=0)
    with pytest.raises(ValueError):
        DownloadManager(storage, max_parallel=-1)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_download_writes_every_blob_with_bounded_parallelism(
    tmp_path: Path,
) -> None:
    """Every listed blob lands in the created destination folder."""
    storage = ConcurrencyTrackingStorage()
    storage.add_container("tgt")
    for index in range(25):
        await storage.upload_object("tgt", f"out{index}.txt", b"data")
    storage.peak = 0
    destination = tmp_path / "out" / "nested"

    downloader = DownloadManager(storage, max_parallel=3)
    report = await downloader.download("tgt", destination)

    assert report.count == 25
    assert report.total_bytes == 100
    assert storage.peak <= 3
    assert sorted(path.name for path in destination.iterdir()) == sorted(
        f"out{index}.txt" for index in range(25)
    )


@pytest.mark.unit
@pytest.mark.asyncio
async def test_download_of_empty_container_creates_folder(tmp_path: Path) -> None:
    """An empty target container yields an empty report and folder."""
    storage = InMemoryStorageBackend()
    storage.add_container("tgt")
    destination = tmp_path / "empty"

    report = await DownloadManager(storage).download("tgt", destination)

    assert report.count == 0
    assert destination.is_dir()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_download_rejects_names_outside_the_folder(tmp_path: Path) -> None:
    """Blob names resolving outside the folder are failures, never written."""
    storage = InMemoryStorageBackend()
    storage.add_container("tgt")
    await storage.upload_object("tgt", "ok.txt", b"fine")
    await storage.upload_object("tgt", "../escape.txt", b"nope")
    await storage.upload_object("tgt", str(tmp_path / "absolute.txt"), b"nope")
    destination = tmp_path / "out"

    report = await DownloadManager(storage).download("tgt", destination)

    assert report.transferred == ["ok.txt"]
    assert report.total_bytes == 4
    assert sorted(failure.name for failure in report.failures) == sorted(
        ["../escape.txt", str(tmp_path / "absolute.txt")]
    )
    assert all("escapes" in failure.error for failure in report.failures)
    assert not (tmp_path / "escape.txt").exists()
    assert not (tmp_path / "absolute.txt").exists()
    assert sorted(path.name for path in destination.iterdir()) == ["ok.txt"]
