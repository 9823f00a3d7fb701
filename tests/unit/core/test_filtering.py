"""Unit tests for input expansion and extension filtering."""

from __future__ import annotations

from pathlib import Path

import pytest

from doctr_core.filtering import (
    expand_input_paths,
    extensions_from_formats,
    filter_by_extension,
    normalize_extension,
)
from doctr_core.ports.orchestrator import ConfigurationError
from doctr_schemas.jobs import DocumentFormat


@pytest.mark.unit
def test_filter_partitions_paths_in_input_order() -> None:
    """Every path lands in exactly one list, order preserved."""
    paths = ["b.DOCX", "a.txt", "c.exe", "d", "e.Txt", "f.pdf"]
    accepted, discarded = filter_by_extension(paths, [".txt", "docx"])

    assert accepted == ["b.DOCX", "a.txt", "e.Txt"]
    assert discarded == ["c.exe", "d", "f.pdf"]
    assert sorted(accepted + discarded) == sorted(paths)


@pytest.mark.unit
def test_filter_rejects_empty_extension_set() -> None:
    """An empty allowed set is a configuration error."""
    with pytest.raises(ConfigurationError) as exc_info:
        filter_by_extension(["a.txt"], ["", "  "])
    assert exc_info.value.info.code == "configuration_error"


@pytest.mark.unit
def test_filter_of_empty_input_is_empty() -> None:
    """No paths yields two empty lists."""
    assert filter_by_extension([], [".txt"]) == ([], [])


@pytest.mark.unit
@pytest.mark.parametrize(
    ("raw", "expected"),
    [("TXT", ".txt"), (".Docx", ".docx"), ("  pdf ", ".pdf"), ("", "")],
)
def test_normalize_extension(raw: str, expected: str) -> None:
    """Extensions are lowercased and dot-prefixed."""
    assert normalize_extension(raw) == expected


@pytest.mark.unit
def test_extensions_from_formats_unions_every_format() -> None:
    """Formats contribute all of their extensions."""
    formats = [
        DocumentFormat(format="HTML", file_extensions=[".html", "HTM"]),
        DocumentFormat(format="PlainText", file_extensions=[".txt", " "]),
    ]
    assert extensions_from_formats(formats) == {".html", ".htm", ".txt"}


@pytest.mark.unit
def test_expand_input_paths_lists_directories_without_recursing(
    tmp_path: Path,
) -> None:
    """Directories expand to their direct files, sorted by name."""
    folder = tmp_path / "in"
    folder.mkdir()
    (folder / "b.txt").write_text("b")
    (folder / "a.txt").write_text("a")
    nested = folder / "nested"
    nested.mkdir()
    (nested / "deep.txt").write_text("deep")
    single = tmp_path / "single.docx"
    single.write_text("x")

    expanded = expand_input_paths([str(single), str(folder)])

    assert expanded == [
        str(single),
        str(folder / "a.txt"),
        str(folder / "b.txt"),
    ]
