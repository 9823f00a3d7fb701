"""Input expansion and extension filtering for source documents."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from pathlib import Path

from doctr_core.ports.orchestrator import ConfigurationError
from doctr_schemas.jobs import DocumentFormat


def normalize_extension(extension: str) -> str:
    """Return a lowercase, dot-prefixed extension.

    Returns:
        str: Normalized extension such as ``".docx"``.
    """
    cleaned = extension.strip().lower()
    if cleaned and not cleaned.startswith("."):
        cleaned = f".{cleaned}"
    return cleaned


def extensions_from_formats(formats: Iterable[DocumentFormat]) -> set[str]:
    """Collect the normalized extensions of the service's document formats.

    Returns:
        set[str]: Union of every format's extensions.
    """
    return {
        normalize_extension(extension)
        for document_format in formats
        for extension in document_format.file_extensions
        if extension.strip()
    }


def expand_input_paths(paths: Sequence[str]) -> list[str]:
    """Replace each directory with the files directly inside it.

    Directories are not walked recursively; files keep their input order and
    directory contents are sorted by name.

    Returns:
        list[str]: File paths to consider for translation.
    """
    expanded: list[str] = []
    for raw in paths:
        path = Path(raw)
        if path.is_dir():
            expanded.extend(
                str(child) for child in sorted(path.iterdir()) if child.is_file()
            )
        else:
            expanded.append(raw)
    return expanded


def filter_by_extension(
    paths: Sequence[str], allowed_extensions: Iterable[str]
) -> tuple[list[str], list[str]]:
    """Partition paths by whether their extension is translatable.

    Args:
        paths: Candidate file paths.
        allowed_extensions: Allowed extensions; compared case-insensitively.

    Returns:
        tuple[list[str], list[str]]: Accepted and discarded paths, each in
        input order.

    Raises:
        ConfigurationError: If the allowed extension set is empty.
    """
    allowed = {normalize_extension(ext) for ext in allowed_extensions if ext.strip()}
    if not allowed:
        raise ConfigurationError(
            "List of translatable extensions cannot be empty",
            argument="allowed_extensions",
        )
    accepted: list[str] = []
    discarded: list[str] = []
    for path in paths:
        if Path(path).suffix.lower() in allowed:
            accepted.append(path)
        else:
            discarded.append(path)
    return accepted, discarded
