"""Storage records for containers, blobs and local source files."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from pydantic import ConfigDict, Field

from doctr_schemas.base import BaseSchema
from doctr_schemas.primitives import ROLE_SUFFIXES, ContainerName, ContainerRole


class ContainerInfo(BaseSchema):
    """Container listing entry returned by the storage backend."""

    name: str = Field(..., min_length=1, description="Container name")
    last_modified: datetime = Field(..., description="Last modification time")

    @property
    def role(self) -> ContainerRole | None:
        """Return the run role implied by the name suffix, if any."""
        for role, suffix in ROLE_SUFFIXES.items():
            if self.name.endswith(suffix):
                return role
        return None


class BlobInfo(BaseSchema):
    """Blob listing entry returned by the storage backend."""

    name: str = Field(..., min_length=1, description="Blob name")
    size: int = Field(..., ge=0, description="Blob size in bytes")


class RunContainerNames(BaseSchema):
    """Names of the three containers owned by one run."""

    model_config = ConfigDict(frozen=True)

    base_token: str = Field(..., min_length=1, description="Shared random base token")
    source: ContainerName = Field(..., description="Source container name")
    target: ContainerName = Field(..., description="Target container name")
    glossary: ContainerName = Field(..., description="Glossary container name")

    def for_role(self, role: ContainerRole) -> str:
        """Return the container name for a role.

        Returns:
            str: Container name.
        """
        match role:
            case ContainerRole.SOURCE:
                return self.source
            case ContainerRole.TARGET:
                return self.target
            case ContainerRole.GLOSSARY:
                return self.glossary

    def all(self) -> list[str]:
        """Return the three names in source, target, glossary order."""
        return [self.source, self.target, self.glossary]


class SourceFile(BaseSchema):
    """Local file paired with its flattened storage name."""

    model_config = ConfigDict(frozen=True)

    path: str = Field(..., min_length=1, description="Local file path")
    name: str = Field(..., min_length=1, description="Storage name (base filename)")

    @classmethod
    def from_path(cls, path: str) -> SourceFile:
        """Build a source file, flattening the directory structure.

        Returns:
            SourceFile: Source file whose name is the base filename.
        """
        return cls(path=path, name=Path(path).name)
