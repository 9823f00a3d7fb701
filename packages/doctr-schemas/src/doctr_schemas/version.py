"""Version information."""

from __future__ import annotations

from pydantic import Field

from doctr_schemas.base import BaseSchema


class VersionInfo(BaseSchema):
    """Application version information."""

    major: int = Field(..., ge=0, description="Major version number")
    minor: int = Field(..., ge=0, description="Minor version number")
    patch: int = Field(..., ge=0, description="Patch version number")

    def __str__(self) -> str:
        """Return semantic version string."""
        return f"{self.major}.{self.minor}.{self.patch}"


VERSION = VersionInfo(major=0, minor=1, patch=0)
