"""Base schema configuration for doctr Pydantic models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class BaseSchema(BaseModel):
    """Base schema with strict validation defaults."""

    model_config = ConfigDict(
        extra="ignore",
        validate_assignment=True,
        validate_default=True,
        str_strip_whitespace=True,
        use_enum_values=True,
        strict=True,
    )


class WireSchema(BaseSchema):
    """Schema exchanged with the translation service as camelCase JSON."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_wire(self) -> dict[str, object]:
        """Dump the model using the service field names.

        Returns:
            dict[str, object]: JSON-compatible payload with camelCase keys.
        """
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
