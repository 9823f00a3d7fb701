"""Masking of storage and translator credentials in log output."""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping

from doctr_schemas.primitives import JsonValue

REDACTED = "[REDACTED]"

# Secret-bearing fragments of SAS URLs and storage connection strings.
DEFAULT_SECRET_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"(?<=[?&]sig=)[^&\s\"']+"),
    re.compile(r"(?<=AccountKey=)[^;\s\"']+"),
    re.compile(r"(?<=SharedAccessSignature=)[^;\s\"']+"),
    re.compile(r"(?i)(?<=Ocp-Apim-Subscription-Key: )\S+"),
)


class Redactor:
    """Redact credentials from log messages and structured data."""

    def __init__(
        self,
        patterns: Iterable[re.Pattern[str]] = DEFAULT_SECRET_PATTERNS,
        literal_values: Iterable[str] = (),
    ) -> None:
        """Initialize with patterns and literal secret values.

        Args:
            patterns: Compiled patterns whose matches are masked.
            literal_values: Exact secrets to mask, such as the translator key.
        """
        self.patterns = list(patterns)
        self.literal_values = sorted(
            (value for value in literal_values if value), key=len, reverse=True
        )

    def redact(self, value: str) -> str:
        """Mask every secret found in a string.

        Returns:
            str: String with secrets replaced by ``[REDACTED]``.
        """
        result = value
        for literal in self.literal_values:
            result = result.replace(literal, REDACTED)
        for pattern in self.patterns:
            result = pattern.sub(REDACTED, result)
        return result

    def redact_value(self, value: JsonValue) -> JsonValue:
        """Deep-walk a JSON value and mask every string in it.

        Returns:
            JsonValue: Copy of the value with secrets masked.
        """
        if isinstance(value, str):
            return self.redact(value)
        if isinstance(value, dict):
            return self.redact_dict(value)
        if isinstance(value, list):
            return [self.redact_value(item) for item in value]
        return value

    def redact_dict(self, data: Mapping[str, JsonValue]) -> dict[str, JsonValue]:
        """Return a copy of a mapping with every string value masked."""
        return {key: self.redact_value(value) for key, value in data.items()}


def connection_string_secrets(connection_string: str | None) -> list[str]:
    """Extract the secret parts of a storage connection string.

    Returns:
        list[str]: Account key and shared access signature values, if present.
    """
    if not connection_string:
        return []
    secrets: list[str] = []
    for part in connection_string.split(";"):
        key, _, value = part.partition("=")
        if key.strip() in {"AccountKey", "SharedAccessSignature"} and value:
            secrets.append(value.strip())
    return secrets
