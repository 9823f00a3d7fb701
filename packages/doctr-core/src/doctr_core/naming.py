"""Collision-resistant naming of per-run storage containers."""

from __future__ import annotations

from collections.abc import Callable
from uuid import uuid4

from doctr_schemas.config import DEFAULT_CONTAINER_PREFIX
from doctr_schemas.primitives import ROLE_SUFFIXES, ContainerRole
from doctr_schemas.storage import RunContainerNames


def _random_token() -> str:
    return uuid4().hex


class ResourceNamer:
    """Derive the source, target and glossary container names of a run.

    Names are ``<prefix><token><suffix>`` where the token is 32 lowercase hex
    characters, which keeps them inside the storage naming rules.
    """

    def __init__(
        self,
        prefix: str = DEFAULT_CONTAINER_PREFIX,
        token_factory: Callable[[], str] = _random_token,
    ) -> None:
        """Initialize the namer.

        Args:
            prefix: Prefix shared by every container this system creates.
            token_factory: Source of the per-run random token.
        """
        self.prefix = prefix
        self._token_factory = token_factory

    def generate(self, token: str | None = None) -> RunContainerNames:
        """Return the container names for a new run.

        Args:
            token: Base token to use instead of a fresh random one.

        Returns:
            RunContainerNames: Three distinct names sharing one base token.
        """
        base = f"{self.prefix}{token or self._token_factory()}"
        return RunContainerNames(
            base_token=base,
            source=base + ROLE_SUFFIXES[ContainerRole.SOURCE],
            target=base + ROLE_SUFFIXES[ContainerRole.TARGET],
            glossary=base + ROLE_SUFFIXES[ContainerRole.GLOSSARY],
        )

    def is_run_container(self, name: str) -> bool:
        """Return True when a container name follows this system's convention."""
        return name.startswith(self.prefix) and name.endswith(
            tuple(ROLE_SUFFIXES.values())
        )
