"""Creation, deletion and garbage collection of per-run containers."""

from __future__ import annotations

import asyncio
import random as _random
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from doctr_core.naming import ResourceNamer
from doctr_core.ports.storage import StorageBackendProtocol, StorageError
from doctr_core.run_log import RunLogger
from doctr_schemas.events import RunLogEvent
from doctr_schemas.primitives import RunPhase
from doctr_schemas.storage import RunContainerNames

DEFAULT_RETENTION = timedelta(days=7)
DEFAULT_SWEEP_PROBABILITY = 0.1


class ContainerLifecycleManager:
    """Own the storage containers a run creates.

    Deletion is best-effort: storage failures are logged and never raised, so
    deleting an already-deleted container set is harmless.
    """

    def __init__(
        self,
        storage: StorageBackendProtocol,
        namer: ResourceNamer,
        *,
        logger: RunLogger | None = None,
        retention: timedelta = DEFAULT_RETENTION,
        sweep_probability: float = DEFAULT_SWEEP_PROBABILITY,
        random: Callable[[], float] = _random.random,
        now: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        """Initialize the lifecycle manager.

        Args:
            storage: Storage backend owning the containers.
            namer: Namer defining which containers belong to this system.
            logger: Optional run logger.
            retention: Age after which an abandoned container is swept.
            sweep_probability: Chance that ``maybe_sweep`` runs a sweep.
            random: Uniform [0, 1) source used for the sweep trigger.
            now: Current time provider.

        Raises:
            ValueError: If sweep_probability is outside [0, 1].
        """
        if not 0.0 <= sweep_probability <= 1.0:
            raise ValueError("sweep_probability must be between 0 and 1")
        self._storage = storage
        self._namer = namer
        self._logger = logger
        self._retention = retention
        self._sweep_probability = sweep_probability
        self._random = random
        self._now = now

    async def create_run_containers(self, names: RunContainerNames) -> None:
        """Create the source, target and glossary containers of a run.

        Raises:
            StorageError: If a container cannot be created.
        """
        for name in names.all():
            await self._storage.create_container_if_absent(name)

    async def delete_run_containers(
        self, names: RunContainerNames, *, glossary: bool = True
    ) -> list[str]:
        """Delete a run's containers, logging failures instead of raising.

        Args:
            names: Run container names.
            glossary: Also delete the glossary container.

        Returns:
            list[str]: Names whose deletion failed.
        """
        targets = [names.source, names.target]
        if glossary:
            targets.append(names.glossary)
        results = await asyncio.gather(
            *(self._delete_quietly(name) for name in targets)
        )
        return [
            name for name, deleted in zip(targets, results, strict=True) if not deleted
        ]

    async def sweep_abandoned(self, retention: timedelta | None = None) -> int:
        """Delete this system's containers older than the retention window.

        A container exactly as old as the window is kept.

        Args:
            retention: Window overriding the configured retention.

        Returns:
            int: Number of containers deleted.

        Raises:
            StorageError: If the container listing fails.
        """
        window = retention if retention is not None else self._retention
        cutoff = self._now() - window
        stale = [
            container.name
            async for container in self._storage.list_containers(self._namer.prefix)
            if self._namer.is_run_container(container.name)
            and container.last_modified < cutoff
        ]
        results = await asyncio.gather(*(self._delete_quietly(name) for name in stale))
        deleted = sum(1 for ok in results if ok)
        if self._logger is not None:
            await self._logger.info(
                RunLogEvent.SWEEP_COMPLETED,
                f"Deleted {deleted} abandoned containers",
                phase=RunPhase.CLEANUP,
                data={"deleted": deleted, "candidates": len(stale)},
            )
        return deleted

    async def maybe_sweep(self) -> int | None:
        """Sweep abandoned containers with the configured probability.

        Returns:
            int | None: Deleted count, or None when no sweep ran.
        """
        if self._sweep_probability <= 0 or self._random() >= self._sweep_probability:
            return None
        try:
            return await self.sweep_abandoned()
        except StorageError as exc:
            await self._warn(f"Sweeping abandoned containers failed: {exc}", None)
            return None

    async def _delete_quietly(self, name: str) -> bool:
        try:
            await self._storage.delete_container(name)
        except StorageError as exc:
            await self._warn(f"Deleting container {name} failed: {exc}", name)
            return False
        return True

    async def _warn(self, message: str, container: str | None) -> None:
        if self._logger is None:
            return
        await self._logger.warn(
            RunLogEvent.CONTAINER_DELETE_FAILED,
            message,
            phase=RunPhase.CLEANUP,
            data={"container": container} if container else None,
        )
