"""Job status polling state machine."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from doctr_core.ports.translation import TranslationBackendProtocol
from doctr_core.run_log import RunLogger
from doctr_schemas.events import RunLogEvent
from doctr_schemas.jobs import JobStatusSnapshot
from doctr_schemas.primitives import JobState, RunPhase

# Statuses that keep the loop going even when every document counter is zero.
IN_FLIGHT_STATUSES = frozenset({"NotStarted"})

type StatusCallback = Callable[[JobStatusSnapshot, bool], Awaitable[None]]


def should_keep_polling(snapshot: JobStatusSnapshot) -> bool:
    """Return True while the job can still make progress."""
    summary = snapshot.summary
    return (
        summary.in_progress > 0
        or summary.not_yet_started > 0
        or snapshot.status in IN_FLIGHT_STATUSES
    )


def classify_terminal_status(snapshot: JobStatusSnapshot) -> JobState:
    """Map a terminal snapshot to a job state.

    Returns:
        JobState: FAILED when the status text reports a failure, CANCELLED for
        cancelled jobs, PARTIALLY_FAILED when some documents failed, and
        SUCCEEDED otherwise.
    """
    if snapshot.is_failure:
        return JobState.FAILED
    if snapshot.is_cancelled:
        return JobState.CANCELLED
    if snapshot.summary.failed > 0:
        return JobState.PARTIALLY_FAILED
    return JobState.SUCCEEDED


@dataclass(frozen=True, slots=True)
class PollResult:
    """Terminal outcome of a polling loop."""

    state: JobState
    snapshot: JobStatusSnapshot
    polls: int


class StatusPoller:
    """Poll a job on a fixed interval until it reaches a terminal status.

    State moves ``UNKNOWN -> SUBMITTED -> POLLING -> terminal``. A status
    update is reported only when the last-action time changes, followed by
    exactly one final update once the loop exits.
    """

    def __init__(
        self,
        translation: TranslationBackendProtocol,
        *,
        interval_s: float = 1.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        logger: RunLogger | None = None,
    ) -> None:
        """Initialize the status poller.

        Args:
            translation: Translation service answering status checks.
            interval_s: Delay before each status check.
            sleep: Awaitable delay function.
            logger: Optional run logger.

        Raises:
            ValueError: If interval_s is not positive.
        """
        if interval_s <= 0:
            raise ValueError("interval_s must be positive")
        self._translation = translation
        self._interval_s = interval_s
        self._sleep = sleep
        self._logger = logger
        self.state = JobState.UNKNOWN
        self.polls = 0

    async def poll(
        self, handle: str, on_update: StatusCallback | None = None
    ) -> PollResult:
        """Poll until the job leaves its in-flight statuses.

        Args:
            handle: Processing-location handle returned by submission.
            on_update: Callback receiving ``(snapshot, final)``.

        Returns:
            PollResult: Terminal state, last snapshot and number of checks.
        """
        self.state = JobState.SUBMITTED
        self.polls = 0
        last_action: str | None = None
        seen_any = False
        while True:
            await self._sleep(self._interval_s)
            snapshot = await self._translation.check_status(handle)
            self.polls += 1
            self.state = JobState.POLLING
            if self._logger is not None:
                await self._logger.debug(
                    RunLogEvent.JOB_STATUS,
                    f"Service status: {snapshot.created_date_time_utc} "
                    f"{snapshot.status}",
                    phase=RunPhase.POLL,
                    data={
                        "status": snapshot.status,
                        "in_progress": snapshot.summary.in_progress,
                        "not_yet_started": snapshot.summary.not_yet_started,
                    },
                )
            if not seen_any or snapshot.last_action_date_time_utc != last_action:
                seen_any = True
                last_action = snapshot.last_action_date_time_utc
                if on_update is not None:
                    await on_update(snapshot, False)
            if not should_keep_polling(snapshot):
                break
        if on_update is not None:
            await on_update(snapshot, True)
        self.state = classify_terminal_status(snapshot)
        return PollResult(state=self.state, snapshot=snapshot, polls=self.polls)
