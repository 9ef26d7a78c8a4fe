"""Ingestion progress tracking with callback-based listener notification.

Stores the latest progress snapshot for each file being ingested and
broadcasts updates to registered listener callbacks.  Listeners are keyed
by file name so concurrent ingestions do not cross-talk.

The orchestrator and document service never touch the tracker directly:
they receive a :data:`ProgressSink` (any async callable accepting a
:class:`ProgressEvent`) and :meth:`ProgressTracker.update` is one such
sink.  Tests pass a plain list-appending coroutine instead.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from dataclasses import asdict, dataclass

import structlog

from docbot_ingest.models.ingestion import IngestionPhase
from docbot_ingest.utils.logging import get_logger


@dataclass(frozen=True)
class ProgressEvent:
    """One progress report for a file.

    ``current``/``total`` count batches during embedding and are ``0``/``0``
    for phases without a natural unit.
    """

    file_name: str
    phase: IngestionPhase
    current: int = 0
    total: int = 0
    message: str = ""

    def to_dict(self) -> dict:
        data = asdict(self)
        data["phase"] = self.phase.value
        # The upload dashboard reads "stage" for the phase label.
        data["stage"] = self.phase.value
        return data


ProgressSink = Callable[[ProgressEvent], Awaitable[None]]


async def null_sink(event: ProgressEvent) -> None:
    """Sink that discards every event."""


_TERMINAL_PHASES = frozenset({IngestionPhase.DONE, IngestionPhase.FAILED})


class ProgressTracker:
    """Tracks and broadcasts ingestion progress via callbacks.

    External consumers register sync or async callbacks that are invoked
    whenever :meth:`update` is called for their file.  Once a file reaches
    DONE or FAILED its listeners are dropped, and its final snapshot is kept
    for *retention* seconds so pollers can still read the outcome.
    """

    def __init__(
        self,
        retention: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._statuses: dict[str, ProgressEvent] = {}
        self._listeners: dict[str, list[Callable]] = {}
        self._finished_at: dict[str, float] = {}
        self._retention = retention
        self._clock = clock
        self._logger: structlog.BoundLogger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def update(self, event: ProgressEvent) -> None:
        """Record *event* and notify the file's listeners."""
        self._expire_finished()
        self._statuses[event.file_name] = event
        if event.phase in _TERMINAL_PHASES:
            self._finished_at[event.file_name] = self._clock()
        else:
            self._finished_at.pop(event.file_name, None)

        self._logger.debug(
            "progress_update",
            file_name=event.file_name,
            phase=event.phase.value,
            current=event.current,
            total=event.total,
            message=event.message,
        )

        await self._notify_listeners(event)
        if event.phase in _TERMINAL_PHASES:
            self._listeners.pop(event.file_name, None)

    def register_listener(self, file_name: str, callback: Callable) -> None:
        """Register a sync or async callable accepting a :class:`ProgressEvent`."""
        listeners = self._listeners.setdefault(file_name, [])
        if callback not in listeners:
            listeners.append(callback)
            self._logger.debug(
                "listener_registered",
                file_name=file_name,
                total_listeners=len(listeners),
            )

    def unregister_listener(self, file_name: str, callback: Callable) -> None:
        listeners = self._listeners.get(file_name, [])
        if callback in listeners:
            listeners.remove(callback)
            self._logger.debug(
                "listener_unregistered",
                file_name=file_name,
                remaining_listeners=len(listeners),
            )

    def get_status(self, file_name: str) -> dict | None:
        """Return the latest snapshot for *file_name*, or ``None`` if untracked."""
        self._expire_finished()
        status = self._statuses.get(file_name)
        return status.to_dict() if status else None

    def clear(self, file_name: str) -> None:
        """Forget the snapshot and listeners of a finished file."""
        self._statuses.pop(file_name, None)
        self._listeners.pop(file_name, None)
        self._finished_at.pop(file_name, None)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _expire_finished(self) -> None:
        cutoff = self._clock() - self._retention
        for file_name in [f for f, at in self._finished_at.items() if at <= cutoff]:
            self.clear(file_name)

    async def _notify_listeners(self, event: ProgressEvent) -> None:
        """Invoke all listeners; a failing listener is logged and skipped."""
        for callback in list(self._listeners.get(event.file_name, [])):
            try:
                result = callback(event)
                if asyncio.iscoroutine(result):
                    await result
            except Exception as exc:
                self._logger.warning(
                    "listener_callback_error",
                    file_name=event.file_name,
                    error=str(exc),
                    callback=getattr(callback, "__name__", repr(callback)),
                )
