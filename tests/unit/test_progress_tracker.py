"""Unit tests for ProgressTracker and ProgressEvent."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from docbot_ingest.models.ingestion import IngestionPhase
from docbot_ingest.pipeline.progress_tracker import ProgressEvent, ProgressTracker, null_sink


def _event(phase: IngestionPhase = IngestionPhase.EMBEDDING, current: int = 1) -> ProgressEvent:
    return ProgressEvent(file_name="a.pdf", phase=phase, current=current, total=4, message="working")


class TestProgressEvent:
    def test_to_dict_adds_stage(self) -> None:
        data = _event().to_dict()
        assert data == {
            "file_name": "a.pdf",
            "phase": "embedding",
            "stage": "embedding",
            "current": 1,
            "total": 4,
            "message": "working",
        }

    @pytest.mark.asyncio
    async def test_null_sink_accepts_events(self) -> None:
        assert await null_sink(_event()) is None


class TestProgressTracker:
    @pytest.fixture()
    def tracker(self) -> ProgressTracker:
        return ProgressTracker()

    @pytest.mark.asyncio
    async def test_update_stores_latest_status(self, tracker: ProgressTracker) -> None:
        await tracker.update(_event(current=1))
        await tracker.update(_event(current=3))
        status = tracker.get_status("a.pdf")
        assert status is not None
        assert status["current"] == 3

    def test_untracked_file_returns_none(self, tracker: ProgressTracker) -> None:
        assert tracker.get_status("missing.pdf") is None

    @pytest.mark.asyncio
    async def test_sync_and_async_listeners_are_notified(self, tracker: ProgressTracker) -> None:
        sync_listener = MagicMock()
        received: list[ProgressEvent] = []

        async def async_listener(event: ProgressEvent) -> None:
            received.append(event)

        tracker.register_listener("a.pdf", sync_listener)
        tracker.register_listener("a.pdf", async_listener)
        tracker.register_listener("a.pdf", sync_listener)  # duplicate ignored

        event = _event()
        await tracker.update(event)

        sync_listener.assert_called_once_with(event)
        assert received == [event]

    @pytest.mark.asyncio
    async def test_listeners_are_scoped_to_their_file(self, tracker: ProgressTracker) -> None:
        listener = MagicMock()
        tracker.register_listener("other.pdf", listener)
        await tracker.update(_event())
        listener.assert_not_called()

    @pytest.mark.asyncio
    async def test_failing_listener_does_not_break_update(self, tracker: ProgressTracker) -> None:
        failing = MagicMock(side_effect=RuntimeError("boom"))
        healthy = MagicMock()
        tracker.register_listener("a.pdf", failing)
        tracker.register_listener("a.pdf", healthy)

        await tracker.update(_event())
        healthy.assert_called_once()

    @pytest.mark.asyncio
    async def test_unregister_and_clear(self, tracker: ProgressTracker) -> None:
        listener = MagicMock()
        tracker.register_listener("a.pdf", listener)
        tracker.unregister_listener("a.pdf", listener)
        await tracker.update(_event())
        listener.assert_not_called()

        tracker.clear("a.pdf")
        assert tracker.get_status("a.pdf") is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("phase", [IngestionPhase.DONE, IngestionPhase.FAILED])
    async def test_finished_files_expire_after_retention(self, phase: IngestionPhase) -> None:
        now = [1000.0]
        tracker = ProgressTracker(retention=60.0, clock=lambda: now[0])
        listener = MagicMock()
        tracker.register_listener("a.pdf", listener)

        await tracker.update(_event(phase=phase))
        listener.assert_called_once()
        assert "a.pdf" not in tracker._listeners

        now[0] += 59.0
        assert tracker.get_status("a.pdf")["phase"] == phase.value

        now[0] += 2.0
        assert tracker.get_status("a.pdf") is None
        assert tracker._statuses == {}
        assert tracker._finished_at == {}

    @pytest.mark.asyncio
    async def test_restarted_file_is_not_expired(self) -> None:
        now = [0.0]
        tracker = ProgressTracker(retention=10.0, clock=lambda: now[0])

        await tracker.update(_event(phase=IngestionPhase.FAILED))
        await tracker.update(_event(phase=IngestionPhase.PARSING))
        now[0] += 100.0

        assert tracker.get_status("a.pdf")["phase"] == "parsing"
