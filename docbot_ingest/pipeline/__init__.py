"""Ingestion pipeline: the resumable orchestrator and progress reporting."""

from docbot_ingest.pipeline.orchestrator import BatchLimits, IngestionOrchestrator
from docbot_ingest.pipeline.progress_tracker import ProgressEvent, ProgressSink, ProgressTracker

__all__ = [
    "BatchLimits",
    "IngestionOrchestrator",
    "ProgressEvent",
    "ProgressSink",
    "ProgressTracker",
]
