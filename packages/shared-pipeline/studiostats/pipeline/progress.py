"""Progress reporting for pipeline runs.

The pipeline reports a fixed sequence of stages. Percentages are clamped to
0-100 and never go backwards, and a failing callback never breaks a run.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProgressEvent:
    """One progress notification."""

    percent_complete: int
    stage_label: str


ProgressCallback = Callable[[ProgressEvent], None]


class PipelineStage(Enum):
    """Pipeline stages with their progress percentage and label."""

    STARTING = (0, "Starting processing...")
    NORMALIZING = (10, "Normalizing records...")
    DEDUPLICATING = (25, "Deduplicating clients...")
    CLASSIFYING_CONVERSIONS = (45, "Classifying conversions...")
    CLASSIFYING_RETENTION = (65, "Classifying retention...")
    APPLYING_EXCLUSIONS = (75, "Applying exclusions...")
    AGGREGATING = (90, "Aggregating metrics...")
    FINALIZING = (100, "Finalizing...")

    @property
    def percent(self) -> int:
        return self.value[0]

    @property
    def label(self) -> str:
        return self.value[1]


class ProgressReporter:
    """
    Forward progress events to an optional callback.

    Example:
        reporter = ProgressReporter(lambda e: print(e.percent_complete, e.stage_label))
        reporter.stage(PipelineStage.NORMALIZING)
    """

    def __init__(self, callback: ProgressCallback | None = None):
        self._callback = callback
        self._last_percent = 0
        self.events: list[ProgressEvent] = []

    @property
    def last_percent(self) -> int:
        return self._last_percent

    def report(self, percent: float, label: str) -> ProgressEvent:
        """
        Emit a progress event.

        Args:
            percent: Completion percentage; clamped to 0-100 and never lower
                than the previous event.
            label: Human-readable stage label.

        Returns:
            The event that was emitted.
        """
        clamped = int(min(100, max(0, percent)))
        self._last_percent = max(self._last_percent, clamped)
        event = ProgressEvent(percent_complete=self._last_percent, stage_label=label)
        self.events.append(event)

        if self._callback is not None:
            try:
                self._callback(event)
            except Exception as e:
                logger.warning(f"Progress callback failed at {event.percent_complete}%: {e}")
        return event

    def stage(self, stage: PipelineStage) -> ProgressEvent:
        """Emit the event for a pipeline stage."""
        return self.report(stage.percent, stage.label)
