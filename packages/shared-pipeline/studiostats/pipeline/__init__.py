"""
StudioStats Pipeline - run the full trial-client workflow.

Provides:
- StudioPipeline: normalize, deduplicate, classify, exclude and aggregate
- PipelineConfig: run settings, loadable from STUDIOSTATS_* variables
- Progress events and cooperative cancellation
- JSON snapshots of results

Usage:
    from studiostats.pipeline import PipelineConfig, StudioPipeline

    pipeline = StudioPipeline(PipelineConfig.from_env())
    result = pipeline.run(new_clients, bookings, payments)
    print(result.teachers, result.diagnostics.duplicates_discarded)
"""

from studiostats.pipeline.config import PipelineConfig
from studiostats.pipeline.exceptions import (
    ConfigError,
    InputContractError,
    PipelineCancelled,
    SnapshotError,
    StudioStatsError,
)
from studiostats.pipeline.orchestrator import (
    PipelineDiagnostics,
    PipelineResult,
    PipelineStatus,
    StudioPipeline,
    validate_source,
)
from studiostats.pipeline.progress import (
    PipelineStage,
    ProgressEvent,
    ProgressReporter,
)
from studiostats.pipeline.snapshot import load_snapshot, save_snapshot

__all__ = [
    # Orchestration
    "PipelineDiagnostics",
    "PipelineResult",
    "PipelineStatus",
    "StudioPipeline",
    "validate_source",
    # Configuration
    "PipelineConfig",
    # Progress
    "PipelineStage",
    "ProgressEvent",
    "ProgressReporter",
    # Snapshots
    "load_snapshot",
    "save_snapshot",
    # Exceptions
    "ConfigError",
    "InputContractError",
    "PipelineCancelled",
    "SnapshotError",
    "StudioStatsError",
]
