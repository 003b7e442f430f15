"""Custom exceptions for the studio pipeline."""

from __future__ import annotations


class StudioStatsError(Exception):
    """Base exception for studio pipeline errors."""

    pass


class InputContractError(StudioStatsError):
    """Raised when an input source is not a row sequence or DataFrame."""

    pass


class PipelineCancelled(StudioStatsError):
    """Raised when a run is cancelled between stages."""

    pass


class SnapshotError(StudioStatsError):
    """Raised when a result snapshot cannot be written or read."""

    pass


class ConfigError(StudioStatsError, ValueError):
    """Raised when pipeline configuration is invalid."""

    pass
