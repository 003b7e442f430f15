"""Tests for the studiostats.pipeline public API."""

import studiostats.pipeline as pipeline
from studiostats.pipeline import (
    ConfigError,
    InputContractError,
    PipelineCancelled,
    SnapshotError,
    StudioStatsError,
)


def test_public_api():
    """Test every exported name resolves."""
    for name in pipeline.__all__:
        assert hasattr(pipeline, name), name


def test_exception_hierarchy():
    for error in (ConfigError, InputContractError, PipelineCancelled, SnapshotError):
        assert issubclass(error, StudioStatsError)
    assert issubclass(ConfigError, ValueError)
