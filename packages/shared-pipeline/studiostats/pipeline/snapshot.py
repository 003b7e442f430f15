"""Save and reload pipeline results as JSON."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from studiostats.pipeline.exceptions import SnapshotError
from studiostats.pipeline.orchestrator import PipelineResult

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1


def save_snapshot(result: PipelineResult, path: str | Path) -> Path:
    """
    Write a result to a JSON file.

    Args:
        result: Completed pipeline result.
        path: Destination file; parent directories are created.

    Returns:
        The path written.

    Raises:
        SnapshotError: If the file cannot be written.
    """
    path = Path(path)
    payload: dict[str, Any] = {"snapshot_version": SNAPSHOT_VERSION, **result.to_dict()}
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
    except (OSError, TypeError) as e:
        raise SnapshotError(f"Failed to write snapshot {path}: {e}") from e

    logger.info(f"Saved snapshot with {len(result.processed_data)} buckets to {path}")
    return path


def load_snapshot(path: str | Path) -> PipelineResult:
    """
    Read a result written by ``save_snapshot``.

    Raises:
        SnapshotError: If the file is missing, unreadable or malformed.
    """
    path = Path(path)
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise SnapshotError(f"Failed to read snapshot {path}: {e}") from e

    if not isinstance(payload, dict):
        raise SnapshotError(f"Snapshot {path} is not a JSON object")
    version = payload.pop("snapshot_version", None)
    if version != SNAPSHOT_VERSION:
        raise SnapshotError(
            f"Unsupported snapshot version {version!r} in {path} (expected {SNAPSHOT_VERSION})"
        )

    try:
        result = PipelineResult.from_dict(payload)
    except (KeyError, TypeError, ValueError) as e:
        raise SnapshotError(f"Malformed snapshot {path}: {e}") from e

    logger.info(f"Loaded snapshot with {len(result.processed_data)} buckets from {path}")
    return result
