"""Studio pipeline orchestrator.

Runs the full trial-client workflow over the three studio exports:

1. Normalize new-client, payments and bookings rows
2. Deduplicate clients by email
3. Classify conversion and retention for every client
4. Remove friends & family, staff and promotional entries
5. Aggregate included clients into teacher / location / period metrics
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

import pandas as pd

from studiostats.conversions import (
    BookingNormalizer,
    ClientNormalizer,
    ClientOutcome,
    ClientProfile,
    ConversionClassifier,
    ConversionResult,
    ExclusionFilter,
    ExclusionRecord,
    PurchaseNormalizer,
    RetentionClassifier,
    RetentionResult,
    SourceType,
    join_outcomes,
)
from studiostats.identity import ClientDeduplicator
from studiostats.pipeline.config import PipelineConfig
from studiostats.pipeline.exceptions import InputContractError, PipelineCancelled
from studiostats.pipeline.progress import PipelineStage, ProgressCallback, ProgressReporter
from studiostats.reporting import (
    TeacherPeriodMetric,
    aggregate,
    build_tabs,
    dimension_values,
    studio_view,
)

logger = logging.getLogger(__name__)

SourceData = pd.DataFrame | Sequence[Mapping[str, Any]]


class PipelineStatus(str, Enum):
    """Status of a pipeline run."""

    PENDING = "pending"
    NORMALIZING = "normalizing"
    CLASSIFYING = "classifying"
    AGGREGATING = "aggregating"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass
class PipelineDiagnostics:
    """Data-quality counters collected during a run.

    Attributes:
        rows_read: Input rows per source.
        sentinel_rows_dropped: Summary ("All Teachers") rows dropped per source.
        duplicates_discarded: Client rows dropped as duplicate emails.
        duplicate_emails: Emails that appeared more than once.
        clients_with_validation_errors: Clients carrying at least one
            validation error code.
    """

    rows_read: dict[str, int] = field(default_factory=dict)
    sentinel_rows_dropped: dict[str, int] = field(default_factory=dict)
    duplicates_discarded: int = 0
    duplicate_emails: list[str] = field(default_factory=list)
    clients_with_validation_errors: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "rows_read": dict(self.rows_read),
            "sentinel_rows_dropped": dict(self.sentinel_rows_dropped),
            "duplicates_discarded": self.duplicates_discarded,
            "duplicate_emails": list(self.duplicate_emails),
            "clients_with_validation_errors": self.clients_with_validation_errors,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PipelineDiagnostics:
        return cls(
            rows_read=dict(data.get("rows_read", {})),
            sentinel_rows_dropped=dict(data.get("sentinel_rows_dropped", {})),
            duplicates_discarded=int(data.get("duplicates_discarded", 0)),
            duplicate_emails=list(data.get("duplicate_emails", [])),
            clients_with_validation_errors=int(data.get("clients_with_validation_errors", 0)),
        )


def _timestamp(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _parse_timestamp(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


@dataclass
class PipelineResult:
    """Result of a pipeline run.

    ``processed_data`` holds the leaf teacher metrics. ``included_records``
    are the clients counted in them; ``excluded_records`` explain every
    client left out. Conversion and retention results cover all clients,
    excluded ones included.
    """

    status: PipelineStatus
    processed_data: list[TeacherPeriodMetric] = field(default_factory=list)
    locations: list[str] = field(default_factory=list)
    teachers: list[str] = field(default_factory=list)
    periods: list[str] = field(default_factory=list)
    included_records: list[ClientOutcome] = field(default_factory=list)
    excluded_records: list[ExclusionRecord] = field(default_factory=list)
    conversion_results: list[ConversionResult] = field(default_factory=list)
    retention_results: list[RetentionResult] = field(default_factory=list)
    diagnostics: PipelineDiagnostics = field(default_factory=PipelineDiagnostics)
    started_at: datetime | None = None
    completed_at: datetime | None = None

    @property
    def is_success(self) -> bool:
        """Return True if the run completed."""
        return self.status == PipelineStatus.COMPLETED

    @property
    def duration_seconds(self) -> float | None:
        """Return duration of the run in seconds."""
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    @property
    def new_client_records(self) -> list[ClientOutcome]:
        """Every counted trial client."""
        return list(self.included_records)

    @property
    def converted_client_records(self) -> list[ClientOutcome]:
        return [o for o in self.included_records if o.conversion.is_converted]

    @property
    def retained_client_records(self) -> list[ClientOutcome]:
        return [o for o in self.included_records if o.retention.is_retained]

    @property
    def clients(self) -> list[ClientProfile]:
        """All deduplicated clients, in input order."""
        return [r.client for r in self.conversion_results]

    def studio_metrics(self) -> list[TeacherPeriodMetric]:
        """Per-location metrics with teachers combined."""
        return studio_view(self.processed_data)

    def to_dataframes(self) -> dict[str, pd.DataFrame]:
        """Report tabs as DataFrames: teachers, studios, included, excluded."""
        return build_tabs(self.processed_data, self.included_records, self.excluded_records)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-safe dictionary."""
        return {
            "status": self.status.value,
            "started_at": _timestamp(self.started_at),
            "completed_at": _timestamp(self.completed_at),
            "processed_data": [m.to_dict() for m in self.processed_data],
            "locations": list(self.locations),
            "teachers": list(self.teachers),
            "periods": list(self.periods),
            "clients": [c.to_dict() for c in self.clients],
            "conversion_results": [r.to_dict() for r in self.conversion_results],
            "retention_results": [r.to_dict() for r in self.retention_results],
            "included_records": [o.to_dict() for o in self.included_records],
            "excluded_records": [r.to_dict() for r in self.excluded_records],
            "diagnostics": self.diagnostics.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PipelineResult:
        """Rebuild a result from ``to_dict()`` output."""
        clients = {
            profile.client_ref: profile
            for profile in (ClientProfile.from_dict(c) for c in data.get("clients", []))
        }
        return cls(
            status=PipelineStatus(data["status"]),
            processed_data=[
                TeacherPeriodMetric.from_dict(m) for m in data.get("processed_data", [])
            ],
            locations=list(data.get("locations", [])),
            teachers=list(data.get("teachers", [])),
            periods=list(data.get("periods", [])),
            included_records=[
                ClientOutcome.from_dict(o) for o in data.get("included_records", [])
            ],
            excluded_records=[
                ExclusionRecord.from_dict(r) for r in data.get("excluded_records", [])
            ],
            conversion_results=[
                ConversionResult.from_dict(r, clients[r["client_ref"]])
                for r in data.get("conversion_results", [])
            ],
            retention_results=[
                RetentionResult.from_dict(r, clients[r["client_ref"]])
                for r in data.get("retention_results", [])
            ],
            diagnostics=PipelineDiagnostics.from_dict(data.get("diagnostics", {})),
            started_at=_parse_timestamp(data.get("started_at")),
            completed_at=_parse_timestamp(data.get("completed_at")),
        )


def validate_source(name: str, data: Any, required: bool = True) -> SourceData:
    """
    Check that a source is a DataFrame or a sequence of row mappings.

    Args:
        name: Source name, for error messages.
        data: The source as passed by the caller.
        required: If False, None is accepted and treated as no rows.

    Returns:
        The source, or an empty list for an omitted optional source.

    Raises:
        InputContractError: If the source or one of its rows has the wrong shape.
    """
    if data is None and not required:
        return []
    if isinstance(data, pd.DataFrame):
        return data
    if not isinstance(data, (list, tuple)):
        raise InputContractError(
            f"{name} must be a list of rows or a DataFrame, got {type(data).__name__}"
        )
    for position, row in enumerate(data):
        if not isinstance(row, Mapping):
            raise InputContractError(
                f"{name} row {position} must be a mapping, got {type(row).__name__}"
            )
    return data


class StudioPipeline:
    """Orchestrates the trial-client conversion and retention workflow.

    A pipeline object holds configuration only; every ``run`` builds fresh
    normalizers, indexes and metrics, so identical inputs give identical
    results.

    Example:
        >>> pipeline = StudioPipeline(PipelineConfig(min_post_trial_visits=2))
        >>> result = pipeline.run(new_clients, bookings, payments)
        >>> for metric in result.processed_data:
        ...     print(metric.teacher_name, metric.conversion_rate)
    """

    def __init__(self, config: PipelineConfig | None = None):
        """Initialize the pipeline.

        Args:
            config: Pipeline configuration. Defaults to ``PipelineConfig()``.
        """
        self.config = config or PipelineConfig()
        self.status = PipelineStatus.PENDING

    def _advance(
        self,
        reporter: ProgressReporter,
        stage: PipelineStage,
        cancel_event: threading.Event | None,
    ) -> None:
        """Stop if cancelled, otherwise report the next stage."""
        if cancel_event is not None and cancel_event.is_set():
            raise PipelineCancelled(f"Pipeline cancelled before: {stage.label}")
        reporter.stage(stage)

    def run(
        self,
        new_clients: SourceData,
        bookings: SourceData,
        payments: SourceData | None = None,
        progress: ProgressCallback | None = None,
        cancel_event: threading.Event | None = None,
    ) -> PipelineResult:
        """Run the pipeline.

        Args:
            new_clients: New-client visits export.
            bookings: Class bookings export.
            payments: Payments export; None means no payments were supplied.
            progress: Optional callback receiving ProgressEvent objects.
            cancel_event: Optional event; when set, the run stops at the
                next stage boundary.

        Returns:
            PipelineResult with metrics, audit lists and diagnostics.

        Raises:
            InputContractError: If a source has the wrong shape. Raised before
                any stage runs.
            PipelineCancelled: If ``cancel_event`` is set during the run.
        """
        new_clients = validate_source("new_clients", new_clients)
        bookings = validate_source("bookings", bookings)
        payments = validate_source("payments", payments, required=False)

        config = self.config
        reporter = ProgressReporter(progress)
        result = PipelineResult(
            status=PipelineStatus.PENDING,
            started_at=datetime.now(UTC),
        )
        self.status = result.status

        try:
            self._advance(reporter, PipelineStage.STARTING, cancel_event)

            # Step 1: Normalize
            self.status = result.status = PipelineStatus.NORMALIZING
            self._advance(reporter, PipelineStage.NORMALIZING, cancel_event)
            client_normalizer = ClientNormalizer(
                field_overrides=config.overrides_for(SourceType.NEW_CLIENTS),
                aggregate_labels=config.aggregate_labels,
            )
            purchase_normalizer = PurchaseNormalizer(
                field_overrides=config.overrides_for(SourceType.PAYMENTS),
                aggregate_labels=config.aggregate_labels,
            )
            booking_normalizer = BookingNormalizer(
                field_overrides=config.overrides_for(SourceType.BOOKINGS),
                aggregate_labels=config.aggregate_labels,
            )
            profiles = client_normalizer.normalize(new_clients)
            purchases = purchase_normalizer.normalize(payments)
            booking_records = booking_normalizer.normalize(bookings)

            diagnostics = result.diagnostics
            for normalizer in (client_normalizer, purchase_normalizer, booking_normalizer):
                diagnostics.rows_read[normalizer.source.value] = normalizer.rows_read
                diagnostics.sentinel_rows_dropped[normalizer.source.value] = normalizer.dropped_rows

            # Step 2: Deduplicate
            self._advance(reporter, PipelineStage.DEDUPLICATING, cancel_event)
            deduplicated = ClientDeduplicator().deduplicate(profiles)
            clients = deduplicated.profiles
            diagnostics.duplicates_discarded = deduplicated.duplicates_discarded
            diagnostics.duplicate_emails = list(deduplicated.duplicate_emails)

            # Step 3: Classify
            self.status = result.status = PipelineStatus.CLASSIFYING
            self._advance(reporter, PipelineStage.CLASSIFYING_CONVERSIONS, cancel_event)
            conversions = ConversionClassifier(
                purchases,
                currency_symbol=config.currency_symbol,
            ).classify_all(clients, max_workers=config.max_workers)

            self._advance(reporter, PipelineStage.CLASSIFYING_RETENTION, cancel_event)
            retentions = RetentionClassifier(
                booking_records,
                min_post_trial_visits=config.min_post_trial_visits,
            ).classify_all(clients, max_workers=config.max_workers)

            result.conversion_results = conversions
            result.retention_results = retentions
            diagnostics.clients_with_validation_errors = sum(
                1 for r in conversions if r.validation_errors
            )

            # Step 4: Exclusions
            self._advance(reporter, PipelineStage.APPLYING_EXCLUSIONS, cancel_event)
            outcomes = join_outcomes(conversions, retentions, config.period_format)
            exclusion_filter = ExclusionFilter(
                rules=config.exclusion_rules,
                fields=config.exclusion_fields,
            )
            included, excluded = exclusion_filter.apply(outcomes)
            result.included_records = included
            result.excluded_records = excluded

            # Step 5: Aggregate
            self.status = result.status = PipelineStatus.AGGREGATING
            self._advance(reporter, PipelineStage.AGGREGATING, cancel_event)
            metrics = aggregate(included, config.period_format)
            teachers, locations, periods = dimension_values(metrics, config.period_format)
            result.processed_data = metrics
            result.teachers = teachers
            result.locations = locations
            result.periods = periods

            # Success
            self._advance(reporter, PipelineStage.FINALIZING, cancel_event)
            self.status = result.status = PipelineStatus.COMPLETED
            result.completed_at = datetime.now(UTC)
            logger.info(
                f"Pipeline completed: {len(clients)} clients, {len(included)} included, "
                f"{len(excluded)} excluded, {len(metrics)} buckets "
                f"in {result.duration_seconds:.2f}s"
            )
            return result

        except PipelineCancelled:
            self.status = result.status = PipelineStatus.CANCELLED
            result.completed_at = datetime.now(UTC)
            logger.warning(f"Pipeline cancelled at {reporter.last_percent}%")
            raise

        except Exception:
            self.status = result.status = PipelineStatus.FAILED
            result.completed_at = datetime.now(UTC)
            logger.exception(f"Pipeline failed at {reporter.last_percent}%")
            raise
