"""
Teacher / location / period metrics.

Classified clients are grouped into buckets keyed by
``(teacher, location, period of first visit)``. Each bucket counts new,
retained and converted clients, sums first-purchase revenue of converted
clients, and derives rates from those counts.

Rollups ("All Teachers", "All Locations", "All Periods") are built by
summing leaf buckets, never by re-reading client rows, so a rollup always
equals the sum of what it contains.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, fields
from datetime import datetime
from typing import Any

from studiostats.conversions import ClientOutcome
from studiostats.conversions.outcomes import DEFAULT_PERIOD_FORMAT

logger = logging.getLogger(__name__)

ALL_TEACHERS = "All Teachers"
ALL_LOCATIONS = "All Locations"
ALL_PERIODS = "All Periods"

DIMENSIONS = ("teacher_name", "location", "period")
ROLLUP_LABELS = {
    "teacher_name": ALL_TEACHERS,
    "location": ALL_LOCATIONS,
    "period": ALL_PERIODS,
}
# Short names accepted by rollup()
DIMENSION_ALIASES = {"teacher": "teacher_name"}


def safe_rate(numerator: float, denominator: float, scale: float = 1.0) -> float:
    """Divide, returning 0.0 when the denominator is zero."""
    if not denominator:
        return 0.0
    return numerator * scale / denominator


@dataclass(frozen=True)
class TeacherPeriodMetric:
    """
    Aggregate counts for one (teacher, location, period) bucket.

    Only the counts are stored; every rate is derived on read and is 0 when
    its denominator is 0.
    """

    teacher_name: str
    location: str
    period: str
    new_clients: int = 0
    retained_clients: int = 0
    converted_clients: int = 0
    total_revenue: float = 0.0
    total_visits_post_trial: int = 0
    total_days_to_conversion: int = 0

    @property
    def bucket_key(self) -> tuple[str, str, str]:
        return (self.teacher_name, self.location, self.period)

    @property
    def not_retained_clients(self) -> int:
        return self.new_clients - self.retained_clients

    @property
    def not_converted_clients(self) -> int:
        return self.new_clients - self.converted_clients

    @property
    def retention_rate(self) -> float:
        """Retained clients as a percentage of new clients."""
        return safe_rate(self.retained_clients, self.new_clients, 100.0)

    @property
    def conversion_rate(self) -> float:
        """Converted clients as a percentage of new clients."""
        return safe_rate(self.converted_clients, self.new_clients, 100.0)

    @property
    def avg_revenue_per_converted_client(self) -> float:
        return safe_rate(self.total_revenue, self.converted_clients)

    @property
    def avg_visits_post_trial(self) -> float:
        return safe_rate(self.total_visits_post_trial, self.new_clients)

    @property
    def avg_days_to_conversion(self) -> float:
        return safe_rate(self.total_days_to_conversion, self.converted_clients)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary, including derived rates."""
        return {
            "teacher_name": self.teacher_name,
            "location": self.location,
            "period": self.period,
            "new_clients": self.new_clients,
            "retained_clients": self.retained_clients,
            "not_retained_clients": self.not_retained_clients,
            "converted_clients": self.converted_clients,
            "not_converted_clients": self.not_converted_clients,
            "total_revenue": self.total_revenue,
            "total_visits_post_trial": self.total_visits_post_trial,
            "total_days_to_conversion": self.total_days_to_conversion,
            "retention_rate": self.retention_rate,
            "conversion_rate": self.conversion_rate,
            "avg_revenue_per_converted_client": self.avg_revenue_per_converted_client,
            "avg_visits_post_trial": self.avg_visits_post_trial,
            "avg_days_to_conversion": self.avg_days_to_conversion,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TeacherPeriodMetric:
        """Create a metric from ``to_dict()`` output; derived keys are ignored."""
        stored = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in stored})


_COUNT_FIELDS = (
    "new_clients",
    "retained_clients",
    "converted_clients",
    "total_revenue",
    "total_visits_post_trial",
    "total_days_to_conversion",
)


def _empty_totals() -> dict[str, float]:
    return {name: 0 for name in _COUNT_FIELDS}


def period_sort_key(period: str, period_format: str = DEFAULT_PERIOD_FORMAT) -> tuple:
    """Sort periods chronologically; unparseable labels go last, by name."""
    try:
        return (0, datetime.strptime(period, period_format), "")
    except ValueError:
        return (1, datetime.min, period)


def sort_metrics(
    metrics: Iterable[TeacherPeriodMetric],
    period_format: str = DEFAULT_PERIOD_FORMAT,
) -> list[TeacherPeriodMetric]:
    """Order metrics by period, then teacher, then location."""
    return sorted(
        metrics,
        key=lambda m: (period_sort_key(m.period, period_format), m.teacher_name, m.location),
    )


def aggregate(
    outcomes: Sequence[ClientOutcome],
    period_format: str = DEFAULT_PERIOD_FORMAT,
) -> list[TeacherPeriodMetric]:
    """
    Build one metric per (teacher, location, period) bucket.

    Args:
        outcomes: Included (non-excluded) client outcomes.
        period_format: Format the period labels were built with; used only
            for chronological ordering.

    Returns:
        Metrics sorted by period, teacher and location.
    """
    totals: dict[tuple[str, str, str], dict[str, float]] = {}

    for outcome in outcomes:
        bucket = totals.setdefault(outcome.bucket_key, _empty_totals())
        bucket["new_clients"] += 1
        bucket["total_visits_post_trial"] += outcome.retention.visits_post_trial
        if outcome.retention.is_retained:
            bucket["retained_clients"] += 1
        if outcome.conversion.is_converted:
            bucket["converted_clients"] += 1
            bucket["total_revenue"] += outcome.conversion.first_purchase_value or 0.0
            bucket["total_days_to_conversion"] += outcome.conversion.days_to_conversion or 0

    metrics = [
        TeacherPeriodMetric(
            teacher_name=teacher,
            location=location,
            period=period,
            new_clients=int(values["new_clients"]),
            retained_clients=int(values["retained_clients"]),
            converted_clients=int(values["converted_clients"]),
            total_revenue=float(values["total_revenue"]),
            total_visits_post_trial=int(values["total_visits_post_trial"]),
            total_days_to_conversion=int(values["total_days_to_conversion"]),
        )
        for (teacher, location, period), values in totals.items()
    ]

    logger.info(f"Aggregated {len(outcomes)} clients into {len(metrics)} buckets")
    return sort_metrics(metrics, period_format)


def rollup(
    metrics: Sequence[TeacherPeriodMetric],
    collapse: Sequence[str] = ("teacher",),
    period_format: str = DEFAULT_PERIOD_FORMAT,
) -> list[TeacherPeriodMetric]:
    """
    Sum buckets across one or more dimensions.

    Args:
        metrics: Leaf (or already rolled-up) metrics.
        collapse: Dimensions to collapse: any of ``teacher`` (or
            ``teacher_name``), ``location`` and ``period``.
        period_format: Period format, for ordering.

    Returns:
        Rolled-up metrics with collapsed dimensions relabelled
        "All Teachers" / "All Locations" / "All Periods".

    Raises:
        ValueError: If a dimension name is unknown.
    """
    collapsed = {DIMENSION_ALIASES.get(name, name) for name in collapse}
    unknown = sorted(name for name in collapsed if name not in DIMENSIONS)
    if unknown:
        raise ValueError(f"Unknown rollup dimensions: {unknown}. Expected any of {DIMENSIONS}")

    totals: dict[tuple[str, str, str], dict[str, float]] = {}
    for metric in metrics:
        key = tuple(
            ROLLUP_LABELS[name] if name in collapsed else getattr(metric, name)
            for name in DIMENSIONS
        )
        bucket = totals.setdefault(key, _empty_totals())
        for name in _COUNT_FIELDS:
            bucket[name] += getattr(metric, name)

    rolled = [
        TeacherPeriodMetric(
            teacher_name=teacher,
            location=location,
            period=period,
            new_clients=int(values["new_clients"]),
            retained_clients=int(values["retained_clients"]),
            converted_clients=int(values["converted_clients"]),
            total_revenue=float(values["total_revenue"]),
            total_visits_post_trial=int(values["total_visits_post_trial"]),
            total_days_to_conversion=int(values["total_days_to_conversion"]),
        )
        for (teacher, location, period), values in totals.items()
    ]
    return sort_metrics(rolled, period_format)


def studio_view(
    metrics: Sequence[TeacherPeriodMetric],
    period_format: str = DEFAULT_PERIOD_FORMAT,
) -> list[TeacherPeriodMetric]:
    """Per-location metrics with all teachers combined."""
    return rollup(metrics, collapse=("teacher",), period_format=period_format)


def grand_total(metrics: Sequence[TeacherPeriodMetric]) -> TeacherPeriodMetric:
    """Single metric summing every bucket (zero-valued when empty)."""
    rolled = rollup(metrics, collapse=DIMENSIONS)
    if rolled:
        return rolled[0]
    return TeacherPeriodMetric(
        teacher_name=ALL_TEACHERS,
        location=ALL_LOCATIONS,
        period=ALL_PERIODS,
    )


def dimension_values(
    metrics: Sequence[TeacherPeriodMetric],
    period_format: str = DEFAULT_PERIOD_FORMAT,
) -> tuple[list[str], list[str], list[str]]:
    """
    Distinct teachers, locations and periods present in the metrics.

    Rollup labels are left out. Teachers and locations are sorted by name,
    periods chronologically (with "Unknown" last).

    Returns:
        ``(teachers, locations, periods)``
    """
    rollup_labels = set(ROLLUP_LABELS.values())
    teachers = sorted({m.teacher_name for m in metrics} - rollup_labels)
    locations = sorted({m.location for m in metrics} - rollup_labels)
    periods = sorted(
        {m.period for m in metrics} - rollup_labels,
        key=lambda p: period_sort_key(p, period_format),
    )
    return teachers, locations, periods


__all__ = [
    "ALL_LOCATIONS",
    "ALL_PERIODS",
    "ALL_TEACHERS",
    "TeacherPeriodMetric",
    "aggregate",
    "dimension_values",
    "grand_total",
    "period_sort_key",
    "rollup",
    "safe_rate",
    "sort_metrics",
    "studio_view",
]
