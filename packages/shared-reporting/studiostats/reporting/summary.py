"""Headline statistics over metrics and client outcomes."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import asdict, dataclass
from typing import Any

from studiostats.conversions import ClientOutcome
from studiostats.reporting.metrics import (
    TeacherPeriodMetric,
    grand_total,
    rollup,
    safe_rate,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PerformanceSummary:
    """Totals and average rates across a set of teacher metrics."""

    total_new_clients: int
    total_retained: int
    total_converted: int
    total_revenue: float
    avg_retention_rate: float
    avg_conversion_rate: float
    avg_revenue_per_client: float
    top_performer: str | None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ConversionSummary:
    """Conversion statistics for a client population."""

    total_clients: int
    converted: int
    not_converted: int
    conversion_rate: float
    total_revenue: float
    avg_days_to_conversion: float
    data_quality_issues: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class RetentionSummary:
    """Retention statistics for a client population."""

    total_clients: int
    retained: int
    not_retained: int
    retention_rate: float
    avg_visits_post_trial: float

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def top_performer(metrics: Sequence[TeacherPeriodMetric]) -> str | None:
    """
    Teacher with the highest conversion rate across all their buckets.

    Ties go to the teacher with more new clients, then by name.
    Returns None when there are no clients.
    """
    per_teacher = [
        m for m in rollup(metrics, collapse=("location", "period")) if m.new_clients
    ]
    if not per_teacher:
        return None
    best = min(
        per_teacher,
        key=lambda m: (-m.conversion_rate, -m.new_clients, m.teacher_name),
    )
    return best.teacher_name


def summarize_performance(metrics: Sequence[TeacherPeriodMetric]) -> PerformanceSummary:
    """
    Summarize leaf metrics.

    Average rates are computed from totals, so large buckets weigh more
    than small ones.

    Args:
        metrics: Leaf metrics (not rollups, to avoid double counting).

    Returns:
        PerformanceSummary, all zeros when metrics is empty.
    """
    total = grand_total(metrics)
    return PerformanceSummary(
        total_new_clients=total.new_clients,
        total_retained=total.retained_clients,
        total_converted=total.converted_clients,
        total_revenue=total.total_revenue,
        avg_retention_rate=total.retention_rate,
        avg_conversion_rate=total.conversion_rate,
        avg_revenue_per_client=total.avg_revenue_per_converted_client,
        top_performer=top_performer(metrics),
    )


def summarize_conversions(outcomes: Sequence[ClientOutcome]) -> ConversionSummary:
    """Count converted clients, revenue and clients with data-quality issues."""
    converted = [o for o in outcomes if o.conversion.is_converted]
    days = [
        o.conversion.days_to_conversion
        for o in converted
        if o.conversion.days_to_conversion is not None
    ]
    issues = sum(1 for o in outcomes if o.conversion.validation_errors)

    return ConversionSummary(
        total_clients=len(outcomes),
        converted=len(converted),
        not_converted=len(outcomes) - len(converted),
        conversion_rate=safe_rate(len(converted), len(outcomes), 100.0),
        total_revenue=sum(o.conversion.first_purchase_value or 0.0 for o in converted),
        avg_days_to_conversion=safe_rate(sum(days), len(days)),
        data_quality_issues=issues,
    )


def summarize_retention(outcomes: Sequence[ClientOutcome]) -> RetentionSummary:
    """Count retained clients and average post-trial visits (over all clients)."""
    retained = sum(1 for o in outcomes if o.retention.is_retained)
    visits = sum(o.retention.visits_post_trial for o in outcomes)

    return RetentionSummary(
        total_clients=len(outcomes),
        retained=retained,
        not_retained=len(outcomes) - retained,
        retention_rate=safe_rate(retained, len(outcomes), 100.0),
        avg_visits_post_trial=safe_rate(visits, len(outcomes)),
    )
