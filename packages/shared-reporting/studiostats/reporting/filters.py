"""Select subsets of teacher metrics and client outcomes."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from studiostats.conversions import ClientOutcome, ConversionStatus
from studiostats.reporting.metrics import TeacherPeriodMetric


@dataclass
class MetricFilter:
    """
    Multi-select filter over metric dimensions.

    An empty selection means "all". ``search`` is a case-insensitive
    substring match on teacher or location name.

    Example:
        selected = MetricFilter(periods=["Jan-24"], search="kemps").apply(metrics)
    """

    periods: list[str] = field(default_factory=list)
    teachers: list[str] = field(default_factory=list)
    locations: list[str] = field(default_factory=list)
    search: str = ""

    @property
    def is_empty(self) -> bool:
        return not (self.periods or self.teachers or self.locations or self.search.strip())

    def matches(self, metric: TeacherPeriodMetric) -> bool:
        if self.periods and metric.period not in self.periods:
            return False
        if self.teachers and metric.teacher_name not in self.teachers:
            return False
        if self.locations and metric.location not in self.locations:
            return False

        term = self.search.strip().lower()
        if term:
            return term in metric.teacher_name.lower() or term in metric.location.lower()
        return True

    def apply(self, metrics: Iterable[TeacherPeriodMetric]) -> list[TeacherPeriodMetric]:
        """Return matching metrics, preserving order."""
        return [m for m in metrics if self.matches(m)]


def filter_metrics(
    metrics: Sequence[TeacherPeriodMetric],
    periods: Sequence[str] | None = None,
    teachers: Sequence[str] | None = None,
    locations: Sequence[str] | None = None,
    search: str = "",
) -> list[TeacherPeriodMetric]:
    """Filter metrics by period, teacher, location and search text."""
    metric_filter = MetricFilter(
        periods=list(periods or []),
        teachers=list(teachers or []),
        locations=list(locations or []),
        search=search or "",
    )
    return metric_filter.apply(metrics)


def filter_outcomes(
    outcomes: Iterable[ClientOutcome],
    search: str = "",
    status: ConversionStatus | str | None = None,
) -> list[ClientOutcome]:
    """
    Filter client outcomes by search text and conversion status.

    Args:
        outcomes: Client outcomes, e.g. ``PipelineResult.included_records``.
        search: Case-insensitive substring matched against first name, last
            name, email, teacher and first visit location.
        status: ``converted`` / ``not_converted``; None or ``"all"`` keeps both.

    Returns:
        Matching outcomes, in input order.

    Raises:
        ValueError: If status is not a known conversion status.
    """
    wanted = None if status in (None, "", "all") else ConversionStatus(status)
    term = (search or "").strip().lower()

    selected = []
    for outcome in outcomes:
        if wanted is not None and outcome.conversion.status != wanted:
            continue
        if term:
            client = outcome.client
            haystack = (
                client.first_name,
                client.last_name,
                client.email,
                client.teacher,
                client.first_visit_location,
            )
            if not any(term in value.lower() for value in haystack):
                continue
        selected.append(outcome)
    return selected
