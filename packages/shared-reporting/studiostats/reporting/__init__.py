"""
StudioStats Reporting - teacher, location and period performance metrics.

Provides:
- Aggregation of classified clients into (teacher, location, period) buckets
- Rollups across teachers, locations and periods
- Headline summaries (totals, average rates, top performer)
- Metric and client filters, and pandas DataFrame export

Usage:
    from studiostats.reporting import aggregate, studio_view, summarize_performance

    metrics = aggregate(included_outcomes)
    studios = studio_view(metrics)
    summary = summarize_performance(metrics)
    print(summary.top_performer, summary.avg_conversion_rate)
"""

from studiostats.reporting.export import (
    build_tabs,
    dataframe_to_records,
    exclusions_to_dataframe,
    metrics_to_dataframe,
    outcomes_to_dataframe,
)
from studiostats.reporting.filters import MetricFilter, filter_metrics, filter_outcomes
from studiostats.reporting.metrics import (
    ALL_LOCATIONS,
    ALL_PERIODS,
    ALL_TEACHERS,
    TeacherPeriodMetric,
    aggregate,
    dimension_values,
    grand_total,
    rollup,
    safe_rate,
    sort_metrics,
    studio_view,
)
from studiostats.reporting.summary import (
    ConversionSummary,
    PerformanceSummary,
    RetentionSummary,
    summarize_conversions,
    summarize_performance,
    summarize_retention,
    top_performer,
)

__all__ = [
    # Metrics
    "ALL_LOCATIONS",
    "ALL_PERIODS",
    "ALL_TEACHERS",
    "TeacherPeriodMetric",
    "aggregate",
    "dimension_values",
    "grand_total",
    "rollup",
    "safe_rate",
    "sort_metrics",
    "studio_view",
    # Summaries
    "ConversionSummary",
    "PerformanceSummary",
    "RetentionSummary",
    "summarize_conversions",
    "summarize_performance",
    "summarize_retention",
    "top_performer",
    # Filters
    "MetricFilter",
    "filter_metrics",
    "filter_outcomes",
    # Export
    "build_tabs",
    "dataframe_to_records",
    "exclusions_to_dataframe",
    "metrics_to_dataframe",
    "outcomes_to_dataframe",
]
