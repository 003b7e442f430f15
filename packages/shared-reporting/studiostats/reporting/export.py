"""
Export metrics and client outcomes as pandas DataFrames.

Frames use a fixed column order so downstream sheets and notebooks see the
same layout on every run, including runs with no rows.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from typing import Any

import pandas as pd

from studiostats.conversions import ClientOutcome, ExclusionRecord
from studiostats.reporting.metrics import TeacherPeriodMetric, studio_view

METRIC_COLUMNS = [
    "teacher_name",
    "location",
    "period",
    "new_clients",
    "retained_clients",
    "not_retained_clients",
    "converted_clients",
    "not_converted_clients",
    "total_revenue",
    "total_visits_post_trial",
    "total_days_to_conversion",
    "retention_rate",
    "conversion_rate",
    "avg_revenue_per_converted_client",
    "avg_visits_post_trial",
    "avg_days_to_conversion",
]

OUTCOME_COLUMNS = [
    "client_ref",
    "member_id",
    "first_name",
    "last_name",
    "email",
    "first_visit_date",
    "first_visit_location",
    "membership_used",
    "teacher",
    "teacher_label",
    "location_label",
    "period",
    "conversion_status",
    "first_purchase_date",
    "first_purchase_product",
    "first_purchase_value",
    "days_to_conversion",
    "conversion_details",
    "validation_errors",
    "retention_status",
    "visits_post_trial",
]

EXCLUSION_COLUMNS = [
    "client_ref",
    "member_id",
    "first_name",
    "last_name",
    "email",
    "first_visit_date",
    "first_visit_location",
    "membership_used",
    "teacher",
    "reason_code",
    "reason",
]


def metrics_to_dataframe(metrics: Sequence[TeacherPeriodMetric]) -> pd.DataFrame:
    """One row per metric bucket, derived rates included."""
    return pd.DataFrame([m.to_dict() for m in metrics], columns=METRIC_COLUMNS)


def outcomes_to_dataframe(outcomes: Sequence[ClientOutcome]) -> pd.DataFrame:
    """One audit row per client."""
    return pd.DataFrame([o.to_dict() for o in outcomes], columns=OUTCOME_COLUMNS)


def exclusions_to_dataframe(records: Sequence[ExclusionRecord]) -> pd.DataFrame:
    """One row per excluded client, with the exclusion reason."""
    return pd.DataFrame([r.to_dict() for r in records], columns=EXCLUSION_COLUMNS)


def build_tabs(
    metrics: Sequence[TeacherPeriodMetric],
    included: Sequence[ClientOutcome],
    excluded: Sequence[ExclusionRecord],
) -> dict[str, pd.DataFrame]:
    """
    Build the standard set of report tabs.

    Returns:
        Dict of {tab_name: DataFrame}: teacher metrics, studio metrics,
        included clients and excluded clients.
    """
    return {
        "Teachers": metrics_to_dataframe(metrics),
        "Studios": metrics_to_dataframe(studio_view(metrics)),
        "Included": outcomes_to_dataframe(included),
        "Excluded": exclusions_to_dataframe(excluded),
    }


def serialize_value(value: Any) -> Any:
    """Convert a cell value to a JSON-serializable form."""
    if isinstance(value, (list, dict)):
        return json.dumps(value)
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return None
    if hasattr(value, "isoformat"):
        return value.isoformat()
    if hasattr(value, "item"):  # numpy scalar
        return value.item()
    return value


def dataframe_to_records(data: pd.DataFrame) -> list[dict[str, Any]]:
    """Convert a DataFrame to JSON-safe row dicts (NaN becomes None)."""
    return [
        {column: serialize_value(value) for column, value in row.items()}
        for row in data.to_dict(orient="records")
    ]
