"""
StudioStats MCP Server - Main entry point.

MCP server exposing the studio trial-client pipeline:
- Conversion and retention analysis of studio exports
- Teacher / location / period metrics, summaries and rollups
"""

from __future__ import annotations

import dataclasses
import logging

from fastmcp import FastMCP

logger = logging.getLogger(__name__)

# Initialize server
mcp = FastMCP(
    "StudioStats Trial Analytics",
    instructions=(
        "Analyze studio trial clients: which trial visits converted into paid "
        "purchases, which clients came back, and how each teacher and studio performs."
    ),
)


# =============================================================================
# Pipeline Tools
# =============================================================================


@mcp.tool()
def analyze_studio_exports(
    new_clients: list[dict],
    bookings: list[dict],
    payments: list[dict] | None = None,
    min_post_trial_visits: int | None = None,
    include_clients: bool = False,
) -> dict:
    """
    Run the trial-client pipeline over studio exports.

    Rows use the export column names (e.g. "Email", "First visit at",
    "Teacher", "Sale value"); see the fields://synonyms resource.

    Args:
        new_clients: New-client visits export rows
        bookings: Class bookings export rows
        payments: Payments export rows (optional)
        min_post_trial_visits: Override the retention threshold
        include_clients: Include per-client audit rows in the response

    Returns:
        Teacher and studio metrics, summaries, exclusions and diagnostics
    """
    from studiostats.pipeline import PipelineConfig, StudioPipeline, StudioStatsError
    from studiostats.reporting import (
        summarize_conversions,
        summarize_performance,
        summarize_retention,
    )

    try:
        config = PipelineConfig.from_env()
        if min_post_trial_visits is not None:
            config = dataclasses.replace(config, min_post_trial_visits=min_post_trial_visits)
        result = StudioPipeline(config).run(new_clients, bookings, payments)
    except StudioStatsError as e:
        logger.warning(f"Rejected studio analysis request: {e}")
        return {"success": False, "error": str(e)}

    response = {
        "success": True,
        "status": result.status.value,
        "metrics": [m.to_dict() for m in result.processed_data],
        "studio_metrics": [m.to_dict() for m in result.studio_metrics()],
        "teachers": result.teachers,
        "locations": result.locations,
        "periods": result.periods,
        "summary": summarize_performance(result.processed_data).to_dict(),
        "conversion_summary": summarize_conversions(result.included_records).to_dict(),
        "retention_summary": summarize_retention(result.included_records).to_dict(),
        "excluded": [r.to_dict() for r in result.excluded_records],
        "diagnostics": result.diagnostics.to_dict(),
    }
    if include_clients:
        response["clients"] = [o.to_dict() for o in result.included_records]
    return response


# =============================================================================
# Metric Tools
# =============================================================================


@mcp.tool()
def summarize_studio_metrics(metrics: list[dict]) -> dict:
    """
    Summarize teacher metrics returned by analyze_studio_exports.

    Args:
        metrics: Metric rows (the "metrics" list of an analysis)

    Returns:
        Totals, average rates and the top performer
    """
    from studiostats.reporting import TeacherPeriodMetric, summarize_performance

    parsed = [TeacherPeriodMetric.from_dict(m) for m in metrics]
    return summarize_performance(parsed).to_dict()


@mcp.tool()
def filter_studio_metrics(
    metrics: list[dict],
    periods: list[str] | None = None,
    teachers: list[str] | None = None,
    locations: list[str] | None = None,
    search: str = "",
) -> list[dict]:
    """
    Filter teacher metrics by period, teacher, location or search text.

    Empty selections match everything. Search is case-insensitive and
    matches teacher or location names.

    Args:
        metrics: Metric rows
        periods: Periods to keep (e.g. ["Jan-24"])
        teachers: Teachers to keep
        locations: Locations to keep
        search: Text to look for in teacher or location names

    Returns:
        Matching metric rows
    """
    from studiostats.reporting import TeacherPeriodMetric, filter_metrics

    parsed = [TeacherPeriodMetric.from_dict(m) for m in metrics]
    selected = filter_metrics(
        parsed,
        periods=periods,
        teachers=teachers,
        locations=locations,
        search=search,
    )
    return [m.to_dict() for m in selected]


@mcp.tool()
def rollup_studio_metrics(
    metrics: list[dict],
    collapse: list[str] | None = None,
) -> list[dict]:
    """
    Combine teacher metrics across teachers, locations or periods.

    Args:
        metrics: Metric rows
        collapse: Dimensions to combine: "teacher", "location", "period"
            (default: ["teacher"], the per-studio view)

    Returns:
        Rolled-up metric rows labelled "All Teachers" / "All Locations" /
        "All Periods"
    """
    from studiostats.reporting import TeacherPeriodMetric, rollup

    parsed = [TeacherPeriodMetric.from_dict(m) for m in metrics]
    rolled = rollup(parsed, collapse=tuple(collapse or ["teacher"]))
    return [m.to_dict() for m in rolled]


# =============================================================================
# Resources
# =============================================================================


def describe_field_synonyms() -> str:
    """Accepted export columns per canonical field, in priority order."""
    from studiostats.conversions import BookingNormalizer, ClientNormalizer, PurchaseNormalizer

    sections = []
    for normalizer in (ClientNormalizer(), PurchaseNormalizer(), BookingNormalizer()):
        synonyms: dict[str, list[str]] = {}
        for source_field, target_field in normalizer.field_map.items():
            synonyms.setdefault(target_field, []).append(source_field)

        lines = [f"{normalizer.source.value}:"]
        lines.extend(
            f"- {target}: {', '.join(columns)}" for target, columns in synonyms.items()
        )
        sections.append("\n".join(lines))
    return "\n\n".join(sections) + "\n"


@mcp.resource("fields://synonyms")
def get_field_synonyms() -> str:
    """List the export column names accepted for each field."""
    return describe_field_synonyms()


# =============================================================================
# Prompts
# =============================================================================


@mcp.prompt()
def review_teacher_performance(period: str = "", focus: str = "conversion") -> str:
    """
    Prompt for reviewing teacher performance.

    Args:
        period: Period to review (e.g. "Jan-24"); empty for all periods
        focus: What to focus on (conversion, retention, revenue)
    """
    scope = f'for period "{period}"' if period else "across all periods"
    narrow = f' to periods=["{period}"]' if period else ""
    return f"""Review trial-client performance by teacher {scope}.

Steps:
1. Run analyze_studio_exports on the new-client, bookings and payments exports
2. Use filter_studio_metrics to narrow the metrics{narrow}
3. Use rollup_studio_metrics with collapse=["teacher"] to compare studios
4. Call summarize_studio_metrics for headline numbers and the top performer
5. Check the excluded list and diagnostics for data-quality problems

For {focus} analysis, focus on:
{"- Conversion rate and days to conversion per teacher" if focus == "conversion" else ""}
{"- Retention rate and post-trial visits per teacher" if focus == "retention" else ""}
{"- Revenue per converted client per teacher and studio" if focus == "revenue" else ""}
"""


# =============================================================================
# Entry Point
# =============================================================================


def main():
    """Run the MCP server."""
    mcp.run()


if __name__ == "__main__":
    main()
