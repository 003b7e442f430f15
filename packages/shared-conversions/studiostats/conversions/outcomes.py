"""Join per-client results into outcome rows with bucket labels."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from studiostats.conversions.parsing import parse_date
from studiostats.conversions.schema import (
    ClientOutcome,
    ConversionResult,
    RetentionResult,
)

UNKNOWN_LABEL = "Unknown"
DEFAULT_PERIOD_FORMAT = "%b-%y"


def period_label(visit_at: datetime | None, period_format: str = DEFAULT_PERIOD_FORMAT) -> str:
    """Label the period of a first visit, e.g. ``"Jun-25"``."""
    if visit_at is None:
        return UNKNOWN_LABEL
    return visit_at.strftime(period_format)


def join_outcomes(
    conversions: Sequence[ConversionResult],
    retentions: Sequence[RetentionResult],
    period_format: str = DEFAULT_PERIOD_FORMAT,
) -> list[ClientOutcome]:
    """
    Pair conversion and retention results for the same clients.

    Args:
        conversions: One result per client, in client order.
        retentions: One result per client, in the same order.
        period_format: ``strftime`` format for period labels.

    Returns:
        One ClientOutcome per client.

    Raises:
        ValueError: If the two lists do not describe the same clients.
    """
    if len(conversions) != len(retentions):
        raise ValueError(
            f"Got {len(conversions)} conversion results but {len(retentions)} retention results"
        )

    outcomes = []
    for conversion, retention in zip(conversions, retentions):
        client = conversion.client
        if retention.client.client_ref != client.client_ref:
            raise ValueError(
                f"Result order mismatch: client {client.client_ref} "
                f"paired with {retention.client.client_ref}"
            )
        outcomes.append(
            ClientOutcome(
                conversion=conversion,
                retention=retention,
                teacher_label=client.teacher or UNKNOWN_LABEL,
                location_label=client.first_visit_location or UNKNOWN_LABEL,
                period=period_label(parse_date(client.first_visit_date), period_format),
            )
        )
    return outcomes
