"""
Exclusion filter - keep non-customers out of aggregate counts.

Friends & family passes, staff memberships and promotional/event entries
are not trial clients the studio acquired. They still get conversion and
retention results, but they are removed from the countable population and
listed with the reason.

Rules are checked in a fixed order and the first match wins, so a client is
always excluded for the same reason no matter where it sits in the input.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass, field

from studiostats.conversions.schema import (
    ClientOutcome,
    ClientProfile,
    ExclusionReason,
    ExclusionRecord,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExclusionRule:
    """A keyword rule that marks a client as a non-customer.

    Keywords match whole words, case-insensitively.

    Example:
        >>> rule = ExclusionRule(ExclusionReason.STAFF, "Staff membership", ("staff",))
        >>> rule.matches("Staff Unlimited")
        True
        >>> rule.matches("Flagstaff Studio")
        False
    """

    reason_code: ExclusionReason
    label: str
    keywords: tuple[str, ...]
    _pattern: re.Pattern = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not self.keywords:
            raise ValueError(f"ExclusionRule {self.reason_code.value} needs at least one keyword")
        alternatives = "|".join(re.escape(k) for k in self.keywords)
        object.__setattr__(
            self,
            "_pattern",
            re.compile(rf"(?<!\w)(?:{alternatives})(?!\w)", re.IGNORECASE),
        )

    def matches(self, text: str) -> bool:
        return bool(text) and self._pattern.search(text) is not None


DEFAULT_EXCLUSION_RULES: tuple[ExclusionRule, ...] = (
    ExclusionRule(
        ExclusionReason.FRIENDS_FAMILY,
        "Friends & family membership",
        ("friend", "friends", "family", "f&f"),
    ),
    ExclusionRule(
        ExclusionReason.STAFF,
        "Staff membership",
        ("staff", "employee", "team member"),
    ),
    ExclusionRule(
        ExclusionReason.PROMOTIONAL,
        "Promotional or event entry",
        ("promo", "promotional", "event", "complimentary", "influencer"),
    ),
)


class ExclusionFilter:
    """
    Split classified clients into included and excluded populations.

    Example:
        included, excluded = ExclusionFilter().apply(outcomes)
        for record in excluded:
            print(record.client.email, record.reason)
    """

    def __init__(
        self,
        rules: Sequence[ExclusionRule] = DEFAULT_EXCLUSION_RULES,
        fields: Sequence[str] = ("membership_used",),
    ):
        """
        Initialize the filter.

        Args:
            rules: Rules in priority order.
            fields: ClientProfile attributes the rules are matched against.
        """
        self.rules = tuple(rules)
        self.fields = tuple(fields)

    def evaluate(self, client: ClientProfile) -> ExclusionRecord | None:
        """Return the exclusion for a client, or None if it counts."""
        for rule in self.rules:
            for name in self.fields:
                value = getattr(client, name, "") or ""
                if rule.matches(value):
                    return ExclusionRecord(
                        client=client,
                        reason_code=rule.reason_code,
                        reason=f'{rule.label} ("{value}")',
                    )
        return None

    def apply(
        self,
        outcomes: Sequence[ClientOutcome],
    ) -> tuple[list[ClientOutcome], list[ExclusionRecord]]:
        """
        Remove non-customers from the countable population.

        Args:
            outcomes: Classified clients in input order.

        Returns:
            ``(included, excluded)``, both in input order.
        """
        included: list[ClientOutcome] = []
        excluded: list[ExclusionRecord] = []

        for outcome in outcomes:
            record = self.evaluate(outcome.client)
            if record is None:
                included.append(outcome)
            else:
                excluded.append(record)

        if excluded:
            logger.info(f"Excluded {len(excluded)} of {len(outcomes)} clients from aggregates")
        return included, excluded
