"""Client list deduplication.

New-client exports frequently list the same person more than once (a second
trial booking, a re-import, a typo fixed in one row only). The deduplicator
collapses those rows to one profile per normalized email. The first row seen
in input order wins; later rows are discarded and counted so the loss is
visible in diagnostics.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Protocol, TypeVar

logger = logging.getLogger(__name__)


class EmailKeyed(Protocol):
    """Anything with a normalized ``email`` attribute."""

    email: str


ProfileT = TypeVar("ProfileT", bound=EmailKeyed)


@dataclass
class DeduplicationResult:
    """Outcome of collapsing a client list.

    Attributes:
        profiles: Surviving profiles, in input order.
        duplicates_discarded: Number of rows dropped as duplicates.
        duplicate_emails: Emails that appeared more than once, in order of
            first duplicate.
    """

    profiles: list = field(default_factory=list)
    duplicates_discarded: int = 0
    duplicate_emails: list[str] = field(default_factory=list)


class ClientDeduplicator:
    """Collapse client profiles to one entry per normalized email.

    Profiles without an email have no dedup key and are always kept.

    Example:
        >>> result = ClientDeduplicator().deduplicate(profiles)
        >>> result.duplicates_discarded
        2
    """

    def deduplicate(self, profiles: Sequence[ProfileT]) -> DeduplicationResult:
        """Keep the first profile for each email.

        Args:
            profiles: Normalized profiles in input order.

        Returns:
            DeduplicationResult with the surviving profiles.
        """
        seen: set[str] = set()
        duplicate_emails: list[str] = []
        kept: list[ProfileT] = []
        discarded = 0

        for profile in profiles:
            key = profile.email
            if not key:
                kept.append(profile)
                continue
            if key in seen:
                discarded += 1
                if key not in duplicate_emails:
                    duplicate_emails.append(key)
                continue
            seen.add(key)
            kept.append(profile)

        if discarded:
            logger.warning(
                f"Discarded {discarded} duplicate client rows "
                f"({len(duplicate_emails)} distinct emails)"
            )
        logger.info(f"Deduplicated {len(profiles)} client rows to {len(kept)} profiles")

        return DeduplicationResult(
            profiles=kept,
            duplicates_discarded=discarded,
            duplicate_emails=duplicate_emails,
        )
