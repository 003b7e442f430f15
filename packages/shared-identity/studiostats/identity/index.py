"""OR-join index over records keyed by email and member ID.

A record matches a client when it shares the client's email **or** the
client's member ID. The index keeps one map per identifier type and merges
the two lookups per client, so a record that only carries one of the keys
is still found.

Example:
    >>> index = IdentityIndex(purchases)
    >>> candidates = index.lookup(email="jane@example.com", member_id="10423")
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable, Sequence
from typing import Generic, Protocol, TypeVar

from studiostats.identity.keys import IdentityType

logger = logging.getLogger(__name__)


class KeyedRecord(Protocol):
    """A record that can report the identity keys it carries."""

    def identity_keys(self) -> Iterable[tuple[IdentityType, str]]:
        """Yield ``(identity_type, normalized_value)`` pairs."""
        ...


RecordT = TypeVar("RecordT", bound=KeyedRecord)


class IdentityIndex(Generic[RecordT]):
    """Look up records by email or member ID.

    Records are stored in input order and lookups always return them in that
    order, without duplicates, so callers can rely on position for
    deterministic tie-breaks.

    Empty key values are never indexed and never match.
    """

    def __init__(self, records: Sequence[RecordT]) -> None:
        """Build the index.

        Args:
            records: Records to index, in their original input order.
        """
        self._records = list(records)
        self._maps: dict[IdentityType, dict[str, list[int]]] = {
            identity_type: defaultdict(list) for identity_type in IdentityType
        }

        for position, record in enumerate(self._records):
            seen: set[tuple[IdentityType, str]] = set()
            for identity_type, value in record.identity_keys():
                if not value or (identity_type, value) in seen:
                    continue
                seen.add((identity_type, value))
                self._maps[identity_type][value].append(position)

        logger.debug(
            f"Indexed {len(self._records)} records: "
            f"{len(self._maps[IdentityType.EMAIL])} emails, "
            f"{len(self._maps[IdentityType.MEMBER_ID])} member IDs"
        )

    def __len__(self) -> int:
        return len(self._records)

    def positions(self, email: str = "", member_id: str = "") -> list[int]:
        """Return input positions of records matching either key.

        Args:
            email: Normalized email to match.
            member_id: Normalized member ID to match.

        Returns:
            Sorted, de-duplicated record positions.
        """
        matched: set[int] = set()
        if email:
            matched.update(self._maps[IdentityType.EMAIL].get(email, ()))
        if member_id:
            matched.update(self._maps[IdentityType.MEMBER_ID].get(member_id, ()))
        return sorted(matched)

    def lookup(self, email: str = "", member_id: str = "") -> list[RecordT]:
        """Return records matching the email or the member ID, in input order."""
        return [self._records[i] for i in self.positions(email, member_id)]
