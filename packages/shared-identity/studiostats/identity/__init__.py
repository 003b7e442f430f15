"""Identity matching for studio exports.

This module provides the weak-identifier matching shared by the conversion
and retention classifiers:

- normalized email and member ID keys
- an OR-join index (email OR member ID) over purchase and booking records
- first-seen-wins deduplication of client lists

Example:
    from studiostats.identity import ClientDeduplicator, IdentityIndex

    result = ClientDeduplicator().deduplicate(profiles)
    index = IdentityIndex(purchases)
    candidates = index.lookup(email=client.email, member_id=client.member_id)
"""

from studiostats.identity.dedup import ClientDeduplicator, DeduplicationResult
from studiostats.identity.index import IdentityIndex, KeyedRecord
from studiostats.identity.keys import (
    IdentityType,
    is_valid_email,
    normalize_email,
    normalize_member_id,
)

__all__ = [
    "ClientDeduplicator",
    "DeduplicationResult",
    "IdentityIndex",
    "IdentityType",
    "KeyedRecord",
    "is_valid_email",
    "normalize_email",
    "normalize_member_id",
]
