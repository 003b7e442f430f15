"""
Record normalizers - map studio export rows onto canonical records.

Each normalizer handles one export:
- ClientNormalizer: new-client visits -> ClientProfile
- PurchaseNormalizer: payment transactions -> PurchaseRecord
- BookingNormalizer: class bookings -> BookingRecord

Column names vary between exports (and between versions of the same
export), so every normalizer carries a ``field_map`` from accepted source
column names to canonical field names. When several synonyms of the same
canonical field are present, the first one in map order with a non-empty
value wins.

Rows whose teacher or category is a report aggregate label such as
"All Trainers" are summary lines, not real records, and are dropped here.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping, Sequence
from typing import Any, Generic, TypeVar

import pandas as pd

from studiostats.conversions.parsing import (
    clean_text,
    is_missing,
    parse_amount,
    parse_flag,
)
from studiostats.conversions.schema import (
    BookingRecord,
    ClientProfile,
    PurchaseRecord,
    SourceType,
)
from studiostats.identity import normalize_email, normalize_member_id

logger = logging.getLogger(__name__)

DEFAULT_AGGREGATE_LABELS = ("All Trainers", "All Teachers")

RecordT = TypeVar("RecordT")


class RecordNormalizer(ABC, Generic[RecordT]):
    """Base class for export normalizers."""

    source: SourceType
    # Canonical fields checked against the aggregate-label denylist
    sentinel_fields: tuple[str, ...] = ()

    def __init__(
        self,
        field_map: dict[str, str] | None = None,
        field_overrides: dict[str, str] | None = None,
        aggregate_labels: Iterable[str] | None = None,
    ):
        """
        Initialize normalizer.

        Args:
            field_map: Mapping of source columns to canonical fields. Replaces
                the defaults when given.
            field_overrides: Extra source columns checked before the map.
            aggregate_labels: Labels marking summary rows to drop.
        """
        base_map = field_map or self._default_field_map()
        merged = dict(field_overrides or {})
        for source_field, target_field in base_map.items():
            merged.setdefault(source_field, target_field)
        self.field_map = merged

        labels = DEFAULT_AGGREGATE_LABELS if aggregate_labels is None else aggregate_labels
        self.aggregate_labels = frozenset(label.strip().casefold() for label in labels)

        self.rows_read = 0
        self.dropped_rows = 0

    @abstractmethod
    def _default_field_map(self) -> dict[str, str]:
        """Default source-column synonyms for this export."""
        pass

    @abstractmethod
    def _build(self, mapped: dict[str, Any], row_index: int) -> RecordT:
        """Build the canonical record from mapped fields."""
        pass

    def normalize(
        self,
        data: pd.DataFrame | Sequence[Mapping[str, Any]],
    ) -> list[RecordT]:
        """
        Normalize export rows to canonical records.

        Args:
            data: Export rows as DataFrame or list of mappings.

        Returns:
            Records in input order, aggregate rows removed.
        """
        rows = self._to_records(data)
        records = []
        dropped = 0

        for row_index, row in enumerate(rows):
            if not isinstance(row, Mapping):
                raise TypeError(
                    f"{self.source.value} row {row_index} is {type(row).__name__}, expected a mapping"
                )
            mapped = self._map_fields(row)
            if self._is_aggregate_row(mapped):
                dropped += 1
                continue
            records.append(self._build(mapped, row_index))

        self.rows_read = len(rows)
        self.dropped_rows = dropped
        if dropped:
            logger.warning(f"Dropped {dropped} aggregate rows from {self.source.value}")
        logger.info(f"Normalized {len(records)} {self.source.value} records from {len(rows)} rows")
        return records

    def _to_records(
        self,
        data: pd.DataFrame | Sequence[Mapping[str, Any]],
    ) -> list[Any]:
        """Convert input to a list of row mappings."""
        if isinstance(data, pd.DataFrame):
            return data.to_dict(orient="records")
        return list(data)

    def _map_fields(self, row: Mapping[str, Any]) -> dict[str, Any]:
        """Resolve synonyms; first non-empty synonym wins."""
        mapped: dict[str, Any] = {}
        for source_field, target_field in self.field_map.items():
            if target_field in mapped or source_field not in row:
                continue
            value = row[source_field]
            if not is_missing(value):
                mapped[target_field] = value
        return mapped

    def _is_aggregate_row(self, mapped: dict[str, Any]) -> bool:
        for name in self.sentinel_fields:
            label = clean_text(mapped.get(name)).casefold()
            if label and label in self.aggregate_labels:
                return True
        return False


class ClientNormalizer(RecordNormalizer[ClientProfile]):
    """
    Normalize the new-client visits export.

    Example:
        normalizer = ClientNormalizer()
        profiles = normalizer.normalize([
            {
                "Member ID": "10423",
                "First name": "Jane",
                "Email": " Jane@Example.com ",
                "First visit at": "2024-01-01",
                "Teacher": "Anisha Shah",
            }
        ])
    """

    source = SourceType.NEW_CLIENTS
    sentinel_fields = ("teacher",)

    def _default_field_map(self) -> dict[str, str]:
        """Default column synonyms for new-client exports."""
        return {
            # Member ID variants
            "Member ID": "member_id",
            "memberID": "member_id",
            "id": "member_id",
            # Name variants
            "First name": "first_name",
            "firstName": "first_name",
            "Last name": "last_name",
            "lastName": "last_name",
            # Email variants
            "Email": "email",
            "email": "email",
            # First visit variants
            "First visit at": "first_visit_date",
            "firstVisitAt": "first_visit_date",
            "date": "first_visit_date",
            "First visit location": "first_visit_location",
            "location": "first_visit_location",
            # Membership / teacher
            "Membership used": "membership_used",
            "membershipUsed": "membership_used",
            "Teacher": "teacher",
            "teacher": "teacher",
        }

    def _build(self, mapped: dict[str, Any], row_index: int) -> ClientProfile:
        return ClientProfile(
            member_id=normalize_member_id(mapped.get("member_id")),
            first_name=clean_text(mapped.get("first_name")),
            last_name=clean_text(mapped.get("last_name")),
            email=normalize_email(mapped.get("email")),
            first_visit_date=clean_text(mapped.get("first_visit_date")),
            first_visit_location=clean_text(mapped.get("first_visit_location")),
            membership_used=clean_text(mapped.get("membership_used")),
            teacher=clean_text(mapped.get("teacher")),
            row_index=row_index,
        )


class PurchaseNormalizer(RecordNormalizer[PurchaseRecord]):
    """
    Normalize the payments export.

    Sale values are parsed from currency text; the refund flag accepts
    "YES"/"true"/1.
    """

    source = SourceType.PAYMENTS
    sentinel_fields = ("category",)

    def _default_field_map(self) -> dict[str, str]:
        """Default column synonyms for payment exports."""
        return {
            "Customer email": "email",
            "email": "email",
            "Paying Customer email": "paying_email",
            "Member ID": "member_id",
            "memberID": "member_id",
            "Date": "date",
            "date": "date",
            "Sale value": "value",
            "value": "value",
            "Category": "category",
            "category": "category",
            "Item": "product",
            "item": "product",
            "product": "product",
            "Refunded": "refunded",
            "refunded": "refunded",
        }

    def _build(self, mapped: dict[str, Any], row_index: int) -> PurchaseRecord:
        return PurchaseRecord(
            email=normalize_email(mapped.get("email")),
            paying_email=normalize_email(mapped.get("paying_email")),
            member_id=normalize_member_id(mapped.get("member_id")),
            date=clean_text(mapped.get("date")),
            value=parse_amount(mapped.get("value")),
            category=clean_text(mapped.get("category")),
            product=clean_text(mapped.get("product")),
            refunded=parse_flag(mapped.get("refunded")),
            row_index=row_index,
        )


class BookingNormalizer(RecordNormalizer[BookingRecord]):
    """Normalize the class bookings export."""

    source = SourceType.BOOKINGS
    sentinel_fields = ("teacher",)

    def _default_field_map(self) -> dict[str, str]:
        """Default column synonyms for booking exports."""
        return {
            "Customer email": "email",
            "Email": "email",
            "email": "email",
            "Member ID": "member_id",
            "memberID": "member_id",
            "Class date": "date",
            "Date": "date",
            "date": "date",
            "Teacher": "teacher",
            "teacher": "teacher",
            "Instructor": "teacher",
            "Location": "location",
            "location": "location",
            "Studio": "location",
            "Cancelled": "cancelled",
            "cancelled": "cancelled",
        }

    def _build(self, mapped: dict[str, Any], row_index: int) -> BookingRecord:
        return BookingRecord(
            email=normalize_email(mapped.get("email")),
            member_id=normalize_member_id(mapped.get("member_id")),
            date=clean_text(mapped.get("date")),
            teacher=clean_text(mapped.get("teacher")),
            location=clean_text(mapped.get("location")),
            cancelled=parse_flag(mapped.get("cancelled")),
            row_index=row_index,
        )
