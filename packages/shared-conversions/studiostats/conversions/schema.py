"""
Studio record schema - canonical shapes for the three studio exports and
the per-client classification results derived from them.

Source exports:
- New clients (one row per trial visitor)
- Payments (one row per sale line)
- Bookings (one row per class booking)

Derived results:
- ConversionResult: did the trial visit turn into a qualifying purchase?
- RetentionResult: did the client come back for another class?
- ExclusionRecord: why a client is left out of aggregate counts

All records are immutable. Each ClientProfile gets exactly one
ConversionResult and exactly one RetentionResult.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from studiostats.identity import IdentityType


class SourceType(str, Enum):
    """Studio export a record was read from."""

    NEW_CLIENTS = "new_clients"
    PAYMENTS = "payments"
    BOOKINGS = "bookings"


class ConversionStatus(str, Enum):
    """Whether a trial client made a qualifying purchase."""

    CONVERTED = "converted"
    NOT_CONVERTED = "not_converted"


class RetentionStatus(str, Enum):
    """Whether a trial client returned after the first visit."""

    RETAINED = "retained"
    NOT_RETAINED = "not_retained"


class ValidationIssue(str, Enum):
    """Data-quality problems recorded against a client."""

    MISSING_EMAIL = "missing_email"
    INVALID_EMAIL = "invalid_email"
    MISSING_CLIENT_NAME = "missing_client_name"
    MISSING_FIRST_VISIT_DATE = "missing_first_visit_date"
    INVALID_FIRST_VISIT_DATE = "invalid_first_visit_date"
    NEGATIVE_SALE_VALUE = "negative_sale_value"


class ExclusionReason(str, Enum):
    """Non-customer categories removed from countable totals."""

    FRIENDS_FAMILY = "friends_family"
    STAFF = "staff"
    PROMOTIONAL = "promotional"


def _isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _fromisoformat(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


@dataclass(frozen=True)
class ClientProfile:
    """
    One trial client after normalization and deduplication.

    ``email`` is already normalized (lowercase, trimmed) and is the primary
    matching key; ``member_id`` is the secondary key. ``first_visit_date``
    keeps the raw export text so the classifiers can report unreadable dates.

    Example:
        client = ClientProfile(
            member_id="10423",
            first_name="Jane",
            last_name="Doe",
            email="jane@example.com",
            first_visit_date="2024-01-01",
            first_visit_location="Kemps Corner",
            membership_used="Studio Trial Class",
            teacher="Anisha Shah",
            row_index=0,
        )
    """

    member_id: str = ""
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    first_visit_date: str = ""
    first_visit_location: str = ""
    membership_used: str = ""
    teacher: str = ""
    row_index: int = 0

    @property
    def client_ref(self) -> int:
        """Stable reference to the source row this profile came from."""
        return self.row_index

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-safe dictionary."""
        return {
            "client_ref": self.client_ref,
            "member_id": self.member_id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "email": self.email,
            "first_visit_date": self.first_visit_date,
            "first_visit_location": self.first_visit_location,
            "membership_used": self.membership_used,
            "teacher": self.teacher,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ClientProfile:
        """Create a ClientProfile from ``to_dict()`` output."""
        return cls(
            member_id=data.get("member_id", ""),
            first_name=data.get("first_name", ""),
            last_name=data.get("last_name", ""),
            email=data.get("email", ""),
            first_visit_date=data.get("first_visit_date", ""),
            first_visit_location=data.get("first_visit_location", ""),
            membership_used=data.get("membership_used", ""),
            teacher=data.get("teacher", ""),
            row_index=int(data.get("client_ref", 0)),
        )


@dataclass(frozen=True)
class PurchaseRecord:
    """
    One sale line from the payments export.

    A purchase can carry two emails: the customer the item was sold to and
    the paying customer. Either one matches a client.
    """

    email: str = ""
    paying_email: str = ""
    member_id: str = ""
    date: str = ""
    value: float | None = None
    category: str = ""
    product: str = ""
    refunded: bool = False
    row_index: int = 0

    def identity_keys(self) -> Iterator[tuple[IdentityType, str]]:
        """Yield the keys this purchase can be matched on."""
        yield IdentityType.EMAIL, self.email
        yield IdentityType.EMAIL, self.paying_email
        yield IdentityType.MEMBER_ID, self.member_id


@dataclass(frozen=True)
class BookingRecord:
    """One class booking, used to count visits after the trial."""

    email: str = ""
    member_id: str = ""
    date: str = ""
    teacher: str = ""
    location: str = ""
    cancelled: bool = False
    row_index: int = 0

    def identity_keys(self) -> Iterator[tuple[IdentityType, str]]:
        """Yield the keys this booking can be matched on."""
        yield IdentityType.EMAIL, self.email
        yield IdentityType.MEMBER_ID, self.member_id


@dataclass(frozen=True)
class ConversionResult:
    """Conversion outcome for a single client.

    ``explanation`` is always populated: for converted clients it names the
    first qualifying purchase, otherwise it lists why no purchase qualified.
    """

    client: ClientProfile
    status: ConversionStatus
    explanation: str
    first_purchase_date: datetime | None = None
    first_purchase_product: str | None = None
    first_purchase_value: float | None = None
    days_to_conversion: int | None = None
    validation_errors: tuple[ValidationIssue, ...] = ()

    @property
    def is_converted(self) -> bool:
        return self.status == ConversionStatus.CONVERTED

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-safe dictionary (client referenced by ``client_ref``)."""
        return {
            "client_ref": self.client.client_ref,
            "conversion_status": self.status.value,
            "first_purchase_date": _isoformat(self.first_purchase_date),
            "first_purchase_product": self.first_purchase_product,
            "first_purchase_value": self.first_purchase_value,
            "days_to_conversion": self.days_to_conversion,
            "conversion_details": self.explanation,
            "validation_errors": [issue.value for issue in self.validation_errors],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any], client: ClientProfile) -> ConversionResult:
        """Create a ConversionResult from ``to_dict()`` output."""
        return cls(
            client=client,
            status=ConversionStatus(data["conversion_status"]),
            explanation=data.get("conversion_details", ""),
            first_purchase_date=_fromisoformat(data.get("first_purchase_date")),
            first_purchase_product=data.get("first_purchase_product"),
            first_purchase_value=data.get("first_purchase_value"),
            days_to_conversion=data.get("days_to_conversion"),
            validation_errors=tuple(
                ValidationIssue(issue) for issue in data.get("validation_errors", [])
            ),
        )


@dataclass(frozen=True)
class RetentionResult:
    """Retention outcome for a single client."""

    client: ClientProfile
    status: RetentionStatus
    visits_post_trial: int = 0

    @property
    def is_retained(self) -> bool:
        return self.status == RetentionStatus.RETAINED

    def to_dict(self) -> dict[str, Any]:
        return {
            "client_ref": self.client.client_ref,
            "retention_status": self.status.value,
            "visits_post_trial": self.visits_post_trial,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any], client: ClientProfile) -> RetentionResult:
        return cls(
            client=client,
            status=RetentionStatus(data["retention_status"]),
            visits_post_trial=int(data.get("visits_post_trial", 0)),
        )


@dataclass(frozen=True)
class ExclusionRecord:
    """A client removed from aggregate counts, with the reason why."""

    client: ClientProfile
    reason_code: ExclusionReason
    reason: str

    def __post_init__(self) -> None:
        """Every exclusion must be explainable."""
        if not self.reason or not self.reason.strip():
            raise ValueError("ExclusionRecord requires a non-empty reason")

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.client.to_dict(),
            "reason_code": self.reason_code.value,
            "reason": self.reason,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ExclusionRecord:
        return cls(
            client=ClientProfile.from_dict(data),
            reason_code=ExclusionReason(data["reason_code"]),
            reason=data["reason"],
        )


@dataclass(frozen=True)
class ClientOutcome:
    """Per-client join of profile, conversion, retention and bucket labels.

    Attributes:
        teacher_label: Teacher bucket the client is counted under.
        location_label: Location bucket the client is counted under.
        period: Period label of the first visit (e.g. "Jun-25").
    """

    conversion: ConversionResult
    retention: RetentionResult
    teacher_label: str
    location_label: str
    period: str

    @property
    def client(self) -> ClientProfile:
        return self.conversion.client

    @property
    def bucket_key(self) -> tuple[str, str, str]:
        return (self.teacher_label, self.location_label, self.period)

    def to_dict(self) -> dict[str, Any]:
        """Flatten into a single audit row."""
        return {
            **self.client.to_dict(),
            "teacher_label": self.teacher_label,
            "location_label": self.location_label,
            "period": self.period,
            **{k: v for k, v in self.conversion.to_dict().items() if k != "client_ref"},
            **{k: v for k, v in self.retention.to_dict().items() if k != "client_ref"},
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ClientOutcome:
        """Rebuild an outcome from a flattened audit row."""
        client = ClientProfile.from_dict(data)
        conversion = ConversionResult.from_dict(data, client)
        return cls(
            conversion=conversion,
            retention=RetentionResult.from_dict(data, client),
            teacher_label=data["teacher_label"],
            location_label=data["location_label"],
            period=data["period"],
        )
