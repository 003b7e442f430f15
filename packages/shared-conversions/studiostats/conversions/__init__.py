"""
StudioStats Conversions - trial conversion and retention classification.

Provides:
- Canonical record schema for the new-client, payments and bookings exports
- Normalizers mapping export column synonyms onto that schema
- Conversion classification (first qualifying purchase + explanation)
- Retention classification (post-trial visit counts)
- Exclusion of friends & family, staff and promotional entries

Usage:
    from studiostats.conversions import (
        ClientNormalizer,
        ConversionClassifier,
        PurchaseNormalizer,
    )

    clients = ClientNormalizer().normalize(new_client_rows)
    purchases = PurchaseNormalizer().normalize(payment_rows)

    classifier = ConversionClassifier(purchases)
    results = classifier.classify_all(clients)
"""

from studiostats.conversions.classifier import (
    ConversionClassifier,
    profile_issues,
)
from studiostats.conversions.exclusions import (
    DEFAULT_EXCLUSION_RULES,
    ExclusionFilter,
    ExclusionRule,
)
from studiostats.conversions.normalizer import (
    DEFAULT_AGGREGATE_LABELS,
    BookingNormalizer,
    ClientNormalizer,
    PurchaseNormalizer,
    RecordNormalizer,
)
from studiostats.conversions.outcomes import (
    UNKNOWN_LABEL,
    join_outcomes,
    period_label,
)
from studiostats.conversions.retention import RetentionClassifier
from studiostats.conversions.schema import (
    BookingRecord,
    ClientOutcome,
    ClientProfile,
    ConversionResult,
    ConversionStatus,
    ExclusionReason,
    ExclusionRecord,
    PurchaseRecord,
    RetentionResult,
    RetentionStatus,
    SourceType,
    ValidationIssue,
)

__all__ = [
    # Schema
    "BookingRecord",
    "ClientOutcome",
    "ClientProfile",
    "ConversionResult",
    "ConversionStatus",
    "ExclusionReason",
    "ExclusionRecord",
    "PurchaseRecord",
    "RetentionResult",
    "RetentionStatus",
    "SourceType",
    "ValidationIssue",
    # Normalizers
    "DEFAULT_AGGREGATE_LABELS",
    "RecordNormalizer",
    "ClientNormalizer",
    "PurchaseNormalizer",
    "BookingNormalizer",
    # Classification
    "ConversionClassifier",
    "RetentionClassifier",
    "profile_issues",
    # Exclusions
    "DEFAULT_EXCLUSION_RULES",
    "ExclusionFilter",
    "ExclusionRule",
    # Outcomes
    "UNKNOWN_LABEL",
    "join_outcomes",
    "period_label",
]
