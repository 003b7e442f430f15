"""
Conversion classification - decide whether each trial client converted.

A client converted when at least one *candidate* purchase (matched by email
OR member ID) is *valid*:

- sale value is greater than zero
- the product is not a "2 for 1" offer
- the category is not retail
- the purchase date is readable and falls on or after the first visit day
- the sale was not refunded

The canonical first purchase is the earliest valid one; ties keep the
payments export order. Clients that did not convert get an explanation
built from every predicate their candidate purchases failed.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime

from studiostats.conversions.parsing import format_currency, parse_date
from studiostats.conversions.schema import (
    ClientProfile,
    ConversionResult,
    ConversionStatus,
    PurchaseRecord,
    ValidationIssue,
)
from studiostats.identity import IdentityIndex, is_valid_email

logger = logging.getLogger(__name__)

DEFAULT_CURRENCY_SYMBOL = "₹"
DEFAULT_EXCLUDED_PRODUCT_MARKERS = ("2 for 1",)
DEFAULT_EXCLUDED_CATEGORIES = ("retail",)

SECONDS_PER_DAY = 86400

# Non-conversion reasons, in the order they are checked per purchase
REASON_MISSING_VALUE = "Missing sale value"
REASON_NON_POSITIVE_VALUE = "Zero or negative sale value"
REASON_EXCLUDED_PRODUCT = "Excluded product (2 For 1)"
REASON_EXCLUDED_CATEGORY = "Retail category excluded"
REASON_PURCHASE_DATE_UNREADABLE = "Purchase date unreadable"
REASON_VISIT_DATE_UNREADABLE = "First visit date unreadable"
REASON_BEFORE_FIRST_VISIT = "Purchase before first visit"
REASON_REFUNDED = "Purchase was refunded"

NO_PURCHASES_EXPLANATION = "No purchase records found for this client"
NO_REASON_EXPLANATION = "Has purchases but none meet conversion criteria"


def profile_issues(client: ClientProfile) -> list[ValidationIssue]:
    """Validate the fields every client row should carry.

    Args:
        client: Normalized client profile.

    Returns:
        Validation issues, in a fixed order.
    """
    issues = []
    if not client.email:
        issues.append(ValidationIssue.MISSING_EMAIL)
    elif not is_valid_email(client.email):
        issues.append(ValidationIssue.INVALID_EMAIL)
    if not client.first_visit_date:
        issues.append(ValidationIssue.MISSING_FIRST_VISIT_DATE)
    elif parse_date(client.first_visit_date) is None:
        issues.append(ValidationIssue.INVALID_FIRST_VISIT_DATE)
    if not client.first_name and not client.last_name:
        issues.append(ValidationIssue.MISSING_CLIENT_NAME)
    return issues


class ConversionClassifier:
    """
    Classify trial clients as converted or not converted.

    The classifier is built once per run over the full payments export and
    holds no per-client state, so ``classify`` can run on many threads.

    Example:
        classifier = ConversionClassifier(purchases)
        result = classifier.classify(client)
        if result.is_converted:
            print(result.days_to_conversion, result.first_purchase_value)
    """

    def __init__(
        self,
        purchases: Sequence[PurchaseRecord],
        currency_symbol: str = DEFAULT_CURRENCY_SYMBOL,
        excluded_product_markers: Sequence[str] = DEFAULT_EXCLUDED_PRODUCT_MARKERS,
        excluded_categories: Sequence[str] = DEFAULT_EXCLUDED_CATEGORIES,
    ):
        """
        Initialize the classifier.

        Args:
            purchases: Normalized purchases in payments-export order.
            currency_symbol: Symbol used in explanation text.
            excluded_product_markers: Product substrings that never count.
            excluded_categories: Categories that never count.
        """
        self._purchases = list(purchases)
        self._purchase_dates = [parse_date(p.date) for p in self._purchases]
        self._index = IdentityIndex(self._purchases)
        self.currency_symbol = currency_symbol
        self.excluded_product_markers = tuple(m.lower() for m in excluded_product_markers)
        self.excluded_categories = frozenset(c.strip().lower() for c in excluded_categories)

    def failed_checks(
        self,
        purchase: PurchaseRecord,
        purchase_at: datetime | None,
        visit_at: datetime | None,
    ) -> list[str]:
        """Return the reasons a purchase does not qualify (empty if valid)."""
        reasons = []

        if purchase.value is None:
            reasons.append(REASON_MISSING_VALUE)
        elif purchase.value <= 0:
            reasons.append(REASON_NON_POSITIVE_VALUE)

        product = purchase.product.lower()
        if any(marker in product for marker in self.excluded_product_markers):
            reasons.append(REASON_EXCLUDED_PRODUCT)

        if purchase.category.strip().lower() in self.excluded_categories:
            reasons.append(REASON_EXCLUDED_CATEGORY)

        if purchase_at is None:
            reasons.append(REASON_PURCHASE_DATE_UNREADABLE)
        elif visit_at is None:
            reasons.append(REASON_VISIT_DATE_UNREADABLE)
        elif purchase_at.date() < visit_at.date():
            reasons.append(REASON_BEFORE_FIRST_VISIT)

        if purchase.refunded:
            reasons.append(REASON_REFUNDED)

        return reasons

    def candidates(self, client: ClientProfile) -> list[PurchaseRecord]:
        """Purchases matching the client's email OR member ID, in export order."""
        return self._index.lookup(client.email, client.member_id)

    def classify(self, client: ClientProfile) -> ConversionResult:
        """
        Classify one client.

        Args:
            client: Normalized client profile.

        Returns:
            ConversionResult with explanation and validation errors.
        """
        issues = profile_issues(client)
        visit_at = parse_date(client.first_visit_date)

        positions = self._index.positions(client.email, client.member_id)
        valid: list[int] = []
        reasons: list[str] = []

        for position in positions:
            purchase = self._purchases[position]
            if purchase.value is not None and purchase.value < 0:
                if ValidationIssue.NEGATIVE_SALE_VALUE not in issues:
                    issues.append(ValidationIssue.NEGATIVE_SALE_VALUE)

            failed = self.failed_checks(purchase, self._purchase_dates[position], visit_at)
            if not failed:
                valid.append(position)
            for reason in failed:
                if reason not in reasons:
                    reasons.append(reason)

        if valid:
            # Stable sort: same-date purchases keep export order
            valid.sort(key=lambda position: self._purchase_dates[position])
            first = valid[0]
            purchase = self._purchases[first]
            purchase_at = self._purchase_dates[first]
            days = math.ceil((purchase_at - visit_at).total_seconds() / SECONDS_PER_DAY)
            explanation = (
                f'Converted after {days} days with "{purchase.product}" '
                f"for {format_currency(purchase.value, self.currency_symbol)}"
            )
            logger.debug(f"Client {client.client_ref} converted: {explanation}")
            return ConversionResult(
                client=client,
                status=ConversionStatus.CONVERTED,
                explanation=explanation,
                first_purchase_date=purchase_at,
                first_purchase_product=purchase.product,
                first_purchase_value=purchase.value,
                days_to_conversion=days,
                validation_errors=tuple(issues),
            )

        if not positions:
            explanation = NO_PURCHASES_EXPLANATION
        elif reasons:
            explanation = f"Not converted: {', '.join(reasons)}"
        else:
            explanation = NO_REASON_EXPLANATION

        return ConversionResult(
            client=client,
            status=ConversionStatus.NOT_CONVERTED,
            explanation=explanation,
            validation_errors=tuple(issues),
        )

    def classify_all(
        self,
        clients: Sequence[ClientProfile],
        max_workers: int = 1,
    ) -> list[ConversionResult]:
        """
        Classify every client.

        Args:
            clients: Profiles in input order.
            max_workers: Thread count; 1 classifies inline.

        Returns:
            One result per client, in the same order as ``clients``.
        """
        if max_workers > 1 and len(clients) > 1:
            with ThreadPoolExecutor(max_workers=max_workers) as pool:
                results = list(pool.map(self.classify, clients))
        else:
            results = [self.classify(client) for client in clients]

        converted = sum(1 for r in results if r.is_converted)
        logger.info(f"Classified {len(results)} clients: {converted} converted")
        return results
