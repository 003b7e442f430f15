"""
Retention classification - did the trial client come back?

A client is retained when the bookings export holds at least
``min_post_trial_visits`` non-cancelled bookings for them (matched by email
OR member ID) dated strictly after the first visit.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor

from studiostats.conversions.parsing import parse_date
from studiostats.conversions.schema import (
    BookingRecord,
    ClientProfile,
    RetentionResult,
    RetentionStatus,
)
from studiostats.identity import IdentityIndex

logger = logging.getLogger(__name__)

DEFAULT_MIN_POST_TRIAL_VISITS = 1


class RetentionClassifier:
    """
    Classify trial clients as retained or not retained.

    Example:
        classifier = RetentionClassifier(bookings, min_post_trial_visits=2)
        result = classifier.classify(client)
        print(result.visits_post_trial)
    """

    def __init__(
        self,
        bookings: Sequence[BookingRecord],
        min_post_trial_visits: int = DEFAULT_MIN_POST_TRIAL_VISITS,
    ):
        """
        Initialize the classifier.

        Args:
            bookings: Normalized bookings in export order.
            min_post_trial_visits: Visits after the trial needed to count
                as retained.

        Raises:
            ValueError: If min_post_trial_visits is negative.
        """
        if min_post_trial_visits < 0:
            raise ValueError(
                f"min_post_trial_visits must be >= 0, got {min_post_trial_visits}"
            )
        self.min_post_trial_visits = min_post_trial_visits
        self._bookings = [b for b in bookings if not b.cancelled]
        self._booking_dates = [parse_date(b.date) for b in self._bookings]
        self._index = IdentityIndex(self._bookings)

        cancelled = len(bookings) - len(self._bookings)
        if cancelled:
            logger.info(f"Ignoring {cancelled} cancelled bookings")

    def count_visits_post_trial(self, client: ClientProfile) -> int:
        """Count matched bookings dated strictly after the first visit.

        Only calendar days are compared, so a timed booking on the trial day
        is the trial itself, even when the first visit has no time.
        """
        visit_at = parse_date(client.first_visit_date)
        if visit_at is None:
            return 0

        count = 0
        for position in self._index.positions(client.email, client.member_id):
            booked_at = self._booking_dates[position]
            if booked_at is not None and booked_at.date() > visit_at.date():
                count += 1
        return count

    def classify(self, client: ClientProfile) -> RetentionResult:
        """Classify one client."""
        visits = self.count_visits_post_trial(client)
        # An unreadable first visit can never count as retained
        readable = parse_date(client.first_visit_date) is not None
        retained = readable and visits >= self.min_post_trial_visits

        return RetentionResult(
            client=client,
            status=RetentionStatus.RETAINED if retained else RetentionStatus.NOT_RETAINED,
            visits_post_trial=visits,
        )

    def classify_all(
        self,
        clients: Sequence[ClientProfile],
        max_workers: int = 1,
    ) -> list[RetentionResult]:
        """Classify every client; results follow ``clients`` order."""
        if max_workers > 1 and len(clients) > 1:
            with ThreadPoolExecutor(max_workers=max_workers) as pool:
                results = list(pool.map(self.classify, clients))
        else:
            results = [self.classify(client) for client in clients]

        retained = sum(1 for r in results if r.is_retained)
        logger.info(f"Classified {len(results)} clients: {retained} retained")
        return results
