"""Shared fixtures for shared-reporting tests."""

import pytest


@pytest.fixture
def outcomes(make_outcome):
    """Five classified clients spread over four buckets."""
    return [
        make_outcome(row_index=0, converted=True, value=1000.0, days=4, retained=True, visits=2),
        make_outcome(row_index=1),
        make_outcome(
            row_index=2,
            teacher="Rohan Iyer",
            location="Bandra",
            converted=True,
            value=500.0,
            days=10,
            retained=True,
            visits=1,
        ),
        make_outcome(
            row_index=3,
            teacher="Rohan Iyer",
            location="Bandra",
            period="Feb-24",
            retained=True,
            visits=3,
        ),
        make_outcome(row_index=4, teacher="Unknown", location="Unknown", period="Unknown"),
    ]
