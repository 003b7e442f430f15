"""Shared pytest fixtures for StudioStats packages."""

import pytest

from studiostats.conversions import (
    BookingRecord,
    ClientOutcome,
    ClientProfile,
    ConversionResult,
    ConversionStatus,
    PurchaseRecord,
    RetentionResult,
    RetentionStatus,
)


@pytest.fixture
def sample_new_clients():
    """Sample new-client export rows.

    Rows 0-3 are distinct trial clients, row 4 is an "All Teachers" summary
    row and row 5 repeats Jane's email with different details.
    """
    return [
        {
            "Member ID": "101",
            "First name": "Jane",
            "Last name": "Doe",
            "Email": "jane@example.com",
            "First visit at": "2024-01-01",
            "First visit location": "Kemps Corner",
            "Membership used": "Studio Trial Class",
            "Teacher": "Anisha Shah",
        },
        {
            "Member ID": "102",
            "First name": "Raj",
            "Last name": "Mehta",
            "Email": "raj@example.com",
            "First visit at": "2024-01-05",
            "First visit location": "Bandra",
            "Membership used": "Studio Trial Class",
            "Teacher": "Rohan Iyer",
        },
        {
            "Member ID": "103",
            "First name": "Priya",
            "Last name": "Nair",
            "Email": "priya@example.com",
            "First visit at": "2024-02-10",
            "First visit location": "Kemps Corner",
            "Membership used": "Friends & Family Pass",
            "Teacher": "Anisha Shah",
        },
        {
            "Member ID": "104",
            "First name": "Sam",
            "Last name": "Lee",
            "Email": "sam@example.com",
            "First visit at": "2024-02-12",
            "First visit location": "Bandra",
            "Membership used": "Studio Trial Class",
            "Teacher": "Rohan Iyer",
        },
        {
            "Member ID": "",
            "First name": "",
            "Last name": "",
            "Email": "",
            "First visit at": "",
            "First visit location": "",
            "Membership used": "",
            "Teacher": "All Teachers",
        },
        {
            "Member ID": "999",
            "First name": "Jane",
            "Last name": "D.",
            "Email": " JANE@example.com ",
            "First visit at": "2024-03-01",
            "First visit location": "Bandra",
            "Membership used": "Studio Trial Class",
            "Teacher": "Rohan Iyer",
        },
    ]


@pytest.fixture
def sample_payments():
    """Sample payments export rows."""
    return [
        {
            "Customer email": "jane@example.com",
            "Member ID": "101",
            "Date": "2024-01-05",
            "Sale value": "₹1,000",
            "Category": "Memberships",
            "Item": "Monthly Unlimited",
            "Refunded": "NO",
        },
        {
            "Customer email": "raj@example.com",
            "Member ID": "102",
            "Date": "2024-01-10",
            "Sale value": 500,
            "Category": "Memberships",
            "Item": "2 For 1 Pass",
            "Refunded": "NO",
        },
        {
            "Customer email": "",
            "Member ID": "104",
            "Date": "2024-02-11",
            "Sale value": 800,
            "Category": "Class Packs",
            "Item": "10 Class Pack",
            "Refunded": "NO",
        },
        {
            "Customer email": "priya@example.com",
            "Member ID": "103",
            "Date": "2024-02-15",
            "Sale value": 1200,
            "Category": "Class Packs",
            "Item": "5 Class Pack",
            "Refunded": "NO",
        },
    ]


@pytest.fixture
def sample_bookings():
    """Sample bookings export rows."""
    return [
        {
            "Customer email": "jane@example.com",
            "Class date": "2024-01-08",
            "Teacher": "Anisha Shah",
            "Location": "Kemps Corner",
            "Cancelled": "NO",
        },
        {
            "Customer email": "jane@example.com",
            "Class date": "2024-01-01",
            "Teacher": "Anisha Shah",
            "Location": "Kemps Corner",
            "Cancelled": "NO",
        },
        {
            "Customer email": "raj@example.com",
            "Class date": "2024-01-20",
            "Teacher": "Rohan Iyer",
            "Location": "Bandra",
            "Cancelled": "YES",
        },
        {
            "Customer email": "",
            "Member ID": "104",
            "Class date": "2024-02-20",
            "Teacher": "Rohan Iyer",
            "Location": "Bandra",
            "Cancelled": "NO",
        },
        {
            "Customer email": "",
            "Class date": "",
            "Teacher": "All Teachers",
            "Location": "",
            "Cancelled": "",
        },
    ]


@pytest.fixture
def make_client():
    """Factory for ClientProfile objects with sensible defaults."""

    def _make(**overrides):
        values = {
            "member_id": "101",
            "first_name": "Jane",
            "last_name": "Doe",
            "email": "jane@example.com",
            "first_visit_date": "2024-01-01",
            "first_visit_location": "Kemps Corner",
            "membership_used": "Studio Trial Class",
            "teacher": "Anisha Shah",
            "row_index": 0,
        }
        values.update(overrides)
        return ClientProfile(**values)

    return _make


@pytest.fixture
def make_purchase():
    """Factory for PurchaseRecord objects with sensible defaults."""

    def _make(**overrides):
        values = {
            "email": "jane@example.com",
            "member_id": "",
            "date": "2024-01-05",
            "value": 1000.0,
            "category": "Memberships",
            "product": "Monthly Unlimited",
            "refunded": False,
            "row_index": 0,
        }
        values.update(overrides)
        return PurchaseRecord(**values)

    return _make


@pytest.fixture
def make_booking():
    """Factory for BookingRecord objects with sensible defaults."""

    def _make(**overrides):
        values = {
            "email": "jane@example.com",
            "member_id": "",
            "date": "2024-01-08",
            "teacher": "Anisha Shah",
            "location": "Kemps Corner",
            "cancelled": False,
            "row_index": 0,
        }
        values.update(overrides)
        return BookingRecord(**values)

    return _make


@pytest.fixture
def make_outcome(make_client):
    """Factory for classified ClientOutcome objects.

    Converted outcomes need ``value`` and ``days``. ``retained`` sets the
    retention status and ``visits`` the post-trial visit count.
    """

    def _make(
        teacher="Anisha Shah",
        location="Kemps Corner",
        period="Jan-24",
        converted=False,
        value=None,
        days=None,
        retained=False,
        visits=0,
        row_index=0,
    ):
        client = make_client(
            row_index=row_index,
            email=f"client{row_index}@example.com",
            teacher=teacher,
            first_visit_location=location,
        )
        if converted:
            conversion = ConversionResult(
                client=client,
                status=ConversionStatus.CONVERTED,
                explanation=f"Converted after {days} days",
                first_purchase_product="Monthly Unlimited",
                first_purchase_value=value,
                days_to_conversion=days,
            )
        else:
            conversion = ConversionResult(
                client=client,
                status=ConversionStatus.NOT_CONVERTED,
                explanation="No purchase records found for this client",
            )
        retention = RetentionResult(
            client=client,
            status=RetentionStatus.RETAINED if retained else RetentionStatus.NOT_RETAINED,
            visits_post_trial=visits,
        )
        return ClientOutcome(
            conversion=conversion,
            retention=retention,
            teacher_label=teacher,
            location_label=location,
            period=period,
        )

    return _make
