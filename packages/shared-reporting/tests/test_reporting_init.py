"""Tests for studiostats.reporting package exports."""


def test_public_api():
    """Test every name in __all__ is importable."""
    from studiostats import reporting

    for name in reporting.__all__:
        assert hasattr(reporting, name), name


def test_rollup_labels():
    """Test rollup labels."""
    from studiostats.reporting import ALL_LOCATIONS, ALL_PERIODS, ALL_TEACHERS

    assert ALL_TEACHERS == "All Teachers"
    assert ALL_LOCATIONS == "All Locations"
    assert ALL_PERIODS == "All Periods"
