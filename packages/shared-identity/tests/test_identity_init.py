"""Tests for studiostats.identity package exports."""


def test_public_api():
    """Test that the public API is importable from the package."""
    from studiostats import identity

    for name in identity.__all__:
        assert hasattr(identity, name), name


def test_expected_names_exported():
    """Test the main classes are exported."""
    from studiostats.identity import (
        ClientDeduplicator,
        DeduplicationResult,
        IdentityIndex,
        IdentityType,
    )

    assert ClientDeduplicator is not None
    assert DeduplicationResult is not None
    assert IdentityIndex is not None
    assert IdentityType.EMAIL.value == "email"
