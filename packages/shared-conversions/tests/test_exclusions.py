"""Tests for the exclusion filter."""

import pytest
from studiostats.conversions.exclusions import (
    DEFAULT_EXCLUSION_RULES,
    ExclusionFilter,
    ExclusionRule,
)
from studiostats.conversions.outcomes import join_outcomes
from studiostats.conversions.schema import (
    ConversionResult,
    ConversionStatus,
    ExclusionReason,
    RetentionResult,
    RetentionStatus,
)


def _outcomes(clients):
    conversions = [
        ConversionResult(
            client=c,
            status=ConversionStatus.NOT_CONVERTED,
            explanation="No purchase records found for this client",
        )
        for c in clients
    ]
    retentions = [RetentionResult(client=c, status=RetentionStatus.NOT_RETAINED) for c in clients]
    return join_outcomes(conversions, retentions)


class TestExclusionRule:
    """Test ExclusionRule matching."""

    def test_whole_word_case_insensitive(self):
        """Test keywords match whole words in any case."""
        rule = ExclusionRule(ExclusionReason.STAFF, "Staff membership", ("staff",))

        assert rule.matches("STAFF Unlimited")
        assert rule.matches("Studio staff")
        assert not rule.matches("Flagstaff Studio")

    def test_multi_word_and_symbol_keywords(self):
        """Test keywords containing spaces and ampersands."""
        rule = ExclusionRule(
            ExclusionReason.FRIENDS_FAMILY, "Friends & family", ("f&f", "team member")
        )

        assert rule.matches("F&F Pass")
        assert rule.matches("Team Member Rate")
        assert not rule.matches("Teammember")

    def test_empty_text(self):
        rule = DEFAULT_EXCLUSION_RULES[0]
        assert rule.matches("") is False

    def test_requires_keywords(self):
        """Test a rule without keywords is rejected."""
        with pytest.raises(ValueError, match="at least one keyword"):
            ExclusionRule(ExclusionReason.STAFF, "Staff", ())


class TestExclusionFilter:
    """Test ExclusionFilter."""

    @pytest.mark.parametrize(
        ("membership", "reason_code"),
        [
            ("Friends & Family Pass", ExclusionReason.FRIENDS_FAMILY),
            ("F&F Monthly", ExclusionReason.FRIENDS_FAMILY),
            ("Staff Unlimited", ExclusionReason.STAFF),
            ("Employee Membership", ExclusionReason.STAFF),
            ("Promo Week Pass", ExclusionReason.PROMOTIONAL),
            ("Complimentary Class", ExclusionReason.PROMOTIONAL),
            ("Influencer Access", ExclusionReason.PROMOTIONAL),
            ("Launch Event Entry", ExclusionReason.PROMOTIONAL),
        ],
    )
    def test_default_rules(self, make_client, membership, reason_code):
        """Test the default non-customer categories."""
        record = ExclusionFilter().evaluate(make_client(membership_used=membership))

        assert record is not None
        assert record.reason_code == reason_code
        assert record.reason

    def test_reason_text(self, make_client):
        """Test the reason names the rule and the matched value."""
        record = ExclusionFilter().evaluate(make_client(membership_used="Friends & Family Pass"))
        assert record.reason == 'Friends & family membership ("Friends & Family Pass")'

    def test_regular_membership_included(self, make_client):
        """Test trial memberships are not excluded."""
        assert ExclusionFilter().evaluate(make_client(membership_used="Studio Trial Class")) is None

    def test_first_matching_rule_wins(self, make_client):
        """Test a value matching several rules gets the first rule's reason."""
        record = ExclusionFilter().evaluate(make_client(membership_used="Staff Family Promo"))
        assert record.reason_code == ExclusionReason.FRIENDS_FAMILY

    def test_custom_fields(self, make_client):
        """Test rules can be matched against other client fields."""
        exclusion_filter = ExclusionFilter(fields=("membership_used", "teacher"))

        record = exclusion_filter.evaluate(make_client(teacher="Event Team"))

        assert record.reason_code == ExclusionReason.PROMOTIONAL

    def test_apply_splits_population(self, make_client):
        """Test apply returns included outcomes and exclusion records in input order."""
        clients = [
            make_client(row_index=0, membership_used="Studio Trial Class"),
            make_client(row_index=1, membership_used="Staff Unlimited"),
            make_client(row_index=2, membership_used="Intro Offer"),
            make_client(row_index=3, membership_used="Promo Pass"),
        ]

        included, excluded = ExclusionFilter().apply(_outcomes(clients))

        assert [o.client.row_index for o in included] == [0, 2]
        assert [r.client.row_index for r in excluded] == [1, 3]
        assert len(included) + len(excluded) == len(clients)

    def test_apply_is_order_independent(self, make_client):
        """Test the same client gets the same reason regardless of position."""
        clients = [
            make_client(row_index=0, membership_used="Family Promo"),
            make_client(row_index=1, membership_used="Studio Trial Class"),
        ]
        outcomes = _outcomes(clients)

        _, forward = ExclusionFilter().apply(outcomes)
        _, backward = ExclusionFilter().apply(list(reversed(outcomes)))

        assert forward[0].reason == backward[0].reason
