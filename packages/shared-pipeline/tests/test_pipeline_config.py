"""Tests for PipelineConfig."""

import pytest
from studiostats.conversions import DEFAULT_AGGREGATE_LABELS, SourceType
from studiostats.pipeline import ConfigError, PipelineConfig


class TestPipelineConfig:
    """Test PipelineConfig defaults and validation."""

    def test_defaults(self):
        config = PipelineConfig()

        assert config.min_post_trial_visits == 1
        assert config.max_workers == 1
        assert config.period_format == "%b-%y"
        assert config.currency_symbol == "₹"
        assert config.aggregate_labels == DEFAULT_AGGREGATE_LABELS
        assert config.exclusion_fields == ("membership_used",)
        assert config.field_overrides == {}

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"min_post_trial_visits": -1},
            {"max_workers": 0},
            {"period_format": ""},
            {"period_format": "monthly"},
        ],
    )
    def test_invalid_values(self, kwargs):
        with pytest.raises(ConfigError):
            PipelineConfig(**kwargs)

    def test_config_error_is_value_error(self):
        """Test callers catching ValueError also catch config errors."""
        with pytest.raises(ValueError):
            PipelineConfig(max_workers=0)

    def test_zero_visit_threshold_allowed(self):
        assert PipelineConfig(min_post_trial_visits=0).min_post_trial_visits == 0

    def test_sequences_become_tuples(self):
        config = PipelineConfig(aggregate_labels=["Total"], exclusion_fields=["teacher"])

        assert config.aggregate_labels == ("Total",)
        assert config.exclusion_fields == ("teacher",)

    def test_field_overrides_keyed_by_source(self):
        config = PipelineConfig(field_overrides={"payments": {"Amount": "value"}})

        assert config.overrides_for(SourceType.PAYMENTS) == {"Amount": "value"}
        assert config.overrides_for(SourceType.BOOKINGS) == {}

    def test_unknown_override_source(self):
        with pytest.raises(ValueError):
            PipelineConfig(field_overrides={"invoices": {"Amount": "value"}})


class TestPipelineConfigFromEnv:
    """Test loading configuration from STUDIOSTATS_* variables."""

    @pytest.fixture(autouse=True)
    def clean_env(self, monkeypatch):
        for name in (
            "STUDIOSTATS_MIN_POST_TRIAL_VISITS",
            "STUDIOSTATS_MAX_WORKERS",
            "STUDIOSTATS_PERIOD_FORMAT",
            "STUDIOSTATS_CURRENCY_SYMBOL",
            "STUDIOSTATS_AGGREGATE_LABELS",
        ):
            monkeypatch.delenv(name, raising=False)

    def test_defaults_without_env(self):
        assert PipelineConfig.from_env() == PipelineConfig()

    def test_reads_env(self, monkeypatch):
        monkeypatch.setenv("STUDIOSTATS_MIN_POST_TRIAL_VISITS", "2")
        monkeypatch.setenv("STUDIOSTATS_MAX_WORKERS", " 4 ")
        monkeypatch.setenv("STUDIOSTATS_PERIOD_FORMAT", "%Y-%m")
        monkeypatch.setenv("STUDIOSTATS_CURRENCY_SYMBOL", "$")
        monkeypatch.setenv("STUDIOSTATS_AGGREGATE_LABELS", "Total, All Staff,,")

        config = PipelineConfig.from_env()

        assert config.min_post_trial_visits == 2
        assert config.max_workers == 4
        assert config.period_format == "%Y-%m"
        assert config.currency_symbol == "$"
        assert config.aggregate_labels == ("Total", "All Staff")

    def test_blank_int_uses_default(self, monkeypatch):
        monkeypatch.setenv("STUDIOSTATS_MAX_WORKERS", "  ")

        assert PipelineConfig.from_env().max_workers == 1

    def test_bad_int(self, monkeypatch):
        monkeypatch.setenv("STUDIOSTATS_MAX_WORKERS", "many")

        with pytest.raises(ConfigError, match="STUDIOSTATS_MAX_WORKERS must be an integer"):
            PipelineConfig.from_env()

    def test_out_of_range_int(self, monkeypatch):
        monkeypatch.setenv("STUDIOSTATS_MIN_POST_TRIAL_VISITS", "-3")

        with pytest.raises(ConfigError, match="min_post_trial_visits"):
            PipelineConfig.from_env()
