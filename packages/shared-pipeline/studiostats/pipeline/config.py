"""Pipeline configuration.

Settings that change how clients are classified and bucketed. Defaults match
the studio's reporting conventions; every field can be overridden in code or
through ``STUDIOSTATS_*`` environment variables.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field

from studiostats.conversions import (
    DEFAULT_AGGREGATE_LABELS,
    DEFAULT_EXCLUSION_RULES,
    ExclusionRule,
    SourceType,
)
from studiostats.conversions.classifier import DEFAULT_CURRENCY_SYMBOL
from studiostats.conversions.outcomes import DEFAULT_PERIOD_FORMAT
from studiostats.conversions.retention import DEFAULT_MIN_POST_TRIAL_VISITS
from studiostats.pipeline.exceptions import ConfigError

logger = logging.getLogger(__name__)


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from None


@dataclass
class PipelineConfig:
    """Configuration for a pipeline run.

    Attributes:
        min_post_trial_visits: Visits after the trial needed to count as retained.
        max_workers: Threads used for classification (1 runs inline).
        period_format: ``strftime`` format for period labels.
        currency_symbol: Symbol used in conversion explanations.
        aggregate_labels: Teacher/category labels marking summary rows.
        exclusion_rules: Non-customer rules in priority order.
        exclusion_fields: Client fields the exclusion rules are matched against.
        field_overrides: Extra column synonyms per source, checked first.
            Keyed by SourceType.
    """

    min_post_trial_visits: int = DEFAULT_MIN_POST_TRIAL_VISITS
    max_workers: int = 1
    period_format: str = DEFAULT_PERIOD_FORMAT
    currency_symbol: str = DEFAULT_CURRENCY_SYMBOL
    aggregate_labels: tuple[str, ...] = DEFAULT_AGGREGATE_LABELS
    exclusion_rules: tuple[ExclusionRule, ...] = DEFAULT_EXCLUSION_RULES
    exclusion_fields: tuple[str, ...] = ("membership_used",)
    field_overrides: dict[SourceType, dict[str, str]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.min_post_trial_visits < 0:
            raise ConfigError(
                f"min_post_trial_visits must be >= 0, got {self.min_post_trial_visits}"
            )
        if self.max_workers < 1:
            raise ConfigError(f"max_workers must be >= 1, got {self.max_workers}")
        if not self.period_format or "%" not in self.period_format:
            raise ConfigError(f"period_format must be a strftime format, got {self.period_format!r}")
        self.aggregate_labels = tuple(self.aggregate_labels)
        self.exclusion_rules = tuple(self.exclusion_rules)
        self.exclusion_fields = tuple(self.exclusion_fields)
        self.field_overrides = {
            SourceType(source): dict(overrides)
            for source, overrides in self.field_overrides.items()
        }

    def overrides_for(self, source: SourceType) -> dict[str, str]:
        """Column overrides for one source (empty if none)."""
        return dict(self.field_overrides.get(source, {}))

    @classmethod
    def from_env(cls) -> PipelineConfig:
        """Create configuration from environment variables.

        Environment variables:
            STUDIOSTATS_MIN_POST_TRIAL_VISITS: Retention threshold (default: 1)
            STUDIOSTATS_MAX_WORKERS: Classification threads (default: 1)
            STUDIOSTATS_PERIOD_FORMAT: Period label format (default: %b-%y)
            STUDIOSTATS_CURRENCY_SYMBOL: Currency symbol (default: ₹)
            STUDIOSTATS_AGGREGATE_LABELS: Comma-separated summary-row labels

        Raises:
            ConfigError: If a value is malformed.
        """
        labels_raw = os.environ.get("STUDIOSTATS_AGGREGATE_LABELS")
        if labels_raw is None:
            aggregate_labels = DEFAULT_AGGREGATE_LABELS
        else:
            aggregate_labels = tuple(
                label.strip() for label in labels_raw.split(",") if label.strip()
            )

        config = cls(
            min_post_trial_visits=_env_int(
                "STUDIOSTATS_MIN_POST_TRIAL_VISITS", DEFAULT_MIN_POST_TRIAL_VISITS
            ),
            max_workers=_env_int("STUDIOSTATS_MAX_WORKERS", 1),
            period_format=os.environ.get("STUDIOSTATS_PERIOD_FORMAT", DEFAULT_PERIOD_FORMAT),
            currency_symbol=os.environ.get("STUDIOSTATS_CURRENCY_SYMBOL", DEFAULT_CURRENCY_SYMBOL),
            aggregate_labels=aggregate_labels,
        )
        logger.debug(f"Loaded pipeline config from environment: {config}")
        return config
