"""Configuration models for journey analytics parameters."""

from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from journey_canon.codebook.demographics import (
    GENDER_RULES,
    INCOME_RULES,
    OCCUPATION_RULES,
    GenderCategory,
    IncomeBracket,
    OccupationCategory,
)
from journey_canon.codebook.modes import MODE_CATEGORY_RULES, ModeCategory

HOURS_PER_DAY = 24


class CategoryRule(BaseModel):
    """One keyword rule: labels containing any keyword map to category."""

    category: str
    keywords: list[str] = Field(min_length=1)


def _rules(pairs: list[tuple[str, list[str]]]) -> list[CategoryRule]:
    return [
        CategoryRule(category=category, keywords=keywords)
        for category, keywords in pairs
    ]


def as_rule_pairs(rules: list[CategoryRule]) -> list[tuple[str, list[str]]]:
    """Convert rule models to the (category, keywords) pairs used by match."""
    return [(rule.category, rule.keywords) for rule in rules]


class DefaultsPolicy(BaseModel):
    """Placeholders substituted for missing record fields.

    When ``count_defaulted`` is True a record missing a field is counted
    under the placeholder, so every breakdown shares the same denominator
    (the total record count). When False the record is left out of that
    breakdown and of its denominator.
    """

    transport_mode: str = Field(
        default="Unknown",
        description="Mode label for records without a transport mode",
    )
    journey_purpose: str = Field(
        default="Unknown",
        description="Purpose label for records without a purpose",
    )
    age: int = Field(
        default=25,
        description="Age assumed for records without a usable age",
    )
    gender: str = Field(
        default=GenderCategory.OTHER,
        description="Gender bucket for records without a gender",
    )
    income: str = Field(
        default=IncomeBracket.MIDDLE,
        description="Income bracket for missing or unmatched income labels",
    )
    occupation: str = Field(
        default=OccupationCategory.OTHER,
        description="Occupation bucket for records without an occupation",
    )
    mode_category: str = Field(
        default=ModeCategory.BUS,
        description=(
            "Coarse mode bucket used in the income by mode breakdown "
            "for records without a transport mode"
        ),
    )
    count_defaulted: bool = Field(
        default=True,
        description=(
            "Count records with missing fields under the placeholder "
            "instead of dropping them from the breakdown"
        ),
    )


class AnalyticsConfig(BaseModel):
    """Configuration model for journey analytics parameters.

    This config uses Pydantic for validation and provides type-safe access
    to the aggregation parameters: the local timezone for temporal tables,
    the defaulting policy, the keyword vocabularies used to bucket free-text
    labels, rush hour windows and geospatial settings.
    """

    timezone: str = Field(
        default="UTC",
        description="IANA timezone that hours and weekdays are reported in",
    )

    defaults: DefaultsPolicy = Field(
        default_factory=DefaultsPolicy,
        description="Placeholders and counting policy for missing fields",
    )

    # Keyword vocabularies: order matters, the first matching rule wins
    occupation_rules: list[CategoryRule] = Field(
        default_factory=lambda: _rules(OCCUPATION_RULES),
        description="Ordered keyword rules for occupation buckets",
    )
    income_rules: list[CategoryRule] = Field(
        default_factory=lambda: _rules(INCOME_RULES),
        description="Ordered keyword rules for income brackets",
    )
    gender_rules: list[CategoryRule] = Field(
        default_factory=lambda: _rules(GENDER_RULES),
        description="Ordered keyword rules for gender buckets",
    )
    mode_category_rules: list[CategoryRule] = Field(
        default_factory=lambda: _rules(MODE_CATEGORY_RULES),
        description="Ordered keyword rules for coarse mode buckets",
    )

    # Inclusive (first hour, last hour) windows
    rush_windows: list[tuple[int, int]] = Field(
        default=[(7, 9), (17, 19)],
        description="Inclusive hour windows treated as rush hours",
    )
    off_peak_divisor: int | None = Field(
        default=None,
        ge=1,
        description=(
            "Fixed number of hours the off-peak trip total is divided by; "
            "None divides by the hours actually outside the rush windows "
            "(15 reproduces the legacy dashboard figures)"
        ),
    )
    default_peak_hour: int = Field(
        default=8,
        ge=0,
        lt=24,
        description="Peak hour reported when no journey has a timestamp",
    )

    default_avg_duration: int = Field(
        default=25,
        description="Average duration reported for hours without durations",
    )

    heatmap_precision: int = Field(
        default=4,
        ge=0,
        description="Decimals that heatmap coordinates are rounded to",
    )
    heatmap_jitter: bool = Field(
        default=False,
        description="Scale heatmap intensity by a random factor in [0.7, 1.3]",
    )
    heatmap_seed: int | None = Field(
        default=None,
        description="Seed for the heatmap jitter (None for nondeterministic)",
    )

    top_corridor_limit: int = Field(
        default=10,
        ge=1,
        description="Number of corridors listed by top_corridors",
    )

    gazetteer_path: Path | None = Field(
        default=None,
        description="Zone gazetteer YAML (default: bundled Kerala zones)",
    )

    @field_validator("rush_windows")
    @classmethod
    def _check_rush_windows(
        cls, windows: list[tuple[int, int]]
    ) -> list[tuple[int, int]]:
        for start, end in windows:
            if not 0 <= start <= end < HOURS_PER_DAY:
                msg = (
                    f"Invalid rush window ({start}, {end}): hours must "
                    f"satisfy 0 <= start <= end <= 23"
                )
                raise ValueError(msg)
        return windows

    @property
    def rush_hours(self) -> set[int]:
        """All hours covered by the rush windows."""
        return {
            hour
            for start, end in self.rush_windows
            for hour in range(start, end + 1)
        }


class CacheSettings(BaseModel):
    """Timing and retry parameters for the query cache."""

    stale_time: float = Field(
        default=300.0,
        ge=0,
        description="Seconds an entry is served without refetching",
    )
    gc_time: float = Field(
        default=600.0,
        ge=0,
        description="Seconds an unused entry is kept before eviction",
    )
    retry: int = Field(
        default=3,
        ge=0,
        description="Additional fetch attempts after the first failure",
    )
    retry_base_delay: float = Field(
        default=1.0,
        ge=0,
        description="Delay in seconds before the first retry",
    )
    retry_max_delay: float = Field(
        default=30.0,
        ge=0,
        description="Upper bound on the delay between retries",
    )
    stale_times: dict[str, float] = Field(
        default={
            "dashboard-data": 180.0,
            "geospatial-data": 600.0,
            "demographics-data": 900.0,
            "temporal-data": 480.0,
            "od-matrix-data": 720.0,
        },
        description="Per-key stale times overriding stale_time",
    )
