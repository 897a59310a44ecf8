"""Demographic breakdowns of journeys.

Occupation, income, gender and coarse mode buckets come from free-text
profile answers matched against ordered keyword rules (see
``journey_canon.normalize.match_category``). The rules are substring
heuristics and are configurable through AnalyticsConfig.
"""

import logging
from collections import Counter
from typing import Any

import polars as pl

from journey_canon.codebook.demographics import (
    AGE_GROUP_COLORS,
    GENDER_COLORS,
    GENDER_LABELS,
    OCCUPATION_LABELS,
    AgeGroup,
    GenderCategory,
    IncomeBracket,
)
from journey_canon.codebook.modes import NEUTRAL_COLOR, ModeCategory
from journey_canon.normalize import age_group, match_category

from .configs import AnalyticsConfig, as_rule_pairs
from .decoration import step
from .utils import percentage
from .zones import ZoneGazetteer

logger = logging.getLogger(__name__)

MODE_COLUMNS = [
    ModeCategory.BUS,
    ModeCategory.METRO,
    ModeCategory.AUTO,
    ModeCategory.WALK,
    ModeCategory.OTHER,
]


def _values(
    journeys: pl.DataFrame,
    column: str,
    count_defaulted: bool,
) -> list[Any]:
    values = journeys[column].to_list()
    if count_defaulted:
        return values
    return [value for value in values if value is not None]


def occupation_kpis(
    journeys: pl.DataFrame,
    config: AnalyticsConfig | None = None,
) -> pl.DataFrame:
    """Share of journeys by occupation bucket.

    Journeys outside the four reported buckets count as "other" and stay in
    the denominator. Percentages are whole numbers.

    Returns:
        DataFrame with label, category, count and percentage for Students,
        Employees, Homemakers and Seniors
    """
    config = config or AnalyticsConfig()
    defaults = config.defaults
    rules = as_rule_pairs(config.occupation_rules)

    occupations = _values(journeys, "occupation", defaults.count_defaulted)
    counts = Counter(
        match_category(value, rules, defaults.occupation)
        if value is not None
        else defaults.occupation
        for value in occupations
    )
    total = len(occupations)

    rows = [
        {
            "label": label,
            "category": str(category),
            "count": counts.get(category, 0),
            "percentage": int(percentage(counts.get(category, 0), total, 0)),
        }
        for category, label in OCCUPATION_LABELS.items()
    ]
    schema = {
        "label": pl.String,
        "category": pl.String,
        "count": pl.Int64,
        "percentage": pl.Int64,
    }
    return pl.DataFrame(rows, schema=schema)


def age_groups(
    journeys: pl.DataFrame,
    config: AnalyticsConfig | None = None,
) -> pl.DataFrame:
    """Journeys per age bin.

    A missing (or zero) age is replaced by the default age. Ages under 18
    fall in no bin but stay in the denominator.
    """
    config = config or AnalyticsConfig()
    defaults = config.defaults

    ages = [
        age if age else defaults.age
        for age in _values(journeys, "age", defaults.count_defaulted)
    ]
    counts = Counter(age_group(age) for age in ages)
    total = len(ages)

    rows = [
        {
            "age_group": str(group),
            "trips": counts.get(group, 0),
            "percentage": percentage(counts.get(group, 0), total),
            "color": AGE_GROUP_COLORS[group],
        }
        for group in AgeGroup
    ]
    schema = {
        "age_group": pl.String,
        "trips": pl.Int64,
        "percentage": pl.Float64,
        "color": pl.String,
    }
    return pl.DataFrame(rows, schema=schema)


def income_levels(
    journeys: pl.DataFrame,
    config: AnalyticsConfig | None = None,
) -> pl.DataFrame:
    """Journeys per income bracket, split by coarse transport mode.

    Missing or unmatched income labels fall in the default bracket; a
    missing transport mode falls in the default mode bucket.

    Returns:
        One row per income bracket (lowest first) with income_range, a
        count column per mode bucket, total and percentage of all journeys
    """
    config = config or AnalyticsConfig()
    defaults = config.defaults
    income_rules = as_rule_pairs(config.income_rules)
    mode_rules = as_rule_pairs(config.mode_category_rules)

    pairs = journeys.select("income", "transport_mode").iter_rows()
    if not defaults.count_defaulted:
        pairs = (
            (income, mode)
            for income, mode in pairs
            if income is not None and mode is not None
        )

    counts: Counter[tuple[str, str]] = Counter()
    for income, mode in pairs:
        bracket = match_category(income, income_rules, defaults.income)
        mode_bucket = (
            match_category(mode, mode_rules, ModeCategory.OTHER)
            if mode is not None
            else defaults.mode_category
        )
        counts[(bracket, mode_bucket)] += 1
    n_journeys = sum(counts.values())

    # Standard brackets first, then any extra configured categories
    brackets = list(IncomeBracket)
    for bracket in [rule.category for rule in config.income_rules] + [
        defaults.income
    ]:
        if bracket not in brackets:
            brackets.append(bracket)

    mode_columns = list(MODE_COLUMNS)
    for _, mode_bucket in counts:
        if mode_bucket not in mode_columns:
            mode_columns.append(mode_bucket)

    rows = []
    for bracket in brackets:
        row: dict[str, Any] = {"income_range": str(bracket)}
        for mode_bucket in mode_columns:
            row[str(mode_bucket)] = counts.get((bracket, mode_bucket), 0)
        row["total"] = sum(row[str(m)] for m in mode_columns)
        row["percentage"] = percentage(row["total"], n_journeys)
        rows.append(row)

    schema = {
        "income_range": pl.String,
        **{str(m): pl.Int64 for m in mode_columns},
        "total": pl.Int64,
        "percentage": pl.Float64,
    }
    return pl.DataFrame(rows, schema=schema)


def gender_distribution(
    journeys: pl.DataFrame,
    config: AnalyticsConfig | None = None,
) -> pl.DataFrame:
    """Journeys per gender bucket (Male, Female, Other)."""
    config = config or AnalyticsConfig()
    defaults = config.defaults
    rules = as_rule_pairs(config.gender_rules)

    genders = _values(journeys, "gender", defaults.count_defaulted)
    counts = Counter(
        match_category(value, rules, GenderCategory.OTHER)
        if value is not None
        else defaults.gender
        for value in genders
    )
    total = len(genders)

    categories = list(GenderCategory) + [
        category for category in counts if category not in GENDER_LABELS
    ]
    rows = [
        {
            "gender": GENDER_LABELS.get(category, str(category)),
            "trips": counts.get(category, 0),
            "percentage": percentage(counts.get(category, 0), total),
            "color": GENDER_COLORS.get(category, NEUTRAL_COLOR),
        }
        for category in categories
    ]
    schema = {
        "gender": pl.String,
        "trips": pl.Int64,
        "percentage": pl.Float64,
        "color": pl.String,
    }
    return pl.DataFrame(rows, schema=schema)


@step()
def summarize_demographics(
    journeys: pl.DataFrame,
    config: AnalyticsConfig | None = None,
    gazetteer: ZoneGazetteer | None = None,
) -> dict[str, pl.DataFrame]:
    """Build the demographic breakdowns and static equity layers."""
    config = config or AnalyticsConfig()
    gazetteer = gazetteer or ZoneGazetteer.from_config(config)

    logger.info("Summarizing demographics for %d journeys", len(journeys))
    kpis = occupation_kpis(journeys, config)
    logger.debug(
        "Occupation KPIs: %s",
        dict(zip(kpis["label"], kpis["count"], strict=True)),
    )
    return {
        "occupation_kpis": kpis,
        "age_groups": age_groups(journeys, config),
        "income_levels": income_levels(journeys, config),
        "gender_distribution": gender_distribution(journeys, config),
        "equity_zones": gazetteer.equity_zones(),
        "transport_stops": gazetteer.transport_stops(),
    }
