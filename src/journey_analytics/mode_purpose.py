"""Mode, purpose and satisfaction share tables."""

import logging
from collections.abc import Callable

import polars as pl

from journey_canon.codebook.modes import NEUTRAL_COLOR, mode_color
from journey_canon.codebook.purposes import purpose_color
from journey_canon.codebook.satisfaction import (
    SATISFACTION_COLORS,
    satisfaction_score,
)

from .configs import AnalyticsConfig
from .decoration import step
from .utils import count_labels, percentage

logger = logging.getLogger(__name__)


def _share_table(
    labels: pl.Series,
    label_name: str,
    color_fn: Callable[[str], str],
) -> pl.DataFrame:
    total = len(labels)
    rows = [
        {
            label_name: label,
            "trips": trips,
            "percentage": percentage(trips, total),
            "color": color_fn(label),
        }
        for label, trips in count_labels(labels)
    ]
    schema = {
        label_name: pl.String,
        "trips": pl.Int64,
        "percentage": pl.Float64,
        "color": pl.String,
    }
    return pl.DataFrame(rows, schema=schema)


def _labels_with_default(
    journeys: pl.DataFrame,
    column: str,
    placeholder: str,
    count_defaulted: bool,
) -> pl.Series:
    labels = journeys[column]
    if count_defaulted:
        return labels.fill_null(placeholder)
    return labels.drop_nulls()


def mode_share(
    journeys: pl.DataFrame,
    config: AnalyticsConfig | None = None,
) -> pl.DataFrame:
    """Share of trips by transport mode.

    Args:
        journeys: Canonical journey frame
        config: Analytics configuration (defaults policy)

    Returns:
        DataFrame with mode, trips, percentage (one decimal) and color,
        sorted by trips descending then mode
    """
    config = config or AnalyticsConfig()
    labels = _labels_with_default(
        journeys,
        "transport_mode",
        config.defaults.transport_mode,
        config.defaults.count_defaulted,
    )
    return _share_table(labels, "mode", mode_color)


def purpose_share(
    journeys: pl.DataFrame,
    config: AnalyticsConfig | None = None,
) -> pl.DataFrame:
    """Share of trips by journey purpose."""
    config = config or AnalyticsConfig()
    labels = _labels_with_default(
        journeys,
        "journey_purpose",
        config.defaults.journey_purpose,
        config.defaults.count_defaulted,
    )
    return _share_table(labels, "purpose", purpose_color)


def satisfaction_share(journeys: pl.DataFrame) -> pl.DataFrame:
    """Share of rated trips by route satisfaction label.

    Unrated trips are left out. Adds the numeric score for each label
    (null for labels that are neither a known label nor a number).
    """
    labels = journeys["satisfaction"].drop_nulls()
    table = _share_table(
        labels,
        "satisfaction",
        lambda label: SATISFACTION_COLORS.get(label.casefold(), NEUTRAL_COLOR),
    )
    return table.with_columns(
        pl.col("satisfaction")
        .map_elements(satisfaction_score, return_dtype=pl.Float64)
        .alias("score")
    )


@step()
def summarize_mode_purpose(
    journeys: pl.DataFrame,
    config: AnalyticsConfig | None = None,
) -> dict[str, pl.DataFrame]:
    """Build the mode, purpose and satisfaction share tables."""
    logger.info("Summarizing mode and purpose for %d journeys", len(journeys))
    return {
        "mode_share": mode_share(journeys, config),
        "purpose_share": purpose_share(journeys, config),
        "satisfaction_share": satisfaction_share(journeys),
    }
