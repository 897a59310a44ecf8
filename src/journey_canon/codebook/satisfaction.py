"""Codebook enumerations for route satisfaction labels."""

import math
from enum import StrEnum


class RouteSatisfaction(StrEnum):
    """routeSatisfaction value labels."""

    VERY_SATISFIED = "Very Satisfied"
    SATISFIED = "Satisfied"
    NEUTRAL = "Neutral"
    DISSATISFIED = "Dissatisfied"
    VERY_DISSATISFIED = "Very Dissatisfied"


SATISFACTION_SCORES: dict[str, int] = {
    RouteSatisfaction.VERY_SATISFIED.casefold(): 5,
    RouteSatisfaction.SATISFIED.casefold(): 4,
    RouteSatisfaction.NEUTRAL.casefold(): 3,
    RouteSatisfaction.DISSATISFIED.casefold(): 2,
    RouteSatisfaction.VERY_DISSATISFIED.casefold(): 1,
}

SATISFACTION_COLORS: dict[str, str] = {
    RouteSatisfaction.VERY_SATISFIED.casefold(): "#10b981",
    RouteSatisfaction.SATISFIED.casefold(): "#84cc16",
    RouteSatisfaction.NEUTRAL.casefold(): "#f59e0b",
    RouteSatisfaction.DISSATISFIED.casefold(): "#f97316",
    RouteSatisfaction.VERY_DISSATISFIED.casefold(): "#ef4444",
}


def satisfaction_score(value: str | None) -> float | None:
    """Convert a satisfaction label or numeric string to a score.

    Labels map to 1-5. Numeric values are passed through. Anything else
    returns None so it is left out of averages.
    """
    if value is None:
        return None
    key = value.strip().casefold()
    if key in SATISFACTION_SCORES:
        return float(SATISFACTION_SCORES[key])
    try:
        score = float(key)
    except ValueError:
        return None
    return score if math.isfinite(score) else None
