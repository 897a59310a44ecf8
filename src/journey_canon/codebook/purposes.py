"""Codebook enumerations for journey purpose labels."""

from enum import StrEnum

from .modes import NEUTRAL_COLOR


class JourneyPurpose(StrEnum):
    """journeyPurpose value labels."""

    WORK_OFFICE = "Work/Office"
    EDUCATION = "Education"
    SHOPPING = "Shopping"
    HEALTHCARE = "Healthcare"
    LEISURE_ENTERTAINMENT = "Leisure/Entertainment"
    PERSONAL = "Personal"


PURPOSE_COLORS: dict[str, str] = {
    "work": "#8b7cf6",
    "work/office": "#8b7cf6",
    "home": "#10b981",
    "shopping": "#f59e0b",
    "family": "#ec4899",
    "personal": "#ec4899",
    "education": "#06b6d4",
    "healthcare": "#ef4444",
    "entertainment": "#84cc16",
    "leisure/entertainment": "#84cc16",
}


def purpose_color(label: str | None) -> str:
    """Return the chart color for a purpose label, neutral if unknown."""
    if label is None:
        return NEUTRAL_COLOR
    return PURPOSE_COLORS.get(label.strip().casefold(), NEUTRAL_COLOR)
