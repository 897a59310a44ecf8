"""Codebook enumerations for transport mode labels."""

from enum import StrEnum

NEUTRAL_COLOR = "#6b7280"


class TransportMode(StrEnum):
    """transportMode value labels as logged by the mobile app."""

    BUS = "Bus"
    TRAIN = "Train"
    AUTO_TAXI = "Auto/Taxi"
    WALKING = "Walking"
    PERSONAL_VEHICLE = "Personal Vehicle"
    METRO = "Metro"
    BIKE = "Bike"
    CAR = "Car"


class ModeCategory(StrEnum):
    """Coarse mode buckets used in the income by mode breakdown."""

    BUS = "bus"
    METRO = "metro"
    AUTO = "auto"
    WALK = "walk"
    OTHER = "other"


# Keys are casefolded labels. Includes the short survey labels
# (metro, car, bus, auto, cycle, walk) used by older app builds.
MODE_COLORS: dict[str, str] = {
    "metro": "#8b7cf6",
    "car": "#ef4444",
    "bus": "#10b981",
    "auto": "#f59e0b",
    "cycle": "#06b6d4",
    "walk": "#84cc16",
    "train": "#7c3aed",
    "auto/taxi": "#f59e0b",
    "walking": "#84cc16",
    "personal vehicle": "#ec4899",
    "bike": "#06b6d4",
}

# Ordered keyword rules: first match wins
MODE_CATEGORY_RULES: list[tuple[str, list[str]]] = [
    (ModeCategory.BUS, ["bus"]),
    (ModeCategory.METRO, ["metro", "train"]),
    (ModeCategory.AUTO, ["auto", "rick"]),
    (ModeCategory.WALK, ["walk", "foot"]),
]


def mode_color(label: str | None) -> str:
    """Return the chart color for a mode label, neutral if unknown."""
    if label is None:
        return NEUTRAL_COLOR
    return MODE_COLORS.get(label.strip().casefold(), NEUTRAL_COLOR)
