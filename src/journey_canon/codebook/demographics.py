"""Codebook enumerations for rider demographic fields.

The keyword rules below are the default vocabularies used by
``journey_canon.normalize.match_category``. They are substring heuristics
over free-text profile answers, so they are exposed as data and can be
overridden from the analytics configuration.
"""

from enum import StrEnum


class AgeGroup(StrEnum):
    """Age bins for the demographics breakdown."""

    AGE_18_TO_25 = "18-25"
    AGE_26_TO_35 = "26-35"
    AGE_36_TO_45 = "36-45"
    AGE_46_TO_55 = "46-55"
    AGE_56_TO_65 = "56-65"
    AGE_65_PLUS = "65+"


# (group, lower bound, upper bound) inclusive; None means open ended
AGE_GROUP_BOUNDS: list[tuple[AgeGroup, int, int | None]] = [
    (AgeGroup.AGE_18_TO_25, 18, 25),
    (AgeGroup.AGE_26_TO_35, 26, 35),
    (AgeGroup.AGE_36_TO_45, 36, 45),
    (AgeGroup.AGE_46_TO_55, 46, 55),
    (AgeGroup.AGE_56_TO_65, 56, 65),
    (AgeGroup.AGE_65_PLUS, 66, None),
]

AGE_GROUP_COLORS: dict[str, str] = {
    AgeGroup.AGE_18_TO_25: "#a28ef9",
    AgeGroup.AGE_26_TO_35: "#8b7cf6",
    AgeGroup.AGE_36_TO_45: "#7c3aed",
    AgeGroup.AGE_46_TO_55: "#c084fc",
    AgeGroup.AGE_56_TO_65: "#e879f9",
    AgeGroup.AGE_65_PLUS: "#f0abfc",
}


class AgeCategory(StrEnum):
    """Coarse age categories for the dashboard overview."""

    YOUNG = "young"
    MIDDLE = "middle"
    SENIOR = "senior"


class OccupationCategory(StrEnum):
    """Occupation buckets for the demographic KPIs."""

    STUDENT = "student"
    EMPLOYEE = "employee"
    HOMEMAKER = "homemaker"
    SENIOR = "senior"
    OTHER = "other"


OCCUPATION_LABELS: dict[str, str] = {
    OccupationCategory.STUDENT: "Students",
    OccupationCategory.EMPLOYEE: "Employees",
    OccupationCategory.HOMEMAKER: "Homemakers",
    OccupationCategory.SENIOR: "Seniors",
}

OCCUPATION_RULES: list[tuple[str, list[str]]] = [
    (OccupationCategory.STUDENT, ["student", "education"]),
    (OccupationCategory.EMPLOYEE, ["employee", "job", "work", "professional"]),
    (OccupationCategory.HOMEMAKER, ["homemaker", "housewife", "home"]),
    (OccupationCategory.SENIOR, ["senior", "retired"]),
]


class IncomeBracket(StrEnum):
    """Monthly income brackets (INR)."""

    LOW = "< ₹25k"
    MIDDLE = "₹25-50k"
    UPPER_MIDDLE = "₹50-75k"
    HIGH = "> ₹75k"


# "very high" must be tested before "high"
INCOME_RULES: list[tuple[str, list[str]]] = [
    (IncomeBracket.LOW, ["low", "poor"]),
    (IncomeBracket.MIDDLE, ["middle", "medium"]),
    (IncomeBracket.HIGH, ["very high", "affluent"]),
    (IncomeBracket.UPPER_MIDDLE, ["high", "upper"]),
]


class GenderCategory(StrEnum):
    """Gender buckets."""

    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


GENDER_LABELS: dict[str, str] = {
    GenderCategory.MALE: "Male",
    GenderCategory.FEMALE: "Female",
    GenderCategory.OTHER: "Other",
}

GENDER_COLORS: dict[str, str] = {
    GenderCategory.MALE: "#a28ef9",
    GenderCategory.FEMALE: "#8b7cf6",
    GenderCategory.OTHER: "#7c3aed",
}

# "female" contains "male", so it is tested first
GENDER_RULES: list[tuple[str, list[str]]] = [
    (GenderCategory.FEMALE, ["female"]),
    (GenderCategory.MALE, ["male"]),
]
