"""Normalization of free-text profile and trip labels into fixed buckets."""

from collections.abc import Sequence

from .codebook.demographics import AGE_GROUP_BOUNDS, AgeCategory


def match_category(
    value: str | None,
    rules: Sequence[tuple[str, Sequence[str]]],
    fallback: str,
) -> str:
    """Map a free-text label onto a category using ordered keyword rules.

    Rules are tested in order and the first category with a keyword that is
    a case-insensitive substring of ``value`` wins. A missing value, or one
    matching no rule, returns ``fallback``. Order matters where keywords
    overlap ("female" before "male", "very high" before "high").

    Args:
        value: Raw label, may be None
        rules: Ordered (category, keywords) pairs
        fallback: Category returned when nothing matches

    Returns:
        The matched category
    """
    if value is None:
        return fallback

    text = value.casefold()
    for category, keywords in rules:
        if any(keyword.casefold() in text for keyword in keywords):
            return category
    return fallback


def age_group(age: int | None) -> str | None:
    """Return the age bin for an age, or None when it falls in no bin."""
    if age is None:
        return None
    for group, lower, upper in AGE_GROUP_BOUNDS:
        if age >= lower and (upper is None or age <= upper):
            return group
    return None


def age_category(age: int) -> str:
    """Return the coarse dashboard age category."""
    if age < 30:  # noqa: PLR2004
        return AgeCategory.YOUNG
    if age < 50:  # noqa: PLR2004
        return AgeCategory.MIDDLE
    return AgeCategory.SENIOR
