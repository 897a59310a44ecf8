"""Schema checks for journey frames handed to aggregation steps."""

from dataclasses import dataclass

import polars as pl

from .frame import JOURNEY_SCHEMA


@dataclass
class JourneyFrameError(Exception):
    """Structured journey frame error with context.

    Attributes:
        table: Name of the table being validated
        rule: Name of the validation rule that failed
        message: Human-readable error description
        column: Optional column name for column-level errors
    """

    table: str
    rule: str
    message: str
    column: str | None = None

    def __str__(self) -> str:
        """Format error message."""
        parts = [f"[{self.table}]"]
        if self.column:
            parts.append(f"column '{self.column}'")
        parts.append(f"({self.rule})")
        parts.append(self.message)
        return " ".join(parts)


def validate_journey_frame(
    df: pl.DataFrame,
    table_name: str = "journeys",
    required_columns: list[str] | None = None,
) -> None:
    """Check that a frame carries the canonical journey columns.

    Extra columns are allowed. Null values are allowed everywhere; only the
    presence and dtype of each column are checked.

    Args:
        df: Frame to check
        table_name: Name used in error messages
        required_columns: Columns to check (default: all of JOURNEY_SCHEMA)

    Raises:
        JourneyFrameError: If a column is missing or has the wrong dtype
    """
    if not isinstance(df, pl.DataFrame):
        raise JourneyFrameError(
            table=table_name,
            rule="frame_type",
            message=f"Expected a polars DataFrame, got {type(df).__name__}",
        )

    columns = required_columns or list(JOURNEY_SCHEMA)
    missing = [col for col in columns if col not in df.columns]
    if missing:
        raise JourneyFrameError(
            table=table_name,
            rule="required_columns",
            message=f"Missing required columns: {', '.join(missing)}",
            column=missing[0],
        )

    for col in columns:
        expected = JOURNEY_SCHEMA.get(col)
        actual = df.schema[col]
        # Null-typed columns come from all-null inputs and are accepted
        if expected is None or actual == pl.Null:
            continue
        if actual.base_type() != expected.base_type():
            raise JourneyFrameError(
                table=table_name,
                rule="column_dtype",
                message=f"Expected dtype {expected}, got {actual}",
                column=col,
            )
