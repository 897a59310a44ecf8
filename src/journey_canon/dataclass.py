"""Holder for the journey frame and the tables derived from it."""

import logging
from dataclasses import dataclass, field
from typing import Any

import polars as pl

from .validation import JourneyFrameError, validate_journey_frame

logger = logging.getLogger(__name__)


@dataclass
class AnalyticsData:
    """Journey frame plus every table and summary produced by the steps.

    Setting ``journeys`` resets its validation status. Use validate() to
    check the frame; repeated calls on an unchanged frame are free.
    """

    journeys: pl.DataFrame | None = None
    tables: dict[str, pl.DataFrame] = field(default_factory=dict)
    summaries: dict[str, dict[str, Any]] = field(default_factory=dict)

    _validated: bool = field(default=False, repr=False)

    def __setattr__(self, name: str, value: Any) -> None:  # noqa: ANN401
        """Override setattr to track when the journey frame is replaced."""
        object.__setattr__(self, name, value)
        if name == "journeys":
            object.__setattr__(self, "_validated", False)

    def validate(self, step: str | None = None) -> None:
        """Validate the journey frame if it changed since the last check.

        Args:
            step: Name of the step requesting validation (for logging)

        Raises:
            JourneyFrameError: If the frame is missing or malformed
        """
        if self._validated:
            logger.debug("Journeys already validated, skipping (%s)", step)
            return
        if self.journeys is None:
            raise JourneyFrameError(
                table="journeys",
                rule="required_table",
                message=f"No journeys loaded before step '{step}'",
            )
        validate_journey_frame(self.journeys)
        object.__setattr__(self, "_validated", True)

    def store(self, step: str, result: dict[str, Any]) -> None:
        """Store a step result: frames as tables, dicts as summaries."""
        for name, value in result.items():
            if name == "journeys" and isinstance(value, pl.DataFrame):
                self.journeys = value
            elif isinstance(value, pl.DataFrame):
                self.tables[name] = value
            elif isinstance(value, dict):
                self.summaries[name] = value
            else:
                logger.warning(
                    "Step '%s' returned unsupported value for '%s' (%s), "
                    "not stored",
                    step,
                    name,
                    type(value).__name__,
                )
