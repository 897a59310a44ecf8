"""Runner script for the Kerala journey survey analytics report."""

import logging
from pathlib import Path

from journey_analytics import (
    load_journeys,
    summarize_dashboard,
    summarize_demographics,
    summarize_geospatial,
    summarize_mode_purpose,
    summarize_od_matrix,
    summarize_temporal,
    write_tables,
)
from journey_pipeline import Pipeline

# ---------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------

CONFIG_PATH = Path(__file__).parent / "config.yaml"

# ---------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)s | %(message)s",
)

logger = logging.getLogger(__name__)


# Set up steps list ---------------------------------------------------
report_steps = [
    load_journeys,
    summarize_dashboard,
    summarize_mode_purpose,
    summarize_temporal,
    summarize_demographics,
    summarize_geospatial,
    summarize_od_matrix,
    write_tables,
]


# ---------------------------------------------------------------------
if __name__ == "__main__":
    logger.info("Starting Kerala journey analytics report")

    pipeline = Pipeline(config_path=CONFIG_PATH, steps=report_steps)
    result = pipeline.run()

    logger.info(
        "Report finished: %d journeys summarized.", len(result.journeys)
    )
