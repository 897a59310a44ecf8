"""Loads journey records and writes the derived tables."""

import json
import logging
from pathlib import Path
from typing import Any

import polars as pl

from journey_canon import JOURNEY_SCHEMA, journeys_to_frame

from .api import JourneyApiClient
from .decoration import step

logger = logging.getLogger(__name__)


def read_journey_records(path: str | Path) -> list[Any]:
    """Read raw journey records from a JSON file.

    The file may hold the API envelope (``{"success": ..., "data": [...]}``)
    or a bare array of records.
    """
    with Path(path).open(encoding="utf-8") as f:
        payload = json.load(f)

    if isinstance(payload, dict):
        payload = payload.get("data") or []
    if not isinstance(payload, list):
        msg = f"Expected a list of journey records in {path}"
        raise ValueError(msg)
    return payload


@step(validate_input=False)
def load_journeys(
    input_path: str | None = None,
    from_api: bool = False,
    limit: int | None = None,
) -> dict[str, pl.DataFrame]:
    """Load journeys from a file or from the backend API.

    Args:
        input_path: A .json file (API envelope or record array) or a
            .parquet journey frame
        from_api: Fetch from the API configured in the environment instead
        limit: Maximum number of records to request from the API

    Returns:
        Dict with the canonical journeys frame
    """
    if from_api:
        client = JourneyApiClient.from_env()
        logger.info("Loading journeys from %s...", client.base_url)
        journeys = journeys_to_frame(client.fetch_journey_data(limit=limit))
    elif input_path is None:
        msg = "load_journeys needs either 'input_path' or 'from_api: true'"
        raise ValueError(msg)
    elif input_path.endswith(".json"):
        logger.info("Loading journeys from %s...", input_path)
        journeys = journeys_to_frame(read_journey_records(input_path))
    elif input_path.endswith(".parquet"):
        logger.info("Loading journeys from %s...", input_path)
        journeys = pl.read_parquet(input_path)
        journeys = journeys.cast(
            {
                col: dtype
                for col, dtype in JOURNEY_SCHEMA.items()
                if col in journeys.columns and col != "timestamp"
            },
            strict=False,
        )
    else:
        msg = f"Unsupported file format for journeys: {input_path}"
        raise ValueError(msg)

    logger.info("Loaded %d journeys.", len(journeys))
    return {"journeys": journeys}


def _flatten_nested(df: pl.DataFrame) -> pl.DataFrame:
    """Serialize list/struct columns to JSON strings for CSV output."""
    nested = [
        col
        for col, dtype in df.schema.items()
        if isinstance(dtype, pl.List | pl.Struct | pl.Array)
    ]
    return df.with_columns(
        pl.Series(col, [json.dumps(v) for v in df[col].to_list()])
        for col in nested
    )


@step()
def write_tables(
    tables: dict[str, pl.DataFrame],
    summaries: dict[str, dict[str, Any]],
    output_dir: str,
    file_format: str = "csv",
) -> None:
    """Write every derived table and summary to an output directory.

    Tables are written as ``{name}.csv`` or ``{name}.parquet``; summaries
    as ``{name}.json``.
    """
    if file_format not in {"csv", "parquet"}:
        msg = f"Unsupported file format for tables: {file_format}"
        raise ValueError(msg)

    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)

    for name, df in tables.items():
        path = out / f"{name}.{file_format}"
        logger.info("Writing %s to %s...", name, path)
        if file_format == "csv":
            _flatten_nested(df).write_csv(path)
        else:
            df.write_parquet(path)

    for name, summary in summaries.items():
        path = out / f"{name}.json"
        logger.info("Writing %s to %s...", name, path)
        with path.open("w", encoding="utf-8") as f:
            json.dump(summary, f, indent=2, default=str, ensure_ascii=False)

    logger.info("All tables written successfully.")
