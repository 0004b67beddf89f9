"""Command line entry point for comparing CSV series.

Usage examples:

    series-engine --series GDP=gdp.csv --series CPI=cpi.csv --timeframe quarterly

    series-engine --series GDP=gdp.csv --series CPI=cpi.csv \
        --formula "RATIO(A, B)" --formula-name "GDP/CPI" --json
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
from datetime import date
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import pandas as pd

from .config import EngineSettings
from .exceptions import DataUnavailableError, DataValidationError, SeriesIntegrityError
from .gateways import DataFrameGateway
from .library import SeriesWorkspace
from .logging_utils import init_engine_logger
from .schemas import CalculationType, Timeframe
from .validation import normalize_date, normalize_series_id


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="series-engine", description="Compare and transform time series")
    parser.add_argument(
        "--series",
        action="append",
        default=[],
        metavar="NAME=PATH",
        help="CSV file with date,value columns; the first one is the primary series",
    )
    parser.add_argument(
        "--timeframe",
        choices=[item.value for item in Timeframe],
        default=Timeframe.MONTHLY.value,
    )
    parser.add_argument(
        "--calculation",
        choices=[item.value for item in CalculationType],
        default=CalculationType.VALUE.value,
    )
    parser.add_argument("--formula", help="derived series expression over A, B, C...")
    parser.add_argument("--formula-name", help="display name of the derived series")
    parser.add_argument("--as-of", help="last day of the lookback window (YYYY-MM-DD), default latest input date")
    parser.add_argument("--output", help="write the result to this file instead of stdout")
    parser.add_argument("--json", action="store_true", help="emit chart rows as JSON instead of CSV")
    return parser


def parse_series_arg(raw: str) -> Tuple[str, Path]:
    if "=" not in raw:
        raise DataValidationError(f"--series expects NAME=PATH, got {raw!r}")
    name, path = raw.split("=", 1)
    return normalize_series_id(name), Path(path.strip())


def load_frame(inputs: Sequence[Tuple[str, Path]]) -> pd.DataFrame:
    """Read every CSV into one wide date-indexed frame, one column per series."""
    columns: Dict[str, pd.Series] = {}
    for series_id, path in inputs:
        if not path.exists():
            raise DataValidationError(f"series file not found: {path}")
        raw = pd.read_csv(path)
        lowered = {str(column).strip().lower(): column for column in raw.columns}
        if "date" not in lowered or "value" not in lowered:
            raise DataValidationError(f"{path} must have date and value columns")
        dates = pd.to_datetime(raw[lowered["date"]].astype(str).str.slice(0, 10), format="%Y-%m-%d")
        values = pd.to_numeric(raw[lowered["value"]], errors="coerce")
        column = pd.Series(values.to_numpy(), index=pd.DatetimeIndex(dates))
        if column.index.has_duplicates:
            raise SeriesIntegrityError(f"{path} has duplicate dates")
        columns[series_id] = column
    return pd.DataFrame(columns).sort_index()


async def run(args: argparse.Namespace, settings: EngineSettings, logger: logging.Logger) -> str:
    inputs = [parse_series_arg(raw) for raw in args.series]
    frame = load_frame(inputs)
    as_of: Optional[date] = normalize_date(args.as_of) if args.as_of else None
    if as_of is None and not frame.empty:
        as_of = frame.index.max().date()

    workspace = SeriesWorkspace(DataFrameGateway(frame), settings=settings, logger=logger, today=as_of)
    await workspace.set_timeframe(args.timeframe)
    for series_id, path in inputs:
        await workspace.add_series(series_id)
        logger.debug("loaded %s from %s", series_id, path)

    workspace.set_calculation(args.calculation)
    if args.formula:
        workspace.create_formula_series(args.formula, args.formula_name or args.formula)

    if args.json:
        return json.dumps(workspace.chart_rows(), ensure_ascii=False, indent=2)
    return workspace.export_csv()


def main(argv: Optional[List[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.series:
        parser.error("at least one --series NAME=PATH is required")
    if args.formula_name and not args.formula:
        parser.error("--formula-name requires --formula")

    settings = EngineSettings.from_env()
    logger = init_engine_logger("series_engine", level=settings.log_level, log_dir=settings.log_dir)

    try:
        output = asyncio.run(run(args, settings, logger))
    except (DataValidationError, SeriesIntegrityError) as exc:
        parser.error(str(exc))
    except DataUnavailableError as exc:
        logger.error("%s", exc)
        raise SystemExit(1) from exc

    if args.output:
        Path(args.output).write_text(output, encoding="utf-8")
        logger.info("wrote %s", args.output)
    else:
        print(output, end="" if output.endswith("\n") else "\n")


if __name__ == "__main__":
    main()
