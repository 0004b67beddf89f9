"""High-level orchestration of the series pipeline."""

from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from .aggregator import aggregate
from .config import EngineSettings, lookback_start, palette_color
from .exceptions import (
    DataUnavailableError,
    DataValidationError,
    NetworkFetchFailure,
    SeriesLimitError,
    SeriesNotFoundError,
)
from .export import build_chart_rows, chart_rows_to_csv
from .formula import FormulaEvaluator, validate
from .gateways import RequestSequencer, SeriesGateway
from .models import SeriesSummary, ValidationResult
from .schemas import CalculationType, DataPoint, Formula, Series, Timeframe
from .store import SeriesStore
from .summary import summarize
from .validation import normalize_series_id


class SeriesWorkspace:
    """Entry point tying the store, the pipeline stages and the fetch gateway.

    Data flows fetch -> aggregate -> store; the display transform, the
    normaliser and CSV export read from the store without writing to it.
    Formula series are evaluated once and stored like any other series.
    """

    def __init__(
        self,
        gateway: SeriesGateway | None = None,
        *,
        store: SeriesStore | None = None,
        settings: EngineSettings | None = None,
        logger: logging.Logger | None = None,
        today: date | None = None,
    ) -> None:
        self.gateway = gateway
        self.logger = logger or logging.getLogger(self.__class__.__name__)
        self.settings = settings or EngineSettings.from_env()
        self.store = store or SeriesStore(logger=self.logger)
        self.evaluator = FormulaEvaluator(rsi_period=self.settings.rsi_period, logger=self.logger)
        self.timeframe = Timeframe.MONTHLY
        self._requested_timeframe = self.timeframe
        self.calculation = CalculationType.VALUE
        self.formulas: Dict[str, Formula] = {}
        self._sequencer = RequestSequencer()
        self._today = today

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    async def add_series(
        self,
        source_id: str,
        *,
        name: Optional[str] = None,
        color: Optional[str] = None,
    ) -> Series:
        """Fetch ``source_id`` for the current timeframe and add it.

        Raises:
            SeriesLimitError: the workspace already holds ``max_series`` series
            NetworkFetchFailure: the gateway failed; the store is left untouched
            DataUnavailableError: the gateway returned no observations
        """
        source_id = normalize_series_id(source_id)
        existing = self.store.get(source_id)
        if existing is not None:
            self.logger.info("series %s already added", source_id)
            return existing
        if len(self.store) >= self.settings.max_series:
            raise SeriesLimitError(f"at most {self.settings.max_series} series can be compared at once")

        # A timeframe request issued while the fetch is pending does not see
        # this series, so fetch again for the newest requested timeframe.
        while True:
            token = self._sequencer.latest
            timeframe = self._requested_timeframe
            points = await self._fetch(source_id, timeframe)
            if self._sequencer.latest == token:
                break
            self.logger.info("timeframe changed while fetching %s, fetching again", source_id)
        if not points:
            raise DataUnavailableError(f"{source_id} returned no observations")

        existing = self.store.get(source_id)
        if existing is not None:
            return existing
        if len(self.store) >= self.settings.max_series:
            raise SeriesLimitError(f"at most {self.settings.max_series} series can be compared at once")

        metadata = self._metadata(source_id)
        position = len(self.store)
        series = Series(
            id=source_id,
            name=name or metadata.get("name") or source_id,
            points=points,
            color=color or metadata.get("color") or palette_color(position),
            y_axis="left" if position == 0 else f"right{position}",
            source_id=source_id,
        )
        stored = self.store.upsert(aggregate(series, timeframe))
        self.logger.info("added %s with %d %s points", source_id, len(stored.points), timeframe.value)
        return stored

    def remove_series(self, series_id: str) -> Series:
        removed = self.store.remove(series_id)
        self.formulas.pop(series_id, None)
        return removed

    def set_visibility(self, series_id: str, visible: bool) -> Series:
        series = self._require(series_id)
        return self.store.upsert(series.model_copy(update={"visible": visible}))

    async def set_timeframe(self, timeframe: Timeframe | str) -> bool:
        """Refetch and re-aggregate every provider-backed series.

        Only the most recently issued refetch is applied; a slower, older
        request resolving later is discarded and returns ``False``. A fetch
        failure applies nothing.
        """
        timeframe = Timeframe(timeframe)
        token = self._sequencer.issue()
        self._requested_timeframe = timeframe
        targets = [series.id for series in self.store.list() if series.source_id is not None]
        self.logger.info("request %d: refetching %d series for %s", token, len(targets), timeframe.value)

        results = await asyncio.gather(
            *(self._fetch(self._require(series_id).source_id or series_id, timeframe) for series_id in targets),
            return_exceptions=True,
        )
        failures = [result for result in results if isinstance(result, BaseException)]

        if not self._sequencer.is_latest(token):
            if failures:
                self.logger.info("request %d failed after being superseded, ignoring", token)
            else:
                self.logger.info(
                    "discarding stale response for request %d (latest is %d)", token, self._sequencer.latest
                )
            return False
        if failures:
            self._requested_timeframe = self.timeframe
            raise failures[0]

        for series_id, points in zip(targets, results):
            current = self.store.get(series_id)
            if current is None:
                continue
            self.store.upsert(aggregate(current.with_points(points), timeframe))
        self.timeframe = timeframe
        return True

    def set_calculation(self, calculation: CalculationType | str) -> None:
        self.calculation = CalculationType(calculation)

    def validate_formula(self, expression: str) -> ValidationResult:
        return validate(expression, len(self.store.visible()))

    def create_formula_series(self, expression: str, name: str) -> Series:
        """Evaluate ``expression`` over the visible series and store the result.

        Letters are bound to the visible series in display order at this
        moment; later reordering or removal does not change the stored points.
        """
        if not name or not name.strip():
            raise DataValidationError("formula series needs a name")
        if len(self.store) >= self.settings.max_series:
            raise SeriesLimitError(f"at most {self.settings.max_series} series can be compared at once")

        bound = self.store.visible()
        formula = Formula.bind(expression, [series.id for series in bound])
        series_by_letter = dict(zip(formula.letters, bound))
        position = len(self.store)
        derived = self.evaluator.evaluate(
            formula,
            series_by_letter,
            name=name.strip(),
            color=palette_color(position),
            y_axis="right" if position else "left",
        )
        stored = self.store.upsert(derived)
        self.formulas[stored.id] = formula
        self.logger.info("created %s from %r bound to %s", stored.id, expression, formula.as_dict())
        return stored

    def chart_rows(self) -> List[Dict[str, Any]]:
        return build_chart_rows(
            self.store.list(),
            self.calculation,
            normalize_comparisons=self.settings.normalize_comparisons,
        )

    def export_csv(self) -> str:
        series_list = self.store.list()
        rows = build_chart_rows(
            series_list,
            self.calculation,
            normalize_comparisons=self.settings.normalize_comparisons,
        )
        return chart_rows_to_csv(rows, series_list, self.calculation)

    def summary(self) -> Optional[SeriesSummary]:
        series_list = self.store.list()
        if not series_list:
            return None
        return summarize(series_list[0])

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _require(self, series_id: str) -> Series:
        series = self.store.get(series_id)
        if series is None:
            raise SeriesNotFoundError(series_id)
        return series

    def _window(self, timeframe: Timeframe) -> Tuple[date, date]:
        end = self._today or date.today()
        return lookback_start(timeframe, end), end

    def _metadata(self, source_id: str) -> Dict[str, str]:
        get_metadata = getattr(self.gateway, "get_metadata", None)
        if get_metadata is None:
            return {}
        return get_metadata(source_id) or {}

    async def _fetch(self, source_id: str, timeframe: Timeframe) -> List[DataPoint]:
        if self.gateway is None:
            raise DataUnavailableError("SeriesWorkspace gateway is not configured")
        start, end = self._window(timeframe)
        try:
            return await self.gateway.fetch_series(source_id, start_date=start, end_date=end)
        except DataUnavailableError:
            self.logger.warning("fetch of %s failed", source_id)
            raise
        except Exception as exc:
            self.logger.warning("fetch of %s failed: %s", source_id, exc)
            raise NetworkFetchFailure(source_id, str(exc)) from exc


__all__ = ["SeriesWorkspace"]
