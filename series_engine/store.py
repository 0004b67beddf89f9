"""In-memory registry of the active series."""

from __future__ import annotations

import logging
from typing import Dict, Iterator, List, Optional

from .exceptions import SeriesNotFoundError
from .schemas import Series
from .validation import ensure_ordered


class SeriesStore:
    """Single source of truth for active series, kept in display order.

    The store only enforces the point ordering invariant; it performs no
    transformation. Re-upserting an existing id replaces the series in place
    and keeps its display position.
    """

    def __init__(self, *, logger: logging.Logger | None = None) -> None:
        self._series: Dict[str, Series] = {}
        self.logger = logger or logging.getLogger(self.__class__.__name__)

    def get(self, series_id: str) -> Optional[Series]:
        return self._series.get(series_id)

    def upsert(self, series: Series) -> Series:
        # model_copy() skips validation, so re-check ordering on every write.
        stored = series.model_copy(update={"points": ensure_ordered(series.points)})
        action = "replaced" if stored.id in self._series else "added"
        self._series[stored.id] = stored
        self.logger.debug("%s series %s (%d points)", action, stored.id, len(stored.points))
        return stored

    def remove(self, series_id: str) -> Series:
        try:
            removed = self._series.pop(series_id)
        except KeyError:
            raise SeriesNotFoundError(series_id) from None
        self.logger.debug("removed series %s", series_id)
        return removed

    def list(self) -> List[Series]:
        return list(self._series.values())

    def ids(self) -> List[str]:
        return list(self._series)

    def visible(self) -> List[Series]:
        return [series for series in self._series.values() if series.visible]

    def __contains__(self, series_id: object) -> bool:
        return series_id in self._series

    def __len__(self) -> int:
        return len(self._series)

    def __iter__(self) -> Iterator[Series]:
        return iter(self.list())


__all__ = ["SeriesStore"]
