"""Single-object inspection: selection state and predicted-path loading.

The controller moves between three phases::

    IDLE --select--> SELECTING --path fetched/failed--> SELECTED
      ^                  |                                 |
      +------clear-------+---------------clear-------------+

Selecting again from any phase starts a new request. Each path request
is tagged with a request number and the object key it was issued for;
a response is applied only if that tag still names the live selection.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any

import numpy as np
from numpy.typing import NDArray

from orbwatch.core.catalog import TrackedObject, normalize_altitude_km
from orbwatch.core.conjunctions import WarningIndex
from orbwatch.data.records import require_float, require_mapping
from orbwatch.errors import OrbWatchError
from orbwatch.utils.constants import (
    DANGER_COLOR,
    DEFAULT_VIEW,
    EARTH_RADIUS_KM,
    FOCUS_VIEW_ALTITUDE,
    NEUTRAL_COLOR,
    PATH_HORIZON_HOURS,
)

logger = logging.getLogger(__name__)

PathFetcher = Callable[[str, float], Awaitable[Sequence[Mapping[str, Any]]]]
"""Async callable ``(object_id, horizon_hours) -> samples``."""

Recenter = Callable[[float, float, float], None]
"""Camera request ``(lat, lng, altitude)`` sent to the renderer."""


class SelectionPhase(Enum):
    IDLE = "idle"
    SELECTING = "selecting"
    SELECTED = "selected"


@dataclass(frozen=True)
class PathPoint:
    """One predicted position: degrees plus altitude in Earth radii."""

    lat: float
    lng: float
    alt: float

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> PathPoint:
        record = require_mapping(record)
        altitude_km = normalize_altitude_km(require_float(record, "altitude"))
        return cls(
            lat=require_float(record, "latitude"),
            lng=require_float(record, "longitude"),
            alt=altitude_km / EARTH_RADIUS_KM,
        )


@dataclass(frozen=True)
class PredictedPath:
    """Ground track of the selected object over the path horizon.

    Attributes:
        name: Name of the object the path belongs to.
        color: Stroke color, pinned at selection time.
        points: Samples in time order.
    """

    name: str
    color: str
    points: tuple[PathPoint, ...]

    def __len__(self) -> int:
        return len(self.points)

    def as_array(self) -> NDArray[np.float64]:
        """Return an ``(n, 3)`` array of ``(lat, lng, alt)``."""
        if not self.points:
            return np.empty((0, 3), dtype=np.float64)
        return np.array([(p.lat, p.lng, p.alt) for p in self.points], dtype=np.float64)


@dataclass(frozen=True)
class SelectionState:
    """Snapshot of the inspection state.

    Attributes:
        selected: The inspected object, frozen as it was when selected.
        isolation_mode: Whether the display is restricted to ``selected``.
        is_warning_path: Whether the highlight uses the danger color.
        path: Loaded predicted path, or None.
        phase: Controller phase.
    """

    selected: TrackedObject | None = None
    isolation_mode: bool = False
    is_warning_path: bool = False
    path: PredictedPath | None = None
    phase: SelectionPhase = SelectionPhase.IDLE

    def __post_init__(self) -> None:
        if self.isolation_mode and self.selected is None:
            raise ValueError("isolation_mode requires a selected object")
        if self.path is not None and (self.selected is None or self.phase is not SelectionPhase.SELECTED):
            raise ValueError("path requires a selected object with a completed fetch")
        if (self.selected is None) != (self.phase is SelectionPhase.IDLE):
            raise ValueError(f"phase {self.phase.value} inconsistent with selection")

    @property
    def highlight_color(self) -> str:
        return DANGER_COLOR if self.is_warning_path else NEUTRAL_COLOR


class SelectionController:
    """Owns the selection state and the one in-flight path request.

    Args:
        fetch_path: Async path fetcher; may raise OrbWatchError or ValueError.
        warnings: Warning index consulted when a selection is made.
        horizon_hours: Path horizon requested from the fetcher.
        recenter: Optional camera callback.
        on_change: Optional callback invoked with every new state.
    """

    def __init__(
        self,
        fetch_path: PathFetcher,
        warnings: WarningIndex,
        *,
        horizon_hours: float = PATH_HORIZON_HOURS,
        recenter: Recenter | None = None,
        on_change: Callable[[SelectionState], None] | None = None,
    ) -> None:
        self._fetch_path = fetch_path
        self._warnings = warnings
        self._horizon_hours = horizon_hours
        self._recenter = recenter
        self._on_change = on_change
        self._state = SelectionState()
        self._request_ids = itertools.count(1)
        self._pending: tuple[int, str] | None = None

    @property
    def state(self) -> SelectionState:
        return self._state

    @property
    def pending(self) -> bool:
        """True while a path request for the live selection is outstanding."""
        return self._pending is not None

    def select(self, obj: TrackedObject, *, from_warning: bool = False) -> asyncio.Task[PredictedPath | None] | None:
        """Inspect ``obj`` and start loading its predicted path.

        Must be called from a running event loop. The state changes
        immediately; the path arrives later through the returned task.

        Args:
            obj: Object to inspect.
            from_warning: True when the click came from the warning panel,
                which forces the danger color.

        Returns:
            The path-loading task, or None if ``obj`` has no id to fetch by.
        """
        loop = asyncio.get_running_loop()
        is_warning = from_warning or self._warnings.has(obj.name)
        request_id = next(self._request_ids)

        logger.info("Selected %s (request %d, warning=%s)", obj.name, request_id, is_warning)
        self._set_state(
            SelectionState(
                selected=obj,
                isolation_mode=True,
                is_warning_path=is_warning,
                phase=SelectionPhase.SELECTING,
            )
        )
        if self._recenter is not None:
            self._recenter(obj.latitude, obj.longitude, FOCUS_VIEW_ALTITUDE)

        if obj.id is None:
            logger.warning("No id for %s, predicted path unavailable", obj.name)
            self._pending = None
            self._set_state(replace(self._state, phase=SelectionPhase.SELECTED))
            return None

        self._pending = (request_id, obj.key)
        return loop.create_task(self._load_path(request_id, obj, obj.id))

    def clear(self) -> None:
        """Drop the selection, its path and isolation; recenter globally."""
        if self._state.selected is not None:
            logger.info("Cleared selection of %s", self._state.selected.name)
        self._pending = None
        self._set_state(SelectionState())
        if self._recenter is not None:
            self._recenter(*DEFAULT_VIEW)

    def _is_current(self, request_id: int, obj: TrackedObject) -> bool:
        selected = self._state.selected
        return (
            self._pending is not None
            and self._pending[0] == request_id
            and selected is not None
            and selected.key == obj.key
        )

    async def _load_path(self, request_id: int, obj: TrackedObject, object_id: str) -> PredictedPath | None:
        try:
            samples = await self._fetch_path(object_id, self._horizon_hours)
            points = tuple(PathPoint.from_record(s) for s in samples)
        except (OrbWatchError, ValueError) as e:
            if not self._is_current(request_id, obj):
                logger.debug("Ignoring failed stale path request %d for %s", request_id, obj.name)
                return None
            logger.warning("Path fetch failed for %s: %s", obj.name, e)
            self._pending = None
            self._set_state(replace(self._state, path=None, phase=SelectionPhase.SELECTED))
            return None

        if not self._is_current(request_id, obj):
            logger.debug("Discarding stale path request %d for %s", request_id, obj.name)
            return None

        self._pending = None
        path = PredictedPath(name=obj.name, color=self._state.highlight_color, points=points) if points else None
        self._set_state(replace(self._state, path=path, phase=SelectionPhase.SELECTED))
        logger.debug("Loaded %d path points for %s", len(points), obj.name)
        return path

    def _set_state(self, state: SelectionState) -> None:
        self._state = state
        if self._on_change is not None:
            self._on_change(state)
