"""Tracking engine: wires feeds, filters and selection into one view.

The engine owns the catalog, the warning index, the filter inputs and
the selection controller. Every change to any of them invalidates the
cached display set, which is recomputed on next access and announced on
the event bus.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, replace
from typing import Any

from orbwatch.api.client import FeedClient
from orbwatch.config import TrackerConfig
from orbwatch.core.catalog import CatalogStore, TrackedObject
from orbwatch.core.conjunctions import ConjunctionWarning, WarningIndex
from orbwatch.core.events import EventBus, Topic
from orbwatch.core.filters import DisplayPoint, FilterState, compute_display_set, to_display_points
from orbwatch.core.grouping import GroupId
from orbwatch.core.scheduler import Feed, FeedStatus, RefreshScheduler
from orbwatch.core.selection import PredictedPath, Recenter, SelectionController, SelectionState
from orbwatch.errors import MissingCredentialError
from orbwatch.utils.constants import WARNING_RADIUS_KM

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WarningPanelView:
    """What the warning panel shows.

    Attributes:
        entries: Closest warnings, at most the panel limit.
        total: Number of warnings in the index.
        overflow: Warnings not listed.
        critical: Whether any warning is critical.
    """

    entries: tuple[ConjunctionWarning, ...]
    total: int
    overflow: int
    critical: bool

    @property
    def header(self) -> str:
        plural = "S" if self.total > 1 else ""
        return f"{self.total} OBJECT{plural} WITHIN {WARNING_RADIUS_KM:.0f}KM"


class TrackingEngine:
    """Object tracking and selection state for the globe view.

    Args:
        client: Feed client for the backend.
        credentials: Returns the current bearer token, or None.
        config: Runtime settings. Defaults to ``TrackerConfig()``.
        bus: Event bus shared with UI surfaces. A private one is created if omitted.
        recenter: Camera callback ``(lat, lng, altitude)``.

    Example::

        engine = TrackingEngine(FeedClient(), credentials=lambda: token)
        engine.start()
        ...
        points = engine.display_points()
    """

    def __init__(
        self,
        client: FeedClient,
        credentials: Callable[[], str | None],
        *,
        config: TrackerConfig | None = None,
        bus: EventBus | None = None,
        recenter: Recenter | None = None,
    ) -> None:
        self.config = config or TrackerConfig()
        self.bus = bus or EventBus()
        self.catalog = CatalogStore()
        self.warnings = WarningIndex()
        self.filters = FilterState()
        self._client = client
        self._credentials = credentials
        self._display: list[TrackedObject] | None = None
        self._seen_data: tuple[int, tuple[ConjunctionWarning, ...]] = (self.catalog.generation, self.warnings.warnings)
        self._debounce: asyncio.TimerHandle | None = None

        self.selection = SelectionController(
            self._fetch_path,
            self.warnings,
            horizon_hours=self.config.path_horizon_hours,
            recenter=recenter,
            on_change=self._on_selection_change,
        )
        self.scheduler = RefreshScheduler(
            client,
            self.catalog,
            self.warnings,
            credentials,
            catalog_interval_s=self.config.catalog_interval_s,
            warning_interval_s=self.config.warning_interval_s,
            on_change=self._on_feed_change,
        )
        self.bus.subscribe(Topic.CLEAR_SELECTION, lambda _payload: self.clear_selection())

    @classmethod
    def from_config(
        cls, credentials: Callable[[], str | None], config: TrackerConfig | None = None, **kwargs: Any
    ) -> TrackingEngine:
        """Build an engine and its FeedClient from a config."""
        config = config or TrackerConfig.from_env()
        client = FeedClient(base_url=config.base_url, timeout_s=config.request_timeout_s)
        return cls(client, credentials, config=config, **kwargs)

    # -- lifecycle ----------------------------------------------------------

    def start(self) -> None:
        self.scheduler.start()

    async def stop(self) -> None:
        if self._debounce is not None:
            self._debounce.cancel()
            self._debounce = None
        await self.scheduler.stop()

    async def sync(self) -> str | None:
        """Trigger a backend sync; data changes on a later refresh."""
        return await self.scheduler.sync()

    # -- derived views ------------------------------------------------------

    def display_set(self) -> list[TrackedObject]:
        if self._display is None:
            self._display = compute_display_set(
                self.catalog.objects, self.selection.state, self.filters, self.warnings
            )
        return list(self._display)

    def display_points(self) -> list[DisplayPoint]:
        return to_display_points(self.display_set(), self.warnings)

    @property
    def tracking_count(self) -> int:
        return len(self.display_set())

    @property
    def path(self) -> PredictedPath | None:
        return self.selection.state.path

    def status(self, feed: Feed) -> FeedStatus:
        return self.scheduler.status[feed]

    def group_listing(self) -> dict[GroupId, list[TrackedObject]]:
        """Catalog members per group, in rule order, empty groups omitted."""
        return self.catalog.groups()

    def warning_panel(self, limit: int | None = None) -> WarningPanelView:
        limit = self.config.warning_panel_limit if limit is None else limit
        entries = tuple(self.warnings.sorted_by_distance(limit))
        total = len(self.warnings)
        return WarningPanelView(
            entries=entries,
            total=total,
            overflow=max(total - len(entries), 0),
            critical=self.warnings.has_critical(),
        )

    # -- filter inputs ------------------------------------------------------

    def set_search_query(self, query: str) -> None:
        """Update the raw query; it is applied after the debounce delay.

        Outside a running event loop, or with a zero delay, the query is
        applied at once.
        """
        self._set_filters(replace(self.filters, search_query=query))
        if self._debounce is not None:
            self._debounce.cancel()
            self._debounce = None

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        if loop is None or self.config.search_debounce_s == 0:
            self.apply_search()
            return
        self._debounce = loop.call_later(self.config.search_debounce_s, self.apply_search)

    def apply_search(self) -> None:
        """Apply the raw query immediately."""
        self._debounce = None
        if self.filters.debounced_query != self.filters.search_query:
            self._set_filters(replace(self.filters, debounced_query=self.filters.search_query))

    def toggle_group(self, group: GroupId) -> None:
        groups = set(self.filters.visible_groups)
        groups.symmetric_difference_update({group})
        self._set_filters(replace(self.filters, visible_groups=frozenset(groups)))

    def set_visible_groups(self, groups: Iterable[GroupId]) -> None:
        self._set_filters(replace(self.filters, visible_groups=frozenset(groups)))

    def set_show_debris(self, show: bool) -> None:
        self._set_filters(replace(self.filters, show_debris=show))

    def set_show_all(self, show: bool) -> None:
        self._set_filters(replace(self.filters, show_all_mode=show))

    # -- selection ----------------------------------------------------------

    def select(
        self, target: TrackedObject | str, *, from_warning: bool = False
    ) -> asyncio.Task[PredictedPath | None] | None:
        """Inspect an object given directly or by id/name.

        Unknown names are logged and ignored.
        """
        obj = self.catalog.find(target) if isinstance(target, str) else target
        if obj is None:
            logger.warning("Cannot select %r: not in catalog", target)
            return None
        return self.selection.select(obj, from_warning=from_warning)

    def select_warning(self, object_name: str) -> asyncio.Task[PredictedPath | None] | None:
        """Inspect the object named by a warning-panel entry."""
        return self.select(object_name, from_warning=True)

    def clear_selection(self) -> None:
        self.selection.clear()

    # -- internals ----------------------------------------------------------

    async def _fetch_path(self, object_id: str, hours: float) -> Sequence[dict[str, Any]]:
        token = self._credentials()
        if not token:
            raise MissingCredentialError(f"No credential to fetch path of {object_id}")
        return await asyncio.to_thread(self._client.fetch_path, object_id, token, hours=hours)

    def _set_filters(self, filters: FilterState) -> None:
        if filters == self.filters:
            return
        self.filters = filters
        self._invalidate()

    def _invalidate(self) -> None:
        self._display = None
        self.bus.publish(Topic.DISPLAY_CHANGED)

    def _on_selection_change(self, state: SelectionState) -> None:
        self._invalidate()
        self.bus.publish(Topic.SELECTION_CHANGED, state)
        if state.path is not None:
            self.bus.publish(Topic.PATH_LOADED, state.path)

    def _on_feed_change(self, feed: Feed) -> None:
        self.bus.publish(Topic.STATUS_CHANGED, (feed, self.scheduler.status[feed]))
        seen = (self.catalog.generation, self.warnings.warnings)
        if seen[0] != self._seen_data[0] or seen[1] is not self._seen_data[1]:
            self._seen_data = seen
            self._invalidate()
