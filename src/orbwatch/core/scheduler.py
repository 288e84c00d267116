"""Periodic refresh of the catalog and warning feeds.

Each feed is polled on its own interval. Ticks are not coalesced: a tick
that fires while an earlier request is still out issues a new request.
Requests are numbered per feed and only the response to the latest
request issued for a feed is applied; older responses are dropped.

Blocking HTTP calls run in worker threads. Their results are applied on
the event loop, so completions never interleave.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Coroutine
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from orbwatch.api.client import FeedClient
from orbwatch.core.catalog import CatalogStore
from orbwatch.core.conjunctions import WarningIndex
from orbwatch.errors import MissingCredentialError, TransportError
from orbwatch.utils.constants import CATALOG_REFRESH_INTERVAL_S, WARNING_REFRESH_INTERVAL_S

logger = logging.getLogger(__name__)

SYNC_REQUIRED_NOTICE = "No objects found. Trigger a sync to download object data."


class Feed(Enum):
    CATALOG = "catalog"
    WARNINGS = "warnings"
    SYNC = "sync"


@dataclass
class FeedStatus:
    """Visible status of one feed.

    Attributes:
        loading: A request is outstanding.
        error: Message of the last failure, cleared by the next success.
        notice: Informational message (sync required, sync acknowledged).
        last_success: When data was last applied.
        count: Number of entries applied by the last success.
    """

    loading: bool = False
    error: str | None = None
    notice: str | None = None
    last_success: datetime | None = None
    count: int = 0


class RefreshScheduler:
    """Drives catalog and warning refreshes and the manual sync.

    Args:
        client: Feed client; its methods are called from worker threads.
        catalog: Store replaced by each catalog refresh.
        warnings: Index rebuilt by each warning refresh.
        credentials: Returns the current bearer token, or None when signed out.
        catalog_interval_s: Catalog poll interval.
        warning_interval_s: Warning poll interval.
        on_change: Called with the feed whose data or status changed.
    """

    def __init__(
        self,
        client: FeedClient,
        catalog: CatalogStore,
        warnings: WarningIndex,
        credentials: Callable[[], str | None],
        *,
        catalog_interval_s: float = CATALOG_REFRESH_INTERVAL_S,
        warning_interval_s: float = WARNING_REFRESH_INTERVAL_S,
        on_change: Callable[[Feed], None] | None = None,
    ) -> None:
        self._client = client
        self._catalog = catalog
        self._warnings = warnings
        self._credentials = credentials
        self._intervals = {Feed.CATALOG: catalog_interval_s, Feed.WARNINGS: warning_interval_s}
        self._on_change = on_change
        self.status: dict[Feed, FeedStatus] = {feed: FeedStatus() for feed in Feed}
        self._issued: dict[Feed, int] = {feed: 0 for feed in Feed}
        self._pollers: list[asyncio.Task[None]] = []
        self._inflight: set[asyncio.Task[Any]] = set()

    @property
    def running(self) -> bool:
        return bool(self._pollers)

    async def refresh_catalog(self) -> bool:
        """Fetch the catalog and replace the store.

        Returns:
            True if a response was applied.
        """
        def apply(records: list[dict[str, Any]]) -> int:
            count = self._catalog.replace(records)
            self.status[Feed.CATALOG].notice = SYNC_REQUIRED_NOTICE if count == 0 else None
            return count

        return await self._refresh(Feed.CATALOG, self._client.fetch_objects, apply)

    async def refresh_warnings(self) -> bool:
        """Fetch conjunction warnings and rebuild the index.

        Returns:
            True if a response was applied.
        """
        def apply(result: tuple[int, list[dict[str, Any]]]) -> int:
            reported, records = result
            self._warnings.rebuild(records, reported_count=reported)
            return len(self._warnings)

        return await self._refresh(Feed.WARNINGS, self._client.fetch_warnings, apply)

    async def sync(self) -> str | None:
        """Trigger a backend sync.

        New data is picked up by the next scheduled refresh; nothing is
        re-fetched here.

        Returns:
            The backend acknowledgement, or None if no sync was sent or it failed.
        """
        status = self.status[Feed.SYNC]
        token = self._credentials()
        if not token:
            logger.debug("Skipping sync: no credential")
            return None

        status.loading = True
        self._notify(Feed.SYNC)
        try:
            message = await asyncio.to_thread(self._client.trigger_sync, token)
        except (TransportError, MissingCredentialError) as e:
            logger.warning("Sync failed: %s", e)
            status.loading = False
            status.error = str(e)
            self._notify(Feed.SYNC)
            return None

        status.loading = False
        status.error = None
        status.notice = message
        status.last_success = datetime.now(timezone.utc)
        self._notify(Feed.SYNC)
        return message

    def start(self) -> None:
        """Start both pollers. Each refreshes immediately, then on its interval."""
        if self._pollers:
            return
        loop = asyncio.get_running_loop()
        self._pollers = [
            loop.create_task(self._poll(Feed.CATALOG, self.refresh_catalog)),
            loop.create_task(self._poll(Feed.WARNINGS, self.refresh_warnings)),
        ]
        logger.info(
            "Refresh scheduler started (catalog every %.0fs, warnings every %.0fs)",
            self._intervals[Feed.CATALOG],
            self._intervals[Feed.WARNINGS],
        )

    async def stop(self) -> None:
        """Cancel the pollers and any outstanding refreshes."""
        tasks = self._pollers + list(self._inflight)
        self._pollers = []
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._inflight.clear()
        logger.info("Refresh scheduler stopped")

    async def _poll(self, feed: Feed, refresh: Callable[[], Coroutine[Any, Any, bool]]) -> None:
        loop = asyncio.get_running_loop()
        while True:
            task = loop.create_task(refresh())
            self._inflight.add(task)
            task.add_done_callback(self._reap)
            await asyncio.sleep(self._intervals[feed])

    def _reap(self, task: asyncio.Task[Any]) -> None:
        self._inflight.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Background refresh failed", exc_info=exc)

    async def _refresh(self, feed: Feed, fetch: Callable[[str], Any], apply: Callable[[Any], int]) -> bool:
        status = self.status[feed]
        token = self._credentials()
        if not token:
            logger.debug("Skipping %s refresh: no credential", feed.value)
            return False

        self._issued[feed] += 1
        seq = self._issued[feed]
        status.loading = True
        self._notify(feed)

        try:
            result = await asyncio.to_thread(fetch, token)
            if seq != self._issued[feed]:
                logger.debug("Discarding stale %s response %d (latest %d)", feed.value, seq, self._issued[feed])
                return False
            count = apply(result)
        except (TransportError, MissingCredentialError) as e:
            if seq != self._issued[feed]:
                logger.debug("Ignoring failed stale %s request %d", feed.value, seq)
                return False
            logger.warning("%s refresh failed, keeping last data: %s", feed.value.capitalize(), e)
            status.error = str(e)
            return False
        except Exception as e:
            if seq == self._issued[feed]:
                status.error = f"{feed.value.capitalize()} refresh failed: {e}"
            raise
        else:
            status.error = None
            status.count = count
            status.last_success = datetime.now(timezone.utc)
            logger.debug("Applied %s response %d (%d entries)", feed.value, seq, count)
            return True
        finally:
            if seq == self._issued[feed]:
                status.loading = False
                self._notify(feed)

    def _notify(self, feed: Feed) -> None:
        if self._on_change is not None:
            self._on_change(feed)
