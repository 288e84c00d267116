"""Tests for the refresh scheduler."""
from __future__ import annotations

import asyncio
import logging
import threading
from unittest.mock import MagicMock, patch

import pytest

from orbwatch.api.client import FeedClient
from orbwatch.core.catalog import CatalogStore
from orbwatch.core.conjunctions import WarningIndex
from orbwatch.core.scheduler import SYNC_REQUIRED_NOTICE, Feed, RefreshScheduler
from orbwatch.errors import TransportError

SNAPSHOT_A = [
    {"id": 1, "name": "ISS (ZARYA)", "latitude": 0, "longitude": 0, "altitude": 400},
    {"id": 2, "name": "STARLINK-1007", "latitude": 10, "longitude": 20, "altitude": 550000},
]
SNAPSHOT_B = [
    {"id": 3, "name": "HST", "latitude": 5, "longitude": 6, "altitude": 540},
]
CONJUNCTIONS = [
    {"object": "SAT-A", "type": "DEBRIS", "distance": 5, "timeOfApproach": "2024-02-14T13:10:00Z", "hoursFromNow": 1.0},
    {"object": "SAT-B", "type": "PAYLOAD", "distance": 40, "timeOfApproach": "2024-02-14T15:10:00Z", "hoursFromNow": 3.0},
]


def _scheduler(client=None, token: str | None = "tok", **kwargs):
    client = client or MagicMock(spec=FeedClient)
    catalog = CatalogStore()
    warnings = WarningIndex()
    changes: list[Feed] = []
    scheduler = RefreshScheduler(client, catalog, warnings, lambda: token, on_change=changes.append, **kwargs)
    return scheduler, client, catalog, warnings, changes


def test_refresh_catalog_applies_snapshot():
    scheduler, client, catalog, _, changes = _scheduler()
    client.fetch_objects.return_value = SNAPSHOT_A

    assert asyncio.run(scheduler.refresh_catalog()) is True
    client.fetch_objects.assert_called_once_with("tok")
    assert [o.name for o in catalog] == ["ISS (ZARYA)", "STARLINK-1007"]

    status = scheduler.status[Feed.CATALOG]
    assert not status.loading
    assert status.error is None
    assert status.notice is None
    assert status.count == 2
    assert status.last_success is not None
    assert changes == [Feed.CATALOG, Feed.CATALOG]


def test_empty_catalog_is_a_notice_not_an_error():
    scheduler, client, catalog, _, _ = _scheduler()
    client.fetch_objects.return_value = []

    assert asyncio.run(scheduler.refresh_catalog()) is True
    assert catalog.is_empty
    status = scheduler.status[Feed.CATALOG]
    assert status.error is None
    assert status.notice == SYNC_REQUIRED_NOTICE


def test_transport_error_keeps_last_snapshot():
    scheduler, client, catalog, _, _ = _scheduler()
    client.fetch_objects.return_value = SNAPSHOT_A
    asyncio.run(scheduler.refresh_catalog())

    client.fetch_objects.side_effect = TransportError("Feed error: 502", status_code=502)
    assert asyncio.run(scheduler.refresh_catalog()) is False
    assert len(catalog) == 2
    status = scheduler.status[Feed.CATALOG]
    assert status.error == "Feed error: 502"
    assert not status.loading

    client.fetch_objects.side_effect = None
    client.fetch_objects.return_value = SNAPSHOT_B
    assert asyncio.run(scheduler.refresh_catalog()) is True
    assert status.error is None
    assert [o.name for o in catalog] == ["HST"]


def test_no_credential_means_no_fetch():
    scheduler, client, catalog, _, changes = _scheduler(token=None)
    assert asyncio.run(scheduler.refresh_catalog()) is False
    assert asyncio.run(scheduler.refresh_warnings()) is False
    assert asyncio.run(scheduler.sync()) is None
    client.fetch_objects.assert_not_called()
    client.fetch_warnings.assert_not_called()
    client.trigger_sync.assert_not_called()
    assert not catalog.loaded
    assert changes == []


def test_refresh_warnings_rebuilds_index():
    scheduler, client, _, warnings, _ = _scheduler()
    client.fetch_warnings.return_value = (2, CONJUNCTIONS)

    assert asyncio.run(scheduler.refresh_warnings()) is True
    assert warnings.has("SAT-A")
    assert warnings.has_critical()
    assert warnings.reported_count == 2
    assert scheduler.status[Feed.WARNINGS].count == 2

    client.fetch_warnings.return_value = (0, [])
    asyncio.run(scheduler.refresh_warnings())
    assert not warnings.has("SAT-A")
    assert len(warnings) == 0


def test_stale_catalog_response_is_discarded():
    """A slow earlier response never overwrites a newer snapshot."""
    first_entered = threading.Event()
    release_first = threading.Event()
    calls = {"n": 0}

    def fetch_objects(token):
        calls["n"] += 1
        if calls["n"] == 1:
            first_entered.set()
            release_first.wait(timeout=5)
            return SNAPSHOT_A
        return SNAPSHOT_B

    client = MagicMock(spec=FeedClient)
    client.fetch_objects.side_effect = fetch_objects
    scheduler, _, catalog, _, _ = _scheduler(client)

    async def scenario():
        first = asyncio.create_task(scheduler.refresh_catalog())
        while not first_entered.is_set():
            await asyncio.sleep(0.001)
        assert await scheduler.refresh_catalog() is True
        release_first.set()
        assert await first is False

    asyncio.run(scenario())
    assert [o.name for o in catalog] == ["HST"]
    assert catalog.generation == 1


def test_sync_records_acknowledgement():
    scheduler, client, catalog, _, _ = _scheduler()
    client.trigger_sync.return_value = "Sync has been initiated."

    assert asyncio.run(scheduler.sync()) == "Sync has been initiated."
    client.fetch_objects.assert_not_called()
    assert not catalog.loaded
    assert scheduler.status[Feed.SYNC].notice == "Sync has been initiated."


def test_sync_failure_is_reported():
    scheduler, client, _, _, _ = _scheduler()
    client.trigger_sync.side_effect = TransportError("Auth failed: 401", status_code=401)

    assert asyncio.run(scheduler.sync()) is None
    assert scheduler.status[Feed.SYNC].error == "Auth failed: 401"


def test_start_polls_both_feeds_until_stopped():
    scheduler, client, catalog, warnings, _ = _scheduler(catalog_interval_s=0.01, warning_interval_s=0.02)
    client.fetch_objects.return_value = SNAPSHOT_A
    client.fetch_warnings.return_value = (2, CONJUNCTIONS)

    async def scenario():
        scheduler.start()
        assert scheduler.running
        await asyncio.sleep(0.1)
        await scheduler.stop()
        assert not scheduler.running

    asyncio.run(scenario())
    assert client.fetch_objects.call_count >= 2
    assert client.fetch_warnings.call_count >= 1
    assert len(catalog) == 2
    assert len(warnings) == 2


def test_start_requires_running_loop():
    scheduler, _, _, _, _ = _scheduler()
    with pytest.raises(RuntimeError):
        scheduler.start()


def test_non_object_catalog_records_are_rejected():
    scheduler, client, catalog, _, _ = _scheduler()
    client.fetch_objects.return_value = [SNAPSHOT_A[0], None]

    assert asyncio.run(scheduler.refresh_catalog()) is True
    assert [o.name for o in catalog] == ["ISS (ZARYA)"]
    assert catalog.rejected == 1
    status = scheduler.status[Feed.CATALOG]
    assert not status.loading
    assert status.count == 1


def test_unexpected_apply_failure_clears_loading():
    scheduler, client, catalog, _, changes = _scheduler()
    client.fetch_objects.return_value = SNAPSHOT_A

    with patch.object(catalog, "replace", side_effect=RuntimeError("boom")):
        with pytest.raises(RuntimeError, match="boom"):
            asyncio.run(scheduler.refresh_catalog())

    status = scheduler.status[Feed.CATALOG]
    assert not status.loading
    assert status.error == "Catalog refresh failed: boom"
    assert changes == [Feed.CATALOG, Feed.CATALOG]


def test_poller_logs_unexpected_refresh_failure(caplog):
    scheduler, client, catalog, _, _ = _scheduler(catalog_interval_s=0.01, warning_interval_s=10.0)
    client.fetch_objects.return_value = SNAPSHOT_A
    client.fetch_warnings.return_value = (0, [])

    async def scenario():
        with patch.object(catalog, "replace", side_effect=RuntimeError("boom")):
            scheduler.start()
            await asyncio.sleep(0.05)
            await scheduler.stop()

    with caplog.at_level(logging.ERROR, logger="orbwatch.core.scheduler"):
        asyncio.run(scenario())

    assert "Background refresh failed" in caplog.text
    assert not scheduler.status[Feed.CATALOG].loading
    assert scheduler.status[Feed.CATALOG].error == "Catalog refresh failed: boom"
