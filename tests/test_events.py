"""Tests for the in-process event bus."""
from __future__ import annotations

import pytest

from orbwatch.core.events import EventBus, Topic


def test_publish_reaches_subscribers_in_order():
    bus = EventBus()
    received: list[tuple[str, object]] = []
    bus.subscribe(Topic.STATUS_CHANGED, lambda p: received.append(("first", p)))
    bus.subscribe(Topic.STATUS_CHANGED, lambda p: received.append(("second", p)))

    assert bus.publish(Topic.STATUS_CHANGED, 42) == 2
    assert received == [("first", 42), ("second", 42)]


def test_topics_are_isolated():
    bus = EventBus()
    received: list[object] = []
    bus.subscribe(Topic.CLEAR_SELECTION, received.append)
    assert bus.publish(Topic.DISPLAY_CHANGED) == 0
    assert received == []


def test_unsubscribe():
    bus = EventBus()
    received: list[object] = []
    unsubscribe = bus.subscribe(Topic.CLEAR_SELECTION, received.append)
    unsubscribe()
    unsubscribe()
    assert bus.publish(Topic.CLEAR_SELECTION) == 0
    assert received == []


def test_handler_error_propagates():
    bus = EventBus()

    def broken(_payload):
        raise RuntimeError("boom")

    bus.subscribe(Topic.PATH_LOADED, broken)
    with pytest.raises(RuntimeError, match="boom"):
        bus.publish(Topic.PATH_LOADED)
