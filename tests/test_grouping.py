"""Tests for the grouping classifier."""
from __future__ import annotations

import pytest

from orbwatch.core.catalog import TrackedObject
from orbwatch.core.grouping import GROUP_LABELS, GROUP_RULES, GroupId, classify, group_objects


@pytest.mark.parametrize(
    "name, expected",
    [
        ("STARLINK-1007", GroupId.SPACEX),
        ("FALCON 9 R/B", GroupId.SPACEX),
        ("ISS (ZARYA)", GroupId.ISS),
        ("iss (zarya)", GroupId.ISS),
        ("HST", GroupId.NASA),
        ("LANDSAT 9", GroupId.NASA),
        ("SENTINEL-2A", GroupId.ESA),
        ("ENVISAT", GroupId.ESA),
        ("CSS (TIANHE)", GroupId.CHINA),
        ("CZ-2C R/B", GroupId.CHINA),
        ("FENGYUN 1C DEB", GroupId.CHINA),
        ("COSMOS 1408 DEB", GroupId.RUSSIA),
        ("SL-16 R/B", GroupId.RUSSIA),
        ("NOAA 18", GroupId.OTHER),
        ("", GroupId.OTHER),
    ],
)
def test_classify(name, expected):
    assert classify(name) is expected


def test_first_match_wins():
    """A name matching several rules lands in the earliest one."""
    assert classify("STARLINK ISS RELAY") is GroupId.SPACEX
    assert classify("ZARYA SOYUZ") is GroupId.ISS


def test_classify_is_deterministic():
    names = ["STARLINK-30001", "HUBBLE", "GLONASS-M 730", "UNKNOWN OBJECT 4"]
    assert [classify(n) for n in names] == [classify(n) for n in names]


def test_rule_order():
    assert [group for group, _ in GROUP_RULES] == [
        GroupId.SPACEX,
        GroupId.ISS,
        GroupId.NASA,
        GroupId.ESA,
        GroupId.CHINA,
        GroupId.RUSSIA,
    ]


def test_every_group_has_a_label():
    assert set(GROUP_LABELS) == set(GroupId)
    assert GroupId.SPACEX.label == "SpaceX / Starlink"
    assert GroupId.OTHER.label == "Other"


def test_group_objects_keeps_catalog_order():
    objs = [
        TrackedObject(name="STARLINK-2", latitude=0, longitude=0, altitude=550),
        TrackedObject(name="NOAA 18", latitude=0, longitude=0, altitude=850),
        TrackedObject(name="STARLINK-1", latitude=0, longitude=0, altitude=550),
    ]
    groups = group_objects(objs)
    assert list(groups) == [GroupId.SPACEX, GroupId.OTHER]
    assert [o.name for o in groups[GroupId.SPACEX]] == ["STARLINK-2", "STARLINK-1"]


def test_group_objects_empty():
    assert group_objects([]) == {}
