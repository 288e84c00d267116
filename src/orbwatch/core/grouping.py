"""Organizational grouping of tracked objects.

Every object belongs to exactly one group, decided by an ordered table of
case-insensitive substring rules. Rules are evaluated top to bottom and
the first match wins; names matching no rule fall into ``OTHER``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from orbwatch.core.catalog import TrackedObject

logger = logging.getLogger(__name__)


class GroupId(Enum):
    """Organizational groups, in rule order."""

    SPACEX = "spacex"
    ISS = "iss"
    NASA = "nasa"
    ESA = "esa"
    CHINA = "china"
    RUSSIA = "russia"
    OTHER = "other"

    @property
    def label(self) -> str:
        """Display label for the group list."""
        return GROUP_LABELS[self]


GROUP_LABELS: dict[GroupId, str] = {
    GroupId.SPACEX: "SpaceX / Starlink",
    GroupId.ISS: "ISS",
    GroupId.NASA: "NASA",
    GroupId.ESA: "ESA",
    GroupId.CHINA: "China",
    GroupId.RUSSIA: "Russia",
    GroupId.OTHER: "Other",
}

# Order matters: "STARLINK" names never reach the ISS rule, Soyuz/Progress
# vehicles docked at the station still land in RUSSIA, and so on.
GROUP_RULES: tuple[tuple[GroupId, tuple[str, ...]], ...] = (
    (GroupId.SPACEX, ("STARLINK", "SPACEX", "FALCON")),
    (GroupId.ISS, ("ISS", "ZARYA")),
    (GroupId.NASA, ("NASA", "HUBBLE", "HST", "TDRS", "LANDSAT", "TERRA", "AQUA", "AURA", "SWIFT", "FERMI", "ICESAT")),
    (GroupId.ESA, ("ESA", "SENTINEL", "ENVISAT", "GALILEO", "CRYOSAT", "METOP", "SWARM")),
    (GroupId.CHINA, ("CSS", "TIANHE", "TIANGONG", "WENTIAN", "MENGTIAN", "SHENZHOU", "YAOGAN", "FENGYUN", "BEIDOU", "SHIJIAN", "CZ-")),
    (GroupId.RUSSIA, ("COSMOS", "KOSMOS", "SOYUZ", "PROGRESS", "GLONASS", "MOLNIYA", "METEOR", "RESURS", "SL-")),
)


def classify(name: str) -> GroupId:
    """Assign an object name to exactly one group.

    Args:
        name: Display name of the object. Any string is accepted.

    Returns:
        The first group whose terms occur in ``name`` (case-insensitive),
        or ``GroupId.OTHER``.
    """
    upper = name.upper()
    for group, terms in GROUP_RULES:
        if any(term in upper for term in terms):
            return group
    return GroupId.OTHER


def group_objects(objects: Iterable[TrackedObject]) -> dict[GroupId, list[TrackedObject]]:
    """Bucket objects by group for list display.

    Groups keep rule order; groups without members are omitted. Objects
    keep their catalog order within a group.
    """
    buckets: dict[GroupId, list[TrackedObject]] = {group: [] for group in GroupId}
    for obj in objects:
        buckets[classify(obj.name)].append(obj)

    listing = {group: members for group, members in buckets.items() if members}
    logger.debug("Grouped objects into %d non-empty groups", len(listing))
    return listing
