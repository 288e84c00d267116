"""Display-set filtering.

``compute_display_set`` narrows the catalog through a fixed sequence of
stages:

1. Isolation: an inspected object is shown alone.
2. Focus: unless "show all" is on, only endangered and hero objects.
3. Group visibility: objects whose group is selected (all if none are).
4. Search: case-insensitive name containment of the applied query.
5. Debris: ``DEBRIS`` objects dropped unless debris is shown.

The function is pure; catalog order is preserved.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from orbwatch.core.grouping import GroupId, classify
from orbwatch.utils.constants import DANGER_COLOR, NEUTRAL_COLOR

if TYPE_CHECKING:
    from orbwatch.core.catalog import TrackedObject
    from orbwatch.core.conjunctions import WarningIndex
    from orbwatch.core.selection import SelectionState

logger = logging.getLogger(__name__)

HERO_OBJECTS: tuple[str, ...] = (
    "ISS (ZARYA)",
    "CSS (TIANHE)",
    "HST",
    "ENVISAT",
    "TERRA",
    "AQUA",
    "LANDSAT 9",
    "NOAA 20",
    "SENTINEL-6A",
)
"""Landmark objects always eligible in focus mode (exact or substring match)."""

SALIENT_TERMS: tuple[str, ...] = ("ISS", "ZARYA", "HUBBLE", "TIANGONG")
"""High-salience name fragments always eligible in focus mode."""


@dataclass(frozen=True)
class FilterState:
    """User-controlled filter inputs.

    Attributes:
        visible_groups: Groups to show. Empty means every group.
        search_query: Raw text as typed.
        debounced_query: Query actually applied, lagging ``search_query``.
        show_debris: Whether ``DEBRIS`` objects are shown.
        show_all_mode: False restricts the view to endangered and hero objects.
    """

    visible_groups: frozenset[GroupId] = field(default_factory=frozenset)
    search_query: str = ""
    debounced_query: str = ""
    show_debris: bool = True
    show_all_mode: bool = False


@dataclass(frozen=True)
class DisplayPoint:
    """One point handed to the globe renderer."""

    key: str
    name: str
    lat: float
    lng: float
    alt: float
    color: str


def is_hero(name: str) -> bool:
    """True for curated landmark objects and high-salience names."""
    upper = name.upper()
    if any(hero == upper or hero in upper for hero in HERO_OBJECTS):
        return True
    return any(term in upper for term in SALIENT_TERMS)


def compute_display_set(
    catalog: Sequence[TrackedObject],
    selection: SelectionState,
    filters: FilterState,
    warnings: WarningIndex,
) -> list[TrackedObject]:
    """Derive the objects to render.

    Args:
        catalog: Current catalog snapshot.
        selection: Current selection state.
        filters: Current filter inputs.
        warnings: Membership index of endangered objects.

    Returns:
        The filtered objects in catalog order.
    """
    if selection.isolation_mode and selection.selected is not None:
        return [selection.selected]

    result = list(catalog)

    if not filters.show_all_mode:
        result = [o for o in result if warnings.has(o.name) or is_hero(o.name)]

    if filters.visible_groups:
        result = [o for o in result if classify(o.name) in filters.visible_groups]

    query = filters.debounced_query.strip().lower()
    if query:
        result = [o for o in result if query in o.name.lower()]

    if not filters.show_debris:
        result = [o for o in result if not o.is_debris]

    logger.debug("Display set: %d of %d objects", len(result), len(catalog))
    return result


def display_color(obj: TrackedObject, warnings: WarningIndex) -> str:
    """Danger color for endangered objects, neutral otherwise."""
    return DANGER_COLOR if warnings.has(obj.name) else NEUTRAL_COLOR


def to_display_points(objects: Sequence[TrackedObject], warnings: WarningIndex) -> list[DisplayPoint]:
    return [
        DisplayPoint(
            key=o.key,
            name=o.name,
            lat=o.latitude,
            lng=o.longitude,
            alt=o.normalized_altitude,
            color=display_color(o, warnings),
        )
        for o in objects
    ]
