"""Tracked-object catalog.

Holds the latest snapshot of tracked objects. A refresh replaces the
snapshot wholesale, so objects from two different feed responses never
coexist.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

import numpy as np
from numpy.typing import NDArray

from orbwatch.core.grouping import GroupId, classify, group_objects
from orbwatch.data.records import optional_float, optional_str, require_float, require_mapping, require_str
from orbwatch.utils.constants import ALTITUDE_METERS_THRESHOLD, EARTH_RADIUS_KM

logger = logging.getLogger(__name__)


def normalize_altitude_km(raw_altitude: float) -> float:
    """Convert a raw feed altitude to km.

    Upstream producers report altitude in either km or meters. Values above
    1000 are taken to be meters.
    """
    if raw_altitude > ALTITUDE_METERS_THRESHOLD:
        return raw_altitude / 1000.0
    return raw_altitude


@dataclass(frozen=True)
class TrackedObject:
    """A satellite or debris object from the object feed.

    Attributes:
        name: Display name; also the key used by conjunction warnings.
        latitude: Geodetic latitude in degrees.
        longitude: Geodetic longitude in degrees.
        altitude: Raw altitude as reported (km or meters).
        kind: Free-text category, e.g. ``"DEBRIS"``.
        id: Opaque identifier, stable across refreshes. May be absent.
        velocity_km_s: Orbital speed, if the feed provides it.
    """

    name: str
    latitude: float
    longitude: float
    altitude: float
    kind: str = "UNKNOWN"
    id: str | None = None
    velocity_km_s: float | None = None

    @property
    def key(self) -> str:
        """Identity used for UI continuity: ``id`` when present, else ``name``."""
        return self.id if self.id is not None else self.name

    @property
    def altitude_km(self) -> float:
        return normalize_altitude_km(self.altitude)

    @property
    def normalized_altitude(self) -> float:
        """Altitude in Earth radii, as used by the globe renderer."""
        return self.altitude_km / EARTH_RADIUS_KM

    @property
    def group(self) -> GroupId:
        return classify(self.name)

    @property
    def is_debris(self) -> bool:
        return self.kind.upper() == "DEBRIS"

    def matches(self, key: str) -> bool:
        """True if ``key`` is this object's id or name."""
        return key == self.name or (self.id is not None and key == self.id)

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> TrackedObject:
        """Build a TrackedObject from an object-feed record.

        Args:
            record: Mapping with ``name``, ``latitude``, ``longitude`` and
                ``altitude``; optional ``id``, ``kind`` (or ``type``) and
                ``velocity_km_s``.

        Returns:
            The validated object.

        Raises:
            ValueError: If the record is not an object, or a required field is
                missing or malformed.
        """
        record = require_mapping(record)
        latitude = require_float(record, "latitude")
        longitude = require_float(record, "longitude")
        if not -90.0 <= latitude <= 90.0:
            raise ValueError(f"Latitude out of range: {latitude}")
        if not -180.0 <= longitude <= 360.0:
            raise ValueError(f"Longitude out of range: {longitude}")

        return cls(
            name=require_str(record, "name"),
            latitude=latitude,
            longitude=longitude,
            altitude=require_float(record, "altitude"),
            kind=optional_str(record, "kind", "type") or "UNKNOWN",
            id=optional_str(record, "id"),
            velocity_km_s=optional_float(record, "velocity_km_s"),
        )


class CatalogStore:
    """Latest snapshot of the object catalog.

    Three states are distinguishable: not yet loaded (``loaded`` is False),
    loaded but empty (``is_empty``; the upstream needs a sync), and loaded
    with objects.
    """

    def __init__(self) -> None:
        self._objects: tuple[TrackedObject, ...] | None = None
        self._groups: dict[GroupId, list[TrackedObject]] = {}
        self._generation = 0
        self.rejected = 0

    @property
    def loaded(self) -> bool:
        return self._objects is not None

    @property
    def is_empty(self) -> bool:
        return self._objects is not None and not self._objects

    @property
    def objects(self) -> tuple[TrackedObject, ...]:
        return self._objects or ()

    @property
    def generation(self) -> int:
        """Incremented on every successful replace."""
        return self._generation

    def __len__(self) -> int:
        return len(self.objects)

    def __iter__(self):
        return iter(self.objects)

    def replace(self, records: Iterable[Mapping[str, Any] | TrackedObject]) -> int:
        """Replace the snapshot with a freshly fetched catalog.

        Malformed records are rejected and counted in ``rejected``. The new
        snapshot is built completely before it is swapped in.

        Args:
            records: Feed records or already-built TrackedObjects.

        Returns:
            Number of objects in the new snapshot.
        """
        objects: list[TrackedObject] = []
        rejected = 0
        for record in records:
            if isinstance(record, TrackedObject):
                objects.append(record)
                continue
            try:
                objects.append(TrackedObject.from_record(record))
            except ValueError as e:
                rejected += 1
                logger.warning("Rejected catalog record: %s", e)

        snapshot = tuple(objects)
        self._objects = snapshot
        self._groups = group_objects(snapshot)
        self._generation += 1
        self.rejected = rejected

        if not snapshot:
            logger.info("Catalog refresh returned no objects")
        logger.debug("Catalog generation %d: %d objects, %d rejected", self._generation, len(snapshot), rejected)
        return len(snapshot)

    def find(self, key: str) -> TrackedObject | None:
        """Look up an object by id or name in the current snapshot."""
        for obj in self.objects:
            if obj.matches(key):
                return obj
        return None

    def groups(self) -> dict[GroupId, list[TrackedObject]]:
        """Group listing for the current snapshot, empty groups omitted."""
        return {group: list(members) for group, members in self._groups.items()}

    def positions(self, objects: Iterable[TrackedObject] | None = None) -> NDArray[np.float64]:
        """Return an ``(n, 3)`` array of ``(lat, lng, normalized_alt)``.

        Args:
            objects: Subset to convert. Defaults to the whole snapshot.
        """
        subset = self.objects if objects is None else tuple(objects)
        if not subset:
            return np.empty((0, 3), dtype=np.float64)

        return np.array([(o.latitude, o.longitude, o.normalized_altitude) for o in subset], dtype=np.float64)
