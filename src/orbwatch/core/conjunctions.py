"""Conjunction warnings and the membership index built over them."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any

import numpy as np

from orbwatch.data.records import optional_str, parse_timestamp, require_float, require_mapping, require_str
from orbwatch.utils.constants import CRITICAL_THRESHOLD_KM

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConjunctionWarning:
    """A predicted close approach involving one tracked object.

    Attributes:
        object_name: Name of the endangered tracked object.
        type: Category of the object as reported upstream.
        distance_km: Predicted miss distance in km (never negative).
        time_of_approach: Predicted time of closest approach (UTC).
        hours_from_now: Hours between the prediction and the approach.
    """

    object_name: str
    type: str
    distance_km: float
    time_of_approach: datetime
    hours_from_now: float

    def __post_init__(self) -> None:
        if self.distance_km < 0:
            raise ValueError(f"distance_km must be >= 0, got {self.distance_km}")

    @property
    def is_critical(self) -> bool:
        return self.distance_km < CRITICAL_THRESHOLD_KM

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> ConjunctionWarning:
        """Build a warning from a warning-feed record.

        Raises:
            ValueError: If a required field is missing or malformed.
        """
        record = require_mapping(record)
        return cls(
            object_name=require_str(record, "object"),
            type=optional_str(record, "type") or "UNKNOWN",
            distance_km=require_float(record, "distance", "distanceKm"),
            time_of_approach=parse_timestamp(record.get("timeOfApproach")),
            hours_from_now=require_float(record, "hoursFromNow"),
        )


class WarningIndex:
    """Constant-time "is this object endangered?" lookups keyed by name.

    The index is rebuilt in full from each warning refresh and is never
    patched incrementally.
    """

    def __init__(self, warnings: Iterable[ConjunctionWarning] = ()) -> None:
        self._warnings: tuple[ConjunctionWarning, ...] = ()
        self._names: frozenset[str] = frozenset()
        self.reported_count = 0
        self.rebuild(warnings)

    def rebuild(
        self,
        warnings: Iterable[ConjunctionWarning | Mapping[str, Any]],
        reported_count: int | None = None,
    ) -> frozenset[str]:
        """Replace the index contents.

        Args:
            warnings: Warnings, or raw feed records to validate.
            reported_count: ``warningCount`` as sent by the feed, if any.

        Returns:
            The set of endangered object names.
        """
        entries: list[ConjunctionWarning] = []
        for warning in warnings:
            if isinstance(warning, ConjunctionWarning):
                entries.append(warning)
                continue
            try:
                entries.append(ConjunctionWarning.from_record(warning))
            except ValueError as e:
                logger.warning("Rejected conjunction record: %s", e)

        self._warnings = tuple(entries)
        self._names = frozenset(w.object_name for w in entries)
        self.reported_count = len(entries) if reported_count is None else reported_count

        if reported_count is not None and reported_count != len(entries):
            logger.debug("Feed reported %d warnings, indexed %d", reported_count, len(entries))
        return self._names

    @property
    def names(self) -> frozenset[str]:
        return self._names

    @property
    def warnings(self) -> tuple[ConjunctionWarning, ...]:
        return self._warnings

    def has(self, name: str) -> bool:
        return name in self._names

    __contains__ = has

    def __len__(self) -> int:
        return len(self._warnings)

    def sorted_by_distance(self, limit: int | None = None) -> list[ConjunctionWarning]:
        """Warnings ordered by ascending distance.

        Ties keep their feed order.

        Args:
            limit: Maximum number of entries to return. None returns all.
        """
        if not self._warnings:
            return []
        distances = np.array([w.distance_km for w in self._warnings], dtype=np.float64)
        order = np.argsort(distances, kind="stable")
        if limit is not None:
            order = order[: max(limit, 0)]
        return [self._warnings[int(i)] for i in order]

    def has_critical(self) -> bool:
        return any(w.is_critical for w in self._warnings)
