"""
OrbWatch: near-real-time tracking state for orbital objects.

Ingests the object catalog and conjunction warnings from a tracking
backend, derives the filtered set of objects to draw on a globe, and
manages single-object inspection with its predicted ground track.
"""

from __future__ import annotations

__version__ = "0.1.0-dev"

from orbwatch.api.client import FeedClient
from orbwatch.config import TrackerConfig
from orbwatch.core.catalog import CatalogStore, TrackedObject, normalize_altitude_km
from orbwatch.core.conjunctions import ConjunctionWarning, WarningIndex
from orbwatch.core.engine import TrackingEngine, WarningPanelView
from orbwatch.core.events import EventBus, Topic
from orbwatch.core.filters import DisplayPoint, FilterState, compute_display_set
from orbwatch.core.grouping import GroupId, classify
from orbwatch.core.scheduler import Feed, FeedStatus, RefreshScheduler
from orbwatch.core.selection import PathPoint, PredictedPath, SelectionController, SelectionPhase, SelectionState
from orbwatch.errors import MissingCredentialError, OrbWatchError, TransportError

__all__ = [
    "__version__",
    "FeedClient",
    "TrackerConfig",
    "CatalogStore",
    "TrackedObject",
    "normalize_altitude_km",
    "ConjunctionWarning",
    "WarningIndex",
    "TrackingEngine",
    "WarningPanelView",
    "EventBus",
    "Topic",
    "DisplayPoint",
    "FilterState",
    "compute_display_set",
    "GroupId",
    "classify",
    "Feed",
    "FeedStatus",
    "RefreshScheduler",
    "PathPoint",
    "PredictedPath",
    "SelectionController",
    "SelectionPhase",
    "SelectionState",
    "MissingCredentialError",
    "OrbWatchError",
    "TransportError",
]
