from __future__ import annotations

"""Reference constants for the tracking engine.

Distances in km, durations in seconds unless otherwise noted.
"""

# --- Earth parameters ---
EARTH_RADIUS_KM: float = 6371.0
"""Mean radius of Earth in km, used to normalize altitudes for the globe."""

ALTITUDE_METERS_THRESHOLD: float = 1000.0
"""Raw altitudes above this value are treated as meters, at or below as km."""

# --- Conjunction thresholds ---
CRITICAL_THRESHOLD_KM: float = 10.0
"""Warnings closer than this distance are critical."""

WARNING_RADIUS_KM: float = 50.0
"""Screening radius used upstream when producing conjunction warnings."""

WARNING_PANEL_LIMIT: int = 10
"""Default number of warnings listed in the panel."""

# --- Refresh cadence ---
CATALOG_REFRESH_INTERVAL_S: float = 30.0
"""Catalog re-fetch interval."""

WARNING_REFRESH_INTERVAL_S: float = 60.0
"""Warning re-fetch interval."""

PATH_HORIZON_HOURS: float = 24.0
"""Horizon of a predicted path fetch in hours."""

SEARCH_DEBOUNCE_S: float = 0.3
"""Delay between the raw search query and the applied query."""

REQUEST_TIMEOUT_S: float = 10.0
"""Per-request HTTP timeout handed to the transport."""

DEFAULT_BASE_URL: str = "http://localhost:8080"
"""Base URL of the object, warning and path feeds."""

# --- Display ---
DANGER_COLOR: str = "#ff0055"
"""Color for objects with an active conjunction warning."""

NEUTRAL_COLOR: str = "#00ffff"
"""Color for every other object."""

DEFAULT_VIEW: tuple[float, float, float] = (0.0, 0.0, 2.5)
"""Global camera view (lat, lng, altitude) used when nothing is selected."""

FOCUS_VIEW_ALTITUDE: float = 1.5
"""Camera altitude used when centering on a selected object."""
