"""Runtime configuration for the tracking engine."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass

from orbwatch.utils.constants import (
    CATALOG_REFRESH_INTERVAL_S,
    DEFAULT_BASE_URL,
    PATH_HORIZON_HOURS,
    REQUEST_TIMEOUT_S,
    SEARCH_DEBOUNCE_S,
    WARNING_PANEL_LIMIT,
    WARNING_REFRESH_INTERVAL_S,
)

logger = logging.getLogger(__name__)

_ENV_PREFIX = "ORBWATCH_"


@dataclass(frozen=True)
class TrackerConfig:
    """Settings shared by the feed client, scheduler and engine.

    Attributes:
        base_url: Root URL of the object, warning and path feeds.
        catalog_interval_s: Seconds between catalog refreshes.
        warning_interval_s: Seconds between warning refreshes.
        path_horizon_hours: Horizon requested for predicted paths.
        search_debounce_s: Lag between typing and the applied search query.
        warning_panel_limit: Number of warnings listed in the panel.
        request_timeout_s: Timeout passed to each HTTP request.
    """

    base_url: str = DEFAULT_BASE_URL
    catalog_interval_s: float = CATALOG_REFRESH_INTERVAL_S
    warning_interval_s: float = WARNING_REFRESH_INTERVAL_S
    path_horizon_hours: float = PATH_HORIZON_HOURS
    search_debounce_s: float = SEARCH_DEBOUNCE_S
    warning_panel_limit: int = WARNING_PANEL_LIMIT
    request_timeout_s: float = REQUEST_TIMEOUT_S

    def __post_init__(self) -> None:
        for name in ("catalog_interval_s", "warning_interval_s", "path_horizon_hours", "request_timeout_s"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)!r}")
        if self.search_debounce_s < 0:
            raise ValueError(f"search_debounce_s must be >= 0, got {self.search_debounce_s!r}")
        if self.warning_panel_limit < 1:
            raise ValueError(f"warning_panel_limit must be >= 1, got {self.warning_panel_limit!r}")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> TrackerConfig:
        """Build a config from ``ORBWATCH_*`` environment variables.

        Unset variables keep their defaults.

        Args:
            environ: Mapping to read from. Defaults to ``os.environ``.

        Returns:
            A validated TrackerConfig.

        Raises:
            ValueError: If a variable cannot be parsed or is out of range.
        """
        if environ is None:
            environ = os.environ

        fields = {
            "base_url": ("BASE_URL", str),
            "catalog_interval_s": ("CATALOG_INTERVAL", float),
            "warning_interval_s": ("WARNING_INTERVAL", float),
            "path_horizon_hours": ("PATH_HOURS", float),
            "search_debounce_s": ("SEARCH_DEBOUNCE", float),
            "warning_panel_limit": ("PANEL_LIMIT", int),
            "request_timeout_s": ("REQUEST_TIMEOUT", float),
        }

        kwargs: dict[str, object] = {}
        for attr, (suffix, convert) in fields.items():
            key = _ENV_PREFIX + suffix
            raw = environ.get(key)
            if raw is None or not raw.strip():
                continue
            try:
                kwargs[attr] = convert(raw.strip())
            except ValueError:
                logger.error("Invalid value for %s: %r", key, raw)
                raise ValueError(f"Invalid value for {key}: {raw!r}") from None

        if "base_url" in kwargs:
            kwargs["base_url"] = str(kwargs["base_url"]).rstrip("/")

        return cls(**kwargs)  # type: ignore[arg-type]
