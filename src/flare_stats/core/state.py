"""Explicit application state shared by the dashboard and background refresh."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from flare_stats.domain.exceptions import FlareStatsError
from flare_stats.domain.models import AggregationResult


class View(str, Enum):
    DASHBOARD = "dashboard"
    SETTINGS = "settings"


@dataclass
class AppState:
    """Current view plus a single-slot cache of the last successful aggregation.

    A failed refresh keeps the cached result so stale data stays visible.
    """

    view: View = View.DASHBOARD
    cached: Optional[AggregationResult] = None
    last_error: Optional[FlareStatsError] = None

    def show_dashboard(self) -> None:
        self.view = View.DASHBOARD

    def show_settings(self) -> None:
        self.view = View.SETTINGS

    def record_success(self, result: AggregationResult) -> None:
        self.cached = result
        self.last_error = None

    def record_failure(self, error: FlareStatsError) -> None:
        self.last_error = error

    def invalidate(self) -> None:
        """Drop the cache, e.g. after credentials or the period change."""

        self.cached = None

    @property
    def should_offer_settings(self) -> bool:
        return self.last_error is not None and self.cached is None
