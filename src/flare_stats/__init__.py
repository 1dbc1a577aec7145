"""Cloudflare Web Analytics aggregation engine for menu-bar dashboards."""

from .aggregation.coordinator import AggregationCoordinator
from .core.container import DIContainer
from .core.service import AnalyticsService

__all__ = [
    "AggregationCoordinator",
    "AnalyticsService",
    "DIContainer",
    "domain",
    "aggregation",
    "cloudflare",
    "core",
    "utils",
]
