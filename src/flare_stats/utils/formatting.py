"""Presentation helpers for dashboards rendering aggregation results."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, List

from flare_stats.domain.models import SiteAnalytics

_ATTR_ESCAPES = (("&", "&amp;"), ('"', "&quot;"), ("<", "&lt;"), (">", "&gt;"))


def format_number(value: int) -> str:
    """Compact count label: ``999``, ``1.5K``, ``2.0M``."""

    if value >= 1_000_000:
        return f"{value / 1_000_000:.1f}M"
    if value >= 1_000:
        return f"{value / 1_000:.1f}K"
    return str(value)


def format_timestamp(timestamp: str) -> str:
    """Axis label for a bucket key: ``MM-DD`` for days, ``HH:00`` (UTC) for hours."""

    if len(timestamp) == 10:
        return timestamp[5:]
    if len(timestamp) > 10:
        parsed = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
        return f"{parsed.astimezone(timezone.utc).hour:02d}:00"
    return timestamp


def escape_attr(value: str) -> str:
    for raw, escaped in _ATTR_ESCAPES:
        value = value.replace(raw, escaped)
    return value


def rank_by_visits(sites: Iterable[SiteAnalytics]) -> List[SiteAnalytics]:
    """Busiest sites first; ties keep their aggregation order."""

    return sorted(sites, key=lambda site: site.visits, reverse=True)
