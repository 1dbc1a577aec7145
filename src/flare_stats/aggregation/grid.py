"""Bucket grid generation for the supported reporting periods.

All boundaries are UTC. Cloudflare's ``datetimeHour`` and ``date`` dimensions are
bucketed in UTC, so grid keys match the ``ts`` values the API returns verbatim.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from flare_stats.domain.models import BucketGrid, Period

HOUR_KEY_FORMAT = "%Y-%m-%dT%H:%M:%SZ"
DAY_KEY_FORMAT = "%Y-%m-%d"

_DIMENSIONS = {
    Period.LAST_24_HOURS: "datetimeHour",
    Period.LAST_7_DAYS: "date",
    Period.LAST_30_DAYS: "date",
}


def period_dimension(period: Period) -> str:
    """GraphQL dimension used to bucket samples for ``period``."""

    return _DIMENSIONS[period]


def generate_grid(period: Period, now: datetime) -> BucketGrid:
    """Return the trailing bucket grid for ``period`` ending at the bucket containing ``now``."""

    period = Period(period)
    now = _as_utc(now)
    count = period.bucket_count

    if period.is_hourly:
        last = now.replace(minute=0, second=0, microsecond=0)
        starts = [last - timedelta(hours=offset) for offset in range(count - 1, -1, -1)]
        key_format = HOUR_KEY_FORMAT
    else:
        last = now.replace(hour=0, minute=0, second=0, microsecond=0)
        starts = [last - timedelta(days=offset) for offset in range(count - 1, -1, -1)]
        key_format = DAY_KEY_FORMAT

    return BucketGrid(
        period=period,
        keys=tuple(start.strftime(key_format) for start in starts),
        start=starts[0],
        end=now,
    )


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
