"""Domain value objects representing sites, samples and aggregated series."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Optional, Tuple

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from .exceptions import ConfigurationInvalidError, FlareStatsError


class Period(str, Enum):
    """Reporting windows supported by the dashboard."""

    LAST_24_HOURS = "24h"
    LAST_7_DAYS = "7d"
    LAST_30_DAYS = "30d"

    @property
    def bucket_count(self) -> int:
        return _BUCKET_COUNTS[self]

    @property
    def is_hourly(self) -> bool:
        return self is Period.LAST_24_HOURS


_BUCKET_COUNTS = {
    Period.LAST_24_HOURS: 24,
    Period.LAST_7_DAYS: 7,
    Period.LAST_30_DAYS: 30,
}


class Theme(str, Enum):
    AUTO = "auto"
    LIGHT = "light"
    DARK = "dark"


class RefreshInterval(str, Enum):
    """Background refresh cadence options."""

    FIVE_MINUTES = "5m"
    FIFTEEN_MINUTES = "15m"
    SIXTY_MINUTES = "60m"


class Settings(BaseModel):
    """User configuration read from the settings store; never mutated by the engine."""

    model_config = ConfigDict(frozen=True)

    token: str = ""
    account_id: str = ""
    period: Period = Period.LAST_24_HOURS
    exclude_bots: bool = True
    theme: Theme = Theme.AUTO
    refresh_interval: RefreshInterval = RefreshInterval.FIFTEEN_MINUTES

    @field_validator("period", mode="before")
    @classmethod
    def coerce_period(cls, value: Any) -> Any:
        if value is None or value == "":
            return Period.LAST_24_HOURS
        try:
            return Period(value)
        except ValueError:
            # Unknown selectors fall back to the widest window.
            return Period.LAST_30_DAYS

    @field_validator("theme", mode="before")
    @classmethod
    def coerce_theme(cls, value: Any) -> Any:
        try:
            return Theme(value)
        except ValueError:
            return Theme.AUTO

    @field_validator("refresh_interval", mode="before")
    @classmethod
    def coerce_refresh_interval(cls, value: Any) -> Any:
        try:
            return RefreshInterval(value)
        except ValueError:
            return RefreshInterval.FIFTEEN_MINUTES

    def require_credentials(self) -> None:
        """Raise ``ConfigurationInvalidError`` unless token and account id are set."""

        missing = [
            name
            for name, value in (("token", self.token), ("account_id", self.account_id))
            if not value or not value.strip()
        ]
        if missing:
            raise ConfigurationInvalidError(context={"missing": missing})


class Site(BaseModel):
    """A Web Analytics site as listed by the account directory."""

    model_config = ConfigDict(frozen=True)

    name: str
    site_id: str


class Sample(BaseModel):
    """One raw data point for a single bucket. Counts are passed through as-is."""

    model_config = ConfigDict(frozen=True)

    bucket_key: str
    visits: int = 0
    page_views: int = 0


class BucketGrid(BaseModel):
    """Ordered bucket keys covering a period plus the instants bounding it."""

    model_config = ConfigDict(frozen=True)

    period: Period
    keys: Tuple[str, ...]
    start: datetime
    end: datetime

    @model_validator(mode="after")
    def validate_keys(self) -> "BucketGrid":
        if len(self.keys) != self.period.bucket_count:
            raise ValueError(
                f"grid for {self.period.value} must have "
                f"{self.period.bucket_count} buckets, got {len(self.keys)}"
            )
        for previous, current in zip(self.keys, self.keys[1:]):
            if current <= previous:
                raise ValueError("grid keys must be strictly increasing")
        if self.end < self.start:
            raise ValueError("grid end must not precede its start")
        return self


class SeriesPoint(BaseModel):
    """One bucket of a normalized series."""

    model_config = ConfigDict(frozen=True)

    timestamp: str
    visits: int
    page_views: int

    @property
    def extra_page_views(self) -> int:
        """Page views beyond the visit count, never negative."""

        return max(0, self.page_views - self.visits)


class SiteAnalytics(BaseModel):
    """Aggregated analytics for one site; totals always match the series."""

    model_config = ConfigDict(frozen=True)

    name: str
    visits: int
    page_views: int
    series: Tuple[SeriesPoint, ...] = Field(default_factory=tuple)

    @model_validator(mode="after")
    def validate_totals(self) -> "SiteAnalytics":
        if self.visits != sum(point.visits for point in self.series):
            raise ValueError("visits must equal the sum of series visits")
        if self.page_views != sum(point.page_views for point in self.series):
            raise ValueError("page_views must equal the sum of series page views")
        return self


class SiteFailure(BaseModel):
    """A site whose analytics could not be produced during an aggregation."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    site: Site
    error: FlareStatsError


class AggregationResult(BaseModel):
    """Successful sites in input order, plus the sites that were dropped."""

    model_config = ConfigDict(frozen=True)

    sites: Tuple[SiteAnalytics, ...] = Field(default_factory=tuple)
    failures: Tuple[SiteFailure, ...] = Field(default_factory=tuple)

    @property
    def is_partial(self) -> bool:
        return bool(self.sites) and bool(self.failures)

    def find(self, name: str) -> Optional[SiteAnalytics]:
        return next((site for site in self.sites if site.name == name), None)
