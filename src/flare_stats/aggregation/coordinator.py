"""Concurrent per-site fan-out that assembles the aggregation result."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import List, Optional, Sequence, Union

from flare_stats.aggregation.grid import generate_grid
from flare_stats.aggregation.normalizer import normalize
from flare_stats.domain.exceptions import (
    AllSitesFailedError,
    FetchError,
    FlareStatsError,
    MalformedSampleSetError,
)
from flare_stats.domain.interfaces import ISampleFetcher
from flare_stats.domain.models import (
    AggregationResult,
    BucketGrid,
    Settings,
    Site,
    SiteAnalytics,
    SiteFailure,
)

_Outcome = Union[SiteAnalytics, SiteFailure]


class AggregationCoordinator:
    """Fetches every site concurrently and joins the outcomes in input order.

    A failing site is dropped from the result and reported in
    ``AggregationResult.failures``; the call only fails when every site fails.
    ``max_concurrency`` bounds in-flight fetches; ``None`` or ``0`` leaves the
    fan-out unbounded (one task per site).
    """

    def __init__(
        self,
        fetcher: ISampleFetcher,
        *,
        max_concurrency: Optional[int] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        if max_concurrency is not None and max_concurrency < 0:
            raise ValueError("max_concurrency cannot be negative")
        self._fetcher = fetcher
        self._max_concurrency = max_concurrency or None
        self.logger = logger or logging.getLogger(__name__)

    async def aggregate(
        self,
        sites: Sequence[Site],
        settings: Settings,
        *,
        now: Optional[datetime] = None,
    ) -> AggregationResult:
        settings.require_credentials()
        if not sites:
            return AggregationResult()

        grid = generate_grid(settings.period, now or datetime.now(timezone.utc))
        semaphore = (
            asyncio.Semaphore(self._max_concurrency) if self._max_concurrency else None
        )
        slots: List[Optional[_Outcome]] = [None] * len(sites)

        async def run(index: int, site: Site) -> None:
            if semaphore is None:
                slots[index] = await self._collect_site(site, settings, grid)
                return
            async with semaphore:
                slots[index] = await self._collect_site(site, settings, grid)

        await asyncio.gather(*(run(index, site) for index, site in enumerate(sites)))

        analytics = [slot for slot in slots if isinstance(slot, SiteAnalytics)]
        failures = [slot for slot in slots if isinstance(slot, SiteFailure)]

        if not analytics:
            error = AllSitesFailedError(failures)
            self.logger.error(
                "aggregation_failed",
                extra={"sites": len(sites), "period": settings.period.value},
            )
            raise error from failures[0].error

        self.logger.info(
            "aggregation_complete",
            extra={
                "sites": len(sites),
                "succeeded": len(analytics),
                "failed": len(failures),
                "period": settings.period.value,
            },
        )
        return AggregationResult(sites=tuple(analytics), failures=tuple(failures))

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    async def _collect_site(
        self, site: Site, settings: Settings, grid: BucketGrid
    ) -> _Outcome:
        try:
            samples = await self._fetcher.fetch(
                site.site_id,
                settings.period,
                settings.exclude_bots,
                settings.token,
                settings.account_id,
                window=grid,
            )
            normalized = normalize(samples, grid)
        except (FetchError, MalformedSampleSetError) as exc:
            return self._record_failure(site, exc)
        except Exception as exc:
            self.logger.exception(
                "site_fetch_unexpected_error", extra={"site_id": site.site_id}
            )
            wrapped = FetchError(
                "Unexpected failure fetching site analytics",
                context={"site_id": site.site_id, "error": repr(exc)},
            )
            wrapped.__cause__ = exc
            return self._record_failure(site, wrapped)

        return SiteAnalytics(
            name=site.name,
            visits=normalized.visits,
            page_views=normalized.page_views,
            series=normalized.series,
        )

    def _record_failure(self, site: Site, error: FlareStatsError) -> SiteFailure:
        self.logger.warning(
            "site_fetch_failed",
            extra={
                "site": site.name,
                "site_id": site.site_id,
                "error": error.message,
                "context": dict(error.context),
            },
        )
        return SiteFailure(site=site, error=error)
