"""Service facade composing settings, site directory and aggregation."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from flare_stats.aggregation.coordinator import AggregationCoordinator
from flare_stats.domain.interfaces import ISettingsStore, ISiteDirectory
from flare_stats.domain.models import AggregationResult, Settings


class AnalyticsService:
    """High-level API used by the dashboard to load analytics for an account."""

    def __init__(
        self,
        settings_store: ISettingsStore,
        site_directory: ISiteDirectory,
        coordinator: AggregationCoordinator,
        *,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._settings_store = settings_store
        self._site_directory = site_directory
        self._coordinator = coordinator
        self.logger = logger or logging.getLogger(__name__)

    def get_settings(self) -> Settings:
        return self._settings_store.load()

    def save_settings(self, settings: Settings) -> None:
        self._settings_store.save(settings)

    async def fetch_analytics(
        self, *, now: Optional[datetime] = None
    ) -> AggregationResult:
        """Load settings, list the account's sites and aggregate their analytics."""

        settings = self._settings_store.load()
        settings.require_credentials()

        sites = await self._site_directory.list_sites(
            settings.token, settings.account_id
        )
        self.logger.debug(
            "sites_listed",
            extra={"account_id": settings.account_id, "sites": len(sites)},
        )
        return await self._coordinator.aggregate(sites, settings, now=now)
