"""Dependency injection container for building fully-wired services."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import httpx

from flare_stats.aggregation.coordinator import AggregationCoordinator
from flare_stats.cloudflare.base import CloudflareConfig
from flare_stats.cloudflare.graphql_fetcher import CloudflareSampleFetcher
from flare_stats.cloudflare.site_directory import CloudflareSiteDirectory
from flare_stats.core.config import EngineConfig
from flare_stats.core.service import AnalyticsService
from flare_stats.core.settings_store import JsonSettingsStore
from flare_stats.domain.interfaces import (
    ISampleFetcher,
    ISettingsStore,
    ISiteDirectory,
)


class DIContainer:
    """Factory helpers that assemble an AnalyticsService with default wiring."""

    @staticmethod
    def create_service(
        *,
        config: Optional[EngineConfig] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        settings_path: str | Path | None = None,
    ) -> AnalyticsService:
        cfg = config or EngineConfig.from_env()
        client = http_client or DIContainer.build_http_client(cfg)
        cloudflare_config = CloudflareConfig(
            base_url=cfg.api_base_url, timeout=cfg.timeout_seconds
        )
        store = JsonSettingsStore(settings_path or cfg.resolved_settings_path)
        directory = CloudflareSiteDirectory(client, cloudflare_config)
        fetcher = CloudflareSampleFetcher(client, cloudflare_config)
        coordinator = AggregationCoordinator(
            fetcher, max_concurrency=cfg.max_concurrency
        )
        return AnalyticsService(store, directory, coordinator)

    @staticmethod
    def create_custom_service(
        *,
        settings_store: ISettingsStore,
        site_directory: ISiteDirectory,
        fetcher: ISampleFetcher,
        max_concurrency: Optional[int] = None,
    ) -> AnalyticsService:
        coordinator = AggregationCoordinator(fetcher, max_concurrency=max_concurrency)
        return AnalyticsService(settings_store, site_directory, coordinator)

    @staticmethod
    def build_http_client(config: EngineConfig) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=config.timeout_seconds)
