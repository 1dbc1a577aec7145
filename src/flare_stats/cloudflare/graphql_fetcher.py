"""Remote sample fetcher backed by the Cloudflare GraphQL Analytics API."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Sequence

import httpx

from flare_stats.aggregation.grid import HOUR_KEY_FORMAT, period_dimension
from flare_stats.domain.exceptions import (
    FetchError,
    FetchTimeoutError,
    FetchUnavailableError,
)
from flare_stats.domain.models import BucketGrid, Period, Sample

from .base import BaseCloudflareClient

GRAPHQL_PATH = "/client/v4/graphql"
SERIES_LIMIT = 5000

_SERIES_QUERY = """{
  viewer {
    accounts(filter: { accountTag: $accountTag }) {
      series: rumPageloadEventsAdaptiveGroups(limit: %(limit)d, filter: $filter) {
        count
        sum { visits }
        dimensions { ts: %(dimension)s }
      }
    }
  }
}"""


class CloudflareSampleFetcher(BaseCloudflareClient):
    """Issues one page-load analytics query per site and returns sparse samples."""

    async def fetch(
        self,
        site_id: str,
        period: Period,
        exclude_bots: bool,
        token: str,
        account_id: str,
        *,
        window: BucketGrid,
    ) -> Sequence[Sample]:
        context = {"site_id": site_id, "period": Period(period).value}
        payload = self.build_payload(site_id, period, exclude_bots, account_id, window)
        self.log_request("graphql_request", **context)

        try:
            http_response = await self._http.post(
                self.config.url(GRAPHQL_PATH),
                json=payload,
                headers=self.auth_headers(token),
                timeout=self.config.timeout,
            )
        except httpx.TimeoutException as exc:
            raise FetchTimeoutError(context=context) from exc
        except httpx.HTTPError as exc:
            raise FetchUnavailableError(
                context={**context, "error": str(exc)}
            ) from exc

        self.raise_for_status(http_response, context)
        return self._map_samples(http_response, context)

    @staticmethod
    def build_payload(
        site_id: str,
        period: Period,
        exclude_bots: bool,
        account_id: str,
        window: BucketGrid,
    ) -> Dict[str, Any]:
        filters: List[Dict[str, Any]] = [
            {
                "datetime_geq": _format_instant(window.start),
                "datetime_leq": _format_instant(window.end),
            },
            {"siteTag": site_id},
        ]
        if exclude_bots:
            filters.append({"bot": 0})
        query = _SERIES_QUERY % {
            "limit": SERIES_LIMIT,
            "dimension": period_dimension(Period(period)),
        }
        return {
            "query": query,
            "variables": {
                "accountTag": account_id,
                "filter": {"AND": filters},
            },
        }

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _map_samples(
        self, http_response: httpx.Response, context: Dict[str, Any]
    ) -> List[Sample]:
        try:
            data = http_response.json()
        except ValueError as exc:
            raise FetchError("Malformed GraphQL response", context=context) from exc

        errors = data.get("errors") if isinstance(data, dict) else None
        if errors:
            raise FetchError(
                "GraphQL errors", context={**context, "errors": errors}
            )

        try:
            account = data["data"]["viewer"]["accounts"][0]
        except (KeyError, IndexError, TypeError) as exc:
            raise FetchError(
                "Malformed GraphQL response", context=context
            ) from exc
        if not isinstance(account, dict):
            raise FetchError("Malformed GraphQL response", context=context)

        samples: List[Sample] = []
        for point in account.get("series") or []:
            if not isinstance(point, dict):
                continue
            dimensions = point.get("dimensions")
            ts = dimensions.get("ts") if isinstance(dimensions, dict) else None
            if not isinstance(ts, str):
                continue
            totals = point.get("sum")
            try:
                visits = int(totals.get("visits") or 0) if isinstance(totals, dict) else 0
                page_views = int(point.get("count") or 0)
            except (TypeError, ValueError) as exc:
                raise FetchError(
                    "Malformed GraphQL response",
                    context={**context, "bucket_key": ts},
                ) from exc
            samples.append(
                Sample(bucket_key=ts, visits=visits, page_views=page_views)
            )
        self.log_request("graphql_response", samples=len(samples), **context)
        return samples


def _format_instant(value: datetime) -> str:
    return value.strftime(HOUR_KEY_FORMAT)
