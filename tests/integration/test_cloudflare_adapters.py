import json
from datetime import datetime, timezone

import httpx
import pytest

from flare_stats.aggregation.grid import generate_grid
from flare_stats.cloudflare.base import CloudflareConfig
from flare_stats.cloudflare.graphql_fetcher import CloudflareSampleFetcher
from flare_stats.cloudflare.site_directory import CloudflareSiteDirectory
from flare_stats.domain.exceptions import (
    FetchAuthError,
    FetchError,
    FetchRateLimitError,
    FetchTimeoutError,
    FetchUnavailableError,
    SiteDirectoryError,
)
from flare_stats.domain.models import Period, Sample

NOW = datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)
CONFIG = CloudflareConfig(base_url="https://api.cloudflare.test")


def _build_client(handler):
    transport = httpx.MockTransport(handler)
    return httpx.AsyncClient(transport=transport)


def _series_body(points):
    return {"data": {"viewer": {"accounts": [{"series": points}]}}, "errors": None}


async def _fetch(fetcher, period=Period.LAST_24_HOURS, exclude_bots=True):
    return await fetcher.fetch(
        "site-tag",
        period,
        exclude_bots,
        "cf-token",
        "acct-1",
        window=generate_grid(period, NOW),
    )


@pytest.mark.asyncio
async def test_fetcher_maps_series_to_samples():
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["url"] = str(request.url)
        captured["headers"] = dict(request.headers)
        captured["body"] = json.loads(request.content)
        return httpx.Response(
            200,
            json=_series_body(
                [
                    {"count": 9, "sum": {"visits": 5}, "dimensions": {"ts": "2024-01-15T09:00:00Z"}},
                    {"count": 2, "sum": {"visits": 1}, "dimensions": {"ts": "2024-01-15T10:00:00Z"}},
                    {"count": 4, "sum": {"visits": 4}, "dimensions": {}},
                ]
            ),
        )

    fetcher = CloudflareSampleFetcher(_build_client(handler), CONFIG)
    samples = await _fetch(fetcher)

    assert samples == [
        Sample(bucket_key="2024-01-15T09:00:00Z", visits=5, page_views=9),
        Sample(bucket_key="2024-01-15T10:00:00Z", visits=1, page_views=2),
    ]
    assert captured["url"] == "https://api.cloudflare.test/client/v4/graphql"
    assert captured["headers"]["authorization"] == "Bearer cf-token"

    body = captured["body"]
    assert "datetimeHour" in body["query"]
    assert body["variables"]["accountTag"] == "acct-1"
    assert body["variables"]["filter"]["AND"] == [
        {"datetime_geq": "2024-01-14T11:00:00Z", "datetime_leq": "2024-01-15T10:30:00Z"},
        {"siteTag": "site-tag"},
        {"bot": 0},
    ]


@pytest.mark.asyncio
async def test_fetcher_daily_query_without_bot_filter():
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, json=_series_body([]))

    fetcher = CloudflareSampleFetcher(_build_client(handler), CONFIG)
    samples = await _fetch(fetcher, period=Period.LAST_7_DAYS, exclude_bots=False)

    assert samples == []
    body = captured["body"]
    assert "ts: date" in body["query"]
    filters = body["variables"]["filter"]["AND"]
    assert {"bot": 0} not in filters
    assert filters[0]["datetime_geq"] == "2024-01-09T00:00:00Z"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status,error_type",
    [
        (401, FetchAuthError),
        (403, FetchAuthError),
        (429, FetchRateLimitError),
        (503, FetchUnavailableError),
        (400, FetchError),
    ],
)
async def test_fetcher_maps_http_status(status, error_type):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, json={"errors": [{"message": "nope"}]})

    fetcher = CloudflareSampleFetcher(_build_client(handler), CONFIG)

    with pytest.raises(error_type) as exc_info:
        await _fetch(fetcher)
    assert exc_info.value.context["site_id"] == "site-tag"
    assert exc_info.value.context["status_code"] == status


@pytest.mark.asyncio
async def test_fetcher_raises_on_graphql_errors():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"data": None, "errors": [{"message": "bad filter"}]})

    fetcher = CloudflareSampleFetcher(_build_client(handler), CONFIG)

    with pytest.raises(FetchError, match="GraphQL errors"):
        await _fetch(fetcher)


@pytest.mark.asyncio
async def test_fetcher_raises_on_malformed_body():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"data": {"viewer": {"accounts": []}}})

    fetcher = CloudflareSampleFetcher(_build_client(handler), CONFIG)

    with pytest.raises(FetchError, match="Malformed"):
        await _fetch(fetcher)


@pytest.mark.asyncio
async def test_fetcher_maps_timeouts_and_transport_errors():
    def timeout_handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    def connect_handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(FetchTimeoutError):
        await _fetch(CloudflareSampleFetcher(_build_client(timeout_handler), CONFIG))
    with pytest.raises(FetchUnavailableError):
        await _fetch(CloudflareSampleFetcher(_build_client(connect_handler), CONFIG))


@pytest.mark.asyncio
async def test_site_directory_lists_sites_in_order():
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["url"] = str(request.url)
        captured["headers"] = dict(request.headers)
        return httpx.Response(
            200,
            json={
                "result": [
                    {"site_tag": "t1", "ruleset": {"zone_name": "zeta.com"}},
                    {"site_tag": "t2", "ruleset": {}},
                    {"ruleset": {"zone_name": "no-tag.com"}},
                    {"site_tag": "t3", "ruleset": {"zone_name": "alpha.com"}},
                ]
            },
        )

    directory = CloudflareSiteDirectory(_build_client(handler), CONFIG)
    sites = await directory.list_sites("cf-token", "acct-1")

    assert [(site.name, site.site_id) for site in sites] == [
        ("zeta.com", "t1"),
        ("alpha.com", "t3"),
    ]
    assert captured["url"] == (
        "https://api.cloudflare.test/client/v4/accounts/acct-1/rum/site_info/list"
    )
    assert captured["headers"]["authorization"] == "Bearer cf-token"


@pytest.mark.asyncio
async def test_site_directory_raises_on_http_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(403, text="forbidden")

    directory = CloudflareSiteDirectory(_build_client(handler), CONFIG)

    with pytest.raises(SiteDirectoryError) as exc_info:
        await directory.list_sites("cf-token", "acct-1")
    assert "API error 403" in str(exc_info.value)
    assert exc_info.value.context["body"] == "forbidden"


@pytest.mark.asyncio
async def test_site_directory_requires_result_array():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"success": True})

    directory = CloudflareSiteDirectory(_build_client(handler), CONFIG)

    with pytest.raises(SiteDirectoryError, match="missing result array"):
        await directory.list_sites("cf-token", "acct-1")


@pytest.mark.asyncio
async def test_fetcher_tolerates_non_object_dimensions_and_sum():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json=_series_body(
                [
                    {"count": 3, "sum": {"visits": 1}, "dimensions": ["2024-01-15T08:00:00Z"]},
                    {"count": 6, "sum": [5], "dimensions": {"ts": "2024-01-15T09:00:00Z"}},
                ]
            ),
        )

    fetcher = CloudflareSampleFetcher(_build_client(handler), CONFIG)

    assert await _fetch(fetcher) == [
        Sample(bucket_key="2024-01-15T09:00:00Z", visits=0, page_views=6)
    ]


@pytest.mark.asyncio
async def test_fetcher_rejects_non_numeric_counts():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json=_series_body(
                [{"count": "many", "sum": {"visits": 1}, "dimensions": {"ts": "2024-01-15T09:00:00Z"}}]
            ),
        )

    fetcher = CloudflareSampleFetcher(_build_client(handler), CONFIG)

    with pytest.raises(FetchError, match="Malformed GraphQL response"):
        await _fetch(fetcher)
