"""Basic aggregation example using the built-in DI container."""

import asyncio

from flare_stats.core.container import DIContainer
from flare_stats.utils.formatting import format_number, rank_by_visits


async def main() -> None:
    service = DIContainer.create_service()

    result = await service.fetch_analytics()
    for site in rank_by_visits(result.sites):
        print(site.name, format_number(site.visits), format_number(site.page_views))
    for failure in result.failures:
        print("Unavailable:", failure.site.name, failure.error.message)


if __name__ == "__main__":
    asyncio.run(main())
