import httpx
import pytest

from flare_stats.core.config import EngineConfig
from flare_stats.core.container import DIContainer
from flare_stats.core.service import AnalyticsService
from flare_stats.domain.models import Settings


@pytest.mark.asyncio
async def test_create_service_wires_dependencies(tmp_path):
    config = EngineConfig(max_concurrency=3, settings_path=str(tmp_path / "s.json"))
    async with httpx.AsyncClient() as client:
        service = DIContainer.create_service(config=config, http_client=client)

    assert isinstance(service, AnalyticsService)
    assert service._coordinator._max_concurrency == 3  # type: ignore[attr-defined]
    assert service.get_settings() == Settings()


def test_create_service_honours_settings_path_override(tmp_path):
    path = tmp_path / "override.json"
    service = DIContainer.create_service(config=EngineConfig(), settings_path=path)
    service.save_settings(Settings(token="t", account_id="a"))

    assert path.exists()


def test_create_custom_service_uses_supplied_components():
    class _Store:
        def load(self):
            return Settings(token="t", account_id="a")

        def save(self, settings):
            pass

    class _Directory:
        async def list_sites(self, token, account_id):
            return []

    class _Fetcher:
        async def fetch(self, *args, **kwargs):
            return []

    service = DIContainer.create_custom_service(
        settings_store=_Store(),
        site_directory=_Directory(),
        fetcher=_Fetcher(),
    )

    assert service.get_settings().token == "t"


def test_build_http_client_uses_configured_timeout():
    client = DIContainer.build_http_client(EngineConfig(timeout_seconds=7))
    assert client.timeout.read == 7
