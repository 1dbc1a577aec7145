"""Domain-level interfaces for the collaborators the aggregation engine consumes."""

from __future__ import annotations

from typing import List, Protocol, Sequence

from .models import BucketGrid, Period, Sample, Settings, Site


class ISampleFetcher(Protocol):
    """Retrieves one site's sparse, bucketed samples in a single attempt."""

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
        """Return the samples inside ``window`` or raise a ``FetchError``."""


class ISiteDirectory(Protocol):
    """Lists the Web Analytics sites that belong to an account."""

    async def list_sites(self, token: str, account_id: str) -> List[Site]:
        """Return sites in directory order or raise ``SiteDirectoryError``."""


class ISettingsStore(Protocol):
    """Durable storage for user settings."""

    def load(self) -> Settings:
        """Return stored settings, or defaults when nothing is stored yet."""

    def save(self, settings: Settings) -> None:
        """Persist the supplied settings."""
