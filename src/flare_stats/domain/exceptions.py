"""Exception hierarchy for analytics aggregation failures."""

from __future__ import annotations

from typing import Any, Mapping, Sequence, TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from .models import SiteFailure


class FlareStatsError(Exception):
    """Base class for all domain-level errors in flare-stats."""

    default_message = "Flare stats error occurred"

    def __init__(
        self, message: str | None = None, *, context: Mapping[str, Any] | None = None
    ):
        self.message = message or self.default_message
        self.context: Mapping[str, Any] = dict(context or {})
        formatted = self._format_message()
        super().__init__(formatted)

    def _format_message(self) -> str:
        if self.context:
            return f"{self.message} | context={self.context}"
        return self.message


class ConfigurationInvalidError(FlareStatsError):
    """Credentials or account identifier are missing."""

    default_message = "Please configure API token and Account ID in settings"


class SettingsStoreError(FlareStatsError):
    """Persisted settings could not be read or written."""

    default_message = "Settings store error"


class SiteDirectoryError(FlareStatsError):
    """Listing the sites of an account failed."""

    default_message = "Failed to list sites"


class FetchError(FlareStatsError):
    """A single site's analytics fetch failed (network, auth, limits, payload)."""

    default_message = "Failed to fetch site analytics"


class FetchAuthError(FetchError):
    """Token was rejected by the analytics API."""

    default_message = "Analytics API authentication failed"


class FetchRateLimitError(FetchError):
    """Analytics API refused the request due to rate limiting."""

    default_message = "Analytics API rate limit exceeded"


class FetchUnavailableError(FetchError):
    """Analytics API is down or unreachable."""

    default_message = "Analytics API is unavailable"


class FetchTimeoutError(FetchError):
    """Analytics API did not answer within the configured timeout."""

    default_message = "Analytics API request timed out"


class MalformedSampleSetError(FlareStatsError):
    """Samples returned for a site cannot be merged onto the bucket grid."""

    default_message = "Malformed sample set"


class AllSitesFailedError(FlareStatsError):
    """Every dispatched site failed; no analytics could be produced."""

    default_message = "Failed to fetch analytics for every site"

    def __init__(
        self,
        failures: Sequence["SiteFailure"],
        message: str | None = None,
        *,
        context: Mapping[str, Any] | None = None,
    ):
        self.failures: tuple["SiteFailure", ...] = tuple(failures)
        if message is None and self.failures:
            first = self.failures[0]
            message = (
                f"{self.default_message}: {first.site.name}: {first.error.message}"
            )
        merged = {"failed_sites": len(self.failures), **dict(context or {})}
        super().__init__(message, context=merged)
