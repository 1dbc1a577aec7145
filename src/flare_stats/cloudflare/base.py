"""Shared behavior for Cloudflare API adapters."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Type

import httpx

from flare_stats.domain.exceptions import (
    FetchAuthError,
    FetchError,
    FetchRateLimitError,
    FetchUnavailableError,
    FlareStatsError,
)

DEFAULT_BASE_URL = "https://api.cloudflare.com"


@dataclass(frozen=True)
class CloudflareConfig:
    """Connection values shared by all Cloudflare adapters."""

    base_url: str = DEFAULT_BASE_URL
    timeout: float = 30.0

    def __post_init__(self) -> None:
        if not self.base_url:
            raise ValueError("base_url must be provided")
        if self.timeout <= 0:
            raise ValueError("timeout must be greater than zero")

    def url(self, path: str) -> str:
        return f"{self.base_url.rstrip('/')}{path}"


class BaseCloudflareClient:
    """Holds the HTTP client and maps HTTP failures onto domain errors.

    Every call is a single attempt; retrying is left to callers.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        config: Optional[CloudflareConfig] = None,
        *,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._http = http_client
        self.config = config or CloudflareConfig()
        self.logger = logger or logging.getLogger(
            f"{__name__}.{self.__class__.__name__}"
        )

    @staticmethod
    def auth_headers(token: str) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }

    def raise_for_status(
        self,
        http_response: httpx.Response,
        context: Dict[str, Any],
        *,
        default_error: Type[FlareStatsError] = FetchError,
    ) -> None:
        """Raise the domain error matching a non-2xx response."""

        status = http_response.status_code
        if 200 <= status < 300:
            return
        details = {**context, "status_code": status, "body": _body_preview(http_response)}
        if default_error is FetchError:
            if status in (401, 403):
                raise FetchAuthError(context=details)
            if status == 429:
                raise FetchRateLimitError(context=details)
            if status >= 500:
                raise FetchUnavailableError(context=details)
        raise default_error(f"API error {status}", context=details)

    def log_request(self, event: str, **fields: Any) -> None:
        self.logger.debug(
            event, extra={"client": self.__class__.__name__, **fields}
        )


def _body_preview(http_response: httpx.Response, limit: int = 500) -> str:
    try:
        return http_response.text[:limit]
    except (httpx.ResponseNotRead, UnicodeDecodeError):  # pragma: no cover
        return ""
