"""Site directory adapter for the Cloudflare Web Analytics site list."""

from __future__ import annotations

from typing import Any, Dict, List

import httpx

from flare_stats.domain.exceptions import SiteDirectoryError
from flare_stats.domain.models import Site

from .base import BaseCloudflareClient

SITE_LIST_PATH = "/client/v4/accounts/{account_id}/rum/site_info/list"


class CloudflareSiteDirectory(BaseCloudflareClient):
    """Lists an account's Web Analytics sites in the order the API returns them."""

    async def list_sites(self, token: str, account_id: str) -> List[Site]:
        context = {"account_id": account_id}
        self.log_request("site_list_request", **context)
        try:
            http_response = await self._http.get(
                self.config.url(SITE_LIST_PATH.format(account_id=account_id)),
                headers=self.auth_headers(token),
                timeout=self.config.timeout,
            )
        except httpx.HTTPError as exc:
            raise SiteDirectoryError(
                context={**context, "error": str(exc)}
            ) from exc

        self.raise_for_status(
            http_response, context, default_error=SiteDirectoryError
        )

        try:
            body = http_response.json()
        except ValueError as exc:
            raise SiteDirectoryError(
                "Invalid response: body is not JSON", context=context
            ) from exc

        entries = body.get("result") if isinstance(body, dict) else None
        if not isinstance(entries, list):
            raise SiteDirectoryError(
                "Invalid response: missing result array", context=context
            )
        return [site for site in map(_to_site, entries) if site is not None]


def _to_site(entry: Dict[str, Any]) -> Site | None:
    if not isinstance(entry, dict):
        return None
    ruleset = entry.get("ruleset")
    name = ruleset.get("zone_name") if isinstance(ruleset, dict) else None
    tag = entry.get("site_tag")
    if not isinstance(name, str) or not isinstance(tag, str):
        return None
    return Site(name=name, site_id=tag)
