"""SC2 arcade API client (api.sc2arcade.com)."""
from __future__ import annotations

import logging
from typing import Any

import httpx

import config
from bot.errors import ProfileNotFound, UpstreamUnavailable

logger = logging.getLogger("arcade.api")


def results(payload: Any) -> list[dict]:
    """Endpoints answer with either a bare array or ``{"results": [...]}``."""
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict) and isinstance(payload.get("results"), list):
        return payload["results"]
    raise UpstreamUnavailable("Unexpected response shape from arcade API")


class ArcadeAPIService:
    """Async read-only client for the arcade lobby/profile/map endpoints."""

    def __init__(
        self,
        base_url: str = config.ARCADE_API_URL,
        proxy: str | None = config.PROXY_URL,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        kwargs: dict[str, Any] = {"base_url": base_url.rstrip("/"), "timeout": timeout}
        if transport is not None:
            kwargs["transport"] = transport
        elif proxy:
            kwargs["proxy"] = proxy
        self._client = httpx.AsyncClient(**kwargs)

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        try:
            r = await self._client.get(path, params=params)
        except httpx.HTTPError as e:
            logger.warning("Arcade API request failed: %s %s", path, e)
            raise UpstreamUnavailable(f"Could not reach arcade API: {e}") from e
        if r.status_code == 404:
            raise UpstreamUnavailable(f"{path} not found", status_code=404)
        if r.status_code < 200 or r.status_code >= 300:
            logger.warning("Arcade API %s returned %s", path, r.status_code)
            raise UpstreamUnavailable(f"Arcade API returned {r.status_code}", status_code=r.status_code)
        try:
            return r.json()
        except ValueError as e:
            raise UpstreamUnavailable("Arcade API returned invalid JSON") from e

    async def get_profile(self, region: int, realm: int, profile: int) -> dict:
        """Get a profile. Raises ProfileNotFound on 404."""
        try:
            return await self._get(f"/profiles/{region}/{realm}/{profile}")
        except UpstreamUnavailable as e:
            if e.status_code == 404:
                raise ProfileNotFound(f"{region}-S2-{realm}-{profile}") from e
            raise

    async def get_active_lobbies(self, region: int) -> list[dict]:
        data = await self._get("/lobbies/active", {"regionId": region, "includeMapInfo": "true"})
        return results(data)

    async def get_lobby_history(self, region: int, map_id: int) -> list[dict]:
        data = await self._get(
            "/lobbies/history",
            {
                "regionId": region,
                "mapId": map_id,
                "orderDirection": "desc",
                "includeSlots": "true",
            },
        )
        return results(data)

    async def get_profile_matches(self, region: int, realm: int, profile: int) -> list[dict]:
        data = await self._get(
            f"/profiles/{region}/{realm}/{profile}/matches", {"orderDirection": "desc"}
        )
        return results(data)

    async def get_profile_most_played(self, region: int, realm: int, profile: int) -> list[dict]:
        data = await self._get(f"/profiles/{region}/{realm}/{profile}/most-played")
        return results(data)

    async def get_map_player_base(self, region: int, map_id: int) -> list[dict]:
        data = await self._get(
            f"/maps/{region}/{map_id}/player-base",
            {"orderBy": "lobbiesStarted", "orderDirection": "desc"},
        )
        return results(data)

    async def get_map_details(self, region: int, map_id: int, locale: str = config.PATCH_NOTES_LOCALE) -> dict:
        data = await self._get(f"/maps/{region}/{map_id}/details", {"locale": locale})
        if not isinstance(data, dict):
            raise UpstreamUnavailable("Unexpected response shape from arcade API")
        return data
