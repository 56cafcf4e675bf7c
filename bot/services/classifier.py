"""Profanity classifier client."""
from __future__ import annotations

import logging
from typing import Any

import httpx

import config

logger = logging.getLogger("arcade.classifier")

_FLAG_KEYS = ("is_sensitive", "isSensitive", "flag")


class ClassifierUnavailable(Exception):
    """Classifier could not be reached or gave an answer we can't read."""


def parse_verdict(payload: Any) -> bool:
    """Normalize a classifier response to a boolean.

    Older deployments answer ``{"status": "forbidden" | "ok"}``, newer ones a
    numeric flag, optionally nested under ``data``.
    """
    if not isinstance(payload, dict):
        raise ClassifierUnavailable(f"Unexpected classifier payload: {payload!r}")
    status = payload.get("status")
    if isinstance(status, str):
        return status.strip().lower() == "forbidden"
    for source in (payload, payload.get("data")):
        if not isinstance(source, dict):
            continue
        for key in _FLAG_KEYS:
            value = source.get(key)
            if isinstance(value, bool):
                return value
            if isinstance(value, (int, float)):
                return value != 0
    raise ClassifierUnavailable(f"No verdict in classifier payload: {payload!r}")


class ClassifierClient:
    """Sends one text per request and returns True when it is sensitive."""

    def __init__(
        self,
        url: str = config.CLASSIFIER_URL,
        proxy: str | None = config.PROXY_URL,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._url = url
        kwargs: dict[str, Any] = {"timeout": timeout}
        if transport is not None:
            kwargs["transport"] = transport
        elif proxy:
            kwargs["proxy"] = proxy
        self._client = httpx.AsyncClient(**kwargs)

    async def close(self) -> None:
        await self._client.aclose()

    async def classify(self, text: str) -> bool:
        try:
            r = await self._client.post(self._url, json={"text": text})
        except httpx.HTTPError as e:
            raise ClassifierUnavailable(str(e)) from e
        if r.status_code < 200 or r.status_code >= 300:
            raise ClassifierUnavailable(f"Classifier returned {r.status_code}")
        try:
            payload = r.json()
        except ValueError as e:
            raise ClassifierUnavailable("Classifier returned invalid JSON") from e
        return parse_verdict(payload)
