"""Tests for the arcade API client."""
import httpx
import pytest

from bot.errors import ErrorKind, ProfileNotFound, UpstreamUnavailable
from bot.services.arcade_api import ArcadeAPIService, results


def test_results_shapes():
    assert results([{"a": 1}]) == [{"a": 1}]
    assert results({"results": [{"a": 1}], "page": {}}) == [{"a": 1}]
    with pytest.raises(UpstreamUnavailable):
        results({"error": "nope"})


@pytest.mark.asyncio
async def test_get_profile(arcade_api, fake_arcade):
    fake_arcade.add("/profiles/2/1/5", {"name": "Bob"})
    assert (await arcade_api.get_profile(2, 1, 5))["name"] == "Bob"


@pytest.mark.asyncio
async def test_get_profile_not_found(arcade_api):
    with pytest.raises(ProfileNotFound) as exc:
        await arcade_api.get_profile(2, 1, 6)
    assert exc.value.kind is ErrorKind.NOT_FOUND


@pytest.mark.asyncio
async def test_other_404_is_upstream_failure(arcade_api):
    with pytest.raises(UpstreamUnavailable) as exc:
        await arcade_api.get_lobby_history(1, 1)
    assert exc.value.status_code == 404


@pytest.mark.asyncio
async def test_server_error(arcade_api, fake_arcade):
    fake_arcade.add("/lobbies/active", {"error": "x"}, status=500)
    with pytest.raises(UpstreamUnavailable) as exc:
        await arcade_api.get_active_lobbies(1)
    assert exc.value.status_code == 500
    assert exc.value.kind is ErrorKind.UPSTREAM_UNAVAILABLE


@pytest.mark.asyncio
async def test_connection_error(arcade_api, fake_arcade):
    fake_arcade.add("/lobbies/active", status=600)
    with pytest.raises(UpstreamUnavailable) as exc:
        await arcade_api.get_active_lobbies(1)
    assert exc.value.status_code is None
    assert isinstance(exc.value.__cause__, httpx.ConnectError)


@pytest.mark.asyncio
async def test_invalid_json():
    api = ArcadeAPIService(
        base_url="https://arcade.test",
        transport=httpx.MockTransport(lambda request: httpx.Response(200, text="<html>")),
    )
    try:
        with pytest.raises(UpstreamUnavailable):
            await api.get_active_lobbies(1)
    finally:
        await api.close()
