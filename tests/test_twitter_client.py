"""
Tests for TwitterSearchClient using httpx.MockTransport.
"""
import base64
from datetime import datetime, timezone

import httpx
import pytest

from dinobot.clients.twitter_client import (
    FeedAuthorizationError,
    TwitterAPIError,
    TwitterSearchClient,
    feed_item_from_status,
    parse_created_at,
)
from dinobot.config import Settings


SAMPLE_STATUS = {
    "id_str": "1050118621198921728",
    "text": "To make room for more expression, we will now count all emojis as equal",
    "created_at": "Wed Oct 10 20:19:24 +0000 2018",
    "retweet_count": 2,
    "user": {"screen_name": "TwitterAPI"},
    "retweeted_status": {
        "id_str": "1050000000000000000",
        "text": "original",
        "created_at": "Wed Oct 10 18:00:00 +0000 2018",
        "user": {"screen_name": "Twitter"},
    },
}


def _client(handler):
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return http_client, TwitterSearchClient(http_client=http_client, settings=Settings())


def test_parse_created_at():
    assert parse_created_at("Wed Oct 10 20:19:24 +0000 2018") == datetime(
        2018, 10, 10, 20, 19, 24, tzinfo=timezone.utc
    )


def test_parse_created_at_garbage_sorts_oldest():
    assert parse_created_at("yesterday") == datetime.min.replace(tzinfo=timezone.utc)
    assert parse_created_at(None) == datetime.min.replace(tzinfo=timezone.utc)


def test_feed_item_from_status_with_retweet():
    item = feed_item_from_status(SAMPLE_STATUS)

    assert item.id == "1050118621198921728"
    assert item.author_handle == "TwitterAPI"
    assert item.retweet_count == 2
    assert item.retweeted_original.id == "1050000000000000000"
    assert item.url == "https://twitter.com/TwitterAPI/status/1050118621198921728"


def test_feed_item_without_author_is_dropped():
    assert feed_item_from_status({"id_str": "1", "text": "x"}) is None


@pytest.mark.asyncio
async def test_authenticate_uses_basic_auth():
    seen = {}

    def handler(request):
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = request.content.decode()
        return httpx.Response(200, json={"token_type": "bearer", "access_token": "AAAA"})

    http_client, client = _client(handler)
    async with http_client:
        token = await client.authenticate("key", "sec ret")

    expected = base64.b64encode(b"key:sec%20ret").decode()
    assert token == "AAAA"
    assert seen["auth"] == f"Basic {expected}"
    assert seen["body"] == "grant_type=client_credentials"


@pytest.mark.asyncio
async def test_authenticate_rejected():
    http_client, client = _client(lambda request: httpx.Response(403))
    async with http_client:
        with pytest.raises(FeedAuthorizationError):
            await client.authenticate("key", "secret")


@pytest.mark.asyncio
async def test_authenticate_without_credentials():
    http_client, client = _client(lambda request: httpx.Response(200))
    async with http_client:
        with pytest.raises(FeedAuthorizationError):
            await client.authenticate("", "")


@pytest.mark.asyncio
async def test_search_params_and_parsing():
    seen = {}

    def handler(request):
        seen["params"] = dict(request.url.params)
        seen["auth"] = request.headers["Authorization"]
        return httpx.Response(200, json={"statuses": [SAMPLE_STATUS, {"id_str": "2"}]})

    http_client, client = _client(handler)
    async with http_client:
        items = await client.search("AAAA", "dinosaurs", since_id="100")

    assert seen["params"] == {
        "q": "dinosaurs",
        "result_type": "recent",
        "count": "100",
        "since_id": "100",
    }
    assert seen["auth"] == "Bearer AAAA"
    assert [item.id for item in items] == ["1050118621198921728"]


@pytest.mark.asyncio
async def test_search_without_cursor_omits_since_id():
    seen = {}

    def handler(request):
        seen["params"] = dict(request.url.params)
        return httpx.Response(200, json={"statuses": []})

    http_client, client = _client(handler)
    async with http_client:
        assert await client.search("AAAA", "dinosaurs", since_id="  ") == []

    assert "since_id" not in seen["params"]


@pytest.mark.asyncio
async def test_search_unauthorized_and_failures():
    http_client, client = _client(lambda request: httpx.Response(401))
    async with http_client:
        with pytest.raises(FeedAuthorizationError):
            await client.search("bad", "dinosaurs")

    http_client, client = _client(lambda request: httpx.Response(500))
    async with http_client:
        with pytest.raises(TwitterAPIError):
            await client.search("AAAA", "dinosaurs")
