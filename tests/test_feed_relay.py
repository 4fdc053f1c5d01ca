"""
Tests for the feed relay job with fake feed, poster and repository.
"""
from datetime import datetime, timedelta, timezone

import pytest

from dinobot.clients.twitter_client import FeedAuthorizationError, TwitterAPIError
from dinobot.core.interfaces import IRegistrationRepository
from dinobot.domain.entities import BotRegistration, FeedItem
from dinobot.services.feed_relay import FeedRelay
from tests.conftest import FakePoster

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


class InMemoryRegistrations(IRegistrationRepository):
    def __init__(self, registrations):
        self._registrations = {r.bot_id: r for r in registrations}
        self.cursor_updates = []

    async def list_all(self):
        return list(self._registrations.values())

    async def list_for_user(self, user_id):
        return [r for r in self._registrations.values() if r.user_id == user_id]

    async def get_by_bot_id(self, bot_id):
        return self._registrations.get(bot_id)

    async def save(self, registration):
        self._registrations[registration.bot_id] = registration
        return registration

    async def update_cursor(self, bot_id, most_recent_item_id):
        self.cursor_updates.append((bot_id, most_recent_item_id))
        return bot_id in self._registrations


class FakeFeed:
    """Search results keyed by search term; a term mapped to an exception raises it"""

    def __init__(self, results, auth_error=None):
        self.results = results
        self.auth_error = auth_error
        self.searches = []

    async def authenticate(self, app_key, app_secret):
        if self.auth_error:
            raise self.auth_error
        return "bearer"

    async def search(self, token, search_term, since_id=None):
        self.searches.append((search_term, since_id))
        result = self.results.get(search_term, [])
        if isinstance(result, Exception):
            raise result
        return result


class SequencePoster(FakePoster):
    """Answers with the given status codes in order"""

    def __init__(self, statuses):
        super().__init__()
        self._statuses = list(statuses)

    async def post(self, post):
        self.posts.append(post)
        return self._statuses.pop(0)


def _item(item_id, minutes_ago):
    return FeedItem(
        id=item_id,
        text=f"tweet {item_id}",
        author_handle="rex",
        created_at=NOW - timedelta(minutes=minutes_ago),
    )


def _registration(bot_id, term, cursor=None):
    return BotRegistration(bot_id=bot_id, user_id="u1", group_id="g1", search_term=term,
                           most_recent_item_id=cursor)


def _relay(repo, feed, poster):
    return FeedRelay(repo, feed, poster, "key", "secret", clock=lambda: NOW)


@pytest.mark.asyncio
async def test_posts_urls_and_moves_cursor():
    repo = InMemoryRegistrations([_registration("bot_1", "dinos", cursor="5")])
    feed = FakeFeed({"dinos": [_item("7", 3), _item("9", 1)]})
    poster = FakePoster()

    report = await _relay(repo, feed, poster).run()

    assert report.posted == 2
    assert feed.searches == [("dinos", "5")]
    assert [p.text for p in poster.posts] == [
        "https://twitter.com/rex/status/7",
        "https://twitter.com/rex/status/9",
    ]
    assert repo.cursor_updates == [("bot_1", "9")]


@pytest.mark.asyncio
async def test_stops_on_first_failed_post_and_keeps_posted_cursor():
    repo = InMemoryRegistrations([_registration("bot_1", "dinos", cursor="5")])
    feed = FakeFeed({"dinos": [_item("7", 3), _item("8", 2), _item("9", 1)]})
    poster = SequencePoster([202, 503])

    report = await _relay(repo, feed, poster).run()

    assert report.posted == 1
    assert len(poster.posts) == 2
    assert repo.cursor_updates == [("bot_1", "7")]


@pytest.mark.asyncio
async def test_nothing_new_leaves_cursor_alone():
    repo = InMemoryRegistrations([_registration("bot_1", "dinos", cursor="5")])
    feed = FakeFeed({"dinos": []})
    poster = FakePoster()

    await _relay(repo, feed, poster).run()

    assert poster.posts == []
    assert repo.cursor_updates == []


@pytest.mark.asyncio
async def test_failure_in_one_registration_does_not_stop_others():
    repo = InMemoryRegistrations([
        _registration("bot_1", "broken"),
        _registration("bot_2", "dinos"),
    ])
    feed = FakeFeed({
        "broken": TwitterAPIError("Search failed with status 500", status_code=500),
        "dinos": [_item("9", 1)],
    })
    poster = FakePoster()

    report = await _relay(repo, feed, poster).run()

    assert report.failed_bots == ["bot_1"]
    assert report.posted == 1
    assert repo.cursor_updates == [("bot_2", "9")]


@pytest.mark.asyncio
async def test_authorization_failure_aborts_run():
    repo = InMemoryRegistrations([_registration("bot_1", "dinos")])
    feed = FakeFeed({}, auth_error=FeedAuthorizationError("rejected", status_code=403))

    with pytest.raises(FeedAuthorizationError):
        await _relay(repo, feed, FakePoster()).run()

    assert feed.searches == []


@pytest.mark.asyncio
async def test_search_authorization_failure_is_surfaced():
    repo = InMemoryRegistrations([
        _registration("bot_1", "dinos"),
        _registration("bot_2", "more dinos"),
    ])
    feed = FakeFeed({"dinos": FeedAuthorizationError("token rejected", status_code=401)})

    with pytest.raises(FeedAuthorizationError):
        await _relay(repo, feed, FakePoster()).run()

    assert feed.searches == [("dinos", None)]


@pytest.mark.asyncio
async def test_no_registrations_skips_authentication():
    feed = FakeFeed({}, auth_error=FeedAuthorizationError("should not be called"))

    report = await _relay(InMemoryRegistrations([]), feed, FakePoster()).run()

    assert report.registrations == 0


@pytest.mark.asyncio
async def test_cursor_saved_before_next_registration_runs():
    repo = InMemoryRegistrations([
        _registration("bot_1", "dinos"),
        _registration("bot_2", "raptors"),
    ])
    updates_seen_by_second_search = []

    class RecordingFeed(FakeFeed):
        async def search(self, token, search_term, since_id=None):
            if search_term == "raptors":
                updates_seen_by_second_search.extend(repo.cursor_updates)
            return await super().search(token, search_term, since_id)

    feed = RecordingFeed({"dinos": [_item("9", 1)], "raptors": [_item("10", 1)]})

    await _relay(repo, feed, FakePoster()).run()

    assert updates_seen_by_second_search == [("bot_1", "9")]
