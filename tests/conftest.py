"""
Pytest configuration and shared fixtures.
"""
import pytest
import pytest_asyncio
from datetime import datetime, timezone

from dinobot.config import RuleConfig
from dinobot.core.interfaces import IBotPoster
from dinobot.db import connection

MEMORY_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


class FakePoster(IBotPoster):
    """Records posts and answers with a fixed status code"""

    def __init__(self, status_code: int = 202):
        self.status_code = status_code
        self.posts = []

    async def post(self, post):
        self.posts.append(post)
        return self.status_code


class FixedRandom:
    """Random source that always returns the same value"""

    def __init__(self, value: float):
        self.value = value
        self.calls = 0

    def random(self):
        self.calls += 1
        return self.value


@pytest.fixture
def rule_config():
    return RuleConfig()


@pytest.fixture
def now():
    return datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


@pytest_asyncio.fixture
async def db_session():
    """
    Fresh in-memory database per test.

    StaticPool keeps the single in-memory connection alive for the test.
    """
    await connection.init_db(MEMORY_DATABASE_URL)
    async with connection.async_session_maker() as session:
        yield session
    await connection.close_db()
