"""
Integration tests for RegistrationRepository.

These tests verify the repository works correctly with a real (in-memory) database.
"""
import pytest

from dinobot.db import connection
from dinobot.domain.entities import BotRegistration
from dinobot.repositories.registration_repository import RegistrationRepository


def _registration(bot_id="bot_1", user_id="u1", term="dinosaurs", cursor=None):
    return BotRegistration(
        bot_id=bot_id,
        user_id=user_id,
        group_id="g1",
        search_term=term,
        most_recent_item_id=cursor,
    )


@pytest.mark.asyncio
async def test_save_and_retrieve_registration(db_session):
    repo = RegistrationRepository(db_session)

    await repo.save(_registration())
    retrieved = await repo.get_by_bot_id("bot_1")

    assert retrieved == _registration()


@pytest.mark.asyncio
async def test_get_nonexistent_registration(db_session):
    repo = RegistrationRepository(db_session)

    assert await repo.get_by_bot_id("does_not_exist") is None


@pytest.mark.asyncio
async def test_save_replaces_existing_registration(db_session):
    repo = RegistrationRepository(db_session)

    await repo.save(_registration(term="dinosaurs"))
    await repo.save(_registration(term="raptors", cursor="42"))

    registrations = await repo.list_all()
    assert len(registrations) == 1
    assert registrations[0].search_term == "raptors"
    assert registrations[0].most_recent_item_id == "42"


@pytest.mark.asyncio
async def test_save_requires_bot_id(db_session):
    repo = RegistrationRepository(db_session)

    with pytest.raises(ValueError):
        await repo.save(_registration(bot_id=""))


@pytest.mark.asyncio
async def test_list_for_user(db_session):
    repo = RegistrationRepository(db_session)
    await repo.save(_registration(bot_id="bot_1", user_id="u1"))
    await repo.save(_registration(bot_id="bot_2", user_id="u2"))
    await repo.save(_registration(bot_id="bot_3", user_id="u1"))

    bot_ids = {r.bot_id for r in await repo.list_for_user("u1")}

    assert bot_ids == {"bot_1", "bot_3"}


@pytest.mark.asyncio
async def test_update_cursor(db_session):
    repo = RegistrationRepository(db_session)
    await repo.save(_registration())

    assert await repo.update_cursor("bot_1", "1050118621198921728") is True
    assert (await repo.get_by_bot_id("bot_1")).most_recent_item_id == "1050118621198921728"


@pytest.mark.asyncio
async def test_update_cursor_unknown_bot(db_session):
    repo = RegistrationRepository(db_session)

    assert await repo.update_cursor("missing", "1") is False


@pytest.mark.asyncio
async def test_session_scope_commits_cursor_moves(db_session):
    repo = RegistrationRepository(db_session)
    await repo.save(_registration())
    await db_session.commit()

    with pytest.raises(RuntimeError):
        async with connection.session_scope() as session:
            await RegistrationRepository(session).update_cursor("bot_1", "77")
            raise RuntimeError("relay blew up")

    async with connection.session_scope() as session:
        stored = await RegistrationRepository(session).get_by_bot_id("bot_1")

    assert stored.most_recent_item_id == "77"


@pytest.mark.asyncio
async def test_update_cursor_survives_rollback(db_session):
    repo = RegistrationRepository(db_session)
    await repo.save(_registration())
    await db_session.commit()

    await repo.update_cursor("bot_1", "88")
    await db_session.rollback()

    assert (await repo.get_by_bot_id("bot_1")).most_recent_item_id == "88"
