"""
Registration repository implementation using SQLAlchemy.

Handles conversion between BotRegistration (domain) and
BotRegistrationModel (ORM). Callers own the transaction for saves (the repository only flushes).
Cursor updates commit immediately.
"""

from typing import List, Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from dinobot.core.interfaces import IRegistrationRepository
from dinobot.db.models import BotRegistrationModel
from dinobot.domain.entities import BotRegistration

logger = logging.getLogger(__name__)


class RegistrationRepository(IRegistrationRepository):
    """SQLAlchemy implementation of IRegistrationRepository"""

    def __init__(self, db_session: AsyncSession):
        self._db = db_session

    async def list_all(self) -> List[BotRegistration]:
        result = await self._db.execute(
            select(BotRegistrationModel).order_by(BotRegistrationModel.created_at)
        )
        return [self._from_orm(row) for row in result.scalars().all()]

    async def list_for_user(self, user_id: str) -> List[BotRegistration]:
        result = await self._db.execute(
            select(BotRegistrationModel)
            .where(BotRegistrationModel.user_id == user_id)
            .order_by(BotRegistrationModel.created_at)
        )
        return [self._from_orm(row) for row in result.scalars().all()]

    async def get_by_bot_id(self, bot_id: str) -> Optional[BotRegistration]:
        db_registration = await self._db.get(BotRegistrationModel, bot_id)
        if db_registration is None:
            return None
        return self._from_orm(db_registration)

    async def save(self, registration: BotRegistration) -> BotRegistration:
        """
        Insert a registration, or replace the stored one with the same bot ID.

        Raises:
            ValueError: If bot_id is empty
        """
        if not registration.bot_id:
            raise ValueError("bot_id is required")

        try:
            await self._db.merge(self._to_orm(registration))
            await self._db.flush()
        except Exception as e:
            logger.error(f"Failed to save registration {registration.bot_id}: {e}")
            raise

        logger.info(
            f"💾 Saved registration {registration.bot_id} "
            f"(group {registration.group_id}, term '{registration.search_term}')"
        )
        return registration

    async def update_cursor(self, bot_id: str, most_recent_item_id: str) -> bool:
        db_registration = await self._db.get(BotRegistrationModel, bot_id)
        if db_registration is None:
            logger.warning(f"⚠️ No registration for bot {bot_id}, cursor not moved")
            return False

        db_registration.most_recent_item_id = most_recent_item_id
        # Committed right away so a pass killed later keeps this cursor
        await self._db.commit()
        logger.debug(f"Cursor for bot {bot_id} moved to {most_recent_item_id}")
        return True

    # ============================================
    # Conversion Methods (ORM ↔ Domain)
    # ============================================

    @staticmethod
    def _to_orm(registration: BotRegistration) -> BotRegistrationModel:
        return BotRegistrationModel(
            bot_id=registration.bot_id,
            user_id=registration.user_id,
            group_id=registration.group_id,
            search_term=registration.search_term,
            most_recent_item_id=registration.most_recent_item_id,
        )

    @staticmethod
    def _from_orm(db_registration: BotRegistrationModel) -> BotRegistration:
        return BotRegistration(
            bot_id=db_registration.bot_id,
            user_id=db_registration.user_id,
            group_id=db_registration.group_id,
            search_term=db_registration.search_term,
            most_recent_item_id=db_registration.most_recent_item_id,
        )
