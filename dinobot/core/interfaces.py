"""
Core interfaces for DinoBot.

The orchestrators (webhook responder, feed relay) only depend on these,
so tests can swap in fakes for the GroupMe API and the database.
"""
from abc import ABC, abstractmethod
from typing import List, Optional

from dinobot.domain.entities import BotRegistration, OutgoingPost


class IBotPoster(ABC):
    """
    Interface for posting bot messages.

    Implementations return the platform's HTTP status code. A transport
    failure (no response at all) must be reported as 503, never raised.
    """

    @abstractmethod
    async def post(self, post: OutgoingPost) -> int:
        """Post a prepared message (text and/or attachments)"""
        pass

    async def post_text(self, bot_id: str, text: str) -> int:
        """Post a plain text message"""
        return await self.post(OutgoingPost(bot_id=bot_id, text=text))


class IRegistrationRepository(ABC):
    """Interface for feed bot registration storage"""

    @abstractmethod
    async def list_all(self) -> List[BotRegistration]:
        """Get every registration"""
        pass

    @abstractmethod
    async def list_for_user(self, user_id: str) -> List[BotRegistration]:
        """Get registrations created by one user"""
        pass

    @abstractmethod
    async def get_by_bot_id(self, bot_id: str) -> Optional[BotRegistration]:
        """Get a registration by bot ID"""
        pass

    @abstractmethod
    async def save(self, registration: BotRegistration) -> BotRegistration:
        """Insert or replace a registration"""
        pass

    @abstractmethod
    async def update_cursor(self, bot_id: str, most_recent_item_id: str) -> bool:
        """
        Move the search cursor of one registration and persist it immediately.

        Returns:
            True if the registration exists and was updated
        """
        pass
