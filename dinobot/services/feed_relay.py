"""
Feed relay job.

One pass over every registration: search the feed since the stored cursor,
drop spam and old retweets, post each new item's URL into the group and
move the cursor to the newest item that was actually posted.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional

from dinobot.clients.twitter_client import FeedAuthorizationError, TwitterSearchClient
from dinobot.core.interfaces import IBotPoster, IRegistrationRepository
from dinobot.domain.entities import BotRegistration
from dinobot.rules.feed_rules import dedupe

logger = logging.getLogger(__name__)

POST_ACCEPTED = 202


@dataclass
class RelayReport:
    """Outcome of one relay pass"""
    registrations: int = 0
    posted: int = 0
    failed_bots: List[str] = field(default_factory=list)


class FeedRelay:
    """Relays feed search results into the groups of registered bots"""

    def __init__(
        self,
        repository: IRegistrationRepository,
        feed_client: TwitterSearchClient,
        poster: IBotPoster,
        app_key: str,
        app_secret: str,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self._repository = repository
        self._feed_client = feed_client
        self._poster = poster
        self._app_key = app_key
        self._app_secret = app_secret
        self._clock = clock

    async def run(self) -> RelayReport:
        """
        Run one pass over all registrations.

        Raises:
            FeedAuthorizationError: If the feed rejects the app credentials
                or the bearer token. The pass stops there.
        """
        report = RelayReport()

        registrations = await self._repository.list_all()
        if not registrations:
            logger.info("No registrations, nothing to relay")
            return report

        report.registrations = len(registrations)
        token = await self._feed_client.authenticate(self._app_key, self._app_secret)

        for registration in registrations:
            try:
                report.posted += await self.relay_registration(token, registration)
            except FeedAuthorizationError:
                raise
            except Exception as e:
                logger.error(
                    f"❌ Relay failed for bot {registration.bot_id} "
                    f"('{registration.search_term}'): {e}",
                    exc_info=True
                )
                report.failed_bots.append(registration.bot_id)

        logger.info(
            f"✅ Relay pass done: {report.posted} item(s) posted for "
            f"{report.registrations} registration(s), {len(report.failed_bots)} failed"
        )
        return report

    async def relay_registration(self, token: str, registration: BotRegistration) -> int:
        """
        Relay new items for one registration.

        Returns:
            Number of items posted
        """
        logger.info(f"🔍 Searching for '{registration.search_term}' (bot {registration.bot_id})")
        items = await self._feed_client.search(
            token,
            registration.search_term,
            since_id=registration.most_recent_item_id
        )

        now = self._clock() if self._clock else None
        result = dedupe(items, since_id=registration.most_recent_item_id, now=now)
        if not result.items:
            return 0

        posted = []
        for item in result.items:
            status = await self._poster.post_text(registration.bot_id, item.url)
            if status != POST_ACCEPTED:
                logger.warning(
                    f"⚠️ Post of {item.id} for bot {registration.bot_id} "
                    f"not accepted (status {status}), stopping"
                )
                break
            posted.append(item)

        if posted:
            newest = max(posted, key=lambda item: item.created_at)
            registration.most_recent_item_id = newest.id
            await self._repository.update_cursor(registration.bot_id, newest.id)
            logger.info(f"📨 Posted {len(posted)} item(s) for bot {registration.bot_id}")

        return len(posted)
