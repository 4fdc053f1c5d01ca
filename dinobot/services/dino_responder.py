"""
DinoBot responder - handles one inbound group message end to end.

classify -> build directive -> compose -> post.
"""
import logging
import random
from typing import Optional

from dinobot.config import RuleConfig
from dinobot.core.interfaces import IBotPoster
from dinobot.domain.entities import InboundMessage
from dinobot.rules.dino_rules import build_directive, classify
from dinobot.services.reply_composer import compose

logger = logging.getLogger(__name__)

POST_ACCEPTED = 202


class DinoResponder:
    """
    Replies to group messages with dinosaurs.

    One instance per webhook invocation: the rule config is read fresh for
    each request and handed in here.
    """

    def __init__(
        self,
        bot_id: str,
        poster: IBotPoster,
        rule_config: RuleConfig,
        rng: Optional[random.Random] = None,
        delay_ms: int = 0
    ):
        if not bot_id:
            raise ValueError("bot_id cannot be empty")
        if poster is None:
            raise ValueError("poster is required")

        self._bot_id = bot_id
        self._poster = poster
        self._config = rule_config
        self._rng = rng or random.Random()
        self._delay_ms = delay_ms

    async def process(self, message: InboundMessage) -> bool:
        """
        Process one message.

        Returns:
            True if a reply was posted and accepted, False for no action
            or a rejected/failed post
        """
        if not message.is_actionable:
            logger.debug("Message not actionable, ignoring")
            return False

        action = classify(message.text, message.user_id, self._config, self._rng)
        if action is None:
            return False

        directive = build_directive(action, message, delay_ms=self._delay_ms)
        post = await compose(directive, self._bot_id)

        status = await self._poster.post(post)
        if status != POST_ACCEPTED:
            logger.warning(f"⚠️ Reply to message {message.id} not accepted (status {status})")
            return False

        logger.info(f"🦕 Posted {directive.count} emoji for message {message.id} ({action.kind.value})")
        return True
