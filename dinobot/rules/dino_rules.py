"""
DinoBot reply rules.

Decides whether an incoming group message deserves dinosaurs, and how many.
Rules are checked in decreasing priority order and the first match wins:

1. "<n> dinos" asks for n dinos (capped)
2. addressing the bot with a trigger phrase ("hey dinobot")
3. "(randy pooping)" gets a Randy
4. a question gets a dino, sometimes

The rules only look at text and configuration; reply threading is decided
afterwards in build_directive() from the message's attachments.
"""
import enum
import logging
import random
import re
from dataclasses import dataclass
from typing import Optional

from dinobot.config import RuleConfig
from dinobot.domain.entities import InboundMessage, ReplyDirective

logger = logging.getLogger(__name__)

# Emoji identities (pack id, emoji id)
DINO_PACK = 1
DINO_EMOJI = 62
RANDY_PACK = 8
RANDY_EMOJI = 47

RANDY_PHRASE = "(randy pooping)"

DINO_REQUEST_PATTERN = re.compile(r"(.*\D|^)(\d+) (dino|dinolike|dino-like).*")


class ActionKind(enum.Enum):
    """Which rule produced the action"""
    COUNT_REQUEST = "count_request"
    ADDRESSED = "addressed"
    RANDY = "randy"
    QUESTION = "question"


@dataclass(frozen=True)
class DinoAction:
    kind: ActionKind
    pack_id: int
    emoji_id: int
    count: int = 1


def classify(
    text: str,
    user_id: Optional[str],
    config: RuleConfig,
    rng: Optional[random.Random] = None
) -> Optional[DinoAction]:
    """
    Classify a message into at most one action.

    Args:
        text: Raw message text (lower-cased here)
        user_id: ID of the sender, checked against the allow-list
        config: Allow-list, trigger phrases and tuning values
        rng: Random source for the question rule (seed it in tests)

    Returns:
        The action to take, or None when the bot should stay quiet
    """
    if not text:
        return None

    msg = text.lower()

    # Rule 1: explicit dino count
    match = DINO_REQUEST_PATTERN.search(msg)
    if match:
        logger.info("🦕 Found dino request")
        try:
            count = min(int(match.group(2)), config.max_count)
        except ValueError:
            logger.warning("⚠️ Unparseable dino count, ignoring message")
            return None

        logger.info(f"Dinos: {count}")
        if count > 0:
            return DinoAction(ActionKind.COUNT_REQUEST, DINO_PACK, DINO_EMOJI, count)

    # Rule 2: bot addressed directly
    if _can_address(user_id, config) and any(phrase in msg for phrase in config.trigger_phrases):
        logger.info("🦕 Dino addressed")
        return DinoAction(ActionKind.ADDRESSED, DINO_PACK, DINO_EMOJI)

    # Rule 3: Randy
    if RANDY_PHRASE in msg:
        logger.info("💩 Randy requested")
        return DinoAction(ActionKind.RANDY, RANDY_PACK, RANDY_EMOJI)

    # Rule 4: questions, with a single draw per message
    if "?" in msg:
        rng = rng or random.Random()
        if rng.random() <= config.question_weight:
            logger.info("🦕 Answering question")
            return DinoAction(ActionKind.QUESTION, DINO_PACK, DINO_EMOJI)

    return None


def _can_address(user_id: Optional[str], config: RuleConfig) -> bool:
    # An empty allow-list lets anyone address the bot
    return not config.addressable_users or user_id in config.addressable_users


def build_directive(
    action: DinoAction,
    message: InboundMessage,
    delay_ms: int = 0
) -> ReplyDirective:
    """
    Attach reply-thread metadata to an action.

    Count and address replies continue the thread the message was part of.
    Question replies thread onto the question itself. Randy is never threaded.
    The delay only applies to threaded replies.
    """
    existing_reply = message.existing_reply()
    reply_to_id = None
    base_reply_id = None

    if action.kind in (ActionKind.COUNT_REQUEST, ActionKind.ADDRESSED):
        if existing_reply:
            reply_to_id = existing_reply.reply_id
            base_reply_id = existing_reply.base_reply_id
    elif action.kind == ActionKind.QUESTION:
        reply_to_id = message.id
        base_reply_id = existing_reply.base_reply_id if existing_reply else None

    return ReplyDirective(
        pack_id=action.pack_id,
        emoji_id=action.emoji_id,
        count=action.count,
        delay_ms=delay_ms if reply_to_id else 0,
        reply_to_id=reply_to_id,
        base_reply_id=base_reply_id,
    )
