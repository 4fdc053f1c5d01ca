"""
Builds GroupMe emoji posts from reply directives.

The text of an emoji post is one placeholder glyph per emoji. The emoji
attachment's charmap says, in order, which (pack, emoji) each placeholder
becomes:

    text:    "���"
    charmap: [[1, 62], [1, 62], [1, 62]]
"""
import asyncio
import logging

from dinobot.domain.entities import (
    EMOJI_PLACEHOLDER,
    EmojiAttachment,
    OutgoingPost,
    ReplyAttachment,
    ReplyDirective,
)

logger = logging.getLogger(__name__)


def build_post(directive: ReplyDirective, bot_id: str) -> OutgoingPost:
    """Turn a directive into a post body (no I/O)"""
    count = max(directive.count, 0)
    text = EMOJI_PLACEHOLDER * count
    charmap = tuple((directive.pack_id, directive.emoji_id) for _ in range(count))

    attachments = [EmojiAttachment(charmap=charmap, placeholder=EMOJI_PLACEHOLDER)]
    if directive.reply_to_id:
        # A reply without a thread root starts its own thread
        attachments.append(ReplyAttachment(
            reply_id=directive.reply_to_id,
            base_reply_id=directive.base_reply_id or directive.reply_to_id,
        ))

    return OutgoingPost(bot_id=bot_id, text=text, attachments=tuple(attachments))


async def compose(directive: ReplyDirective, bot_id: str) -> OutgoingPost:
    """
    Build the post, waiting ``delay_ms`` first.

    The wait gives the message being replied to a head start on the
    platform so the reply shows up after it. It is a hint, not a guarantee.
    """
    if directive.delay_ms > 0:
        logger.debug(f"Delaying post by {directive.delay_ms}ms")
        await asyncio.sleep(directive.delay_ms / 1000.0)

    return build_post(directive, bot_id)
