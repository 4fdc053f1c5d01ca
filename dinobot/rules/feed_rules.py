"""
Feed relay rules.

Filters a batch of search results down to the items worth relaying and
works out the new "since" cursor. The search itself is already bounded by
the previous cursor; these rules catch spam and retweets of tweets that
were most likely relayed before.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional

from dinobot.domain.entities import FeedItem

logger = logging.getLogger(__name__)

SPAM_MARKER = "GroupMe by Cat Eyes"

# Retweets of originals older than this are assumed to be relayed already.
# Retweets inside the window can still be relayed twice.
RETWEET_WINDOW = timedelta(minutes=5)


@dataclass
class DedupeResult:
    items: List[FeedItem] = field(default_factory=list)
    newest_id: Optional[str] = None


def is_spam(item: FeedItem) -> bool:
    # Items without text are treated as spam
    return item.text is None or SPAM_MARKER in item.text


def is_stale_retweet(item: FeedItem, now: datetime) -> bool:
    if item.retweet_count <= 0 or item.retweeted_original is None:
        return False
    return item.retweeted_original.created_at < now - RETWEET_WINDOW


def dedupe(
    items: Iterable[FeedItem],
    since_id: Optional[str] = None,
    now: Optional[datetime] = None
) -> DedupeResult:
    """
    Filter feed items and compute the next cursor.

    Args:
        items: Search results in arrival order
        since_id: Cursor used for the search that produced ``items``
        now: Reference time for the retweet window (defaults to UTC now)

    Returns:
        Kept items in arrival order, and the id of the newest kept item
        (``since_id`` unchanged when nothing was kept)
    """
    now = now or datetime.now(timezone.utc)
    result = DedupeResult(newest_id=since_id)
    newest: Optional[FeedItem] = None

    for item in items:
        if is_spam(item):
            logger.info(f"Skipping spam {item.id}")
            continue

        if is_stale_retweet(item, now):
            logger.info(f"Skipping retweet {item.id}")
            continue

        result.items.append(item)
        if newest is None or item.created_at > newest.created_at:
            newest = item

    if newest is not None:
        result.newest_id = newest.id

    return result
