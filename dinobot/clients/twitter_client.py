"""
Twitter search API client.

Application-only auth: the app key and secret are exchanged for a bearer
token (OAuth2 client credentials), which is then used for recent search.
"""
import httpx
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from dinobot.config import Settings
from dinobot.domain.entities import FeedItem

logger = logging.getLogger(__name__)

USER_AGENT = "GroupMeTwitterBot"
SEARCH_COUNT = 100
CREATED_AT_FORMAT = "%a %b %d %H:%M:%S %z %Y"


class TwitterAPIError(Exception):
    """Exception raised when a Twitter API request fails"""
    def __init__(self, message: str, status_code: Optional[int] = None, response_body: Optional[dict] = None):
        self.message = message
        self.status_code = status_code
        self.response_body = response_body
        super().__init__(self.message)


class FeedAuthorizationError(TwitterAPIError):
    """Credentials or bearer token rejected by Twitter"""


def parse_created_at(value: Optional[str]) -> datetime:
    """
    Parse Twitter's created_at ("Wed Oct 10 20:19:24 +0000 2018") to UTC.

    Unparseable values map to the minimum datetime so they sort oldest.
    """
    if value:
        try:
            return datetime.strptime(value, CREATED_AT_FORMAT).astimezone(timezone.utc)
        except ValueError:
            logger.warning(f"Unparseable created_at: {value}")
    return datetime.min.replace(tzinfo=timezone.utc)


def feed_item_from_status(status: Dict[str, Any]) -> Optional[FeedItem]:
    """Convert a search status to a FeedItem; None when id or author is missing"""
    item_id = status.get("id_str")
    screen_name = (status.get("user") or {}).get("screen_name")
    if not item_id or not screen_name:
        return None

    original = None
    retweeted_status = status.get("retweeted_status")
    if isinstance(retweeted_status, dict):
        original = feed_item_from_status(retweeted_status)

    return FeedItem(
        id=item_id,
        text=status.get("text"),
        author_handle=screen_name,
        created_at=parse_created_at(status.get("created_at")),
        retweet_count=status.get("retweet_count") or 0,
        retweeted_original=original,
    )


class TwitterSearchClient:
    """Client for Twitter's v1.1 search API"""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        settings: Settings,
        logger_instance: logging.Logger = logger
    ):
        self._http_client = http_client
        self._settings = settings
        self._logger = logger_instance
        self._timeout = settings.http_timeout

    async def authenticate(self, app_key: str, app_secret: str) -> str:
        """
        Exchange app credentials for a bearer token.

        Returns:
            The bearer token

        Raises:
            FeedAuthorizationError: If the credentials are missing or rejected
            TwitterAPIError: If the request fails for any other reason
        """
        if not app_key or not app_secret:
            raise FeedAuthorizationError("Twitter app key and secret are required")

        try:
            response = await self._http_client.post(
                self._settings.twitter_auth_url,
                # Twitter expects both halves URL-encoded before Basic encoding
                auth=(quote(app_key, safe=""), quote(app_secret, safe="")),
                data={"grant_type": "client_credentials"},
                timeout=self._timeout
            )
        except httpx.HTTPError as e:
            raise TwitterAPIError(f"Request error: {str(e)}") from e

        if response.status_code in (401, 403):
            raise FeedAuthorizationError(
                "Twitter rejected the app credentials",
                status_code=response.status_code
            )

        if not response.is_success:
            raise TwitterAPIError(
                f"Token request failed with status {response.status_code}",
                status_code=response.status_code
            )

        token = response.json().get("access_token")
        if not token:
            raise TwitterAPIError("Token response missing access_token", status_code=response.status_code)

        self._logger.info("✅ Authenticated with Twitter")
        return token

    async def search(
        self,
        token: str,
        search_term: str,
        since_id: Optional[str] = None
    ) -> List[FeedItem]:
        """
        Search recent tweets for a term.

        Args:
            token: Bearer token from authenticate()
            search_term: Query string
            since_id: Only return tweets newer than this ID (latest 100 if empty)

        Returns:
            Feed items in the order Twitter returned them

        Raises:
            FeedAuthorizationError: If the bearer token was rejected
            TwitterAPIError: If the search failed
        """
        params: Dict[str, Any] = {
            "q": search_term,
            "result_type": "recent",
            "count": SEARCH_COUNT,
        }
        if since_id and since_id.strip():
            params["since_id"] = since_id

        try:
            response = await self._http_client.get(
                self._settings.twitter_search_url,
                params=params,
                headers={"Authorization": f"Bearer {token}", "User-Agent": USER_AGENT},
                timeout=self._timeout
            )
        except httpx.HTTPError as e:
            raise TwitterAPIError(f"Request error: {str(e)}") from e

        if response.status_code == 401:
            raise FeedAuthorizationError("Twitter rejected the bearer token", status_code=401)

        if not response.is_success:
            raise TwitterAPIError(
                f"Search failed with status {response.status_code}",
                status_code=response.status_code
            )

        statuses = response.json().get("statuses") or []
        items = []
        for status in statuses:
            item = feed_item_from_status(status)
            if item is not None:
                items.append(item)

        self._logger.info(f"Fetched {len(items)} tweet(s) for '{search_term}'")
        return items
