"""
GroupMe API client.

Covers the bot post endpoint used by every bot, plus the user-token
endpoints needed to register new feed bots (profile, groups, bot creation).
"""
import httpx
import logging
from typing import Any, Dict, List, Optional

from dinobot.config import Settings
from dinobot.core.interfaces import IBotPoster
from dinobot.domain.entities import CreatedBot, GroupInfo, OutgoingPost, UserProfile

logger = logging.getLogger(__name__)

ACCESS_TOKEN_HEADER = "X-Access-Token"
USER_AGENT = "dinobot"
GROUPS_PER_PAGE = 100

# Status codes returned by the bot post endpoint
POST_ACCEPTED = 202
SERVICE_UNAVAILABLE = 503


class GroupMeAPIError(Exception):
    """Exception raised when a GroupMe API request fails"""
    def __init__(self, message: str, status_code: Optional[int] = None, response_body: Optional[dict] = None):
        self.message = message
        self.status_code = status_code
        self.response_body = response_body
        super().__init__(self.message)


class GroupMeAuthorizationError(GroupMeAPIError):
    """The user's access token was rejected (missing, invalid or expired)"""


class GroupMeClient(IBotPoster):
    """
    Client for the GroupMe v3 API.

    Bot posts never raise: the status code is returned and transport
    failures become 503. User-token calls raise GroupMeAuthorizationError
    on 401 so callers can send the user back to the login page.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        settings: Settings,
        logger_instance: logging.Logger = logger
    ):
        """
        Initialize GroupMe API client.

        Args:
            http_client: httpx AsyncClient for making HTTP requests
            settings: Application settings with endpoint URLs and timeout
            logger_instance: Logger for tracking API calls
        """
        self._http_client = http_client
        self._settings = settings
        self._logger = logger_instance
        self._api_base_url = settings.groupme_api_base_url.rstrip("/")
        self._timeout = settings.http_timeout

    async def post(self, post: OutgoingPost) -> int:
        """
        Post a bot message.

        Returns:
            HTTP status from GroupMe (202 on success), 503 if no response
        """
        if not post.bot_id:
            raise ValueError("bot_id cannot be empty")

        try:
            response = await self._http_client.post(
                self._settings.groupme_bot_post_url,
                json=post.to_payload(),
                timeout=self._timeout
            )
        except httpx.HTTPError as e:
            self._logger.error(f"❌ Bot post failed without a response: {e}")
            return SERVICE_UNAVAILABLE

        if response.status_code == POST_ACCEPTED:
            self._logger.info(f"✅ Bot message posted ({len(post.attachments)} attachment(s))")
        else:
            self._logger.warning(f"⚠️ Bot post rejected - status: {response.status_code}")
        return response.status_code

    async def get_user(self, access_token: str) -> Optional[UserProfile]:
        """
        Get the profile of the user owning the access token.

        Returns:
            UserProfile, or None if the request failed for a reason other than auth

        Raises:
            ValueError: If access_token is empty
            GroupMeAuthorizationError: If the token was rejected
        """
        if not access_token:
            raise ValueError("access_token cannot be empty")

        data = await self._get(f"{self._api_base_url}/users/me", access_token)
        if not data:
            return None

        user = data.get("response") or {}
        if not user.get("id"):
            return None
        return UserProfile(id=str(user["id"]), name=user.get("name"))

    async def get_groups(self, access_token: str) -> Optional[List[GroupInfo]]:
        """
        Get every group the user belongs to, following pagination.

        Returns:
            List of groups, or None if any page failed

        Raises:
            GroupMeAuthorizationError: If the token was rejected
        """
        groups: List[GroupInfo] = []
        page = 1
        while True:
            data = await self._get(
                f"{self._api_base_url}/groups",
                access_token,
                params={"page": page, "per_page": GROUPS_PER_PAGE}
            )
            if data is None:
                return None

            page_groups = data.get("response") or []
            if not page_groups:
                break

            for group in page_groups:
                groups.append(GroupInfo(
                    id=str(group.get("id") or group.get("group_id")),
                    name=group.get("name") or "",
                    updated_at=group.get("updated_at"),
                ))
            page += 1

        self._logger.info(f"✅ Retrieved {len(groups)} group(s)")
        return groups

    async def create_bot(
        self,
        access_token: str,
        group_id: str,
        name: str,
        avatar_url: Optional[str] = None,
        callback_url: Optional[str] = None
    ) -> Optional[CreatedBot]:
        """
        Create a bot in a group.

        Returns:
            CreatedBot, or None if GroupMe did not create the bot

        Raises:
            ValueError: If a required argument is empty
            GroupMeAuthorizationError: If the token was rejected
        """
        if not access_token or not group_id or not name:
            raise ValueError("access_token, group_id and name are required")

        bot: Dict[str, Any] = {"name": name, "group_id": group_id}
        if avatar_url:
            bot["avatar_url"] = avatar_url
        if callback_url:
            bot["callback_url"] = callback_url

        try:
            response = await self._http_client.post(
                f"{self._api_base_url}/bots",
                params={"token": access_token},
                json={"bot": bot},
                headers={"User-Agent": USER_AGENT},
                timeout=self._timeout
            )
        except httpx.HTTPError as e:
            self._logger.error(f"❌ Bot creation request failed: {e}")
            return None

        if response.status_code == 401:
            raise GroupMeAuthorizationError("GroupMe rejected the access token", status_code=401)

        if not response.is_success:
            self._logger.warning(f"⚠️ Bot creation failed - status: {response.status_code}")
            return None

        data = response.json()
        created = (data.get("response") or {}).get("bot") or {}
        if (data.get("meta") or {}).get("code") != 201 or not created.get("bot_id"):
            self._logger.warning(f"⚠️ Unexpected bot creation response: {data.get('meta')}")
            return None

        self._logger.info(f"✅ Created bot {created['bot_id']} in group {group_id}")
        return CreatedBot(bot_id=created["bot_id"], name=created.get("name") or name)

    async def _get(
        self,
        url: str,
        access_token: str,
        params: Optional[Dict[str, Any]] = None
    ) -> Optional[dict]:
        """GET with the user's token; None on non-auth failures"""
        try:
            response = await self._http_client.get(
                url,
                params=params,
                headers={ACCESS_TOKEN_HEADER: access_token, "User-Agent": USER_AGENT},
                timeout=self._timeout
            )
        except httpx.HTTPError as e:
            self._logger.warning(f"⚠️ GroupMe request failed: {e}")
            return None

        if response.status_code == 401:
            raise GroupMeAuthorizationError("GroupMe rejected the access token", status_code=401)

        if not response.is_success:
            self._logger.warning(f"⚠️ GroupMe request failed - status: {response.status_code}")
            return None

        return response.json()
