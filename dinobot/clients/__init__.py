"""External API clients"""
from dinobot.clients.groupme_client import GroupMeClient, GroupMeAPIError, GroupMeAuthorizationError
from dinobot.clients.twitter_client import TwitterSearchClient, TwitterAPIError, FeedAuthorizationError

__all__ = [
    "GroupMeClient",
    "GroupMeAPIError",
    "GroupMeAuthorizationError",
    "TwitterSearchClient",
    "TwitterAPIError",
    "FeedAuthorizationError",
]
