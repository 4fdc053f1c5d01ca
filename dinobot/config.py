"""Configuration management using environment variables"""
import logging
import os
from dataclasses import dataclass
from typing import FrozenSet, List, Optional, Tuple

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger(__name__)

# Keys for the dynamic rule configuration (comma-separated lists)
CAN_ADDRESS_DINO_KEY = "CAN_ADDRESS_DINO"
DINO_ADDRESS_TRIGGER_KEY = "DINO_ADDRESS_TRIGGER"

DEFAULT_TRIGGER_PHRASES = ("hey dinobot",)
DEFAULT_QUESTION_WEIGHT = 0.075
DEFAULT_MAX_DINOS = 100


class Settings:
    """Application settings - only what the bot and the relay job need"""

    def __init__(self):
        # Environment
        self.environment = os.getenv("ENVIRONMENT", "development")

        # GroupMe endpoints
        self.groupme_api_base_url = os.getenv("GROUPME_API_BASE_URL", "https://api.groupme.com/v3")
        self.groupme_bot_post_url = os.getenv(
            "GROUPME_BOT_POST_URL",
            f"{self.groupme_api_base_url}/bots/post"
        )
        self.groupme_oauth_url = os.getenv("GROUPME_OAUTH_URL", "")
        self.bot_avatar_url = os.getenv("BOT_AVATAR_URL", "")

        # Twitter search credentials (only needed by the relay job)
        self.twitter_app_key = os.getenv("TWITTER_APP_KEY", "")
        self.twitter_app_secret = os.getenv("TWITTER_APP_SECRET", "")
        self.twitter_auth_url = os.getenv("TWITTER_AUTH_URL", "https://api.twitter.com/oauth2/token")
        self.twitter_search_url = os.getenv(
            "TWITTER_SEARCH_URL",
            "https://api.twitter.com/1.1/search/tweets.json"
        )

        # Reply behaviour
        self.emoji_post_delay_ms = int(os.getenv("EMOJI_POST_DELAY_MS", "500"))
        self.question_response_weight = float(
            os.getenv("QUESTION_RESPONSE_WEIGHT", str(DEFAULT_QUESTION_WEIGHT))
        )
        self.max_dinos = int(os.getenv("MAX_DINOS", str(DEFAULT_MAX_DINOS)))

        # Outbound HTTP timeout (seconds) for every external call
        self.http_timeout = float(os.getenv("HTTP_TIMEOUT_SECONDS", "10.0"))

        # Database configuration (SQLite by default - configurable path)
        self.database_url = os.getenv(
            "DATABASE_URL",
            "sqlite+aiosqlite:///./dinobot.db"
        )

        # Logging
        self.log_level = os.getenv("LOG_LEVEL", "INFO")

    def twitter_credentials(self) -> Tuple[str, str]:
        """
        Get the Twitter app key and secret.

        In production both are required; in development missing values are
        returned as empty strings and the token exchange will fail loudly.
        """
        if self.environment == "production":
            return (
                self._get_required("TWITTER_APP_KEY"),
                self._get_required("TWITTER_APP_SECRET"),
            )
        if not self.twitter_app_key or not self.twitter_app_secret:
            logger.warning(
                "⚠️  TWITTER_APP_KEY / TWITTER_APP_SECRET not set - feed search will fail to authenticate"
            )
        return self.twitter_app_key, self.twitter_app_secret

    def _get_required(self, key: str) -> str:
        """Get required environment variable or raise error."""
        value = os.getenv(key, "").strip()
        if not value:
            raise ValueError(
                f"Missing required environment variable: {key}. "
                f"Required in production mode."
            )
        return value


@dataclass(frozen=True)
class RuleConfig:
    """
    Dynamic configuration for the message classifier.

    Loaded once per webhook invocation and passed explicitly to the rules.
    An empty ``addressable_users`` set means anyone may address the bot.
    """
    addressable_users: FrozenSet[str] = frozenset()
    trigger_phrases: Tuple[str, ...] = DEFAULT_TRIGGER_PHRASES
    question_weight: float = DEFAULT_QUESTION_WEIGHT
    max_count: int = DEFAULT_MAX_DINOS


def _split_env_list(key: str) -> Optional[List[str]]:
    """Read a comma-separated environment variable, None when unset or empty"""
    value = os.getenv(key, "")
    if not value:
        logger.info(f"Using default {key}")
        return None

    logger.info(f"Using {key}: {value}")
    return [item.strip() for item in value.split(",") if item.strip()]


def load_rule_config(app_settings: Optional[Settings] = None) -> RuleConfig:
    """
    Build a RuleConfig from environment overrides.

    Each override replaces the built-in default entirely. Trigger phrases are
    lower-cased since classification runs against lower-cased text.
    """
    app_settings = app_settings or settings

    users = _split_env_list(CAN_ADDRESS_DINO_KEY)
    triggers = _split_env_list(DINO_ADDRESS_TRIGGER_KEY)

    return RuleConfig(
        addressable_users=frozenset(users) if users else frozenset(),
        trigger_phrases=tuple(t.lower() for t in triggers) if triggers else DEFAULT_TRIGGER_PHRASES,
        question_weight=app_settings.question_response_weight,
        max_count=app_settings.max_dinos,
    )


# Global settings instance
settings = Settings()
