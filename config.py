from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings

from oauth1.errors import ConfigurationError
from oauth1.models import ConsumerCredential


class Settings(BaseSettings):
    # Session Management
    SESSION_EXPIRY_HOURS: int = 24
    SESSION_COOKIE_NAME: str = "twitter_consumer_session"
    SESSION_SAME_SITE: str = "lax"
    SESSION_HTTPS_ONLY: bool = False  # Set to True in production

    # Security
    SECRET_KEY: str = "your-secret-key-here"  # Change this in production!

    # Temporary credential cookie
    CREDENTIAL_COOKIE_NAME: str = "oauth_temporary_credential"
    CREDENTIAL_COOKIE_MAX_AGE_SECONDS: int = 600

    # Twitter API Settings
    TWITTER_CONSUMER_KEY: Optional[str] = None
    TWITTER_CONSUMER_SECRET: Optional[str] = None
    TWITTER_OAUTH_CALLBACK_URL: str = "http://localhost:8000/twitter/oauth/callback"
    TWITTER_SIGN_IN_WITH_TWITTER: bool = True

    # Transport
    HTTP_TIMEOUT_SECONDS: float = 30.0

    # Logging
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        extra = "ignore"  # Allow extra fields from environment variables

    @property
    def is_twitter_consumer_configured(self) -> bool:
        return bool(
            self.TWITTER_CONSUMER_KEY and self.TWITTER_CONSUMER_KEY.strip()
            and self.TWITTER_CONSUMER_SECRET and self.TWITTER_CONSUMER_SECRET.strip()
        )

    def consumer_credential(self) -> ConsumerCredential:
        """
        Build the Twitter consumer credential from configuration.

        Raises:
            ConfigurationError: If the consumer key or secret is missing or blank
        """
        if not self.is_twitter_consumer_configured:
            raise ConfigurationError(
                "No Twitter OAuth consumer key and secret could be found; "
                "set TWITTER_CONSUMER_KEY and TWITTER_CONSUMER_SECRET"
            )
        return ConsumerCredential(key=self.TWITTER_CONSUMER_KEY, secret=self.TWITTER_CONSUMER_SECRET)


@lru_cache()
def get_settings():
    return Settings()
