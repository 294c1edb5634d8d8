# twitter_consumer/service.py
"""
Twitter Service Binding
=======================

Twitter's OAuth 1.0a endpoints and factory functions for building a Consumer
configured for Twitter.

Twitter exposes two flavours of the same handshake which differ only in the
user authorization endpoint:

- SERVICE_DESCRIPTION: classic authorization (``/oauth/authorize``), which
  always asks the user to approve the application.
- SIGN_IN_WITH_TWITTER_SERVICE_DESCRIPTION: "Sign in with Twitter"
  (``/oauth/authenticate``), which skips the approval page for users who
  have already authorized the application.
"""

import logging
from typing import Optional, Tuple

import httpx

from config import Settings, get_settings
from oauth1.consumer import Consumer
from oauth1.models import ServiceProviderDescription
from oauth1.storage import CredentialStore, MemoryCredentialStore

logger = logging.getLogger(__name__)

REQUEST_TOKEN_ENDPOINT = "https://api.twitter.com/oauth/request_token"
AUTHORIZE_ENDPOINT = "https://api.twitter.com/oauth/authorize"
AUTHENTICATE_ENDPOINT = "https://api.twitter.com/oauth/authenticate"
ACCESS_TOKEN_ENDPOINT = "https://api.twitter.com/oauth/access_token"

SERVICE_DESCRIPTION = ServiceProviderDescription(
    request_token_endpoint=REQUEST_TOKEN_ENDPOINT,
    user_authorization_endpoint=AUTHORIZE_ENDPOINT,
    access_token_endpoint=ACCESS_TOKEN_ENDPOINT,
)

SIGN_IN_WITH_TWITTER_SERVICE_DESCRIPTION = ServiceProviderDescription(
    request_token_endpoint=REQUEST_TOKEN_ENDPOINT,
    user_authorization_endpoint=AUTHENTICATE_ENDPOINT,
    access_token_endpoint=ACCESS_TOKEN_ENDPOINT,
)


def is_twitter_consumer_configured(settings: Optional[Settings] = None) -> bool:
    """Check whether a Twitter consumer key and secret are configured."""
    return (settings or get_settings()).is_twitter_consumer_configured


def create_consumer(
    credential_store: Optional[CredentialStore] = None,
    sign_in_with_twitter: bool = False,
    settings: Optional[Settings] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> Consumer:
    """
    Create a Consumer for Twitter.

    Web callers pass a CookieCredentialStore bound to the current request;
    native callers may omit the store, in which case a process-local
    MemoryCredentialStore is used.

    Args:
        credential_store (Optional[CredentialStore]): Where to keep temporary secrets
        sign_in_with_twitter (bool): Use the "Sign in with Twitter" endpoint
        settings (Optional[Settings]): Settings to read the consumer credential from
        http_client (Optional[httpx.AsyncClient]): Client to send requests with

    Returns:
        Consumer: A consumer configured for Twitter

    Raises:
        ConfigurationError: If the consumer key or secret is not configured
    """
    settings = settings or get_settings()
    service = SIGN_IN_WITH_TWITTER_SERVICE_DESCRIPTION if sign_in_with_twitter else SERVICE_DESCRIPTION

    return Consumer(
        settings.consumer_credential(),
        service,
        credential_store if credential_store is not None else MemoryCredentialStore(),
        http_client=http_client,
        timeout=settings.HTTP_TIMEOUT_SECONDS,
    )


async def start_sign_in_with_twitter(
    callback_url: str,
    credential_store: CredentialStore,
    force_new_login: bool = False,
    settings: Optional[Settings] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> str:
    """
    Prepare a redirect that sends the user to Twitter to sign in.

    Args:
        callback_url (str): The URL Twitter should send the user back to
        credential_store (CredentialStore): Where to keep the temporary secret
        force_new_login (bool): Require the user to re-enter their Twitter
            credentials even if already logged in to Twitter
        settings (Optional[Settings]): Application settings
        http_client (Optional[httpx.AsyncClient]): Client to send requests with

    Returns:
        str: The Twitter URL to redirect the user to
    """
    consumer = create_consumer(credential_store, sign_in_with_twitter=True, settings=settings, http_client=http_client)
    return await consumer.begin_authorization(callback_url, force_reauth=force_new_login)


async def try_finish_sign_in_with_twitter(
    complete_url: str,
    credential_store: CredentialStore,
    settings: Optional[Settings] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> Optional[Tuple[str, int]]:
    """
    Check an incoming request for a Twitter authorization response.

    Args:
        complete_url (str): The full URL of the callback request
        credential_store (CredentialStore): Where the temporary secret was kept

    Returns:
        Optional[Tuple[str, int]]: The user's screen name and numeric id, or
        None if the request does not carry an authorization response

    Raises:
        HandshakeError: If the access token exchange fails
    """
    consumer = create_consumer(credential_store, sign_in_with_twitter=True, settings=settings, http_client=http_client)
    access_token = await consumer.complete_authorization(complete_url)
    if access_token is None:
        return None

    screen_name = access_token.extra_data["screen_name"]
    user_id = int(access_token.extra_data["user_id"])
    return screen_name, user_id
