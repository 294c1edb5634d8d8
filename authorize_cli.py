#!/usr/bin/env python3
"""
Authorize this application against a Twitter account from the terminal.

Runs the out-of-band (PIN) OAuth 1.0a handshake with an in-memory
temporary credential store and prints the resulting access token.

Usage:
    python authorize_cli.py [--force-login]
"""

import asyncio
import logging
import sys
from urllib.parse import parse_qs, urlsplit

from dotenv import load_dotenv

from config import get_settings
from oauth1.consumer import OUT_OF_BAND_CALLBACK
from oauth1.errors import ConfigurationError, HandshakeError, RemoteError, TransportError
from oauth1.storage import MemoryCredentialStore
from twitter_consumer.api import TwitterAPI
from twitter_consumer.service import create_consumer

logger = logging.getLogger(__name__)


def callback_from_input(response: str, temporary_token: str) -> str:
    """Accept either the full callback URL or the bare PIN Twitter displays."""
    response = response.strip()
    if "oauth_verifier=" in response:
        return response
    return f"?oauth_token={temporary_token}&oauth_verifier={response}"


async def authorize(force_login: bool = False) -> int:
    settings = get_settings()
    store = MemoryCredentialStore()

    try:
        consumer = create_consumer(store, settings=settings)
    except ConfigurationError as e:
        print(f"ERROR: {e}")
        return 1

    try:
        redirect_url = await consumer.begin_authorization(OUT_OF_BAND_CALLBACK, force_reauth=force_login)
    except HandshakeError as e:
        print(f"ERROR: Could not obtain a temporary credential: {e}")
        return 1

    temporary_token = parse_qs(urlsplit(redirect_url).query)["oauth_token"][0]
    print(f"Point your browser to: {redirect_url}")
    response = input("PIN or callback URL: ")

    try:
        access_token = await consumer.complete_authorization(callback_from_input(response, temporary_token))
    except HandshakeError as e:
        consumer.abandon_authorization(temporary_token)
        print(f"ERROR: Could not exchange the temporary credential: {e}")
        return 1

    if access_token is None:
        print("Authorization was denied")
        return 1

    print(f"Access token:        {access_token.token}")
    print(f"Access token secret: {access_token.secret}")
    for name, value in access_token.extra_data.items():
        print(f"{name}: {value}")

    api = TwitterAPI(consumer.create_client(access_token), access_token)
    try:
        username = await api.get_username()
    except (RemoteError, TransportError, ValueError) as e:
        print(f"ERROR: Could not look up the authorized account: {e}")
        return 1

    print(f"Authorized as @{username}")
    return 0


def main():
    load_dotenv()
    logging.basicConfig(
        level=getattr(logging, get_settings().LOG_LEVEL.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    sys.exit(asyncio.run(authorize(force_login="--force-login" in sys.argv[1:])))


if __name__ == "__main__":
    main()
