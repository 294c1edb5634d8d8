"""
Unit tests for the out-of-band authorization CLI
"""

import json
from functools import partial
from unittest.mock import patch

import httpx
import pytest

from authorize_cli import authorize, callback_from_input
from twitter_consumer.service import create_consumer

from conftest import ACCESS_TOKEN_PATH, REQUEST_TOKEN_PATH

pytestmark = [pytest.mark.unit, pytest.mark.oauth_auth]


class TestCallbackFromInput:
    """Test interpreting what the user pastes back"""

    def test_pin(self):
        assert callback_from_input(" 1234567\n", "tok1") == "?oauth_token=tok1&oauth_verifier=1234567"

    def test_full_callback_url(self):
        url = "https://app/callback?oauth_token=tok1&oauth_verifier=v1"
        assert callback_from_input(url, "tok1") == url


class TestAuthorize:
    """Test the out-of-band handshake end to end"""

    @pytest.mark.asyncio
    async def test_pin_flow(self, provider, http_client, capsys):
        provider.respond(
            REQUEST_TOKEN_PATH, text="oauth_token=tok1&oauth_token_secret=sec1&oauth_callback_confirmed=true"
        )
        provider.respond(ACCESS_TOKEN_PATH, text="oauth_token=tok2&oauth_token_secret=sec2&screen_name=alice")
        provider.respond("/1.1/account/verify_credentials.json", text=json.dumps({"screen_name": "alice"}))

        with patch("authorize_cli.create_consumer", side_effect=partial(create_consumer, http_client=http_client)), \
                patch("builtins.input", return_value="9876543"):
            exit_code = await authorize()

        assert exit_code == 0
        output = capsys.readouterr().out
        assert "https://api.twitter.com/oauth/authorize?oauth_token=tok1" in output
        assert "Access token:        tok2" in output
        assert "Authorized as @alice" in output

        (request,) = provider.requests_to(ACCESS_TOKEN_PATH)
        assert 'oauth_verifier="9876543"' in request.headers["Authorization"]

    @pytest.mark.asyncio
    async def test_rejected_pin(self, provider, http_client, capsys):
        provider.respond(
            REQUEST_TOKEN_PATH, text="oauth_token=tok1&oauth_token_secret=sec1&oauth_callback_confirmed=true"
        )
        provider.respond(ACCESS_TOKEN_PATH, status_code=401, text="Invalid verifier")

        with patch("authorize_cli.create_consumer", side_effect=partial(create_consumer, http_client=http_client)), \
                patch("builtins.input", return_value="0000000"):
            exit_code = await authorize()

        assert exit_code == 1
        assert "Could not exchange" in capsys.readouterr().out

    @pytest.mark.asyncio
    @pytest.mark.parametrize("verify_response", [
        {"status_code": 401, "text": "Invalid or expired token"},
        {"exception": httpx.ConnectError("connection refused")},
    ])
    async def test_account_lookup_failure(self, provider, http_client, capsys, verify_response):
        provider.respond(
            REQUEST_TOKEN_PATH, text="oauth_token=tok1&oauth_token_secret=sec1&oauth_callback_confirmed=true"
        )
        provider.respond(ACCESS_TOKEN_PATH, text="oauth_token=tok2&oauth_token_secret=sec2&screen_name=alice")
        provider.respond("/1.1/account/verify_credentials.json", **verify_response)

        with patch("authorize_cli.create_consumer", side_effect=partial(create_consumer, http_client=http_client)), \
                patch("builtins.input", return_value="9876543"):
            exit_code = await authorize()

        assert exit_code == 1
        output = capsys.readouterr().out
        assert "Access token:        tok2" in output
        assert "ERROR: Could not look up the authorized account" in output
