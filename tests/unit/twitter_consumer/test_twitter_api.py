"""
Unit tests for the Twitter API calls
"""

import json

import pytest

from oauth1 import signer
from oauth1.client import ServiceClient
from oauth1.errors import RemoteError
from oauth1.models import AccessToken
from twitter_consumer.api import TwitterAPI, image_content_type

pytestmark = [pytest.mark.unit]

TIMELINE_PATH = "/1.1/statuses/home_timeline.json"
FAVORITES_PATH = "/1.1/favorites/list.json"
VERIFY_PATH = "/1.1/account/verify_credentials.json"
PROFILE_IMAGE_PATH = "/1.1/account/update_profile_image.json"
BACKGROUND_IMAGE_PATH = "/1.1/account/update_profile_background_image.json"

USER = {"id": 42, "screen_name": "alice"}


@pytest.fixture
def api(consumer_credential, http_client) -> TwitterAPI:
    access_token = AccessToken(token="tok2", secret="sec2")
    client = ServiceClient(consumer_credential, access_token=access_token, http_client=http_client)
    return TwitterAPI(client, access_token)


class TestTwitterAPI:
    """Test the Twitter v1.1 calls"""

    @pytest.mark.asyncio
    async def test_get_updates(self, api, provider):
        tweets = [{"id": 1, "text": "hello"}, {"id": 2, "text": "world"}]
        provider.respond(TIMELINE_PATH, text=json.dumps(tweets))

        assert await api.get_updates(count=2) == tweets

        (request,) = provider.requests_to(TIMELINE_PATH)
        assert request.url.host == "api.twitter.com"
        assert request.url.params["count"] == "2"

    @pytest.mark.asyncio
    async def test_get_favorites(self, api, provider):
        provider.respond(FAVORITES_PATH, text="[]")

        assert await api.get_favorites() == []
        (request,) = provider.requests_to(FAVORITES_PATH)
        assert request.url.params["count"] == "20"

    @pytest.mark.asyncio
    async def test_get_username(self, api, provider):
        provider.respond(VERIFY_PATH, text=json.dumps(USER))

        assert await api.get_username() == "alice"

    @pytest.mark.asyncio
    async def test_invalid_json_raises(self, api, provider):
        provider.respond(VERIFY_PATH, text="<html>")

        with pytest.raises(ValueError):
            await api.verify_credentials()

    @pytest.mark.asyncio
    async def test_update_profile_image(self, api, provider):
        provider.respond(PROFILE_IMAGE_PATH, text=json.dumps(USER))

        result = await api.update_profile_image(b"png-bytes", content_type="image/png")

        assert result == USER
        (request,) = provider.requests_to(PROFILE_IMAGE_PATH)
        assert request.headers["Content-Type"].startswith("multipart/form-data")
        assert b'name="image"; filename="twitterPhoto"' in request.content
        assert b"Content-Type: image/png" in request.content
        assert b"png-bytes" in request.content

        oauth_params = signer.parse_authorization_header(request.headers["Authorization"])
        assert oauth_params["oauth_signature"] == signer.sign("POST", str(request.url), oauth_params, "cs", "sec2")

    @pytest.mark.asyncio
    async def test_update_profile_image_from_path(self, api, provider, tmp_path):
        image_path = tmp_path / "avatar.JPG"
        image_path.write_bytes(b"jpeg-bytes")
        provider.respond(PROFILE_IMAGE_PATH, text=json.dumps(USER))

        await api.update_profile_image(image_path)

        (request,) = provider.requests_to(PROFILE_IMAGE_PATH)
        assert b"Content-Type: image/jpeg" in request.content
        assert b"jpeg-bytes" in request.content

    @pytest.mark.asyncio
    async def test_raw_bytes_require_content_type(self, api, provider):
        with pytest.raises(ValueError):
            await api.update_profile_image(b"png-bytes")

        assert provider.requests == []

    @pytest.mark.asyncio
    async def test_update_profile_background_image(self, api, provider):
        provider.respond(BACKGROUND_IMAGE_PATH, text=json.dumps(USER))

        await api.update_profile_background_image(b"gif-bytes", content_type="image/gif", tile=True)

        (request,) = provider.requests_to(BACKGROUND_IMAGE_PATH)
        assert b'name="tile"' in request.content
        assert b"gif-bytes" in request.content

        oauth_params = signer.parse_authorization_header(request.headers["Authorization"])
        expected = signer.sign("POST", str(request.url), dict(oauth_params, tile="true"), "cs", "sec2")
        assert oauth_params["oauth_signature"] == expected

    @pytest.mark.asyncio
    async def test_is_valid(self, api, provider):
        provider.respond(VERIFY_PATH, text=json.dumps(USER))
        assert await api.is_valid() is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code", [401, 403])
    async def test_is_valid_false_when_token_rejected(self, api, provider, status_code):
        provider.respond(VERIFY_PATH, status_code=status_code, text="{}")
        assert await api.is_valid() is False

    @pytest.mark.asyncio
    async def test_is_valid_raises_on_other_errors(self, api, provider):
        provider.respond(VERIFY_PATH, status_code=503, text="Over capacity")

        with pytest.raises(RemoteError):
            await api.is_valid()


class TestImageContentType:
    """Test MIME type guessing for uploads"""

    @pytest.mark.parametrize("path, expected", [
        ("photo.png", "image/png"),
        ("photo.PNG", "image/png"),
        ("photo.jpg", "image/jpeg"),
        ("photo.gif", "image/gif"),
    ])
    def test_known_extensions(self, path, expected):
        assert image_content_type(path) == expected
