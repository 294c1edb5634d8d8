# twitter_consumer/api.py
"""
Twitter API Calls
=================

Convenience calls against Twitter's v1.1 REST API made with a signed
ServiceClient. These are plain I/O wrappers: they sign the call, raise
RemoteError on a non-2xx response, and decode the JSON body.

Image uploads are sent as multipart/form-data; the image bytes are never
part of the OAuth signature.
"""

import json
import logging
import mimetypes
from pathlib import Path
from typing import Any, Dict, List, Union

from oauth1.client import FileAttachment, ServiceClient
from oauth1.errors import RemoteError
from oauth1.models import AccessToken

logger = logging.getLogger(__name__)

API_BASE_URL = "https://api.twitter.com/1.1"
HOME_TIMELINE_ENDPOINT = f"{API_BASE_URL}/statuses/home_timeline.json"
FAVORITES_ENDPOINT = f"{API_BASE_URL}/favorites/list.json"
VERIFY_CREDENTIALS_ENDPOINT = f"{API_BASE_URL}/account/verify_credentials.json"
UPDATE_PROFILE_IMAGE_ENDPOINT = f"{API_BASE_URL}/account/update_profile_image.json"
UPDATE_PROFILE_BACKGROUND_IMAGE_ENDPOINT = f"{API_BASE_URL}/account/update_profile_background_image.json"


def image_content_type(path: Union[str, Path]) -> str:
    """Guess an image MIME type from a file name, e.g. ``photo.PNG`` -> ``image/png``."""
    guessed, _ = mimetypes.guess_type(str(path))
    if guessed:
        return guessed
    return "image/" + Path(path).suffix.lstrip(".").lower()


class TwitterAPI:
    """
    Twitter v1.1 API calls made on behalf of one user.

    Attributes:
        client (ServiceClient): Client that signs every call
        access_token (AccessToken): The user's access token
    """

    def __init__(self, client: ServiceClient, access_token: AccessToken):
        self.client = client
        self.access_token = access_token

    async def _get_json(self, url: str, params: Dict[str, Any] = None) -> Any:
        _, body = await self.client.call("GET", url, self.access_token, form_params=params)
        return self._decode(url, body)

    @staticmethod
    def _decode(url: str, body: str) -> Any:
        try:
            return json.loads(body)
        except json.JSONDecodeError as e:
            logger.error(f"Invalid JSON from {url}: {str(e)}")
            raise ValueError(f"Twitter returned an invalid JSON response from {url}") from e

    async def get_updates(self, count: int = 20) -> List[Dict[str, Any]]:
        """
        Get the tweets on the user's home timeline.

        Args:
            count (int): Number of tweets to request

        Returns:
            List[Dict[str, Any]]: Tweets, newest first
        """
        return await self._get_json(HOME_TIMELINE_ENDPOINT, {"count": count})

    async def get_favorites(self, count: int = 20) -> List[Dict[str, Any]]:
        return await self._get_json(FAVORITES_ENDPOINT, {"count": count})

    async def verify_credentials(self) -> Dict[str, Any]:
        """
        Fetch the authenticated user's profile.

        Raises:
            RemoteError: If the token is rejected (401) or the call fails
        """
        return await self._get_json(VERIFY_CREDENTIALS_ENDPOINT)

    async def get_username(self) -> str:
        user = await self.verify_credentials()
        return user["screen_name"]

    async def update_profile_image(
        self,
        image: Union[bytes, str, Path],
        content_type: str = None,
    ) -> Dict[str, Any]:
        """
        Upload a new profile image.

        Args:
            image (Union[bytes, str, Path]): Image bytes or a path to an image file
            content_type (str): MIME type; guessed from the path when omitted

        Returns:
            Dict[str, Any]: The updated user profile
        """
        attachment = self._attachment(image, content_type, filename="twitterPhoto")
        _, body = await self.client.call(
            "POST", UPDATE_PROFILE_IMAGE_ENDPOINT, self.access_token, file_attachment=attachment
        )
        return self._decode(UPDATE_PROFILE_IMAGE_ENDPOINT, body)

    async def update_profile_background_image(
        self,
        image: Union[bytes, str, Path],
        content_type: str = None,
        tile: bool = False,
    ) -> Dict[str, Any]:
        """
        Upload a new profile background image.

        Args:
            image (Union[bytes, str, Path]): Image bytes or a path to an image file
            content_type (str): MIME type; guessed from the path when omitted
            tile (bool): Whether the background should be tiled

        Returns:
            Dict[str, Any]: The updated user profile
        """
        attachment = self._attachment(image, content_type)
        _, body = await self.client.call(
            "POST",
            UPDATE_PROFILE_BACKGROUND_IMAGE_ENDPOINT,
            self.access_token,
            form_params={"tile": str(tile).lower()},
            file_attachment=attachment,
        )
        return self._decode(UPDATE_PROFILE_BACKGROUND_IMAGE_ENDPOINT, body)

    @staticmethod
    def _attachment(image: Union[bytes, str, Path], content_type: str = None, filename: str = None) -> FileAttachment:
        if isinstance(image, bytes):
            if not content_type:
                raise ValueError("content_type is required when uploading raw image bytes")
            return FileAttachment(field_name="image", filename=filename or "image", content=image, content_type=content_type)

        path = Path(image)
        return FileAttachment(
            field_name="image",
            filename=filename or path.name,
            content=path.read_bytes(),
            content_type=content_type or image_content_type(path),
        )

    async def is_valid(self) -> bool:
        """
        Check whether the access token is still accepted by Twitter.

        Returns:
            bool: False if Twitter rejects the token (401/403), True otherwise

        Raises:
            RemoteError: For failures unrelated to the token
        """
        try:
            await self.verify_credentials()
            return True
        except RemoteError as e:
            if e.is_authorization_failure:
                logger.info(f"Twitter rejected access token {self.access_token.token}: {e.status_code}")
                return False
            raise
