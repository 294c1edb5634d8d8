# oauth1/client.py
"""
OAuth 1.0a Service Client
=========================

A thin client that signs application-level API calls with an access token.

Every call generates a fresh nonce and timestamp, so one ServiceClient (or
one AccessToken shared between several clients) can be used concurrently
from many tasks. Non-2xx responses surface as RemoteError; network failures
propagate unchanged as httpx.TransportError. Nothing is retried here.

For uploads the file travels in a multipart body. Only the non-file form
fields and the OAuth parameters participate in the signature; the file
bytes never do.
"""

import logging
from typing import Any, Dict, Optional, Tuple

import httpx
from pydantic import BaseModel

from oauth1 import signer
from oauth1.errors import ConfigurationError, RemoteError
from oauth1.models import AccessToken, ConsumerCredential

logger = logging.getLogger(__name__)


class FileAttachment(BaseModel):
    """
    A file sent as one part of a multipart/form-data request.

    Attributes:
        field_name (str): Form field the file is attached under
        filename (str): File name reported to the server
        content (bytes): Raw file bytes
        content_type (str): MIME type of the file
    """

    field_name: str
    filename: str
    content: bytes
    content_type: str = "application/octet-stream"


class ServiceClient:
    """
    Signs and sends API calls on behalf of a user.

    Attributes:
        consumer_credential (ConsumerCredential): The application's key/secret
        access_token (Optional[AccessToken]): Default token for calls that do
            not pass one explicitly
        http_client (Optional[httpx.AsyncClient]): Client to send requests with;
            a short-lived client is opened per request when None
        timeout (float): Timeout in seconds for short-lived clients
        sign_multipart_fields (bool): Whether non-file fields of a multipart
            upload take part in the signature
    """

    def __init__(
        self,
        consumer_credential: ConsumerCredential,
        access_token: Optional[AccessToken] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
        sign_multipart_fields: bool = True,
    ):
        if not consumer_credential.key:
            raise ConfigurationError("Consumer key must not be empty")

        self.consumer_credential = consumer_credential
        self.access_token = access_token
        self.http_client = http_client
        self.timeout = timeout
        self.sign_multipart_fields = sign_multipart_fields

    def prepare_request(
        self,
        method: str,
        url: str,
        access_token: AccessToken,
        form_params: Optional[Dict[str, Any]] = None,
        file_attachment: Optional[FileAttachment] = None,
    ) -> httpx.Request:
        """
        Build a signed, ready-to-send request.

        GET, DELETE and HEAD carry ``form_params`` in the query string. Other methods
        send them form-encoded in the body, or as multipart fields next to the
        file when ``file_attachment`` is given.

        Raises:
            SigningError: If the URL or a parameter cannot be signed
        """
        method = method.upper()
        form_params = {name: str(value) for name, value in (form_params or {}).items()}

        query_method = method in ("GET", "DELETE", "HEAD")

        signed_params = form_params
        if file_attachment is not None and not query_method and not self.sign_multipart_fields:
            signed_params = {}

        signed = signer.sign_request(
            method,
            url,
            self.consumer_credential,
            token=access_token.token,
            token_secret=access_token.secret,
            parameters=signed_params,
        )
        headers = {"Authorization": signer.authorization_header(signed)}
        extensions = {"timeout": httpx.Timeout(self.timeout).as_dict()}

        if query_method:
            return httpx.Request(method, url, params=form_params or None, headers=headers, extensions=extensions)
        if file_attachment is not None:
            files = {
                file_attachment.field_name: (
                    file_attachment.filename,
                    file_attachment.content,
                    file_attachment.content_type,
                )
            }
            return httpx.Request(method, url, data=form_params or None, files=files, headers=headers, extensions=extensions)
        return httpx.Request(method, url, data=form_params or None, headers=headers, extensions=extensions)

    async def _send(self, request: httpx.Request) -> httpx.Response:
        if self.http_client is not None:
            return await self.http_client.send(request)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.send(request)

    async def call(
        self,
        method: str,
        url: str,
        access_token: Optional[AccessToken] = None,
        form_params: Optional[Dict[str, Any]] = None,
        file_attachment: Optional[FileAttachment] = None,
    ) -> Tuple[int, str]:
        """
        Send a signed API call.

        Args:
            method (str): HTTP method
            url (str): Endpoint URL
            access_token (Optional[AccessToken]): Token to sign with; defaults
                to the client's own token
            form_params (Optional[Dict[str, Any]]): Query or form parameters
            file_attachment (Optional[FileAttachment]): File to upload as multipart

        Returns:
            Tuple[int, str]: The status code and response body

        Raises:
            RemoteError: If the response status is not 2xx
            httpx.TransportError: If the request could not be delivered
            ValueError: If no access token is available
        """
        access_token = access_token or self.access_token
        if access_token is None:
            raise ValueError("An access token is required to sign API calls")

        request = self.prepare_request(method, url, access_token, form_params, file_attachment)
        logger.debug(f"Calling {request.method} {request.url}")

        response = await self._send(request)
        if not response.is_success:
            logger.warning(f"{request.method} {url} returned {response.status_code}")
            raise RemoteError(response.status_code, response.text)

        return response.status_code, response.text

    async def get(self, url: str, params: Optional[Dict[str, Any]] = None, access_token: Optional[AccessToken] = None) -> Tuple[int, str]:
        return await self.call("GET", url, access_token=access_token, form_params=params)

    async def post(
        self,
        url: str,
        data: Optional[Dict[str, Any]] = None,
        file_attachment: Optional[FileAttachment] = None,
        access_token: Optional[AccessToken] = None,
    ) -> Tuple[int, str]:
        return await self.call("POST", url, access_token=access_token, form_params=data, file_attachment=file_attachment)
