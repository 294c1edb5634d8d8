# oauth1/consumer.py
"""
OAuth 1.0a Consumer
===================

Orchestrates the three-legged handshake against a service provider:

1. ``begin_authorization`` requests a temporary credential, stores its secret
   in the CredentialStore, and returns the URL the user must be sent to.
2. The user authorizes the application on the provider's site, which then
   redirects back to the callback URL with ``oauth_token`` and
   ``oauth_verifier``.
3. ``complete_authorization`` looks the temporary secret up again, exchanges
   the temporary credential for an access token, and removes it from the store.

State machine:

    IDLE -> TEMPORARY_CREDENTIAL_REQUESTED -> AWAITING_USER_AUTHORIZATION -> COMPLETED
    (any state) -> FAILED

Web callers usually build a fresh Consumer per HTTP request, so the callback
request starts from IDLE; the store carries everything needed to resume.
No lock or in-memory handshake state is kept across the user's round trip.
"""

import logging
from enum import Enum
from typing import Dict, Optional
from urllib.parse import parse_qsl, unquote_plus, urlencode, urlsplit, urlunsplit

import httpx

from oauth1 import signer
from oauth1.client import ServiceClient
from oauth1.errors import ConfigurationError, HandshakeError
from oauth1.models import (
    AccessToken,
    AuthorizationRequest,
    AuthorizationResponse,
    ConsumerCredential,
    ServiceProviderDescription,
    TemporaryCredential,
)
from oauth1.storage import CredentialStore

logger = logging.getLogger(__name__)

OUT_OF_BAND_CALLBACK = "oob"


class ConsumerState(str, Enum):
    """States of the consumer's handshake."""
    IDLE = "idle"
    TEMPORARY_CREDENTIAL_REQUESTED = "temporary_credential_requested"
    AWAITING_USER_AUTHORIZATION = "awaiting_user_authorization"
    COMPLETED = "completed"
    FAILED = "failed"


def strip_oauth_arguments(url: str) -> str:
    """
    Remove any ``oauth_``-prefixed query arguments from a URL.

    The remaining arguments keep their original encoding; a URL without
    such arguments is returned unchanged.
    """
    parts = urlsplit(url)
    segments = parts.query.split("&") if parts.query else []
    kept = [segment for segment in segments if not unquote_plus(segment.partition("=")[0]).startswith("oauth_")]
    if len(kept) == len(segments):
        return url
    return urlunsplit((parts.scheme, parts.netloc, parts.path, "&".join(kept), parts.fragment))


def parse_form_response(body: str) -> Dict[str, str]:
    """Decode an ``application/x-www-form-urlencoded`` response body."""
    return dict(parse_qsl(body.strip(), keep_blank_values=True))


class Consumer:
    """
    OAuth 1.0a consumer for one service provider.

    Attributes:
        consumer_credential (ConsumerCredential): The application's key/secret
        service_provider (ServiceProviderDescription): The provider's endpoints
        credential_store (CredentialStore): Where temporary secrets are kept
        http_client (Optional[httpx.AsyncClient]): Client to send requests with;
            a short-lived client is opened per request when None
        timeout (float): Timeout in seconds for short-lived clients
    """

    def __init__(
        self,
        consumer_credential: ConsumerCredential,
        service_provider: ServiceProviderDescription,
        credential_store: CredentialStore,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
    ):
        if not consumer_credential.key:
            raise ConfigurationError("Consumer key must not be empty")

        self.consumer_credential = consumer_credential
        self.service_provider = service_provider
        self.credential_store = credential_store
        self.http_client = http_client
        self.timeout = timeout
        self._state = ConsumerState.IDLE

    @property
    def state(self) -> ConsumerState:
        return self._state

    async def _post(self, url: str, headers: Dict[str, str]) -> httpx.Response:
        if self.http_client is not None:
            return await self.http_client.post(url, headers=headers)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.post(url, headers=headers)

    def _fail(self, message: str, status_code: Optional[int] = None, body: Optional[str] = None) -> HandshakeError:
        self._state = ConsumerState.FAILED
        logger.error(f"OAuth handshake failed: {message} (status={status_code})")
        return HandshakeError(message, status_code=status_code, body=body)

    async def request_temporary_credential(self, callback_url: str) -> TemporaryCredential:
        """
        Ask the provider for a temporary credential.

        The callback URL is sent as ``oauth_callback`` after stripping any
        ``oauth_`` query arguments left over from a previous round trip.

        Args:
            callback_url (str): Where the provider should redirect the user,
                or ``"oob"`` for the out-of-band (PIN) flow

        Returns:
            TemporaryCredential: The issued token/secret pair

        Raises:
            HandshakeError: If the request fails, is rejected, or the provider
                does not confirm the callback
        """
        if self._state != ConsumerState.IDLE:
            raise HandshakeError(f"Cannot begin authorization from state {self._state.value}")

        if callback_url != OUT_OF_BAND_CALLBACK:
            callback_url = strip_oauth_arguments(callback_url)

        endpoint = self.service_provider.request_token_endpoint
        signed = signer.sign_request("POST", endpoint, self.consumer_credential, callback=callback_url)
        self._state = ConsumerState.TEMPORARY_CREDENTIAL_REQUESTED

        try:
            response = await self._post(endpoint, {"Authorization": signer.authorization_header(signed)})
        except httpx.HTTPError as e:
            raise self._fail(f"temporary credential request rejected: {e}") from e

        if not response.is_success:
            raise self._fail("temporary credential request rejected", response.status_code, response.text)

        credentials = parse_form_response(response.text)
        token = credentials.get("oauth_token")
        secret = credentials.get("oauth_token_secret")
        if not token or secret is None:
            raise self._fail("temporary credential request rejected", response.status_code, response.text)
        if credentials.get("oauth_callback_confirmed") != "true":
            raise self._fail("temporary credential request rejected", response.status_code, response.text)

        return TemporaryCredential(token=token, secret=secret, callback_confirmed=True)

    def build_authorization_url(self, request: AuthorizationRequest) -> str:
        """
        Build the URL the user is redirected to in order to authorize.

        Only ``oauth_token`` (plus ``force_login=true`` when re-authentication
        is forced, and any extra parameters) is placed on the URL; the
        temporary secret is never transmitted.
        """
        query = {"oauth_token": request.temporary_credential.token}
        if request.force_reauth:
            query["force_login"] = "true"
        query.update(request.extra_parameters)

        endpoint = self.service_provider.user_authorization_endpoint
        separator = "&" if urlsplit(endpoint).query else "?"
        return f"{endpoint}{separator}{urlencode(query)}"

    async def begin_authorization(
        self,
        callback_url: str,
        force_reauth: bool = False,
        extra_parameters: Optional[Dict[str, str]] = None,
    ) -> str:
        """
        Start the handshake and return the redirect URL for the user.

        Args:
            callback_url (str): The application's callback endpoint, or ``"oob"``
            force_reauth (bool): Require the user to re-enter their credentials
            extra_parameters (Optional[Dict[str, str]]): Additional query
                arguments for the authorization URL

        Returns:
            str: The provider's authorization URL carrying ``oauth_token``

        Raises:
            HandshakeError: If the temporary credential cannot be obtained
        """
        temporary = await self.request_temporary_credential(callback_url)

        # No await between here and the return, so a cancelled handshake never leaves an entry behind
        self.credential_store.put(temporary.token, temporary.secret)
        self._state = ConsumerState.AWAITING_USER_AUTHORIZATION
        logger.info(f"Obtained temporary credential {temporary.token}; awaiting user authorization")

        return self.build_authorization_url(AuthorizationRequest(
            temporary_credential=temporary,
            callback_url=callback_url,
            force_reauth=force_reauth,
            extra_parameters=extra_parameters or {},
        ))

    def parse_authorization_response(self, callback_response_url: str) -> Optional[AuthorizationResponse]:
        """
        Extract the authorization response from the callback URL.

        Accepts either a full URL or a bare query string.

        Returns:
            Optional[AuthorizationResponse]: None if the URL does not carry both
            ``oauth_token`` and ``oauth_verifier`` (the user denied access, or
            the request is not an OAuth callback)
        """
        query = urlsplit(callback_response_url).query if "?" in callback_response_url else callback_response_url
        arguments = dict(parse_qsl(query.lstrip("?"), keep_blank_values=True))

        token = arguments.pop("oauth_token", None)
        verifier = arguments.pop("oauth_verifier", None)
        if not token or not verifier:
            return None

        return AuthorizationResponse(token=token, verifier=verifier, extra_data=arguments)

    async def complete_authorization(self, callback_response_url: str) -> Optional[AccessToken]:
        """
        Finish the handshake by exchanging the temporary credential.

        Args:
            callback_response_url (str): The URL (or query string) the provider
                redirected the user back to

        Returns:
            Optional[AccessToken]: The access token, or None if the URL is not
            an authorization response (for example, the user denied access)

        Raises:
            HandshakeError: If the temporary credential is unknown or expired,
                or the provider rejects the exchange
        """
        if self._state not in (ConsumerState.IDLE, ConsumerState.AWAITING_USER_AUTHORIZATION):
            raise HandshakeError(f"Cannot complete authorization from state {self._state.value}")

        authorization = self.parse_authorization_response(callback_response_url)
        if authorization is None:
            logger.info("Callback carries no OAuth verifier; authorization was denied or not attempted")
            return None

        temporary_secret = self.credential_store.get(authorization.token)
        if temporary_secret is None:
            raise self._fail("unknown or expired temporary credential")

        endpoint = self.service_provider.access_token_endpoint
        signed = signer.sign_request(
            "POST",
            endpoint,
            self.consumer_credential,
            token=authorization.token,
            token_secret=temporary_secret,
            verifier=authorization.verifier,
        )

        try:
            response = await self._post(endpoint, {"Authorization": signer.authorization_header(signed)})
        except httpx.HTTPError as e:
            raise self._fail(f"access token request failed: {e}") from e

        if not response.is_success:
            raise self._fail("access token request rejected", response.status_code, response.text)

        credentials = parse_form_response(response.text)
        token = credentials.pop("oauth_token", None)
        secret = credentials.pop("oauth_token_secret", None)
        if not token or secret is None:
            raise self._fail("access token response lacks token information", response.status_code, response.text)

        self.credential_store.remove(authorization.token)
        self._state = ConsumerState.COMPLETED
        logger.info(f"Exchanged temporary credential {authorization.token} for an access token")

        return AccessToken(token=token, secret=secret, extra_data=credentials)

    def abandon_authorization(self, temporary_token: str) -> None:
        """Discard a stored temporary credential after failure or cancellation."""
        self.credential_store.remove(temporary_token)
        logger.info(f"Abandoned temporary credential {temporary_token}")

    def create_client(self, access_token: AccessToken, http_client: Optional[httpx.AsyncClient] = None) -> ServiceClient:
        """
        Build a ServiceClient that signs requests with this consumer's credential.

        Args:
            access_token (AccessToken): Token obtained from ``complete_authorization``
            http_client (Optional[httpx.AsyncClient]): Overrides the consumer's client

        Returns:
            ServiceClient: A client bound to ``access_token``
        """
        return ServiceClient(
            self.consumer_credential,
            access_token=access_token,
            http_client=http_client or self.http_client,
            timeout=self.timeout,
        )
