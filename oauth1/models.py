# oauth1/models.py
"""
OAuth 1.0a Data Model
=====================

Pydantic models for the credentials and messages exchanged during the
three-legged handshake and afterwards:

- ConsumerCredential: the application's key/secret pair issued by the provider
- ServiceProviderDescription: the provider's request/authorize/access endpoint triple
- TemporaryCredential: the short-lived token/secret pair from step 1
- AuthorizationRequest: what the user is redirected with in step 2
- AuthorizationResponse: what the provider redirects back with
- AccessToken: the long-lived token/secret pair used to sign API calls
- SignedRequest: the OAuth parameters of one outgoing signed request

Provider-specific extras (e.g. Twitter's screen_name and user_id) are kept in
an open string-keyed ``extra_data`` mapping rather than fixed fields.
"""

from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class ConsumerCredential(BaseModel):
    """Key/secret pair identifying the application to the provider."""

    model_config = ConfigDict(frozen=True)

    key: str
    secret: str = Field(repr=False)


class ServiceProviderDescription(BaseModel):
    """
    The endpoints a provider exposes for the OAuth 1.0a handshake.

    Attributes:
        request_token_endpoint (str): Where temporary credentials are requested (POST)
        user_authorization_endpoint (str): Where the user is sent to authorize (browser GET)
        access_token_endpoint (str): Where the temporary credential is exchanged (POST)
    """

    model_config = ConfigDict(frozen=True)

    request_token_endpoint: str
    user_authorization_endpoint: str
    access_token_endpoint: str


class TemporaryCredential(BaseModel):
    token: str
    secret: str = Field(repr=False)
    callback_confirmed: bool = False


class AuthorizationRequest(BaseModel):
    """Transient description of the redirect that sends the user to the provider."""

    temporary_credential: TemporaryCredential
    callback_url: str
    force_reauth: bool = False
    extra_parameters: Dict[str, str] = Field(default_factory=dict)


class AuthorizationResponse(BaseModel):
    token: str
    verifier: str
    extra_data: Dict[str, str] = Field(default_factory=dict)


class AccessToken(BaseModel):
    """
    The long-lived credential obtained at the end of a successful handshake.

    Access tokens do not expire by protocol; they remain valid until the user
    or the provider revokes them. The caller owns persistence.

    Attributes:
        token (str): The oauth_token value
        secret (str): The oauth_token_secret value
        extra_data (Dict[str, str]): Provider-specific fields returned with the token
    """

    token: str
    secret: str = Field(repr=False)
    extra_data: Dict[str, str] = Field(default_factory=dict)


class SignedRequest(BaseModel):
    """
    The OAuth parameters attached to one outgoing request.

    ``oauth_parameters`` holds every ``oauth_*`` protocol parameter except the
    signature itself (consumer key, token, signature method, timestamp, nonce,
    version, and any of callback/verifier).
    """

    method: str
    url: str
    timestamp: str
    nonce: str
    signature: str
    oauth_parameters: Dict[str, str] = Field(default_factory=dict)
    realm: Optional[str] = None

    def all_oauth_parameters(self) -> Dict[str, str]:
        parameters = dict(self.oauth_parameters)
        parameters["oauth_signature"] = self.signature
        return parameters
