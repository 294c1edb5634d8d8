# oauth1/__init__.py
"""
OAuth 1.0a Consumer
===================

A self-contained OAuth 1.0a consumer: request signing, the three-legged
handshake, pluggable temporary-credential storage, and a signing API client.

Components (leaf to root):
- signer: HMAC-SHA1 signature base string and signature computation
- storage: CredentialStore interface with in-memory and cookie backends
- consumer: the handshake state machine
- client: ServiceClient for signed API calls after the handshake
"""

from oauth1.client import FileAttachment, ServiceClient
from oauth1.consumer import Consumer, ConsumerState
from oauth1.errors import (
    ConfigurationError,
    HandshakeError,
    OAuthError,
    RemoteError,
    SigningError,
    TransportError,
)
from oauth1.models import (
    AccessToken,
    AuthorizationRequest,
    AuthorizationResponse,
    ConsumerCredential,
    ServiceProviderDescription,
    SignedRequest,
    TemporaryCredential,
)
from oauth1.signer import sign
from oauth1.storage import CookieCredentialStore, CredentialStore, MemoryCredentialStore

__all__ = [
    "AccessToken",
    "AuthorizationRequest",
    "AuthorizationResponse",
    "ConfigurationError",
    "Consumer",
    "ConsumerCredential",
    "ConsumerState",
    "CookieCredentialStore",
    "CredentialStore",
    "FileAttachment",
    "HandshakeError",
    "MemoryCredentialStore",
    "OAuthError",
    "RemoteError",
    "ServiceClient",
    "ServiceProviderDescription",
    "SignedRequest",
    "SigningError",
    "TemporaryCredential",
    "TransportError",
    "sign",
]
