# oauth1/errors.py
"""
OAuth 1.0a Error Taxonomy
=========================

Exceptions raised by the OAuth consumer. Every error raised by this package
derives from OAuthError, except for network-level failures which are raised
as httpx.TransportError (re-exported here as TransportError) and propagate
unchanged out of authenticated API calls.

- ConfigurationError: missing or empty consumer key/secret
- HandshakeError: any step of the three-legged flow was rejected or unparsable
- SigningError: malformed input to the signer (bad URL, unencodable parameter)
- RemoteError: non-2xx response from an authenticated API call
"""

from typing import Optional

from httpx import TransportError


class OAuthError(Exception):
    """Base class for all OAuth consumer errors."""


class ConfigurationError(OAuthError):
    """Raised when the consumer key or secret is missing or empty."""


class SigningError(OAuthError, ValueError):
    """Raised when a request cannot be signed because its input is malformed."""


class HandshakeError(OAuthError):
    """
    Raised when a step of the three-legged handshake fails.

    Attributes:
        status_code (Optional[int]): HTTP status returned by the remote, if any
        body (Optional[str]): Response body returned by the remote, if any
    """

    def __init__(self, message: str, status_code: Optional[int] = None, body: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body

    def __str__(self) -> str:
        message = super().__str__()
        if self.status_code is not None:
            message = f"{message} (status {self.status_code}: {self.body!r})"
        return message


class RemoteError(OAuthError):
    """
    Raised when an authenticated API call returns a non-2xx response.

    Attributes:
        status_code (int): HTTP status returned by the remote
        body (str): Response body returned by the remote
    """

    def __init__(self, status_code: int, body: str):
        super().__init__(f"Remote service returned {status_code}: {body!r}")
        self.status_code = status_code
        self.body = body

    @property
    def is_authorization_failure(self) -> bool:
        """True when the token is likely revoked or invalid and the handshake should be re-run."""
        return self.status_code in (401, 403)


__all__ = [
    "OAuthError",
    "ConfigurationError",
    "SigningError",
    "HandshakeError",
    "RemoteError",
    "TransportError",
]
