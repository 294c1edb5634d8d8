# oauth1/storage.py
"""
Temporary Credential Storage
============================

Holds the temporary-credential secret between the request-token step and the
access-token exchange. The handshake leaves the process while the user visits
the provider, so everything needed to resume lives here rather than on the
Consumer.

Two interchangeable backends are provided:

- MemoryCredentialStore: a process-local mapping, for native callers that
  never relinquish control of the process between the two steps.
- CookieCredentialStore: an encrypted HTTP cookie, for web callers whose
  callback request may be served by a different worker or process.

The choice of backend belongs to the caller; the Consumer only uses
``put``/``get``/``remove``.
"""

import base64
import hashlib
import json
import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional, Tuple

from cryptography.fernet import Fernet, InvalidToken

logger = logging.getLogger(__name__)


class CredentialStore(ABC):
    """
    Interface for temporary-credential storage keyed by the temporary token.
    """

    @abstractmethod
    def put(self, correlation_id: str, secret: str) -> None:
        """Store the secret belonging to a temporary token."""

    @abstractmethod
    def get(self, correlation_id: str) -> Optional[str]:
        """
        Return the secret for a temporary token.

        Returns:
            Optional[str]: The secret, or None if the token is unknown, expired
            or was already removed
        """

    @abstractmethod
    def remove(self, correlation_id: str) -> None:
        """Forget a temporary token. Removing an unknown token is a no-op."""


class MemoryCredentialStore(CredentialStore):
    """Process-local store backed by a dict guarded by a lock."""

    def __init__(self):
        self._secrets: Dict[str, str] = {}
        self._lock = threading.Lock()

    def put(self, correlation_id: str, secret: str) -> None:
        with self._lock:
            self._secrets[correlation_id] = secret

    def get(self, correlation_id: str) -> Optional[str]:
        with self._lock:
            return self._secrets.get(correlation_id)

    def remove(self, correlation_id: str) -> None:
        with self._lock:
            self._secrets.pop(correlation_id, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._secrets)


def derive_fernet_key(secret_key: str) -> bytes:
    """Derive a Fernet key from an arbitrary application secret."""
    return base64.urlsafe_b64encode(hashlib.sha256(secret_key.encode("utf-8")).digest())


class CookieCredentialStore(CredentialStore):
    """
    Store that keeps a single temporary credential in an encrypted cookie.

    The store is bound to one HTTP exchange: it reads the cookie sent with
    the incoming request and records changes which are written to the
    outgoing response by ``apply``. Only one handshake per browser is held
    at a time; a ``get`` for any other token returns None.

    Attributes:
        cookie_name (str): Name of the cookie carrying the credential
        max_age (int): Lifetime of the cookie, also enforced on decryption
        secure (bool): Whether the cookie is marked Secure
    """

    def __init__(
        self,
        request_cookies: Mapping[str, str],
        secret_key: str,
        cookie_name: str = "oauth_temporary_credential",
        max_age: int = 600,
        secure: bool = False,
        path: str = "/",
    ):
        """
        Initialize the cookie store for one request/response exchange.

        Args:
            request_cookies (Mapping[str, str]): Cookies sent with the incoming request
            secret_key (str): Application secret the encryption key is derived from
            cookie_name (str): Name of the cookie carrying the credential
            max_age (int): Seconds before the stored credential expires
            secure (bool): Mark the cookie Secure (HTTPS only)
            path (str): Cookie path
        """
        self._fernet = Fernet(derive_fernet_key(secret_key))
        self.cookie_name = cookie_name
        self.max_age = max_age
        self.secure = secure
        self.path = path
        self._current: Optional[Tuple[str, str]] = self._decode(request_cookies.get(cookie_name))
        self._pending: List[Tuple[str, Optional[str]]] = []

    def _encode(self, correlation_id: str, secret: str) -> str:
        payload = json.dumps({"token": correlation_id, "secret": secret})
        return self._fernet.encrypt(payload.encode("utf-8")).decode("ascii")

    def _decode(self, value: Optional[str]) -> Optional[Tuple[str, str]]:
        if not value:
            return None
        try:
            payload = json.loads(self._fernet.decrypt(value.encode("ascii"), ttl=self.max_age))
            return payload["token"], payload["secret"]
        except (InvalidToken, UnicodeEncodeError, ValueError, KeyError, TypeError):
            logger.warning(f"Ignoring unreadable or expired {self.cookie_name} cookie")
            return None

    def put(self, correlation_id: str, secret: str) -> None:
        self._current = (correlation_id, secret)
        self._pending.append(("set", self._encode(correlation_id, secret)))

    def get(self, correlation_id: str) -> Optional[str]:
        if self._current is None or self._current[0] != correlation_id:
            return None
        return self._current[1]

    def remove(self, correlation_id: str) -> None:
        if self._current is not None and self._current[0] == correlation_id:
            self._current = None
            self._pending.append(("delete", None))

    def apply(self, response: Any) -> Any:
        """
        Write the recorded changes onto an outgoing Starlette/FastAPI response.

        Args:
            response: A ``starlette.responses.Response``

        Returns:
            The same response, for chaining
        """
        for action, value in self._pending:
            if action == "set":
                response.set_cookie(
                    self.cookie_name,
                    value,
                    max_age=self.max_age,
                    path=self.path,
                    secure=self.secure,
                    httponly=True,
                    samesite="lax",
                )
            else:
                response.delete_cookie(self.cookie_name, path=self.path)
        self._pending = []
        return response
