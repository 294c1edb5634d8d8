# oauth1/signer.py
"""
OAuth 1.0a Request Signer
=========================

Pure functions that compute the HMAC-SHA1 signature for an outgoing request,
as described in RFC 5849 section 3.4:

1. Collect the request parameters: the query string of the URL, any
   form-encodable body parameters, and the ``oauth_*`` protocol parameters
   (``oauth_signature`` and ``realm`` never participate).
2. Percent-encode every name and value with the RFC 3986 unreserved set,
   sort by encoded name then encoded value, and join with ``&``.
3. Build the signature base string from the uppercase method, the
   normalized base URL (scheme and host lowercased, default port dropped,
   no query or fragment), and the normalized parameter string.
4. Sign with the key ``encode(consumer_secret)&encode(token_secret)``.

Binary or multipart body content is never passed to these functions, so file
bytes are never part of the signature.

Nothing in this module holds state; concurrent signings are independent as
long as each generates its own nonce and timestamp.
"""

import base64
import hashlib
import hmac
import logging
import secrets
import time
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union
from urllib.parse import parse_qsl, quote, unquote, urlsplit

from oauth1.errors import SigningError
from oauth1.models import ConsumerCredential, SignedRequest

logger = logging.getLogger(__name__)

SIGNATURE_METHOD = "HMAC-SHA1"
OAUTH_VERSION = "1.0"

Parameters = Union[Mapping[str, Any], Iterable[Tuple[str, Any]], None]

_DEFAULT_PORTS = {"http": 80, "https": 443}
_EXCLUDED_PARAMETERS = ("oauth_signature", "realm")


def percent_encode(value: Any) -> str:
    """
    Percent-encode a value using OAuth's encoding rules.

    Letters, digits and ``-._~`` are left alone; everything else, including
    spaces, is encoded as ``%XX`` over the UTF-8 bytes of the value.

    Args:
        value (Any): A str, UTF-8 bytes, or anything with a meaningful str()

    Returns:
        str: The encoded value

    Raises:
        SigningError: If the value cannot be represented as UTF-8
    """
    if isinstance(value, bytes):
        try:
            value = value.decode("utf-8")
        except UnicodeDecodeError as e:
            raise SigningError(f"Parameter is not valid UTF-8: {value!r}") from e
    elif not isinstance(value, str):
        value = str(value)

    try:
        return quote(value.encode("utf-8"), safe="~")
    except UnicodeEncodeError as e:
        raise SigningError(f"Parameter cannot be encoded: {value!r}") from e


def normalize_url(url: str) -> str:
    """
    Reduce a request URL to the base string URI form.

    Raises:
        SigningError: If the URL is not an absolute http(s) URL
    """
    try:
        parts = urlsplit(url)
        port = parts.port
    except (TypeError, ValueError, AttributeError) as e:
        raise SigningError(f"Malformed URL: {url!r}") from e

    scheme = parts.scheme.lower()
    if scheme not in _DEFAULT_PORTS or not parts.hostname:
        raise SigningError(f"Malformed URL: {url!r}")

    host = parts.hostname.lower()
    if port is not None and port != _DEFAULT_PORTS[scheme]:
        host = f"{host}:{port}"

    return f"{scheme}://{host}{parts.path or '/'}"


def iter_parameters(parameters: Parameters) -> List[Tuple[str, Any]]:
    """Flatten a mapping (with optional list values) or a pair sequence into pairs."""
    if parameters is None:
        return []

    items = parameters.items() if isinstance(parameters, Mapping) else parameters
    pairs = []
    for name, value in items:
        if isinstance(value, (list, tuple)):
            pairs.extend((name, item) for item in value)
        else:
            pairs.append((name, value))
    return pairs


def collect_parameters(url: str, parameters: Parameters = None) -> List[Tuple[str, Any]]:
    """Combine the URL's query parameters with the given request parameters."""
    try:
        query = urlsplit(url).query
    except (TypeError, ValueError, AttributeError) as e:
        raise SigningError(f"Malformed URL: {url!r}") from e

    return parse_qsl(query, keep_blank_values=True) + iter_parameters(parameters)


def normalize_parameters(pairs: Iterable[Tuple[str, Any]]) -> str:
    """
    Build the normalized request parameter string.

    The result does not depend on the order in which pairs are supplied.
    """
    encoded = sorted(
        (percent_encode(name), percent_encode(value))
        for name, value in pairs
        if name not in _EXCLUDED_PARAMETERS
    )
    return "&".join(f"{name}={value}" for name, value in encoded)


def signature_base_string(method: str, url: str, parameters: Parameters = None) -> str:
    """
    Build the signature base string for a request.

    Args:
        method (str): HTTP method
        url (str): Request URL; its query string participates in the signature
        parameters (Parameters): OAuth and form-encodable body parameters

    Returns:
        str: ``METHOD&encoded-base-url&encoded-parameter-string``

    Raises:
        SigningError: If the method is empty or the URL is malformed
    """
    if not method or not isinstance(method, str):
        raise SigningError(f"Invalid HTTP method: {method!r}")

    return "&".join((
        percent_encode(method.upper()),
        percent_encode(normalize_url(url)),
        percent_encode(normalize_parameters(collect_parameters(url, parameters))),
    ))


def signing_key(consumer_secret: Optional[str], token_secret: Optional[str] = None) -> str:
    # An empty consumer secret is legal and yields a key starting with "&"
    return f"{percent_encode(consumer_secret or '')}&{percent_encode(token_secret or '')}"


def sign(
    method: str,
    url: str,
    parameters: Parameters,
    consumer_secret: Optional[str],
    token_secret: Optional[str] = None,
) -> str:
    """
    Compute the base64-encoded HMAC-SHA1 signature of a request.

    Args:
        method (str): HTTP method
        url (str): Request URL
        parameters (Parameters): OAuth parameters plus any signable body parameters
        consumer_secret (Optional[str]): The application's consumer secret
        token_secret (Optional[str]): The temporary or access token secret, if any

    Returns:
        str: The oauth_signature value

    Raises:
        SigningError: If any input is malformed
    """
    base_string = signature_base_string(method, url, parameters)
    key = signing_key(consumer_secret, token_secret)
    digest = hmac.new(key.encode("ascii"), base_string.encode("ascii"), hashlib.sha1).digest()
    return base64.b64encode(digest).decode("ascii")


def generate_nonce() -> str:
    return secrets.token_hex(16)


def generate_timestamp() -> str:
    return str(int(time.time()))


def sign_request(
    method: str,
    url: str,
    consumer: ConsumerCredential,
    token: Optional[str] = None,
    token_secret: Optional[str] = None,
    parameters: Parameters = None,
    callback: Optional[str] = None,
    verifier: Optional[str] = None,
    realm: Optional[str] = None,
    nonce: Optional[str] = None,
    timestamp: Optional[str] = None,
) -> SignedRequest:
    """
    Produce the OAuth protocol parameters and signature for one request.

    A fresh nonce and the current timestamp are generated unless given
    explicitly.

    Args:
        method (str): HTTP method
        url (str): Request URL, possibly with a query string
        consumer (ConsumerCredential): The application's credential
        token (Optional[str]): Temporary or access token, if one is held
        token_secret (Optional[str]): Secret belonging to ``token``
        parameters (Parameters): Form-encodable body parameters to sign
        callback (Optional[str]): Value for oauth_callback
        verifier (Optional[str]): Value for oauth_verifier
        realm (Optional[str]): Realm to place in the Authorization header; it
            never participates in the signature, and Twitter does not use one
        nonce (Optional[str]): Explicit nonce
        timestamp (Optional[str]): Explicit timestamp in seconds since epoch

    Returns:
        SignedRequest: The signed protocol parameters
    """
    oauth_parameters: Dict[str, str] = {
        "oauth_consumer_key": consumer.key,
        "oauth_nonce": nonce or generate_nonce(),
        "oauth_signature_method": SIGNATURE_METHOD,
        "oauth_timestamp": timestamp or generate_timestamp(),
        "oauth_version": OAUTH_VERSION,
    }
    if token:
        oauth_parameters["oauth_token"] = token
    if callback is not None:
        oauth_parameters["oauth_callback"] = callback
    if verifier is not None:
        oauth_parameters["oauth_verifier"] = verifier

    signing_parameters = list(oauth_parameters.items()) + iter_parameters(parameters)
    signature = sign(method, url, signing_parameters, consumer.secret, token_secret)

    logger.debug(f"Signed {method.upper()} {normalize_url(url)} with nonce {oauth_parameters['oauth_nonce']}")

    return SignedRequest(
        method=method.upper(),
        url=url,
        timestamp=oauth_parameters["oauth_timestamp"],
        nonce=oauth_parameters["oauth_nonce"],
        signature=signature,
        oauth_parameters=oauth_parameters,
        realm=realm,
    )


def authorization_header(signed: SignedRequest) -> str:
    """Render a SignedRequest as an ``Authorization: OAuth ...`` header value."""
    parts = []
    if signed.realm is not None:
        parts.append(f'realm="{percent_encode(signed.realm)}"')
    parts.extend(
        f'{percent_encode(name)}="{percent_encode(value)}"'
        for name, value in sorted(signed.all_oauth_parameters().items())
    )
    return "OAuth " + ", ".join(parts)


def parse_authorization_header(header: str) -> Dict[str, str]:
    """
    Parse an ``Authorization: OAuth ...`` header value back into parameters.

    The consumer never receives such headers; this exists for verifying the
    headers it sends, e.g. recomputing the signature of a captured request.

    Raises:
        SigningError: If the header is not an OAuth header
    """
    scheme, _, params = header.partition(" ")
    if scheme.lower() != "oauth":
        raise SigningError(f"Not an OAuth Authorization header: {header!r}")

    parsed = {}
    for item in params.split(","):
        name, sep, value = item.strip().partition("=")
        if not sep:
            continue
        parsed[unquote(name)] = unquote(value.strip('"'))
    return parsed
