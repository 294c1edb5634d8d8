# twitter_consumer/routes.py
"""
Twitter OAuth Routes
====================

HTTP endpoints for signing in with Twitter through the OAuth 1.0a flow and
for making a few signed API calls with the resulting access token.

The temporary credential is kept in an encrypted cookie between the login
redirect and the callback, so the callback may be served by any worker.
The access token is kept in the session with its secret encrypted.

Routes (mounted under ``/twitter``):
- GET  /oauth/login: start the handshake and redirect to Twitter
- GET  /oauth/callback: finish the handshake and store the access token
- POST /oauth/logout: forget the access token
- GET  /me: the authenticated user's profile
- GET  /timeline: the authenticated user's home timeline
"""

import logging
from typing import Any, Dict, Optional
from urllib.parse import urlsplit

import httpx
from cryptography.fernet import Fernet, InvalidToken
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse, RedirectResponse

from config import Settings, get_settings
from oauth1.client import ServiceClient
from oauth1.errors import ConfigurationError, HandshakeError, RemoteError
from oauth1.models import AccessToken
from oauth1.storage import CookieCredentialStore, derive_fernet_key
from twitter_consumer.api import TwitterAPI
from twitter_consumer.service import create_consumer

logger = logging.getLogger(__name__)

ACCESS_TOKEN_SESSION_KEY = "twitter_access_token"
NEXT_URL_SESSION_KEY = "twitter_auth_next"

router = APIRouter(prefix="/twitter", tags=["twitter", "oauth"])


def get_http_client() -> Optional[httpx.AsyncClient]:
    """
    Dependency providing the HTTP client used to reach Twitter.

    Returns None so that each call opens its own short-lived client; tests
    override this to inject a mock transport.
    """
    return None


def safe_next_url(next_url: Optional[str]) -> str:
    """
    Restrict a post-login redirect target to a path on this site.

    Anything that is not a relative path starting with a single ``/`` (an
    absolute URL, a scheme-relative ``//host`` URL, or a backslash variant
    browsers treat the same way) is replaced by ``/``.
    """
    if not next_url or not next_url.startswith("/") or next_url.startswith("//") or "\\" in next_url:
        return "/"

    parts = urlsplit(next_url)
    if parts.scheme or parts.netloc:
        return "/"
    return next_url


def cookie_store_for(request: Request, settings: Settings) -> CookieCredentialStore:
    """Build a cookie-backed temporary credential store for this request."""
    return CookieCredentialStore(
        request.cookies,
        settings.SECRET_KEY,
        cookie_name=settings.CREDENTIAL_COOKIE_NAME,
        max_age=settings.CREDENTIAL_COOKIE_MAX_AGE_SECONDS,
        secure=settings.SESSION_HTTPS_ONLY,
    )


def save_access_token(request: Request, access_token: AccessToken, settings: Settings) -> None:
    fernet = Fernet(derive_fernet_key(settings.SECRET_KEY))
    request.session[ACCESS_TOKEN_SESSION_KEY] = {
        "token": access_token.token,
        "secret": fernet.encrypt(access_token.secret.encode("utf-8")).decode("ascii"),
        "extra_data": access_token.extra_data,
    }


def load_access_token(request: Request, settings: Settings) -> Optional[AccessToken]:
    stored: Optional[Dict[str, Any]] = request.session.get(ACCESS_TOKEN_SESSION_KEY)
    if not stored:
        return None

    fernet = Fernet(derive_fernet_key(settings.SECRET_KEY))
    try:
        secret = fernet.decrypt(stored["secret"].encode("ascii")).decode("utf-8")
    except (InvalidToken, KeyError, AttributeError):
        logger.warning("Discarding unreadable access token from session")
        request.session.pop(ACCESS_TOKEN_SESSION_KEY, None)
        return None

    return AccessToken(token=stored["token"], secret=secret, extra_data=stored.get("extra_data", {}))


def _require_twitter_api(request: Request, settings: Settings, http_client: Optional[httpx.AsyncClient]) -> TwitterAPI:
    access_token = load_access_token(request, settings)
    if access_token is None:
        raise HTTPException(status_code=401, detail="Not authenticated with Twitter")

    try:
        client = ServiceClient(
            settings.consumer_credential(),
            access_token=access_token,
            http_client=http_client,
            timeout=settings.HTTP_TIMEOUT_SECONDS,
        )
    except ConfigurationError as e:
        logger.error(f"Twitter OAuth is not configured: {str(e)}")
        raise HTTPException(status_code=500, detail="Twitter OAuth is not configured")

    return TwitterAPI(client, access_token)


def _raise_for_remote_error(request: Request, e: RemoteError) -> None:
    if e.is_authorization_failure:
        # Token revoked or invalid; the user has to sign in again
        request.session.pop(ACCESS_TOKEN_SESSION_KEY, None)
        raise HTTPException(status_code=401, detail="Twitter rejected the access token")
    raise HTTPException(status_code=502, detail=f"Twitter API error: {e.status_code}")


@router.get("/oauth/login")
async def twitter_oauth_login(
    request: Request,
    next: str = Query(None),
    force_login: bool = Query(False),
    settings: Settings = Depends(get_settings),
    http_client: Optional[httpx.AsyncClient] = Depends(get_http_client),
):
    """
    Initiate Twitter OAuth login.

    Args:
        request (Request): The HTTP request object
        next (str, optional): URL to redirect to after successful authentication
        force_login (bool): Make Twitter ask for the user's credentials again

    Returns:
        RedirectResponse: Redirect to Twitter's authorization page
    """
    store = cookie_store_for(request, settings)
    try:
        consumer = create_consumer(
            store,
            sign_in_with_twitter=settings.TWITTER_SIGN_IN_WITH_TWITTER,
            settings=settings,
            http_client=http_client,
        )
        redirect_url = await consumer.begin_authorization(
            settings.TWITTER_OAUTH_CALLBACK_URL, force_reauth=force_login
        )
    except ConfigurationError as e:
        logger.error(f"Twitter OAuth is not configured: {str(e)}")
        raise HTTPException(status_code=500, detail="Twitter OAuth is not configured")
    except HandshakeError as e:
        logger.error(f"Error initiating Twitter OAuth login: {str(e)}")
        raise HTTPException(status_code=502, detail="Error initiating Twitter login")

    if next:
        request.session[NEXT_URL_SESSION_KEY] = safe_next_url(next)

    return store.apply(RedirectResponse(redirect_url))


@router.get("/oauth/callback")
async def twitter_oauth_callback(
    request: Request,
    settings: Settings = Depends(get_settings),
    http_client: Optional[httpx.AsyncClient] = Depends(get_http_client),
):
    """
    Handle Twitter OAuth callback.

    A callback without ``oauth_verifier`` means the user declined; Twitter
    then passes the abandoned temporary token as ``denied``.

    Returns:
        RedirectResponse: Redirect to the next URL, or to ``/`` when denied
    """
    store = cookie_store_for(request, settings)
    try:
        consumer = create_consumer(
            store,
            sign_in_with_twitter=settings.TWITTER_SIGN_IN_WITH_TWITTER,
            settings=settings,
            http_client=http_client,
        )
    except ConfigurationError as e:
        logger.error(f"Twitter OAuth is not configured: {str(e)}")
        raise HTTPException(status_code=500, detail="Twitter OAuth is not configured")

    try:
        access_token = await consumer.complete_authorization(str(request.url))
    except HandshakeError as e:
        oauth_token = request.query_params.get("oauth_token")
        if oauth_token:
            consumer.abandon_authorization(oauth_token)
        return store.apply(JSONResponse(status_code=400, content={"detail": f"Twitter OAuth error: {str(e)}"}))

    if access_token is None:
        denied = request.query_params.get("denied")
        if denied:
            consumer.abandon_authorization(denied)
        logger.info("User did not authorize the application on Twitter")
        request.session.pop(NEXT_URL_SESSION_KEY, None)
        return store.apply(RedirectResponse("/?twitter_auth=denied", status_code=303))

    save_access_token(request, access_token, settings)
    logger.info(f"Signed in Twitter user {access_token.extra_data.get('screen_name')}")

    next_url = safe_next_url(request.session.pop(NEXT_URL_SESSION_KEY, "/"))
    return store.apply(RedirectResponse(next_url, status_code=303))


@router.post("/oauth/logout")
async def twitter_oauth_logout(request: Request):
    request.session.pop(ACCESS_TOKEN_SESSION_KEY, None)
    return RedirectResponse("/", status_code=303)


@router.get("/me")
async def twitter_me(
    request: Request,
    settings: Settings = Depends(get_settings),
    http_client: Optional[httpx.AsyncClient] = Depends(get_http_client),
):
    """Return the authenticated user's Twitter profile."""
    api = _require_twitter_api(request, settings, http_client)
    try:
        return await api.verify_credentials()
    except RemoteError as e:
        _raise_for_remote_error(request, e)


@router.get("/timeline")
async def twitter_timeline(
    request: Request,
    count: int = Query(20, ge=1, le=200),
    settings: Settings = Depends(get_settings),
    http_client: Optional[httpx.AsyncClient] = Depends(get_http_client),
):
    """Return the authenticated user's home timeline."""
    api = _require_twitter_api(request, settings, http_client)
    try:
        return await api.get_updates(count=count)
    except RemoteError as e:
        _raise_for_remote_error(request, e)
