# twitter_consumer/__init__.py
"""
Twitter Consumer Package
========================

Binds the OAuth 1.0a consumer in ``oauth1`` to Twitter:

- service: Twitter's endpoint triples and Consumer factories, including the
  "Sign in with Twitter" helpers
- api: signed convenience calls against Twitter's v1.1 REST API
- routes: FastAPI endpoints for the web sign-in flow

Authentication Flow:
------------------
1. The user visits /twitter/oauth/login and is redirected to Twitter
2. The temporary credential secret waits in an encrypted cookie
3. Twitter redirects back to /twitter/oauth/callback with a verifier
4. The temporary credential is exchanged for an access token, which is
   kept in the session and used to sign later API calls
"""

from .service import (
    SERVICE_DESCRIPTION,
    SIGN_IN_WITH_TWITTER_SERVICE_DESCRIPTION,
    create_consumer,
    is_twitter_consumer_configured,
    start_sign_in_with_twitter,
    try_finish_sign_in_with_twitter,
)
from .api import TwitterAPI
