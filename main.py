# Standard library imports
import logging

# Third-party imports
from fastapi import FastAPI, Request
from starlette.middleware.sessions import SessionMiddleware

# Local imports
from config import get_settings
from twitter_consumer.routes import load_access_token, router as twitter_router

# Get settings
settings = get_settings()

# Set up logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

if not settings.is_twitter_consumer_configured:
    logger.warning("Twitter OAuth consumer key and secret are not configured; sign-in will fail")

app = FastAPI(title="Twitter OAuth Consumer")

# Session cookie holds the access token (secret encrypted) and the post-login redirect
app.add_middleware(
    SessionMiddleware,
    secret_key=settings.SECRET_KEY,
    session_cookie=settings.SESSION_COOKIE_NAME,
    max_age=settings.SESSION_EXPIRY_HOURS * 3600,
    same_site=settings.SESSION_SAME_SITE,
    https_only=settings.SESSION_HTTPS_ONLY
)

app.include_router(twitter_router)


# Root route
@app.get("/")
async def root(request: Request):
    """Report whether the visitor is signed in with Twitter."""
    access_token = load_access_token(request, settings)
    if access_token is None:
        return {
            "authenticated": False,
            "login_url": "/twitter/oauth/login",
            "denied": request.query_params.get("twitter_auth") == "denied",
        }

    return {
        "authenticated": True,
        "screen_name": access_token.extra_data.get("screen_name"),
        "user_id": access_token.extra_data.get("user_id"),
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        app,
        host="0.0.0.0",
        port=8000,
        log_level=settings.LOG_LEVEL.lower(),
        use_colors=True
    )
