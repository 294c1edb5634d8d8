"""
Shared pytest fixtures and configuration
"""

import os
import sys
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import httpx
import pytest

# Add the project root to Python path to make imports work
sys.path.insert(0, str(Path(__file__).parent.parent))

# Set test environment variables
os.environ["TWITTER_CONSUMER_KEY"] = "ck"
os.environ["TWITTER_CONSUMER_SECRET"] = "cs"
os.environ["TWITTER_OAUTH_CALLBACK_URL"] = "http://testserver/twitter/oauth/callback"
os.environ["SECRET_KEY"] = "test-secret-key"

from config import Settings
from oauth1.models import ConsumerCredential, ServiceProviderDescription
from oauth1.storage import MemoryCredentialStore

REQUEST_TOKEN_PATH = "/oauth/request_token"
AUTHORIZE_PATH = "/oauth/authorize"
ACCESS_TOKEN_PATH = "/oauth/access_token"


class FakeProvider:
    """
    Stand-in for a remote OAuth service provider, used as an
    httpx.MockTransport handler.

    Responses are registered per URL path; every request received is recorded.
    """

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.routes: Dict[str, Tuple[int, str, Optional[Exception]]] = {}

    def respond(self, path: str, status_code: int = 200, text: str = "", exception: Exception = None):
        self.routes[path] = (status_code, text, exception)

    def requests_to(self, path: str) -> List[httpx.Request]:
        return [request for request in self.requests if request.url.path == path]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        status_code, text, exception = self.routes.get(request.url.path, (404, "Not Found", None))
        if exception is not None:
            raise exception
        return httpx.Response(status_code, text=text)


@pytest.fixture
def consumer_credential() -> ConsumerCredential:
    return ConsumerCredential(key="ck", secret="cs")


@pytest.fixture
def service_description() -> ServiceProviderDescription:
    return ServiceProviderDescription(
        request_token_endpoint=f"https://api.example.com{REQUEST_TOKEN_PATH}",
        user_authorization_endpoint=f"https://api.example.com{AUTHORIZE_PATH}",
        access_token_endpoint=f"https://api.example.com{ACCESS_TOKEN_PATH}",
    )


@pytest.fixture
def memory_store() -> MemoryCredentialStore:
    return MemoryCredentialStore()


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def http_client(provider) -> httpx.AsyncClient:
    """An httpx client whose requests are served by the fake provider."""
    return httpx.AsyncClient(transport=httpx.MockTransport(provider))


@pytest.fixture
def settings() -> Settings:
    return Settings(
        TWITTER_CONSUMER_KEY="ck",
        TWITTER_CONSUMER_SECRET="cs",
        TWITTER_OAUTH_CALLBACK_URL="http://testserver/twitter/oauth/callback",
        SECRET_KEY="test-secret-key",
    )


@pytest.fixture
def app(provider, http_client):
    """
    Create the FastAPI app with Twitter calls routed to the fake provider.
    """
    from main import app as main_app
    from twitter_consumer.routes import get_http_client

    main_app.dependency_overrides[get_http_client] = lambda: http_client
    yield main_app
    main_app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    from fastapi.testclient import TestClient

    with TestClient(app) as test_client:
        yield test_client
