"""Shared test fixtures.

API tests run the real application with its storage and token signer
swapped for in-memory stores and a test secret via dependency overrides.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from puzzlehub.auth.dependencies import get_token_signer
from puzzlehub.auth.jwt import TokenSigner
from puzzlehub.config import Settings, get_settings
from puzzlehub.dependencies import get_storage
from puzzlehub.main import create_app
from tests.fakes import InMemoryStorage, make_user

TEST_SECRET = "test-secret-for-token-signing-0123456789"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        log_format="console",
        jwt_secret=TEST_SECRET,
    )


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def signer() -> TokenSigner:
    return TokenSigner(TEST_SECRET, expire_minutes=60)


@pytest.fixture
def app(settings: Settings, storage: InMemoryStorage, signer: TokenSigner) -> FastAPI:
    """The application with in-memory storage and the test signer wired in."""
    application = create_app()
    application.dependency_overrides[get_settings] = lambda: settings
    application.dependency_overrides[get_storage] = lambda: storage
    application.dependency_overrides[get_token_signer] = lambda: signer
    return application


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client against the app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def alice(storage: InMemoryStorage):
    return make_user(storage, "alice")


@pytest.fixture
def bob(storage: InMemoryStorage):
    return make_user(storage, "bob")


@pytest.fixture
def auth_headers(signer: TokenSigner):
    """Build an Authorization header for a user."""

    def _headers(user) -> dict[str, str]:
        return {"Authorization": f"Bearer {signer.create_access_token(user.id)}"}

    return _headers
