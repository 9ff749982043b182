import os

# must be set before pixelpost.config is imported
os.environ.setdefault("EVENT_BROKER", "memory")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ADMIN_JWT_SECRET", "test-admin-secret")
os.environ.setdefault("AUTH0_DOMAIN", "pixelpost-test.auth0.local")
os.environ.setdefault("AUTH0_AUDIENCE", "https://api.pixelpost.test")

import uuid
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import httpx
import jwt
import pytest
import pytest_asyncio
from cryptography.hazmat.primitives.asymmetric import rsa
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker

from pixelpost.config import settings
from pixelpost.db import Base, get_session
from pixelpost.events import MemoryEventBroker, get_broker
from pixelpost.main import app
from pixelpost.models.post import Post
from pixelpost.security import UserTokenVerifier, get_user_token_verifier
import pixelpost.models.admin  # noqa: F401  register tables
import pixelpost.models.contest  # noqa: F401

T0 = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def set(self, now: datetime) -> None:
        self.now = now


class StubJWKClient:
    """Stands in for the identity provider's JWKS endpoint."""

    def __init__(self, public_key):
        self.public_key = public_key

    def get_signing_key_from_jwt(self, token):
        return SimpleNamespace(key=self.public_key)


@pytest.fixture(scope="session")
def signing_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture
def user_token(signing_key):
    def _make(sub: str, nickname: str | None = None, **overrides) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": sub,
            "aud": settings.auth0_audience,
            "iss": settings.auth0_issuer,
            "iat": int(now.timestamp()),
            "exp": int((now + timedelta(minutes=15)).timestamp()),
        }
        if nickname:
            payload["nickname"] = nickname
        payload.update(overrides)
        return jwt.encode(payload, signing_key, algorithm="RS256", headers={"kid": "test-key"})
    return _make


@pytest.fixture
def auth(user_token):
    def _headers(sub: str, nickname: str | None = None) -> dict:
        return {"Authorization": f"Bearer {user_token(sub, nickname)}"}
    return _headers


@pytest_asyncio.fixture
async def engine(tmp_path):
    eng = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'contests.db'}", future=True)
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as s:
        yield s


@pytest.fixture
def broker():
    return MemoryEventBroker()


@pytest.fixture
def clock():
    return FakeClock(T0)


@pytest.fixture
def make_post(session_factory):
    async def _make(user_id: str, name: str = "Neon fox") -> Post:
        async with session_factory() as s:
            post = Post(
                user_id=user_id,
                name=name,
                prompt=f"{name}, digital art",
                photo=f"https://img.pixelpost.test/{uuid.uuid4().hex}.png",
                created_at=datetime.now(timezone.utc),
            )
            s.add(post)
            await s.commit()
            return post
    return _make


@pytest_asyncio.fixture
async def client(session_factory, broker, signing_key):
    async def _session():
        async with session_factory() as s:
            yield s

    verifier = UserTokenVerifier(
        settings.auth0_jwks_url,
        settings.auth0_audience,
        settings.auth0_issuer,
        jwk_client=StubJWKClient(signing_key.public_key()),
    )
    app.dependency_overrides[get_session] = _session
    app.dependency_overrides[get_broker] = lambda: broker
    app.dependency_overrides[get_user_token_verifier] = lambda: verifier
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
