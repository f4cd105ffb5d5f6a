"""
Shared pytest fixtures.

Every test gets its own SQLite file so link stores never share state, and
the CAPTCHA provider is replaced by an in-process fake (or httpx.MockTransport
in the CAPTCHA tests themselves).
"""

from typing import List, Optional

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlmodel import SQLModel

from shortlink.core.origin import OriginGuard
from shortlink.core.rate_limit import SlidingWindowRateLimiter
from shortlink.core.setting import Settings
from shortlink.db import models  # noqa: F401
from shortlink.db.session import make_session_maker
from shortlink.db.sqlite_adapter import SQLiteAdapter
from shortlink.main import create_app
from shortlink.services.captcha import CaptchaResult
from shortlink.services.link_store import LinkStore
from shortlink.services.pipeline import CreationPipeline, CreationRequest

TRUSTED_ORIGIN = "https://app.example.com"
API_KEY = "test-api-key"
CAPTCHA_TOKEN = "good-token"
ALLOWED_DOMAIN = "example.com"


class FakeCaptcha:
    """Accepts CAPTCHA_TOKEN, rejects everything else, and records calls."""

    def __init__(self):
        self.calls: List[tuple] = []

    async def verify(self, token: Optional[str], client_ip: Optional[str] = None) -> CaptchaResult:
        self.calls.append((token, client_ip))
        if token == CAPTCHA_TOKEN:
            return CaptchaResult(success=True)
        return CaptchaResult(success=False, error_codes=["invalid-input-response"])


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def config(database_url) -> Settings:
    return Settings(
        TRUSTED_ORIGINS=[TRUSTED_ORIGIN],
        ALLOWED_DOMAINS=[ALLOWED_DOMAIN, "docs.example.com"],
        API_KEYS=[API_KEY, "second-key"],
        CAPTCHA_SECRET_KEY="secret",
        BASE_URL="https://sho.rt",
        DATABASE_URL=database_url,
    )


@pytest.fixture
def database_url(tmp_path) -> str:
    """A fresh SQLite file with the links table created."""
    path = tmp_path / "links.db"
    sync_engine = create_engine(f"sqlite:///{path}")
    SQLModel.metadata.create_all(sync_engine)
    sync_engine.dispose()
    return f"sqlite+aiosqlite:///{path}"


@pytest.fixture
def session_maker(database_url):
    engine = SQLiteAdapter().create_engine(database_url)
    return make_session_maker(engine)


@pytest_asyncio.fixture
async def session(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture
def store(session) -> LinkStore:
    return LinkStore(session)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def rate_limiter(clock) -> SlidingWindowRateLimiter:
    return SlidingWindowRateLimiter(max_requests=10, window_seconds=60, clock=clock)


@pytest.fixture
def captcha() -> FakeCaptcha:
    return FakeCaptcha()


@pytest.fixture
def pipeline(config, rate_limiter, captcha, store) -> CreationPipeline:
    return CreationPipeline(
        origin_guard=OriginGuard(config.TRUSTED_ORIGINS),
        rate_limiter=rate_limiter,
        captcha=captcha,
        store=store,
        api_keys=config.API_KEYS,
        allowed_domains=config.ALLOWED_DOMAINS,
    )


def make_request(**overrides) -> CreationRequest:
    """A create request that passes every check unless overridden."""
    fields = dict(
        origin=TRUSTED_ORIGIN,
        client_ip="203.0.113.7",
        api_key=API_KEY,
        key="abc123",
        destination="https://example.com/x",
        captcha_token=CAPTCHA_TOKEN,
        base_url="https://sho.rt",
    )
    fields.update(overrides)
    return CreationRequest(**fields)


@pytest.fixture
def client(config, rate_limiter, captcha) -> TestClient:
    """TestClient for an app wired to the per-test database and fakes."""
    app = create_app(config, rate_limiter=rate_limiter, captcha=captcha)
    return TestClient(app)
