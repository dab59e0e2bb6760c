"""
Shared fixtures: a throwaway SQLite database per test and the ASGI
app wired to it.
"""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from menuhub.core.config import get_settings
from menuhub.database import build_engine, get_session_maker, init_db
from menuhub.main import app
from menuhub.services.auth import create_session_token, get_rate_limiter
from menuhub.services.cache import get_menu_cache


# ---------------------------------------------------------------------------
# Database / app
# ---------------------------------------------------------------------------

@pytest.fixture
async def engine(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'menu.db'}")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture(autouse=True)
def reset_process_state():
    get_menu_cache().clear()
    get_rate_limiter().reset()
    yield
    get_menu_cache().clear()
    get_rate_limiter().reset()


@pytest.fixture
async def client(session_maker):
    app.dependency_overrides[get_session_maker] = lambda: session_maker
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def admin_cookies() -> dict[str, str]:
    settings = get_settings()
    return {settings.admin_session_cookie: create_session_token(settings.admin_session_secret)}


@pytest.fixture
async def admin_client(client, admin_cookies):
    client.cookies.update(admin_cookies)
    return client

