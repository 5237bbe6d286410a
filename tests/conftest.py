import os
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient

# Test settings; must be set before app.core.config.get_settings() is first called
os.environ.setdefault("MONGODB_DB_NAME", "charityslots_test")
os.environ.setdefault("SECRET_KEY", "test-secret-key-min-32-characters-long")
os.environ["POT_EVENTS_ENABLED"] = "false"


@pytest_asyncio.fixture
async def db():
    """Fresh in-memory MongoDB with all documents bound and the pot created."""
    from app.db.init import init_db
    from app.services.pot import ensure_pot
    client = AsyncMongoMockClient()
    await init_db(client["charityslots_test"])
    await ensure_pot()
    yield client


@pytest_asyncio.fixture
async def client(db) -> AsyncGenerator[AsyncClient, None]:
    from app.main import app
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest_asyncio.fixture
async def charity(db):
    from app.services import charities as charities_service
    return await charities_service.create_charity("Clean Water Fund", "Wells for villages", approved=True)


@pytest_asyncio.fixture
async def make_user(db):
    from app.models.user import User

    async def _make(credits: int = 10, charity=None, role: str = "user", sub: str = "sub-1") -> User:
        user = User(
            google_sub=sub,
            email=f"{sub}@example.com",
            name=sub,
            credits=credits,
            role=role,
            selected_charity_id=charity.id if charity else None,
        )
        await user.insert()
        return user

    return _make


@pytest_asyncio.fixture
async def set_pot(db):
    from app.services.pot import get_pot

    async def _set(amount_cents: int):
        pot = await get_pot()
        pot.amount_cents = amount_cents
        await pot.save()
        return pot

    return _set


@pytest.fixture
def login():
    from app.core.security import create_session_cookie
    from app.deps import SESSION_COOKIE_NAME
    from app.services.users import session_payload_for_user

    def _login(client: AsyncClient, user) -> None:
        client.cookies.set(SESSION_COOKIE_NAME, create_session_cookie(session_payload_for_user(user)))

    return _login


@pytest.fixture
def stale_read(monkeypatch):
    """Make the next Model.find_one return None, as if a concurrent writer had not committed yet."""

    def _stale(model) -> None:
        original = model.find_one
        calls = []

        def find_one(*args, **kwargs):
            calls.append(args)
            if len(calls) == 1:
                async def _missing():
                    return None
                return _missing()
            return original(*args, **kwargs)

        monkeypatch.setattr(model, "find_one", find_one)

    return _stale
