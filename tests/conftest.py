import os

# settings are read at import time
os.environ["ENV"] = "local"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["DELIVERY_PROVIDER"] = "noop"

from types import SimpleNamespace

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.base import Base
from app.core.db import get_session
from app.main import app as fastapi_app
from app.modules.apps.service import AppService
from app.modules.templates.service import TemplateService


class RecordingTransport:
    """Collects deliveries; raises for addresses listed in ``fail_for``."""

    def __init__(self):
        self.fail_for: set[str] = set()
        self.sent: list[tuple[str, str, str]] = []

    async def deliver(self, recipient: str, subject: str, body: str) -> None:
        if recipient in self.fail_for:
            raise RuntimeError(f"mailbox unavailable: {recipient}")
        self.sent.append((recipient, subject, body))


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as s:
        yield s


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
async def tenant(session):
    app = await AppService(session).register("acme", actor="tester")
    # plain values: a rollback inside dispatch expires ORM instances
    return SimpleNamespace(id=app.id, api_key=app.api_key, name=app.name)


@pytest.fixture
async def other_tenant(session):
    app = await AppService(session).register("globex", actor="tester")
    return SimpleNamespace(id=app.id, api_key=app.api_key, name=app.name)


@pytest.fixture
async def order_template(session, tenant):
    """ACTIVE template declaring name:STRING and price:NUMBER."""
    svc = TemplateService(session)
    out = await svc.create(
        app_id=tenant.id,
        name="order-confirmation",
        subject="Hi {{name}}",
        body="<p>Hello {{name}}, total {{price}}</p>",
        status="ACTIVE",
        actor="tester",
    )
    await svc.update_tag_types(out.id, {"price": "NUMBER"}, actor="tester")
    return out


@pytest.fixture
async def client(session_factory):
    async def override_get_session():
        async with session_factory() as s:
            yield s

    fastapi_app.dependency_overrides[get_session] = override_get_session
    async with AsyncClient(transport=ASGITransport(app=fastapi_app), base_url="http://test") as ac:
        yield ac
    fastapi_app.dependency_overrides.clear()
