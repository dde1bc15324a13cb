from datetime import timedelta
from unittest.mock import AsyncMock, patch

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from unihaven.db.database import Base, get_db
from unihaven.main import app
from unihaven.models.base import utcnow
from unihaven.models.notification_log import NotificationType

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def test_db():
    engine = create_async_engine(TEST_DATABASE_URL, poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    yield
    app.dependency_overrides.clear()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def dispatcher():
    with patch("unihaven.api.users.NotificationDispatcher") as mock_cls:
        mock_cls.return_value.dispatch = AsyncMock(return_value=True)
        yield mock_cls.return_value


async def _client():
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


async def _create_user(ac, email="jane@uni.test"):
    resp = await ac.post(
        "/api/users", json={"full_name": "Jane Doe", "email": email, "username": "jane"}
    )
    assert resp.status_code == 201
    return resp.json()


async def test_create_and_get_user(test_db):
    async with await _client() as ac:
        created = await _create_user(ac)
        resp = await ac.get(f"/api/users/{created['id']}")

    assert resp.status_code == 200
    data = resp.json()
    assert data["email"] == "jane@uni.test"
    assert data["role"] == "STUDENT"
    assert data["is_suspended"] is False


async def test_duplicate_email_rejected(test_db):
    async with await _client() as ac:
        await _create_user(ac)
        resp = await ac.post(
            "/api/users", json={"full_name": "Other", "email": "jane@uni.test"}
        )
    assert resp.status_code == 409


async def test_get_missing_user(test_db):
    async with await _client() as ac:
        resp = await ac.get("/api/users/999")
    assert resp.status_code == 404


class TestSuspension:
    async def test_suspend_until_future_date(self, test_db, dispatcher):
        until = (utcnow() + timedelta(days=2)).replace(microsecond=0)
        async with await _client() as ac:
            user = await _create_user(ac)
            resp = await ac.post(
                f"/api/users/{user['id']}/suspend", json={"until": until.isoformat()}
            )
            status = await ac.get(f"/api/users/{user['id']}/status")

        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["is_suspended"] is True
        assert data["suspended_until"].startswith(until.isoformat())
        assert status.json() == {"active": False}
        dispatcher.dispatch.assert_awaited_once()
        assert dispatcher.dispatch.call_args.args[0] == NotificationType.account_suspended

    async def test_suspend_indefinitely(self, test_db, dispatcher):
        async with await _client() as ac:
            user = await _create_user(ac)
            resp = await ac.post(f"/api/users/{user['id']}/suspend", json={"until": None})

        assert resp.status_code == 200
        assert resp.json()["data"]["suspended_until"] is None

    async def test_suspend_in_past_rejected(self, test_db, dispatcher):
        past = utcnow() - timedelta(minutes=5)
        async with await _client() as ac:
            user = await _create_user(ac)
            resp = await ac.post(
                f"/api/users/{user['id']}/suspend", json={"until": past.isoformat()}
            )

        assert resp.status_code == 400
        dispatcher.dispatch.assert_not_awaited()

    async def test_suspend_missing_user(self, test_db, dispatcher):
        future = utcnow() + timedelta(days=1)
        async with await _client() as ac:
            resp = await ac.post("/api/users/404/suspend", json={"until": future.isoformat()})
        assert resp.status_code == 404

    async def test_missing_user_checked_before_date(self, test_db, dispatcher):
        past = utcnow() - timedelta(days=1)
        async with await _client() as ac:
            resp = await ac.post("/api/users/404/suspend", json={"until": past.isoformat()})
        assert resp.status_code == 404

    async def test_unsuspend(self, test_db, dispatcher):
        async with await _client() as ac:
            user = await _create_user(ac)
            await ac.post(f"/api/users/{user['id']}/suspend", json={})
            resp = await ac.post(f"/api/users/{user['id']}/unsuspend")
            status = await ac.get(f"/api/users/{user['id']}/status")

        assert resp.status_code == 200
        assert resp.json()["data"]["is_suspended"] is False
        assert status.json() == {"active": True}
        assert dispatcher.dispatch.call_args.args[0] == NotificationType.account_reinstated
