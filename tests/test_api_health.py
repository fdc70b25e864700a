"""Tests for health check endpoints."""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from conftest import build_reference
from preparea.db.database import get_session
from preparea.main import app
from preparea.services.workspace import CollectionWorkspace


@pytest.fixture
async def client(async_engine):
    """Provide an async test client with overridden database session."""
    async_session = async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_session():
        async with async_session() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = override_get_session
    app.state.workspace = CollectionWorkspace(build_reference())

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
    del app.state.workspace


class TestHealthEndpoint:
    async def test_health_returns_healthy(self, client: AsyncClient) -> None:
        """Liveness check returns healthy."""
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    async def test_health_no_dependency_checks(self, client: AsyncClient) -> None:
        """Health endpoint does not report on the stores."""
        data = (await client.get("/health")).json()
        assert data["database"] is None
        assert data["reference"] is None


class TestReadyEndpoint:
    async def test_ready_when_both_stores_answer(self, client: AsyncClient) -> None:
        """Ready once the user store answers and reference data is loaded."""
        response = await client.get("/ready")

        assert response.status_code == 200
        data = response.json()
        assert data == {"status": "ready", "database": "connected", "reference": "loaded"}

    async def test_not_ready_without_reference(self, client: AsyncClient) -> None:
        """Missing reference data is a 503."""
        app.state.workspace = CollectionWorkspace()
        response = await client.get("/ready")

        assert response.status_code == 503
        data = response.json()
        assert data["status"] == "not ready"
        assert data["reference"] == "not loaded"
