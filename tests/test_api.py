"""Tests for the card, collection, trade, team and backup endpoints."""

import asyncio

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from conftest import build_reference
from preparea.db.database import get_session
from preparea.main import app
from preparea.models.db import Base
from preparea.services.workspace import CollectionWorkspace

COLLECTION_HEADER = "Set,Character,Card Name,Cards Owned,Foils Owned,Dice Owned"


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


class TestCardEndpoints:
    async def test_vocabulary_uses_camel_case(self, client: AsyncClient) -> None:
        """Vocabulary keys are camelCase."""
        response = await client.get("/cards/vocabulary")

        assert response.status_code == 200
        data = response.json()
        assert "setGroups" in data
        assert data["energies"][0] == "FIST"

    async def test_search_groups_with_counts(self, client: AsyncClient) -> None:
        """Search returns groups carrying the collector's counts."""
        await client.post("/collection/cards/1/increment", json={"delta": 2})
        await client.post(
            "/collection/dice/increment",
            json={"character": "Hulk", "set_group": "avx", "delta": 3},
        )

        response = await client.post("/cards/search", json={"query": "hulk"})

        assert response.status_code == 200
        data = response.json()
        assert data["total_cards"] == 2
        group = data["groups"][0]
        assert group["title"] == "Hulk (avx)"
        assert group["dice_owned"] == 3
        counts = {item["card_pk"]: item["owned_standard"] for item in group["items"]}
        assert counts == {1: 2, 2: 0}

    async def test_search_before_reference_loaded(self, client: AsyncClient) -> None:
        """Without reference data the search is empty and not ready."""
        app.state.workspace = CollectionWorkspace()
        data = (await client.post("/cards/search", json={})).json()
        assert data == {"groups": [], "total_cards": 0, "ready": False}


class TestCollectionEndpoints:
    async def test_increment_with_dice_link(self, client: AsyncClient) -> None:
        """Linked dice are added alongside copies."""
        response = await client.post(
            "/collection/cards/1/increment", json={"delta": 2, "dice_link": "d1"}
        )

        assert response.status_code == 200
        assert response.json() == {"card_pk": 1, "foil": False, "count": 2, "dice_count": 2}

    async def test_increment_unknown_card(self, client: AsyncClient) -> None:
        """Unknown cards are a structured 404."""
        response = await client.post("/collection/cards/999/increment", json={"delta": 1})

        assert response.status_code == 404
        data = response.json()
        assert data["outcome"] == "known_failure"
        assert data["failure"]["kind"] == "not_found"

    async def test_increment_not_ready(self, client: AsyncClient) -> None:
        """Card changes need reference data."""
        app.state.workspace = CollectionWorkspace()
        response = await client.post("/collection/cards/1/increment", json={"delta": 1})

        assert response.status_code == 503
        assert response.json()["failure"]["kind"] == "not_ready"

    async def test_stats_follow_changes(self, client: AsyncClient) -> None:
        """Stats reflect increments made earlier."""
        await client.post("/collection/cards/3/increment", json={"delta": 1, "foil": True})
        data = (await client.get("/collection/stats")).json()

        assert data["total_foil"] == 1
        assert data["unique_owned"] == 1
        assert data["unique_foil_owned"] == 1

    async def test_import_then_export(self, client: AsyncClient) -> None:
        """Imported counts show up in the exported CSV."""
        text = f"{COLLECTION_HEADER}\nAvX,Hulk,Anger Issues,2,,3\nAvX,Nobody,Ghost,1,0,0"
        response = await client.post("/collection/import", json={"text": text})

        assert response.status_code == 200
        report = response.json()
        assert (report["total_standard"], report["dice_total"]) == (2, 3)
        assert report["unmatched"] == [{"set_name": "AvX", "character": "Nobody", "card": "Ghost"}]

        export = await client.get("/collection/export")
        assert export.headers["content-type"].startswith("text/csv")
        assert '"AvX","Hulk","Anger Issues","2","0","3"' in export.text

    async def test_import_missing_column(self, client: AsyncClient) -> None:
        """A missing required column aborts the import."""
        response = await client.post("/collection/import", json={"text": "Set,Character\nAvX,Hulk"})

        assert response.status_code == 400
        assert response.json()["failure"]["kind"] == "missing_required"


class TestTradeEndpoints:
    async def test_export_lists_spares(self, client: AsyncClient) -> None:
        """Extra copies appear in the trade export."""
        await client.post("/collection/cards/1/increment", json={"delta": 3})
        response = await client.get("/trade/export", params={"keep_both": True})

        assert response.status_code == 200
        assert "Anger Issues" in response.text

    async def test_compare_without_partner(self, client: AsyncClient) -> None:
        """Without partner data nothing is traded."""
        await client.post("/collection/cards/1/increment", json={"delta": 3})
        data = (await client.post("/trade/compare", json={})).json()

        assert data["summary"]["trade_plus"] == 0
        assert data["summary"]["trade_minus"] == 0
        assert data["summary"]["spares"] >= 1


class TestTeamEndpoints:
    async def test_team_lifecycle(self, client: AsyncClient) -> None:
        """Create, fill, rename and delete a team."""
        created = await client.post("/teams", json={"name": ""})
        assert created.status_code == 201
        team = created.json()
        assert team["name"] == "Team 1"
        assert team["dice_cap"] == 20
        team_id = team["team_id"]

        await client.post(
            "/collection/dice/increment",
            json={"character": "Hulk", "set_group": "avx", "delta": 10},
        )
        assert (await client.post(f"/teams/{team_id}/cards/1")).status_code == 204

        dice = await client.put(f"/teams/{team_id}/cards/1/dice", json={"dice": 9.4})
        assert dice.json()["dice_count"] == 4

        detail = (await client.get(f"/teams/{team_id}")).json()
        assert detail["team"]["dice_total"] == 4
        assert detail["cards"][0]["max_dice"] == 4
        assert detail["cards"][0]["owned_dice"] == 10

        renamed = (await client.patch(f"/teams/{team_id}", json={"name": "Smash"})).json()
        assert renamed["name"] == "Smash"
        assert (renamed["dice_total"], renamed["card_count"]) == (4, 1)

        assert (await client.delete(f"/teams/{team_id}")).status_code == 204
        assert (await client.get("/teams")).json() == []

    async def test_unknown_team(self, client: AsyncClient) -> None:
        """Unknown teams are a 404."""
        response = await client.patch("/teams/404", json={"name": "x"})
        assert response.status_code == 404

    async def test_add_unknown_card(self, client: AsyncClient) -> None:
        """Only reference cards can join a team."""
        team_id = (await client.post("/teams", json={"name": "A"})).json()["team_id"]
        response = await client.post(f"/teams/{team_id}/cards/999")
        assert response.status_code == 404


class TestBackupEndpoints:
    async def test_backup_round_trip(self, client: AsyncClient) -> None:
        """A backup restores over later changes."""
        await client.post("/collection/cards/1/increment", json={"delta": 2})
        await client.post("/teams", json={"name": "Keep"})
        backup = (await client.get("/backup")).json()

        await client.post("/collection/cards/2/increment", json={"delta": 1})
        await client.post("/teams", json={"name": "Drop"})

        response = await client.put("/backup", json=backup)
        assert response.status_code == 200

        teams = (await client.get("/teams")).json()
        assert [t["name"] for t in teams] == ["Keep"]
        stats = (await client.get("/collection/stats")).json()
        assert stats["total_standard"] == 2

    async def test_restore_rejects_garbage(self, client: AsyncClient) -> None:
        """Malformed backups are rejected without touching the store."""
        response = await client.put("/backup", json={"collection": "nope"})

        assert response.status_code == 400
        assert response.json()["failure"]["kind"] == "invalid_input"


@pytest.fixture
async def slow_commit_client(tmp_path):
    """Client over a file-backed store whose request teardown lags behind the handler."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'user.sqlite'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_session():
        async with async_session() as session:
            try:
                yield session
                await asyncio.sleep(0.05)
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
    await engine.dispose()


class TestOverlappingRequests:
    async def test_read_during_mutation_does_not_cache_stale_counts(
        self, slow_commit_client: AsyncClient
    ) -> None:
        """A read overlapping an increment never pins the old counts."""

        async def delayed_stats():
            await asyncio.sleep(0.01)
            return await slow_commit_client.get("/collection/stats")

        increment, _ = await asyncio.gather(
            slow_commit_client.post("/collection/cards/1/increment", json={"delta": 2}),
            delayed_stats(),
        )
        assert increment.json()["count"] == 2

        stats = (await slow_commit_client.get("/collection/stats")).json()
        assert stats["total_standard"] == 2

    async def test_read_during_dice_increment(self, slow_commit_client: AsyncClient) -> None:
        """Dice added while a search runs show up on the next search."""

        async def delayed_search():
            await asyncio.sleep(0.01)
            return await slow_commit_client.post("/cards/search", json={"query": "hulk"})

        await asyncio.gather(
            slow_commit_client.post(
                "/collection/dice/increment",
                json={"character": " Hulk ", "set_group": "avx", "delta": 3},
            ),
            delayed_search(),
        )

        data = (await slow_commit_client.post("/cards/search", json={"query": "hulk"})).json()
        assert data["groups"][0]["dice_owned"] == 3
