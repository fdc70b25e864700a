"""Tests for offline jobs."""

from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import insert
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import create_async_engine

from preparea.config import settings
from preparea.db.reference_schema import card_rows, reference_metadata, sets
from preparea.jobs.generate_filter_data import run_generate
from preparea.services.vocabulary import load_static_vocabulary


@pytest.fixture
async def content_engine():
    """In-memory reference store with two cards."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(reference_metadata.create_all)
        await conn.execute(
            insert(card_rows),
            [
                {
                    "card_pk": 1,
                    "set_id": 1,
                    "set_group": "avx",
                    "universe": "Marvel",
                    "character_name": "Hulk",
                    "energy_code": "1",
                    "energy_tokens": "FIST",
                    "type_name": "Character",
                    "rarity": "Common",
                    "rarity_rank": 1,
                },
                {
                    "card_pk": 2,
                    "set_id": 1,
                    "set_group": "avx",
                    "universe": "Marvel",
                    "character_name": "Captain America",
                    "energy_code": "2",
                    "energy_tokens": "MASK",
                    "type_name": "Character",
                    "rarity": "Rare",
                    "rarity_rank": 3,
                },
            ],
        )
        await conn.execute(
            insert(sets),
            [{"set_id": 1, "set_group": "avx", "set_alt": "AvX", "universe": "Marvel"}],
        )
    yield engine
    await engine.dispose()


class TestGenerateFilterData:
    async def test_writes_vocabulary(self, content_engine, tmp_path) -> None:
        """The job writes a snapshot the service can load."""
        path = tmp_path / "filter_data.json"

        with (
            patch("preparea.jobs.generate_filter_data.content_engine", content_engine),
            patch.object(settings, "filter_data_path", path),
        ):
            await run_generate()

        vocabulary = load_static_vocabulary(path)
        assert vocabulary.energies == ["FIST", "MASK"]
        assert [option.group for option in vocabulary.set_groups] == ["avx"]
        assert vocabulary.universes == ["Marvel"]

    async def test_load_failure_propagates(self, content_engine, tmp_path) -> None:
        """Reference store errors are logged and re-raised; nothing is written."""
        path = tmp_path / "filter_data.json"

        with (
            patch("preparea.jobs.generate_filter_data.content_engine", content_engine),
            patch.object(settings, "filter_data_path", path),
            patch(
                "preparea.jobs.generate_filter_data.load_reference_data",
                new_callable=AsyncMock,
                side_effect=OperationalError("SELECT", {}, Exception("locked")),
            ),
            pytest.raises(OperationalError),
        ):
            await run_generate()

        assert not path.exists()
