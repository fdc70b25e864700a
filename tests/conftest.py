import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from preparea.models.card import CardRecord, CardText
from preparea.models.db import Base
from preparea.models.reference import (
    AffiliationDefinition,
    AlignmentRecord,
    ExternalName,
    FormatRecord,
    IconRecord,
    ReferenceData,
    SetRecord,
)


def make_card(card_pk: int, character: str, **fields) -> CardRecord:
    """Card with sensible defaults for everything not under test."""
    defaults = {
        "set_id": 1,
        "set_group": "avx",
        "universe": "Marvel",
        "card_number": str(card_pk),
        "card_name": f"Card {card_pk}",
        "type_name": "Character",
        "rarity": "Common",
        "rarity_rank": 1,
    }
    defaults.update(fields)
    return CardRecord(card_pk=card_pk, character_name=character, **defaults)


def build_reference() -> ReferenceData:
    """
    Small reference set:

    - avx (Marvel): Hulk x2 (one foil-eligible), Captain America (foil), a Basic Action
    - wol (DC): Batman, no affiliation
    - promo (no set group): Harley Quinn
    """
    cards = [
        make_card(
            1,
            "Hulk",
            card_number="1",
            card_name="Anger Issues",
            cost=5,
            energy_code="1",
            energy_tokens="FIST",
            gender="0",
            aff_tokens="4",
            align_tokens="HERO",
        ),
        make_card(
            2,
            "Hulk",
            card_number="10",
            card_name="Jade Giant",
            cost=6,
            energy_code="1",
            energy_tokens="FIST",
            rarity="Rare",
            rarity_rank=3,
            gender="0",
            aff_tokens="4",
            align_tokens="HERO",
            has_foil=True,
        ),
        make_card(
            3,
            "Captain America",
            card_number="2",
            card_name="Super-Soldier",
            cost=4,
            energy_code="1",
            energy_tokens="MASK",
            gender="0",
            aff_tokens="6",
            align_tokens="HERO",
            has_foil=True,
        ),
        make_card(
            4,
            "Power Bolt",
            card_number="3",
            card_name="Basic Action",
            cost=2,
            energy_code="A",
            energy_tokens="GENERIC",
            type_name="Basic Action",
        ),
        make_card(
            5,
            "Batman",
            set_id=2,
            set_group="wol",
            universe="DC",
            card_number="5",
            card_name="Dark Knight",
            cost=4,
            energy_code="2",
            energy_tokens="BOLT",
            rarity="Uncommon",
            rarity_rank=2,
            gender="0",
            aff_tokens="NONE",
            align_tokens="HERO",
        ),
        make_card(
            6,
            "Harley Quinn",
            set_id=3,
            set_group=None,
            set_label="promo",
            universe="DC",
            card_number="P1",
            card_name="Mad Love",
            cost=3,
            energy_code="3",
            energy_tokens="SHIELD",
            gender="1",
            aff_tokens="5",
            align_tokens="VILLAIN",
        ),
    ]
    return ReferenceData(
        cards=cards,
        card_text={
            1: CardText(
                text="when fielded, deal [2] damage",
                name="hulk",
                subname="anger issues",
                max_dice=4,
            ),
            2: CardText(text="overcrush", name="hulk", subname="jade giant", max_dice=4),
            3: CardText(
                text="shield allies", name="captain america", subname="super-soldier", max_dice=3
            ),
            4: CardText(global_text="pay [1]: prep a die", name="power bolt", max_dice=3),
            5: CardText(text="stealth", name="batman", subname="dark knight", max_dice=2),
            6: CardText(text="chaos", name="harley quinn", subname="mad love", max_dice=1),
        },
        sets=[
            SetRecord(1, "avx", "AvX", "Avengers vs X-Men", "Marvel"),
            SetRecord(2, "wol", "WoL", "War of Light", "DC"),
            SetRecord(3, None, "promo", None, "DC"),
        ],
        formats=[FormatRecord(1, "Modern", "MOD"), FormatRecord(2, "Golden Age", "GA")],
        banned_sets=[(1, 2)],
        banned_cards=[(1, 2)],
        affiliations=[
            AffiliationDefinition("0", "a0.png", "None"),
            AffiliationDefinition("4", "a4.png", "Avengers"),
            AffiliationDefinition("6", "a6.png", "X-Men"),
            AffiliationDefinition("46", "a46.png", "AvX", True, "4,6"),
            AffiliationDefinition("5", "a5.png", "Villains"),
        ],
        alignments=[AlignmentRecord("VILLAIN", "Villain"), AlignmentRecord("HERO", "Hero")],
        token_icons=[
            IconRecord("OVERCRUSH", "overcrush.png", "Overcrush"),
            IconRecord("", "x.png"),
        ],
        energy_codes=[IconRecord("1", "e1.png", "Mask")],
        card_lookup={
            ExternalName("AvX", "Hulk", "Anger Issues"): 1,
            ExternalName("AvX", "Hulk", "Jade Giant"): 2,
            ExternalName("AvX", "Captain America", "Super-Soldier"): 3,
            ExternalName("AvX", "Power Bolt", "Basic Action"): 4,
            ExternalName("WoL", "Batman", "Dark Knight"): 5,
            ExternalName("Promo", "Harley Quinn", "Mad Love"): 6,
        },
        external_names={
            1: ExternalName("AvX", "Hulk", "Anger Issues"),
            2: ExternalName("AvX", "Hulk", "Jade Giant"),
            3: ExternalName("AvX", "Captain America", "Super-Soldier"),
            4: ExternalName("AvX", "Power Bolt", "Basic Action"),
            5: ExternalName("WoL", "Batman", "Dark Knight"),
            6: ExternalName("Promo", "Harley Quinn", "Mad Love"),
        },
    )


@pytest.fixture
def reference() -> ReferenceData:
    """Sample reference data shared by the core tests."""
    return build_reference()


@pytest.fixture
async def async_engine():
    """Create an in-memory SQLite engine for testing."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def session(async_engine) -> AsyncSession:
    """Provide a database session for tests."""
    async_session = async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)
    async with async_session() as session:
        yield session
