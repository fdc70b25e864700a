"""
Reference store loader.

Reads every table the core needs into typed records in one pass. Optional
tables are feature-detected first; a missing table leaves its part of the
ReferenceData empty instead of failing the load.
"""

import logging

from sqlalchemy import Table, inspect, select
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import AsyncConnection

from preparea.db.reference_schema import (
    affiliation_icons,
    alignments,
    card_rows,
    cards,
    energy_codes,
    format_banned_cards,
    format_banned_sets,
    formats,
    sets,
    token_icons,
    tz_card_map,
)
from preparea.models.card import CardRecord, CardText
from preparea.models.reference import (
    AffiliationDefinition,
    AlignmentRecord,
    ExternalName,
    FormatRecord,
    IconRecord,
    ReferenceData,
    SetRecord,
)

logger = logging.getLogger(__name__)

# Upper bound on cards loaded into memory
MAX_CARD_ROWS = 6000


def _table_names(sync_conn: Connection) -> set[str]:
    return set(inspect(sync_conn).get_table_names())


def _text(value: object) -> str | None:
    if value is None:
        return None
    return str(value)


def _lower(value: object, trim: bool = False) -> str:
    if value is None:
        return ""
    text = str(value).lower()
    return text.strip() if trim else text


def _int_or_none(value: object) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(value)  # type: ignore[call-overload]
    except (TypeError, ValueError):
        return None


def card_record_from_row(row: dict) -> CardRecord:
    """Map one card_rows row to a CardRecord."""
    return CardRecord(
        card_pk=int(row["card_pk"]),
        set_id=_int_or_none(row.get("set_id")) or 0,
        character_name=str(row.get("character_name") or ""),
        set_label=_text(row.get("set_label")),
        set_group=_text(row.get("set_group")),
        universe=_text(row.get("universe")),
        card_number=_text(row.get("card_number")),
        card_name=_text(row.get("card_name")),
        cost=_int_or_none(row.get("cost")),
        energy_code=_text(row.get("energy_code")),
        energy_tokens=_text(row.get("energy_tokens")),
        type_name=_text(row.get("type_name")),
        rarity=_text(row.get("rarity")),
        rarity_rank=_int_or_none(row.get("rarity_rank")),
        gender=_text(row.get("gender")),
        aff_tokens=_text(row.get("aff_tokens")),
        align_tokens=_text(row.get("align_tokens")),
        has_errata=bool(row.get("has_errata")),
        has_foil=bool(row.get("has_foil")),
    )


async def _rows(conn: AsyncConnection, table: Table, *order_by) -> list[dict]:
    stmt = select(table)
    if order_by:
        stmt = stmt.order_by(*order_by)
    result = await conn.execute(stmt)
    return [dict(row) for row in result.mappings()]


async def load_reference_data(conn: AsyncConnection) -> ReferenceData:
    """
    Load the reference store.

    Returns an empty ReferenceData when `card_rows` is missing.
    """
    tables = await conn.run_sync(_table_names)
    reference = ReferenceData()

    if card_rows.name not in tables:
        logger.warning("Reference store has no %s table; nothing loaded", card_rows.name)
        return reference

    result = await conn.execute(
        select(card_rows)
        .order_by(
            card_rows.c.character_name.collate("NOCASE"),
            card_rows.c.rarity_rank,
            card_rows.c.card_number,
        )
        .limit(MAX_CARD_ROWS)
    )
    reference.cards = [card_record_from_row(dict(row)) for row in result.mappings()]

    if cards.name in tables:
        for row in await _rows(conn, cards):
            pk = _int_or_none(row["card_pk"])
            if pk is None:
                continue
            reference.card_text[pk] = CardText(
                text=_lower(row.get("text_src")),
                global_text=_lower(row.get("global_text_src")),
                name=_lower(row.get("name"), trim=True),
                subname=_lower(row.get("subname"), trim=True),
                max_dice=_int_or_none(row.get("maxdice")),
            )
    else:
        logger.warning("Optional table %s missing; text search disabled", cards.name)

    if sets.name in tables:
        reference.sets = [
            SetRecord(
                set_id=int(row["set_id"]),
                set_group=_text(row.get("set_group")),
                set_alt=_text(row.get("set_alt")),
                full_name=_text(row.get("full_name")),
                universe=_text(row.get("universe")),
            )
            for row in await _rows(conn, sets)
        ]

    if formats.name in tables:
        reference.formats = [
            FormatRecord(
                format_id=int(row["format_id"]),
                name=str(row.get("name") or ""),
                code=_text(row.get("code")),
                notes=_text(row.get("notes")),
            )
            for row in await _rows(conn, formats, formats.c.name)
        ]
        if format_banned_sets.name in tables:
            reference.banned_sets = [
                (int(row["format_id"]), int(row["set_id"]))
                for row in await _rows(conn, format_banned_sets)
                if _int_or_none(row["format_id"]) is not None
                and _int_or_none(row["set_id"]) is not None
            ]
        if format_banned_cards.name in tables:
            reference.banned_cards = [
                (int(row["format_id"]), int(row["card_pk"]))
                for row in await _rows(conn, format_banned_cards)
                if _int_or_none(row["format_id"]) is not None
                and _int_or_none(row["card_pk"]) is not None
            ]

    if affiliation_icons.name in tables:
        reference.affiliations = [
            AffiliationDefinition(
                token=str(row["token"]),
                file=_text(row.get("file")),
                alt=_text(row.get("alt")),
                is_composite=bool(row.get("is_composite") or 0),
                components=_text(row.get("components")),
            )
            for row in await _rows(conn, affiliation_icons, affiliation_icons.c.token)
        ]

    if alignments.name in tables:
        reference.alignments = [
            AlignmentRecord(token=str(row["token"]), name=str(row.get("name") or ""))
            for row in await _rows(conn, alignments, alignments.c.name)
        ]

    if token_icons.name in tables:
        reference.token_icons = [
            IconRecord(
                token=str(row.get("token") or ""),
                file=_text(row.get("file")),
                alt=_text(row.get("alt")),
            )
            for row in await _rows(conn, token_icons)
        ]

    if energy_codes.name in tables:
        reference.energy_codes = [
            IconRecord(
                token=str(row.get("code") or ""),
                file=_text(row.get("file")),
                alt=_text(row.get("alt")),
            )
            for row in await _rows(conn, energy_codes)
        ]

    if tz_card_map.name in tables:
        for row in await _rows(conn, tz_card_map):
            pk = _int_or_none(row.get("card_pk"))
            if not pk or pk <= 0:
                continue
            name = ExternalName(
                str(row.get("tz_set") or ""),
                str(row.get("tz_character") or ""),
                str(row.get("tz_card_name") or ""),
            )
            reference.card_lookup.setdefault(name, pk)
            reference.external_names.setdefault(pk, name)
    else:
        logger.warning("Optional table %s missing; CSV rows cannot be matched", tz_card_map.name)

    logger.info(
        "Loaded reference data: %s cards, %s sets, %s formats, %s affiliations",
        len(reference.cards),
        len(reference.sets),
        len(reference.formats),
        len(reference.affiliations),
    )
    return reference
