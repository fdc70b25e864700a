"""
Trade CSV export and partner import.

The export lists every card with its spare and needed copies under the
active ownership policy, followed by one "Dice" row per dice bucket that
has no card. The import reads such a file back as a partner snapshot and
accepts several synonyms for the count columns, so that a plain
collection export can also be compared.
"""

import logging
import math

from preparea.config import OTHER_SET_GROUP
from preparea.models.collection import DiceKey
from preparea.models.imports import ImportRowIdentifier
from preparea.models.reference import ReferenceData
from preparea.models.trade import (
    PartnerCardInfo,
    PartnerDiceInfo,
    PartnerSnapshot,
    TradeSnapshot,
)
from preparea.parsers.csv_table import cell, join_rows, quote_if_needed, split_header
from preparea.services.trade_reconciliation import DICE_ENTRY_NAME
from preparea.services.trade_snapshot import trade_set_info

logger = logging.getLogger(__name__)

TRADE_EXPORT_HEADER = [
    "Set",
    "Character",
    "Card Name",
    "Card PK",
    "Standard Owned",
    "Foil Owned",
    "Standard Spare",
    "Foil Spare",
    "Need Standard",
    "Need Foil",
    "Need Any",
    "Prefer Foil",
    "Dice Owned",
    "Dice Required",
    "Dice Spare",
    "Dice Need",
]

UNKNOWN_CHARACTER = "Unknown"


def export_trade_csv(snapshot: TradeSnapshot) -> str:
    """Trade snapshot as CSV text with CRLF line endings."""
    rows: list[list[str]] = [list(TRADE_EXPORT_HEADER)]

    details = sorted(
        snapshot.cards.values(),
        key=lambda d: (d.character.casefold(), d.set_name.casefold(), d.card_name.casefold()),
    )
    for detail in details:
        dice = detail.dice
        rows.append(
            [
                quote_if_needed(detail.set_name),
                quote_if_needed(detail.character),
                quote_if_needed(detail.card_name),
                str(detail.card_pk) if detail.card_pk else "",
                str(detail.standard_owned),
                str(detail.foil_owned),
                str(detail.spare_standard),
                str(detail.spare_foil),
                str(detail.need_standard),
                str(detail.need_foil),
                str(detail.need_any),
                "yes" if detail.prefer_foil else "",
                str(dice.owned if dice else 0),
                str(dice.required if dice else 0),
                str(dice.spare if dice else 0),
                str(dice.need if dice else 0),
            ]
        )

    for entry in snapshot.dice_entries:
        if entry.rep_card_pk is not None:
            continue
        rows.append(
            [
                quote_if_needed(entry.set_name),
                quote_if_needed(entry.character),
                DICE_ENTRY_NAME,
                "",
                *(["0"] * 7),
                "",
                str(entry.owned),
                str(entry.required),
                str(entry.spare),
                str(entry.need),
            ]
        )

    return join_rows(rows)


def parse_partner_count(raw: str) -> int:
    """Rounded count; blank, negative and non-numeric values are 0."""
    if not raw:
        return 0
    try:
        number = float(raw)
    except ValueError:
        return 0
    if not math.isfinite(number) or number < 0:
        return 0
    return math.floor(number + 0.5)


def _parse_card_pk(raw: str) -> int | None:
    if not raw:
        return None
    try:
        number = float(raw)
    except ValueError:
        return None
    if not number.is_integer() or number <= 0:
        return None
    return int(number)


def parse_trade_csv(
    text: str,
    reference: ReferenceData,
    set_group_labels: dict[str, str] | None = None,
) -> PartnerSnapshot:
    """
    Read a partner's trade export.

    Raises:
        EmptyCsvError: If the file has no rows
        MissingColumnError: If Set, Character or Card Name is absent
    """
    labels = set_group_labels or {}
    header, rows = split_header(text)
    idx_set = header.require("Set")
    idx_character = header.require("Character")
    idx_card = header.require("Card Name")
    idx_card_pk = header.find("card pk", "card_pk")
    idx_standard_spare = header.find("standard spare", "cards spare")
    idx_standard_owned = header.find("standard owned", "cards owned")
    idx_foil_spare = header.find("foil spare", "foils spare")
    idx_foil_owned = header.find("foil owned", "foils owned")
    idx_need_standard = header.find("need standard")
    idx_need_foil = header.find("need foil")
    idx_need_any = header.find("need any")
    idx_dice_spare = header.find("dice spare")
    idx_dice_owned = header.find("dice owned")
    idx_dice_required = header.find("dice required")
    idx_dice_need = header.find("dice need", "need dice")

    # Spare columns fall back to owned columns (plain collection exports)
    standard_column = idx_standard_spare if idx_standard_spare is not None else idx_standard_owned
    foil_column = idx_foil_spare if idx_foil_spare is not None else idx_foil_owned

    partner = PartnerSnapshot()
    totals = partner.totals
    seen_unmatched: set[tuple[str, str, str]] = set()

    def merge_dice(key: DiceKey, info: PartnerDiceInfo) -> None:
        if not (info.spare or info.need or info.owned or info.required):
            return
        existing = partner.dice.get(key)
        if existing is None:
            partner.dice[key] = info
        else:
            existing.merge(info)

    for row in rows:
        set_name = cell(row, idx_set)
        character = cell(row, idx_character)
        card_name = cell(row, idx_card)
        if not set_name and not character and not card_name:
            continue
        totals.rows += 1

        card_pk = _parse_card_pk(cell(row, idx_card_pk))
        if card_pk is None and character and card_name:
            card_pk = reference.lookup_card_pk(set_name, character, card_name)

        card_info = PartnerCardInfo(
            spare_standard=parse_partner_count(cell(row, standard_column)),
            spare_foil=parse_partner_count(cell(row, foil_column)),
            need_standard=parse_partner_count(cell(row, idx_need_standard)),
            need_foil=parse_partner_count(cell(row, idx_need_foil)),
            need_any=parse_partner_count(cell(row, idx_need_any)),
        )
        dice_info = PartnerDiceInfo(
            spare=parse_partner_count(cell(row, idx_dice_spare)),
            need=parse_partner_count(cell(row, idx_dice_need)),
            owned=parse_partner_count(cell(row, idx_dice_owned)),
            required=parse_partner_count(cell(row, idx_dice_required)),
        )

        totals.spare_standard += card_info.spare_standard
        totals.spare_foil += card_info.spare_foil
        totals.spare_dice += dice_info.spare
        totals.need_standard += card_info.need_standard
        totals.need_foil += card_info.need_foil
        totals.need_any += card_info.need_any
        totals.need_dice += dice_info.need

        if not card_pk:
            key = (set_name, character, card_name)
            if key not in seen_unmatched:
                seen_unmatched.add(key)
                partner.unmatched.append(
                    ImportRowIdentifier(
                        set_name=set_name or None,
                        character=character or None,
                        card=card_name or None,
                    )
                )
            # Dice can still be matched by character and set
            merge_dice(
                DiceKey(character or UNKNOWN_CHARACTER, set_name or OTHER_SET_GROUP), dice_info
            )
            continue

        if (
            card_info.spare_standard
            or card_info.spare_foil
            or card_info.need_standard
            or card_info.need_foil
            or card_info.need_any
        ):
            existing_card = partner.cards.get(card_pk)
            if existing_card is None:
                partner.cards[card_pk] = card_info
            else:
                existing_card.merge(card_info)

        card = reference.cards_by_pk.get(card_pk)
        group_label, _ = trade_set_info(card, labels)
        dice_character = (card.character_name if card else "") or character or UNKNOWN_CHARACTER
        merge_dice(DiceKey(dice_character, group_label), dice_info)

    logger.info(
        "Parsed partner trade CSV: %s rows, %s cards, %s dice buckets, %s unmatched",
        totals.rows,
        len(partner.cards),
        len(partner.dice),
        len(partner.unmatched),
    )
    return partner
