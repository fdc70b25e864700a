"""
Collection CSV import.

Expected columns (any order, case-insensitive):
    Set, Character, Card Name, Cards Owned, Foils Owned, Dice Owned

Rows resolve to cards through the reference store's external name lookup.
Rows that cannot be resolved are reported, never applied. Blank counts
mean "leave unchanged", and a foil count of -1 means the same.
"""

import logging
import math

from preparea.models.collection import DiceKey
from preparea.models.imports import CardUpdate, CollectionImportPlan, ImportRowIdentifier
from preparea.models.reference import ReferenceData
from preparea.parsers.csv_table import cell, split_header

logger = logging.getLogger(__name__)

SET_COLUMN = "Set"
CHARACTER_COLUMN = "Character"
CARD_NAME_COLUMN = "Card Name"
CARDS_OWNED_COLUMN = "Cards Owned"
FOILS_OWNED_COLUMN = "Foils Owned"
DICE_OWNED_COLUMN = "Dice Owned"

COLLECTION_COLUMNS = (
    SET_COLUMN,
    CHARACTER_COLUMN,
    CARD_NAME_COLUMN,
    CARDS_OWNED_COLUMN,
    FOILS_OWNED_COLUMN,
    DICE_OWNED_COLUMN,
)

# Foil value meaning "do not update the foil count"
FOIL_SKIP_MARKER = "-1"


def sanitize_count(raw: str | None) -> int | None:
    """
    Rounded non-negative count, or None when the cell holds no number.

    Examples:
        >>> sanitize_count(" 2 ")
        2
        >>> sanitize_count("-3")
        0
        >>> sanitize_count("lots") is None
        True
    """
    if raw is None:
        return None
    trimmed = raw.strip()
    if not trimmed:
        return None
    try:
        number = float(trimmed)
    except ValueError:
        return None
    if not math.isfinite(number):
        return None
    return max(0, math.floor(number + 0.5))


def parse_collection_csv(text: str, reference: ReferenceData) -> CollectionImportPlan:
    """
    Resolve a collection CSV against the reference data.

    Raises:
        EmptyCsvError: If the file has no rows
        MissingColumnError: If a required column is absent
    """
    header, rows = split_header(text)
    idx_set, idx_character, idx_card, idx_cards, idx_foils, idx_dice = (
        header.require(name) for name in COLLECTION_COLUMNS
    )

    plan = CollectionImportPlan()
    unmatched: dict[tuple[str, str, str], ImportRowIdentifier] = {}

    def report_unmatched(set_name: str, character: str, card_name: str) -> None:
        key = (set_name, character, card_name)
        if key not in unmatched:
            unmatched[key] = ImportRowIdentifier(
                set_name=set_name, character=character, card=card_name
            )

    for row in rows:
        set_name = cell(row, idx_set)
        character = cell(row, idx_character)
        card_name = cell(row, idx_card)

        if not set_name and not character and not card_name:
            continue
        if not character or not card_name:
            report_unmatched(set_name, character, card_name)
            continue

        card_pk = reference.lookup_card_pk(set_name, character, card_name)
        card = reference.cards_by_pk.get(card_pk) if card_pk else None
        if card is None or not card.character_name:
            report_unmatched(set_name, character, card_name)
            continue

        standard = sanitize_count(cell(row, idx_cards))
        foil_raw = cell(row, idx_foils)
        foil = None if foil_raw == FOIL_SKIP_MARKER else sanitize_count(foil_raw)
        dice = sanitize_count(cell(row, idx_dice))

        update = plan.card_updates.setdefault(card.card_pk, CardUpdate())
        if standard is not None:
            update.standard = standard
        if foil is not None:
            update.foil = foil

        if dice is not None and not card.is_basic_action:
            key = DiceKey(card.character_name, card.group_label)
            plan.dice_updates[key] = max(plan.dice_updates.get(key, 0), dice)

    plan.unmatched = list(unmatched.values())
    logger.info(
        "Parsed collection CSV: %s card updates, %s dice updates, %s unmatched rows",
        len(plan.card_updates),
        len(plan.dice_updates),
        len(plan.unmatched),
    )
    return plan
