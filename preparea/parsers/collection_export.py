"""
Collection CSV export.

One row per reference card, named the way the import expects (external
names from the lookup table when available). A bucket's dice count is
written on its first card only, so re-importing does not multiply dice.
"""

from preparea.models.card import CardRecord
from preparea.models.collection import DiceKey, OwnershipSnapshot
from preparea.models.reference import ExternalName, ReferenceData
from preparea.parsers.collection_import import COLLECTION_COLUMNS
from preparea.parsers.csv_table import join_rows, quote_all


def _export_sort_key(card: CardRecord) -> tuple[str, str, str]:
    return (
        card.group_label.lower(),
        (card.character_name or "").lower(),
        (card.card_name or "").lower(),
    )


def external_name_for(
    card: CardRecord, reference: ReferenceData, character: str | None = None
) -> ExternalName:
    """External name of a card, completed from its own fields where the lookup has gaps."""
    known = reference.external_names.get(card.card_pk)
    character_name = character if character is not None else card.character_name or ""
    set_name = (known.set_name if known else "") or card.set_group or card.set_label or ""
    character_value = (known.character if known else "") or character_name
    card_name = (known.card_name if known else "") or card.card_name or character_name
    return ExternalName(set_name, character_value, card_name)


def export_collection_csv(reference: ReferenceData, ownership: OwnershipSnapshot) -> str:
    """Collection as CSV text, every value quoted, CRLF line endings."""
    rows: list[list[str]] = []
    dice = {key: count for key, count in ownership.dice.items() if count > 0}
    used: set[DiceKey] = set()
    representatives: dict[DiceKey, CardRecord] = {}

    for card in sorted(reference.cards, key=_export_sort_key):
        key = DiceKey(card.character_name or "", card.group_label)
        if card.character_name:
            representatives.setdefault(key, card)

        dice_value = ""
        count = dice.get(key)
        if count and key not in used:
            dice_value = str(count)
            used.add(key)

        counts = ownership.counts(card.card_pk)
        name = external_name_for(card, reference)
        rows.append(
            [
                name.set_name,
                name.character,
                name.card_name,
                str(counts.standard),
                str(counts.foil),
                dice_value,
            ]
        )

    for key, count in dice.items():
        if key in used:
            continue
        rep = representatives.get(key)
        if rep is None:
            continue
        name = external_name_for(rep, reference, character=key.character)
        rows.append([name.set_name, name.character, name.card_name, "0", "0", str(count)])

    if not rows:
        rows.append(["", "", "", "0", "0", ""])

    header = [quote_all(column) for column in COLLECTION_COLUMNS]
    return join_rows([header, *([quote_all(value) for value in row] for row in rows)])
