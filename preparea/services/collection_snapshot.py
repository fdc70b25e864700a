"""
Collection snapshot builder.

Projects raw user-store rows into an OwnershipSnapshot. Rows may come
straight from the store or from a restored backup, so every count is
normalized here rather than trusted.
"""

import logging
import math
from collections.abc import Iterable
from typing import Any

from preparea.config import OTHER_SET_GROUP
from preparea.models.collection import CardCounts, DiceKey, OwnershipSnapshot

logger = logging.getLogger(__name__)


def normalize_count(value: Any) -> int:
    """
    Non-negative integer count. Missing, non-numeric and non-finite values are 0.

    Examples:
        >>> normalize_count("3")
        3
        >>> normalize_count(-2)
        0
        >>> normalize_count(None)
        0
    """
    if value is None or isinstance(value, bool):
        return 0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(number):
        return 0
    return max(0, math.floor(number + 0.5))


def build_ownership_snapshot(
    card_rows: Iterable[tuple[Any, Any, Any]],
    dice_rows: Iterable[tuple[Any, Any, Any]],
) -> OwnershipSnapshot:
    """
    Build ownership maps from user-store rows.

    Args:
        card_rows: (card_pk, standard, foil) per owned card
        dice_rows: (character, set_group, dice_count) per dice bucket

    Rows with a non-positive card_pk or a blank character are ignored.
    Blank set groups fall into "Other". Rows that land on the same key keep
    the largest count, so the result does not depend on row order.
    """
    cards: dict[int, CardCounts] = {}
    for card_pk, standard, foil in card_rows:
        pk = normalize_count(card_pk)
        if pk <= 0:
            continue
        counts = CardCounts(standard=normalize_count(standard), foil=normalize_count(foil))
        existing = cards.get(pk)
        if existing is not None:
            counts = CardCounts(
                standard=max(existing.standard, counts.standard),
                foil=max(existing.foil, counts.foil),
            )
        cards[pk] = counts

    dice: dict[DiceKey, int] = {}
    for character, set_group, count in dice_rows:
        name = str(character or "").strip()
        if not name:
            continue
        group = str(set_group or "").strip() or OTHER_SET_GROUP
        key = DiceKey(name, group)
        dice[key] = max(dice.get(key, 0), normalize_count(count))

    logger.debug("Ownership snapshot: %s cards, %s dice buckets", len(cards), len(dice))
    return OwnershipSnapshot(cards=cards, dice=dice)
