"""
Trade snapshot builder.

Computes, for every card and every dice bucket, how many units are spare
and how many are still needed under an ownership policy:

- KEEP_BOTH: keep one standard copy, plus one foil when the card has a foil
  printing. Standard and foil are judged independently.
- SINGLE_PREFER_FOIL: keep one copy of either print type. Owned foils are
  kept first; standard copies back whatever the foils do not cover.

Dice buckets require the highest dice rating among the bucket's cards.
Dice owned for a bucket with no card are still reported, with required=0.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass

from preparea.config import OTHER_SET_GROUP
from preparea.models.card import CardRecord
from preparea.models.collection import DiceKey, OwnershipSnapshot
from preparea.models.reference import ReferenceData
from preparea.models.trade import DiceEntry, OwnershipPolicy, TradeCardDetail, TradeSnapshot

logger = logging.getLogger(__name__)

UNKNOWN_SET = "Unknown Set"

# Copies kept of each print type
_DESIRED_COPIES = 1


def trade_set_info(card: CardRecord | None, set_group_labels: Mapping[str, str]) -> tuple[str, str]:
    """
    (group label, set display name) of a card.

    The group label keys dice buckets; the display name is what trade lists show.
    """
    if card is None:
        return OTHER_SET_GROUP, UNKNOWN_SET
    raw_group = (card.set_group or "").strip()
    fallback = (card.set_label or "").strip()
    group_label = raw_group or fallback or OTHER_SET_GROUP
    if raw_group:
        set_display = set_group_labels.get(raw_group, raw_group)
    else:
        set_display = fallback or UNKNOWN_SET
    return group_label, set_display


def apply_keep_both(detail: TradeCardDetail) -> None:
    desired_foil = _DESIRED_COPIES if detail.has_foil else 0
    detail.need_standard = max(0, _DESIRED_COPIES - detail.standard_owned)
    detail.need_foil = max(0, desired_foil - detail.foil_owned)
    detail.spare_standard = max(0, detail.standard_owned - _DESIRED_COPIES)
    detail.spare_foil = max(0, detail.foil_owned - desired_foil)
    detail.need_any = 0
    detail.prefer_foil = False


def apply_single_prefer_foil(detail: TradeCardDetail) -> None:
    standard = detail.standard_owned
    foil = detail.foil_owned
    base_need_standard = max(0, _DESIRED_COPIES - standard)

    if detail.has_foil:
        detail.need_any = max(0, _DESIRED_COPIES - (standard + foil))
        detail.need_standard = 0
        detail.need_foil = max(0, _DESIRED_COPIES - foil)
    else:
        detail.need_any = 0
        detail.need_standard = base_need_standard
        detail.need_foil = 0

    if foil > 0:
        keep_foil = min(foil, _DESIRED_COPIES)
        detail.spare_foil = foil - keep_foil
        keep_standard = min(standard, _DESIRED_COPIES - keep_foil)
    else:
        keep_standard = min(standard, _DESIRED_COPIES)
        detail.spare_foil = 0
    detail.spare_standard = standard - keep_standard
    detail.prefer_foil = detail.has_foil and detail.need_any > 0


_POLICY_RULES = {
    OwnershipPolicy.KEEP_BOTH: apply_keep_both,
    OwnershipPolicy.SINGLE_PREFER_FOIL: apply_single_prefer_foil,
}


@dataclass(slots=True)
class _Bucket:
    character: str
    group_label: str
    set_name: str
    required: int
    rep_card: CardRecord | None
    rep_max_dice: int


def _prefers_representative(card: CardRecord, max_dice: int, bucket: _Bucket) -> bool:
    """Highest dice rating wins; ties go to the alphabetically first card name."""
    if max_dice != bucket.rep_max_dice:
        return max_dice > bucket.rep_max_dice
    current = (card.card_name or "").casefold()
    rep = bucket.rep_card
    rep_name = (rep.card_name or "").casefold() if rep is not None else ""
    if not current:
        return False
    if not rep_name:
        return True
    if current != rep_name:
        return current < rep_name
    return rep is not None and card.card_pk < rep.card_pk


def build_trade_snapshot(
    reference: ReferenceData,
    ownership: OwnershipSnapshot,
    policy: OwnershipPolicy,
    set_group_labels: Mapping[str, str] | None = None,
) -> TradeSnapshot:
    """Spare and needed copies of every card and dice bucket under a policy."""
    labels = set_group_labels or {}
    rule = _POLICY_RULES[policy]
    snapshot = TradeSnapshot(policy=policy)
    buckets: dict[DiceKey, _Bucket] = {}

    for card in reference.cards:
        character = card.character_name or ""
        if not character:
            continue
        group_label, set_display = trade_set_info(card, labels)
        key = DiceKey(character, group_label)
        max_dice = reference.max_dice(card.card_pk)

        bucket = buckets.get(key)
        if bucket is None:
            buckets[key] = _Bucket(character, group_label, set_display, max_dice, card, max_dice)
        else:
            if max_dice > bucket.required:
                bucket.required = max_dice
                bucket.set_name = set_display
            if _prefers_representative(card, max_dice, bucket):
                bucket.rep_card = card
                bucket.rep_max_dice = max_dice

        counts = ownership.counts(card.card_pk)
        detail = TradeCardDetail(
            card_pk=card.card_pk,
            set_name=set_display,
            group_label=group_label,
            character=character,
            card_name=card.card_name or "",
            card_type=card.type_name,
            cost=card.cost,
            standard_owned=max(0, counts.standard),
            foil_owned=max(0, counts.foil),
            has_foil=card.has_foil,
            dice_key=key,
        )
        rule(detail)
        snapshot.cards[card.card_pk] = detail

    for key in ownership.dice:
        if key in buckets:
            continue
        group = key.set_group or OTHER_SET_GROUP
        buckets[key] = _Bucket(key.character, group, group, 0, None, 0)

    for key, bucket in buckets.items():
        owned = max(0, ownership.dice.get(key, 0))
        required = max(0, bucket.required)
        snapshot.dice_entries.append(
            DiceEntry(
                key=key,
                character=bucket.character,
                set_name=bucket.set_name,
                group_label=bucket.group_label,
                required=required,
                owned=owned,
                spare=max(0, owned - required),
                need=max(0, required - owned),
                rep_card_pk=bucket.rep_card.card_pk if bucket.rep_card is not None else None,
            )
        )

    snapshot.dice_entries.sort(key=lambda e: (e.character.casefold(), e.set_name.casefold()))

    by_key: dict[DiceKey, DiceEntry] = {}
    for entry in snapshot.dice_entries:
        by_key[entry.key] = entry
        if entry.need > 0:
            snapshot.dice_need[entry.key] = entry
        if entry.spare > 0:
            snapshot.dice_spare[entry.key] = entry
        if entry.rep_card_pk is not None:
            snapshot.dice_by_card_pk[entry.rep_card_pk] = entry

    for detail in snapshot.cards.values():
        detail.dice = by_key.get(detail.dice_key)

    logger.debug(
        "Trade snapshot (%s): %s cards, %s dice buckets",
        policy.value,
        len(snapshot.cards),
        len(snapshot.dice_entries),
    )
    return snapshot
