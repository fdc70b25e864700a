"""
Trade reconciliation.

Merges our trade snapshot with a partner's to propose what flows each way:
"trade plus" is what the partner's spares fill of our needs, "trade minus"
is what our spares fill of theirs.

Allocation is greedy in a fixed priority order per policy:

Trade plus, KEEP_BOTH:
    standard need <- partner standard spare
    foil need     <- partner foil spare
Trade plus, SINGLE_PREFER_FOIL:
    standard need <- partner standard spare
    any need      <- partner foil spare (only when we prefer foil),
                     then standard spare, then foil spare
    foil need not yet covered <- partner foil spare
Trade minus (either policy):
    partner standard need <- our standard spare
    partner foil need     <- our foil spare
    partner any need      <- our foil spare, then our standard spare
Dice (per bucket):
    plus  = min(our need, partner spare)
    minus = min(our spare, partner need)

INVARIANTS:
1. No allocation takes more than the remaining available quantity.
2. trade_plus_x <= min(our need x, partner spare x) and
   trade_minus_x <= min(our spare x, partner need x) for every quantity x.
"""

import logging
from dataclasses import dataclass

from preparea.models.collection import DiceKey
from preparea.models.trade import (
    DiceEntry,
    OwnershipPolicy,
    PartnerCardInfo,
    PartnerDiceInfo,
    PartnerSnapshot,
    TradeCardDetail,
    TradeCompareResult,
    TradeEntryFlags,
    TradeListEntry,
    TradeSnapshot,
    TradeSummary,
)

logger = logging.getLogger(__name__)

UNNAMED_CARD = "Unnamed"
DICE_ENTRY_NAME = "Dice"

_NO_PARTNER_CARD = PartnerCardInfo()
_NO_PARTNER_DICE = PartnerDiceInfo()


def allocate(need: int, available: int) -> tuple[int, int]:
    """
    Take as much of `need` as `available` allows.

    Returns:
        (taken, remaining available)

    Examples:
        >>> allocate(1, 2)
        (1, 1)
        >>> allocate(3, 2)
        (2, 0)
    """
    if need <= 0 or available <= 0:
        return 0, max(0, available)
    taken = min(need, available)
    return taken, available - taken


@dataclass(slots=True)
class CardAllocation:
    plus_standard: int = 0
    plus_foil: int = 0
    minus_standard: int = 0
    minus_foil: int = 0

    @property
    def has_plus(self) -> bool:
        return self.plus_standard > 0 or self.plus_foil > 0

    @property
    def has_minus(self) -> bool:
        return self.minus_standard > 0 or self.minus_foil > 0


def allocate_trade_plus(
    detail: TradeCardDetail, partner: PartnerCardInfo, policy: OwnershipPolicy
) -> tuple[int, int]:
    """(standard, foil) the partner's spares provide toward our needs."""
    standard_pool = partner.spare_standard
    foil_pool = partner.spare_foil

    plus_standard, standard_pool = allocate(detail.need_standard, standard_pool)

    if policy is OwnershipPolicy.KEEP_BOTH:
        plus_foil, foil_pool = allocate(detail.need_foil, foil_pool)
        return plus_standard, plus_foil

    plus_foil = 0
    remaining_any = detail.need_any
    if detail.prefer_foil:
        taken, foil_pool = allocate(remaining_any, foil_pool)
        plus_foil += taken
        remaining_any -= taken
    taken, standard_pool = allocate(remaining_any, standard_pool)
    plus_standard += taken
    remaining_any -= taken
    taken, foil_pool = allocate(remaining_any, foil_pool)
    plus_foil += taken

    taken, foil_pool = allocate(max(0, detail.need_foil - plus_foil), foil_pool)
    plus_foil += taken
    return plus_standard, plus_foil


def allocate_trade_minus(detail: TradeCardDetail, partner: PartnerCardInfo) -> tuple[int, int]:
    """(standard, foil) our spares provide toward the partner's needs."""
    minus_standard, standard_pool = allocate(partner.need_standard, detail.spare_standard)
    minus_foil, foil_pool = allocate(partner.need_foil, detail.spare_foil)

    remaining_any = partner.need_any
    taken, foil_pool = allocate(remaining_any, foil_pool)
    minus_foil += taken
    remaining_any -= taken
    taken, standard_pool = allocate(remaining_any, standard_pool)
    minus_standard += taken
    return minus_standard, minus_foil


def allocate_card(
    detail: TradeCardDetail, partner: PartnerCardInfo, policy: OwnershipPolicy
) -> CardAllocation:
    plus_standard, plus_foil = allocate_trade_plus(detail, partner, policy)
    minus_standard, minus_foil = allocate_trade_minus(detail, partner)
    return CardAllocation(plus_standard, plus_foil, minus_standard, minus_foil)


def allocate_dice(entry: DiceEntry | None, partner: PartnerDiceInfo) -> tuple[int, int]:
    """(plus, minus) dice for a bucket."""
    if entry is None:
        return 0, 0
    return min(entry.need, partner.spare), min(entry.spare, partner.need)


def _is_foil_upgrade_for_us(
    detail: TradeCardDetail,
    dice: DiceEntry | None,
    partner: PartnerCardInfo,
    partner_dice: PartnerDiceInfo,
    allocation: CardAllocation,
    plus_dice: int,
    minus_dice: int,
) -> bool:
    """The only flow is a partner foil toward an otherwise complete card of ours."""
    dice_need = dice.need if dice else 0
    dice_spare = dice.spare if dice else 0
    return (
        detail.need_foil > 0
        and detail.need_standard <= 0
        and detail.need_any <= 0
        and dice_need <= 0
        and dice_spare <= 0
        and allocation.plus_foil > 0
        and allocation.plus_standard == 0
        and plus_dice == 0
        and not allocation.has_minus
        and minus_dice == 0
        and partner.need_standard <= 0
        and partner.need_foil <= 0
        and partner.need_any <= 0
        and partner_dice.need <= 0
    )


def _is_foil_upgrade_for_partner(
    detail: TradeCardDetail,
    dice: DiceEntry | None,
    partner: PartnerCardInfo,
    partner_dice: PartnerDiceInfo,
    allocation: CardAllocation,
    plus_dice: int,
    minus_dice: int,
) -> bool:
    """The only flow is our foil toward an otherwise complete card of theirs."""
    dice_need = dice.need if dice else 0
    dice_spare = dice.spare if dice else 0
    return (
        partner.need_foil > 0
        and partner.need_standard <= 0
        and partner.need_any <= 0
        and partner_dice.need <= 0
        and allocation.minus_foil > 0
        and allocation.minus_standard == 0
        and minus_dice == 0
        and not allocation.has_plus
        and plus_dice == 0
        and detail.need_standard <= 0
        and detail.need_any <= 0
        and detail.need_foil <= 0
        and dice_need <= 0
        and dice_spare <= 0
    )


def dice_entry_id(key: DiceKey) -> str:
    return f"dice-{key.character}||{key.set_group}"


def _card_entry(
    detail: TradeCardDetail,
    partner: PartnerCardInfo,
    partner_dice: PartnerDiceInfo,
    policy: OwnershipPolicy,
    seen_dice_only: set[DiceKey],
) -> TradeListEntry | None:
    dice = detail.dice
    allocation = allocate_card(detail, partner, policy)
    plus_dice, minus_dice = allocate_dice(dice, partner_dice)

    flags = TradeEntryFlags(
        spare=detail.has_spare or (dice is not None and dice.spare > 0),
        missing=detail.has_need or (dice is not None and dice.need > 0),
        trade_plus=allocation.has_plus or plus_dice > 0,
        trade_minus=allocation.has_minus or minus_dice > 0,
        dice=dice is not None,
    )
    if not (flags.spare or flags.missing or flags.trade_plus or flags.trade_minus):
        return None

    card_specific = (
        detail.has_spare or detail.has_need or allocation.has_plus or allocation.has_minus
    )
    if not card_specific and flags.dice:
        # Dice-only interest is shown once per bucket
        if detail.dice_key in seen_dice_only:
            return None
        seen_dice_only.add(detail.dice_key)

    return TradeListEntry(
        id=f"card-{detail.card_pk}",
        kind="card",
        card_pk=detail.card_pk,
        character=detail.character,
        card_name=detail.card_name or UNNAMED_CARD,
        set_name=detail.set_name,
        card_type=detail.card_type,
        cost=detail.cost,
        spare_standard=detail.spare_standard,
        spare_foil=detail.spare_foil,
        need_standard=detail.need_standard,
        need_foil=detail.need_foil,
        need_any=detail.need_any,
        partner_spare_standard=partner.spare_standard,
        partner_spare_foil=partner.spare_foil,
        partner_need_standard=partner.need_standard,
        partner_need_foil=partner.need_foil,
        partner_need_any=partner.need_any,
        trade_plus_standard=allocation.plus_standard,
        trade_plus_foil=allocation.plus_foil,
        trade_plus_dice=plus_dice,
        trade_minus_standard=allocation.minus_standard,
        trade_minus_foil=allocation.minus_foil,
        trade_minus_dice=minus_dice,
        dice_owned=dice.owned if dice else 0,
        dice_required=dice.required if dice else 0,
        dice_spare=dice.spare if dice else 0,
        dice_need=dice.need if dice else 0,
        partner_dice_spare=partner_dice.spare,
        partner_dice_need=partner_dice.need,
        prefer_foil=detail.prefer_foil,
        foil_upgrade_for_us=_is_foil_upgrade_for_us(
            detail, dice, partner, partner_dice, allocation, plus_dice, minus_dice
        ),
        foil_upgrade_for_partner=_is_foil_upgrade_for_partner(
            detail, dice, partner, partner_dice, allocation, plus_dice, minus_dice
        ),
        flags=flags,
    )


def _orphan_dice_entry(entry: DiceEntry, partner_dice: PartnerDiceInfo) -> TradeListEntry | None:
    plus_dice, minus_dice = allocate_dice(entry, partner_dice)
    flags = TradeEntryFlags(
        spare=entry.spare > 0,
        missing=entry.need > 0,
        trade_plus=plus_dice > 0,
        trade_minus=minus_dice > 0,
        dice=True,
    )
    if not (flags.spare or flags.missing or flags.trade_plus or flags.trade_minus):
        return None
    return TradeListEntry(
        id=dice_entry_id(entry.key),
        kind="dice",
        character=entry.character,
        card_name=DICE_ENTRY_NAME,
        set_name=entry.set_name,
        trade_plus_dice=plus_dice,
        trade_minus_dice=minus_dice,
        dice_owned=entry.owned,
        dice_required=entry.required,
        dice_spare=entry.spare,
        dice_need=entry.need,
        partner_dice_spare=partner_dice.spare,
        partner_dice_need=partner_dice.need,
        flags=flags,
    )


def reconcile_trades(
    snapshot: TradeSnapshot, partner: PartnerSnapshot | None = None
) -> TradeCompareResult:
    """
    Merge our snapshot with a partner's into a sorted trade list.

    Without a partner the list still shows our own spares and needs.
    """
    partner = partner or PartnerSnapshot()
    entries: list[TradeListEntry] = []
    seen_dice_only: set[DiceKey] = set()

    for detail in snapshot.cards.values():
        entry = _card_entry(
            detail,
            partner.cards.get(detail.card_pk, _NO_PARTNER_CARD),
            partner.dice.get(detail.dice_key, _NO_PARTNER_DICE),
            snapshot.policy,
            seen_dice_only,
        )
        if entry is not None:
            entries.append(entry)

    for dice_entry in snapshot.dice_entries:
        if dice_entry.rep_card_pk is not None:
            continue
        entry = _orphan_dice_entry(dice_entry, partner.dice.get(dice_entry.key, _NO_PARTNER_DICE))
        if entry is not None:
            entries.append(entry)

    entries.sort(
        key=lambda e: (e.character.casefold(), e.set_name.casefold(), e.card_name.casefold())
    )

    summary = TradeSummary(
        total=len(entries),
        spares=sum(1 for e in entries if e.flags.spare),
        missing=sum(1 for e in entries if e.flags.missing),
        trade_plus=sum(1 for e in entries if e.flags.trade_plus),
        trade_minus=sum(1 for e in entries if e.flags.trade_minus),
    )
    logger.info(
        "Reconciled trades: %s entries, %s incoming, %s outgoing, %s unmatched partner rows",
        summary.total,
        summary.trade_plus,
        summary.trade_minus,
        len(partner.unmatched),
    )
    return TradeCompareResult(
        entries=entries,
        summary=summary,
        unmatched=list(partner.unmatched),
        partner_totals=partner.totals,
    )
