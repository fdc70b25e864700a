"""
Trade models.

The snapshot types are derived working state and are recomputed whenever
ownership, the card set, or the ownership policy changes. The comparison
result types are what the trade tools report to the caller.
"""

from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel, Field

from preparea.models.collection import DiceKey
from preparea.models.imports import ImportRowIdentifier


class OwnershipPolicy(str, Enum):
    """How many copies of a card the collector wants to keep."""

    # One standard copy, plus one foil when the card has a foil printing
    KEEP_BOTH = "keep_both"
    # One copy of either print type, foil preferred
    SINGLE_PREFER_FOIL = "single_prefer_foil"

    @classmethod
    def from_keep_both(cls, keep_both: bool) -> "OwnershipPolicy":
        return cls.KEEP_BOTH if keep_both else cls.SINGLE_PREFER_FOIL


@dataclass(slots=True)
class DiceEntry:
    """
    Dice owned against dice required for one (character, set group) bucket.

    `required` is the highest dice rating among the bucket's cards, and
    `rep_card_pk` the card anchoring the bucket in card-centric views.
    Orphaned buckets (dice owned, no card) have required=0 and no
    representative.
    """

    key: DiceKey
    character: str
    set_name: str
    group_label: str
    required: int
    owned: int
    spare: int
    need: int
    rep_card_pk: int | None = None


@dataclass(slots=True)
class TradeCardDetail:
    """Spare and needed copies of one card under the active policy."""

    card_pk: int
    set_name: str
    group_label: str
    character: str
    card_name: str
    card_type: str | None
    cost: int | None
    standard_owned: int
    foil_owned: int
    has_foil: bool
    dice_key: DiceKey
    spare_standard: int = 0
    spare_foil: int = 0
    need_standard: int = 0
    need_foil: int = 0
    need_any: int = 0
    prefer_foil: bool = False
    dice: DiceEntry | None = None

    @property
    def has_spare(self) -> bool:
        return self.spare_standard > 0 or self.spare_foil > 0

    @property
    def has_need(self) -> bool:
        return self.need_standard > 0 or self.need_foil > 0 or self.need_any > 0


@dataclass
class TradeSnapshot:
    policy: OwnershipPolicy
    cards: dict[int, TradeCardDetail] = field(default_factory=dict)
    dice_entries: list[DiceEntry] = field(default_factory=list)
    dice_need: dict[DiceKey, DiceEntry] = field(default_factory=dict)
    dice_spare: dict[DiceKey, DiceEntry] = field(default_factory=dict)
    dice_by_card_pk: dict[int, DiceEntry] = field(default_factory=dict)

    @property
    def cards_needed(self) -> dict[int, TradeCardDetail]:
        return {pk: detail for pk, detail in self.cards.items() if detail.has_need}

    @property
    def cards_spare(self) -> dict[int, TradeCardDetail]:
        return {pk: detail for pk, detail in self.cards.items() if detail.has_spare}

    def dice_entry(self, key: DiceKey) -> DiceEntry | None:
        for entry in self.dice_entries:
            if entry.key == key:
                return entry
        return None


# --- Partner data (imported from the partner's trade export) ---


@dataclass(slots=True)
class PartnerCardInfo:
    spare_standard: int = 0
    spare_foil: int = 0
    need_standard: int = 0
    need_foil: int = 0
    need_any: int = 0

    def merge(self, other: "PartnerCardInfo") -> None:
        """Keep the larger value of each field."""
        self.spare_standard = max(self.spare_standard, other.spare_standard)
        self.spare_foil = max(self.spare_foil, other.spare_foil)
        self.need_standard = max(self.need_standard, other.need_standard)
        self.need_foil = max(self.need_foil, other.need_foil)
        self.need_any = max(self.need_any, other.need_any)


@dataclass(slots=True)
class PartnerDiceInfo:
    spare: int = 0
    need: int = 0
    owned: int = 0
    required: int = 0

    def merge(self, other: "PartnerDiceInfo") -> None:
        self.spare = max(self.spare, other.spare)
        self.need = max(self.need, other.need)
        self.owned = max(self.owned, other.owned)
        self.required = max(self.required, other.required)


class PartnerTotals(BaseModel):
    """Sums over every non-blank row of the partner's file."""

    spare_standard: int = 0
    spare_foil: int = 0
    spare_dice: int = 0
    need_standard: int = 0
    need_foil: int = 0
    need_any: int = 0
    need_dice: int = 0
    rows: int = 0


@dataclass
class PartnerSnapshot:
    cards: dict[int, PartnerCardInfo] = field(default_factory=dict)
    dice: dict[DiceKey, PartnerDiceInfo] = field(default_factory=dict)
    unmatched: list[ImportRowIdentifier] = field(default_factory=list)
    totals: PartnerTotals = field(default_factory=PartnerTotals)


# --- Comparison result ---


class TradeEntryFlags(BaseModel):
    spare: bool = False
    missing: bool = False
    trade_plus: bool = False
    trade_minus: bool = False
    dice: bool = False


class TradeListEntry(BaseModel):
    """
    One line of the trade list.

    trade_plus_* flow from the partner to us, trade_minus_* from us to
    the partner.
    """

    id: str
    kind: str = Field(..., description="'card' or 'dice'")
    card_pk: int | None = None
    character: str
    card_name: str
    set_name: str
    card_type: str | None = None
    cost: int | None = None
    spare_standard: int = 0
    spare_foil: int = 0
    need_standard: int = 0
    need_foil: int = 0
    need_any: int = 0
    partner_spare_standard: int = 0
    partner_spare_foil: int = 0
    partner_need_standard: int = 0
    partner_need_foil: int = 0
    partner_need_any: int = 0
    trade_plus_standard: int = 0
    trade_plus_foil: int = 0
    trade_plus_dice: int = 0
    trade_minus_standard: int = 0
    trade_minus_foil: int = 0
    trade_minus_dice: int = 0
    dice_owned: int = 0
    dice_required: int = 0
    dice_spare: int = 0
    dice_need: int = 0
    partner_dice_spare: int = 0
    partner_dice_need: int = 0
    prefer_foil: bool = False
    foil_upgrade_for_us: bool = False
    foil_upgrade_for_partner: bool = False
    flags: TradeEntryFlags = Field(default_factory=TradeEntryFlags)


class TradeSummary(BaseModel):
    """Entry counts (not quantities) per flag."""

    total: int = 0
    spares: int = 0
    missing: int = 0
    trade_plus: int = 0
    trade_minus: int = 0


class TradeCompareResult(BaseModel):
    entries: list[TradeListEntry] = Field(default_factory=list)
    summary: TradeSummary = Field(default_factory=TradeSummary)
    unmatched: list[ImportRowIdentifier] = Field(default_factory=list)
    partner_totals: PartnerTotals = Field(default_factory=PartnerTotals)
