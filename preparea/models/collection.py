"""
Ownership snapshot of the user store.

The snapshot is a projection: it is rebuilt from the user store rows after
every mutation and never patched in place.
"""

from dataclasses import dataclass, field
from typing import NamedTuple


class DiceKey(NamedTuple):
    """Dice are owned per character per set group, not per card."""

    character: str
    set_group: str


def apply_delta(current: int, delta: int) -> int:
    """New count after applying delta, clamped at zero."""
    return max(0, current + delta)


@dataclass(frozen=True, slots=True)
class CardCounts:
    """Owned copies of one card by print type."""

    standard: int = 0
    foil: int = 0

    @property
    def total(self) -> int:
        return self.standard + self.foil

    @property
    def owned(self) -> bool:
        return self.standard > 0 or self.foil > 0


_NO_COUNTS = CardCounts()


@dataclass
class OwnershipSnapshot:
    """
    Lookup maps over the user's collection.

    Absent keys read as zero. Counts are always non-negative integers.
    """

    cards: dict[int, CardCounts] = field(default_factory=dict)
    dice: dict[DiceKey, int] = field(default_factory=dict)

    def counts(self, card_pk: int) -> CardCounts:
        return self.cards.get(card_pk, _NO_COUNTS)

    def standard(self, card_pk: int) -> int:
        return self.counts(card_pk).standard

    def foil(self, card_pk: int) -> int:
        return self.counts(card_pk).foil

    def owns(self, card_pk: int) -> bool:
        return self.counts(card_pk).owned

    def dice_count(self, character: str, set_group: str) -> int:
        if not character:
            return 0
        return self.dice.get(DiceKey(character, set_group), 0)

    def total_standard(self) -> int:
        return sum(c.standard for c in self.cards.values())

    def total_foil(self) -> int:
        return sum(c.foil for c in self.cards.values())

    def total_dice(self) -> int:
        return sum(self.dice.values())
