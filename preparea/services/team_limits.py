"""
Team dice limits.

A team fields at most TEAM_MAX_DICE dice in total. Each card on it is
further capped by its own dice rating and by how many dice the collector
owns for the card's character and set group.
"""

from enum import Enum

from preparea.config import TEAM_MAX_DICE


class DiceLinkMode(str, Enum):
    """Dice added automatically when card copies are added."""

    NONE = "none"
    D1 = "d1"
    D2 = "d2"

    @property
    def dice_per_card(self) -> int:
        return {DiceLinkMode.NONE: 0, DiceLinkMode.D1: 1, DiceLinkMode.D2: 2}[self]


def linked_dice_delta(card_delta: int, mode: DiceLinkMode) -> int:
    """Dice to add alongside a card increment. Removals never touch dice."""
    if card_delta <= 0:
        return 0
    return card_delta * mode.dice_per_card


def team_card_dice_limit(
    max_dice: int,
    owned_dice: int,
    team_total: int,
    current: int,
    team_cap: int = TEAM_MAX_DICE,
) -> int:
    """
    Most dice a card may hold on a team.

    Args:
        max_dice: The card's dice rating
        owned_dice: Dice owned for the card's character and set group
        team_total: Dice currently committed across the whole team
        current: Dice currently committed to this card
    """
    per_card = min(max(0, max_dice), max(0, owned_dice))
    team_remaining = team_cap - (team_total - current)
    return max(0, min(per_card, team_remaining))


def clamp_team_card_dice(
    requested: float,
    max_dice: int,
    owned_dice: int,
    team_total: int,
    current: int,
    team_cap: int = TEAM_MAX_DICE,
) -> int:
    """
    Dice to store for a requested value.

    Examples:
        >>> clamp_team_card_dice(5, max_dice=3, owned_dice=10, team_total=0, current=0)
        3
        >>> clamp_team_card_dice(5, max_dice=4, owned_dice=10, team_total=18, current=0)
        2
    """
    sanitized = max(0, int(requested + 0.5)) if requested > 0 else 0
    limit = team_card_dice_limit(max_dice, owned_dice, team_total, current, team_cap)
    return min(sanitized, limit)
