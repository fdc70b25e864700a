from dataclasses import dataclass
from datetime import datetime

from preparea.models.card import CardRecord


@dataclass(frozen=True, slots=True)
class Team:
    """A named roster of cards."""

    team_id: int
    name: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class TeamCard:
    team_id: int
    card_pk: int
    dice_count: int = 0


@dataclass(frozen=True, slots=True)
class TeamSummary:
    team: Team
    dice_total: int
    card_count: int


@dataclass(frozen=True, slots=True)
class TeamCardInfo:
    """
    A card on a team with the limits that cap its committed dice.

    Attributes:
        card: The card
        dice_count: Dice committed to this card on the team
        max_dice: The card's own dice rating
        owned_dice: Dice owned for the card's character and set group
    """

    card: CardRecord
    dice_count: int
    max_dice: int
    owned_dice: int
