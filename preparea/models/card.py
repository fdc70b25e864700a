from dataclasses import dataclass

from preparea.config import OTHER_SET_GROUP


@dataclass(frozen=True, slots=True)
class CardRecord:
    """
    One printed card, as materialised in the reference store's card rows.

    Attributes:
        card_pk: Primary key in the reference store
        set_id: Numeric set identifier (used by format bans)
        set_label: Alternate set label, used when no set group exists
        set_group: Set group key (several printings share one group)
        universe: Universe the set belongs to
        card_number: Number within the set (may contain letters)
        character_name: Character the card represents
        card_name: Card subtitle
        cost: Purchase cost, None for cards without one
        energy_code: Code used to rank the card's energy tokens
        energy_tokens: Comma-separated energy tokens
        type_name: Card type ("Character", "Basic Action", ...)
        rarity: Rarity label
        rarity_rank: Numeric ordering of the rarity (lower first)
        gender: Stored gender code ("0", "1", "2" or free text)
        aff_tokens: Comma-separated affiliation tokens
        align_tokens: Comma-separated alignment tokens
        has_errata: Card has published errata
        has_foil: Card was also printed as a foil
    """

    card_pk: int
    set_id: int
    character_name: str
    set_label: str | None = None
    set_group: str | None = None
    universe: str | None = None
    card_number: str | None = None
    card_name: str | None = None
    cost: int | None = None
    energy_code: str | None = None
    energy_tokens: str | None = None
    type_name: str | None = None
    rarity: str | None = None
    rarity_rank: int | None = None
    gender: str | None = None
    aff_tokens: str | None = None
    align_tokens: str | None = None
    has_errata: bool = False
    has_foil: bool = False

    @property
    def group_label(self) -> str:
        """Set group used for grouping and dice buckets."""
        group = (self.set_group or "").strip()
        if group:
            return group
        label = (self.set_label or "").strip()
        return label or OTHER_SET_GROUP

    @property
    def is_basic_action(self) -> bool:
        return "basic action" in (self.type_name or "").lower()


@dataclass(frozen=True, slots=True)
class CardText:
    """Searchable text and dice rating for a card, lowercased at load time."""

    text: str = ""
    global_text: str = ""
    name: str = ""
    subname: str = ""
    max_dice: int | None = None
