"""
Typed rows of the read-only reference store.

Raw query results are mapped into these records at the loader boundary;
everything downstream works on them only.
"""

from dataclasses import dataclass, field
from functools import cached_property
from typing import NamedTuple

from preparea.config import DEFAULT_CARD_MAX_DICE
from preparea.models.card import CardRecord, CardText


@dataclass(frozen=True, slots=True)
class SetRecord:
    set_id: int
    set_group: str | None = None
    set_alt: str | None = None
    full_name: str | None = None
    universe: str | None = None


@dataclass(frozen=True, slots=True)
class FormatRecord:
    format_id: int
    name: str
    code: str | None = None
    notes: str | None = None


@dataclass(frozen=True, slots=True)
class AffiliationDefinition:
    """
    An affiliation icon row.

    Composite affiliations list their component tokens in `components`
    (comma-separated) and expand to the union of their components.
    """

    token: str
    file: str | None = None
    alt: str | None = None
    is_composite: bool = False
    components: str | None = None


@dataclass(frozen=True, slots=True)
class AlignmentRecord:
    token: str
    name: str


@dataclass(frozen=True, slots=True)
class IconRecord:
    """Icon for a rules token or an energy code."""

    token: str
    file: str | None = None
    alt: str | None = None


class ExternalName(NamedTuple):
    """(set, character, card name) as written in interchange files."""

    set_name: str
    character: str
    card_name: str


@dataclass
class ReferenceData:
    """
    Everything the core needs from the reference store.

    Optional tables that were absent when loading leave their
    collections empty.
    """

    cards: list[CardRecord] = field(default_factory=list)
    card_text: dict[int, CardText] = field(default_factory=dict)
    sets: list[SetRecord] = field(default_factory=list)
    formats: list[FormatRecord] = field(default_factory=list)
    banned_sets: list[tuple[int, int]] = field(default_factory=list)
    banned_cards: list[tuple[int, int]] = field(default_factory=list)
    affiliations: list[AffiliationDefinition] = field(default_factory=list)
    alignments: list[AlignmentRecord] = field(default_factory=list)
    token_icons: list[IconRecord] = field(default_factory=list)
    energy_codes: list[IconRecord] = field(default_factory=list)
    # External name -> card_pk, and card_pk -> its first external name
    card_lookup: dict[ExternalName, int] = field(default_factory=dict)
    external_names: dict[int, ExternalName] = field(default_factory=dict)

    @cached_property
    def cards_by_pk(self) -> dict[int, CardRecord]:
        return {card.card_pk: card for card in self.cards}

    def lookup_card_pk(self, set_name: str, character: str, card_name: str) -> int | None:
        return self.card_lookup.get(ExternalName(set_name, character, card_name))

    def max_dice(self, card_pk: int) -> int:
        """Dice rating for a card, falling back to the team cap."""
        text = self.card_text.get(card_pk)
        if text is None or text.max_dice is None or text.max_dice <= 0:
            return DEFAULT_CARD_MAX_DICE
        return text.max_dice

    @property
    def is_empty(self) -> bool:
        return not self.cards
