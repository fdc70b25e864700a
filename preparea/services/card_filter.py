"""
Card filter and grouping engine.

Filtering is a conjunction over every active axis of a FilterSelection;
an axis with an empty selection places no constraint. Grouping buckets the
matching cards by character and set group, with each set's Basic Actions
in a bucket of their own.

INVARIANTS:
1. The filtered list is a subset of the input, in input order.
2. Filtering an already filtered list with the same selection is a no-op.
3. Group order and item order depend only on the set of cards, never on
   their input order.
"""

from collections.abc import Iterable, Mapping

from preparea.config import OTHER_SET_GROUP
from preparea.models.card import CardRecord, CardText
from preparea.models.collection import OwnershipSnapshot
from preparea.models.filters import CardGroup, FilterSelection, SearchMode
from preparea.models.vocabulary import FormatBan
from preparea.services.affiliations import expand_with_map
from preparea.services.tokens import (
    gender_label,
    natural_sort_key,
    normalize_search_value,
    parse_energy_tokens,
    split_tokens,
)

MISSING_RARITY_RANK = 9999

BASIC_ACTION_KEY = "BAC"
CHARACTER_KEY = "CHAR"


class TermMatcher:
    """Case-insensitive substring match on the raw or bracket-normalized value."""

    def __init__(self, query: str) -> None:
        self.term = query.strip().lower()
        self.normalized_term = normalize_search_value(self.term) if self.term else ""

    def __bool__(self) -> bool:
        return bool(self.term)

    def matches(self, value: object) -> bool:
        if not self.term or value is None:
            return False
        lower = str(value).lower()
        if self.term in lower:
            return True
        if not self.normalized_term:
            return False
        normalized = normalize_search_value(value)
        return bool(normalized) and self.normalized_term in normalized


class CardFilter:
    """
    Filter over a fixed card list.

    Per-card token lists are parsed once at construction; each call to
    `apply` only evaluates the selection.
    """

    def __init__(
        self,
        cards: list[CardRecord],
        card_text: Mapping[int, CardText] | None = None,
        format_bans: Mapping[int, FormatBan] | None = None,
        affiliation_expansion: Mapping[str, frozenset[str]] | None = None,
    ) -> None:
        self.cards = cards
        self.card_text = card_text or {}
        self.format_bans = format_bans or {}
        self.affiliation_expansion = affiliation_expansion or {}

        self._energy_tokens = {c.card_pk: set(parse_energy_tokens(c.energy_tokens)) for c in cards}
        self._align_tokens = {c.card_pk: set(split_tokens(c.align_tokens)) for c in cards}
        self._aff_tokens = {
            c.card_pk: expand_with_map(split_tokens(c.aff_tokens), self.affiliation_expansion)
            for c in cards
        }

    def apply(
        self,
        selection: FilterSelection,
        ownership: OwnershipSnapshot | None = None,
        cards: Iterable[CardRecord] | None = None,
    ) -> list[CardRecord]:
        """
        Cards matching every active axis of the selection.

        `cards` narrows the input to a subset of the constructed list.
        """
        ownership = ownership or OwnershipSnapshot()
        matcher = TermMatcher(selection.query)

        groups = set(selection.set_groups)
        energies = set(selection.energies)
        universes = set(selection.universes)
        rarities = set(selection.rarities)
        types = set(selection.types)
        genders = set(selection.genders)
        costs = set(selection.costs)
        alignments = set(selection.alignments)
        affiliations = (
            expand_with_map(selection.affiliations, self.affiliation_expansion)
            if selection.affiliations
            else set()
        )
        ban = self.format_bans.get(selection.format_id) if selection.format_id is not None else None
        check_owned = selection.owned != selection.not_owned

        matches: list[CardRecord] = []
        for card in self.cards if cards is None else cards:
            pk = card.card_pk
            if matcher and not self._matches_query(card, matcher, selection.mode):
                continue
            if groups and (card.set_group or OTHER_SET_GROUP) not in groups:
                continue
            if ban is not None and ban.excludes(card.set_id, pk):
                continue
            if energies and not (self._energy_tokens.get(pk, set()) & energies):
                continue
            if universes and card.universe not in universes:
                continue
            if rarities and card.rarity not in rarities:
                continue
            if check_owned and ownership.owns(pk) != selection.owned:
                continue
            if affiliations:
                card_affiliations = self._aff_tokens.get(pk)
                if not card_affiliations or not (card_affiliations & affiliations):
                    continue
            if alignments and not (self._align_tokens.get(pk, set()) & alignments):
                continue
            if costs and (card.cost is None or card.cost not in costs):
                continue
            if types and card.type_name not in types:
                continue
            if genders and gender_label(card.gender) not in genders:
                continue
            matches.append(card)
        return matches

    def _matches_query(self, card: CardRecord, matcher: TermMatcher, mode: SearchMode) -> bool:
        text = self.card_text.get(card.card_pk)
        if mode is SearchMode.GLOBAL:
            return matcher.matches(text.global_text if text else None)
        if mode is SearchMode.TEXT:
            return matcher.matches(text.text if text else None)

        candidates = [
            (card.character_name or "").strip().lower(),
            (card.card_name or "").strip().lower(),
        ]
        if text is not None:
            candidates.extend([text.name, text.subname])
        return any(matcher.matches(value) for value in candidates if value)


def filter_cards(
    cards: list[CardRecord],
    selection: FilterSelection,
    ownership: OwnershipSnapshot | None = None,
    card_text: Mapping[int, CardText] | None = None,
    format_bans: Mapping[int, FormatBan] | None = None,
    affiliation_expansion: Mapping[str, frozenset[str]] | None = None,
) -> list[CardRecord]:
    """One-off filter; build a CardFilter to reuse the per-card token index."""
    return CardFilter(cards, card_text, format_bans, affiliation_expansion).apply(
        selection, ownership
    )


def _item_sort_key(card: CardRecord) -> tuple:
    rank = card.rarity_rank if card.rarity_rank is not None else MISSING_RARITY_RANK
    return (rank, natural_sort_key(card.card_number), card.card_pk)


def group_cards(cards: Iterable[CardRecord]) -> list[CardGroup]:
    """
    Bucket cards by (basic action?, set group, character).

    Items sort by rarity rank then card number (numeric-aware). Basic Action
    groups come first, then all groups by title, case-insensitive.
    """
    by_key: dict[str, CardGroup] = {}
    for card in cards:
        is_basic = card.is_basic_action
        label = card.group_label
        if is_basic:
            key = f"{BASIC_ACTION_KEY}||{label}||{BASIC_ACTION_KEY}"
            title = f"Basic Action ({label})"
        else:
            key = f"{CHARACTER_KEY}||{label}||{card.character_name}"
            title = f"{card.character_name} ({label})"
        group = by_key.get(key)
        if group is None:
            group = CardGroup(
                key=key,
                title=title,
                is_basic_action=is_basic,
                character="Basic Action" if is_basic else card.character_name,
                group_label=label,
            )
            by_key[key] = group
        group.items.append(card)

    for group in by_key.values():
        group.items.sort(key=_item_sort_key)

    return sorted(
        by_key.values(),
        key=lambda g: (not g.is_basic_action, g.title.casefold(), g.key),
    )
