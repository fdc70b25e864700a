"""Collection completion statistics."""

from collections.abc import Mapping
from dataclasses import dataclass, field

from preparea.models.card import CardRecord
from preparea.models.collection import OwnershipSnapshot
from preparea.models.stats import CollectionStats, SetStats, UniverseStats
from preparea.services.trade_snapshot import UNKNOWN_SET

UNCATEGORIZED_UNIVERSE = "Uncategorized"


@dataclass(slots=True)
class _Tally:
    name: str
    total: int = 0
    owned: int = 0
    foil_total: int = 0
    foil_owned: int = 0
    sets: dict[str, "_Tally"] = field(default_factory=dict)

    def add(self, card: CardRecord, owned: bool, foil_owned: bool) -> None:
        self.total += 1
        if owned:
            self.owned += 1
        if card.has_foil:
            self.foil_total += 1
            if owned and foil_owned:
                self.foil_owned += 1


def _percent(part: int, whole: int) -> float:
    return (part / whole) * 100 if whole else 0.0


def universe_label(universe: str | None) -> str:
    return (universe or "").strip() or UNCATEGORIZED_UNIVERSE


def set_group_info(card: CardRecord, set_group_labels: Mapping[str, str]) -> tuple[str, str]:
    """(set key, display name) used to break stats down by set."""
    group = (card.set_group or "").strip()
    if group:
        return group, set_group_labels.get(group, group)
    label = (card.set_label or "").strip()
    if label:
        return label, label
    return UNKNOWN_SET, UNKNOWN_SET


def build_collection_stats(
    cards: list[CardRecord],
    ownership: OwnershipSnapshot,
    set_group_labels: Mapping[str, str] | None = None,
) -> CollectionStats:
    """
    Completion per universe and per set group.

    Only cards present in `cards` count as owned; counts for cards missing
    from the reference data still contribute to the copy totals.
    """
    labels = set_group_labels or {}
    universes: dict[str, _Tally] = {}
    unique_owned = 0
    unique_foil_owned = 0
    foil_eligible = 0

    for card in cards:
        counts = ownership.counts(card.card_pk)
        owned = counts.owned
        foil_owned = counts.foil > 0

        name = universe_label(card.universe)
        universe = universes.setdefault(name, _Tally(name))
        set_key, set_name = set_group_info(card, labels)
        set_tally = universe.sets.setdefault(set_key, _Tally(set_name))
        set_tally.name = set_name

        universe.add(card, owned, foil_owned)
        set_tally.add(card, owned, foil_owned)

        if owned:
            unique_owned += 1
        if card.has_foil:
            foil_eligible += 1
            if owned and foil_owned:
                unique_foil_owned += 1

    universe_stats = [
        UniverseStats(
            name=u.name,
            owned=u.owned,
            total=u.total,
            percent=_percent(u.owned, u.total),
            foil_owned=u.foil_owned,
            foil_total=u.foil_total,
            foil_percent=_percent(u.foil_owned, u.foil_total),
            sets=sorted(
                (
                    SetStats(
                        name=s.name,
                        owned=s.owned,
                        total=s.total,
                        percent=_percent(s.owned, s.total),
                        foil_owned=s.foil_owned,
                        foil_total=s.foil_total,
                        foil_percent=_percent(s.foil_owned, s.foil_total),
                    )
                    for s in u.sets.values()
                ),
                key=lambda s: s.name.casefold(),
            ),
        )
        for u in universes.values()
    ]
    universe_stats.sort(key=lambda u: u.name.casefold())

    return CollectionStats(
        total_standard=ownership.total_standard(),
        total_foil=ownership.total_foil(),
        total_dice=ownership.total_dice(),
        unique_owned=unique_owned,
        unique_total=len(cards),
        unique_foil_owned=unique_foil_owned,
        foil_eligible_total=foil_eligible,
        universes=universe_stats,
    )
