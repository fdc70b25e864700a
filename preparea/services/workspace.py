"""
Versioned collection workspace.

Holds the loaded reference data and caches the structures derived from
it. Derived structures are keyed by the collection version and rebuilt
from scratch when it moves; they are never patched.

INVARIANTS:
1. A cached ownership snapshot always matches `ownership_version`.
2. A cached trade snapshot is only served for the ownership snapshot it
   was built from.
3. Without reference data every query answers with an empty result.
4. The version moves only after a mutation is committed, so rows loaded
   under a version are never older than that version.
"""

import logging
from collections.abc import Awaitable, Callable, Iterable
from typing import Any

from preparea.models.card import CardRecord
from preparea.models.collection import OwnershipSnapshot
from preparea.models.filters import CardGroup, FilterSelection
from preparea.models.reference import ReferenceData
from preparea.models.stats import CollectionStats
from preparea.models.trade import (
    OwnershipPolicy,
    PartnerSnapshot,
    TradeCompareResult,
    TradeSnapshot,
)
from preparea.models.vocabulary import FilterVocabulary
from preparea.services.card_filter import CardFilter, group_cards
from preparea.services.collection_snapshot import build_ownership_snapshot
from preparea.services.collection_stats import build_collection_stats
from preparea.services.trade_reconciliation import reconcile_trades
from preparea.services.trade_snapshot import build_trade_snapshot
from preparea.services.vocabulary import build_filter_vocabulary

logger = logging.getLogger(__name__)

OwnershipRows = tuple[Iterable[tuple[Any, Any, Any]], Iterable[tuple[Any, Any, Any]]]


class CollectionWorkspace:
    """In-memory state shared by the HTTP handlers of one process."""

    def __init__(
        self,
        reference: ReferenceData | None = None,
        static_vocabulary: FilterVocabulary | None = None,
    ) -> None:
        self.static_vocabulary = static_vocabulary or FilterVocabulary()
        self.ownership_version = 0
        self.partner: PartnerSnapshot | None = None

        self._reference: ReferenceData | None = None
        self._vocabulary: FilterVocabulary | None = None
        self._card_filter: CardFilter | None = None
        self._ownership: tuple[int, OwnershipSnapshot] | None = None
        self._trade: dict[OwnershipPolicy, tuple[OwnershipSnapshot, TradeSnapshot]] = {}

        if reference is not None:
            self.load_reference(reference)

    # --- Reference data ---

    def load_reference(self, reference: ReferenceData) -> None:
        """Install reference data and rebuild everything derived from it."""
        self._reference = reference
        self._vocabulary = build_filter_vocabulary(reference)
        self._card_filter = CardFilter(
            reference.cards,
            reference.card_text,
            self._vocabulary.format_ban_map(),
            self._vocabulary.expansion_map(),
        )
        self._trade.clear()
        logger.info("Workspace loaded %s cards", len(reference.cards))

    @property
    def ready(self) -> bool:
        return self._reference is not None and not self._reference.is_empty

    @property
    def reference(self) -> ReferenceData:
        return self._reference or ReferenceData()

    @property
    def vocabulary(self) -> FilterVocabulary:
        """Live vocabulary once reference data is loaded, the static snapshot before."""
        if self._vocabulary is not None and self.ready:
            return self._vocabulary
        return self.static_vocabulary

    @property
    def set_group_labels(self) -> dict[str, str]:
        return self.vocabulary.set_group_labels()

    # --- Versions ---

    def bump_collection(self) -> None:
        """Call after the mutation has been committed."""
        self.ownership_version += 1

    def reset_after_restore(self) -> None:
        """A restored backup replaces every user table."""
        self.bump_collection()
        self.partner = None

    # --- Ownership ---

    def cached_ownership(self) -> OwnershipSnapshot | None:
        if self._ownership is not None and self._ownership[0] == self.ownership_version:
            return self._ownership[1]
        return None

    async def ownership(
        self, load_rows: Callable[[], Awaitable[OwnershipRows]]
    ) -> OwnershipSnapshot:
        """
        Current ownership snapshot, loading rows only when the version moved.

        Args:
            load_rows: Coroutine factory returning (card rows, dice rows)
        """
        cached = self.cached_ownership()
        if cached is not None:
            return cached
        version = self.ownership_version
        card_rows, dice_rows = await load_rows()
        snapshot = build_ownership_snapshot(card_rows, dice_rows)
        if version == self.ownership_version:
            self._ownership = (version, snapshot)
        return snapshot

    # --- Derived views ---

    def search(self, selection: FilterSelection, ownership: OwnershipSnapshot) -> list[CardGroup]:
        if not self.ready or self._card_filter is None:
            return []
        return group_cards(self._card_filter.apply(selection, ownership))

    def filter_cards(
        self, selection: FilterSelection, ownership: OwnershipSnapshot
    ) -> list[CardRecord]:
        if not self.ready or self._card_filter is None:
            return []
        return self._card_filter.apply(selection, ownership)

    def stats(self, ownership: OwnershipSnapshot) -> CollectionStats:
        return build_collection_stats(self.reference.cards, ownership, self.set_group_labels)

    def trade_snapshot(
        self, ownership: OwnershipSnapshot, policy: OwnershipPolicy
    ) -> TradeSnapshot:
        """Trade snapshot for an ownership snapshot and policy."""
        cached = self._trade.get(policy)
        if cached is not None and cached[0] is ownership:
            return cached[1]
        snapshot = build_trade_snapshot(self.reference, ownership, policy, self.set_group_labels)
        self._trade[policy] = (ownership, snapshot)
        return snapshot

    def compare_trades(
        self,
        ownership: OwnershipSnapshot,
        policy: OwnershipPolicy,
        partner: PartnerSnapshot | None = None,
    ) -> TradeCompareResult:
        if partner is not None:
            self.partner = partner
        return reconcile_trades(self.trade_snapshot(ownership, policy), self.partner)
