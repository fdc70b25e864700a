"""Tests for trade snapshots and reconciliation."""

import pytest

from preparea.models.collection import DiceKey
from preparea.models.trade import (
    OwnershipPolicy,
    PartnerCardInfo,
    PartnerDiceInfo,
    PartnerSnapshot,
    TradeCardDetail,
)
from preparea.services.collection_snapshot import build_ownership_snapshot
from preparea.services.trade_reconciliation import (
    allocate,
    allocate_trade_minus,
    allocate_trade_plus,
    reconcile_trades,
)
from preparea.services.trade_snapshot import (
    apply_keep_both,
    apply_single_prefer_foil,
    build_trade_snapshot,
    trade_set_info,
)

LABELS = {"avx": "AvX", "wol": "WoL", "Other": "promo"}


def detail(standard: int = 0, foil: int = 0, has_foil: bool = True) -> TradeCardDetail:
    return TradeCardDetail(
        card_pk=1,
        set_name="AvX",
        group_label="avx",
        character="Hulk",
        card_name="Anger Issues",
        card_type="Character",
        cost=5,
        standard_owned=standard,
        foil_owned=foil,
        has_foil=has_foil,
        dice_key=DiceKey("Hulk", "avx"),
    )


class TestPolicies:
    def test_keep_both_judges_print_types_separately(self) -> None:
        """Keep both wants one standard and one foil."""
        d = detail(standard=3, foil=0)
        apply_keep_both(d)
        assert (d.spare_standard, d.need_standard, d.need_foil, d.need_any) == (2, 0, 1, 0)

    def test_keep_both_without_foil_printing(self) -> None:
        """No foil is wanted when the card has no foil printing."""
        d = detail(standard=0, foil=0, has_foil=False)
        apply_keep_both(d)
        assert (d.need_standard, d.need_foil) == (1, 0)

    def test_single_copy_keeps_foil_first(self) -> None:
        """With a foil owned, every standard copy is spare."""
        d = detail(standard=2, foil=1)
        apply_single_prefer_foil(d)
        assert (d.spare_standard, d.spare_foil, d.need_any, d.need_foil) == (2, 0, 0, 0)

    def test_single_copy_standard_still_wants_foil(self) -> None:
        """A standard copy covers the card but a foil is still wanted."""
        d = detail(standard=1, foil=0)
        apply_single_prefer_foil(d)
        assert (d.spare_standard, d.need_any, d.need_foil, d.prefer_foil) == (0, 0, 1, False)

    def test_single_copy_unowned_prefers_foil(self) -> None:
        """An unowned foil-eligible card needs any copy and prefers foil."""
        d = detail()
        apply_single_prefer_foil(d)
        assert (d.need_any, d.need_foil, d.need_standard, d.prefer_foil) == (1, 1, 0, True)

    def test_single_copy_without_foil_printing(self) -> None:
        """Cards without a foil printing need a standard copy."""
        d = detail(has_foil=False)
        apply_single_prefer_foil(d)
        assert (d.need_standard, d.need_any, d.prefer_foil) == (1, 0, False)


class TestTradeSnapshot:
    @pytest.fixture
    def ownership(self):
        return build_ownership_snapshot(
            [(1, 3, 0), (2, 0, 2), (3, 1, 0)],
            [("Hulk", "avx", 6), ("Ghost", "xyz", 2)],
        )

    def test_set_info_uses_labels(self, reference) -> None:
        """Grouped cards show the group label; groupless cards their set label."""
        cards = reference.cards_by_pk
        assert trade_set_info(cards[1], LABELS) == ("avx", "AvX")
        assert trade_set_info(cards[6], LABELS) == ("promo", "promo")
        assert trade_set_info(None, LABELS) == ("Other", "Unknown Set")

    def test_card_details(self, reference, ownership) -> None:
        """Every card gets a detail under the policy."""
        snapshot = build_trade_snapshot(reference, ownership, OwnershipPolicy.KEEP_BOTH, LABELS)
        assert snapshot.cards[1].spare_standard == 2
        assert snapshot.cards[2].spare_foil == 1
        assert snapshot.cards[2].need_standard == 1
        assert snapshot.cards[3].need_foil == 1
        assert set(snapshot.cards_needed) >= {2, 3}

    def test_cards_spare(self, reference, ownership) -> None:
        """Only cards with extra standard or foil copies are listed as spare."""
        snapshot = build_trade_snapshot(reference, ownership, OwnershipPolicy.KEEP_BOTH, LABELS)
        assert set(snapshot.cards_spare) == {1, 2}
        assert snapshot.cards_spare[1].spare_standard == 2
        assert snapshot.cards_spare[2].spare_foil == 1

    def test_dice_bucket_requires_highest_rating(self, reference, ownership) -> None:
        """A bucket requires its highest dice rating; spare is owned minus required."""
        snapshot = build_trade_snapshot(reference, ownership, OwnershipPolicy.KEEP_BOTH, LABELS)
        hulk = snapshot.dice_entry(DiceKey("Hulk", "avx"))
        assert hulk is not None
        assert (hulk.required, hulk.owned, hulk.spare, hulk.need) == (4, 6, 2, 0)
        assert hulk.rep_card_pk == 1
        assert snapshot.dice_by_card_pk[1] is hulk

    def test_orphan_dice_bucket(self, reference, ownership) -> None:
        """Dice owned without a card are reported with required=0."""
        snapshot = build_trade_snapshot(reference, ownership, OwnershipPolicy.KEEP_BOTH, LABELS)
        ghost = snapshot.dice_spare[DiceKey("Ghost", "xyz")]
        assert (ghost.required, ghost.spare, ghost.rep_card_pk) == (0, 2, None)

    def test_dice_entries_sorted(self, reference, ownership) -> None:
        """Dice entries sort by character, then set."""
        snapshot = build_trade_snapshot(reference, ownership, OwnershipPolicy.KEEP_BOTH, LABELS)
        characters = [e.character for e in snapshot.dice_entries]
        assert characters == sorted(characters, key=str.casefold)


class TestAllocation:
    def test_allocate(self) -> None:
        """Allocation takes no more than is available."""
        assert allocate(1, 2) == (1, 1)
        assert allocate(3, 2) == (2, 0)
        assert allocate(0, 2) == (0, 2)
        assert allocate(2, -1) == (0, 0)

    def test_keep_both_plus(self) -> None:
        """Standard and foil needs draw from the matching partner spares."""
        d = detail()
        apply_keep_both(d)
        partner = PartnerCardInfo(spare_standard=2, spare_foil=1)
        assert allocate_trade_plus(d, partner, OwnershipPolicy.KEEP_BOTH) == (1, 1)

    def test_prefer_foil_plus_takes_foil_first(self) -> None:
        """A foil-preferring need takes a partner foil before a standard."""
        d = detail()
        apply_single_prefer_foil(d)
        partner = PartnerCardInfo(spare_standard=1, spare_foil=1)
        assert allocate_trade_plus(d, partner, OwnershipPolicy.SINGLE_PREFER_FOIL) == (0, 1)

    def test_prefer_foil_plus_falls_back_to_standard(self) -> None:
        """Without partner foils the need is met by a standard copy."""
        d = detail()
        apply_single_prefer_foil(d)
        partner = PartnerCardInfo(spare_standard=1)
        assert allocate_trade_plus(d, partner, OwnershipPolicy.SINGLE_PREFER_FOIL) == (1, 0)

    def test_minus_serves_any_need_from_foil_first(self) -> None:
        """Partner any-needs take our spare foils before standards."""
        d = detail(standard=3, foil=2)
        apply_keep_both(d)
        partner = PartnerCardInfo(need_standard=1, need_any=2)
        assert allocate_trade_minus(d, partner) == (2, 1)


class TestReconcile:
    @pytest.fixture
    def snapshot(self, reference):
        ownership = build_ownership_snapshot([(1, 3, 0)], [("Hulk", "avx", 6)])
        return build_trade_snapshot(reference, ownership, OwnershipPolicy.KEEP_BOTH, LABELS)

    @pytest.fixture
    def partner(self) -> PartnerSnapshot:
        return PartnerSnapshot(
            cards={
                1: PartnerCardInfo(need_standard=1, need_any=1),
                2: PartnerCardInfo(spare_standard=2, spare_foil=1),
            },
            dice={DiceKey("Hulk", "avx"): PartnerDiceInfo(need=1)},
        )

    def test_trade_plus_and_minus(self, snapshot, partner) -> None:
        """Partner spares fill our needs; our spares fill theirs."""
        result = reconcile_trades(snapshot, partner)
        by_pk = {e.card_pk: e for e in result.entries if e.card_pk is not None}

        assert (by_pk[2].trade_plus_standard, by_pk[2].trade_plus_foil) == (1, 1)
        assert by_pk[1].trade_minus_standard == 2
        assert by_pk[1].trade_minus_dice == 1
        assert by_pk[1].flags.trade_minus

    def test_allocations_never_exceed_bounds(self, snapshot, partner) -> None:
        """No flow exceeds what one side needs or the other spares."""
        for entry in reconcile_trades(snapshot, partner).entries:
            standard_need = entry.need_standard + entry.need_any
            foil_need = entry.need_foil + entry.need_any
            assert entry.trade_plus_standard <= min(standard_need, entry.partner_spare_standard)
            assert entry.trade_plus_foil <= min(foil_need, entry.partner_spare_foil)
            assert entry.trade_minus_standard <= entry.spare_standard
            assert entry.trade_minus_foil <= entry.spare_foil
            assert entry.trade_plus_dice <= min(entry.dice_need, entry.partner_dice_spare)
            assert entry.trade_minus_dice <= min(entry.dice_spare, entry.partner_dice_need)

    def test_without_partner_lists_own_interest(self, snapshot) -> None:
        """Without a partner only our spares and needs are listed."""
        result = reconcile_trades(snapshot)
        assert result.summary.trade_plus == 0
        assert result.summary.trade_minus == 0
        assert result.summary.total == len(result.entries)
        assert result.summary.spares >= 1

    def test_entries_sorted(self, snapshot, partner) -> None:
        """Entries sort by character, set and card name."""
        entries = reconcile_trades(snapshot, partner).entries
        keys = [
            (e.character.casefold(), e.set_name.casefold(), e.card_name.casefold())
            for e in entries
        ]
        assert keys == sorted(keys)

    def test_orphan_dice_entry(self, reference) -> None:
        """Dice with no card appear as a dice entry."""
        ownership = build_ownership_snapshot([], [("Ghost", "xyz", 2)])
        snapshot = build_trade_snapshot(reference, ownership, OwnershipPolicy.KEEP_BOTH, LABELS)
        result = reconcile_trades(snapshot)
        ghost = next(e for e in result.entries if e.kind == "dice")
        assert ghost.id == "dice-Ghost||xyz"
        assert ghost.card_name == "Dice"
        assert ghost.flags.spare

    def test_dice_only_interest_listed_once(self, reference) -> None:
        """A bucket needing dice is listed once, not per card."""
        ownership = build_ownership_snapshot([(1, 1, 0), (2, 1, 1)], [])
        snapshot = build_trade_snapshot(reference, ownership, OwnershipPolicy.KEEP_BOTH, LABELS)
        hulk = [e for e in reconcile_trades(snapshot).entries if e.character == "Hulk"]
        assert len(hulk) == 1
        assert hulk[0].dice_need == 4

    def test_foil_upgrade_for_us(self, reference) -> None:
        """A partner foil toward a card we otherwise complete is an upgrade."""
        ownership = build_ownership_snapshot([(3, 1, 0)], [("Captain America", "avx", 3)])
        snapshot = build_trade_snapshot(reference, ownership, OwnershipPolicy.KEEP_BOTH, LABELS)
        partner = PartnerSnapshot(cards={3: PartnerCardInfo(spare_foil=1)})
        entry = next(e for e in reconcile_trades(snapshot, partner).entries if e.card_pk == 3)
        assert entry.trade_plus_foil == 1
        assert entry.foil_upgrade_for_us
        assert not entry.foil_upgrade_for_partner

    def test_unmatched_and_totals_pass_through(self, snapshot) -> None:
        """Partner unmatched rows and totals are echoed."""
        partner = PartnerSnapshot()
        partner.totals.rows = 7
        result = reconcile_trades(snapshot, partner)
        assert result.partner_totals.rows == 7
