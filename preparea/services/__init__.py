from preparea.services.affiliations import (
    AffiliationResolver,
    build_affiliation_display,
    build_component_map,
)
from preparea.services.card_filter import CardFilter, filter_cards, group_cards
from preparea.services.collection_snapshot import build_ownership_snapshot, normalize_count
from preparea.services.collection_stats import build_collection_stats
from preparea.services.team_limits import DiceLinkMode, clamp_team_card_dice, linked_dice_delta
from preparea.services.trade_reconciliation import allocate, reconcile_trades
from preparea.services.trade_snapshot import build_trade_snapshot, trade_set_info
from preparea.services.vocabulary import build_filter_vocabulary, load_static_vocabulary
from preparea.services.workspace import CollectionWorkspace

__all__ = [
    "AffiliationResolver",
    "CardFilter",
    "CollectionWorkspace",
    "DiceLinkMode",
    "allocate",
    "build_affiliation_display",
    "build_collection_stats",
    "build_component_map",
    "build_filter_vocabulary",
    "build_ownership_snapshot",
    "build_trade_snapshot",
    "clamp_team_card_dice",
    "filter_cards",
    "group_cards",
    "linked_dice_delta",
    "load_static_vocabulary",
    "normalize_count",
    "reconcile_trades",
    "trade_set_info",
]
