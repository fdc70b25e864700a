from preparea.api.backup import router as backup_router
from preparea.api.cards import router as cards_router
from preparea.api.collection import router as collection_router
from preparea.api.health import router as health_router
from preparea.api.teams import router as teams_router
from preparea.api.trade import router as trade_router

__all__ = [
    "backup_router",
    "cards_router",
    "collection_router",
    "health_router",
    "teams_router",
    "trade_router",
]
