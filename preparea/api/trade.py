"""
Trade API endpoints.

Exports the collector's spares and needs, and reconciles them against a
trade partner's export.
"""

from fastapi import APIRouter, Query
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, Field

from preparea.api.dependencies import OwnershipDep, ReadyWorkspaceDep
from preparea.config import settings
from preparea.models.trade import OwnershipPolicy, TradeCompareResult
from preparea.parsers.trade_csv import export_trade_csv, parse_trade_csv

router = APIRouter(prefix="/trade", tags=["trade"])


class TradeCompareRequest(BaseModel):
    text: str | None = Field(
        default=None,
        description="Partner's trade CSV; omit to reuse the last loaded partner",
    )
    keep_both: bool | None = Field(
        default=None,
        description="Keep one standard and one foil (true) or a single copy preferring foil",
    )


def _policy(keep_both: bool | None) -> OwnershipPolicy:
    return OwnershipPolicy.from_keep_both(
        settings.trade_keep_both if keep_both is None else keep_both
    )


@router.get("/export", response_class=PlainTextResponse)
async def export_trade(
    workspace: ReadyWorkspaceDep,
    ownership: OwnershipDep,
    keep_both: bool | None = Query(default=None),
) -> PlainTextResponse:
    """Spares and needs as a trade CSV."""
    snapshot = workspace.trade_snapshot(ownership, _policy(keep_both))
    return PlainTextResponse(
        export_trade_csv(snapshot),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="trade.csv"'},
    )


@router.post("/compare", response_model=TradeCompareResult)
async def compare_trade(
    request: TradeCompareRequest,
    workspace: ReadyWorkspaceDep,
    ownership: OwnershipDep,
) -> TradeCompareResult:
    """
    Reconcile against a partner's trade CSV.

    Without partner data the result lists only our own spares and needs.
    """
    partner = None
    if request.text is not None:
        partner = parse_trade_csv(request.text, workspace.reference, workspace.set_group_labels)
    return workspace.compare_trades(ownership, _policy(request.keep_both), partner)
