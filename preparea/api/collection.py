"""
Collection API endpoints.

Ownership counts, dice buckets, statistics and CSV interchange. Every
mutation commits before it bumps the workspace's collection version, so
the next read rebuilds the ownership snapshot from committed rows.
"""

import logging

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, ConfigDict, Field

from preparea.api.dependencies import (
    OwnershipDep,
    ReadyWorkspaceDep,
    SessionDep,
    WorkspaceDep,
)
from preparea.config import OTHER_SET_GROUP
from preparea.db import apply_card_delta, apply_import_plan, increment_dice
from preparea.models.failure import CardNotFoundError
from preparea.models.imports import ImportReport
from preparea.models.stats import CollectionStats
from preparea.parsers.collection_export import export_collection_csv
from preparea.parsers.collection_import import parse_collection_csv
from preparea.services.team_limits import DiceLinkMode

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/collection", tags=["collection"])

CSV_MEDIA_TYPE = "text/csv"


class CardIncrementRequest(BaseModel):
    delta: int = Field(..., description="Copies to add (negative to remove)")
    foil: bool = Field(default=False, description="Change the foil count instead of standard")
    dice_link: DiceLinkMode = Field(
        default=DiceLinkMode.NONE,
        description="Dice added per card copy added: none, d1 or d2",
    )


class CardIncrementResponse(BaseModel):
    card_pk: int
    foil: bool
    count: int
    dice_count: int | None = Field(
        default=None,
        description="New dice count of the card's bucket, when linked dice were added",
    )


class DiceIncrementRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    character: str
    set_group: str
    delta: int


class DiceIncrementResponse(BaseModel):
    character: str
    set_group: str
    dice_count: int


class CsvImportRequest(BaseModel):
    text: str = Field(..., description="Raw CSV text")


@router.get("/stats", response_model=CollectionStats)
async def get_collection_stats(
    workspace: WorkspaceDep,
    ownership: OwnershipDep,
) -> CollectionStats:
    """Totals and completion per universe and set group."""
    return workspace.stats(ownership)


@router.post("/cards/{card_pk}/increment", response_model=CardIncrementResponse)
async def increment_card_count(
    card_pk: int,
    request: CardIncrementRequest,
    workspace: ReadyWorkspaceDep,
    session: SessionDep,
) -> CardIncrementResponse:
    """
    Add or remove copies of a card.

    Counts never go below zero. With a dice link, adding copies also adds
    dice to the card's character and set group.
    """
    card = workspace.reference.cards_by_pk.get(card_pk)
    if card is None:
        raise CardNotFoundError(card_pk)

    count, dice = await apply_card_delta(
        session, card, request.delta, foil=request.foil, dice_link=request.dice_link
    )
    await session.commit()
    workspace.bump_collection()
    return CardIncrementResponse(card_pk=card_pk, foil=request.foil, count=count, dice_count=dice)


@router.post("/dice/increment", response_model=DiceIncrementResponse)
async def increment_dice_count(
    request: DiceIncrementRequest,
    workspace: WorkspaceDep,
    session: SessionDep,
) -> DiceIncrementResponse:
    count = await increment_dice(session, request.character, request.set_group, request.delta)
    await session.commit()
    workspace.bump_collection()
    return DiceIncrementResponse(
        character=request.character,
        set_group=request.set_group or OTHER_SET_GROUP,
        dice_count=count,
    )


@router.post("/import", response_model=ImportReport)
async def import_collection(
    request: CsvImportRequest,
    workspace: ReadyWorkspaceDep,
    session: SessionDep,
) -> ImportReport:
    """
    Import a collection CSV.

    A missing required column aborts the whole import. Rows that match no
    card are listed in the report and leave the store untouched.
    """
    plan = parse_collection_csv(request.text, workspace.reference)
    report = await apply_import_plan(session, plan)
    await session.commit()
    workspace.bump_collection()
    return report


@router.get("/export", response_class=PlainTextResponse)
async def export_collection(
    workspace: ReadyWorkspaceDep,
    ownership: OwnershipDep,
) -> PlainTextResponse:
    """The whole collection as CSV, one row per reference card."""
    content = export_collection_csv(workspace.reference, ownership)
    return PlainTextResponse(
        content,
        media_type=CSV_MEDIA_TYPE,
        headers={"Content-Disposition": 'attachment; filename="collection.csv"'},
    )
