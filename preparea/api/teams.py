"""
Team API endpoints.

Teams are named rosters; each card on a team carries the dice committed
to it, capped per card and per team.
"""

from datetime import datetime

from fastapi import APIRouter, status
from pydantic import BaseModel, Field

from preparea.api.dependencies import (
    OwnershipDep,
    ReadyWorkspaceDep,
    SessionDep,
)
from preparea.config import TEAM_MAX_DICE
from preparea.db import (
    add_card_to_team,
    create_team,
    delete_team,
    get_team,
    get_team_summary,
    list_team_cards,
    list_teams,
    remove_card_from_team,
    rename_team,
    set_team_card_dice,
)
from preparea.models.failure import CardNotFoundError
from preparea.models.team import TeamSummary

router = APIRouter(prefix="/teams", tags=["teams"])


class TeamResponse(BaseModel):
    team_id: int
    name: str
    created_at: datetime | None = None
    updated_at: datetime | None = None
    dice_total: int = 0
    card_count: int = 0
    dice_cap: int = TEAM_MAX_DICE


class TeamNameRequest(BaseModel):
    name: str | None = Field(default=None, description="Blank names are replaced by a default")


class TeamCardResponse(BaseModel):
    card_pk: int
    character_name: str
    card_name: str | None = None
    set_group: str
    dice_count: int
    max_dice: int
    owned_dice: int


class TeamDetailResponse(BaseModel):
    team: TeamResponse
    cards: list[TeamCardResponse] = Field(default_factory=list)


class TeamDiceRequest(BaseModel):
    dice: float = Field(..., description="Requested dice; rounded and clamped to the limits")


class TeamDiceResponse(BaseModel):
    team_id: int
    card_pk: int
    dice_count: int


def _team_response(summary: TeamSummary) -> TeamResponse:
    return TeamResponse(
        team_id=summary.team.team_id,
        name=summary.team.name,
        created_at=summary.team.created_at,
        updated_at=summary.team.updated_at,
        dice_total=summary.dice_total,
        card_count=summary.card_count,
    )


@router.get("", response_model=list[TeamResponse])
async def get_teams(session: SessionDep) -> list[TeamResponse]:
    """All teams, oldest first."""
    summaries = await list_teams(session)
    return [_team_response(summary) for summary in summaries]


@router.post("", response_model=TeamResponse, status_code=status.HTTP_201_CREATED)
async def post_team(request: TeamNameRequest, session: SessionDep) -> TeamResponse:
    team = await create_team(session, request.name)
    return _team_response(TeamSummary(team=team, dice_total=0, card_count=0))


@router.get("/{team_id}", response_model=TeamDetailResponse)
async def get_team_detail(
    team_id: int,
    workspace: ReadyWorkspaceDep,
    ownership: OwnershipDep,
    session: SessionDep,
) -> TeamDetailResponse:
    """A team with its cards and each card's dice limits."""
    infos = await list_team_cards(session, team_id, workspace.reference, ownership)
    team = await get_team(session, team_id)
    dice_total = sum(card.dice_count or 0 for card in team.cards)
    return TeamDetailResponse(
        team=TeamResponse(
            team_id=team.team_id,
            name=team.name,
            created_at=team.created_at,
            updated_at=team.updated_at,
            dice_total=dice_total,
            card_count=len(team.cards),
        ),
        cards=[
            TeamCardResponse(
                card_pk=info.card.card_pk,
                character_name=info.card.character_name,
                card_name=info.card.card_name,
                set_group=info.card.group_label,
                dice_count=info.dice_count,
                max_dice=info.max_dice,
                owned_dice=info.owned_dice,
            )
            for info in infos
        ],
    )


@router.patch("/{team_id}", response_model=TeamResponse)
async def patch_team(
    team_id: int,
    request: TeamNameRequest,
    session: SessionDep,
) -> TeamResponse:
    """Rename a team. The response carries its current dice total and card count."""
    await rename_team(session, team_id, request.name)
    return _team_response(await get_team_summary(session, team_id))


@router.delete("/{team_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_team(team_id: int, session: SessionDep) -> None:
    await delete_team(session, team_id)


@router.post("/{team_id}/cards/{card_pk}", status_code=status.HTTP_204_NO_CONTENT)
async def post_team_card(
    team_id: int,
    card_pk: int,
    workspace: ReadyWorkspaceDep,
    session: SessionDep,
) -> None:
    if card_pk not in workspace.reference.cards_by_pk:
        raise CardNotFoundError(card_pk)
    await add_card_to_team(session, team_id, card_pk)


@router.delete("/{team_id}/cards/{card_pk}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_team_card(
    team_id: int,
    card_pk: int,
    session: SessionDep,
) -> None:
    await remove_card_from_team(session, team_id, card_pk)


@router.put("/{team_id}/cards/{card_pk}/dice", response_model=TeamDiceResponse)
async def put_team_card_dice(
    team_id: int,
    card_pk: int,
    request: TeamDiceRequest,
    workspace: ReadyWorkspaceDep,
    ownership: OwnershipDep,
    session: SessionDep,
) -> TeamDiceResponse:
    """
    Commit dice to a card on a team.

    Returns the stored value, which may be lower than requested.
    """
    card = workspace.reference.cards_by_pk.get(card_pk)
    if card is None:
        raise CardNotFoundError(card_pk)
    applied = await set_team_card_dice(
        session, team_id, card, request.dice, workspace.reference, ownership
    )
    return TeamDiceResponse(team_id=team_id, card_pk=card_pk, dice_count=applied)
