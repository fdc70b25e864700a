"""
Card browser endpoints.

Exposes the filter vocabulary and grouped, filtered card search.
"""

from fastapi import APIRouter
from pydantic import BaseModel, ConfigDict, Field

from preparea.api.dependencies import OwnershipDep, WorkspaceDep
from preparea.models.collection import OwnershipSnapshot
from preparea.models.filters import CardGroup, FilterSelection
from preparea.models.vocabulary import FilterVocabulary

router = APIRouter(prefix="/cards", tags=["cards"])


class CardResponse(BaseModel):
    """A card as shown in the browser, with the collector's counts."""

    model_config = ConfigDict(from_attributes=True)

    card_pk: int
    set_id: int
    character_name: str
    card_name: str | None = None
    card_number: str | None = None
    set_group: str | None = None
    set_label: str | None = None
    universe: str | None = None
    cost: int | None = None
    energy_tokens: str | None = None
    type_name: str | None = None
    rarity: str | None = None
    aff_tokens: str | None = None
    align_tokens: str | None = None
    has_errata: bool = False
    has_foil: bool = False
    owned_standard: int = 0
    owned_foil: int = 0


class CardGroupResponse(BaseModel):
    key: str
    title: str
    is_basic_action: bool
    character: str
    group_label: str
    dice_owned: int = 0
    items: list[CardResponse] = Field(default_factory=list)


class SearchResponse(BaseModel):
    groups: list[CardGroupResponse] = Field(default_factory=list)
    total_cards: int = 0
    ready: bool = True


def _group_response(group: CardGroup, ownership: OwnershipSnapshot) -> CardGroupResponse:
    items = []
    for card in group.items:
        item = CardResponse.model_validate(card)
        counts = ownership.counts(card.card_pk)
        item.owned_standard = counts.standard
        item.owned_foil = counts.foil
        items.append(item)
    dice = 0 if group.is_basic_action else ownership.dice_count(group.character, group.group_label)
    return CardGroupResponse(
        key=group.key,
        title=group.title,
        is_basic_action=group.is_basic_action,
        character=group.character,
        group_label=group.group_label,
        dice_owned=dice,
        items=items,
    )


@router.get("/vocabulary", response_model=FilterVocabulary, response_model_by_alias=True)
async def get_vocabulary(workspace: WorkspaceDep) -> FilterVocabulary:
    """
    Filter options for the card browser.

    Before the reference store is loaded this is the pre-generated snapshot.
    """
    return workspace.vocabulary


@router.post("/search", response_model=SearchResponse)
async def search_cards(
    selection: FilterSelection,
    workspace: WorkspaceDep,
    ownership: OwnershipDep,
) -> SearchResponse:
    """Cards matching every active filter, grouped by character and set."""
    groups = workspace.search(selection, ownership)
    return SearchResponse(
        groups=[_group_response(group, ownership) for group in groups],
        total_cards=sum(len(group.items) for group in groups),
        ready=workspace.ready,
    )
