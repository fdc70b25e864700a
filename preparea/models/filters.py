from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel, Field

from preparea.models.card import CardRecord


class SearchMode(str, Enum):
    """Which card field the free-text query matches."""

    NAME = "name"  # character name or card name
    TEXT = "text"  # card rules text
    GLOBAL = "global"  # shared global rules text


class FilterSelection(BaseModel):
    """
    Current filter state of the card browser.

    Every list axis is a multi-select; an empty list applies no constraint.
    """

    query: str = ""
    mode: SearchMode = SearchMode.NAME
    set_groups: list[str] = Field(default_factory=list)
    energies: list[str] = Field(default_factory=list)
    universes: list[str] = Field(default_factory=list)
    rarities: list[str] = Field(default_factory=list)
    types: list[str] = Field(default_factory=list)
    genders: list[str] = Field(default_factory=list)
    costs: list[int] = Field(default_factory=list)
    alignments: list[str] = Field(default_factory=list)
    affiliations: list[str] = Field(default_factory=list)
    owned: bool = False
    not_owned: bool = False
    format_id: int | None = None


@dataclass
class CardGroup:
    """Cards of one character in one set group, or the set's Basic Actions."""

    key: str
    title: str
    is_basic_action: bool
    character: str
    group_label: str
    items: list[CardRecord] = field(default_factory=list)
