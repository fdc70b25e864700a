"""
Backup snapshot of the user store.

A backup replaces every user table wholesale when restored, so it carries
all rows of all four tables.
"""

from datetime import datetime

from pydantic import BaseModel, Field

BACKUP_FORMAT_VERSION = 1


class CollectionRow(BaseModel):
    card_pk: int
    have_cards: int = 0
    have_foil: int = 0
    have_dice: int = 0
    want: int = 0
    notes: str | None = None


class DiceRow(BaseModel):
    character_name: str
    set_group: str
    dice_count: int = 0


class TeamCardRow(BaseModel):
    card_pk: int
    dice_count: int = 0


class TeamRow(BaseModel):
    team_id: int
    name: str
    created_at: datetime | None = None
    updated_at: datetime | None = None
    cards: list[TeamCardRow] = Field(default_factory=list)


class UserStoreBackup(BaseModel):
    """Serialized form of the whole user store."""

    version: int = BACKUP_FORMAT_VERSION
    collection: list[CollectionRow] = Field(default_factory=list)
    dice: list[DiceRow] = Field(default_factory=list)
    teams: list[TeamRow] = Field(default_factory=list)
