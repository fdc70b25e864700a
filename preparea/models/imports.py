from dataclasses import dataclass, field

from pydantic import BaseModel, Field

from preparea.models.collection import DiceKey


class ImportRowIdentifier(BaseModel):
    """How an unmatched CSV row identified its card."""

    set_name: str | None = None
    character: str | None = None
    card: str | None = None


class ImportReport(BaseModel):
    """Outcome of a collection import. Unmatched rows are reported, not applied."""

    total_standard: int = 0
    total_foil: int = 0
    dice_total: int = 0
    unmatched: list[ImportRowIdentifier] = Field(default_factory=list)


@dataclass(slots=True)
class CardUpdate:
    """New counts for a card; None leaves the stored value untouched."""

    standard: int | None = None
    foil: int | None = None

    @property
    def empty(self) -> bool:
        return self.standard is None and self.foil is None


@dataclass
class CollectionImportPlan:
    """Parsed collection CSV, resolved against the reference data."""

    card_updates: dict[int, CardUpdate] = field(default_factory=dict)
    dice_updates: dict[DiceKey, int] = field(default_factory=dict)
    unmatched: list[ImportRowIdentifier] = field(default_factory=list)
