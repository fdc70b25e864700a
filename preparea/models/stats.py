from pydantic import BaseModel, Field


class SetStats(BaseModel):
    name: str
    owned: int = 0
    total: int = 0
    percent: float = 0.0
    foil_owned: int = 0
    foil_total: int = 0
    foil_percent: float = 0.0


class UniverseStats(BaseModel):
    name: str
    owned: int = 0
    total: int = 0
    percent: float = 0.0
    foil_owned: int = 0
    foil_total: int = 0
    foil_percent: float = 0.0
    sets: list[SetStats] = Field(default_factory=list)


class CollectionStats(BaseModel):
    """Collection completion overall, per universe, and per set group."""

    total_standard: int = 0
    total_foil: int = 0
    total_dice: int = 0
    unique_owned: int = 0
    unique_total: int = 0
    unique_foil_owned: int = 0
    foil_eligible_total: int = 0
    universes: list[UniverseStats] = Field(default_factory=list)
