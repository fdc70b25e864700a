"""
Filter vocabulary: the selectable values for every filter axis.

Built from the live reference store or loaded from the pre-generated
static snapshot. Both sources produce the same model, and the JSON form
uses the camelCase keys of the generated `filter_data.json`.
"""

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


@dataclass(frozen=True, slots=True)
class FormatBan:
    """Sets and cards banned in one format."""

    sets: frozenset[int] = frozenset()
    cards: frozenset[int] = frozenset()

    @property
    def active(self) -> bool:
        return bool(self.sets or self.cards)

    def excludes(self, set_id: int, card_pk: int) -> bool:
        return set_id in self.sets or card_pk in self.cards


class SetGroupOption(BaseModel):
    """A set group with the label shown in lists and on hover."""

    group: str
    display: str
    hover: str


class FormatOption(BaseModel):
    id: int
    code: str | None = None
    name: str
    notes: str | None = None


class FormatBanEntry(BaseModel):
    id: int
    sets: list[int] = Field(default_factory=list)
    cards: list[int] = Field(default_factory=list)


class AlignmentOption(BaseModel):
    token: str
    name: str


class AffiliationOption(BaseModel):
    token: str
    file: str | None = None
    alt: str | None = None
    is_composite: bool = False
    components: str | None = None


class AffiliationExpansionEntry(BaseModel):
    token: str
    tokens: list[str]


class IconOption(BaseModel):
    token: str
    file: str | None = None
    alt: str | None = None


class EnergyCodeOption(BaseModel):
    code: str
    file: str | None = None
    alt: str | None = None


class FilterVocabulary(BaseModel):
    """Distinct filter values, each axis in display order."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    set_groups: list[SetGroupOption] = Field(default_factory=list)
    universes: list[str] = Field(default_factory=list)
    energies: list[str] = Field(default_factory=list)
    rarities: list[str] = Field(default_factory=list)
    types: list[str] = Field(default_factory=list)
    genders: list[str] = Field(default_factory=list)
    formats: list[FormatOption] = Field(default_factory=list)
    format_bans: list[FormatBanEntry] = Field(default_factory=list)
    alignments: list[AlignmentOption] = Field(default_factory=list)
    affiliations: list[AffiliationOption] = Field(default_factory=list)
    affiliation_expansion: list[AffiliationExpansionEntry] = Field(default_factory=list)
    token_icons: list[IconOption] = Field(default_factory=list)
    energy_codes: list[EnergyCodeOption] = Field(default_factory=list)

    def format_ban_map(self) -> dict[int, FormatBan]:
        return {
            entry.id: FormatBan(sets=frozenset(entry.sets), cards=frozenset(entry.cards))
            for entry in self.format_bans
        }

    def expansion_map(self) -> dict[str, frozenset[str]]:
        return {entry.token: frozenset(entry.tokens) for entry in self.affiliation_expansion}

    def set_group_labels(self) -> dict[str, str]:
        """Group key -> display label. "Other" is always present."""
        labels = {option.group: option.display for option in self.set_groups}
        labels.setdefault("Other", "Other")
        return labels

    def icon_file_for(self, token: str | None) -> str | None:
        """
        Icon file for a rules token.

        Tries the token as given, upper- and lower-cased, then falls back to
        matching an icon's alt text case-insensitively.
        """
        if not token:
            return None
        by_token = {icon.token: icon for icon in self.token_icons if icon.file}
        for key in (token, token.upper(), token.lower()):
            icon = by_token.get(key)
            if icon is not None:
                return icon.file
        lowered = token.lower()
        for icon in by_token.values():
            if icon.alt and icon.alt.lower() == lowered:
                return icon.file
        return None
