"""
Filter vocabulary builder.

Derives the selectable values of every filter axis from the reference data.
The same builder produces the static `filter_data.json` snapshot (see
preparea.jobs.generate_filter_data), so the live and static vocabularies
agree whenever they come from the same reference store.

INVARIANTS:
1. Every axis is deterministic: identical reference data yields identical lists.
2. The retired legacy set group is never offered.
3. Only formats with at least one banned set or card are offered.
"""

import json
import logging
import re
from collections import defaultdict
from pathlib import Path

from pydantic import ValidationError

from preparea.config import LEGACY_SET_GROUP, OTHER_SET_GROUP
from preparea.models.card import CardRecord
from preparea.models.reference import (
    AlignmentRecord,
    FormatRecord,
    IconRecord,
    ReferenceData,
    SetRecord,
)
from preparea.models.vocabulary import (
    AffiliationExpansionEntry,
    AffiliationOption,
    AlignmentOption,
    EnergyCodeOption,
    FilterVocabulary,
    FormatBanEntry,
    FormatOption,
    IconOption,
    SetGroupOption,
)
from preparea.services.affiliations import AffiliationResolver, build_affiliation_display
from preparea.services.tokens import (
    ENERGY_RANK_FALLBACK,
    energy_code_rank,
    gender_label,
    parse_energy_tokens,
)

logger = logging.getLogger(__name__)

MISSING_RARITY_RANK = 9999

_HAS_DIGIT = re.compile(r"\d")


def _set_label_preference(set_record: SetRecord) -> int:
    """Lower is preferred: full names first, "...op" labels and numbered labels last."""
    if set_record.full_name:
        return 0
    alt = set_record.set_alt or ""
    if alt.lower().endswith("op"):
        return 3
    if _HAS_DIGIT.search(alt):
        return 4
    return 1


def is_legacy_set_group(group: str) -> bool:
    return re.sub(r"\s+", "", group).lower() == LEGACY_SET_GROUP


def build_set_groups(sets: list[SetRecord], cards: list[CardRecord]) -> list[SetGroupOption]:
    """
    One option per set group that has cards, labelled by its preferred set.

    Ordered by display label, case-insensitive.
    """
    set_ids_with_cards = {card.set_id for card in cards}
    candidates: dict[str, list[tuple[tuple[int, int, str], SetGroupOption]]] = defaultdict(list)

    for set_record in sets:
        if set_record.set_id not in set_ids_with_cards:
            continue
        group = set_record.set_group or OTHER_SET_GROUP
        display = set_record.set_alt or group
        hover = set_record.full_name or display
        sort_key = (
            _set_label_preference(set_record),
            1 if display == group else 0,
            display.casefold(),
        )
        option = SetGroupOption(group=group, display=display, hover=hover)
        candidates[group].append((sort_key, option))

    options = [min(ranked, key=lambda item: item[0])[1] for ranked in candidates.values()]
    options.sort(key=lambda option: (option.display.casefold(), option.display))
    return [option for option in options if not is_legacy_set_group(option.group)]


def build_universes(sets: list[SetRecord]) -> list[str]:
    return sorted({s.universe for s in sets if s.universe})


def build_energies(cards: list[CardRecord]) -> list[str]:
    """
    Energy tokens ordered by their best energy code rank, then alphabetically.

    A token's rank is the lowest rank of any card bearing it.
    """
    ranks: dict[str, float] = {}
    for card in cards:
        tokens = parse_energy_tokens(card.energy_tokens)
        if not tokens:
            continue
        rank = energy_code_rank(card.energy_code)
        for token in tokens:
            current = ranks.get(token)
            if current is None or rank < current:
                ranks[token] = rank
    return sorted(ranks, key=lambda token: (ranks.get(token, ENERGY_RANK_FALLBACK), token))


def build_rarities(cards: list[CardRecord]) -> list[str]:
    best_rank: dict[str, int] = {}
    for card in cards:
        if not card.rarity:
            continue
        rank = card.rarity_rank if card.rarity_rank is not None else MISSING_RARITY_RANK
        best_rank[card.rarity] = min(rank, best_rank.get(card.rarity, rank))
    return sorted(best_rank, key=lambda rarity: (best_rank[rarity], rarity))


def build_types(cards: list[CardRecord]) -> list[str]:
    return sorted({card.type_name for card in cards if card.type_name})


def build_genders(cards: list[CardRecord]) -> list[str]:
    """Gender labels in order of their stored codes, duplicates removed."""
    labels: list[str] = []
    for code in sorted({card.gender for card in cards if card.gender}):
        label = gender_label(code)
        if label and label not in labels:
            labels.append(label)
    return labels


def build_format_bans(
    formats: list[FormatRecord],
    banned_sets: list[tuple[int, int]],
    banned_cards: list[tuple[int, int]],
) -> tuple[list[FormatOption], list[FormatBanEntry]]:
    """Formats with active bans (ordered by name) and their ban lists."""
    sets_by_format: dict[int, list[int]] = defaultdict(list)
    cards_by_format: dict[int, list[int]] = defaultdict(list)
    for format_id, set_id in banned_sets:
        if set_id not in sets_by_format[format_id]:
            sets_by_format[format_id].append(set_id)
    for format_id, card_pk in banned_cards:
        if card_pk not in cards_by_format[format_id]:
            cards_by_format[format_id].append(card_pk)

    options: list[FormatOption] = []
    bans: list[FormatBanEntry] = []
    for fmt in sorted(formats, key=lambda f: f.name):
        ban_sets = sets_by_format.get(fmt.format_id, [])
        ban_cards = cards_by_format.get(fmt.format_id, [])
        if not ban_sets and not ban_cards:
            continue
        options.append(
            FormatOption(id=fmt.format_id, code=fmt.code or None, name=fmt.name, notes=fmt.notes)
        )
        bans.append(FormatBanEntry(id=fmt.format_id, sets=ban_sets, cards=ban_cards))
    return options, bans


def build_alignments(alignments: list[AlignmentRecord]) -> list[AlignmentOption]:
    return [
        AlignmentOption(token=a.token, name=a.name)
        for a in sorted(alignments, key=lambda a: a.name)
    ]


def build_token_icons(icons: list[IconRecord]) -> list[IconOption]:
    return [
        IconOption(token=icon.token, file=icon.file, alt=icon.alt)
        for icon in icons
        if icon.token.strip() and icon.file and icon.file.strip()
    ]


def build_energy_codes(codes: list[IconRecord]) -> list[EnergyCodeOption]:
    return [
        EnergyCodeOption(code=code.token, file=code.file, alt=code.alt)
        for code in codes
        if code.token.strip()
    ]


def build_filter_vocabulary(reference: ReferenceData) -> FilterVocabulary:
    """Derive every filter axis from loaded reference data."""
    formats, format_bans = build_format_bans(
        reference.formats, reference.banned_sets, reference.banned_cards
    )

    resolver = AffiliationResolver.from_definitions(reference.affiliations)
    affiliations = [
        AffiliationOption(
            token=d.token,
            file=d.file,
            alt=d.alt,
            is_composite=d.is_composite,
            components=d.components,
        )
        for d in build_affiliation_display(reference.affiliations)
    ]
    expansion = [
        AffiliationExpansionEntry(token=token, tokens=sorted(tokens))
        for token, tokens in resolver.expand_all().items()
    ]

    vocabulary = FilterVocabulary(
        set_groups=build_set_groups(reference.sets, reference.cards),
        universes=build_universes(reference.sets),
        energies=build_energies(reference.cards),
        rarities=build_rarities(reference.cards),
        types=build_types(reference.cards),
        genders=build_genders(reference.cards),
        formats=formats,
        format_bans=format_bans,
        alignments=build_alignments(reference.alignments),
        affiliations=affiliations,
        affiliation_expansion=expansion,
        token_icons=build_token_icons(reference.token_icons),
        energy_codes=build_energy_codes(reference.energy_codes),
    )
    logger.info(
        "Built filter vocabulary: %s set groups, %s energies, %s formats, %s affiliations",
        len(vocabulary.set_groups),
        len(vocabulary.energies),
        len(vocabulary.formats),
        len(vocabulary.affiliations),
    )
    return vocabulary


def load_static_vocabulary(path: Path) -> FilterVocabulary:
    """
    Load the pre-generated vocabulary snapshot.

    A missing or unreadable snapshot yields an empty vocabulary; the
    service still starts and serves the live vocabulary once loaded.
    """
    if not path.exists():
        logger.warning("Static filter data not found at %s", path)
        return FilterVocabulary()
    try:
        return FilterVocabulary.model_validate_json(path.read_text(encoding="utf-8"))
    except (OSError, ValidationError) as e:
        logger.warning("Failed to load static filter data from %s: %s", path, e)
        return FilterVocabulary()


def write_static_vocabulary(vocabulary: FilterVocabulary, path: Path) -> None:
    """Write the snapshot in the camelCase form read by load_static_vocabulary."""
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = vocabulary.model_dump(mode="json", by_alias=True)
    path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")
