"""
User store operations.

Async functions over an AsyncSession for ownership counts, dice buckets,
teams and whole-store backups. Every ownership mutation reads the current
value and writes the clamped result inside the caller's transaction.

INVARIANTS:
1. Stored counts are never negative.
2. A mutation that leaves a value unchanged issues no write.
3. A team never holds more than TEAM_MAX_DICE dice in total.
"""

import logging

from pydantic import ValidationError
from sqlalchemy import Select, delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from preparea.config import OTHER_SET_GROUP
from preparea.models.backup import (
    CollectionRow,
    DiceRow,
    TeamCardRow,
    TeamRow,
    UserStoreBackup,
)
from preparea.models.card import CardRecord
from preparea.models.collection import OwnershipSnapshot, apply_delta
from preparea.models.db import CollectionDB, CollectionDiceDB, TeamCardDB, TeamDB
from preparea.models.failure import BackupFormatError, TeamNotFoundError
from preparea.models.imports import CollectionImportPlan, ImportReport
from preparea.models.reference import ReferenceData
from preparea.models.team import Team, TeamCardInfo, TeamSummary
from preparea.services.team_limits import DiceLinkMode, clamp_team_card_dice, linked_dice_delta
from preparea.services.tokens import natural_sort_key

logger = logging.getLogger(__name__)

UNTITLED_TEAM = "Untitled Team"

OwnershipRows = tuple[list[tuple[int, int, int]], list[tuple[str, str, int]]]


# --- Ownership Operations ---


async def load_ownership_rows(session: AsyncSession) -> OwnershipRows:
    """Raw (card_pk, standard, foil) and (character, set_group, dice) rows."""
    card_result = await session.execute(
        select(CollectionDB.card_pk, CollectionDB.have_cards, CollectionDB.have_foil).order_by(
            CollectionDB.card_pk
        )
    )
    dice_result = await session.execute(
        select(
            CollectionDiceDB.character_name,
            CollectionDiceDB.set_group,
            CollectionDiceDB.dice_count,
        ).order_by(CollectionDiceDB.character_name, CollectionDiceDB.set_group)
    )
    card_rows = [(row[0], row[1], row[2]) for row in card_result.all()]
    dice_rows = [(row[0], row[1], row[2]) for row in dice_result.all()]
    return card_rows, dice_rows


async def increment_card(
    session: AsyncSession, card_pk: int, delta: int, foil: bool = False
) -> int:
    """
    Add delta to a card's standard or foil count.

    Returns the new count, clamped at zero.
    """
    row = await session.get(CollectionDB, card_pk)
    current = 0
    if row is not None:
        current = (row.have_foil if foil else row.have_cards) or 0
    updated = apply_delta(current, delta)
    if updated == current:
        return current

    if row is None:
        row = CollectionDB(card_pk=card_pk, have_cards=0, have_foil=0, have_dice=0, want=0)
        session.add(row)
    if foil:
        row.have_foil = updated
    else:
        row.have_cards = updated
    await session.flush()
    return updated


async def increment_dice(
    session: AsyncSession, character: str, set_group: str, delta: int
) -> int:
    """
    Add delta to the dice owned for a character in a set group.

    Returns the new count, clamped at zero. Blank characters own no dice;
    a blank set group is stored as "Other".
    """
    character = (character or "").strip()
    if not character:
        return 0
    set_group = (set_group or "").strip() or OTHER_SET_GROUP
    row = await session.get(CollectionDiceDB, (character, set_group))
    current = row.dice_count if row is not None else 0
    updated = apply_delta(current, delta)
    if updated == current:
        return current

    if row is None:
        row = CollectionDiceDB(character_name=character, set_group=set_group, dice_count=updated)
        session.add(row)
    else:
        row.dice_count = updated
    await session.flush()
    return updated


async def apply_card_delta(
    session: AsyncSession,
    card: CardRecord,
    delta: int,
    foil: bool = False,
    dice_link: DiceLinkMode = DiceLinkMode.NONE,
) -> tuple[int, int | None]:
    """
    Increment a card and, with a dice link, its dice bucket.

    Returns:
        Tuple of (new card count, new dice count or None when dice were untouched)
    """
    count = await increment_card(session, card.card_pk, delta, foil=foil)
    dice_delta = linked_dice_delta(delta, dice_link)
    if dice_delta <= 0:
        return count, None
    dice = await increment_dice(session, card.character_name, card.group_label, dice_delta)
    return count, dice


async def apply_import_plan(session: AsyncSession, plan: CollectionImportPlan) -> ImportReport:
    """
    Write a parsed collection import to the store.

    Present counts overwrite; absent counts leave the stored value alone.
    """
    report = ImportReport(unmatched=list(plan.unmatched))

    for card_pk, update in plan.card_updates.items():
        if update.empty:
            continue
        row = await session.get(CollectionDB, card_pk)
        if row is None:
            row = CollectionDB(card_pk=card_pk, have_cards=0, have_foil=0, have_dice=0, want=0)
            session.add(row)
        if update.standard is not None:
            row.have_cards = update.standard
            report.total_standard += update.standard
        if update.foil is not None:
            row.have_foil = update.foil
            report.total_foil += update.foil

    for key, count in plan.dice_updates.items():
        row = await session.get(CollectionDiceDB, (key.character, key.set_group))
        if row is None:
            session.add(
                CollectionDiceDB(
                    character_name=key.character, set_group=key.set_group, dice_count=count
                )
            )
        else:
            row.dice_count = count
        report.dice_total += count

    await session.flush()
    logger.info(
        "Imported %s card rows, %s dice buckets, %s unmatched",
        len(plan.card_updates),
        len(plan.dice_updates),
        len(plan.unmatched),
    )
    return report


# --- Team Operations ---


def team_to_model(team: TeamDB) -> Team:
    """Convert a database team to a domain model."""
    return Team(
        team_id=team.team_id,
        name=team.name,
        created_at=team.created_at,
        updated_at=team.updated_at,
    )


async def get_team(session: AsyncSession, team_id: int) -> TeamDB:
    """
    Get a team with its cards loaded.

    Raises TeamNotFoundError if no such team exists.
    """
    result = await session.execute(
        select(TeamDB).where(TeamDB.team_id == team_id).options(selectinload(TeamDB.cards))
    )
    team = result.scalar_one_or_none()
    if team is None:
        raise TeamNotFoundError(team_id)
    return team


def _summary_query() -> Select:
    return (
        select(
            TeamDB,
            func.coalesce(func.sum(TeamCardDB.dice_count), 0),
            func.count(TeamCardDB.card_pk),
        )
        .outerjoin(TeamCardDB, TeamCardDB.team_id == TeamDB.team_id)
        .group_by(TeamDB.team_id)
    )


async def list_teams(session: AsyncSession) -> list[TeamSummary]:
    """All teams, oldest first, with their dice totals and card counts."""
    result = await session.execute(
        _summary_query().order_by(TeamDB.created_at, TeamDB.team_id)
    )
    return [
        TeamSummary(team=team_to_model(team), dice_total=int(dice), card_count=int(count))
        for team, dice, count in result.all()
    ]


async def get_team_summary(session: AsyncSession, team_id: int) -> TeamSummary:
    """
    One team with its dice total and card count.

    Raises TeamNotFoundError if no such team exists.
    """
    result = await session.execute(_summary_query().where(TeamDB.team_id == team_id))
    row = result.one_or_none()
    if row is None:
        raise TeamNotFoundError(team_id)
    team, dice, count = row
    return TeamSummary(team=team_to_model(team), dice_total=int(dice), card_count=int(count))


async def create_team(session: AsyncSession, name: str | None = None) -> Team:
    """
    Create a team.

    A blank name becomes "Team N", N being the number of teams after creation.
    """
    clean = (name or "").strip()
    if not clean:
        existing = await session.scalar(select(func.count()).select_from(TeamDB))
        clean = f"Team {(existing or 0) + 1}"
    team = TeamDB(name=clean)
    session.add(team)
    await session.flush()
    await session.refresh(team)
    logger.info("Created team %s (%s)", team.team_id, clean)
    return team_to_model(team)


async def rename_team(session: AsyncSession, team_id: int, name: str | None) -> Team:
    team = await get_team(session, team_id)
    team.name = (name or "").strip() or UNTITLED_TEAM
    team.updated_at = func.now()
    await session.flush()
    await session.refresh(team)
    return team_to_model(team)


async def delete_team(session: AsyncSession, team_id: int) -> None:
    """Delete a team and every card on it."""
    team = await get_team(session, team_id)
    await session.delete(team)
    await session.flush()
    logger.info("Deleted team %s", team_id)


def _touch(team: TeamDB) -> None:
    team.updated_at = func.now()


async def add_card_to_team(session: AsyncSession, team_id: int, card_pk: int) -> None:
    """Add a card with no dice. Adding a card already on the team does nothing."""
    team = await get_team(session, team_id)
    if any(card.card_pk == card_pk for card in team.cards):
        return
    team.cards.append(TeamCardDB(card_pk=card_pk, dice_count=0))
    _touch(team)
    await session.flush()


async def remove_card_from_team(session: AsyncSession, team_id: int, card_pk: int) -> None:
    team = await get_team(session, team_id)
    for card in list(team.cards):
        if card.card_pk == card_pk:
            team.cards.remove(card)
    _touch(team)
    await session.flush()


async def list_team_cards(
    session: AsyncSession,
    team_id: int,
    reference: ReferenceData,
    ownership: OwnershipSnapshot,
) -> list[TeamCardInfo]:
    """
    Cards on a team with their dice limits.

    Cards unknown to the reference data are skipped. Ordered by character,
    then card name, case-insensitive.
    """
    team = await get_team(session, team_id)
    by_pk = reference.cards_by_pk
    infos: list[TeamCardInfo] = []
    for row in team.cards:
        card = by_pk.get(row.card_pk)
        if card is None:
            continue
        infos.append(
            TeamCardInfo(
                card=card,
                dice_count=row.dice_count or 0,
                max_dice=reference.max_dice(card.card_pk),
                owned_dice=ownership.dice_count(card.character_name, card.group_label),
            )
        )
    infos.sort(
        key=lambda info: (
            info.card.character_name.casefold(),
            (info.card.card_name or "").casefold(),
            natural_sort_key(info.card.card_number),
        )
    )
    return infos


async def set_team_card_dice(
    session: AsyncSession,
    team_id: int,
    card: CardRecord,
    requested: float,
    reference: ReferenceData,
    ownership: OwnershipSnapshot,
) -> int:
    """
    Commit dice to a card on a team.

    The requested value is rounded and clamped by the card's dice rating, the
    dice owned for its bucket and the space left on the team. Returns the
    value actually stored.
    """
    team = await get_team(session, team_id)
    entry = next((c for c in team.cards if c.card_pk == card.card_pk), None)
    current = entry.dice_count if entry is not None else 0
    team_total = sum(c.dice_count or 0 for c in team.cards)

    applied = clamp_team_card_dice(
        requested,
        max_dice=reference.max_dice(card.card_pk),
        owned_dice=ownership.dice_count(card.character_name, card.group_label),
        team_total=team_total,
        current=current,
    )
    if entry is None:
        entry = TeamCardDB(card_pk=card.card_pk, dice_count=applied)
        team.cards.append(entry)
    else:
        entry.dice_count = applied
    _touch(team)
    await session.flush()
    return applied


# --- Backup Operations ---


async def export_backup(session: AsyncSession) -> UserStoreBackup:
    """Snapshot every row of the user store."""
    collection = (
        await session.execute(select(CollectionDB).order_by(CollectionDB.card_pk))
    ).scalars()
    dice = (
        await session.execute(
            select(CollectionDiceDB).order_by(
                CollectionDiceDB.character_name, CollectionDiceDB.set_group
            )
        )
    ).scalars()
    teams = (
        await session.execute(
            select(TeamDB).options(selectinload(TeamDB.cards)).order_by(TeamDB.team_id)
        )
    ).scalars()

    return UserStoreBackup(
        collection=[
            CollectionRow(
                card_pk=row.card_pk,
                have_cards=row.have_cards or 0,
                have_foil=row.have_foil or 0,
                have_dice=row.have_dice or 0,
                want=row.want or 0,
                notes=row.notes,
            )
            for row in collection
        ],
        dice=[
            DiceRow(
                character_name=row.character_name,
                set_group=row.set_group,
                dice_count=row.dice_count or 0,
            )
            for row in dice
        ],
        teams=[
            TeamRow(
                team_id=team.team_id,
                name=team.name,
                created_at=team.created_at,
                updated_at=team.updated_at,
                cards=[
                    TeamCardRow(card_pk=card.card_pk, dice_count=card.dice_count or 0)
                    for card in sorted(team.cards, key=lambda c: c.card_pk)
                ],
            )
            for team in teams
        ],
    )


def parse_backup(payload: object) -> UserStoreBackup:
    """
    Validate a backup payload.

    Raises BackupFormatError when the payload is not a user store snapshot.
    """
    try:
        return UserStoreBackup.model_validate(payload)
    except ValidationError as e:
        raise BackupFormatError(str(e)) from e


async def restore_backup(session: AsyncSession, backup: UserStoreBackup) -> None:
    """Replace the whole user store with a backup."""
    await session.execute(delete(TeamCardDB))
    await session.execute(delete(TeamDB))
    await session.execute(delete(CollectionDiceDB))
    await session.execute(delete(CollectionDB))
    session.expunge_all()

    for row in backup.collection:
        session.add(
            CollectionDB(
                card_pk=row.card_pk,
                have_cards=max(0, row.have_cards),
                have_foil=max(0, row.have_foil),
                have_dice=max(0, row.have_dice),
                want=max(0, row.want),
                notes=row.notes,
            )
        )
    for row in backup.dice:
        session.add(
            CollectionDiceDB(
                character_name=row.character_name,
                set_group=row.set_group,
                dice_count=max(0, row.dice_count),
            )
        )
    for team_row in backup.teams:
        team = TeamDB(team_id=team_row.team_id, name=team_row.name)
        if team_row.created_at is not None:
            team.created_at = team_row.created_at
        if team_row.updated_at is not None:
            team.updated_at = team_row.updated_at
        team.cards = [
            TeamCardDB(card_pk=card.card_pk, dice_count=max(0, card.dice_count))
            for card in team_row.cards
        ]
        session.add(team)

    await session.flush()
    logger.info(
        "Restored backup: %s cards, %s dice buckets, %s teams",
        len(backup.collection),
        len(backup.dice),
        len(backup.teams),
    )
