"""
Backup endpoints.

GET returns the whole user store as JSON; PUT replaces the store with a
previously exported snapshot.
"""

import logging
from typing import Any

from fastapi import APIRouter, Body

from preparea.api.dependencies import SessionDep, WorkspaceDep
from preparea.db import export_backup, parse_backup, restore_backup
from preparea.models.backup import UserStoreBackup

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/backup", tags=["backup"])


@router.get("", response_model=UserStoreBackup)
async def get_backup(session: SessionDep) -> UserStoreBackup:
    return await export_backup(session)


@router.put("", response_model=UserStoreBackup)
async def put_backup(
    workspace: WorkspaceDep,
    session: SessionDep,
    payload: Any = Body(...),
) -> UserStoreBackup:
    """
    Restore a backup, replacing every team, card count and dice bucket.

    Raises BackupFormatError when the payload is not a backup snapshot.
    """
    backup = parse_backup(payload)
    await restore_backup(session, backup)
    await session.commit()
    workspace.reset_after_restore()
    return backup
