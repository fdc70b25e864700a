"""
Shared FastAPI dependencies.

The workspace lives on `app.state` so that every request of one process
sees the same reference data and version counters.
"""

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from preparea.db.database import get_session
from preparea.db.operations import load_ownership_rows
from preparea.models.collection import OwnershipSnapshot
from preparea.models.failure import NotReadyError
from preparea.services.workspace import CollectionWorkspace


def get_workspace(request: Request) -> CollectionWorkspace:
    workspace: CollectionWorkspace | None = getattr(request.app.state, "workspace", None)
    if workspace is None:
        workspace = CollectionWorkspace()
        request.app.state.workspace = workspace
    return workspace


def get_ready_workspace(
    workspace: Annotated[CollectionWorkspace, Depends(get_workspace)],
) -> CollectionWorkspace:
    """Workspace with reference data loaded. Raises NotReadyError otherwise."""
    if not workspace.ready:
        raise NotReadyError()
    return workspace


async def get_ownership(
    workspace: Annotated[CollectionWorkspace, Depends(get_workspace)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> OwnershipSnapshot:
    """Ownership snapshot for the current collection version."""
    return await workspace.ownership(lambda: load_ownership_rows(session))


WorkspaceDep = Annotated[CollectionWorkspace, Depends(get_workspace)]
ReadyWorkspaceDep = Annotated[CollectionWorkspace, Depends(get_ready_workspace)]
OwnershipDep = Annotated[OwnershipSnapshot, Depends(get_ownership)]
SessionDep = Annotated[AsyncSession, Depends(get_session)]
