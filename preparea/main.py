import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from importlib.metadata import version as pkg_version

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from preparea.api import (
    backup_router,
    cards_router,
    collection_router,
    health_router,
    teams_router,
    trade_router,
)
from preparea.config import settings
from preparea.db.database import content_engine, init_db
from preparea.db.reference import load_reference_data
from preparea.models.failure import KnownError
from preparea.services.vocabulary import load_static_vocabulary
from preparea.services.workspace import CollectionWorkspace

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    await init_db()
    workspace = CollectionWorkspace(
        static_vocabulary=load_static_vocabulary(settings.filter_data_path)
    )
    try:
        async with content_engine.connect() as conn:
            workspace.load_reference(await load_reference_data(conn))
    except SQLAlchemyError as e:
        logger.warning("Reference store unavailable, serving static vocabulary only: %s", e)
    app.state.workspace = workspace
    yield
    await content_engine.dispose()


app = FastAPI(
    title=settings.app_name,
    version=pkg_version("preparea"),
    lifespan=lifespan,
)

app.include_router(backup_router)
app.include_router(cards_router)
app.include_router(collection_router)
app.include_router(health_router)
app.include_router(teams_router)
app.include_router(trade_router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Tighten in production
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(KnownError)
async def known_error_handler(_request: Request, exc: KnownError) -> JSONResponse:
    """Known failures become a structured failure envelope."""
    logger.info("Known failure (%s): %s", exc.kind.value, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_response().model_dump(mode="json"),
    )
