import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from teamgit.application.use_cases import (
    ActivityStore,
    RetentionSweeper,
    create_activity_store,
)
from teamgit.config import Settings, get_settings
from teamgit.interfaces.api.routes import register_routes

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the activity store, run the retention sweeper and stop it on shutdown."""

    settings: Settings = app.state.settings
    if app.state.activity_store is None:
        app.state.activity_store = create_activity_store(settings)

    sweeper = None
    if settings.retention_sweep_enabled:
        sweeper = RetentionSweeper(
            app.state.activity_store,
            interval_seconds=settings.retention_sweep_interval_seconds,
        )
        sweeper.start()
    app.state.retention_sweeper = sweeper

    try:
        yield
    finally:
        if sweeper is not None:
            await sweeper.stop()


def create_app(
    settings: Settings | None = None,
    *,
    store: ActivityStore | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""

    settings = settings or get_settings()
    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)

    app = FastAPI(title="Team git activity", lifespan=lifespan)
    app.state.settings = settings
    app.state.activity_store = store
    app.state.retention_sweeper = None

    # The dashboard and the git wrapper call the API from any origin.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    register_routes(app)
    return app


app = create_app()
