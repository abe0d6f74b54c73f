"""StreamTracker — FastAPI application entry point."""

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from streamtracker import __version__
from streamtracker.config import settings
from streamtracker.api import health, shows, library, insights, notifications

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    # Startup: create the local cache tables, probe integrations, start the monitor
    from streamtracker.api.deps import get_catalog, get_monitor, get_library_service
    from streamtracker.database import init_db
    from streamtracker.services.integration_probe import probe_all

    await init_db()
    app.state.integrations = await probe_all(settings)

    monitor_task = None
    if settings.has_monitor:
        monitor = get_monitor(get_library_service(), get_catalog())
        monitor_task = asyncio.create_task(monitor.run_forever(settings.monitored_accounts))
        logger.info("Notification monitor started for %d account(s)", len(settings.monitored_accounts))
    yield
    # Shutdown: stop the monitor
    if monitor_task is not None:
        monitor_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await monitor_task


app = FastAPI(
    title=settings.app_name,
    version=__version__,
    description="TV show tracker — catalog, library sync, service insights and episode reminders",
    lifespan=lifespan,
    docs_url="/api/docs" if settings.debug else None,
    redoc_url="/api/redoc" if settings.debug else None,
)

# CORS: frontend dev server + production URL
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:5173",     # Vite dev server
        settings.app_url,
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Mount routers ────────────────────────────────────────────────
app.include_router(health.router,         prefix="/api/v1", tags=["system"])
app.include_router(shows.router,          prefix="/api/v1", tags=["shows"])
app.include_router(library.router,        prefix="/api/v1", tags=["library"])
app.include_router(insights.router,       prefix="/api/v1", tags=["insights"])
app.include_router(notifications.router,  prefix="/api/v1", tags=["notifications"])
