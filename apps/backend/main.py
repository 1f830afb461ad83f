import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.ext.asyncio import AsyncSession

from jobos.config import settings
from jobos.database import AsyncSessionLocal, close_db, get_db, init_db
from jobos.health import ServiceHealth, check_database, check_openrouter
from jobos.routers import analysis, contacts, drafts, events, jobs, profiles
from jobos.routers import settings as settings_router
from jobos.services.job_lifecycle import mark_ghosted_jobs
from jobos.services.settings_store import get_settings, resolve_api_key

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: create tables, then sweep overdue applications
    configure_logging()
    logger.info("Starting Job OS Backend")
    await init_db()
    logger.info("Database tables created successfully")

    async with AsyncSessionLocal() as session:
        ghosted = await mark_ghosted_jobs(session)
        await session.commit()
    if ghosted:
        logger.info(f"Marked {ghosted} applications as Ghosted")

    yield
    # Shutdown: Close connections
    logger.info("Shutting down Job OS Backend")
    await close_db()
    logger.info("Database connections closed")

app = FastAPI(
    title=settings.app_name,
    description="Local-first job application tracker with AI resume tailoring",
    version="0.1.0",
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_cors_origin],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(jobs.router)
app.include_router(profiles.router)
app.include_router(contacts.router)
app.include_router(settings_router.router)
app.include_router(drafts.router)
app.include_router(analysis.router)
app.include_router(events.router)


@app.get("/")
async def root():
    return {"message": "Job OS API - Ready"}

@app.get("/health")
async def health_check(db: AsyncSession = Depends(get_db)):
    """Database and OpenRouter reachability, plus whether a key is configured."""
    database_health, openrouter_health = await asyncio.gather(
        check_database(db),
        check_openrouter(settings.openrouter_models_url),
        return_exceptions=True,
    )
    has_api_key = bool(resolve_api_key(await get_settings(db)))

    def _status(health) -> str:
        return health.status if isinstance(health, ServiceHealth) else "error"

    return {
        "status": "healthy" if _status(database_health) == "connected" else "degraded",
        "dependencies": {
            "database": _status(database_health),
            "openrouter": _status(openrouter_health),
        },
        "has_api_key": has_api_key,
    }
