import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict

from fastapi import Depends, FastAPI, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from .activity_routes import router as activity_router
from .config import Settings, get_settings
from .content_routes import router as content_router
from .db import get_engine, get_session_factory
from .db.monitoring import get_pool_snapshot
from .logging_config import configure_logging
from .matching_routes import router as matching_router
from .onboarding_routes import router as onboarding_router
from .points_routes import router as points_router
from .profile_routes import router as profile_router
from .telemetry_pipeline import install_audit_listener


configure_logging()
logger = logging.getLogger(__name__)

settings_snapshot = get_settings()
logger.info("Database configured: %s", bool(settings_snapshot.database_url))
logger.info("OpenAI API key configured: %s", bool(settings_snapshot.openai_api_key))


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    if settings_snapshot.database_url:
        install_audit_listener(get_session_factory())
    else:
        logger.warning("AEONWISE_DATABASE_URL is not set; audit trail listener disabled.")
    yield


app = FastAPI(title="AeonWise Backend", version="0.1.0", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings_snapshot.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(profile_router)
app.include_router(points_router)
app.include_router(matching_router)
app.include_router(onboarding_router)
app.include_router(activity_router)
app.include_router(content_router)


@app.get("/healthz")
def health(settings: Settings = Depends(get_settings)) -> Dict[str, object]:
    return {
        "status": "ok",
        "database_configured": bool(settings.database_url),
        "llm_configured": bool(settings.openai_api_key),
    }


@app.get("/healthz/database")
def database_health() -> Dict[str, object]:
    try:
        engine = get_engine()
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
    except (RuntimeError, SQLAlchemyError) as exc:
        logger.exception("Database health check failed")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database is unavailable.",
        ) from exc
    return {"status": "ok", "pool": get_pool_snapshot(engine)}
