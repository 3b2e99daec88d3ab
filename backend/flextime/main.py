import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from flextime.api.aggregations import router as aggregations_router
from flextime.api.clients import router as clients_router
from flextime.api.clock import router as clock_router
from flextime.api.reports import router as reports_router
from flextime.api.sessions import router as sessions_router
from flextime.core.config import settings
from flextime.core.exceptions import register_exception_handlers
from flextime.core.logging_config import configure_logging
from flextime.db.session import engine

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    logger.info("FlexTime analytics backend starting (log level %s)", settings.LOG_LEVEL)

    yield

    await engine.dispose()
    logger.info("Shutting down FlexTime analytics backend.")


app = FastAPI(
    title="FlexTime Analytics API",
    description="Work sessions and hours rollups derived from clock-in/clock-out punches.",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(aggregations_router, prefix="/api/aggregations", tags=["Aggregations"])
app.include_router(clock_router, prefix="/api/clock-in-out", tags=["Clock"])
app.include_router(sessions_router, prefix="/api/sessions", tags=["Sessions"])
app.include_router(reports_router, prefix="/api/reports", tags=["Reports"])
app.include_router(clients_router, prefix="/api/clients", tags=["Clients"])


@app.get("/health", tags=["System"])
async def health_check() -> dict:
    return {"status": "ok"}
