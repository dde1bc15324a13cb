from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from unihaven.api.router import api_router
from unihaven.config import get_settings
from unihaven.db.database import async_session_factory, init_db
from unihaven.notifications.email import EmailSender
from unihaven.scheduler.jobs import Reconciler
from unihaven.scheduler.runner import start_scheduler

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting up...")
    await init_db()

    app.state.reconciler = Reconciler(async_session_factory, EmailSender(settings), settings)
    app.state.scheduler = None
    if settings.reconcile_enabled:
        app.state.scheduler = start_scheduler(app.state.reconciler, settings)
    else:
        logger.warning("Reconciliation scheduler disabled by configuration")

    yield

    if app.state.scheduler:
        app.state.scheduler.shutdown(wait=False)
    logger.info("Shutting down...")


# Disable interactive docs in production
docs_url = None if settings.is_production else "/docs"
redoc_url = None if settings.is_production else "/redoc"

app = FastAPI(
    title="UniHaven API",
    description="Student housing platform backend: accounts, advertisers and scheduled maintenance",
    version="0.1.0",
    lifespan=lifespan,
    docs_url=docs_url,
    redoc_url=redoc_url,
)

# Configure CORS origins
default_origins = ["http://localhost:3000", "http://127.0.0.1:3000"]
if settings.cors_origins:
    cors_origins = [origin.strip() for origin in settings.cors_origins.split(",")]
else:
    cors_origins = default_origins

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type", "Authorization", "X-Admin-Key"],
)

app.include_router(api_router)


@app.get("/health")
async def health_check():
    return {"status": "ok"}
