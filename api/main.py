"""
FastAPI application factory.

This file:
1. Creates the FastAPI app
2. Runs startup logic (create DB tables, connect to Redis, build the
   job orchestrator and its worker pool)
3. Registers all routers (jobs, users, catalog, feedback, health)
4. Runs shutdown logic (stop running jobs, close connections)

The orchestrator lives in this process: its registry of running jobs is
in memory, so cancel requests must reach the same process that started
the job.

To run:  uvicorn api.main:app --host 0.0.0.0 --port 8000
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from redis.asyncio import Redis as AsyncRedis

from config.settings import settings
from jobs.registry import get_enhancer
from models.base import Base, SessionLocal, engine
from models.store import JobStore
from notifications.dispatcher import NotificationDispatcher, build_notifier
from worker.orchestrator import JobOrchestrator
from worker.pool import WorkerPool
from worker.registry import JobRegistry
from api.routers import catalog, feedback, health, jobs, users

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Runs on startup (before yield) and shutdown (after yield).

    Startup:
    - Creates all DB tables if they don't exist (safe to run multiple times)
    - Connects to Redis
    - Builds store → registry → pool → orchestrator

    Shutdown:
    - Signals running jobs to stop and waits for their threads
    - Closes Redis connection
    - Disposes the DB engine (closes connection pool)
    """
    # ── Startup ─────────────────────────────────────────────────
    logger.info("Creating database tables...")
    Base.metadata.create_all(engine)

    app.state.redis = AsyncRedis.from_url(settings.redis_url)
    app.state.store = JobStore(SessionLocal)
    app.state.orchestrator = JobOrchestrator(
        store=app.state.store,
        registry=JobRegistry(),
        dispatcher=NotificationDispatcher(build_notifier()),
        enhancer=get_enhancer(settings.ENHANCER),
        pool=WorkerPool(settings.WORKER_POOL_SIZE),
    )
    logger.info(f"API ready: enhancer={settings.ENHANCER}, notifier={settings.NOTIFIER}")

    yield  # app is running and serving requests between startup and shutdown

    # ── Shutdown ────────────────────────────────────────────────
    app.state.orchestrator.shutdown(wait=True)
    await app.state.redis.aclose()
    engine.dispose()
    logger.info("API shut down")


def create_app() -> FastAPI:
    """Factory function that builds and configures the FastAPI application."""
    app = FastAPI(
        title="Image Enhancement API",
        description="Credit-gated asynchronous image enhancement jobs with progress polling and push notifications",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.include_router(health.router)
    app.include_router(jobs.router)
    app.include_router(users.router)
    app.include_router(catalog.router)
    app.include_router(feedback.router)

    return app


# This is what uvicorn imports: `uvicorn api.main:app`
app = create_app()
