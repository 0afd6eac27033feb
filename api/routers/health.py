"""
Health check endpoint.

Checks both Postgres and Redis connectivity, and reports how many jobs
are executing in this process right now.

Load balancers and container orchestrators (k8s) use health endpoints
to decide if a service is ready to receive traffic. A failed check
answers 503 with the failing dependency marked "unreachable".
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from redis.asyncio import Redis
from redis.exceptions import RedisError

from api.dependencies import get_orchestrator, get_redis, get_store
from models.store import JobStore
from worker.errors import PersistenceError
from worker.orchestrator import JobOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(
    store: JobStore = Depends(get_store),
    redis: Redis = Depends(get_redis),
    orchestrator: JobOrchestrator = Depends(get_orchestrator),
):
    """Check that Postgres and Redis are reachable."""
    checks = {"postgres": "ok", "redis": "ok"}

    try:
        await run_in_threadpool(store.ping)
    except PersistenceError as e:
        logger.error(f"Health check: Postgres unreachable: {e}")
        checks["postgres"] = "unreachable"

    try:
        await redis.ping()
    except RedisError as e:
        logger.error(f"Health check: Redis unreachable: {e}")
        checks["redis"] = "unreachable"

    healthy = all(v == "ok" for v in checks.values())
    body = {
        "status": "healthy" if healthy else "unhealthy",
        **checks,
        "active_jobs": orchestrator.active_jobs(),
    }
    if not healthy:
        return JSONResponse(status_code=503, content=body)
    return body
