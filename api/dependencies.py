"""
FastAPI dependency injection.

How this works:
- The lifespan in api/main.py builds the long-lived services once and
  stores them on app.state
- An endpoint declares `orchestrator: JobOrchestrator = Depends(get_orchestrator)`
- FastAPI calls the dependency per request and hands the endpoint the
  shared instance

Tests swap any of these out with app.dependency_overrides, which is why
endpoints never read app.state directly.
"""

from fastapi import Depends, Request
from redis.asyncio import Redis

from config.provider import ConfigProvider
from models.store import JobStore
from worker.orchestrator import JobOrchestrator


def get_store(request: Request) -> JobStore:
    return request.app.state.store


def get_orchestrator(request: Request) -> JobOrchestrator:
    return request.app.state.orchestrator


async def get_redis(request: Request) -> Redis:
    """Returns the Redis client stored on the app during startup."""
    return request.app.state.redis


async def get_config_provider(
    store: JobStore = Depends(get_store),
    redis: Redis = Depends(get_redis),
) -> ConfigProvider:
    return ConfigProvider(redis, store)
