"""
Catalog and runtime configuration endpoints.

GET  /api/backgrounds                  → Styles the client can offer
GET  /api/configurations/{key}         → Resolve a runtime config value
PUT  /api/configurations/{key}         → Override a value (stored in app_config)
POST /api/configurations/clear-cache   → Drop cached values so the next read hits the DB

Reads go through ConfigProvider: Redis cache → app_config table → settings.
Values whose key looks like a credential are never echoed back.
"""

from fastapi import APIRouter, Depends, HTTPException
from redis.exceptions import RedisError

from api.dependencies import get_config_provider
from api.schemas.catalog import BackgroundsResponse, ConfigValue, UpdateConfigRequest
from config.provider import ConfigProvider
from worker.errors import PersistenceError

router = APIRouter(prefix="/api", tags=["catalog"])

MASKED_VALUE = "***configured***"


def _present(key: str, value: str) -> ConfigValue:
    """Credentials are stored but never echoed back."""
    if any(marker in key.upper() for marker in ConfigProvider.SECRET_MARKERS):
        value = MASKED_VALUE
    return ConfigValue(key=key, value=value)


@router.get("/backgrounds", response_model=BackgroundsResponse)
async def list_backgrounds(
    config: ConfigProvider = Depends(get_config_provider),
) -> BackgroundsResponse:
    return BackgroundsResponse(backgrounds=await config.background_styles())


@router.get("/configurations/{key}", response_model=ConfigValue)
async def get_configuration(
    key: str,
    config: ConfigProvider = Depends(get_config_provider),
) -> ConfigValue:
    value = await config.get(key)
    if not value:
        raise HTTPException(status_code=404, detail=f"Configuration '{key}' not found")
    return _present(key, value)


@router.put("/configurations/{key}", response_model=ConfigValue)
async def update_configuration(
    key: str,
    request: UpdateConfigRequest,
    config: ConfigProvider = Depends(get_config_provider),
) -> ConfigValue:
    try:
        await config.set(key, request.value)
    except PersistenceError:
        raise HTTPException(status_code=503, detail="Error updating configuration")
    return _present(key, request.value)


@router.post("/configurations/clear-cache")
async def clear_configuration_cache(
    config: ConfigProvider = Depends(get_config_provider),
) -> dict:
    try:
        cleared = await config.clear_cache()
    except RedisError:
        raise HTTPException(status_code=503, detail="Error clearing cache")
    return {"cleared": cleared}
