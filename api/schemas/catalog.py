"""Pydantic schemas for the /api/backgrounds and /api/configurations endpoints."""

from pydantic import BaseModel, Field


class BackgroundsResponse(BaseModel):
    backgrounds: list[str]


class ConfigValue(BaseModel):
    key: str
    value: str


class UpdateConfigRequest(BaseModel):
    value: str = Field(..., max_length=4096)
