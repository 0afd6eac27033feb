"""Pydantic schemas for the /api/users endpoints."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class RegisterUserRequest(BaseModel):
    user_id: str = Field(..., min_length=1, max_length=128)
    device_type: Optional[str] = Field(default=None, max_length=50, examples=["android"])
    ip_address: Optional[str] = Field(default=None, max_length=45, examples=["203.0.113.7"])
    location: Optional[str] = Field(default=None, max_length=255, examples=["Lisbon, PT"])


class UserResponse(BaseModel):
    user_id: str
    credits: int = Field(..., validation_alias="credit")
    device_type: Optional[str] = None
    ip_address: Optional[str] = None
    location: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True, "populate_by_name": True}


class CreditsResponse(BaseModel):
    user_id: str
    credits: int


class UpdateCreditsRequest(BaseModel):
    """Positive amount tops up, negative amount deducts (never below zero)."""

    user_id: str = Field(..., min_length=1, max_length=128)
    amount: int

    @field_validator("amount")
    @classmethod
    def amount_not_zero(cls, v: int) -> int:
        if v == 0:
            raise ValueError("amount must be non-zero")
        return v
