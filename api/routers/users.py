"""
User and credit endpoints.

POST /api/users/register          → Create a user with the signup credit grant (idempotent)
GET  /api/users/{user_id}         → User record
GET  /api/users/{user_id}/credits → Current credit balance
POST /api/users/credits           → Top up (or deduct) credits
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.concurrency import run_in_threadpool

from api.dependencies import get_config_provider, get_store
from api.schemas.user import (
    CreditsResponse,
    RegisterUserRequest,
    UpdateCreditsRequest,
    UserResponse,
)
from config.provider import ConfigProvider
from config.settings import settings
from models.store import JobStore
from worker.errors import PersistenceError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["users"])


@router.post("/register", response_model=UserResponse, status_code=201)
async def register_user(
    request: RegisterUserRequest,
    store: JobStore = Depends(get_store),
    config: ConfigProvider = Depends(get_config_provider),
) -> UserResponse:
    """
    Register a user. Registering an existing user is a no-op apart from
    filling in a missing device_type, ip_address or location; the balance
    is never reset.
    """
    signup_credits = await config.get_int("SIGNUP_CREDITS", settings.SIGNUP_CREDITS)
    try:
        user = await run_in_threadpool(
            store.register_user,
            request.user_id,
            signup_credits,
            request.device_type,
            request.ip_address,
            request.location,
        )
    except PersistenceError:
        raise HTTPException(status_code=503, detail="Failed to register user")
    return UserResponse.model_validate(user)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(user_id: str, store: JobStore = Depends(get_store)) -> UserResponse:
    try:
        user = await run_in_threadpool(store.get_user, user_id)
    except PersistenceError:
        raise HTTPException(status_code=503, detail="User store unavailable")
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return UserResponse.model_validate(user)


@router.get("/{user_id}/credits", response_model=CreditsResponse)
async def get_credits(user_id: str, store: JobStore = Depends(get_store)) -> CreditsResponse:
    try:
        credits = await run_in_threadpool(store.get_credits, user_id)
    except PersistenceError:
        raise HTTPException(status_code=503, detail="User store unavailable")
    if credits is None:
        raise HTTPException(status_code=404, detail="User not found")
    return CreditsResponse(user_id=user_id, credits=credits)


@router.post("/credits", response_model=CreditsResponse)
async def update_credits(
    request: UpdateCreditsRequest,
    store: JobStore = Depends(get_store),
) -> CreditsResponse:
    """
    Add `amount` credits (negative to deduct).

    Returns 404 for an unknown user and 409 if a deduction would take the
    balance below zero.
    """
    try:
        updated = await run_in_threadpool(store.add_credits, request.user_id, request.amount)
        credits = await run_in_threadpool(store.get_credits, request.user_id)
    except PersistenceError:
        raise HTTPException(status_code=503, detail="Failed to update credits")
    if credits is None:
        raise HTTPException(status_code=404, detail="User not found")
    if not updated:
        raise HTTPException(status_code=409, detail="Insufficient credits for this deduction")

    logger.info(f"Credits for user {request.user_id} changed by {request.amount}")
    return CreditsResponse(user_id=request.user_id, credits=credits)
