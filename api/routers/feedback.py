"""
Feedback endpoint.

POST /api/feedback → Store a free-text message from a user

Blank user_id, email or feedback_text is rejected with 422 by the schema.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.concurrency import run_in_threadpool

from api.dependencies import get_store
from api.schemas.feedback import FeedbackResponse, SubmitFeedbackRequest
from models.store import JobStore
from worker.errors import PersistenceError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["feedback"])


@router.post("/feedback", response_model=FeedbackResponse, status_code=201)
async def submit_feedback(
    request: SubmitFeedbackRequest,
    store: JobStore = Depends(get_store),
) -> FeedbackResponse:
    try:
        await run_in_threadpool(
            store.submit_feedback, request.user_id, request.email, request.feedback_text
        )
    except PersistenceError:
        raise HTTPException(status_code=503, detail="Failed to submit feedback")

    logger.info(f"Feedback received from user {request.user_id}")
    return FeedbackResponse(success=True, message="Feedback submitted successfully")
