"""Pydantic schemas for POST /api/feedback."""

from pydantic import BaseModel, Field, field_validator


class SubmitFeedbackRequest(BaseModel):
    user_id: str = Field(..., max_length=128)
    email: str = Field(..., max_length=254, examples=["someone@example.com"])
    feedback_text: str = Field(..., max_length=5000)

    @field_validator("user_id", "email", "feedback_text")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v.strip()


class FeedbackResponse(BaseModel):
    success: bool
    message: str
