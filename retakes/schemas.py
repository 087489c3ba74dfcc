"""Retake request schemas."""

from __future__ import annotations

from pydantic import BaseModel, Field


class SubmissionRequest(BaseModel):
    quiz_id: str = Field(min_length=1, max_length=128)
    score: float = Field(ge=0, le=100, description="Percentage score of the attempt")


class StartRetakeRequest(BaseModel):
    score: float = Field(ge=0, le=100)
