"""Learner profile holding per-learner practice settings."""

from datetime import datetime

from pydantic import BaseModel, Field


class LearnerProfile(BaseModel):
    learner_id: str
    name: str = ""
    grade_level: str | None = None
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)
    mastery_threshold: int = Field(default=4, ge=1)
    timer_seconds: int = Field(default=7, ge=1)
    demote_on_miss: bool = True
    voice_preference: str = "shimmer"
