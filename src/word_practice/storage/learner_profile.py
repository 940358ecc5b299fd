"""Learner profile persistence (JSON + fcntl.flock + atomic write)."""

import fcntl
import json
import os
import tempfile
from datetime import datetime
from pathlib import Path

from word_practice.config import get_settings
from word_practice.models.learner import LearnerProfile


def get_profile_path(learner_id: str) -> Path:
    profiles_dir = get_settings().learners_dir
    return profiles_dir / f"{learner_id}.json"


def default_profile(learner_id: str) -> LearnerProfile:
    settings = get_settings()
    return LearnerProfile(
        learner_id=learner_id,
        mastery_threshold=settings.default_mastery_threshold,
        timer_seconds=settings.default_timer_seconds,
        demote_on_miss=settings.default_demote_on_miss,
    )


def load_profile(learner_id: str) -> LearnerProfile:
    path = get_profile_path(learner_id)
    if not path.exists():
        return default_profile(learner_id)
    with open(path) as f:
        fcntl.flock(f, fcntl.LOCK_SH)
        data = json.load(f)
        fcntl.flock(f, fcntl.LOCK_UN)
    return LearnerProfile(**data)


def save_profile(profile: LearnerProfile) -> None:
    path = get_profile_path(profile.learner_id)
    profile.updated_at = datetime.now()
    with tempfile.NamedTemporaryFile("w", dir=path.parent, delete=False, suffix=".json") as tmp:
        json.dump(profile.model_dump(), tmp, default=str)
    os.replace(tmp.name, path)


def update_profile(learner_id: str, **kwargs) -> LearnerProfile:
    profile = load_profile(learner_id)
    updated = profile.model_validate({**profile.model_dump(), **kwargs})
    save_profile(updated)
    return updated


def delete_profile(learner_id: str) -> bool:
    path = get_profile_path(learner_id)
    if not path.exists():
        return False
    path.unlink()
    return True
