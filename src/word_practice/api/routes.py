"""REST API routes for learners, word libraries and answer checking."""

import functools
import re

import structlog
from fastapi import APIRouter, HTTPException

from word_practice.api.schemas import (
    AddWordsRequest,
    AddWordsResponse,
    BookCreateRequest,
    EvaluateRequest,
    EvaluateResponse,
    LearnerUpdateRequest,
    ReadingSessionRequest,
)
from word_practice.config import get_settings
from word_practice.matching.evaluator import evaluate
from word_practice.matching.extraction import extract_words, normalize_word_list
from word_practice.models.learner import LearnerProfile
from word_practice.models.library import (
    Book,
    BookProgress,
    PresetCategory,
    PresetWordList,
    ReadinessBand,
    ReadingSession,
)
from word_practice.models.word import Word, WordStatus
from word_practice.practice.library import (
    add_book_to_library,
    apply_preset,
    record_reading_session,
    refresh_book_progress,
)
from word_practice.storage.learner_profile import delete_profile, load_profile, update_profile
from word_practice.storage.library_store import LibraryStore
from word_practice.storage.presets import get_preset, get_presets
from word_practice.storage.word_store import WordStore

logger = structlog.get_logger()
router = APIRouter(prefix="/api")

_LEARNER_ID = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


@functools.lru_cache
def get_word_store() -> WordStore:
    """Get the shared word store."""
    return WordStore(get_settings().resolved_data_dir)


@functools.lru_cache
def get_library_store() -> LibraryStore:
    """Get the shared book and reading-session store."""
    return LibraryStore(get_settings().resolved_data_dir)


def is_valid_learner_id(learner_id: str) -> bool:
    return bool(_LEARNER_ID.match(learner_id))


def validate_learner_id(learner_id: str) -> str:
    if not is_valid_learner_id(learner_id):
        raise HTTPException(status_code=400, detail="Invalid learner ID format")
    return learner_id


def _candidate_words(request: AddWordsRequest) -> list[str]:
    candidates = normalize_word_list(request.words)
    if request.text:
        candidates = list(dict.fromkeys(candidates + extract_words(request.text)))
    return candidates


@router.get("/health")
async def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "ok"}


@router.get("/capabilities")
async def capabilities() -> dict:
    """Collaborators available on this host."""
    settings = get_settings()
    return {"speech_recognition": settings.speech_recognition_enabled}


@router.post("/evaluate")
async def evaluate_answer(request: EvaluateRequest) -> EvaluateResponse:
    """Check a typed or transcribed answer against a target word."""
    return EvaluateResponse(
        spoken=request.spoken,
        target=request.target,
        is_match=evaluate(request.spoken, request.target),
    )


@router.get("/learners/{learner_id}")
async def get_learner(learner_id: str) -> LearnerProfile:
    """Get a learner's practice settings (defaults for unknown learners)."""
    return load_profile(validate_learner_id(learner_id))


@router.put("/learners/{learner_id}")
async def put_learner(learner_id: str, request: LearnerUpdateRequest) -> LearnerProfile:
    """Update a learner's practice settings."""
    learner_id = validate_learner_id(learner_id)
    changes = request.model_dump(exclude_none=True)
    profile = update_profile(learner_id, **changes)
    logger.info("learner_updated", learner_id=learner_id, fields=sorted(changes))
    return profile


@router.delete("/learners/{learner_id}")
async def delete_learner(learner_id: str) -> dict:
    """Delete a learner together with their words, book progress and sessions."""
    learner_id = validate_learner_id(learner_id)
    removed_words = get_word_store().delete_learner_words(learner_id)
    removed_records = get_library_store().delete_learner(learner_id)
    removed_profile = delete_profile(learner_id)
    if not (removed_profile or removed_words or removed_records):
        raise HTTPException(status_code=404, detail="Learner not found")
    logger.info("learner_deleted", learner_id=learner_id, words=removed_words)
    return {"learner_id": learner_id, "deleted_words": removed_words}


@router.get("/learners/{learner_id}/words")
async def list_words(learner_id: str, status: WordStatus | None = None) -> list[Word]:
    """List a learner's words, optionally by status."""
    return get_word_store().list_words(validate_learner_id(learner_id), status=status)


@router.post("/learners/{learner_id}/words")
async def add_words(learner_id: str, request: AddWordsRequest) -> AddWordsResponse:
    """Add words from a list or extract them from a reading passage."""
    learner_id = validate_learner_id(learner_id)
    candidates = _candidate_words(request)
    created = get_word_store().add_words(learner_id, candidates)
    return AddWordsResponse(created=[w.text for w in created], candidates=len(candidates))


@router.get("/learners/{learner_id}/stats")
async def learner_stats(learner_id: str) -> dict:
    """Word counts by status."""
    learner_id = validate_learner_id(learner_id)
    counts = get_word_store().status_counts(learner_id)
    return {"learner_id": learner_id, "counts": counts, "total": sum(counts.values())}


@router.post("/words/{word_id}/master")
async def master_word(word_id: str) -> Word:
    """Mark a word as mastered by hand."""
    try:
        return get_word_store().master_word(word_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Word not found")


@router.get("/presets")
async def list_presets(category: PresetCategory | None = None) -> list[PresetWordList]:
    """Built-in word lists, in display order."""
    return get_presets(category)


@router.post("/learners/{learner_id}/presets/{preset_id}")
async def add_preset(learner_id: str, preset_id: str) -> AddWordsResponse:
    """Seed a learner's words from a preset list."""
    learner_id = validate_learner_id(learner_id)
    preset = get_preset(preset_id)
    if preset is None:
        raise HTTPException(status_code=404, detail="Preset not found")
    created = apply_preset(get_word_store(), learner_id, preset.id)
    return AddWordsResponse(created=[w.text for w in created], candidates=len(preset.words))


@router.get("/books")
async def list_books() -> list[Book]:
    return get_library_store().list_books()


@router.post("/books", status_code=201)
async def create_book(request: BookCreateRequest) -> Book:
    """Add a book to the shared library from its word list or text."""
    book = Book(
        title=request.title.strip(),
        author=request.author.strip() if request.author else None,
        words=_candidate_words(request),
    )
    return get_library_store().add_book(book)


@router.delete("/books/{book_id}")
async def delete_book(book_id: str) -> dict:
    if not get_library_store().delete_book(book_id):
        raise HTTPException(status_code=404, detail="Book not found")
    return {"book_id": book_id, "deleted": True}


@router.get("/learners/{learner_id}/books")
async def learner_books(
    learner_id: str, band: ReadinessBand | None = None
) -> list[BookProgress]:
    """Readiness for each book in a learner's library, recomputed from their words."""
    learner_id = validate_learner_id(learner_id)
    progress = refresh_book_progress(get_word_store(), get_library_store(), learner_id)
    if band is not None:
        progress = [p for p in progress if p.band == band]
    return sorted(progress, key=lambda p: p.readiness_percent, reverse=True)


@router.post("/learners/{learner_id}/books/{book_id}")
async def add_learner_book(learner_id: str, book_id: str) -> BookProgress:
    """Put a book in a learner's library; its words join their practice list."""
    learner_id = validate_learner_id(learner_id)
    try:
        return add_book_to_library(get_word_store(), get_library_store(), learner_id, book_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Book not found")


@router.get("/learners/{learner_id}/sessions")
async def list_reading_sessions(learner_id: str) -> list[ReadingSession]:
    return get_library_store().list_sessions(validate_learner_id(learner_id))


@router.post("/learners/{learner_id}/sessions", status_code=201)
async def create_reading_session(
    learner_id: str, request: ReadingSessionRequest
) -> ReadingSession:
    """Record a passage the learner read and add its words."""
    learner_id = validate_learner_id(learner_id)
    return record_reading_session(
        get_word_store(),
        get_library_store(),
        learner_id,
        request.text,
        book_title=request.book_title,
    )
