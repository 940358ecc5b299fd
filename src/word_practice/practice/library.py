"""Operations linking a learner's words to books, presets and reading sessions."""

import structlog

from word_practice.matching.extraction import extract_words, normalize_word_list
from word_practice.models.library import BookProgress, ReadingSession
from word_practice.models.word import Word
from word_practice.storage.library_store import LibraryStore
from word_practice.storage.presets import get_preset
from word_practice.storage.word_store import WordStore

logger = structlog.get_logger()


def add_book_to_library(
    word_store: WordStore, library: LibraryStore, learner_id: str, book_id: str
) -> BookProgress:
    """Give a learner a book's words to practice and record their readiness.

    Raises:
        KeyError: No book with this id.
    """
    book = library.get_book(book_id)
    if book is None:
        raise KeyError(book_id)
    word_store.add_words(learner_id, normalize_word_list(book.words))
    progress = BookProgress.compute(learner_id, book, word_store.list_words(learner_id))
    library.save_progress(progress)
    logger.info(
        "book_added_to_library",
        learner_id=learner_id,
        book_id=book_id,
        readiness=progress.readiness_percent,
    )
    return progress


def refresh_book_progress(
    word_store: WordStore, library: LibraryStore, learner_id: str
) -> list[BookProgress]:
    """Recompute readiness for every book in a learner's library."""
    words = word_store.list_words(learner_id)
    refreshed = []
    for old in library.list_progress(learner_id):
        book = library.get_book(old.book_id)
        if book is None:
            continue
        refreshed.append(BookProgress.compute(learner_id, book, words))
    library.save_progress_many(refreshed)
    return refreshed


def record_reading_session(
    word_store: WordStore,
    library: LibraryStore,
    learner_id: str,
    text: str,
    book_title: str = "Reading Session",
) -> ReadingSession:
    """Store a read passage and add the words it contains.

    Args:
        word_store: Learner word storage.
        library: Where the session record is kept.
        learner_id: Learner who read the passage.
        text: The passage as read, e.g. from OCR of a book page.
        book_title: Title shown in the session history.

    Returns:
        The stored session with counts of new and distinct words.
    """
    words = extract_words(text)
    created = word_store.add_words(learner_id, words)
    session = ReadingSession(
        learner_id=learner_id,
        book_title=book_title.strip() or "Reading Session",
        extracted_text=text.strip(),
        new_words_count=len(created),
        total_words_count=len(words),
    )
    library.add_session(session)
    logger.info(
        "reading_session_recorded",
        learner_id=learner_id,
        new_words=len(created),
        total_words=len(words),
    )
    return session


def apply_preset(word_store: WordStore, learner_id: str, preset_id: str) -> list[Word]:
    """Add a preset list's words. Returns the words that were new.

    Raises:
        KeyError: No preset with this id.
    """
    preset = get_preset(preset_id)
    if preset is None:
        raise KeyError(preset_id)
    return word_store.add_words(learner_id, normalize_word_list(preset.words))
