"""Book library, per-learner book progress and reading-session history."""

from pathlib import Path

import structlog

from word_practice.models.library import Book, BookProgress, ReadingSession
from word_practice.storage.json_store import JsonCollection

logger = structlog.get_logger()


class LibraryStore:
    """Books are shared by every learner; progress and sessions belong to one.

    Args:
        data_dir: Directory holding books.json, book_progress.json and sessions.json.
    """

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)
        self._books = JsonCollection(self.data_dir / "books.json", Book, "books")
        self._progress = JsonCollection(
            self.data_dir / "book_progress.json", BookProgress, "progress"
        )
        self._sessions = JsonCollection(
            self.data_dir / "sessions.json", ReadingSession, "sessions"
        )

    # -- books ----------------------------------------------------------

    def list_books(self) -> list[Book]:
        return sorted(self._books.read().values(), key=lambda b: b.created_at)

    def get_book(self, book_id: str) -> Book | None:
        return self._books.read().get(book_id)

    def add_book(self, book: Book) -> Book:
        with self._books.locked() as books:
            books[book.id] = book
        logger.info("book_added", book_id=book.id, words=len(book.words))
        return book

    def delete_book(self, book_id: str) -> bool:
        """Remove a book and every learner's progress on it."""
        with self._books.locked() as books:
            removed = books.pop(book_id, None) is not None
        if removed:
            with self._progress.locked() as progress:
                for key in [k for k, p in progress.items() if p.book_id == book_id]:
                    del progress[key]
            logger.info("book_deleted", book_id=book_id)
        return removed

    # -- progress -------------------------------------------------------

    def save_progress(self, progress: BookProgress) -> None:
        with self._progress.locked() as records:
            records[progress.id] = progress

    def save_progress_many(self, items: list[BookProgress]) -> None:
        with self._progress.locked() as records:
            for progress in items:
                records[progress.id] = progress

    def list_progress(self, learner_id: str) -> list[BookProgress]:
        return [p for p in self._progress.read().values() if p.learner_id == learner_id]

    # -- reading sessions -----------------------------------------------

    def add_session(self, session: ReadingSession) -> ReadingSession:
        with self._sessions.locked() as sessions:
            sessions[session.id] = session
        return session

    def list_sessions(self, learner_id: str) -> list[ReadingSession]:
        """A learner's reading sessions, newest first."""
        sessions = [s for s in self._sessions.read().values() if s.learner_id == learner_id]
        return sorted(sessions, key=lambda s: s.created_at, reverse=True)

    def delete_learner(self, learner_id: str) -> int:
        """Drop a learner's progress and sessions. Returns how many records went."""
        removed = 0
        with self._progress.locked() as progress:
            for key in [k for k, p in progress.items() if p.learner_id == learner_id]:
                del progress[key]
                removed += 1
        with self._sessions.locked() as sessions:
            for key in [k for k, s in sessions.items() if s.learner_id == learner_id]:
                del sessions[key]
                removed += 1
        return removed
