"""Word-progress persistence."""

from collections import Counter
from collections.abc import Iterable
from datetime import datetime
from pathlib import Path
from typing import Protocol

import structlog

from word_practice.models.word import Word, WordStatus
from word_practice.storage.json_store import JsonCollection

logger = structlog.get_logger()

WORDS_FILENAME = "words.json"


class WordProgressStore(Protocol):
    """What the practice engine needs from word storage."""

    def load_eligible_words(self, learner_id: str) -> list[Word]: ...

    def save_word(self, word: Word) -> None: ...


class WordStore:
    """All learners' words in one JSON file, updated by word id.

    Every read-modify-write holds an exclusive lock on a sidecar lock file
    and replaces the data file atomically. Last writer wins per word.

    Args:
        data_dir: Directory holding words.json.
    """

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self._words = JsonCollection(self.data_dir / WORDS_FILENAME, Word, "words")
        self.path = self._words.path

    def get_word(self, word_id: str) -> Word | None:
        return self._words.read().get(word_id)

    def list_words(self, learner_id: str, status: WordStatus | None = None) -> list[Word]:
        """All words of a learner, optionally filtered by status."""
        return [
            w for w in self._words.read().values()
            if w.learner_id == learner_id and (status is None or w.status == status)
        ]

    def load_eligible_words(self, learner_id: str) -> list[Word]:
        """Words still to practice (new or learning)."""
        return [w for w in self.list_words(learner_id) if w.status.is_eligible]

    def save_word(self, word: Word) -> None:
        """Insert or replace a word by id."""
        with self._words.locked() as words:
            words[word.id] = word
        logger.debug("word_saved", word_id=word.id, status=word.status.value)

    def save_words(self, new_words: Iterable[Word]) -> None:
        with self._words.locked() as words:
            for word in new_words:
                words[word.id] = word

    def add_words(self, learner_id: str, texts: Iterable[str]) -> list[Word]:
        """Add canonical word texts to a learner's library.

        Unseen texts become new words. Texts the learner already has are
        marked as seen again.

        Args:
            learner_id: Owner of the words.
            texts: Lowercase canonical word texts, already de-duplicated.

        Returns:
            The words that were newly created.
        """
        now = datetime.now()
        created: list[Word] = []
        with self._words.locked() as words:
            existing = {
                w.text.lower(): w for w in words.values() if w.learner_id == learner_id
            }
            for text in texts:
                word = existing.get(text)
                if word is not None:
                    word.last_seen = now
                    word.total_occurrences += 1
                    word.sessions_seen_count += 1
                    continue
                word = Word(learner_id=learner_id, text=text, first_seen=now, last_seen=now)
                words[word.id] = word
                existing[text] = word
                created.append(word)
        logger.info("words_added", learner_id=learner_id, created=len(created))
        return created

    def master_word(self, word_id: str) -> Word:
        """Mark a word mastered by hand; counts as one correct answer.

        Raises:
            KeyError: No word with this id.
        """
        with self._words.locked() as words:
            word = words[word_id]
            word.status = WordStatus.MASTERED
            word.correct_count += 1
            word.last_tested = datetime.now()
        logger.info("word_mastered_manually", word_id=word_id)
        return word

    def delete_learner_words(self, learner_id: str) -> int:
        with self._words.locked() as words:
            doomed = [i for i, w in words.items() if w.learner_id == learner_id]
            for word_id in doomed:
                del words[word_id]
        return len(doomed)

    def status_counts(self, learner_id: str) -> dict[str, int]:
        """Number of words per status for a learner."""
        counts = Counter(w.status.value for w in self.list_words(learner_id))
        return {status.value: counts.get(status.value, 0) for status in WordStatus}
