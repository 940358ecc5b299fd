"""Turn reading passages and typed word lists into practice candidates."""

import re
from collections.abc import Iterable

_NON_LETTERS = re.compile(r"[^a-z\s]")

MIN_WORD_LENGTH = 2
MAX_WORD_LENGTH = 15


def extract_words(text: str) -> list[str]:
    """Extract unique practice words from a reading passage.

    Args:
        text: Passage text, e.g. typed in or recognized from a book page.

    Returns:
        Lowercase words of 2-15 letters in first-seen order, without duplicates.
    """
    cleaned = _NON_LETTERS.sub(" ", text.lower())
    words = [
        w for w in cleaned.split()
        if MIN_WORD_LENGTH <= len(w) <= MAX_WORD_LENGTH
    ]
    return list(dict.fromkeys(words))


def normalize_word_list(words: Iterable[str]) -> list[str]:
    """Lowercase and trim a hand-entered word list, dropping blanks and repeats."""
    cleaned = (w.strip().lower() for w in words)
    return list(dict.fromkeys(w for w in cleaned if w))
