"""Immutable homophone lookup used by the match evaluator."""

from collections.abc import Iterable, Mapping
from types import MappingProxyType

# Groups of words that sound alike when read aloud.
HOMOPHONE_GROUPS: tuple[tuple[str, ...], ...] = (
    ("sight", "site", "cite"),
    ("their", "there", "they're"),
    ("to", "too", "two"),
    ("your", "you're"),
    ("its", "it's"),
    ("know", "no"),
    ("knew", "new"),
    ("knight", "night"),
    ("knot", "not"),
    ("write", "right", "rite"),
    ("read", "red"),
    ("hear", "here"),
    ("sea", "see"),
    ("sun", "son"),
    ("one", "won"),
    ("be", "bee"),
    ("by", "buy", "bye"),
    ("for", "four", "fore"),
    ("ate", "eight"),
    ("wait", "weight"),
)


class HomophoneTable:
    """Read-only mapping from a word to the other words that sound the same.

    Built once from groups; each word maps to the frozenset of its group
    mates. Apostrophe-free spellings ("theyre") are registered alongside the
    written form so lookups work on normalized input too.

    Args:
        mapping: Word -> homophones mapping. Use ``from_groups`` instead of
            building this by hand.
    """

    def __init__(self, mapping: Mapping[str, frozenset[str]]):
        self._mapping = MappingProxyType(dict(mapping))

    @classmethod
    def from_groups(cls, groups: Iterable[Iterable[str]]) -> "HomophoneTable":
        """Build a table from groups of equivalent spellings."""
        merged: dict[str, set[str]] = {}
        for group in groups:
            spellings: set[str] = set()
            for word in group:
                lower = word.strip().lower()
                spellings.add(lower)
                spellings.add(lower.replace("'", ""))
            for word in spellings:
                merged.setdefault(word, set()).update(spellings - {word})
        return cls({word: frozenset(others) for word, others in merged.items()})

    def __contains__(self, word: object) -> bool:
        return isinstance(word, str) and word.lower() in self._mapping

    def __len__(self) -> int:
        return len(self._mapping)

    def homophones_of(self, word: str) -> frozenset[str]:
        """Return the other spellings that sound like ``word``."""
        return self._mapping.get(word.lower(), frozenset())

    def are_homophones(self, first: str, second: str) -> bool:
        """Symmetric, case-insensitive check; a word is its own homophone."""
        lower_first = first.lower()
        lower_second = second.lower()
        if lower_first == lower_second:
            return True
        return lower_second in self._mapping.get(lower_first, frozenset())


DEFAULT_HOMOPHONES = HomophoneTable.from_groups(HOMOPHONE_GROUPS)
