"""Fuzzy matching of a spoken or typed transcript against a target word."""

import re
from collections.abc import Iterable

from pydantic import BaseModel

from word_practice.matching.homophones import DEFAULT_HOMOPHONES, HomophoneTable

_PUNCTUATION = re.compile(r"[.,!?'\"]")

# Fraction of the target length that may be edited and still count as a read.
EDIT_TOLERANCE_RATIO = 0.35


class TargetMatch(BaseModel):
    """A target word heard inside a longer transcript."""

    word: str
    index: int
    transcript: str
    confidence: float = 0.0


def normalize(text: str) -> str:
    """Strip punctuation and surrounding whitespace, then lowercase."""
    return _PUNCTUATION.sub("", text).strip().lower()


def levenshtein_distance(a: str, b: str) -> int:
    """Classic insert/delete/substitute edit distance."""
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            if char_a == char_b:
                current.append(previous[j - 1])
            else:
                current.append(1 + min(previous[j - 1], previous[j], current[j - 1]))
        previous = current
    return previous[-1]


def max_allowed_distance(target: str) -> int:
    """Edit budget for a normalized target: scales with length, never zero."""
    return max(1, int(len(target) * EDIT_TOLERANCE_RATIO))


def evaluate(
    spoken: str,
    target: str,
    homophones: HomophoneTable = DEFAULT_HOMOPHONES,
) -> bool:
    """Decide whether ``spoken`` counts as a correct reading of ``target``.

    Checks run cheapest and most precise first: exact match, homophone
    match, the target appearing as one of the spoken tokens, a spoken token
    that is a homophone of the target, and finally a bounded edit distance
    over the whole transcript.

    Args:
        spoken: Raw transcript or typed answer.
        target: The word being practiced.
        homophones: Lookup table of equivalent spellings.

    Returns:
        True if the answer is accepted.
    """
    clean_spoken = normalize(spoken)
    clean_target = normalize(target)

    if clean_spoken == clean_target:
        return True
    if homophones.are_homophones(clean_spoken, clean_target):
        return True

    tokens = clean_spoken.split()
    if clean_target in tokens:
        return True
    if any(homophones.are_homophones(token, clean_target) for token in tokens):
        return True

    distance = levenshtein_distance(clean_spoken, clean_target)
    return distance <= max_allowed_distance(clean_target)


def match_targets(
    transcript: str,
    targets: list[str],
    already_matched: Iterable[int] = (),
    confidence: float = 0.0,
    homophones: HomophoneTable = DEFAULT_HOMOPHONES,
) -> list[TargetMatch]:
    """Find which of several target words were read in one transcript.

    Used when the learner reads a whole row of words in one breath. Each
    spoken token is evaluated on its own against every target that has not
    matched yet.

    Args:
        transcript: Raw transcript, possibly several words long.
        targets: Words on display, by position.
        already_matched: Target positions to skip.
        confidence: Recognizer confidence attached to the transcript.
        homophones: Lookup table of equivalent spellings.

    Returns:
        One TargetMatch per newly matched target, in target order.
    """
    skip = set(already_matched)
    spoken_tokens = transcript.lower().split()
    matches: list[TargetMatch] = []
    for index, word in enumerate(targets):
        if index in skip:
            continue
        if any(evaluate(token, word, homophones) for token in spoken_tokens):
            matches.append(TargetMatch(
                word=word,
                index=index,
                transcript=transcript,
                confidence=confidence,
            ))
    return matches
