"""
Matcher Module - Guess vs. Target Word
======================================
Decides whether a free-text guess counts as the target word.

Rules, in order:
1. Exact match after uppercasing and trimming
2. Simple plural (a trailing "S" on either side)
3. Fixed synonym table keyed by the target word
"""

from typing import Dict, FrozenSet, Iterable, Optional


SYNONYMS: Dict[str, FrozenSet[str]] = {
    'CAR': frozenset({'AUTOMOBILE', 'VEHICLE'}),
    'HOUSE': frozenset({'HOME', 'BUILDING'}),
    'SMILE': frozenset({'HAPPY', 'SMILEY'}),
    'PHONE': frozenset({'MOBILE', 'CELL', 'CELLPHONE', 'SMARTPHONE'}),
}


def normalize(text: str) -> str:
    """Uppercase and trim a word for comparison."""
    return text.strip().upper()


def matches(guess: str, target: str) -> bool:
    """
    Check whether a guess counts as the target word.

    Args:
        guess: Free-text guess, any case
        target: Target word, any case

    Returns:
        True if the guess matches
    """
    g = normalize(guess)
    t = normalize(target)

    if g == t:
        return True

    if g == t + 'S' or g + 'S' == t:
        return True

    return g in SYNONYMS.get(t, frozenset())


def first_match(guesses: Iterable[str], target: str) -> Optional[str]:
    """Return the first guess that matches the target, or None."""
    for guess in guesses:
        if matches(guess, target):
            return guess
    return None
