"""
Words Module - Pictionary Word Catalog
======================================
Holds the fixed corpus of drawable words and picks the next target word
while steering clear of recently played ones.
"""

import json
import random
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterable, List, Optional, Union

from airpictionary.exceptions import CatalogError, EmptyCatalogError


class Difficulty(Enum):
    """How hard a word is to draw."""
    EASY = 'easy'
    MEDIUM = 'medium'
    HARD = 'hard'


@dataclass(frozen=True)
class Word:
    """
    A single catalog entry.

    Attributes:
        text: The word to draw, uppercase
        emoji: Emoji shown next to the word
        difficulty: Drawing difficulty
    """
    text: str
    emoji: str
    difficulty: Difficulty


DEFAULT_WORDS = (
    Word('CAR', '🚗', Difficulty.EASY),
    Word('HOUSE', '🏠', Difficulty.EASY),
    Word('SMILE', '😊', Difficulty.EASY),
    Word('PHONE', '📱', Difficulty.EASY),
    Word('SUN', '☀️', Difficulty.EASY),
    Word('TREE', '🌳', Difficulty.EASY),
    Word('STAR', '⭐', Difficulty.EASY),
    Word('HEART', '❤️', Difficulty.EASY),
    Word('FISH', '🐟', Difficulty.EASY),
    Word('APPLE', '🍎', Difficulty.EASY),
    Word('CAT', '🐱', Difficulty.MEDIUM),
    Word('DOG', '🐶', Difficulty.MEDIUM),
    Word('FLOWER', '🌸', Difficulty.MEDIUM),
    Word('CLOCK', '⏰', Difficulty.MEDIUM),
    Word('UMBRELLA', '☂️', Difficulty.MEDIUM),
    Word('BICYCLE', '🚲', Difficulty.MEDIUM),
    Word('GUITAR', '🎸', Difficulty.MEDIUM),
    Word('ROCKET', '🚀', Difficulty.MEDIUM),
    Word('KEY', '🔑', Difficulty.MEDIUM),
    Word('BOOK', '📖', Difficulty.MEDIUM),
    Word('ELEPHANT', '🐘', Difficulty.HARD),
    Word('BUTTERFLY', '🦋', Difficulty.HARD),
    Word('LIGHTHOUSE', '🗼', Difficulty.HARD),
    Word('SNOWMAN', '⛄', Difficulty.HARD),
    Word('CASTLE', '🏰', Difficulty.HARD),
    Word('DRAGON', '🐉', Difficulty.HARD),
    Word('VOLCANO', '🌋', Difficulty.HARD),
    Word('PENGUIN', '🐧', Difficulty.HARD),
)


class WordCatalog:
    """
    Immutable word corpus with exclusion-aware random selection.

    The corpus is loaded once; entries are never mutated. An empty corpus
    is a configuration error and is only reported when a word is requested.
    """

    def __init__(self, words: Iterable[Word] = DEFAULT_WORDS, rng: Optional[random.Random] = None):
        """
        Initialize the catalog.

        Args:
            words: Catalog entries
            rng: Random source (seed it for reproducible selection)
        """
        self._words = tuple(words)
        self._rng = rng or random.Random()

    @classmethod
    def from_json(cls, path: Union[str, Path], rng: Optional[random.Random] = None) -> 'WordCatalog':
        """
        Load a catalog from a JSON list of ``{word, emoji, difficulty}`` records.

        Raises:
            CatalogError: If the file cannot be read or a record is malformed
        """
        try:
            records = json.loads(Path(path).read_text(encoding='utf-8'))
        except (OSError, ValueError) as e:
            raise CatalogError(f"Cannot load word list {path}: {e}") from e

        if not isinstance(records, list):
            raise CatalogError(f"Word list {path} must be a JSON array")

        words = []
        for index, record in enumerate(records):
            try:
                words.append(Word(
                    text=str(record['word']).strip().upper(),
                    emoji=str(record.get('emoji', '')),
                    difficulty=Difficulty(record.get('difficulty', 'easy')),
                ))
            except (KeyError, TypeError, AttributeError, ValueError) as e:
                raise CatalogError(f"Bad word record #{index} in {path}: {record!r}") from e
        return cls(words, rng=rng)

    @property
    def words(self) -> List[Word]:
        """All catalog entries."""
        return list(self._words)

    def __len__(self) -> int:
        return len(self._words)

    def select_random(self, excluding: Iterable[str] = ()) -> Word:
        """
        Pick a random word whose text is not in ``excluding``.

        If every word is excluded, the whole corpus is used instead, so the
        call only fails when the corpus itself is empty.

        Args:
            excluding: Word texts to avoid (e.g. recently played words)

        Returns:
            The selected Word

        Raises:
            EmptyCatalogError: If the corpus has no entries
        """
        if not self._words:
            raise EmptyCatalogError("Word catalog is empty")

        excluded = set(excluding)
        available = [w for w in self._words if w.text not in excluded]
        return self._rng.choice(available or self._words)

    def by_difficulty(self, difficulty: Union[Difficulty, str]) -> List[Word]:
        """Get all words of the given difficulty."""
        difficulty = Difficulty(difficulty)
        return [w for w in self._words if w.difficulty is difficulty]
