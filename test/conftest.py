"""
Pytest configuration and shared fixtures for Air Pictionary.
"""

import os
import random
import sys

import pytest

# Add src to path for testing
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from airpictionary.recognition import RecognitionResult  # noqa: E402
from airpictionary.scheduling import FrameScheduler  # noqa: E402
from airpictionary.storage import Storage  # noqa: E402
from airpictionary.words import Difficulty, Word, WordCatalog  # noqa: E402


class ScriptedRecognizer:
    """Recognizer double that returns queued results and records calls."""

    def __init__(self, *results):
        self.results = list(results)
        self.calls = []

    def recognize(self, snapshot, target_word, api_key=None):
        self.calls.append((snapshot, target_word, api_key))
        if self.results:
            return self.results.pop(0)
        return RecognitionResult(guesses=("CIRCLE", "LINE", "SHAPE"), is_correct=False)


@pytest.fixture
def scripted_recognizer():
    """Factory for recognizer doubles: scripted_recognizer(result1, result2, ...)."""
    return ScriptedRecognizer


@pytest.fixture
def car():
    return Word("CAR", "🚗", Difficulty.EASY)


@pytest.fixture
def car_catalog(car):
    """Catalog with a single word, so the target is known."""
    return WordCatalog([car], rng=random.Random(0))


@pytest.fixture
def scheduler():
    """Scheduler on a virtual clock starting at 0."""
    return FrameScheduler()


@pytest.fixture
def storage(tmp_path):
    return Storage(tmp_path / "state.json")
