"""
Storage Module - Onboarding Flag and Recent Words
=================================================
Tiny JSON key-value store for the only state that outlives a session.
Failures are logged and swallowed: the worst case is that onboarding is
shown again or a recent word repeats.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from airpictionary.config import RECENT_WORDS_LIMIT, Config

logger = logging.getLogger(__name__)

ONBOARDING_COMPLETED = 'onboarding_completed'
RECENT_WORDS = 'recent_words'


class Storage:
    """Fire-and-forget persistence backed by a single JSON file."""

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self.path = Path(path) if path is not None else Config.STORAGE_PATH

    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        data = json.loads(self.path.read_text(encoding='utf-8'))
        if not isinstance(data, dict):
            raise ValueError(f"{self.path} does not hold a JSON object")
        return data

    def _set(self, key: str, value: Any):
        try:
            data = self._load()
        except (OSError, ValueError) as e:
            logger.warning("Discarding unreadable storage file %s: %s", self.path, e)
            data = {}
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + '.tmp')
        tmp.write_text(json.dumps(data), encoding='utf-8')
        tmp.replace(self.path)

    def set_onboarding_complete(self):
        """Mark onboarding as complete."""
        try:
            self._set(ONBOARDING_COMPLETED, True)
        except OSError as e:
            logger.error("Error saving onboarding status: %s", e)

    def is_onboarding_complete(self) -> bool:
        """Check if the player has completed onboarding."""
        try:
            return self._load().get(ONBOARDING_COMPLETED) is True
        except (OSError, ValueError) as e:
            logger.error("Error checking onboarding status: %s", e)
            return False

    def save_recent_words(self, words: Iterable[str]):
        """Save recently played words, keeping the last five."""
        recent = [str(w) for w in words][-RECENT_WORDS_LIMIT:]
        try:
            self._set(RECENT_WORDS, recent)
        except OSError as e:
            logger.error("Error saving recent words: %s", e)

    def get_recent_words(self) -> List[str]:
        """Get recently played words, oldest first."""
        try:
            words = self._load().get(RECENT_WORDS, [])
        except (OSError, ValueError) as e:
            logger.error("Error getting recent words: %s", e)
            return []
        if not isinstance(words, list):
            return []
        return [str(w) for w in words][-RECENT_WORDS_LIMIT:]

    def clear_all(self):
        """Remove all stored data."""
        try:
            self.path.unlink(missing_ok=True)
            logger.info("All app data cleared")
        except OSError as e:
            logger.error("Error clearing data: %s", e)
