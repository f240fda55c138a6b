"""
Config Module - Runtime Settings
================================
Game timing, recognition backend and storage settings, read from the
environment. A ``.env`` file in the working directory is loaded first.
"""

import os
from pathlib import Path

from dotenv import find_dotenv, load_dotenv

load_dotenv(find_dotenv(usecwd=True))


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw == '':
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw == '':
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


# Fixed game rules
GUESS_HISTORY_SIZE = 3
RECENT_WORDS_LIMIT = 5
GUESSES_PER_REQUEST = 3


class Config:
    # Round timing (seconds)
    ROUND_DURATION_SEC = _env_int('ROUND_DURATION_SEC', 120)
    TICK_INTERVAL_SEC = _env_float('TICK_INTERVAL_SEC', 1.0)
    # Quiet period after the last stroke before asking for guesses
    DEBOUNCE_SEC = _env_float('DEBOUNCE_SEC', 2.0)

    # Recognition service
    RATE_LIMIT_MS = _env_int('RATE_LIMIT_MS', 1000)
    REQUEST_TIMEOUT_SEC = _env_float('REQUEST_TIMEOUT_SEC', 5.0)
    RECOGNIZER_BACKEND = os.environ.get('RECOGNIZER_BACKEND', 'openai').lower()
    OPENAI_API_KEY = os.environ.get('OPENAI_API_KEY', '')
    OPENAI_API_URL = os.environ.get('OPENAI_API_URL') or 'https://api.openai.com/v1/chat/completions'
    HF_TOKEN = os.environ.get('HF_TOKEN', '') or os.environ.get('HF_API_KEY', '')
    VISION_MODEL = os.environ.get('VISION_MODEL', '')

    # Persistence
    STORAGE_PATH = Path(os.environ.get('STORAGE_PATH') or Path.home() / '.airpictionary' / 'state.json')

    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()

    @classmethod
    def api_key_for(cls, backend: str) -> str:
        """Return the credential configured for a recognizer backend name."""
        if backend == 'huggingface':
            return cls.HF_TOKEN
        return cls.OPENAI_API_KEY
