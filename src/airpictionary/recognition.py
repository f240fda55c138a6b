"""
Recognition Module - AI Drawing Guesses
=======================================
Asks a vision-capable chat model what a sketch shows and checks the
answers against the target word.

Supports two backends: any OpenAI-compatible chat completions endpoint
(plain HTTP via requests) and the Hugging Face Inference API
(huggingface_hub). Without a credential, or whenever the backend fails,
a mock guesser stands in so gameplay never stalls.
"""

import base64
import logging
import random
import time
from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable, List, Optional, Sequence, Tuple, Union

import numpy as np
import requests
from huggingface_hub import InferenceClient

from airpictionary.config import GUESSES_PER_REQUEST, Config
from airpictionary.matcher import first_match, matches, normalize
from airpictionary.sketch_processor import SketchProcessor

logger = logging.getLogger(__name__)

Snapshot = Union[str, bytes, np.ndarray, None]


class RecognizerBackend(Enum):
    """Available recognition backends."""
    OPENAI = auto()         # OpenAI-compatible /v1/chat/completions
    HUGGINGFACE = auto()    # Hugging Face Inference API chat completion

    @classmethod
    def from_name(cls, name: str) -> 'RecognizerBackend':
        try:
            return cls[name.strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown recognizer backend: {name!r}") from None


DEFAULT_MODELS = {
    RecognizerBackend.OPENAI: 'gpt-4o-mini',
    RecognizerBackend.HUGGINGFACE: 'meta-llama/Llama-3.2-11B-Vision-Instruct',
}

PROMPT = (
    "This is a simple sketch drawing. What object or word could this represent? "
    f"Provide exactly {GUESSES_PER_REQUEST} guesses in order of confidence, separated by commas. "
    "Only provide the words, no explanations."
)


@dataclass(frozen=True)
class RecognitionResult:
    """
    Guesses for one drawing snapshot.

    Attributes:
        guesses: Up to three uppercase guesses, most confident first
        is_correct: Whether any guess matches the target word
        matched_guess: The first matching guess, if any
        source: 'remote', 'mock' or 'throttled'
    """
    guesses: Tuple[str, ...]
    is_correct: bool
    matched_guess: Optional[str] = None
    source: str = 'mock'

    @classmethod
    def throttled(cls) -> 'RecognitionResult':
        return cls(guesses=(), is_correct=False, source='throttled')


@dataclass
class RecognitionOutcome:
    """Result of one backend call, before any fallback is applied."""
    success: bool
    guesses: List[str]
    error: Optional[str]
    elapsed: float


def build_messages(image_base64: str) -> list:
    """Chat messages asking for ranked guesses about a PNG snapshot."""
    return [
        {
            'role': 'user',
            'content': [
                {'type': 'text', 'text': PROMPT},
                {
                    'type': 'image_url',
                    'image_url': {'url': f"data:image/png;base64,{image_base64}"},
                },
            ],
        }
    ]


def parse_guesses(content: str) -> List[str]:
    """
    Parse a comma separated model reply into guesses.

    Splits on commas, trims, uppercases, drops empty entries and keeps the
    first three.
    """
    guesses = [normalize(part) for part in (content or '').split(',')]
    return [g for g in guesses if g][:GUESSES_PER_REQUEST]


class MockGuessGenerator:
    """
    Stand-in guesser for development and for backend failures.

    Returns wrong guesses from a small vocabulary until a randomized
    attempt threshold (5-7) is reached, then places the target word in the
    second slot on every call.
    """

    VOCABULARY = ('CIRCLE', 'SQUARE', 'TRIANGLE', 'LINE', 'SHAPE', 'OBJECT', 'DRAWING', 'SKETCH')
    MIN_THRESHOLD = 5
    MAX_THRESHOLD = 7

    def __init__(self, rng: Optional[random.Random] = None, threshold: Optional[int] = None):
        """
        Initialize the mock guesser.

        Args:
            rng: Random source for vocabulary picks and the threshold
            threshold: Fixed attempt threshold (drawn from 5-7 when None)
        """
        self._rng = rng or random.Random()
        self._fixed_threshold = threshold
        self.attempts = 0
        self.threshold = 0
        self.reset()

    def reset(self):
        """Reset the attempt counter and draw a new threshold."""
        self.attempts = 0
        if self._fixed_threshold is not None:
            self.threshold = self._fixed_threshold
        else:
            self.threshold = self._rng.randint(self.MIN_THRESHOLD, self.MAX_THRESHOLD)

    def generate(self, target_word: str) -> List[str]:
        """Produce three guesses for the next attempt."""
        self.attempts += 1

        wrong = [w for w in self.VOCABULARY if not matches(w, target_word)]
        pool = wrong or list(self.VOCABULARY)
        guesses = [self._rng.choice(pool) for _ in range(GUESSES_PER_REQUEST)]

        if self.attempts >= self.threshold:
            guesses[1] = normalize(target_word)

        return guesses


class RecognitionClient:
    """
    Rate-limited drawing recognizer with a mock fallback.

    One instance lives for the whole app session. It owns the rate
    limiter timestamp and the mock attempt counter; ``reset()`` clears
    both and exists for tests and for starting a fresh session.

    ``recognize`` never raises: throttled calls return an empty result,
    and backend failures fall back to the mock guesser.
    """

    def __init__(
        self,
        backend: RecognizerBackend = RecognizerBackend.OPENAI,
        api_key: Optional[str] = None,
        model_id: Optional[str] = None,
        api_url: Optional[str] = None,
        timeout: Optional[float] = None,
        min_interval: Optional[float] = None,
        mock: Optional[MockGuessGenerator] = None,
        processor: Optional[SketchProcessor] = None,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Initialize the recognition client.

        Args:
            backend: Which backend to call when a credential is available
            api_key: Default credential (None means mock only)
            model_id: Vision model name for the backend
            api_url: Chat completions URL for the OpenAI backend
            timeout: Request timeout in seconds
            min_interval: Minimum seconds between accepted calls
            mock: Mock guesser used without a credential and on failure
            processor: Encodes numpy snapshots to base64 PNG
            clock: Monotonic clock used by the rate limiter
        """
        self.backend = backend
        self.api_key = api_key
        self.model_id = model_id or Config.VISION_MODEL or DEFAULT_MODELS[backend]
        self.api_url = api_url or Config.OPENAI_API_URL
        self.timeout = Config.REQUEST_TIMEOUT_SEC if timeout is None else timeout
        self.min_interval = Config.RATE_LIMIT_MS / 1000.0 if min_interval is None else min_interval
        self.mock = mock or MockGuessGenerator()
        self._processor = processor or SketchProcessor()
        self._clock = clock
        self._last_call: Optional[float] = None

    def recognize(
        self,
        snapshot: Snapshot,
        target_word: str,
        api_key: Optional[str] = None
    ) -> RecognitionResult:
        """
        Get up to three guesses for a drawing snapshot.

        Args:
            snapshot: Base64 PNG, raw PNG bytes or a canvas sketch array
            target_word: Word the player is drawing
            api_key: Credential for this call (defaults to the client's)

        Returns:
            RecognitionResult; empty when the call was rate limited
        """
        now = self._clock()
        if self._last_call is not None and now - self._last_call < self.min_interval:
            logger.debug("Recognition throttled (%.0f ms since last call)", (now - self._last_call) * 1000)
            return RecognitionResult.throttled()
        self._last_call = now

        key = api_key or self.api_key
        if not key:
            return self._mock_result(target_word)

        outcome = self._request_guesses(snapshot, key)
        if not outcome.success:
            logger.warning("Recognition failed after %.2fs, using mock guesses: %s", outcome.elapsed, outcome.error)
            return self._mock_result(target_word)

        logger.info("AI guesses %s in %.2fs", outcome.guesses, outcome.elapsed)
        return self._score(outcome.guesses, target_word, source='remote')

    def reset(self):
        """Forget the last call time and restart the mock attempt counter."""
        self._last_call = None
        self.mock.reset()

    def _mock_result(self, target_word: str) -> RecognitionResult:
        return self._score(self.mock.generate(target_word), target_word, source='mock')

    @staticmethod
    def _score(guesses: Sequence[str], target_word: str, source: str) -> RecognitionResult:
        matched = first_match(guesses, target_word)
        return RecognitionResult(
            guesses=tuple(guesses),
            is_correct=matched is not None,
            matched_guess=matched,
            source=source
        )

    def _encode_snapshot(self, snapshot: Snapshot) -> str:
        if snapshot is None:
            return ''
        if isinstance(snapshot, np.ndarray):
            return self._processor.encode(snapshot)
        if isinstance(snapshot, bytes):
            return base64.b64encode(snapshot).decode('utf-8')
        return snapshot

    def _request_guesses(self, snapshot: Snapshot, api_key: str) -> RecognitionOutcome:
        """Call the backend; every failure is reported in the outcome."""
        start_time = time.time()

        try:
            image_base64 = self._encode_snapshot(snapshot)
            if not image_base64:
                raise ValueError("Empty drawing snapshot")

            if self.backend == RecognizerBackend.OPENAI:
                content = self._request_openai(image_base64, api_key)
            elif self.backend == RecognizerBackend.HUGGINGFACE:
                content = self._request_huggingface(image_base64, api_key)
            else:
                raise ValueError(f"Unsupported backend: {self.backend}")

            guesses = parse_guesses(content)
            if not guesses:
                raise ValueError(f"No guesses in model reply: {content!r}")

            return RecognitionOutcome(
                success=True,
                guesses=guesses,
                error=None,
                elapsed=time.time() - start_time
            )

        except Exception as e:
            return RecognitionOutcome(
                success=False,
                guesses=[],
                error=f"{type(e).__name__}: {e}",
                elapsed=time.time() - start_time
            )

    def _request_openai(self, image_base64: str, api_key: str) -> str:
        headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json"
        }
        payload = {
            "model": self.model_id,
            "messages": build_messages(image_base64),
            "max_tokens": 50,
        }

        response = requests.post(self.api_url, headers=headers, json=payload, timeout=self.timeout)

        if response.status_code != 200:
            raise requests.HTTPError(f"API error: {response.status_code} - {response.text[:200]}")

        data = response.json()
        return data['choices'][0]['message']['content'] or ''

    def _request_huggingface(self, image_base64: str, api_key: str) -> str:
        client = InferenceClient(api_key=api_key, timeout=self.timeout)
        completion = client.chat_completion(
            messages=build_messages(image_base64),
            model=self.model_id,
            max_tokens=50,
        )
        return completion.choices[0].message.content or ''


def create_client(
    use_mock: bool = False,
    api_key: Optional[str] = None,
    backend: Optional[RecognizerBackend] = None,
    **kwargs
) -> RecognitionClient:
    """
    Factory function to create a recognition client.

    Args:
        use_mock: If True, never call a backend
        api_key: Credential (read from the environment when None)
        backend: Backend to use (RECOGNIZER_BACKEND when None)
        **kwargs: Passed through to RecognitionClient

    Returns:
        RecognitionClient instance

    Environment Variables:
        RECOGNIZER_BACKEND: 'openai' or 'huggingface'
        OPENAI_API_KEY: Key for the OpenAI backend
        HF_TOKEN: Hugging Face token (HF_API_KEY also accepted)
    """
    if backend is None:
        backend = RecognizerBackend.from_name(Config.RECOGNIZER_BACKEND)

    if use_mock:
        return RecognitionClient(backend=backend, api_key=None, **kwargs)

    key = api_key or Config.api_key_for(backend.name.lower())
    if not key:
        logger.info("No API key for %s backend, using mock guesses", backend.name.lower())

    return RecognitionClient(backend=backend, api_key=key or None, **kwargs)
